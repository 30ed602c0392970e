"""
Scheduled maintenance — checksum refresh and version checks.
"""
