"""
File-backed stores — pinned checksums and verification reports.
"""
