"""
Click command groups.
"""
