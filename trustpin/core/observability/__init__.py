"""
Logging setup.
"""
