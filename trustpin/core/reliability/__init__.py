"""
Retry and backoff.
"""
