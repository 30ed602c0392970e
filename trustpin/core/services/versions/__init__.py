"""
Version feeds, matching and resolution.
"""
