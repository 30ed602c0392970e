"""
Core engine — models, persistence, reliability and services.
"""
