"""
Use cases — one entry point per CLI operation.
"""
