"""
Tool adapters — one per language runtime or binary tool.
"""
