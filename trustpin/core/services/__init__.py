"""
Services — HTTP, version resolution, checksum verification, maintenance.
"""
