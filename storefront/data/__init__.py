"""
Data layer: records, fixtures and the store backends.
"""
