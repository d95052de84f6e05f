"""
Admin dashboard aggregation.
"""
