"""
Product listing and search query construction.
"""
