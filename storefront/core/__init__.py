"""
Core module for the storefront: configuration and the error taxonomy.
"""
