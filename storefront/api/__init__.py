"""
API module for the storefront.

Provides the REST endpoints consumed by the storefront frontend.
"""
