"""Storefront backend: catalog, checkout and order management."""
