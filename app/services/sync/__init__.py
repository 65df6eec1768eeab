"""Storefront catalog/order synchronization."""
