"""Vinyl Vault - a personal catalog for a physical record collection."""

__version__ = "1.1.0"
