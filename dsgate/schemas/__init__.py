"""Bundled JSON Schemas (data only)."""
