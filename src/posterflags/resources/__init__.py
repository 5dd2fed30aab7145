"""Bundled resources (flag images)."""
