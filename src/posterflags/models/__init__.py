"""Data models for PosterFlags."""
