"""Poster processing pipeline components."""
