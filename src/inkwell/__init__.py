"""Inkwell: a post store backed by a GitHub repository."""

__version__ = "0.1.0"
