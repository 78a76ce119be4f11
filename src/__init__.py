"""Quire: build a static site from Markdown posts and drafts."""

__version__ = "0.1.0"
