"""Markdown datasources and page rendering."""

__version__ = "0.1.0"
