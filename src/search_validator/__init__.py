"""Browser-driven validation of search engine result pages."""

__version__ = "0.1.0"
