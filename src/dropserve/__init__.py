"""dropserve: upload handling for a minimal static file server."""

__version__ = "0.3.0"
