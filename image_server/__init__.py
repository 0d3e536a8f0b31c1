"""HTTP image upload and serving server."""

__version__ = "0.1.0"
