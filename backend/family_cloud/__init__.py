"""Family Cloud API: personal cloud storage backend."""

__version__ = "1.0.0"
