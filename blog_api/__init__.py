"""Blog backend: REST API and seed/demo tool."""

__version__ = "1.0.0"
