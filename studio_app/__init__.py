"""Studio membership and invite service."""

__version__ = "0.1.0"
