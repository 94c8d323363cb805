"""CLI command modules."""

from . import serve, validate, info

__all__ = ["serve", "validate", "info"]
