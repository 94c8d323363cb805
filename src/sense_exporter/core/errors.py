# src/sense_exporter/core/errors.py
"""Exceptions raised by the Sense client and configuration layer."""

from __future__ import annotations

from typing import Optional


class SenseError(Exception):
    """Base class for upstream Sense failures."""


class AuthenticationError(SenseError):
    """Credentials were rejected, MFA failed, or the token expired."""


class SenseAPIError(SenseError):
    """The Sense REST API answered with a non-success status."""

    def __init__(self, status: int, message: Optional[str] = None):
        self.status = status
        self.message = message or ""
        detail = f"Sense API returned HTTP {status}"
        if self.message:
            detail += f": {self.message}"
        super().__init__(detail)


class StreamError(SenseError):
    """The realtime feed failed before it was stopped."""


class ConfigurationError(ValueError):
    """Configuration is missing or invalid."""
