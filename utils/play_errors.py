#!/usr/bin/env python3
"""Typed errors shared by the Play Store operations.

Every error carries a short string ``code`` so callers can branch on the kind
of failure without parsing messages.
"""

from __future__ import annotations

from typing import List, Optional, Sequence


class ConfigurationError(Exception):
    """Raised at startup when the service account key cannot be used."""

    def __init__(self, message: str, code: str = "CONFIG") -> None:
        super().__init__(message)
        self.code = code


class GatewayError(Exception):
    """Raised when a call against the Play Developer API fails.

    ``details`` holds the structured error detail messages returned by the
    API, if any. The original exception is kept as ``__cause__``.
    """

    def __init__(self, message: str, code: str = "UNKNOWN", details: Optional[Sequence[str]] = None) -> None:
        super().__init__(message)
        self.code = code
        self.details: List[str] = list(details or [])


class ResourceNotFound(Exception):
    """Raised when a local file or a requested release does not exist."""

    def __init__(self, message: str, code: str = "NOT_FOUND") -> None:
        super().__init__(message)
        self.code = code


def gateway_error_or_none(error: Exception) -> Optional[Exception]:
    """The error to attach to a failure result: only gateway failures are kept."""
    return error if isinstance(error, GatewayError) else None
