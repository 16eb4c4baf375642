"""
Store Errors

Raised by repository implementations. Use cases translate them into
``libs.result.Error`` codes.
"""

from typing import Any, Dict, Optional


class StoreError(Exception):
    """Base class for session store failures."""

    def __init__(self, message: str, detail: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}


class SessionNotFound(StoreError):
    """No session record exists for the requested id."""


class DuplicateSessionId(StoreError):
    """A session with the same id already exists."""


class VersionConflict(StoreError):
    """The record's version no longer matches the expected version."""


class StoreUnavailable(StoreError):
    """The backing store could not complete the operation."""


__all__ = [
    "StoreError",
    "SessionNotFound",
    "DuplicateSessionId",
    "VersionConflict",
    "StoreUnavailable",
]
