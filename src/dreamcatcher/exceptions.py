"""Exceptions for the dreamcatcher library."""

from __future__ import annotations

from typing import Any


class DreamcatcherError(Exception):
    """Base exception for dreamcatcher."""


class DreamcatcherAuthError(DreamcatcherError):
    """Raised when a login step fails or no session is available."""

    def __init__(self, message: str, body: Any = None) -> None:
        super().__init__(message)
        self.body = body


class DreamcatcherApiError(DreamcatcherError):
    """Raised when an API call returns a non-success status."""

    def __init__(
        self, message: str, status_code: str | None = None, body: Any = None
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class DreamcatcherCommandError(DreamcatcherError):
    """Raised when a panel answers a command with a failure status."""

    def __init__(self, message: str, response: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.response = response or {}


class DreamcatcherConnectionError(DreamcatcherError):
    """Raised when unable to reach the cloud or the command channel."""


class DreamcatcherTimeoutError(DreamcatcherError):
    """Raised when a panel does not answer a request in time."""


class DreamcatcherRequestSupersededError(DreamcatcherError):
    """Raised when a newer request for the same action replaces a pending one."""
