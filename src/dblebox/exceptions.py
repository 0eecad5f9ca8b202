"""Exceptions raised by the dblebox client."""

from __future__ import annotations


class DbleboxError(Exception):
    """Base exception for all dblebox errors."""


class AuthError(DbleboxError):
    """The server rejected an email, code or verification ID."""


class ValidationError(DbleboxError):
    """Input rejected locally, before any request is sent."""


class InvalidDurationError(ValidationError):
    """A snooze duration that does not match ``<count><h|d|w|m>``."""


class TransportError(DbleboxError):
    """The request could not be sent or its response could not be read."""


class ApiError(DbleboxError):
    """The server answered with a non-2xx status."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message


class NotFoundError(ApiError):
    """The server answered 404, e.g. for an unresolved short thread ID."""
