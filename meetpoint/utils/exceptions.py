"""Custom exceptions for the MeetPoint client"""

from typing import Any, Optional


class MeetPointError(Exception):
    """Base exception for MeetPoint"""
    pass


class ApiError(MeetPointError):
    """Failed call to the MeetPoint REST backend.

    ``status`` is the HTTP status code, or 0 when the request never
    completed. ``message`` is already user-facing (localized).
    """

    def __init__(self, status: int, message: str, details: Optional[Any] = None):
        self.status = status
        self.message = message
        self.details = details
        super().__init__(message)

    def __repr__(self) -> str:
        return f"ApiError(status={self.status}, message={self.message!r})"


class RequestCancelledError(MeetPointError):
    """The caller abandoned the operation; its result was discarded"""
    pass


class OperationInProgressError(MeetPointError):
    """Another login/register/logout is already in flight on this session"""
    pass


class ConfigError(MeetPointError):
    """Configuration error"""
    pass


class InvalidResponseError(MeetPointError):
    """The backend answered 2xx with a record the client cannot use"""
    pass
