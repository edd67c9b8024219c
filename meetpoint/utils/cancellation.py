"""Cancellation tokens for abandoning in-flight calls.

A screen that goes away hands its token to ``cancel()``; any operation
carrying that token stops before sending, or discards its response
instead of applying it.
"""

import threading
from typing import Optional

from .exceptions import RequestCancelledError


class CancelToken:
    """Thread-safe, one-way cancellation flag"""

    def __init__(self):
        self._event = threading.Event()
        self.reason: Optional[str] = None

    def cancel(self, reason: str = "cancelled") -> None:
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RequestCancelledError(self.reason or "cancelled")


def check_cancelled(token: Optional[CancelToken]) -> None:
    """No-op for a missing token"""
    if token is not None:
        token.raise_if_cancelled()
