"""Deadlines and cooperative cancellation for writes."""

import threading
import time
from typing import Optional

from promwrite.exceptions import WriteCancelledError


class Deadline:
    """A timeout that starts at construction, plus a cancel flag.

    The transport checks it before sending and while reading the response,
    and caps the socket timeout at the time remaining. ``cancel()`` may be
    called from another thread; the write notices at its next check.

    Example:
        deadline = Deadline(timeout=5.0)
        client.write(request, deadline=deadline)
    """

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout
        self._expires_at = None if timeout is None else time.monotonic() + timeout
        self._cancelled = threading.Event()

    @classmethod
    def background(cls) -> "Deadline":
        """A deadline that never expires unless cancelled."""
        return cls()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def expired(self) -> bool:
        return self._expires_at is not None and time.monotonic() >= self._expires_at

    def remaining(self) -> Optional[float]:
        """Seconds left, 0.0 once expired, None without a timeout."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    def check(self) -> None:
        """Raise WriteCancelledError if cancelled or past the deadline."""
        if self.cancelled:
            raise WriteCancelledError("write cancelled")
        if self.expired:
            raise WriteCancelledError(f"deadline of {self.timeout}s exceeded")
