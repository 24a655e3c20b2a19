"""Exceptions raised by the remote-write client.

Transport failures (connection refused, DNS, read timeouts) are not wrapped:
they surface as the ``requests.RequestException`` that caused them. Callers
can therefore tell a request the receiver rejected (:class:`WriteError`)
apart from one that never arrived.
"""


class PromWriteError(Exception):
    """Base exception for promwrite."""


class WriteError(PromWriteError):
    """The receiver answered with a status outside the accepted set."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(status_code, body)

    def __str__(self) -> str:
        return f"promwrite: expected status 200, got {self.status_code}: {self.body}"


class DecodeError(PromWriteError):
    """Bytes could not be decompressed or parsed into a WriteRequest."""


class WriteCancelledError(PromWriteError):
    """The deadline expired or was cancelled before the write completed."""
