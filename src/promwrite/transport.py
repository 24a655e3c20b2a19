"""HTTP transport for remote-write payloads."""

import time
from dataclasses import dataclass
from typing import Collection, Mapping, Optional

import requests
from requests.structures import CaseInsensitiveDict

from promwrite import __version__
from promwrite.context import Deadline
from promwrite.exceptions import WriteCancelledError, WriteError
from promwrite.utils.config import DEFAULT_ACCEPTED_STATUSES, DEFAULT_TIMEOUT_SECONDS
from promwrite.utils.logging import get_logger

log = get_logger(__name__)

REMOTE_WRITE_VERSION = "0.1.0"

PROTOCOL_HEADERS = {
    "Content-Encoding": "snappy",
    "Content-Type": "application/x-protobuf",
    "X-Prometheus-Remote-Write-Version": REMOTE_WRITE_VERSION,
    "User-Agent": f"promwrite/{__version__}",
}

# urllib3 rejects a zero timeout
_MIN_TIMEOUT = 0.001

_BODY_CHUNK_SIZE = 8192


@dataclass
class WriteResponse:
    """What the receiver answered to an accepted write."""

    status_code: int
    headers: Mapping[str, str]


def merge_headers(*layers: Optional[Mapping[str, str]]) -> CaseInsensitiveDict:
    """Merge header mappings left to right; later layers win per name.

    Names compare case-insensitively, as HTTP does.
    """
    merged: CaseInsensitiveDict = CaseInsensitiveDict()
    for layer in layers:
        if layer:
            merged.update(layer)
    return merged


def _request_timeout(timeout: Optional[float], deadline: Deadline) -> Optional[float]:
    remaining = deadline.remaining()
    if remaining is None:
        return timeout
    if timeout is not None:
        remaining = min(timeout, remaining)
    return max(remaining, _MIN_TIMEOUT)


def _cancelled_from(
    error: requests.RequestException, deadline: Deadline, url: str, stage: str
) -> Optional[WriteCancelledError]:
    """Return a WriteCancelledError if the deadline explains the failure."""
    if not (deadline.expired or deadline.cancelled):
        return None
    log.warning("remote_write_cancelled", url=url, stage=stage, error=str(error))
    return WriteCancelledError(f"deadline exceeded during {stage}: {error}")


def _read_body(response: requests.Response, deadline: Deadline, url: str) -> bytes:
    """Read the whole body, checking the deadline between chunks.

    Draining the body lets the connection go back to the pool.
    """
    chunks = []
    try:
        for chunk in response.iter_content(chunk_size=_BODY_CHUNK_SIZE):
            chunks.append(chunk)
            deadline.check()
    except requests.RequestException as e:
        cancelled = _cancelled_from(e, deadline, url, "read")
        if cancelled is not None:
            raise cancelled from e
        raise
    return b"".join(chunks)


def send(
    session: requests.Session,
    url: str,
    payload: bytes,
    headers: Optional[Mapping[str, str]] = None,
    deadline: Optional[Deadline] = None,
    timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS,
    accepted_statuses: Collection[int] = DEFAULT_ACCEPTED_STATUSES,
) -> WriteResponse:
    """POST a compressed remote-write payload and classify the answer.

    Exactly one HTTP round trip is made; nothing is retried.

    Args:
        session: Session used for the request.
        url: Remote-write endpoint.
        payload: Snappy-compressed protobuf WriteRequest.
        headers: Extra headers, merged over the protocol headers.
        deadline: Bounds sending and reading the response.
        timeout: Socket timeout in seconds, capped by the deadline.
        accepted_statuses: Status codes that count as success.

    Returns:
        Status code and headers of the accepted response.

    Raises:
        WriteCancelledError: Deadline expired or cancelled.
        WriteError: Receiver answered with a status outside accepted_statuses.
        requests.RequestException: The request could not be completed.
    """
    deadline = deadline or Deadline.background()
    try:
        deadline.check()
    except WriteCancelledError:
        log.warning("remote_write_cancelled", url=url, stage="before_send")
        raise

    log.debug(
        "remote_write_sending",
        url=url,
        payload_bytes=len(payload),
    )

    t0 = time.monotonic()
    try:
        response = session.post(
            url,
            data=payload,
            headers=merge_headers(PROTOCOL_HEADERS, headers),
            timeout=_request_timeout(timeout, deadline),
            stream=True,
        )
    except requests.RequestException as e:
        cancelled = _cancelled_from(e, deadline, url, "send")
        if cancelled is not None:
            raise cancelled from e
        log.error(
            "remote_write_request_error",
            url=url,
            error=str(e),
            error_type=type(e).__name__,
            duration_ms=round((time.monotonic() - t0) * 1000, 1),
        )
        raise

    with response:
        body = _read_body(response, deadline, url)

        if response.status_code in accepted_statuses:
            log.debug(
                "remote_write_success",
                url=url,
                status_code=response.status_code,
                duration_ms=round((time.monotonic() - t0) * 1000, 1),
            )
            return WriteResponse(
                status_code=response.status_code,
                headers=response.headers,
            )

        # UTF-8 whatever charset the headers claim
        text = body.decode("utf-8", errors="replace").rstrip()
        log.warning(
            "remote_write_rejected",
            url=url,
            status_code=response.status_code,
            response_text=text[:500],
            duration_ms=round((time.monotonic() - t0) * 1000, 1),
        )
        raise WriteError(response.status_code, text)
