"""Tests for the HTTP transport, using a mocked requests session."""

from unittest.mock import MagicMock

import pytest
import requests

from promwrite.context import Deadline
from promwrite.exceptions import WriteCancelledError, WriteError
from promwrite.transport import PROTOCOL_HEADERS, merge_headers, send

URL = "http://receiver.test/api/v1/write"


def _session(status: int = 200, body: bytes = b"", headers=None) -> MagicMock:
    response = MagicMock(spec=requests.Response)
    response.status_code = status
    response.headers = headers or {}
    response.encoding = None
    response.iter_content.return_value = iter([body] if body else [])
    response.__enter__.return_value = response
    response.__exit__.return_value = False

    session = MagicMock(spec=requests.Session)
    session.post.return_value = response
    return session


def test_merge_headers_last_writer_wins() -> None:
    merged = merge_headers({"X": "1"}, None, {"X": "2", "Y": "3"})
    assert dict(merged) == {"X": "2", "Y": "3"}


def test_merge_headers_is_case_insensitive() -> None:
    merged = merge_headers({"x-scope-orgid": "a"}, {"X-Scope-OrgID": "b"})
    assert len(merged) == 1
    assert merged["X-SCOPE-ORGID"] == "b"


def test_send_posts_payload_with_protocol_headers() -> None:
    session = _session(status=204, headers={"X-Trace": "abc"})

    response = send(session, URL, b"payload", headers={"X-Scope-OrgID": "tenant1"})

    assert response.status_code == 204
    assert response.headers == {"X-Trace": "abc"}
    session.post.assert_called_once()
    args, kwargs = session.post.call_args
    assert args == (URL,)
    assert kwargs["data"] == b"payload"
    assert kwargs["stream"] is True
    sent = kwargs["headers"]
    assert sent["Content-Encoding"] == "snappy"
    assert sent["Content-Type"] == "application/x-protobuf"
    assert sent["X-Prometheus-Remote-Write-Version"] == "0.1.0"
    assert sent["X-Scope-OrgID"] == "tenant1"


def test_caller_headers_override_protocol_headers() -> None:
    session = _session()

    send(session, URL, b"", headers={"user-agent": "my-agent/2"})

    sent = session.post.call_args.kwargs["headers"]
    assert sent["User-Agent"] == "my-agent/2"
    assert PROTOCOL_HEADERS["User-Agent"].startswith("promwrite/")


def test_timeout_capped_by_deadline() -> None:
    session = _session()

    send(session, URL, b"", deadline=Deadline(timeout=5), timeout=30)

    timeout = session.post.call_args.kwargs["timeout"]
    assert 0 < timeout <= 5


def test_timeout_without_deadline() -> None:
    session = _session()

    send(session, URL, b"", timeout=12.5)

    assert session.post.call_args.kwargs["timeout"] == 12.5


def test_rejected_status_reads_and_trims_body() -> None:
    session = _session(status=400, body=b"out of order sample\n")

    with pytest.raises(WriteError) as exc_info:
        send(session, URL, b"")

    assert exc_info.value.status_code == 400
    assert exc_info.value.body == "out of order sample"
    assert str(exc_info.value) == (
        "promwrite: expected status 200, got 400: out of order sample"
    )


def test_accepted_statuses_are_configurable() -> None:
    session = _session(status=202)

    with pytest.raises(WriteError) as exc_info:
        send(session, URL, b"", accepted_statuses={200})
    assert exc_info.value.status_code == 202

    session = _session(status=202)
    assert send(session, URL, b"", accepted_statuses={200, 202}).status_code == 202


def test_expired_deadline_skips_request() -> None:
    session = _session()

    with pytest.raises(WriteCancelledError):
        send(session, URL, b"", deadline=Deadline(timeout=0))

    session.post.assert_not_called()


def test_timeout_after_cancel_is_cancellation() -> None:
    deadline = Deadline(timeout=60)
    session = _session()
    timeout_error = requests.ReadTimeout("read timed out")

    def post(*args, **kwargs):
        deadline.cancel()
        raise timeout_error

    session.post.side_effect = post

    with pytest.raises(WriteCancelledError) as exc_info:
        send(session, URL, b"", deadline=deadline)

    assert exc_info.value.__cause__ is timeout_error


def test_transport_error_propagates_unchanged() -> None:
    session = _session()
    session.post.side_effect = requests.ConnectionError("connection refused")

    with pytest.raises(requests.ConnectionError, match="connection refused"):
        send(session, URL, b"", deadline=Deadline(timeout=60))


def test_plain_timeout_is_not_cancellation() -> None:
    """A socket timeout with time left on the deadline stays a transport error."""
    session = _session()
    session.post.side_effect = requests.ConnectTimeout("connect timed out")

    with pytest.raises(requests.ConnectTimeout):
        send(session, URL, b"", deadline=Deadline(timeout=60))


def test_cancel_while_reading_body() -> None:
    deadline = Deadline(timeout=60)
    session = _session(status=500)
    response = session.post.return_value

    def chunks(chunk_size):
        yield b"partial "
        deadline.cancel()
        yield b"body"

    response.iter_content.side_effect = chunks

    with pytest.raises(WriteCancelledError):
        send(session, URL, b"", deadline=deadline)


def test_response_is_closed() -> None:
    session = _session(status=200)

    send(session, URL, b"")

    session.post.return_value.__exit__.assert_called_once()


def test_success_drains_body() -> None:
    session = _session(status=200, body=b"ok")

    send(session, URL, b"")

    session.post.return_value.iter_content.assert_called_once()


def test_rejected_body_ignores_declared_charset() -> None:
    session = _session(status=422, body="échantillon rejeté".encode("utf-8"))
    session.post.return_value.encoding = "ISO-8859-1"

    with pytest.raises(WriteError) as exc_info:
        send(session, URL, b"")

    assert exc_info.value.body == "échantillon rejeté"


def test_invalid_utf8_body_is_replaced() -> None:
    session = _session(status=500, body=b"bad \xff byte")

    with pytest.raises(WriteError) as exc_info:
        send(session, URL, b"")

    assert exc_info.value.body == "bad � byte"
