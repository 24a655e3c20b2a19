"""Shared pytest fixtures for promwrite tests."""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Dict, List

import pytest

from promwrite.models import Label, Sample, TimeSeries, WriteRequest


@dataclass
class ReceivedRequest:
    """A request captured by the mock receiver."""

    method: str
    path: str
    headers: Dict[str, str]
    body: bytes
    client_port: int = 0


@dataclass
class MockReceiver:
    """Remote-write endpoint that records requests and replies as told."""

    url: str
    status: int = 200
    body: bytes = b""
    content_type: str = ""
    requests: List[ReceivedRequest] = field(default_factory=list)

    @property
    def last(self) -> ReceivedRequest:
        return self.requests[-1]


@pytest.fixture
def receiver():
    """Run a MockReceiver on an ephemeral port for the duration of a test."""
    state = MockReceiver(url="")

    class Handler(BaseHTTPRequestHandler):
        protocol_version = "HTTP/1.1"

        def do_POST(self):
            length = int(self.headers.get("Content-Length", 0))
            state.requests.append(ReceivedRequest(
                method="POST",
                path=self.path,
                headers=dict(self.headers.items()),
                body=self.rfile.read(length),
                client_port=self.client_address[1],
            ))
            self.send_response(state.status)
            self.send_header("Content-Length", str(len(state.body)))
            self.send_header("X-Receiver", "mock")
            if state.content_type:
                self.send_header("Content-Type", state.content_type)
            self.end_headers()
            self.wfile.write(state.body)

        def log_message(self, format, *args):
            pass

    server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
    state.url = f"http://127.0.0.1:{server.server_address[1]}/api/v1/write"
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield state
    server.shutdown()
    server.server_close()
    thread.join(timeout=5.0)


@pytest.fixture
def now():
    return datetime(2024, 5, 17, 12, 30, 45, 123456, tzinfo=timezone.utc)


@pytest.fixture
def two_series(now):
    """Request with metric_a (two labels) followed by metric_b."""
    return WriteRequest(time_series=[
        TimeSeries(
            labels=[
                Label("__name__", "metric_a"),
                Label("custom_label_a", "custom_value_a"),
            ],
            sample=Sample(time=now, value=123),
        ),
        TimeSeries(
            labels=[Label("__name__", "metric_b")],
            sample=Sample(time=now, value=456),
        ),
    ])
