"""Remote-write client."""

from typing import Collection, Mapping, Optional

import requests

from promwrite import encoder, transport, translate
from promwrite.context import Deadline
from promwrite.models import WriteRequest
from promwrite.transport import WriteResponse
from promwrite.utils.config import (
    DEFAULT_ACCEPTED_STATUSES,
    DEFAULT_TIMEOUT_SECONDS,
    ClientConfig,
)
from promwrite.utils.logging import get_logger

log = get_logger(__name__)


class Client:
    """Push samples to a Prometheus remote-write endpoint.

    Holds no per-call state, so one instance can be shared between threads
    as long as the session is (a ``requests.Session`` used only for plain
    POSTs is in practice).

    Example:
        client = Client(
            "http://prometheus:9090/api/v1/write",
            headers={"X-Scope-OrgID": "tenant1"},
        )
        client.write(WriteRequest(time_series=[
            TimeSeries(
                labels=[Label("__name__", "temperature_celsius")],
                sample=Sample(time=datetime.now(timezone.utc), value=21.5),
            ),
        ]))
    """

    def __init__(
        self,
        url: str,
        session: Optional[requests.Session] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS,
        accepted_statuses: Collection[int] = DEFAULT_ACCEPTED_STATUSES,
    ):
        """Initialise the client.

        Args:
            url: Remote-write endpoint.
            session: HTTP session to send with. A new one is created (and
                owned by the client) when omitted.
            headers: Headers sent with every write.
            timeout: Socket timeout in seconds for each request.
            accepted_statuses: Status codes that count as success.
        """
        self.url = url
        self.headers = dict(headers or {})
        self.timeout = timeout
        self.accepted_statuses = frozenset(accepted_statuses)

        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()

    @classmethod
    def from_config(
        cls, config: ClientConfig, session: Optional[requests.Session] = None
    ) -> "Client":
        """Build a client from a loaded ClientConfig."""
        return cls(
            config.url,
            session=session,
            headers=config.headers,
            timeout=config.timeout_seconds,
            accepted_statuses=config.accepted_statuses,
        )

    def write(
        self,
        request: WriteRequest,
        headers: Optional[Mapping[str, str]] = None,
        deadline: Optional[Deadline] = None,
        accepted_statuses: Optional[Collection[int]] = None,
    ) -> WriteResponse:
        """Send one remote-write request.

        Args:
            request: Series to write.
            headers: Headers for this call only, merged over the client's.
            deadline: Timeout/cancellation for this call.
            accepted_statuses: Overrides the client's accepted statuses.

        Returns:
            Status code and headers of the receiver's response.

        Raises:
            WriteError: Receiver rejected the write.
            WriteCancelledError: Deadline expired or cancelled.
            requests.RequestException: Request never completed.
        """
        payload = encoder.encode(translate.to_wire(request))

        log.debug(
            "remote_write_prepared",
            url=self.url,
            series_count=len(request.time_series),
            payload_bytes=len(payload),
        )

        return transport.send(
            self.session,
            self.url,
            payload,
            headers=transport.merge_headers(self.headers, headers),
            deadline=deadline,
            timeout=self.timeout,
            accepted_statuses=(
                self.accepted_statuses if accepted_statuses is None else accepted_statuses
            ),
        )

    def close(self) -> None:
        """Close the session if the client created it."""
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
