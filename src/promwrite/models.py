"""Caller-facing data model for remote-write requests."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def unix_nanos(time: datetime) -> int:
    """Return nanoseconds since the Unix epoch, reading naive datetimes as UTC."""
    if time.tzinfo is None:
        time = time.replace(tzinfo=timezone.utc)
    return ((time - EPOCH) // timedelta(microseconds=1)) * 1000


@dataclass
class Label:
    """A name/value pair identifying a series."""

    name: str
    value: str


@dataclass
class Sample:
    """A single observation.

    Naive datetimes are interpreted as UTC.
    """

    time: datetime
    value: float

    @property
    def timestamp_ns(self) -> int:
        """Exact nanoseconds since the Unix epoch."""
        return unix_nanos(self.time)


@dataclass
class TimeSeries:
    """Labels plus exactly one sample."""

    labels: List[Label]
    sample: Sample


@dataclass
class WriteRequest:
    """Series to push in a single remote-write call, in order."""

    time_series: List[TimeSeries] = field(default_factory=list)
