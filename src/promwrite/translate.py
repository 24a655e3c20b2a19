"""Translate caller-facing requests into the wire message model."""

from datetime import datetime

from promwrite import prompb
from promwrite.models import TimeSeries, WriteRequest, unix_nanos

NANOS_PER_MILLI = 1_000_000


def timestamp_ms(time: datetime) -> int:
    """Convert a datetime to milliseconds since the epoch.

    Sub-millisecond precision is truncated toward zero, also for
    timestamps before 1970.
    """
    nanos = unix_nanos(time)
    millis = abs(nanos) // NANOS_PER_MILLI
    return millis if nanos >= 0 else -millis


def _series_to_wire(series: TimeSeries) -> prompb.TimeSeries:
    return prompb.TimeSeries(
        labels=[prompb.Label(name=l.name, value=l.value) for l in series.labels],
        samples=[
            prompb.Sample(
                value=series.sample.value,
                timestamp=timestamp_ms(series.sample.time),
            )
        ],
    )


def to_wire(request: WriteRequest) -> prompb.WriteRequest:
    """Build the wire WriteRequest for a caller request.

    Series and label order are kept as given. Nothing is validated here:
    empty label sets, NaN values and duplicate names are left for the
    receiver to judge.
    """
    return prompb.WriteRequest(
        timeseries=[_series_to_wire(series) for series in request.time_series]
    )
