"""Client for the Prometheus remote-write protocol."""

__version__ = "0.1.0"

from promwrite.client import Client
from promwrite.context import Deadline
from promwrite.exceptions import (
    DecodeError,
    PromWriteError,
    WriteCancelledError,
    WriteError,
)
from promwrite.models import Label, Sample, TimeSeries, WriteRequest
from promwrite.transport import WriteResponse

__all__ = [
    "Client",
    "Deadline",
    "DecodeError",
    "Label",
    "PromWriteError",
    "Sample",
    "TimeSeries",
    "WriteCancelledError",
    "WriteError",
    "WriteRequest",
    "WriteResponse",
]
