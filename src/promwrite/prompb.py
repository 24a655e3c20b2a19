"""Wire message model for the Prometheus remote-write protocol.

Mirrors ``prompb/remote.proto`` and ``prompb/types.proto``, limited to the
fields this client sends::

    message Label      { string name = 1; string value = 2; }
    message Sample     { double value = 1; int64 timestamp = 2; }
    message TimeSeries { repeated Label labels = 1; repeated Sample samples = 2; }
    message WriteRequest { repeated TimeSeries timeseries = 1; }
"""

from dataclasses import dataclass, field
from typing import List


@dataclass
class Label:
    name: str = ""
    value: str = ""


@dataclass
class Sample:
    value: float = 0.0
    timestamp: int = 0  # milliseconds since epoch


@dataclass
class TimeSeries:
    labels: List[Label] = field(default_factory=list)
    samples: List[Sample] = field(default_factory=list)


@dataclass
class WriteRequest:
    timeseries: List[TimeSeries] = field(default_factory=list)
