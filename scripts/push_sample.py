#!/usr/bin/env python3
"""Push a single sample to a remote-write endpoint.

Handy for checking that a receiver accepts writes and that tenant headers
are right before wiring the client into an application.

    scripts/push_sample.py up 1 -l job=smoke -l instance=laptop
    scripts/push_sample.py up 1 --url http://localhost:9090/api/v1/write
"""

import argparse
import sys
from datetime import datetime, timezone

import requests

from promwrite import (
    Client,
    Deadline,
    Label,
    PromWriteError,
    Sample,
    TimeSeries,
    WriteRequest,
)
from promwrite.utils.config import load_config
from promwrite.utils.logging import setup_logging


def _parse_pair(text: str) -> tuple[str, str]:
    name, sep, value = text.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected name=value, got {text!r}")
    return name, value


def main():
    parser = argparse.ArgumentParser(description="Push one sample via remote write")
    parser.add_argument("metric", help="Metric name (__name__ label)")
    parser.add_argument("value", type=float, help="Sample value")
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to config file",
    )
    parser.add_argument("--url", help="Override the configured endpoint")
    parser.add_argument(
        "--label", "-l",
        action="append",
        type=_parse_pair,
        default=[],
        help="Extra label as name=value (repeatable)",
    )
    parser.add_argument(
        "--header", "-H",
        action="append",
        type=_parse_pair,
        default=[],
        help="Extra header as name=value (repeatable)",
    )
    parser.add_argument(
        "--deadline",
        type=float,
        default=None,
        help="Give up after this many seconds",
    )
    args = parser.parse_args()

    config = load_config(args.config)
    setup_logging(config.log_level)
    if args.url:
        config.client.url = args.url

    labels = [Label("__name__", args.metric)]
    labels.extend(Label(name, value) for name, value in args.label)
    request = WriteRequest(time_series=[
        TimeSeries(
            labels=labels,
            sample=Sample(time=datetime.now(timezone.utc), value=args.value),
        ),
    ])

    with Client.from_config(config.client) as client:
        try:
            response = client.write(
                request,
                headers=dict(args.header),
                deadline=Deadline(args.deadline),
            )
        except (PromWriteError, requests.RequestException) as e:
            print(f"write failed: {e}", file=sys.stderr)
            return 1

    print(f"ok: {response.status_code}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
