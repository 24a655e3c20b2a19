"""Snappy-compressed protobuf payloads for remote write.

Implements the body format required by the Prometheus remote_write API:
a ``WriteRequest`` serialized as protobuf, then compressed with the Snappy
block format (not the framed/stream format).
"""

import snappy

from promwrite import prompb
from promwrite.exceptions import DecodeError
from promwrite.protobuf import decode_write_request, encode_write_request
from promwrite.utils.logging import get_logger

log = get_logger(__name__)


def encode(request: prompb.WriteRequest) -> bytes:
    """Serialize and compress a wire WriteRequest.

    Returns:
        Snappy-compressed protobuf data ready for remote_write.
    """
    return snappy.compress(encode_write_request(request))


def decode(compressed_data: bytes) -> prompb.WriteRequest:
    """Decompress and parse a remote-write body.

    This is the receiver side of :func:`encode`, for tests and tooling that
    need to inspect what was sent.

    Raises:
        DecodeError: If decompression or protobuf parsing fails.
    """
    try:
        decompressed = snappy.decompress(compressed_data)
    except Exception as e:
        log.debug(
            "remote_write_decode_failed",
            stage="snappy",
            payload_bytes=len(compressed_data),
            error=str(e),
        )
        raise DecodeError(f"failed to decompress write request: {e}") from e

    try:
        return decode_write_request(decompressed)
    except DecodeError as e:
        log.debug(
            "remote_write_decode_failed",
            stage="protobuf",
            payload_bytes=len(decompressed),
            error=str(e),
        )
        raise
