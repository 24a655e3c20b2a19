"""Protobuf wire format for the remote-write messages.

Hand-written encoder and decoder for the four messages in
:mod:`promwrite.prompb`. Fields are emitted in field-number order and
repeated fields in list order, which is what protoc-generated code does,
so the output is byte-identical to the reference implementation.
"""

import struct
from typing import Callable, Iterator, List, Tuple, TypeVar, Union

from promwrite import prompb
from promwrite.exceptions import DecodeError

# Protobuf wire types
WIRE_VARINT = 0
WIRE_FIXED64 = 1
WIRE_LENGTH_DELIMITED = 2
WIRE_FIXED32 = 5

_UINT64_MASK = (1 << 64) - 1

T = TypeVar("T")
FieldValue = Union[int, bytes]


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def _encode_varint(value: int) -> bytes:
    """Encode an integer as a protobuf varint.

    Negative numbers are written as 64-bit two's complement (10 bytes).
    """
    value &= _UINT64_MASK
    result = []
    while value > 127:
        result.append((value & 0x7F) | 0x80)
        value >>= 7
    result.append(value)
    return bytes(result)


def _encode_field(field_number: int, wire_type: int, data: bytes) -> bytes:
    """Encode a protobuf field."""
    tag = (field_number << 3) | wire_type
    return _encode_varint(tag) + data


def _encode_bytes(field_number: int, data: bytes) -> bytes:
    """Encode a length-delimited field."""
    return _encode_field(
        field_number, WIRE_LENGTH_DELIMITED, _encode_varint(len(data)) + data
    )


def _encode_string(field_number: int, value: str) -> bytes:
    """Encode a string field, omitting the proto3 default."""
    if not value:
        return b""
    return _encode_bytes(field_number, value.encode("utf-8"))


def _encode_double(field_number: int, value: float) -> bytes:
    """Encode a double field, omitting the proto3 default.

    -0.0 is not the default and is written out.
    """
    packed = struct.pack("<d", value)
    if packed == b"\x00" * 8:
        return b""
    return _encode_field(field_number, WIRE_FIXED64, packed)


def _encode_int64(field_number: int, value: int) -> bytes:
    """Encode an int64 field as varint, omitting the proto3 default."""
    if value == 0:
        return b""
    return _encode_field(field_number, WIRE_VARINT, _encode_varint(value))


def encode_label(label: prompb.Label) -> bytes:
    return _encode_string(1, label.name) + _encode_string(2, label.value)


def encode_sample(sample: prompb.Sample) -> bytes:
    return _encode_double(1, sample.value) + _encode_int64(2, sample.timestamp)


def encode_timeseries(series: prompb.TimeSeries) -> bytes:
    parts = [_encode_bytes(1, encode_label(label)) for label in series.labels]
    parts.extend(_encode_bytes(2, encode_sample(s)) for s in series.samples)
    return b"".join(parts)


def encode_write_request(request: prompb.WriteRequest) -> bytes:
    """Serialize a WriteRequest to protobuf bytes.

    An empty request serializes to ``b""``, which is a valid message.
    """
    return b"".join(_encode_bytes(1, encode_timeseries(ts)) for ts in request.timeseries)


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _decode_varint(data: bytes, pos: int) -> Tuple[int, int]:
    """Decode a varint starting at pos. Returns (value, new_pos)."""
    result = 0
    shift = 0
    while True:
        if pos >= len(data):
            raise DecodeError("truncated varint")
        if shift >= 64:
            raise DecodeError("varint too long")
        byte = data[pos]
        pos += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result & _UINT64_MASK, pos
        shift += 7


def _iter_fields(data: bytes) -> Iterator[Tuple[int, int, FieldValue]]:
    """Yield (field_number, wire_type, value) for every field in a message.

    Varints come back as unsigned ints, fixed-width fields as raw bytes and
    length-delimited fields as their payload.
    """
    pos = 0
    end = len(data)
    while pos < end:
        tag, pos = _decode_varint(data, pos)
        field_number = tag >> 3
        wire_type = tag & 0x07
        if field_number == 0:
            raise DecodeError("invalid field number 0")

        if wire_type == WIRE_VARINT:
            value, pos = _decode_varint(data, pos)
            yield field_number, wire_type, value
        elif wire_type in (WIRE_FIXED64, WIRE_FIXED32):
            size = 8 if wire_type == WIRE_FIXED64 else 4
            if pos + size > end:
                raise DecodeError(f"truncated fixed field {field_number}")
            yield field_number, wire_type, data[pos:pos + size]
            pos += size
        elif wire_type == WIRE_LENGTH_DELIMITED:
            length, pos = _decode_varint(data, pos)
            if pos + length > end:
                raise DecodeError(f"truncated length-delimited field {field_number}")
            yield field_number, wire_type, data[pos:pos + length]
            pos += length
        else:
            raise DecodeError(f"unsupported wire type {wire_type} for field {field_number}")


def _expect(field_number: int, wire_type: int, expected: int) -> None:
    if wire_type != expected:
        raise DecodeError(
            f"field {field_number}: wire type {wire_type}, expected {expected}"
        )


def _decode_string(field_number: int, value: bytes) -> str:
    try:
        return value.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(f"field {field_number}: invalid UTF-8") from e


def decode_label(data: bytes) -> prompb.Label:
    label = prompb.Label()
    for number, wire_type, value in _iter_fields(data):
        if number == 1:
            _expect(number, wire_type, WIRE_LENGTH_DELIMITED)
            label.name = _decode_string(number, value)
        elif number == 2:
            _expect(number, wire_type, WIRE_LENGTH_DELIMITED)
            label.value = _decode_string(number, value)
    return label


def decode_sample(data: bytes) -> prompb.Sample:
    sample = prompb.Sample()
    for number, wire_type, value in _iter_fields(data):
        if number == 1:
            _expect(number, wire_type, WIRE_FIXED64)
            sample.value = struct.unpack("<d", value)[0]
        elif number == 2:
            _expect(number, wire_type, WIRE_VARINT)
            # int64 is two's complement on the wire
            sample.timestamp = value - (1 << 64) if value >= 1 << 63 else value
    return sample


def _decode_repeated(
    data: bytes, decoders: dict[int, Callable[[bytes], T]]
) -> dict[int, List[T]]:
    out: dict[int, List[T]] = {number: [] for number in decoders}
    for number, wire_type, value in _iter_fields(data):
        decoder = decoders.get(number)
        if decoder is None:
            continue
        _expect(number, wire_type, WIRE_LENGTH_DELIMITED)
        out[number].append(decoder(value))
    return out


def decode_timeseries(data: bytes) -> prompb.TimeSeries:
    fields = _decode_repeated(data, {1: decode_label, 2: decode_sample})
    return prompb.TimeSeries(labels=fields[1], samples=fields[2])


def decode_write_request(data: bytes) -> prompb.WriteRequest:
    """Parse protobuf bytes into a WriteRequest.

    Unknown fields (metadata, exemplars, histograms sent by other writers)
    are skipped.

    Raises:
        DecodeError: If the bytes are not a well-formed message.
    """
    fields = _decode_repeated(data, {1: decode_timeseries})
    return prompb.WriteRequest(timeseries=fields[1])
