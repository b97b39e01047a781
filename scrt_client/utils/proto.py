"""
Minimal protobuf wire-format writer and reader.

Covers the subset of proto3 needed for Cosmos-SDK transactions and the few
query responses the client decodes:

- varint scalars (uint32/uint64/enum/bool)
- length-delimited fields (string, bytes, embedded messages)
- repeated fields of the above (non-packed for messages/bytes/strings)

Encoding is deterministic: fields are written in the order the caller emits
them (callers emit in ascending field number), and proto3 default values
(0, False, "", b"") are omitted for singular scalar fields. Embedded messages
are written whenever the caller supplies them, even if empty, which matches
"field is set" semantics.

API
---
- Writer().uint(n, v).string(n, s).bytes(n, b).message(n, encoded).finish()
- iter_fields(data) -> iterator of (field_number, wire_type, value)
- parse_fields(data) -> {field_number: [values...]}
"""

from __future__ import annotations

import struct
from typing import Dict, Iterable, Iterator, List, Tuple, Union

from ..errors import ProtoDecodeError
from .bytes import BytesLike, uvarint_decode, uvarint_encode

WIRE_VARINT = 0
WIRE_I64 = 1
WIRE_LEN = 2
WIRE_I32 = 5

FieldValue = Union[int, bytes]

__all__ = [
    "WIRE_VARINT",
    "WIRE_I64",
    "WIRE_LEN",
    "WIRE_I32",
    "Writer",
    "iter_fields",
    "parse_fields",
    "singular",
]


def _key(field_number: int, wire_type: int) -> bytes:
    if field_number < 1:
        raise ValueError("protobuf field numbers start at 1")
    return uvarint_encode((field_number << 3) | wire_type)


class Writer:
    """Append-only builder for one protobuf message."""

    __slots__ = ("_parts",)

    def __init__(self) -> None:
        self._parts: List[bytes] = []

    # -- scalars ---------------------------------------------------------------

    def uint(self, field_number: int, value: int) -> "Writer":
        value = int(value)
        if value < 0:
            raise ValueError(f"field {field_number}: negative value for unsigned field")
        if value:
            self._parts.append(_key(field_number, WIRE_VARINT) + uvarint_encode(value))
        return self

    def bool(self, field_number: int, value: bool) -> "Writer":
        return self.uint(field_number, 1 if value else 0)

    # -- length-delimited -----------------------------------------------------

    def bytes(self, field_number: int, value: BytesLike) -> "Writer":
        data = bytes(value)
        if data:
            self._append_len(field_number, data)
        return self

    def string(self, field_number: int, value: str) -> "Writer":
        if value:
            self._append_len(field_number, value.encode("utf-8"))
        return self

    def message(self, field_number: int, encoded: BytesLike) -> "Writer":
        self._append_len(field_number, bytes(encoded))
        return self

    # -- repeated ---------------------------------------------------------------

    def repeated_messages(self, field_number: int, items: Iterable[BytesLike]) -> "Writer":
        for item in items:
            self.message(field_number, item)
        return self

    def repeated_bytes(self, field_number: int, items: Iterable[BytesLike]) -> "Writer":
        # Elements of a repeated field are always written, empty or not.
        for item in items:
            self._append_len(field_number, bytes(item))
        return self

    def finish(self) -> bytes:
        return b"".join(self._parts)

    def _append_len(self, field_number: int, data: bytes) -> None:
        self._parts.append(_key(field_number, WIRE_LEN) + uvarint_encode(len(data)) + data)


# -----------------------------------------------------------------------------
# Reader
# -----------------------------------------------------------------------------


def iter_fields(data: BytesLike) -> Iterator[Tuple[int, int, FieldValue]]:
    """
    Yield (field_number, wire_type, value) for every field in `data`.

    Varints are returned as int, length-delimited fields as bytes, fixed64 and
    fixed32 as little-endian unsigned ints. Groups are rejected.
    """
    buf = bytes(data)
    i = 0
    n = len(buf)
    while i < n:
        try:
            key, used = uvarint_decode(buf, offset=i)
        except ValueError as e:
            raise ProtoDecodeError(f"bad field key at offset {i}: {e}") from e
        i += used
        field_number, wire_type = key >> 3, key & 0x7
        if field_number < 1:
            raise ProtoDecodeError(f"invalid field number 0 at offset {i}")

        if wire_type == WIRE_VARINT:
            try:
                value, used = uvarint_decode(buf, offset=i)
            except ValueError as e:
                raise ProtoDecodeError(f"field {field_number}: {e}") from e
            i += used
            yield field_number, wire_type, value
        elif wire_type == WIRE_LEN:
            try:
                length, used = uvarint_decode(buf, offset=i)
            except ValueError as e:
                raise ProtoDecodeError(f"field {field_number}: {e}") from e
            i += used
            if i + length > n:
                raise ProtoDecodeError(f"field {field_number}: truncated length-delimited value")
            yield field_number, wire_type, buf[i : i + length]
            i += length
        elif wire_type == WIRE_I64:
            if i + 8 > n:
                raise ProtoDecodeError(f"field {field_number}: truncated fixed64")
            yield field_number, wire_type, struct.unpack("<Q", buf[i : i + 8])[0]
            i += 8
        elif wire_type == WIRE_I32:
            if i + 4 > n:
                raise ProtoDecodeError(f"field {field_number}: truncated fixed32")
            yield field_number, wire_type, struct.unpack("<I", buf[i : i + 4])[0]
            i += 4
        else:
            raise ProtoDecodeError(f"field {field_number}: unsupported wire type {wire_type}")


def parse_fields(data: BytesLike) -> Dict[int, List[FieldValue]]:
    """Group all fields of a message by field number, preserving order."""
    out: Dict[int, List[FieldValue]] = {}
    for field_number, _wire_type, value in iter_fields(data):
        out.setdefault(field_number, []).append(value)
    return out


def singular(fields: Dict[int, List[FieldValue]], field_number: int, default: FieldValue) -> FieldValue:
    """Last-one-wins accessor for a singular field (proto3 merge semantics)."""
    values = fields.get(field_number)
    if not values:
        return default
    return values[-1]
