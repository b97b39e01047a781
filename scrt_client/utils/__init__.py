"""
Utility helpers for scrt-client.

Re-exports:
- bytes: hex/base64 helpers and uvarint encode/decode
- bech32: address codec primitives
- proto: protobuf wire-format writer/reader
"""

from .bech32 import Bech32Error, decode_bytes as bech32_decode_bytes, encode_bytes as bech32_encode_bytes
from .bytes import (ensure_bytes, from_base64, from_hex, to_base64, to_hex,
                    uvarint_decode, uvarint_encode)
from .proto import Writer as ProtoWriter, iter_fields, parse_fields

__all__ = [
    # bytes
    "to_hex",
    "from_hex",
    "to_base64",
    "from_base64",
    "ensure_bytes",
    "uvarint_encode",
    "uvarint_decode",
    # bech32
    "Bech32Error",
    "bech32_encode_bytes",
    "bech32_decode_bytes",
    # proto
    "ProtoWriter",
    "iter_fields",
    "parse_fields",
]
