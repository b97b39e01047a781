"""
Bech32 codec (BIP-0173), as used by Cosmos-SDK account addresses.

Compute messages carry sender and contract addresses as canonical bytes, so
the encoder needs to turn `secret1...` strings back into the 20-byte (or
32-byte, for contracts) payload.

Typical usage
-------------
>>> addr = encode_bytes("secret", bytes(20))
>>> hrp, payload = decode_bytes(addr)
>>> assert hrp == "secret" and payload == bytes(20)

Notes
-----
- Only classic Bech32 (constant 1) is accepted; Cosmos does not use Bech32m.
- Cosmos addresses may exceed the BIP-0173 90 character limit, so no length
  cap is enforced.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

__all__ = [
    "encode",
    "decode",
    "encode_bytes",
    "decode_bytes",
    "convertbits",
    "is_valid_address",
    "Bech32Error",
    "DEFAULT_HRP",
]

DEFAULT_HRP = "secret"

CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
CHARSET_REV = {c: i for i, c in enumerate(CHARSET)}

_BECH32_CONST = 1


class Bech32Error(ValueError):
    pass


def _polymod(values: Sequence[int]) -> int:
    GENERATORS = (0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3)
    chk = 1
    for v in values:
        b = chk >> 25
        chk = ((chk & 0x1FFFFFF) << 5) ^ v
        for i in range(5):
            chk ^= GENERATORS[i] if ((b >> i) & 1) else 0
    return chk


def _hrp_expand(hrp: str) -> List[int]:
    return [ord(x) >> 5 for x in hrp] + [0] + [ord(x) & 31 for x in hrp]


def _create_checksum(hrp: str, data: Sequence[int]) -> List[int]:
    values = _hrp_expand(hrp) + list(data)
    pm = _polymod(values + [0, 0, 0, 0, 0, 0]) ^ _BECH32_CONST
    return [(pm >> 5 * (5 - i)) & 31 for i in range(6)]


def _validate_hrp(hrp: str) -> None:
    if not hrp or any(not ("a" <= c <= "z" or "0" <= c <= "9") for c in hrp):
        raise Bech32Error("invalid HRP (must be lowercase alphanumeric)")


def encode(hrp: str, data5: Iterable[int]) -> str:
    """Encode 5-bit integers (0..31) to a bech32 string."""
    _validate_hrp(hrp)
    data5 = list(data5)
    if any((v < 0 or v > 31) for v in data5):
        raise Bech32Error("data5 values must be in 0..31")
    checksum = _create_checksum(hrp, data5)
    return hrp + "1" + "".join(CHARSET[d] for d in (data5 + checksum))


def decode(addr: str) -> Tuple[str, List[int]]:
    """
    Decode a bech32 string. Returns (hrp, data5).
    Raises Bech32Error on failure.
    """
    if any(ord(x) < 33 or ord(x) > 126 for x in addr):
        raise Bech32Error("invalid characters")
    if addr.lower() != addr and addr.upper() != addr:
        raise Bech32Error("mixed case not allowed")
    addr = addr.lower()
    pos = addr.rfind("1")
    if pos == -1:
        raise Bech32Error("missing separator '1'")
    hrp, rest = addr[:pos], addr[pos + 1 :]
    _validate_hrp(hrp)
    if len(rest) < 6:
        raise Bech32Error("too short data/checksum")
    try:
        data = [CHARSET_REV[c] for c in rest]
    except KeyError:
        raise Bech32Error("invalid charset") from None
    if _polymod(_hrp_expand(hrp) + data) != _BECH32_CONST:
        raise Bech32Error("invalid checksum")
    return hrp, data[:-6]


def convertbits(data: Iterable[int], from_bits: int, to_bits: int, *, pad: bool = True) -> List[int]:
    """
    General power-of-two base conversion (e.g., 8→5 or 5→8).
    Returns list of integers in the target base.
    """
    acc = 0
    bits = 0
    ret: List[int] = []
    maxv = (1 << to_bits) - 1
    max_acc = (1 << (from_bits + to_bits - 1)) - 1
    for value in data:
        if value < 0 or value >> from_bits:
            raise Bech32Error("invalid value for convertbits")
        acc = ((acc << from_bits) | value) & max_acc
        bits += from_bits
        while bits >= to_bits:
            bits -= to_bits
            ret.append((acc >> bits) & maxv)
    if pad:
        if bits:
            ret.append((acc << (to_bits - bits)) & maxv)
    elif bits >= from_bits or ((acc << (to_bits - bits)) & maxv):
        raise Bech32Error("non-zero padding")
    return ret


def encode_bytes(hrp: str, payload: bytes) -> str:
    """8-bit payload → bech32 string via 8→5 conversion."""
    return encode(hrp, convertbits(payload, 8, 5, pad=True))


def decode_bytes(addr: str, *, expected_hrp: Optional[str] = None) -> Tuple[str, bytes]:
    """
    Decode an address to (hrp, canonical bytes). Validates checksum and
    (optionally) HRP.
    """
    hrp, data5 = decode(addr)
    if expected_hrp is not None and hrp != expected_hrp:
        raise Bech32Error(f"HRP mismatch: expected {expected_hrp}, got {hrp}")
    return hrp, bytes(convertbits(data5, 5, 8, pad=False))


def is_valid_address(addr: str, expected_hrp: Optional[str] = None) -> bool:
    try:
        decode_bytes(addr, expected_hrp=expected_hrp)
        return True
    except Bech32Error:
        return False
