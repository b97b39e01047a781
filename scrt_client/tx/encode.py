"""
scrt_client.tx.encode
=====================

Deterministic protobuf encoding of Cosmos-SDK transactions, plus the legacy
amino JSON sign document.

This module provides:
- `encode_any(type_url, value)` / `ProtoAny` → google.protobuf.Any envelopes
- `encode_tx_body(messages, memo)` → TxBody bytes
- `encode_pubkey(pubkey)` → Any for a secp256k1 or multisig-threshold key
- `make_auth_info_bytes(pubkey, fee, sequence, sign_mode)` → AuthInfo bytes
- `SignDoc` → direct-mode sign document (and its sign bytes)
- `make_sign_doc_amino(...)` / `serialize_sign_doc_amino(doc)` → legacy sign bytes
- `TxRaw` → wire envelope {body_bytes, auth_info_bytes, signatures}
- `tx_hash(raw)` → upper-case hex sha256, the hash Tendermint indexes by

Design notes
------------
* Field numbers follow cosmos-sdk v0.45 (`cosmos.tx.v1beta1`). Encoders emit
  fields in ascending order and omit proto3 defaults, so equal inputs always
  produce equal bytes.
* Public keys travel in their amino JSON shape between the signer and the
  encoder: {"type": <tag>, "value": ...}. Multisig keys nest that shape.
* The amino sign document is JSON with sorted keys, no whitespace, and
  `&`, `<`, `>` escaped as \\u0026, \\u003c, \\u003e.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Mapping, Sequence, Union

from ..errors import ProtoDecodeError, UnrecognizedPublicKeyTag
from ..utils.bytes import BytesLike, from_base64, to_base64, to_hex
from ..utils.proto import Writer, singular, parse_fields
from .types import AminoMsg, ProtoMsg, StdFee, encode_coin

PUBKEY_TYPE_SECP256K1 = "tendermint/PubKeySecp256k1"
PUBKEY_TYPE_MULTISIG_THRESHOLD = "tendermint/PubKeyMultisigThreshold"

TYPE_URL_SECP256K1 = "/cosmos.crypto.secp256k1.PubKey"
TYPE_URL_MULTISIG = "/cosmos.crypto.multisig.LegacyAminoPubKey"

PubKeyDict = Dict[str, Any]


class SignMode(IntEnum):
    """cosmos.tx.signing.v1beta1.SignMode (subset)."""

    UNSPECIFIED = 0
    DIRECT = 1
    LEGACY_AMINO_JSON = 127


# -----------------------------------------------------------------------------
# Any / TxBody
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class ProtoAny:
    type_url: str
    value: bytes

    def encode(self) -> bytes:
        return encode_any(self.type_url, self.value)


def encode_any(type_url: str, value: BytesLike) -> bytes:
    # google.protobuf.Any { type_url = 1; value = 2 }
    return Writer().string(1, type_url).bytes(2, value).finish()


def to_any(msg: Union[ProtoMsg, ProtoAny]) -> ProtoAny:
    """Finalize a chain-encoded message into its Any envelope."""
    if isinstance(msg, ProtoAny):
        return msg
    return ProtoAny(type_url=msg.type_url, value=msg.encode())


def encode_tx_body(messages: Sequence[Union[ProtoMsg, ProtoAny]], memo: str = "") -> bytes:
    """
    Encode a cosmos.tx.v1beta1.TxBody { messages = 1; memo = 2 }.

    `ProtoMsg.encode()` is invoked here, once per message.
    """
    return (
        Writer()
        .repeated_messages(1, (to_any(m).encode() for m in messages))
        .string(2, memo)
        .finish()
    )


# -----------------------------------------------------------------------------
# Public keys
# -----------------------------------------------------------------------------


def encode_secp256k1_pubkey(pubkey: BytesLike) -> PubKeyDict:
    """Wrap a 33-byte compressed secp256k1 key in its amino JSON shape."""
    raw = bytes(pubkey)
    if len(raw) != 33 or raw[0] not in (0x02, 0x03):
        raise ValueError("public key must be a 33-byte compressed secp256k1 key")
    return {"type": PUBKEY_TYPE_SECP256K1, "value": to_base64(raw)}


def encode_pubkey(pubkey: Mapping[str, Any]) -> ProtoAny:
    """
    Encode an amino-shaped public key into a protobuf Any.

    Supports single secp256k1 keys and multisig-threshold keys; members of a
    multisig key are encoded recursively.

    Raises:
        UnrecognizedPublicKeyTag: for any other `type` tag.
    """
    tag = str(pubkey.get("type", ""))
    if tag == PUBKEY_TYPE_SECP256K1:
        key = from_base64(str(pubkey["value"]))
        # cosmos.crypto.secp256k1.PubKey { key = 1 }
        return ProtoAny(TYPE_URL_SECP256K1, Writer().bytes(1, key).finish())
    if tag == PUBKEY_TYPE_MULTISIG_THRESHOLD:
        value = pubkey["value"]
        members = [encode_pubkey(pk).encode() for pk in value["pubkeys"]]
        # cosmos.crypto.multisig.LegacyAminoPubKey { threshold = 1; public_keys = 2 }
        encoded = (
            Writer()
            .uint(1, int(value["threshold"]))
            .repeated_messages(2, members)
            .finish()
        )
        return ProtoAny(TYPE_URL_MULTISIG, encoded)
    raise UnrecognizedPublicKeyTag(tag=tag)


# -----------------------------------------------------------------------------
# AuthInfo
# -----------------------------------------------------------------------------


def encode_fee(fee: StdFee) -> bytes:
    # cosmos.tx.v1beta1.Fee { amount = 1; gas_limit = 2; payer = 3; granter = 4 }
    return (
        Writer()
        .repeated_messages(1, (encode_coin(c) for c in fee.amount))
        .uint(2, fee.gas_limit)
        .finish()
    )


def make_auth_info_bytes(
    pubkey: ProtoAny,
    fee: StdFee,
    sequence: int,
    sign_mode: SignMode = SignMode.DIRECT,
) -> bytes:
    """
    Encode an AuthInfo with a single signer:

        AuthInfo   { signer_infos = 1; fee = 2 }
        SignerInfo { public_key = 1; mode_info = 2; sequence = 3 }
        ModeInfo   { single = 1 { mode = 1 } }
    """
    single = Writer().uint(1, int(sign_mode)).finish()
    mode_info = Writer().message(1, single).finish()
    signer_info = (
        Writer()
        .message(1, pubkey.encode())
        .message(2, mode_info)
        .uint(3, int(sequence))
        .finish()
    )
    return Writer().message(1, signer_info).message(2, encode_fee(fee)).finish()


# -----------------------------------------------------------------------------
# Direct sign document
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class SignDoc:
    """cosmos.tx.v1beta1.SignDoc: the bytes a direct signer signs."""

    body_bytes: bytes
    auth_info_bytes: bytes
    chain_id: str
    account_number: int

    def encode(self) -> bytes:
        return (
            Writer()
            .bytes(1, self.body_bytes)
            .bytes(2, self.auth_info_bytes)
            .string(3, self.chain_id)
            .uint(4, int(self.account_number))
            .finish()
        )


# -----------------------------------------------------------------------------
# Legacy amino JSON sign document
# -----------------------------------------------------------------------------


def make_sign_doc_amino(
    msgs: Sequence[Union[AminoMsg, Mapping[str, Any]]],
    fee: StdFee,
    chain_id: str,
    memo: str,
    account_number: int,
    sequence: int,
) -> Dict[str, Any]:
    """Build a StdSignDoc. Numbers are strings, as amino JSON requires."""
    return {
        "chain_id": chain_id,
        "account_number": str(int(account_number)),
        "sequence": str(int(sequence)),
        "fee": fee.to_amino(),
        "msgs": [m.to_dict() if isinstance(m, AminoMsg) else dict(m) for m in msgs],
        "memo": memo,
    }


def _escape_amino_json(s: str) -> str:
    return s.replace("&", "\\u0026").replace("<", "\\u003c").replace(">", "\\u003e")


def serialize_sign_doc_amino(doc: Mapping[str, Any]) -> bytes:
    """Canonical sign bytes of a StdSignDoc: sorted keys, compact, escaped."""
    s = json.dumps(doc, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return _escape_amino_json(s).encode("utf-8")


# -----------------------------------------------------------------------------
# Signed envelope (wire format)
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class TxRaw:
    """cosmos.tx.v1beta1.TxRaw. This pipeline always carries exactly one signature."""

    body_bytes: bytes
    auth_info_bytes: bytes
    signatures: List[bytes] = field(default_factory=list)

    def encode(self) -> bytes:
        return (
            Writer()
            .bytes(1, self.body_bytes)
            .bytes(2, self.auth_info_bytes)
            .repeated_bytes(3, self.signatures)
            .finish()
        )

    @classmethod
    def decode(cls, raw: BytesLike) -> "TxRaw":
        fields = parse_fields(raw)
        body = singular(fields, 1, b"")
        auth = singular(fields, 2, b"")
        sigs = fields.get(3, [])
        if not isinstance(body, bytes) or not isinstance(auth, bytes) or not all(isinstance(s, bytes) for s in sigs):
            raise ProtoDecodeError("TxRaw: unexpected wire type")
        return cls(body_bytes=body, auth_info_bytes=auth, signatures=list(sigs))


def tx_hash(raw: BytesLike) -> str:
    """Upper-case hex sha256 of the encoded TxRaw."""
    return to_hex(hashlib.sha256(bytes(raw)).digest(), upper=True)


__all__ = [
    "SignMode",
    "PUBKEY_TYPE_SECP256K1",
    "PUBKEY_TYPE_MULTISIG_THRESHOLD",
    "TYPE_URL_SECP256K1",
    "TYPE_URL_MULTISIG",
    "ProtoAny",
    "encode_any",
    "to_any",
    "encode_tx_body",
    "encode_secp256k1_pubkey",
    "encode_pubkey",
    "encode_fee",
    "make_auth_info_bytes",
    "SignDoc",
    "make_sign_doc_amino",
    "serialize_sign_doc_amino",
    "TxRaw",
    "tx_hash",
]
