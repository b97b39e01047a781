"""
scrt_client.tx.compute
======================

Secret compute messages: instantiate and execute a contract.

These are the confidentiality-bearing variants. Their JSON payload is
prefixed with the contract's code hash and encrypted through the encryption
collaborator before it leaves the client:

    plaintext  = code_hash_hex + json(msg)
    ciphertext = encryption.encrypt(plaintext)     # ciphertext[:32] is the nonce

Both renderings (`to_proto` and `to_amino`) derive their payload from the same
`encrypt` call on the collaborator they are given. The signer hands both calls
a per-message `MessageEncryptionScope`, so within one signing attempt the amino
sign document and the broadcast body carry the same ciphertext.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence

from ..encryption import EncryptionUtils
from ..utils.bech32 import decode_bytes
from ..utils.bytes import to_base64
from ..utils.proto import Writer
from .types import AminoMsg, Coin, ProtoMsg, encode_coin

__all__ = [
    "MsgInstantiateContract",
    "MsgExecuteContract",
    "TYPE_URL_INSTANTIATE",
    "TYPE_URL_EXECUTE",
]

TYPE_URL_INSTANTIATE = "/secret.compute.v1beta1.MsgInstantiateContract"
TYPE_URL_EXECUTE = "/secret.compute.v1beta1.MsgExecuteContract"


def _normalize_code_hash(code_hash: str) -> str:
    h = code_hash.strip().lower()
    if h.startswith("0x"):
        h = h[2:]
    return h


def _canonical_address(addr: str) -> bytes:
    _hrp, payload = decode_bytes(addr)
    return payload


async def _encrypt_msg(
    encryption: Optional[EncryptionUtils], code_hash: str, msg: Dict[str, Any]
) -> bytes:
    if encryption is None:
        raise ValueError("compute messages require an encryption collaborator")
    plaintext = (_normalize_code_hash(code_hash) + json.dumps(msg, separators=(",", ":"))).encode("utf-8")
    return bytes(await encryption.encrypt(plaintext))


@dataclass(frozen=True)
class MsgInstantiateContract:
    sender: str
    code_id: int
    label: str
    init_msg: Dict[str, Any]
    code_hash: str
    init_funds: Sequence[Coin] = field(default_factory=tuple)

    async def to_proto(self, encryption: Optional[EncryptionUtils] = None) -> ProtoMsg:
        encrypted = await _encrypt_msg(encryption, self.code_hash, self.init_msg)
        value = {
            "sender": _canonical_address(self.sender),
            "callback_code_hash": "",
            "code_id": int(self.code_id),
            "label": self.label,
            "init_msg": encrypted,
            "init_funds": list(self.init_funds),
            "callback_sig": b"",
        }

        def encode() -> bytes:
            # secret.compute.v1beta1.MsgInstantiateContract
            return (
                Writer()
                .bytes(1, value["sender"])
                .string(2, value["callback_code_hash"])
                .uint(3, value["code_id"])
                .string(4, value["label"])
                .bytes(5, value["init_msg"])
                .repeated_messages(6, (encode_coin(c) for c in value["init_funds"]))
                .bytes(7, value["callback_sig"])
                .finish()
            )

        return ProtoMsg(
            type_url=TYPE_URL_INSTANTIATE,
            value=value,
            encode=encode,
            encrypted_payload=encrypted,
        )

    async def to_amino(self, encryption: Optional[EncryptionUtils] = None) -> AminoMsg:
        encrypted = await _encrypt_msg(encryption, self.code_hash, self.init_msg)
        return AminoMsg(
            type="wasm/MsgInstantiateContract",
            value={
                "sender": self.sender,
                "code_id": str(self.code_id),
                "label": self.label,
                "init_msg": to_base64(encrypted),
                "init_funds": [c.to_dict() for c in self.init_funds],
            },
        )


@dataclass(frozen=True)
class MsgExecuteContract:
    sender: str
    contract: str
    msg: Dict[str, Any]
    code_hash: str
    sent_funds: Sequence[Coin] = field(default_factory=tuple)

    async def to_proto(self, encryption: Optional[EncryptionUtils] = None) -> ProtoMsg:
        encrypted = await _encrypt_msg(encryption, self.code_hash, self.msg)
        value = {
            "sender": _canonical_address(self.sender),
            "contract": _canonical_address(self.contract),
            "msg": encrypted,
            "callback_code_hash": "",
            "sent_funds": list(self.sent_funds),
            "callback_sig": b"",
        }

        def encode() -> bytes:
            # secret.compute.v1beta1.MsgExecuteContract
            return (
                Writer()
                .bytes(1, value["sender"])
                .bytes(2, value["contract"])
                .bytes(3, value["msg"])
                .string(4, value["callback_code_hash"])
                .repeated_messages(5, (encode_coin(c) for c in value["sent_funds"]))
                .bytes(6, value["callback_sig"])
                .finish()
            )

        return ProtoMsg(
            type_url=TYPE_URL_EXECUTE,
            value=value,
            encode=encode,
            encrypted_payload=encrypted,
        )

    async def to_amino(self, encryption: Optional[EncryptionUtils] = None) -> AminoMsg:
        encrypted = await _encrypt_msg(encryption, self.code_hash, self.msg)
        return AminoMsg(
            type="wasm/MsgExecuteContract",
            value={
                "sender": self.sender,
                "contract": self.contract,
                "msg": to_base64(encrypted),
                "sent_funds": [c.to_dict() for c in self.sent_funds],
            },
        )
