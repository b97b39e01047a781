"""
Bank module messages: MsgSend and MsgMultiSend.

Neither carries a confidential payload, so they never produce a nonce.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from ..encryption import EncryptionUtils
from ..utils.proto import Writer
from .types import AminoMsg, Coin, ProtoMsg, encode_coin

__all__ = ["MsgSend", "MsgMultiSend", "Input", "Output"]


@dataclass(frozen=True)
class MsgSend:
    from_address: str
    to_address: str
    amount: Sequence[Coin] = field(default_factory=tuple)

    async def to_proto(self, encryption: Optional[EncryptionUtils] = None) -> ProtoMsg:
        value = {
            "from_address": self.from_address,
            "to_address": self.to_address,
            "amount": list(self.amount),
        }

        def encode() -> bytes:
            # cosmos.bank.v1beta1.MsgSend
            return (
                Writer()
                .string(1, value["from_address"])
                .string(2, value["to_address"])
                .repeated_messages(3, (encode_coin(c) for c in value["amount"]))
                .finish()
            )

        return ProtoMsg(type_url="/cosmos.bank.v1beta1.MsgSend", value=value, encode=encode)

    async def to_amino(self, encryption: Optional[EncryptionUtils] = None) -> AminoMsg:
        return AminoMsg(
            type="cosmos-sdk/MsgSend",
            value={
                "from_address": self.from_address,
                "to_address": self.to_address,
                "amount": [c.to_dict() for c in self.amount],
            },
        )


@dataclass(frozen=True)
class Input:
    address: str
    coins: Sequence[Coin]

    def encode(self) -> bytes:
        return (
            Writer()
            .string(1, self.address)
            .repeated_messages(2, (encode_coin(c) for c in self.coins))
            .finish()
        )

    def to_dict(self) -> dict:
        return {"address": self.address, "coins": [c.to_dict() for c in self.coins]}


@dataclass(frozen=True)
class Output(Input):
    pass


@dataclass(frozen=True)
class MsgMultiSend:
    inputs: Sequence[Input]
    outputs: Sequence[Output]

    async def to_proto(self, encryption: Optional[EncryptionUtils] = None) -> ProtoMsg:
        value = {"inputs": list(self.inputs), "outputs": list(self.outputs)}

        def encode() -> bytes:
            # cosmos.bank.v1beta1.MsgMultiSend
            return (
                Writer()
                .repeated_messages(1, (i.encode() for i in value["inputs"]))
                .repeated_messages(2, (o.encode() for o in value["outputs"]))
                .finish()
            )

        return ProtoMsg(type_url="/cosmos.bank.v1beta1.MsgMultiSend", value=value, encode=encode)

    async def to_amino(self, encryption: Optional[EncryptionUtils] = None) -> AminoMsg:
        return AminoMsg(
            type="cosmos-sdk/MsgMultiSend",
            value={
                "inputs": [i.to_dict() for i in self.inputs],
                "outputs": [o.to_dict() for o in self.outputs],
            },
        )
