"""
scrt_client.tx.types
====================

The Message Contract and the value types shared by message variants.

Every transaction item implements `Msg`:

- `to_proto(encryption)` renders the chain-encoded form (`ProtoMsg`): a type
  URL, the structured payload, and a deferred `encode()` that serializes the
  payload only when the transaction body is assembled.
- `to_amino(encryption)` renders the JSON form (`AminoMsg`) signed by legacy
  amino signers.

Confidentiality-bearing variants set `ProtoMsg.encrypted_payload`; the signer
reads the nonce from it without knowing the concrete message type.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence, Union, runtime_checkable

from ..encryption import EncryptionUtils
from ..utils.proto import Writer

__all__ = [
    "Coin",
    "coins",
    "encode_coin",
    "StdFee",
    "ProtoMsg",
    "AminoMsg",
    "Msg",
]


@dataclass(frozen=True)
class Coin:
    """An amount of one denom. `amount` is a decimal string, as on chain."""

    denom: str
    amount: str

    def __post_init__(self) -> None:
        amount = str(self.amount)
        if not amount.isdigit():
            raise ValueError(f"coin amount must be a non-negative integer, got {self.amount!r}")
        object.__setattr__(self, "amount", amount)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Coin":
        return cls(denom=str(d["denom"]), amount=str(d["amount"]))

    def to_dict(self) -> Dict[str, str]:
        return {"amount": self.amount, "denom": self.denom}


def coins(amount: Union[int, str], denom: str) -> List[Coin]:
    """Shorthand for a single-coin list, e.g. `coins(100, "uscrt")`."""
    return [Coin(denom=denom, amount=str(amount))]


def encode_coin(c: Coin) -> bytes:
    # cosmos.base.v1beta1.Coin { denom = 1; amount = 2 }
    return Writer().string(1, c.denom).string(2, c.amount).finish()


@dataclass(frozen=True)
class StdFee:
    """Fee in the amino JSON shape: amounts plus the gas limit as a string."""

    amount: Sequence[Coin]
    gas: str

    @property
    def gas_limit(self) -> int:
        return int(self.gas)

    @classmethod
    def from_amino(cls, d: Mapping[str, Any]) -> "StdFee":
        return cls(amount=tuple(Coin.from_dict(c) for c in d.get("amount", [])), gas=str(d["gas"]))

    def to_amino(self) -> Dict[str, Any]:
        return {"amount": [c.to_dict() for c in self.amount], "gas": str(self.gas)}


@dataclass
class ProtoMsg:
    """
    Chain-encoded form of a message.

    `encode` is called once, when the TxBody is built, so the payload in
    `value` may still be rewritten (e.g. encrypted) up to that point.
    """

    type_url: str
    value: Dict[str, Any]
    encode: Callable[[], bytes]
    encrypted_payload: Optional[bytes] = field(default=None)


@dataclass(frozen=True)
class AminoMsg:
    type: str
    value: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "value": self.value}


@runtime_checkable
class Msg(Protocol):
    async def to_proto(self, encryption: Optional[EncryptionUtils] = None) -> ProtoMsg: ...

    async def to_amino(self, encryption: Optional[EncryptionUtils] = None) -> AminoMsg: ...
