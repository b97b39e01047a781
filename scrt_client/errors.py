"""
Typed error classes for scrt-client.

These are raised by rpc/http, query/auth, tx/sign and tx/send so callers can
catch specific failure modes while still being able to catch the base
`ScrtClientError`.

None of them are retried by the pipeline itself. In particular
`ConfirmationTimeout` is a client-side give-up: the transaction may still be
committed later and should be re-queried by hash.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Optional

__all__ = [
    "ScrtClientError",
    "RpcError",
    "JsonRpcCode",
    "ProtoDecodeError",
    "AccountNotFound",
    "UnsupportedAccountKind",
    "SignerProtocolMismatch",
    "SignerAccountMissing",
    "UnrecognizedPublicKeyTag",
    "MempoolRejected",
    "ConfirmationTimeout",
    "DecryptionFailure",
    "from_jsonrpc_error",
]


class ScrtClientError(Exception):
    """Base class for all client errors."""


class JsonRpcCode(IntEnum):
    # JSON-RPC 2.0 spec
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603

    # Server errors (implementation-defined range: -32099 to -32000)
    SERVER_ERROR = -32000

    # Client-side transport failure (never sent by a node)
    TRANSPORT_ERROR = -32098


@dataclass(slots=True)
class RpcError(ScrtClientError):
    """Raised when a JSON-RPC call fails at the transport or returns an error object."""

    method: Optional[str]
    code: int
    message: str
    data: Optional[Any] = None
    http_status: Optional[int] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        parts = [f"RPC[{self.method or '-'}] code={self.code} msg={self.message!r}"]
        if self.http_status is not None:
            parts.append(f"http={self.http_status}")
        if self.data is not None:
            parts.append(f"data={self.data!r}")
        return " ".join(parts)


@dataclass(slots=True)
class ProtoDecodeError(ScrtClientError):
    """Raised when a protobuf payload returned by the node cannot be parsed."""

    message: str

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"ProtoDecodeError: {self.message}"


@dataclass(slots=True)
class AccountNotFound(ScrtClientError):
    """The signer's account does not exist on chain (usually: it was never funded)."""

    address: str

    def __str__(self) -> str:
        return f'Cannot find account "{self.address}", make sure it has a balance.'


@dataclass(slots=True)
class UnsupportedAccountKind(ScrtClientError):
    """The account exists but is not a single-key `BaseAccount`."""

    address: str
    kind: str

    def __str__(self) -> str:
        return (
            f'Cannot sign with account "{self.address}" of type "{self.kind}", '
            'can only sign with "BaseAccount".'
        )


@dataclass(slots=True)
class SignerProtocolMismatch(ScrtClientError):
    """
    The configured signer does not support the requested signing protocol.

    `expected` is "direct" or "amino".
    """

    expected: str

    def __str__(self) -> str:
        wanted = "DirectSigner" if self.expected == "direct" else "AminoSigner"
        return f"Wrong signer type! Expected {wanted}."


@dataclass(slots=True)
class SignerAccountMissing(ScrtClientError):
    """The signer does not hold a key for the configured signer address."""

    address: str

    def __str__(self) -> str:
        return f'Failed to retrieve account "{self.address}" from signer'


@dataclass(slots=True)
class UnrecognizedPublicKeyTag(ScrtClientError):
    """A public key carries a type tag that cannot be encoded to an `Any`."""

    tag: str

    def __str__(self) -> str:
        return f"Pubkey type {self.tag} not recognized"


@dataclass(slots=True)
class MempoolRejected(ScrtClientError):
    """
    The node refused the transaction in CheckTx (sync broadcast only).

    Fields mirror the node's response: ABCI `code`, its `codespace` and the
    human-readable `log`.
    """

    code: int
    codespace: str
    log: str

    def __str__(self) -> str:
        return (
            f"Broadcasting transaction failed with code {self.code} "
            f"(codespace: {self.codespace}). Log: {self.log}"
        )


@dataclass(slots=True)
class ConfirmationTimeout(ScrtClientError):
    """
    The transaction was submitted but not found on chain before the timeout.

    This is not a transaction failure; re-query `tx_hash` later.
    """

    tx_hash: str
    timeout_ms: Optional[int] = None

    def __str__(self) -> str:
        return (
            f"Transaction ID {self.tx_hash} was submitted but was not yet found "
            "on the chain. You might want to check later."
        )


@dataclass(slots=True)
class DecryptionFailure(ScrtClientError):
    """
    Raised by encryption collaborators when a ciphertext does not authenticate
    under the given nonce. The log decoder suppresses it.
    """

    message: str = "decryption failed"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"DecryptionFailure: {self.message}"


def from_jsonrpc_error(
    err_obj: Dict[str, Any],
    *,
    method: Optional[str] = None,
    http_status: Optional[int] = None,
) -> RpcError:
    """
    Convert a JSON-RPC error object into RpcError.

    `err_obj` should resemble: {"code": int, "message": str, "data": any?}
    """
    code = int(err_obj.get("code", JsonRpcCode.SERVER_ERROR))
    message = str(err_obj.get("message", "Unknown JSON-RPC error"))
    return RpcError(
        method=method,
        code=code,
        message=message,
        data=err_obj.get("data"),
        http_status=http_status,
    )
