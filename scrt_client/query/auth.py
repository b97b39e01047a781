"""
Account lookup over ABCI query (`/cosmos.auth.v1beta1.Query/Account`).

Only the fields the signing pipeline needs are decoded: the account's type
URL (its "kind"), account number and sequence. Accounts other than
`BaseAccount` are reported with their kind and left undecoded.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..errors import ProtoDecodeError, RpcError
from ..rpc.http import TendermintRpc
from ..tx.encode import ProtoAny
from ..utils.proto import Writer, singular, parse_fields

log = logging.getLogger(__name__)

ACCOUNT_QUERY_PATH = "/cosmos.auth.v1beta1.Query/Account"
BASE_ACCOUNT_TYPE_URL = "/cosmos.auth.v1beta1.BaseAccount"


@dataclass(frozen=True)
class AccountInfo:
    address: str
    kind: str
    account_number: int = 0
    sequence: int = 0
    pub_key: Optional[ProtoAny] = None

    @property
    def is_base_account(self) -> bool:
        return self.kind == BASE_ACCOUNT_TYPE_URL


def _bytes_field(fields, n: int, what: str) -> bytes:
    v = singular(fields, n, b"")
    if not isinstance(v, bytes):
        raise ProtoDecodeError(f"{what}: field {n} is not length-delimited")
    return v


def _int_field(fields, n: int, what: str) -> int:
    v = singular(fields, n, 0)
    if not isinstance(v, int):
        raise ProtoDecodeError(f"{what}: field {n} is not a varint")
    return v


def decode_account_response(address: str, data: bytes) -> AccountInfo:
    """Decode a QueryAccountResponse { account = 1 (Any) }."""
    response = parse_fields(data)
    any_bytes = _bytes_field(response, 1, "QueryAccountResponse")
    env = parse_fields(any_bytes)
    type_url = _bytes_field(env, 1, "Any").decode("utf-8")
    value = _bytes_field(env, 2, "Any")

    if type_url != BASE_ACCOUNT_TYPE_URL:
        return AccountInfo(address=address, kind=type_url)

    # BaseAccount { address = 1; pub_key = 2 (Any); account_number = 3; sequence = 4 }
    acct = parse_fields(value)
    pub_key = None
    pk_bytes = _bytes_field(acct, 2, "BaseAccount")
    if pk_bytes:
        pk = parse_fields(pk_bytes)
        pub_key = ProtoAny(
            type_url=_bytes_field(pk, 1, "Any").decode("utf-8"),
            value=_bytes_field(pk, 2, "Any"),
        )
    return AccountInfo(
        address=_bytes_field(acct, 1, "BaseAccount").decode("utf-8") or address,
        kind=type_url,
        account_number=_int_field(acct, 3, "BaseAccount"),
        sequence=_int_field(acct, 4, "BaseAccount"),
        pub_key=pub_key,
    )


class AuthQuerier:
    """Read-only access to the auth module's account state."""

    def __init__(self, rpc: TendermintRpc) -> None:
        self._rpc = rpc

    async def account(self, address: str) -> Optional[AccountInfo]:
        """
        Look up an account. Returns None if the chain does not know it
        (an address that was never funded).
        """
        req = Writer().string(1, address).finish()
        res = await self._rpc.abci_query(ACCOUNT_QUERY_PATH, req)
        if res["code"] != 0:
            if "not found" in res["log"]:
                log.debug("account %s not found", address)
                return None
            raise RpcError(
                method="abci_query",
                code=res["code"],
                message=res["log"] or "account query failed",
                data={"path": ACCOUNT_QUERY_PATH, "codespace": res["codespace"]},
            )
        return decode_account_response(address, res["value"])


__all__ = [
    "ACCOUNT_QUERY_PATH",
    "BASE_ACCOUNT_TYPE_URL",
    "AccountInfo",
    "AuthQuerier",
    "decode_account_response",
]
