"""
scrt_client.tx.send
===================

Submit signed transactions to a Tendermint node and wait for them to commit.

Primary entry points
--------------------
- broadcast_tx(rpc, tx_bytes, options, nonces, encryption) -> TxResult
    Submits in the configured mode, then (optionally) polls the tx index
    until the transaction is found or the timeout elapses.

- get_tx(rpc, tx_hash, nonces=None, encryption=None) -> TxResult | None
    Looks a transaction up by hash; decodes its logs when it succeeded.

- txs_query(rpc, query) -> list[TxResult]
    Runs an arbitrary tx search (e.g. "message.sender='secret1...'").

State machine
-------------
    Unsent -> Submitted -> Confirmed | TimedOut
    Submitted -> Rejected              (sync mode only, CheckTx code != 0)

Polling is read-only: it never resubmits. `ConfirmationTimeout` means the
client gave up waiting, not that the transaction failed; it may still commit,
so re-query with the hash it carries. A resubmission needs a fresh signing
attempt (new sequence, new nonces).
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Protocol

from ..encryption import EncryptionUtils
from ..errors import ConfirmationTimeout, MempoolRejected, ProtoDecodeError
from .build import DEFAULT_FEE_DENOM
from .encode import TxRaw
from .logs import ArrayLogEntry, JsonLog, decode_logs

log = logging.getLogger(__name__)

DEFAULT_BROADCAST_TIMEOUT_MS = 60_000
DEFAULT_BROADCAST_CHECK_INTERVAL_MS = 6_000

__all__ = [
    "BroadcastMode",
    "BroadcastOptions",
    "TxResult",
    "IndexedTx",
    "broadcast_tx",
    "get_tx",
    "txs_query",
    "DEFAULT_BROADCAST_TIMEOUT_MS",
    "DEFAULT_BROADCAST_CHECK_INTERVAL_MS",
]


class _TxRpc(Protocol):
    """Subset of `scrt_client.rpc.http.TendermintRpc` used here."""

    async def broadcast_tx_sync(self, tx: bytes) -> Dict[str, Any]: ...

    async def broadcast_tx_async(self, tx: bytes) -> Dict[str, Any]: ...

    async def tx_search(self, query: str, *, per_page: int = 30, order_by: str = "asc") -> List[Dict[str, Any]]: ...


class BroadcastMode(str, Enum):
    SYNC = "sync"
    ASYNC = "async"


@dataclass(frozen=True)
class BroadcastOptions:
    """
    Per-call options for `SecretNetworkClient.broadcast`.

    The fee is `gas_to_fee(gas_limit, gas_price_in_fee_denom)` in `fee_denom`.
    """

    gas_limit: int = 25_000
    gas_price_in_fee_denom: float = 0.25
    fee_denom: str = DEFAULT_FEE_DENOM
    memo: str = ""
    wait_for_commit: bool = True
    broadcast_timeout_ms: int = DEFAULT_BROADCAST_TIMEOUT_MS
    broadcast_check_interval_ms: int = DEFAULT_BROADCAST_CHECK_INTERVAL_MS
    broadcast_mode: BroadcastMode = BroadcastMode.SYNC
    explicit_signer_data: Optional[Any] = None  # scrt_client.tx.sign.SignerData

    def __post_init__(self) -> None:
        if self.broadcast_timeout_ms < 0:
            raise ValueError("broadcast_timeout_ms must be >= 0")
        if self.broadcast_check_interval_ms <= 0:
            raise ValueError("broadcast_check_interval_ms must be > 0")


@dataclass(frozen=True)
class IndexedTx:
    """One record of the node's tx index."""

    height: int
    hash: str
    code: int
    codespace: str
    raw_log: str
    tx: bytes
    gas_used: int
    gas_wanted: int

    @classmethod
    def from_record(cls, rec: Mapping[str, Any]) -> "IndexedTx":
        return cls(
            height=int(rec["height"]),
            hash=str(rec["hash"]).upper(),
            code=int(rec["code"]),
            codespace=str(rec.get("codespace", "")),
            raw_log=str(rec.get("log", "")),
            tx=bytes(rec.get("tx", b"")),
            gas_used=int(rec.get("gas_used", 0)),
            gas_wanted=int(rec.get("gas_wanted", 0)),
        )


@dataclass
class TxResult:
    """
    Outcome of a broadcast or lookup.

    A submission-only result carries just `transaction_hash`. A confirmed
    result carries the rest; `json_log` and `array_log` are set only when
    `code == 0`.
    """

    transaction_hash: str
    height: Optional[int] = None
    code: Optional[int] = None
    codespace: str = ""
    raw_log: str = ""
    json_log: Optional[JsonLog] = None
    array_log: Optional[List[ArrayLogEntry]] = None
    gas_used: Optional[int] = None
    gas_wanted: Optional[int] = None
    tx: Optional[TxRaw] = field(default=None, repr=False)

    @property
    def confirmed(self) -> bool:
        return self.height is not None

    @property
    def ok(self) -> bool:
        return self.code == 0

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly view (the decoded tx is left out)."""
        return {
            "transaction_hash": self.transaction_hash,
            "height": self.height,
            "code": self.code,
            "codespace": self.codespace,
            "raw_log": self.raw_log,
            "json_log": self.json_log,
            "array_log": None if self.array_log is None else [e.to_dict() for e in self.array_log],
            "gas_used": self.gas_used,
            "gas_wanted": self.gas_wanted,
        }


async def _to_result(
    indexed: IndexedTx,
    nonces: Mapping[int, bytes],
    encryption: Optional[EncryptionUtils],
) -> TxResult:
    json_log: Optional[JsonLog] = None
    array_log: Optional[List[ArrayLogEntry]] = None
    if indexed.code == 0:
        json_log, array_log = await decode_logs(indexed.raw_log, nonces, encryption)
    tx: Optional[TxRaw] = None
    if indexed.tx:
        try:
            tx = TxRaw.decode(indexed.tx)
        except ProtoDecodeError as e:
            log.warning("tx %s: indexed bytes are not a TxRaw: %s", indexed.hash, e)
    return TxResult(
        transaction_hash=indexed.hash,
        height=indexed.height,
        code=indexed.code,
        codespace=indexed.codespace,
        raw_log=indexed.raw_log,
        json_log=json_log,
        array_log=array_log,
        gas_used=indexed.gas_used,
        gas_wanted=indexed.gas_wanted,
        tx=tx,
    )


async def get_tx(
    rpc: _TxRpc,
    tx_hash: str,
    nonces: Optional[Mapping[int, bytes]] = None,
    encryption: Optional[EncryptionUtils] = None,
) -> Optional[TxResult]:
    """Look a transaction up by hash. Returns None while it is not indexed."""
    records = await rpc.tx_search(f"tx.hash='{tx_hash.upper()}'")
    if not records:
        return None
    return await _to_result(IndexedTx.from_record(records[0]), nonces or {}, encryption)


async def txs_query(
    rpc: _TxRpc,
    query: str,
    encryption: Optional[EncryptionUtils] = None,
) -> List[TxResult]:
    """
    Run a tx search. No nonces are known for these transactions, so contract
    attributes are returned as the node reported them.
    """
    records = await rpc.tx_search(query)
    return [await _to_result(IndexedTx.from_record(r), {}, encryption) for r in records]


async def broadcast_tx(
    rpc: _TxRpc,
    tx_bytes: bytes,
    options: BroadcastOptions,
    nonces: Mapping[int, bytes],
    encryption: Optional[EncryptionUtils] = None,
) -> TxResult:
    """
    Submit `tx_bytes` and, if `options.wait_for_commit`, wait for it to commit.

    Raises:
        MempoolRejected: sync mode and CheckTx returned a non-zero code.
        ConfirmationTimeout: not indexed within `options.broadcast_timeout_ms`
            of submission start.
        RpcError: transport / JSON-RPC failures.
    """
    start = time.monotonic()

    if options.broadcast_mode == BroadcastMode.SYNC:
        res = await rpc.broadcast_tx_sync(tx_bytes)
        if res["code"] != 0:
            log.info("tx rejected by CheckTx: code=%s codespace=%s", res["code"], res["codespace"])
            raise MempoolRejected(code=res["code"], codespace=res["codespace"], log=res["log"])
    else:
        res = await rpc.broadcast_tx_async(tx_bytes)

    tx_hash = str(res["hash"]).upper()
    log.info("tx %s submitted (%s)", tx_hash, options.broadcast_mode.value)

    if not options.wait_for_commit:
        return TxResult(transaction_hash=tx_hash)

    deadline = start + options.broadcast_timeout_ms / 1000.0
    interval = options.broadcast_check_interval_ms / 1000.0
    attempt = 0
    while True:
        attempt += 1
        log.debug("polling for tx %s (attempt %d)", tx_hash, attempt)
        result = await get_tx(rpc, tx_hash, nonces, encryption)
        if result is not None:
            log.info("tx %s committed at height %s with code %s", tx_hash, result.height, result.code)
            return result

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise ConfirmationTimeout(tx_hash=tx_hash, timeout_ms=options.broadcast_timeout_ms)
        await asyncio.sleep(min(interval, remaining))
