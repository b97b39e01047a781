"""
Async Tendermint JSON-RPC client over HTTP (httpx).

- One shared `httpx.AsyncClient` per instance; safe to use from many
  concurrent pipelines.
- Retries *read-only* calls (tx_search, abci_query, status) on transient
  transport failures and 429/5xx gateway statuses. Broadcast calls are never
  retried: resubmission is the caller's decision.

Example:
    from scrt_client.rpc.http import TendermintRpc

    async with TendermintRpc("http://localhost:26657") as rpc:
        res = await rpc.broadcast_tx_sync(tx_bytes)
        print(res["hash"])
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from dataclasses import dataclass, field
from itertools import count
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

import httpx

from ..config import ClientConfig
from ..errors import JsonRpcCode, RpcError, from_jsonrpc_error
from ..utils.bytes import from_base64, to_base64, to_hex
from ..version import user_agent

log = logging.getLogger(__name__)

JSON = Union[dict, list, str, int, float, bool, None]


def _now_ms() -> int:
    return int(time.time() * 1000)


def _is_retriable_http(status: int) -> bool:
    # Typical transient HTTP statuses: 429/502/503/504
    return status in (429, 502, 503, 504)


def _jitter_backoff(base: float, factor: float, attempt: int, jitter: float) -> float:
    # Exponential backoff with jitter in [0, jitter]
    return base * (factor ** max(attempt - 1, 0)) + random.random() * jitter


class _RetriableHttpStatus(Exception):
    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"HTTP {status}: {body}")
        self.status = status


@dataclass
class TendermintRpc:
    """Asynchronous Tendermint JSON-RPC 2.0 client over HTTP."""

    url: str
    timeout: float = 10.0
    max_retries: int = 3
    backoff_base: float = 0.25
    backoff_factor: float = 2.0
    backoff_jitter: float = 0.1
    headers: Optional[Mapping[str, str]] = None
    transport: Optional[httpx.AsyncBaseTransport] = None
    _id_counter: Iterator[int] = field(default_factory=lambda: count(start=_now_ms()))
    _client: Optional[httpx.AsyncClient] = field(init=False, default=None)

    def __post_init__(self) -> None:
        merged_headers: Dict[str, str] = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": user_agent(),
        }
        if self.headers:
            merged_headers.update(dict(self.headers))
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            headers=merged_headers,
            transport=self.transport,
        )

    @classmethod
    def from_config(cls, cfg: ClientConfig, **kwargs: Any) -> "TendermintRpc":
        return cls(
            url=cfg.rpc_url,
            timeout=cfg.request_timeout,
            max_retries=cfg.max_retries,
            backoff_base=cfg.backoff_base,
            headers=cfg.http_headers(),
            **kwargs,
        )

    # --- context manager -------------------------------------------------

    async def __aenter__(self) -> "TendermintRpc":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # --- generic call ----------------------------------------------------

    async def request(
        self,
        method: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        idempotent: bool = True,
    ) -> JSON:
        """
        Perform a single JSON-RPC request and return `result` or raise RpcError.

        Non-idempotent calls get exactly one attempt.
        """
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._id_counter),
            "method": method,
            "params": dict(params or {}),
        }
        retries = self.max_retries if idempotent else 0
        last_exc: Optional[Exception] = None
        for attempt in range(1, retries + 2):  # N retries -> N+1 attempts
            try:
                return await self._send_once(method, payload)
            except RpcError:
                # Node returned an application error (or garbage): do not retry
                raise
            except (httpx.TransportError, _RetriableHttpStatus) as e:
                last_exc = e
                if attempt > retries:
                    break
                delay = _jitter_backoff(self.backoff_base, self.backoff_factor, attempt, self.backoff_jitter)
                log.debug("rpc %s attempt %d failed (%s); retrying in %.2fs", method, attempt, e, delay)
                await asyncio.sleep(delay)
        status = last_exc.status if isinstance(last_exc, _RetriableHttpStatus) else None
        raise RpcError(
            method=method,
            code=JsonRpcCode.TRANSPORT_ERROR,
            message="RPC transport failed",
            data=str(last_exc),
            http_status=status,
        )

    async def _send_once(self, method: str, payload: Dict[str, Any]) -> JSON:
        if self._client is None:
            raise RuntimeError("TendermintRpc is closed")
        r = await self._client.post(self.url, json=payload)
        if _is_retriable_http(r.status_code):
            raise _RetriableHttpStatus(r.status_code, r.text[:256])
        # Tendermint reports JSON-RPC errors with HTTP 500; keep the body visible
        try:
            resp = r.json()
        except ValueError as e:
            raise RpcError(
                method=method,
                code=JsonRpcCode.INTERNAL_ERROR,
                message="Non-JSON response from RPC",
                data=f"HTTP {r.status_code}: {r.text[:256]}",
                http_status=r.status_code,
            ) from e

        if not isinstance(resp, dict):
            raise RpcError(
                method=method,
                code=JsonRpcCode.INTERNAL_ERROR,
                message="Invalid JSON-RPC response type",
                data=type(resp).__name__,
                http_status=r.status_code,
            )
        if resp.get("error") is not None:
            raise from_jsonrpc_error(resp["error"], method=method, http_status=r.status_code)
        if "result" not in resp:
            raise RpcError(
                method=method,
                code=JsonRpcCode.INTERNAL_ERROR,
                message="Malformed JSON-RPC response",
                data=resp,
                http_status=r.status_code,
            )
        return resp["result"]

    # --- typed endpoints -------------------------------------------------

    async def broadcast_tx_sync(self, tx: bytes) -> Dict[str, Any]:
        """
        Submit and wait for CheckTx. Returns {code, codespace, log, hash}; the
        caller decides what a non-zero code means.
        """
        res = await self.request("broadcast_tx_sync", {"tx": to_base64(tx)}, idempotent=False)
        return _broadcast_result(res)

    async def broadcast_tx_async(self, tx: bytes) -> Dict[str, Any]:
        """Submit without waiting for CheckTx. Returns {hash, ...}."""
        res = await self.request("broadcast_tx_async", {"tx": to_base64(tx)}, idempotent=False)
        return _broadcast_result(res)

    async def tx_search(
        self,
        query: str,
        *,
        per_page: int = 30,
        order_by: str = "asc",
    ) -> List[Dict[str, Any]]:
        """
        Run a tx search and return every matching record across all pages.

        Each record is normalized to
        {hash, height, code, codespace, log, tx, gas_used, gas_wanted}.
        """
        out: List[Dict[str, Any]] = []
        page = 1
        while True:
            res = await self.request(
                "tx_search",
                {
                    "query": query,
                    "prove": False,
                    "page": str(page),
                    "per_page": str(per_page),
                    "order_by": order_by,
                },
            )
            if not isinstance(res, dict):
                raise RpcError(method="tx_search", code=JsonRpcCode.INTERNAL_ERROR,
                               message="unexpected tx_search payload", data=res)
            txs = res.get("txs") or []
            out.extend(_indexed_tx_record(t) for t in txs)
            total = int(res.get("total_count") or 0)
            if not txs or len(out) >= total:
                return out
            page += 1

    async def abci_query(self, path: str, data: bytes, *, prove: bool = False) -> Dict[str, Any]:
        """
        Run an ABCI query. Returns {code, log, codespace, value: bytes}.
        """
        res = await self.request(
            "abci_query",
            {"path": path, "data": to_hex(data), "prove": prove},
        )
        response = (res or {}).get("response", {}) if isinstance(res, dict) else {}
        value = response.get("value")
        return {
            "code": int(response.get("code") or 0),
            "codespace": str(response.get("codespace") or ""),
            "log": str(response.get("log") or ""),
            "value": from_base64(value) if value else b"",
        }


def _broadcast_result(res: JSON) -> Dict[str, Any]:
    if not isinstance(res, dict) or "hash" not in res:
        raise RpcError(method="broadcast_tx", code=JsonRpcCode.INTERNAL_ERROR,
                       message="unexpected broadcast payload", data=res)
    return {
        "code": int(res.get("code") or 0),
        "codespace": str(res.get("codespace") or ""),
        "log": str(res.get("log") or ""),
        "hash": str(res["hash"]).upper(),
    }


def _indexed_tx_record(t: Mapping[str, Any]) -> Dict[str, Any]:
    result = t.get("tx_result") or {}
    raw_tx = t.get("tx")
    return {
        "hash": str(t.get("hash", "")).upper(),
        "height": int(t.get("height") or 0),
        "code": int(result.get("code") or 0),
        "codespace": str(result.get("codespace") or ""),
        "log": str(result.get("log") or ""),
        "tx": from_base64(raw_tx) if raw_tx else b"",
        "gas_used": int(result.get("gas_used") or 0),
        "gas_wanted": int(result.get("gas_wanted") or 0),
    }


__all__ = ["TendermintRpc"]
