"""
Client configuration: RPC endpoint, chain id, and retry/timeouts.

- Loads sane defaults and supports overrides via environment variables (SCRT_*).
- Provides helpers for building HTTP headers and validating endpoints.

Broadcast behaviour (timeouts, poll interval, broadcast mode) is configured per
call through `scrt_client.tx.send.BroadcastOptions`, not here.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .version import user_agent as _default_user_agent

_DEFAULT_RPC = "http://127.0.0.1:26657"
_DEFAULT_CHAIN_ID = "secret-4"


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name)
    return v if v is not None else default


def _ensure_scheme(url: Optional[str], allowed: tuple[str, ...]) -> Optional[str]:
    if not url:
        return url
    lower = url.lower()
    if not any(lower.startswith(f"{sch}://") for sch in allowed):
        raise ValueError(f"URL must start with {allowed}, got: {url!r}")
    return url


@dataclass(slots=True)
class ClientConfig:
    # Core
    rpc_url: str = field(default_factory=lambda: _DEFAULT_RPC)
    chain_id: str = field(default_factory=lambda: _DEFAULT_CHAIN_ID)
    # HTTP behavior
    request_timeout: float = 10.0
    max_retries: int = 3
    backoff_base: float = 0.25
    # Headers / identity
    user_agent: str = field(default_factory=_default_user_agent)

    @classmethod
    def from_env(cls, prefix: str = "SCRT_") -> "ClientConfig":
        """
        Create config from environment variables:

        SCRT_RPC_URL            (http/https Tendermint RPC)
        SCRT_CHAIN_ID           (str, e.g. "secret-4")
        SCRT_TIMEOUT            (float seconds, HTTP)
        SCRT_MAX_RETRIES        (int, read-only calls only)
        SCRT_BACKOFF            (float seconds, first retry delay)
        SCRT_USER_AGENT         (str)
        """
        rpc = _env(f"{prefix}RPC_URL", _DEFAULT_RPC)
        chain_id = _env(f"{prefix}CHAIN_ID", _DEFAULT_CHAIN_ID)
        timeout = float(_env(f"{prefix}TIMEOUT", "10.0"))
        retries = int(_env(f"{prefix}MAX_RETRIES", "3"))
        backoff = float(_env(f"{prefix}BACKOFF", "0.25"))
        ua = _env(f"{prefix}USER_AGENT", _default_user_agent())

        _ensure_scheme(rpc, ("http", "https"))

        return cls(
            rpc_url=rpc or _DEFAULT_RPC,
            chain_id=chain_id or _DEFAULT_CHAIN_ID,
            request_timeout=timeout,
            max_retries=retries,
            backoff_base=backoff,
            user_agent=ua or _default_user_agent(),
        )

    @classmethod
    def with_overrides(
        cls, base: Optional["ClientConfig"] = None, **overrides: Any
    ) -> "ClientConfig":
        """
        Build from an existing config plus keyword overrides.
        Unknown keys are ignored.
        """
        base = base or cls.from_env()
        data = base.to_dict()
        data.update({k: v for k, v in overrides.items() if k in data})
        if "rpc_url" in overrides:
            _ensure_scheme(data["rpc_url"], ("http", "https"))
        return cls(**data)

    def http_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": self.user_agent,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rpc_url": self.rpc_url,
            "chain_id": str(self.chain_id),
            "request_timeout": float(self.request_timeout),
            "max_retries": int(self.max_retries),
            "backoff_base": float(self.backoff_base),
            "user_agent": self.user_agent,
        }


__all__ = ["ClientConfig"]
