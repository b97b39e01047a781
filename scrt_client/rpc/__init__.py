"""
scrt_client.rpc
---------------

Transport to a Tendermint node.

    from scrt_client.rpc import TendermintRpc
    rpc = TendermintRpc(url="http://localhost:26657")
"""

from __future__ import annotations

from .http import TendermintRpc

__all__ = ["TendermintRpc"]
