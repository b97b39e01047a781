"""
scrt_client.client
==================

`SecretNetworkClient`: the entry point tying the pipeline together.

    from scrt_client import ClientConfig, SecretNetworkClient, BroadcastOptions
    from scrt_client.tx.bank import MsgSend
    from scrt_client.tx.types import coins

    cfg = ClientConfig.from_env()
    async with SecretNetworkClient.from_config(
        cfg, wallet=signer, wallet_address=addr, encryption=enc
    ) as client:
        result = await client.broadcast(
            [MsgSend(from_address=addr, to_address=other, amount=coins(100, "uscrt"))],
            BroadcastOptions(gas_limit=20_000),
        )
        print(result.transaction_hash, result.code)

A client created without a wallet is read-only: `get_tx` and `txs_query`
work, signing raises.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence, Tuple

import httpx

from .config import ClientConfig
from .encryption import EncryptionUtils
from .query.auth import AuthQuerier
from .rpc.http import TendermintRpc
from .tx.build import make_fee
from .tx.encode import TxRaw
from .tx.send import BroadcastOptions, TxResult, broadcast_tx, get_tx, txs_query
from .tx.sign import NonceLedger, SignerData, TxSigner
from .tx.types import Msg, StdFee
from .wallet.signer import ReadonlySigner

log = logging.getLogger(__name__)

__all__ = ["SecretNetworkClient"]


class SecretNetworkClient:
    """
    Sign, broadcast and look up transactions on one chain.

    Args:
        rpc: transport to the node.
        chain_id: chain the client signs for.
        wallet: direct or amino signer; defaults to a `ReadonlySigner`.
        wallet_address: address to sign for.
        encryption: collaborator for contract payloads and their logs.
    """

    def __init__(
        self,
        *,
        rpc: TendermintRpc,
        chain_id: str,
        wallet: Optional[Any] = None,
        wallet_address: str = "",
        encryption: Optional[EncryptionUtils] = None,
    ) -> None:
        self.rpc = rpc
        self.chain_id = chain_id
        self.address = wallet_address
        self.encryption = encryption
        self.auth = AuthQuerier(rpc)
        self.signer = TxSigner(
            signer=wallet if wallet is not None else ReadonlySigner(),
            address=wallet_address,
            chain_id=chain_id,
            querier=self.auth,
            encryption=encryption,
        )

    @classmethod
    def from_config(
        cls,
        cfg: ClientConfig,
        *,
        wallet: Optional[Any] = None,
        wallet_address: str = "",
        encryption: Optional[EncryptionUtils] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "SecretNetworkClient":
        return cls(
            rpc=TendermintRpc.from_config(cfg, transport=transport),
            chain_id=cfg.chain_id,
            wallet=wallet,
            wallet_address=wallet_address,
            encryption=encryption,
        )

    async def __aenter__(self) -> "SecretNetworkClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.aclose()

    async def aclose(self) -> None:
        await self.rpc.aclose()

    # --- transactions ----------------------------------------------------

    async def sign(
        self,
        messages: Sequence[Msg],
        fee: StdFee,
        memo: str = "",
        signer_data: Optional[SignerData] = None,
    ) -> Tuple[TxRaw, NonceLedger]:
        """Sign `messages`. Returns the signed tx and the nonces of its encrypted messages."""
        return await self.signer.sign(messages, fee, memo, signer_data)

    async def broadcast(
        self,
        messages: Sequence[Msg],
        options: Optional[BroadcastOptions] = None,
    ) -> TxResult:
        """Compute the fee, sign, submit and (by default) wait for commit."""
        opts = options or BroadcastOptions()
        fee = make_fee(opts.gas_limit, opts.gas_price_in_fee_denom, opts.fee_denom)
        tx, nonces = await self.sign(messages, fee, opts.memo, opts.explicit_signer_data)
        log.debug("broadcasting %d message(s), %d encrypted", len(messages), len(nonces))
        return await broadcast_tx(self.rpc, tx.encode(), opts, nonces, self.encryption)

    async def get_tx(self, tx_hash: str) -> Optional[TxResult]:
        """Look a transaction up by hash. None if it is not (yet) indexed."""
        return await get_tx(self.rpc, tx_hash, None, self.encryption)

    async def txs_query(self, query: str) -> List[TxResult]:
        return await txs_query(self.rpc, query, self.encryption)
