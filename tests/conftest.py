"""
Shared pytest fixtures: anyio backend, fake collaborators, and a client wired
to them.
"""
from __future__ import annotations

import pytest

from scrt_client.client import SecretNetworkClient
from scrt_client.query.auth import AuthQuerier
from scrt_client.tx.sign import TxSigner

from tests import CHAIN_ID, SENDER, FakeDirectSigner, FakeEncryption, FakeRpc


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def encryption() -> FakeEncryption:
    return FakeEncryption()


@pytest.fixture
def rpc() -> FakeRpc:
    return FakeRpc()


@pytest.fixture
def direct_signer() -> FakeDirectSigner:
    return FakeDirectSigner()


@pytest.fixture
def make_tx_signer(rpc: FakeRpc, encryption: FakeEncryption):
    """Build a TxSigner over the fake node for any signer."""

    def _make(signer, *, node: FakeRpc | None = None, address: str = SENDER) -> TxSigner:
        return TxSigner(
            signer=signer,
            address=address,
            chain_id=CHAIN_ID,
            querier=AuthQuerier(node or rpc),  # type: ignore[arg-type]
            encryption=encryption,
        )

    return _make


@pytest.fixture
def make_client(encryption: FakeEncryption):
    def _make(rpc: FakeRpc, wallet=None) -> SecretNetworkClient:
        return SecretNetworkClient(
            rpc=rpc,  # type: ignore[arg-type]
            chain_id=CHAIN_ID,
            wallet=wallet if wallet is not None else FakeDirectSigner(),
            wallet_address=SENDER,
            encryption=encryption,
        )

    return _make
