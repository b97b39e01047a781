"""End to end: client.broadcast over the fake node, signer and encryption."""

import time

import pytest

from scrt_client import BroadcastOptions, SecretNetworkClient
from scrt_client.errors import ConfirmationTimeout, MempoolRejected
from scrt_client.tx.bank import MsgSend
from scrt_client.tx.compute import MsgExecuteContract
from scrt_client.tx.encode import TxRaw, tx_hash
from scrt_client.tx.logs import ArrayLogEntry
from scrt_client.tx.types import coins

from tests import (CHAIN_ID, CODE_HASH, CONTRACT, RECIPIENT, SENDER, FakeAminoSigner,
                   FakeRpc, auth_info_summary, body_messages, contract_raw_log)

pytestmark = pytest.mark.anyio

OPTS = BroadcastOptions(
    gas_limit=200_000,
    gas_price_in_fee_denom=0.25,
    broadcast_timeout_ms=2_000,
    broadcast_check_interval_ms=10,
)


def _messages():
    return [
        MsgSend(from_address=SENDER, to_address=RECIPIENT, amount=coins(100, "uscrt")),
        MsgExecuteContract(sender=SENDER, contract=CONTRACT, msg={"increment": {}}, code_hash=CODE_HASH),
    ]


async def test_send_and_contract_call_roundtrip(make_client):
    rpc = FakeRpc(index_after=2, raw_log=lambda tx: contract_raw_log(tx, 1, [("status", "ok")]))
    client = make_client(rpc)

    result = await client.broadcast(_messages(), OPTS)

    assert rpc.calls.count("broadcast_tx_sync") == 1
    sent = TxRaw.decode(rpc.broadcasts[0])
    summary = auth_info_summary(sent.auth_info_bytes)
    assert summary["amount"] == [("uscrt", "50001")]
    assert summary["gas_limit"] == 200_000
    assert summary["sequence"] == 3
    assert [t for t, _ in body_messages(sent.body_bytes)] == [
        "/cosmos.bank.v1beta1.MsgSend",
        "/secret.compute.v1beta1.MsgExecuteContract",
    ]

    assert result.transaction_hash == tx_hash(rpc.broadcasts[0])
    assert result.ok and result.height == 42
    assert ArrayLogEntry(msg=1, type="wasm", key="status", value="ok") in result.array_log
    assert ArrayLogEntry(msg=1, type="wasm", key="contract_address", value=CONTRACT) in result.array_log
    wasm = result.json_log[1]["events"][0]["attributes"]
    assert wasm[0] == {"key": "status", "value": "ok"}


async def test_amino_wallet_broadcasts_too(make_client):
    rpc = FakeRpc(raw_log=lambda tx: contract_raw_log(tx, 1, [("count", "5")]))
    client = make_client(rpc, wallet=FakeAminoSigner())
    result = await client.broadcast(_messages(), OPTS)
    assert ArrayLogEntry(msg=1, type="wasm", key="count", value="5") in result.array_log


async def test_mempool_rejection_surfaces_without_polling(make_client):
    rpc = FakeRpc(check_code=13, check_codespace="sdk", check_log="insufficient fee")
    with pytest.raises(MempoolRejected) as ei:
        await make_client(rpc).broadcast(_messages(), OPTS)
    assert ei.value.code == 13 and ei.value.codespace == "sdk"
    assert "tx_search" not in rpc.calls


async def test_timeout_reports_the_hash(make_client):
    rpc = FakeRpc(index_after=None)
    opts = BroadcastOptions(broadcast_timeout_ms=1_000, broadcast_check_interval_ms=250)
    started = time.monotonic()
    with pytest.raises(ConfirmationTimeout) as ei:
        await make_client(rpc).broadcast(_messages(), opts)
    assert time.monotonic() - started >= 1.0
    assert ei.value.tx_hash == tx_hash(rpc.broadcasts[0])
    assert rpc.calls.count("broadcast_tx_sync") == 1
    assert "Transaction ID" in str(ei.value)


async def test_lookups_and_close(make_client):
    rpc = FakeRpc(raw_log="[]")
    client = make_client(rpc)
    sent = await client.broadcast([_messages()[0]], OPTS)

    again = await client.get_tx(sent.transaction_hash)
    assert again is not None and again.transaction_hash == sent.transaction_hash
    # no nonces are known outside the broadcast that produced them
    assert again.json_log == []

    found = await client.txs_query(f"message.sender='{SENDER}'")
    assert [r.transaction_hash for r in found] == [sent.transaction_hash]

    async with client:
        pass
    assert rpc.calls[-1] == "aclose"


async def test_client_without_wallet_is_read_only(encryption):
    rpc = FakeRpc()
    client = SecretNetworkClient(rpc=rpc, chain_id=CHAIN_ID, encryption=encryption)  # type: ignore[arg-type]
    with pytest.raises(Exception, match="readonly"):
        await client.broadcast(_messages(), OPTS)
    assert rpc.broadcasts == []
