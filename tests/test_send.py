import time

import pytest

from scrt_client.errors import ConfirmationTimeout, MempoolRejected
from scrt_client.tx.encode import TxRaw, tx_hash
from scrt_client.tx.send import BroadcastMode, BroadcastOptions, broadcast_tx, get_tx, txs_query

from tests import FakeEncryption, FakeRpc

pytestmark = pytest.mark.anyio

TX = TxRaw(body_bytes=b"body", auth_info_bytes=b"auth", signatures=[b"\x01" * 64]).encode()
FAST = dict(broadcast_timeout_ms=2_000, broadcast_check_interval_ms=10)


def test_default_options():
    opts = BroadcastOptions()
    assert opts.broadcast_timeout_ms == 60_000
    assert opts.broadcast_check_interval_ms == 6_000
    assert opts.broadcast_mode is BroadcastMode.SYNC
    assert opts.wait_for_commit is True
    assert opts.memo == ""
    assert opts.explicit_signer_data is None


def test_options_reject_non_positive_interval():
    with pytest.raises(ValueError):
        BroadcastOptions(broadcast_check_interval_ms=0)


async def test_sync_rejection_raises_without_polling():
    rpc = FakeRpc(check_code=13, check_codespace="sdk", check_log="insufficient fee")
    with pytest.raises(MempoolRejected) as ei:
        await broadcast_tx(rpc, TX, BroadcastOptions(**FAST), {}, None)
    assert (ei.value.code, ei.value.codespace, ei.value.log) == (13, "sdk", "insufficient fee")
    assert rpc.calls == ["broadcast_tx_sync"]


async def test_no_wait_returns_hash_only():
    rpc = FakeRpc(check_code=0)
    result = await broadcast_tx(rpc, TX, BroadcastOptions(wait_for_commit=False), {}, None)
    assert result.transaction_hash == tx_hash(TX)
    assert not result.confirmed
    assert result.code is None and result.json_log is None
    assert rpc.polls == 0


async def test_async_mode_returns_hash_only_regardless_of_validity():
    # check_code is ignored: async submission never sees CheckTx
    rpc = FakeRpc(check_code=13, check_codespace="sdk")
    opts = BroadcastOptions(broadcast_mode=BroadcastMode.ASYNC, wait_for_commit=False)
    result = await broadcast_tx(rpc, TX, opts, {}, None)
    assert result.transaction_hash == tx_hash(TX)
    assert rpc.calls == ["broadcast_tx_async"]


async def test_polls_until_indexed():
    rpc = FakeRpc(index_after=3, raw_log='[{"events":[]}]')
    result = await broadcast_tx(rpc, TX, BroadcastOptions(**FAST), {}, FakeEncryption())
    assert rpc.polls == 3
    assert rpc.calls.count("broadcast_tx_sync") == 1
    assert result.confirmed and result.ok
    assert result.height == 42
    assert result.gas_used == 51_234 and result.gas_wanted == 200_000
    assert result.json_log == [{"events": []}]
    assert result.array_log == []
    assert result.tx == TxRaw.decode(TX)


async def test_failed_tx_keeps_raw_log_only():
    rpc = FakeRpc(tx_code=5, raw_log="insufficient funds")
    result = await broadcast_tx(rpc, TX, BroadcastOptions(**FAST), {}, FakeEncryption())
    assert result.code == 5
    assert result.raw_log == "insufficient funds"
    assert result.json_log is None and result.array_log is None


async def test_timeout_raises_and_never_resubmits():
    rpc = FakeRpc(index_after=None)
    opts = BroadcastOptions(broadcast_timeout_ms=300, broadcast_check_interval_ms=100)
    started = time.monotonic()
    with pytest.raises(ConfirmationTimeout) as ei:
        await broadcast_tx(rpc, TX, opts, {}, None)
    elapsed = time.monotonic() - started

    assert ei.value.tx_hash == tx_hash(TX)
    assert ei.value.timeout_ms == 300
    assert elapsed >= 0.3
    assert rpc.calls.count("broadcast_tx_sync") == 1
    # one poll on submission, then one per interval
    assert 3 <= rpc.polls <= 6


async def test_first_poll_happens_right_after_submission():
    rpc = FakeRpc(index_after=1)
    opts = BroadcastOptions(broadcast_timeout_ms=10_000, broadcast_check_interval_ms=5_000)
    started = time.monotonic()
    result = await broadcast_tx(rpc, TX, opts, {}, None)
    assert time.monotonic() - started < 1.0
    assert result.confirmed
    assert rpc.polls == 1


async def test_undecodable_indexed_tx_keeps_the_confirmed_result(caplog):
    raw = b"\x07\xff"
    rpc = FakeRpc(raw_log="[]")
    result = await broadcast_tx(rpc, raw, BroadcastOptions(**FAST), {}, None)
    assert result.confirmed and result.ok
    assert result.transaction_hash == tx_hash(raw)
    assert result.tx is None
    assert result.json_log == [] and result.array_log == []
    assert "not a TxRaw" in caplog.text


async def test_get_tx_and_txs_query():
    rpc = FakeRpc(index_after=None)
    assert await get_tx(rpc, "ab" * 32) is None

    rpc = FakeRpc(index_after=1, raw_log="[]")
    await rpc.broadcast_tx_sync(TX)
    found = await get_tx(rpc, tx_hash(TX).lower())
    assert found is not None and found.transaction_hash == tx_hash(TX)

    results = await txs_query(rpc, "message.sender='secret1xyz'")
    assert [r.transaction_hash for r in results] == [tx_hash(TX)]
