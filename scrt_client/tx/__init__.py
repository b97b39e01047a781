"""
scrt_client.tx
==============

Transaction helpers: messages, fees, encoding, signing and broadcasting.

Submodules
----------
- types  : Message Contract (`ProtoMsg`, `AminoMsg`), `Coin`, `StdFee`.
- bank   : `MsgSend`, `MsgMultiSend`.
- compute: `MsgInstantiateContract`, `MsgExecuteContract` (encrypted payloads).
- build  : fee computation (`gas_to_fee`, `make_fee`).
- encode : TxBody / AuthInfo / SignDoc / TxRaw protobuf encoding, amino sign doc.
- sign   : `TxSigner` (direct / amino dispatch) and the `NonceLedger`.
- send   : broadcast + confirmation polling, `TxResult`.
- logs   : decryption of contract events in a confirmed tx's log.

Typical usage
-------------
    from scrt_client.tx import build, encode, send
    from scrt_client.tx.sign import TxSigner

    fee = build.make_fee(200_000, 0.25, "uscrt")
    tx, nonces = await signer.sign(msgs, fee, memo="")
    result = await send.broadcast_tx(rpc, tx.encode(), send.BroadcastOptions(), nonces, encryption)

`sign` is not re-exported here: it depends on `scrt_client.wallet`, which in
turn imports `encode`.
"""

from __future__ import annotations

from . import build as build
from . import encode as encode
from . import send as send
from . import types as types

__all__ = ["build", "encode", "send", "types"]
