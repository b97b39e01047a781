import hashlib
import json

import pytest

from scrt_client.errors import UnrecognizedPublicKeyTag
from scrt_client.tx.bank import MsgSend
from scrt_client.tx.build import make_fee
from scrt_client.tx.encode import (PUBKEY_TYPE_MULTISIG_THRESHOLD, TYPE_URL_MULTISIG,
                                   TYPE_URL_SECP256K1, SignDoc, SignMode, TxRaw,
                                   encode_pubkey, encode_secp256k1_pubkey, encode_tx_body,
                                   make_auth_info_bytes, make_sign_doc_amino,
                                   serialize_sign_doc_amino, tx_hash)
from scrt_client.tx.types import AminoMsg, coins
from scrt_client.utils.proto import singular, parse_fields

from tests import PUBKEY, RECIPIENT, SENDER, auth_info_summary, body_memo, body_messages


def test_secp256k1_pubkey_any():
    any_ = encode_pubkey(encode_secp256k1_pubkey(PUBKEY))
    assert any_.type_url == TYPE_URL_SECP256K1
    assert parse_fields(any_.value) == {1: [PUBKEY]}


def test_multisig_pubkey_encodes_members_recursively():
    member = encode_secp256k1_pubkey(PUBKEY)
    multisig = {
        "type": PUBKEY_TYPE_MULTISIG_THRESHOLD,
        "value": {"threshold": "2", "pubkeys": [member, member]},
    }
    any_ = encode_pubkey(multisig)
    assert any_.type_url == TYPE_URL_MULTISIG
    fields = parse_fields(any_.value)
    assert fields[1] == [2]
    assert len(fields[2]) == 2
    inner = parse_fields(fields[2][0])
    assert singular(inner, 1, b"") == TYPE_URL_SECP256K1.encode()


def test_unknown_pubkey_tag_is_rejected():
    with pytest.raises(UnrecognizedPublicKeyTag) as ei:
        encode_pubkey({"type": "tendermint/PubKeyEd25519", "value": "AAAA"})
    assert ei.value.tag == "tendermint/PubKeyEd25519"
    assert "not recognized" in str(ei.value)


def test_unknown_tag_inside_multisig_is_rejected():
    multisig = {
        "type": PUBKEY_TYPE_MULTISIG_THRESHOLD,
        "value": {"threshold": "1", "pubkeys": [{"type": "bogus", "value": ""}]},
    }
    with pytest.raises(UnrecognizedPublicKeyTag):
        encode_pubkey(multisig)


@pytest.mark.anyio
async def test_tx_body_wraps_messages_in_any():
    proto = await MsgSend(from_address=SENDER, to_address=RECIPIENT, amount=coins(100, "uscrt")).to_proto()
    body = encode_tx_body([proto], "hello")
    msgs = body_messages(body)
    assert [t for t, _ in msgs] == ["/cosmos.bank.v1beta1.MsgSend"]
    send = parse_fields(msgs[0][1])
    assert singular(send, 1, b"").decode() == SENDER
    coin = parse_fields(singular(send, 3, b""))
    assert coin == {1: [b"uscrt"], 2: [b"100"]}
    assert body_memo(body) == "hello"


def test_auth_info_carries_mode_sequence_and_fee():
    auth = make_auth_info_bytes(
        encode_pubkey(encode_secp256k1_pubkey(PUBKEY)),
        make_fee(200_000, 0.25, "uscrt"),
        sequence=9,
        sign_mode=SignMode.LEGACY_AMINO_JSON,
    )
    summary = auth_info_summary(auth)
    assert summary == {
        "pubkey_type_url": TYPE_URL_SECP256K1,
        "sequence": 9,
        "mode": 127,
        "gas_limit": 200_000,
        "amount": [("uscrt", "50001")],
    }


def test_sign_doc_field_layout():
    doc = SignDoc(body_bytes=b"\x01", auth_info_bytes=b"\x02", chain_id="secret-4", account_number=5)
    assert parse_fields(doc.encode()) == {1: [b"\x01"], 2: [b"\x02"], 3: [b"secret-4"], 4: [5]}


def test_amino_sign_doc_is_sorted_compact_and_escaped():
    msg = AminoMsg(type="cosmos-sdk/MsgSend", value={"to_address": "b", "from_address": "a<&>"})
    doc = make_sign_doc_amino([msg], make_fee(1000, 0.1, "uscrt"), "secret-4", "m", 12, 3)
    assert doc["account_number"] == "12" and doc["sequence"] == "3"
    raw = serialize_sign_doc_amino(doc)
    text = raw.decode("utf-8")
    assert " " not in text
    assert "\\u003c\\u0026\\u003e" in text
    assert "<" not in text and "&" not in text
    # Escapes decode back to the same document, and keys come out sorted.
    parsed = json.loads(text)
    assert parsed == doc
    assert list(parsed) == sorted(parsed)
    assert text.index('"from_address"') < text.index('"to_address"')


def test_tx_raw_roundtrip_and_hash():
    tx = TxRaw(body_bytes=b"body", auth_info_bytes=b"auth", signatures=[b"\x01" * 64])
    raw = tx.encode()
    assert TxRaw.decode(raw) == tx
    assert tx_hash(raw) == hashlib.sha256(raw).hexdigest().upper()
