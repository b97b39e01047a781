"""
tests
=====

In-memory stand-ins for the client's collaborators, shared by the test
modules:

    from tests import FakeRpc, FakeEncryption, FakeDirectSigner, SENDER

- FakeEncryption: randomized "encryption" whose ciphertext starts with a
  fresh 32-byte nonce, and whose decrypt authenticates like a real AEAD.
- FakeRpc: a node that accepts/rejects in CheckTx and indexes the last
  broadcast tx after N polls (or never).
- FakeDirectSigner / FakeAminoSigner: record requests, return a fixed
  signature, optionally rewrite what they sign.
"""

from __future__ import annotations

import hashlib
import json
import os
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from scrt_client.errors import DecryptionFailure
from scrt_client.query.auth import BASE_ACCOUNT_TYPE_URL
from scrt_client.tx.encode import SignDoc, TxRaw, encode_secp256k1_pubkey, tx_hash
from scrt_client.utils.bech32 import encode_bytes
from scrt_client.utils.bytes import to_base64
from scrt_client.utils.proto import Writer, singular, parse_fields
from scrt_client.wallet.signer import AccountData, AminoSignResponse, DirectSignResponse, StdSignature

SENDER = encode_bytes("secret", bytes(range(1, 21)))
RECIPIENT = encode_bytes("secret", b"\x22" * 20)
CONTRACT = encode_bytes("secret", b"\x33" * 32)
CODE_HASH = "ab" * 32
CHAIN_ID = "secret-4"

# Compressed secp256k1 generator point (public key of private key 1)
PUBKEY = bytes.fromhex("0279be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798")
FAKE_SIGNATURE = b"\x01" * 64


# ---------- encryption ----------


def _keystream(nonce: bytes, n: int) -> bytes:
    out = b""
    counter = 0
    while len(out) < n:
        out += hashlib.sha256(nonce + counter.to_bytes(4, "big")).digest()
        counter += 1
    return out[:n]


def seal(nonce: bytes, plaintext: bytes) -> bytes:
    tag = hashlib.sha256(b"tag" + nonce + plaintext).digest()[:8]
    body = bytes(a ^ b for a, b in zip(plaintext, _keystream(nonce, len(plaintext))))
    return tag + body


def unseal(nonce: bytes, sealed: bytes) -> bytes:
    if len(sealed) < 8:
        raise DecryptionFailure("ciphertext too short")
    tag, body = sealed[:8], sealed[8:]
    plaintext = bytes(a ^ b for a, b in zip(body, _keystream(nonce, len(body))))
    if hashlib.sha256(b"tag" + nonce + plaintext).digest()[:8] != tag:
        raise DecryptionFailure("authentication failed")
    return plaintext


def encrypted_attr(nonce: bytes, text: str) -> str:
    """What the node puts in a contract event attribute."""
    return to_base64(seal(nonce, text.encode("utf-8")))


class FakeEncryption:
    def __init__(self) -> None:
        self.encrypted: List[bytes] = []
        self.decrypt_calls = 0

    async def encrypt(self, plaintext: bytes) -> bytes:
        self.encrypted.append(bytes(plaintext))
        nonce = os.urandom(32)
        return nonce + seal(nonce, bytes(plaintext))

    async def decrypt(self, ciphertext: bytes, nonce: bytes) -> bytes:
        self.decrypt_calls += 1
        return unseal(nonce, bytes(ciphertext))


# ---------- wire helpers ----------


def base_account_response(
    address: str,
    account_number: int,
    sequence: int,
    type_url: str = BASE_ACCOUNT_TYPE_URL,
) -> bytes:
    inner = Writer().string(1, address).uint(3, account_number).uint(4, sequence).finish()
    env = Writer().string(1, type_url).bytes(2, inner).finish()
    return Writer().message(1, env).finish()


def body_messages(body_bytes: bytes) -> List[Tuple[str, bytes]]:
    """[(type_url, value)] of a TxBody."""
    out = []
    for any_bytes in parse_fields(body_bytes).get(1, []):
        env = parse_fields(any_bytes)
        out.append((singular(env, 1, b"").decode("utf-8"), singular(env, 2, b"")))
    return out


def body_memo(body_bytes: bytes) -> str:
    return singular(parse_fields(body_bytes), 2, b"").decode("utf-8")


def auth_info_summary(auth_info_bytes: bytes) -> Dict[str, Any]:
    fields = parse_fields(auth_info_bytes)
    signer_info = parse_fields(singular(fields, 1, b""))
    mode_info = parse_fields(singular(signer_info, 2, b""))
    single = parse_fields(singular(mode_info, 1, b""))
    pubkey_any = parse_fields(singular(signer_info, 1, b""))
    fee = parse_fields(singular(fields, 2, b""))
    amounts = []
    for coin in fee.get(1, []):
        c = parse_fields(coin)
        amounts.append((singular(c, 1, b"").decode(), singular(c, 2, b"").decode()))
    return {
        "pubkey_type_url": singular(pubkey_any, 1, b"").decode(),
        "sequence": singular(signer_info, 3, 0),
        "mode": singular(single, 1, 0),
        "gas_limit": singular(fee, 2, 0),
        "amount": amounts,
    }


def execute_nonce(tx_bytes: bytes, index: int) -> bytes:
    """Nonce of the MsgExecuteContract at `index` of an encoded TxRaw."""
    _type_url, value = body_messages(TxRaw.decode(tx_bytes).body_bytes)[index]
    encrypted = singular(parse_fields(value), 3, b"")
    return encrypted[:32]


def contract_raw_log(tx_bytes: bytes, index: int, attrs: Sequence[Tuple[str, str]]) -> str:
    """
    Raw log of a two-message tx: a bank send at 0 and a contract call at
    `index` whose wasm attributes are encrypted with that message's nonce.
    """
    nonce = execute_nonce(tx_bytes, index)
    logs: List[Dict[str, Any]] = []
    for i in range(index + 1):
        if i != index:
            logs.append({"events": [{"type": "message", "attributes": [{"key": "action", "value": "send"}]}]})
            continue
        wasm_attrs = [{"key": encrypted_attr(nonce, k), "value": encrypted_attr(nonce, v)} for k, v in attrs]
        wasm_attrs.append({"key": "contract_address", "value": CONTRACT})
        logs.append({"events": [{"type": "wasm", "attributes": wasm_attrs}]})
    return json.dumps(logs)


# ---------- node ----------


class FakeRpc:
    """
    In-memory node. `index_after=N` makes the tx visible on the N-th poll;
    `index_after=None` never indexes it.
    """

    def __init__(
        self,
        *,
        check_code: int = 0,
        check_codespace: str = "",
        check_log: str = "[]",
        index_after: Optional[int] = 1,
        tx_code: int = 0,
        raw_log: Union[str, Callable[[bytes], str]] = "[]",
        height: int = 42,
        account: Optional[Dict[str, Any]] = None,
        account_missing: bool = False,
    ) -> None:
        self.check_code = check_code
        self.check_codespace = check_codespace
        self.check_log = check_log
        self.index_after = index_after
        self.tx_code = tx_code
        self.raw_log = raw_log
        self.height = height
        self.account = account or {"address": SENDER, "account_number": 7, "sequence": 3}
        self.account_missing = account_missing
        self.calls: List[str] = []
        self.broadcasts: List[bytes] = []
        self.polls = 0

    async def broadcast_tx_sync(self, tx: bytes) -> Dict[str, Any]:
        self.calls.append("broadcast_tx_sync")
        self.broadcasts.append(bytes(tx))
        return {
            "code": self.check_code,
            "codespace": self.check_codespace,
            "log": self.check_log,
            "hash": tx_hash(tx),
        }

    async def broadcast_tx_async(self, tx: bytes) -> Dict[str, Any]:
        self.calls.append("broadcast_tx_async")
        self.broadcasts.append(bytes(tx))
        return {"code": 0, "codespace": "", "log": "", "hash": tx_hash(tx)}

    async def tx_search(self, query: str, *, per_page: int = 30, order_by: str = "asc") -> List[Dict[str, Any]]:
        self.calls.append("tx_search")
        self.polls += 1
        if self.index_after is None or self.polls < self.index_after or not self.broadcasts:
            return []
        tx = self.broadcasts[-1]
        raw_log = self.raw_log(tx) if callable(self.raw_log) else self.raw_log
        return [
            {
                "hash": tx_hash(tx),
                "height": self.height,
                "code": self.tx_code,
                "codespace": "" if self.tx_code == 0 else "sdk",
                "log": raw_log,
                "tx": tx,
                "gas_used": 51_234,
                "gas_wanted": 200_000,
            }
        ]

    async def abci_query(self, path: str, data: bytes, *, prove: bool = False) -> Dict[str, Any]:
        self.calls.append("abci_query")
        if self.account_missing:
            return {
                "code": 22,
                "codespace": "sdk",
                "log": f"rpc error: account {SENDER} not found: key not found",
                "value": b"",
            }
        return {"code": 0, "codespace": "", "log": "", "value": base_account_response(**self.account)}

    async def aclose(self) -> None:
        self.calls.append("aclose")


# ---------- signers ----------


def _fake_std_signature(pubkey: bytes) -> StdSignature:
    return StdSignature(pub_key=encode_secp256k1_pubkey(pubkey), signature=to_base64(FAKE_SIGNATURE))


class FakeDirectSigner:
    def __init__(
        self,
        address: str = SENDER,
        pubkey: Union[bytes, Dict[str, Any]] = PUBKEY,
        rewrite: Optional[Callable[[SignDoc], SignDoc]] = None,
    ) -> None:
        self.address = address
        self.pubkey = pubkey
        self.rewrite = rewrite
        self.requests: List[SignDoc] = []

    async def get_accounts(self) -> List[AccountData]:
        return [AccountData(address=self.address, pubkey=self.pubkey)]

    async def sign_direct(self, signer_address: str, sign_doc: SignDoc) -> DirectSignResponse:
        self.requests.append(sign_doc)
        signed = self.rewrite(sign_doc) if self.rewrite else sign_doc
        return DirectSignResponse(signed=signed, signature=_fake_std_signature(PUBKEY))


class FakeAminoSigner:
    def __init__(
        self,
        address: str = SENDER,
        pubkey: bytes = PUBKEY,
        adjust: Optional[Callable[[Dict[str, Any]], Dict[str, Any]]] = None,
    ) -> None:
        self.address = address
        self.pubkey = pubkey
        self.adjust = adjust
        self.requests: List[Dict[str, Any]] = []

    async def get_accounts(self) -> List[AccountData]:
        return [AccountData(address=self.address, pubkey=self.pubkey)]

    async def sign_amino(self, signer_address: str, sign_doc: Dict[str, Any]) -> AminoSignResponse:
        self.requests.append(sign_doc)
        signed = self.adjust(dict(sign_doc)) if self.adjust else dict(sign_doc)
        return AminoSignResponse(signed=signed, signature=_fake_std_signature(self.pubkey))
