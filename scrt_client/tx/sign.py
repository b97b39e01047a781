"""
scrt_client.tx.sign
===================

Turns a list of messages into a signed `TxRaw` plus the `NonceLedger` needed
to decrypt the confirmation's logs later.

Pipeline
--------
1. Pick the protocol by signer capability (`sign_direct` present -> direct,
   otherwise legacy amino JSON). Forcing the wrong one raises
   `SignerProtocolMismatch` before any network or crypto work.
2. Resolve `SignerData` (explicit, or from the chain's account state).
3. Find the signer's key for the configured address.
4. Convert every message with `to_proto`. Confidential messages return an
   encrypted payload; its leading 32 bytes are recorded in the ledger under
   the message's position.
5. Encode TxBody, the public key and AuthInfo; build the protocol's sign
   document; ask the signer; assemble `TxRaw` from what the signer returned.

Each message is converted through its own `MessageEncryptionScope`, so on the
amino path the JSON form the signer sees and the protobuf form that gets
broadcast carry the same ciphertext. Nothing is cached across calls to
`sign()`: signing again produces fresh nonces.

Nothing here is retried.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from ..encryption import EncryptionUtils, MessageEncryptionScope, nonce_of
from ..errors import (AccountNotFound, SignerAccountMissing, SignerProtocolMismatch,
                      UnsupportedAccountKind)
from ..query.auth import AuthQuerier
from ..wallet.signer import AccountData, is_direct_signer
from .encode import (SignDoc, SignMode, TxRaw, encode_pubkey, encode_tx_body,
                     make_auth_info_bytes, make_sign_doc_amino)
from .types import Msg, ProtoMsg, StdFee

log = logging.getLogger(__name__)

__all__ = ["NonceLedger", "SignerData", "TxSigner"]


class NonceLedger(Mapping):
    """
    Message position -> 32-byte nonce of that message's encrypted payload.

    Built fresh for every signing attempt. A position is present only if the
    message there is confidentiality-bearing.
    """

    __slots__ = ("_nonces",)

    def __init__(self, nonces: Optional[Dict[int, bytes]] = None) -> None:
        self._nonces: Dict[int, bytes] = {}
        for index, nonce in (nonces or {}).items():
            self.record(index, nonce)

    def record(self, index: int, nonce: bytes) -> None:
        """Record the nonce for `index`. Accepts the nonce or the encrypted payload it leads."""
        if index < 0:
            raise ValueError("message index must be >= 0")
        if index in self._nonces:
            raise ValueError(f"nonce for message {index} already recorded")
        self._nonces[int(index)] = nonce_of(nonce)

    def __getitem__(self, index: int) -> bytes:
        return self._nonces[index]

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._nonces))

    def __len__(self) -> int:
        return len(self._nonces)

    def __repr__(self) -> str:
        inner = ", ".join(f"{i}: {n.hex()[:16]}..." for i, n in sorted(self._nonces.items()))
        return f"NonceLedger({{{inner}}})"


@dataclass(frozen=True)
class SignerData:
    account_number: int
    sequence: int
    chain_id: str


@dataclass
class _Prepared:
    account: AccountData
    signer_data: SignerData
    protos: List[ProtoMsg]
    scopes: List[Optional[EncryptionUtils]]
    ledger: NonceLedger


class TxSigner:
    """
    Signs transactions for one address with one signer.

    Args:
        signer: a direct or amino signer (see `scrt_client.wallet.signer`).
        address: the bech32 address to sign for.
        chain_id: used when signer data is fetched from chain.
        querier: account lookup, used when no explicit `SignerData` is given.
        encryption: collaborator for confidentiality-bearing messages.
    """

    def __init__(
        self,
        *,
        signer: Any,
        address: str,
        chain_id: str,
        querier: AuthQuerier,
        encryption: Optional[EncryptionUtils] = None,
    ) -> None:
        self.signer = signer
        self.address = address
        self.chain_id = chain_id
        self.querier = querier
        self.encryption = encryption

    async def sign(
        self,
        messages: Sequence[Msg],
        fee: StdFee,
        memo: str = "",
        signer_data: Optional[SignerData] = None,
    ) -> Tuple[TxRaw, NonceLedger]:
        """Sign with whichever protocol the signer supports."""
        if is_direct_signer(self.signer):
            log.debug("signing %d message(s) with direct protocol", len(messages))
            return await self.sign_direct(messages, fee, memo, signer_data)
        log.debug("signing %d message(s) with legacy amino protocol", len(messages))
        return await self.sign_amino(messages, fee, memo, signer_data)

    async def sign_direct(
        self,
        messages: Sequence[Msg],
        fee: StdFee,
        memo: str = "",
        signer_data: Optional[SignerData] = None,
    ) -> Tuple[TxRaw, NonceLedger]:
        if not is_direct_signer(self.signer):
            raise SignerProtocolMismatch(expected="direct")
        p = await self._prepare(messages, signer_data)

        body_bytes = encode_tx_body(p.protos, memo)
        auth_info_bytes = make_auth_info_bytes(
            encode_pubkey(p.account.pubkey_dict()), fee, p.signer_data.sequence, SignMode.DIRECT
        )
        sign_doc = SignDoc(
            body_bytes=body_bytes,
            auth_info_bytes=auth_info_bytes,
            chain_id=p.signer_data.chain_id,
            account_number=p.signer_data.account_number,
        )
        resp = await self.signer.sign_direct(self.address, sign_doc)

        # The signer may have rewritten the document; broadcast what it signed.
        tx = TxRaw(
            body_bytes=resp.signed.body_bytes,
            auth_info_bytes=resp.signed.auth_info_bytes,
            signatures=[resp.signature.signature_bytes()],
        )
        return tx, p.ledger

    async def sign_amino(
        self,
        messages: Sequence[Msg],
        fee: StdFee,
        memo: str = "",
        signer_data: Optional[SignerData] = None,
    ) -> Tuple[TxRaw, NonceLedger]:
        if not callable(getattr(self.signer, "sign_amino", None)):
            raise SignerProtocolMismatch(expected="amino")
        p = await self._prepare(messages, signer_data)

        amino_msgs = [await m.to_amino(scope) for m, scope in zip(messages, p.scopes)]
        sign_doc = make_sign_doc_amino(
            amino_msgs,
            fee,
            p.signer_data.chain_id,
            memo,
            p.signer_data.account_number,
            p.signer_data.sequence,
        )
        resp = await self.signer.sign_amino(self.address, sign_doc)

        signed = resp.signed
        signed_fee = StdFee.from_amino(signed["fee"])
        signed_sequence = int(signed["sequence"])
        body_bytes = encode_tx_body(p.protos, str(signed.get("memo", memo)))
        auth_info_bytes = make_auth_info_bytes(
            encode_pubkey(p.account.pubkey_dict()),
            signed_fee,
            signed_sequence,
            SignMode.LEGACY_AMINO_JSON,
        )
        tx = TxRaw(
            body_bytes=body_bytes,
            auth_info_bytes=auth_info_bytes,
            signatures=[resp.signature.signature_bytes()],
        )
        return tx, p.ledger

    # --- common steps ----------------------------------------------------

    async def resolve_signer_data(self, explicit: Optional[SignerData] = None) -> SignerData:
        if explicit is not None:
            return explicit
        account = await self.querier.account(self.address)
        if account is None:
            raise AccountNotFound(address=self.address)
        if not account.is_base_account:
            raise UnsupportedAccountKind(address=self.address, kind=account.kind)
        return SignerData(
            account_number=account.account_number,
            sequence=account.sequence,
            chain_id=self.chain_id,
        )

    async def _find_account(self) -> AccountData:
        for acct in await self.signer.get_accounts():
            if acct.address == self.address:
                return acct
        raise SignerAccountMissing(address=self.address)

    async def _prepare(self, messages: Sequence[Msg], explicit: Optional[SignerData]) -> _Prepared:
        signer_data = await self.resolve_signer_data(explicit)
        account = await self._find_account()

        ledger = NonceLedger()
        protos: List[ProtoMsg] = []
        scopes: List[Optional[EncryptionUtils]] = []
        for index, msg in enumerate(messages):
            scope = MessageEncryptionScope(self.encryption) if self.encryption is not None else None
            proto = await msg.to_proto(scope)
            if proto.encrypted_payload is not None:
                ledger.record(index, proto.encrypted_payload)
                log.debug("message %d (%s) encrypted; nonce recorded", index, proto.type_url)
            protos.append(proto)
            scopes.append(scope)
        return _Prepared(
            account=account,
            signer_data=signer_data,
            protos=protos,
            scopes=scopes,
            ledger=ledger,
        )
