"""
scrt_client.wallet.signer
=========================

Signer capability contracts and concrete secp256k1 signers.

A signer is anything that can list its accounts and sign for one of them.
There are two mutually exclusive protocols:

- **direct**: `sign_direct(address, SignDoc) -> DirectSignResponse`
  (binary protobuf sign document; preferred)
- **amino**:  `sign_amino(address, StdSignDoc) -> AminoSignResponse`
  (legacy JSON sign document, for hardware wallets and older signers)

The transaction pipeline discovers the protocol with `is_direct_signer()`:
a signer exposing `sign_direct` is direct, anything else is amino.

Both response types carry `signed`: the document the signer actually signed.
A signer may rewrite it (e.g. a wallet UI letting the user bump the fee), and
the pipeline builds the final transaction from `signed`, not from its request.

Concrete signers
----------------
`Secp256k1DirectSigner` and `Secp256k1AminoSigner` hold one raw 32-byte
secp256k1 private key and sign with the `cryptography` package:

    sig = r || s   (64 bytes, big-endian, low-S normalized)
    over sha256(sign_bytes)

`ReadonlySigner` is the placeholder used by clients created without a wallet;
every signing operation raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Protocol, Sequence, Union, runtime_checkable

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature, encode_dss_signature

from ..errors import ScrtClientError
from ..tx.encode import PubKeyDict, SignDoc, encode_secp256k1_pubkey, serialize_sign_doc_amino
from ..utils.bytes import BytesLike, from_base64, to_base64

__all__ = [
    "AccountData",
    "StdSignature",
    "DirectSignResponse",
    "AminoSignResponse",
    "DirectSigner",
    "AminoSigner",
    "Signer",
    "is_direct_signer",
    "ReadonlySigner",
    "Secp256k1DirectSigner",
    "Secp256k1AminoSigner",
    "encode_secp256k1_signature",
]

# secp256k1 group order
_SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141


# --- Data structures ---------------------------------------------------------


@dataclass(frozen=True)
class AccountData:
    """
    One account a signer can sign for.

    `pubkey` is either the raw 33-byte compressed secp256k1 key or an amino
    public-key dict (used for multisig-threshold accounts).
    """

    address: str
    pubkey: Union[bytes, PubKeyDict]
    algo: str = "secp256k1"

    def pubkey_dict(self) -> PubKeyDict:
        if isinstance(self.pubkey, Mapping):
            return dict(self.pubkey)
        return encode_secp256k1_pubkey(self.pubkey)


@dataclass(frozen=True)
class StdSignature:
    pub_key: PubKeyDict
    signature: str  # base64

    def signature_bytes(self) -> bytes:
        return from_base64(self.signature)


@dataclass(frozen=True)
class DirectSignResponse:
    signed: SignDoc
    signature: StdSignature


@dataclass(frozen=True)
class AminoSignResponse:
    signed: Dict[str, Any]
    signature: StdSignature


@runtime_checkable
class DirectSigner(Protocol):
    async def get_accounts(self) -> Sequence[AccountData]: ...

    async def sign_direct(self, signer_address: str, sign_doc: SignDoc) -> DirectSignResponse: ...


@runtime_checkable
class AminoSigner(Protocol):
    async def get_accounts(self) -> Sequence[AccountData]: ...

    async def sign_amino(self, signer_address: str, sign_doc: Mapping[str, Any]) -> AminoSignResponse: ...


Signer = Union[DirectSigner, AminoSigner]


def is_direct_signer(signer: Any) -> bool:
    """Capability check: does `signer` support the direct protocol?"""
    return callable(getattr(signer, "sign_direct", None))


def encode_secp256k1_signature(pubkey: BytesLike, signature: BytesLike) -> StdSignature:
    sig = bytes(signature)
    if len(sig) != 64:
        raise ValueError("signature must be 64 bytes (r || s)")
    return StdSignature(pub_key=encode_secp256k1_pubkey(pubkey), signature=to_base64(sig))


# --- Readonly ----------------------------------------------------------------


class ReadonlySigner:
    """Amino-shaped signer for clients that only read. Every operation raises."""

    async def get_accounts(self) -> List[AccountData]:
        raise ScrtClientError("get_accounts() is not supported in readonly mode.")

    async def sign_amino(self, signer_address: str, sign_doc: Mapping[str, Any]) -> AminoSignResponse:
        raise ScrtClientError("sign_amino() is not supported in readonly mode.")


# --- secp256k1 ---------------------------------------------------------------


class _Secp256k1Key:
    def __init__(self, private_key: BytesLike, address: str) -> None:
        raw = bytes(private_key)
        if len(raw) != 32:
            raise ValueError("secp256k1 private key must be 32 bytes")
        secret = int.from_bytes(raw, "big")
        if not 0 < secret < _SECP256K1_N:
            raise ValueError("secp256k1 private key out of range")
        self._sk = ec.derive_private_key(secret, ec.SECP256K1())
        self._pk = self._sk.public_key().public_bytes(
            serialization.Encoding.X962, serialization.PublicFormat.CompressedPoint
        )
        self._address = address

    @property
    def address(self) -> str:
        return self._address

    @property
    def public_key(self) -> bytes:
        return self._pk

    async def get_accounts(self) -> List[AccountData]:
        return [AccountData(address=self._address, pubkey=self._pk)]

    def sign_bytes(self, message: bytes) -> bytes:
        """64-byte low-S r||s ECDSA signature over sha256(message)."""
        der = self._sk.sign(bytes(message), ec.ECDSA(hashes.SHA256()))
        r, s = decode_dss_signature(der)
        if s > _SECP256K1_N // 2:
            s = _SECP256K1_N - s
        return r.to_bytes(32, "big") + s.to_bytes(32, "big")

    def verify(self, message: bytes, signature: bytes) -> bool:
        if len(signature) != 64:
            return False
        r = int.from_bytes(signature[:32], "big")
        s = int.from_bytes(signature[32:], "big")
        try:
            self._sk.public_key().verify(encode_dss_signature(r, s), bytes(message), ec.ECDSA(hashes.SHA256()))
        except InvalidSignature:
            return False
        return True

    def _check_address(self, signer_address: str) -> None:
        if signer_address != self._address:
            raise ScrtClientError(f'Address "{signer_address}" not found in wallet')


class Secp256k1DirectSigner(_Secp256k1Key):
    """Direct-protocol signer over one secp256k1 key."""

    async def sign_direct(self, signer_address: str, sign_doc: SignDoc) -> DirectSignResponse:
        self._check_address(signer_address)
        sig = self.sign_bytes(sign_doc.encode())
        return DirectSignResponse(signed=sign_doc, signature=encode_secp256k1_signature(self._pk, sig))


class Secp256k1AminoSigner(_Secp256k1Key):
    """Legacy amino JSON signer over one secp256k1 key."""

    async def sign_amino(self, signer_address: str, sign_doc: Mapping[str, Any]) -> AminoSignResponse:
        self._check_address(signer_address)
        sig = self.sign_bytes(serialize_sign_doc_amino(sign_doc))
        return AminoSignResponse(signed=dict(sign_doc), signature=encode_secp256k1_signature(self._pk, sig))

