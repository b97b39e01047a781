"""
scrt_client.wallet
==================

Signer capability contracts (direct / amino) and concrete secp256k1 signers.
"""

from .signer import (AccountData, AminoSigner, AminoSignResponse, DirectSigner,
                     DirectSignResponse, ReadonlySigner, Secp256k1AminoSigner,
                     Secp256k1DirectSigner, Signer, StdSignature, is_direct_signer)

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
]
