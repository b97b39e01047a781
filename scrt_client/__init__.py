"""
scrt-client: Python client for Secret Network transactions.
Convenience exports for the most common client APIs.
"""

from .version import __version__  # noqa: F401

# Core config & errors
from .config import ClientConfig  # noqa: F401
from .errors import (  # noqa: F401
    AccountNotFound,
    ConfirmationTimeout,
    DecryptionFailure,
    MempoolRejected,
    RpcError,
    ScrtClientError,
    SignerAccountMissing,
    SignerProtocolMismatch,
    UnrecognizedPublicKeyTag,
    UnsupportedAccountKind,
)

# Encryption contract
from .encryption import EncryptionUtils  # noqa: F401

# RPC
from .rpc.http import TendermintRpc  # noqa: F401

# Wallet
from .wallet.signer import (  # noqa: F401
    ReadonlySigner,
    Secp256k1AminoSigner,
    Secp256k1DirectSigner,
)

# Tx helpers
from .tx.build import gas_to_fee, make_fee  # noqa: F401
from .tx.send import BroadcastMode, BroadcastOptions, TxResult  # noqa: F401
from .tx.sign import NonceLedger, SignerData  # noqa: F401
from .tx.types import Coin, StdFee, coins  # noqa: F401

# Client
from .client import SecretNetworkClient  # noqa: F401

__all__ = [
    "__version__",
    # Core
    "ClientConfig",
    "ScrtClientError", "RpcError",
    "AccountNotFound", "UnsupportedAccountKind",
    "SignerProtocolMismatch", "SignerAccountMissing", "UnrecognizedPublicKeyTag",
    "MempoolRejected", "ConfirmationTimeout", "DecryptionFailure",
    # Encryption
    "EncryptionUtils",
    # RPC
    "TendermintRpc",
    # Wallet
    "ReadonlySigner", "Secp256k1DirectSigner", "Secp256k1AminoSigner",
    # Tx
    "gas_to_fee", "make_fee",
    "BroadcastMode", "BroadcastOptions", "TxResult",
    "NonceLedger", "SignerData",
    "Coin", "StdFee", "coins",
    # Client
    "SecretNetworkClient",
]
