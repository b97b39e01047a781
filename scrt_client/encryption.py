"""
scrt_client.encryption
======================

The contract the transaction pipeline needs from an encryption subsystem.

The key-derivation and cipher behind it are not part of this package: any
object with the two coroutine methods below can be passed to the client.

- `encrypt(plaintext) -> ciphertext`
    The first 32 bytes of the returned ciphertext are the nonce used for this
    payload. Implementations are expected to be randomized (fresh nonce per call).
- `decrypt(ciphertext, nonce) -> plaintext`
    Raises (typically `DecryptionFailure`) when the ciphertext does not
    authenticate under that nonce.

`MessageEncryptionScope` memoizes encryption for a single message during a
single signing attempt, so the legacy amino path signs exactly the
ciphertext that gets broadcast.
"""

from __future__ import annotations

import asyncio
from typing import Dict, Optional, Protocol, runtime_checkable

NONCE_LENGTH = 32

__all__ = [
    "NONCE_LENGTH",
    "EncryptionUtils",
    "MessageEncryptionScope",
    "nonce_of",
]


@runtime_checkable
class EncryptionUtils(Protocol):
    async def encrypt(self, plaintext: bytes) -> bytes: ...

    async def decrypt(self, ciphertext: bytes, nonce: bytes) -> bytes: ...


def nonce_of(ciphertext: bytes) -> bytes:
    """Return the leading nonce of an encrypted payload."""
    if len(ciphertext) < NONCE_LENGTH:
        raise ValueError(
            f"encrypted payload is {len(ciphertext)} bytes, shorter than its {NONCE_LENGTH}-byte nonce"
        )
    return bytes(ciphertext[:NONCE_LENGTH])


class MessageEncryptionScope:
    """
    Wraps an `EncryptionUtils` for one message of one signing attempt.

    Repeated `encrypt` calls with the same plaintext return the first
    ciphertext instead of re-encrypting. A new scope is created for every
    signing attempt, so a resubmission always gets fresh nonces.
    """

    __slots__ = ("_inner", "_cache", "_lock")

    def __init__(self, inner: EncryptionUtils) -> None:
        self._inner = inner
        self._cache: Dict[bytes, bytes] = {}
        self._lock: Optional[asyncio.Lock] = None

    async def encrypt(self, plaintext: bytes) -> bytes:
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            key = bytes(plaintext)
            cached = self._cache.get(key)
            if cached is None:
                cached = bytes(await self._inner.encrypt(key))
                self._cache[key] = cached
            return cached

    async def decrypt(self, ciphertext: bytes, nonce: bytes) -> bytes:
        return await self._inner.decrypt(ciphertext, nonce)
