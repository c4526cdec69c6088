"""bcrypt-based credential hashing."""

from __future__ import annotations

import asyncio

import bcrypt

from ..domain.errors import InvalidInputError

# bcrypt only consumes the first 72 bytes of a secret
_BCRYPT_MAX_BYTES = 72


class CredentialHasher:
    """One-way, self-salting hashing of account secrets.

    The work factor is the bcrypt cost (``2**rounds`` iterations). Hashing and
    verification run in a worker thread so a burst of logins does not stall
    the event loop serving other requests.
    """

    def __init__(self, rounds: int = 10) -> None:
        self._rounds = rounds

    async def hash(self, secret: str) -> str:
        """Return a bcrypt digest of ``secret`` with a fresh random salt."""
        encoded = self._encode(secret)
        return await asyncio.to_thread(self._hash_sync, encoded)

    async def verify(self, secret: str, digest: str) -> bool:
        """Return whether ``secret`` matches ``digest``; mismatches never raise."""
        if not isinstance(secret, str) or not secret:
            return False
        if not isinstance(digest, str) or not digest:
            return False
        encoded = secret.encode("utf-8")
        if len(encoded) > _BCRYPT_MAX_BYTES:
            return False
        return await asyncio.to_thread(self._verify_sync, encoded, digest.encode("utf-8"))

    def _encode(self, secret: str) -> bytes:
        if not isinstance(secret, str) or not secret:
            raise InvalidInputError("secret must be a non-empty string")
        encoded = secret.encode("utf-8")
        if len(encoded) > _BCRYPT_MAX_BYTES:
            raise InvalidInputError(f"secret must not exceed {_BCRYPT_MAX_BYTES} bytes")
        return encoded

    def _hash_sync(self, encoded: bytes) -> str:
        return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self._rounds)).decode("utf-8")

    @staticmethod
    def _verify_sync(encoded: bytes, digest: bytes) -> bool:
        try:
            return bcrypt.checkpw(encoded, digest)
        except ValueError:
            # malformed digest (wrong prefix, truncated salt)
            return False
