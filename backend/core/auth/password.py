"""Password hashing: protocol and the PBKDF2-SHA512 hasher.

Digests are PBKDF2-HMAC-SHA512 with a flat 1000 iterations and a 64-byte
key, hex encoded. The per-user salt is a hex string of 16 random bytes and is
fed to the KDF as its UTF-8 text, so stored digests stay comparable with
records written by earlier deployments.

Hashing runs off the event loop using anyio.to_thread.run_sync().
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
from typing import Protocol, runtime_checkable

from anyio import to_thread

PBKDF2_ALGORITHM = "sha512"
PBKDF2_ITERATIONS = 1000
PBKDF2_KEY_LENGTH = 64
SALT_BYTES = 16


def generate_salt() -> str:
    """Return a fresh hex-encoded salt."""
    return secrets.token_hex(SALT_BYTES)


def derive_key(plain: str, salt: str) -> str:
    """Compute the hex digest for a password/salt pair (blocking)."""
    digest = hashlib.pbkdf2_hmac(
        PBKDF2_ALGORITHM,
        plain.encode("utf-8"),
        salt.encode("utf-8"),
        PBKDF2_ITERATIONS,
        dklen=PBKDF2_KEY_LENGTH,
    )
    return digest.hex()


@runtime_checkable
class PasswordHasher(Protocol):
    """Hash and verify salted passwords."""

    async def hash(self, plain: str, salt: str) -> str: ...

    async def verify(self, plain: str, salt: str, digest: str) -> bool: ...


class Pbkdf2Hasher:
    """Production hasher using PBKDF2-HMAC-SHA512 (async, off-thread)."""

    async def hash(self, plain: str, salt: str) -> str:
        return await to_thread.run_sync(derive_key, plain, salt)

    async def verify(self, plain: str, salt: str, digest: str) -> bool:
        """Return False for empty or malformed digests rather than raising."""
        if not salt or not digest:
            return False
        computed = await to_thread.run_sync(derive_key, plain, salt)
        return hmac.compare_digest(computed.encode("ascii"), digest.lower().encode("utf-8"))
