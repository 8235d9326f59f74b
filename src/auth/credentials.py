"""
Credential Hashing

Digest = H(salt ++ H(password ++ H(salt))) with H = SHA-256.

NOTE: This is a single-pass hash chain with no work factor. It is kept
bit-for-bit so that stored digests keep verifying; it is not a vetted
password-hashing construction. Hardening it means migrating every
stored digest, which is a separate decision.
"""

import hmac
import secrets
from hashlib import sha256
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.models.user import User


SALT_SIZE = 16
DIGEST_SIZE = sha256().digest_size


def generate_salt() -> bytes:
    """Fresh random salt for a new user."""
    return secrets.token_bytes(SALT_SIZE)


def compute_digest(salt: bytes, password: str) -> bytes:
    """
    Compute the salted password digest.

    Deterministic for a given (salt, password) pair. The password is
    encoded as UTF-8 before hashing.
    """
    salt_hash = sha256(salt).digest()
    inner = sha256(password.encode("utf-8") + salt_hash).digest()
    return sha256(salt + inner).digest()


def verify_digest(salt: bytes, digest: bytes, candidate: str) -> bool:
    """Timing-safe comparison of a candidate password against a digest."""
    return hmac.compare_digest(compute_digest(salt, candidate), digest)


def verify(user: "User", candidate: str) -> bool:
    """Check a candidate password against a user's stored credential."""
    return verify_digest(user.salt, user.password_digest, candidate)
