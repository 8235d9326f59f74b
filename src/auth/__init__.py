"""Credential hashing package."""

from src.auth.credentials import (
    DIGEST_SIZE,
    SALT_SIZE,
    compute_digest,
    generate_salt,
    verify,
    verify_digest,
)

__all__ = [
    "DIGEST_SIZE",
    "SALT_SIZE",
    "compute_digest",
    "generate_salt",
    "verify",
    "verify_digest",
]
