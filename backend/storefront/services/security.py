"""
Storefront Backend — Password Hashing
======================================

What:  Salted PBKDF2-SHA256 hashing and constant-time verification.
Who:   UserService (register, update, authenticate) and the seed routine.

Stored format:
    pbkdf2_sha256$<iterations>$<salt hex>$<digest hex>

The iteration count is stored per hash, so raising
`settings.password_hash_iterations` only affects newly written passwords.
"""

import hashlib
import hmac
import secrets
from typing import Optional

from storefront.config import settings

ALGORITHM = "pbkdf2_sha256"
SALT_BYTES = 16


def hash_password(password: str, iterations: Optional[int] = None) -> str:
    rounds = iterations or settings.password_hash_iterations
    salt = secrets.token_hex(SALT_BYTES)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), bytes.fromhex(salt), rounds)
    return f"{ALGORITHM}${rounds}${salt}${digest.hex()}"


def verify_password(password: str, stored_hash: str) -> bool:
    """Return True when `password` matches `stored_hash`; malformed hashes never match."""
    try:
        algorithm, rounds, salt, expected = stored_hash.split("$")
        if algorithm != ALGORITHM:
            return False
        digest = hashlib.pbkdf2_hmac(
            "sha256", password.encode("utf-8"), bytes.fromhex(salt), int(rounds)
        )
    except ValueError:
        return False
    return hmac.compare_digest(digest.hex(), expected)
