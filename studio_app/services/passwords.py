"""Legacy studio join passwords (issued once, stored as salted scrypt hashes)."""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime

SALT_BYTES = 16
KEY_LENGTH = 64

# scrypt cost parameters (N, r, p)
SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1


@dataclass(frozen=True)
class JoinPasswordHash:
    hash: str
    salt: str
    updated_at: datetime


def generate_join_password(length: int = 16) -> str:
    """Return a random URL-safe string of exactly ``length`` characters."""
    if length < 1:
        raise ValueError("Password length must be positive")
    # token_urlsafe(n) yields ~1.3 chars per byte, so n=length is always long enough
    return secrets.token_urlsafe(length)[:length]


def hash_join_password(password: str) -> JoinPasswordHash:
    salt = secrets.token_hex(SALT_BYTES)
    digest = hashlib.scrypt(
        password.encode(),
        salt=salt.encode(),
        n=SCRYPT_N,
        r=SCRYPT_R,
        p=SCRYPT_P,
        maxmem=64 * 1024 * 1024,
        dklen=KEY_LENGTH,
    )
    return JoinPasswordHash(hash=digest.hex(), salt=salt, updated_at=datetime.now(UTC))
