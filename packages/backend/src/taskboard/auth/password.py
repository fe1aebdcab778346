"""Password hashing utilities.

Learn: Uses bcrypt for password hashing. bcrypt salts automatically and
produces hashes starting with "$2b$". Passwords are truncated to 72
bytes (bcrypt's limit).

Accounts seeded by the old setup scripts carry bare SHA-256 hex digests.
Those still verify, and are re-hashed to bcrypt on the next successful
login (see needs_upgrade).
"""

import hashlib
import re
import secrets

import bcrypt

_LEGACY_SHA256 = re.compile(r"^[0-9a-f]{64}$")


def hash_password(password: str) -> str:
    pw_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against a bcrypt or legacy SHA-256 hash."""
    if _is_legacy_hash(password_hash):
        expected = hashlib.sha256(password.encode("utf-8")).hexdigest()
        return secrets.compare_digest(password_hash, expected)
    try:
        pw_bytes = password.encode("utf-8")[:72]
        return bcrypt.checkpw(pw_bytes, password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def needs_upgrade(password_hash: str) -> bool:
    """Check if a password hash should be upgraded to bcrypt."""
    return _is_legacy_hash(password_hash)


def _is_legacy_hash(password_hash: str) -> bool:
    return bool(_LEGACY_SHA256.match(password_hash))
