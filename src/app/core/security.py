"""
Security Utilities

Password hashing (bcrypt) and opaque session token helpers.
"""

import hashlib
import secrets

import bcrypt

SESSION_TOKEN_BYTES = 32  # 256 bits of entropy


def hash_password(password: str) -> str:
    """Hash a password with a fresh bcrypt salt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plain password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in storage
        return False


def generate_session_token() -> str:
    """Generate a URL-safe opaque session token."""
    return secrets.token_urlsafe(SESSION_TOKEN_BYTES)


def hash_token(token: str) -> str:
    """
    Hash a token for storage using SHA-256.

    Only the hash is persisted so a leaked table cannot be replayed.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
