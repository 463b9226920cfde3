"""
Password hashing and bearer tokens.

Passwords are salted PBKDF2-SHA256, stored as
``pbkdf2_sha256$<iterations>$<salt hex>$<digest hex>`` so the iteration
count can change without invalidating existing hashes.

Tokens are HS256 JWTs carrying ``userId`` and ``email`` with an expiry.
"""

import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from gateway.config import Settings
from gateway.errors import Forbidden

logger = logging.getLogger("gateway.security")

HASH_SCHEME = "pbkdf2_sha256"


@dataclass
class TokenPayload:
    """Identity carried by a verified token."""

    user_id: str
    email: str


def hash_password(password: str, iterations: int = 120_000, salt: bytes | None = None) -> str:
    if salt is None:
        salt = secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return f"{HASH_SCHEME}${iterations}${salt.hex()}${digest.hex()}"


def verify_password(password: str, password_hash: str) -> bool:
    try:
        scheme, iterations, salt_hex, digest_hex = password_hash.split("$")
    except ValueError:
        return False
    if scheme != HASH_SCHEME:
        return False
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), bytes.fromhex(salt_hex), int(iterations)
    )
    return secrets.compare_digest(digest.hex(), digest_hex)


def create_access_token(user_id: str, email: str, config: Settings) -> str:
    now = datetime.now(timezone.utc)
    claims = {
        "userId": user_id,
        "email": email,
        "iat": now,
        "exp": now + timedelta(hours=config.token_expiry_hours),
    }
    return jwt.encode(claims, config.jwt_secret, algorithm=config.jwt_algorithm)


def decode_access_token(token: str, config: Settings) -> TokenPayload:
    """
    Verify signature and expiry.

    Raises:
        Forbidden: The token is malformed, tampered with or expired.
    """
    try:
        claims = jwt.decode(token, config.jwt_secret, algorithms=[config.jwt_algorithm])
    except JWTError as e:
        logger.warning("Rejected token: %s", e)
        raise Forbidden("Invalid or expired token")

    user_id = claims.get("userId")
    email = claims.get("email")
    if not user_id or not email:
        raise Forbidden("Invalid or expired token")
    return TokenPayload(user_id=user_id, email=email)
