"""
Password hashing and JWT helpers for DYHE Delivery backend.
"""
from datetime import datetime, timezone
from typing import Optional

import bcrypt
import jwt

from config import (
    BCRYPT_ROUNDS, JWT_ALGORITHM, JWT_SECRET, JWT_REFRESH_SECRET,
    JWT_EXPIRATION, JWT_REFRESH_EXPIRATION,
)
from utils.helpers import parse_duration


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """Hash a password using bcrypt"""
    salt = bcrypt.gensalt(rounds=rounds or BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against its hash"""
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), hashed.encode('utf-8'))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def _encode(payload: dict, secret: str, expires_in: str) -> str:
    issued_at = datetime.now(timezone.utc)
    claims = {
        **payload,
        "iat": issued_at,
        "exp": issued_at + parse_duration(expires_in),
    }
    return jwt.encode(claims, secret, algorithm=JWT_ALGORITHM)


def create_access_token(payload: dict) -> str:
    return _encode(payload, JWT_SECRET, JWT_EXPIRATION)


def create_refresh_token(payload: dict) -> str:
    return _encode(payload, JWT_REFRESH_SECRET, JWT_REFRESH_EXPIRATION)


def decode_access_token(token: str) -> dict:
    """Decode an access token. Raises jwt.PyJWTError on any failure."""
    return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])


def decode_refresh_token(token: str) -> dict:
    """Decode a refresh token. Raises jwt.PyJWTError on any failure."""
    return jwt.decode(token, JWT_REFRESH_SECRET, algorithms=[JWT_ALGORITHM])
