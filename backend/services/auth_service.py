"""
Authentication service for DYHE Delivery backend.
Handles credential checks, registration and JWT token issuance/refresh.
"""
import logging
from typing import Optional

import jwt
from pymongo.errors import DuplicateKeyError

from errors import ConflictError, UnauthorizedError
from models.enums import Role, Status
from models.schemas import LoginRequest, RegisterRequest
from utils.helpers import new_id, now_iso
from utils.security import (
    hash_password, verify_password, create_access_token, create_refresh_token,
    decode_refresh_token,
)

logger = logging.getLogger(__name__)

USER_PROJECTION = {"_id": 0, "password": 0}


def auth_user(user: dict) -> dict:
    """Public subset of a user returned alongside tokens."""
    return {
        "id": user["id"],
        "username": user["username"],
        "name": user["name"],
        "email": user["email"],
        "role": user["role"],
    }


class AuthService:
    def __init__(self, db):
        self.db = db

    async def validate_user(self, identifier: str, password: str) -> Optional[dict]:
        """
        Look up an ACTIVE user by email or username and check the password.

        Returns:
            The user without its password hash, or None on any mismatch
        """
        user = await self.db.users.find_one(
            {
                "$or": [{"email": identifier}, {"username": identifier}],
                "status": Status.ACTIVE.value,
            },
            {"_id": 0},
        )
        if not user or not verify_password(password, user.get("password", "")):
            return None
        user.pop("password", None)
        return user

    def generate_tokens(self, user_id: str, email: str) -> dict:
        payload = {"sub": user_id, "email": email}
        return {
            "access_token": create_access_token(payload),
            "refresh_token": create_refresh_token(payload),
        }

    async def login(self, data: LoginRequest) -> dict:
        user = await self.validate_user(data.email_or_username, data.password)
        if not user:
            logger.warning(f"Login failed for: {data.email_or_username}")
            raise UnauthorizedError("Invalid credentials")

        logger.info(f"Login successful for user: {user['username']}")
        return {**self.generate_tokens(user["id"], user["email"]), "user": auth_user(user)}

    async def register(self, data: RegisterRequest) -> dict:
        existing = await self.db.users.find_one(
            {"$or": [{"email": data.email}, {"username": data.username}]},
            {"_id": 0, "id": 1},
        )
        if existing:
            raise ConflictError("User with this email or username already exists")

        timestamp = now_iso()
        user_doc = {
            "id": new_id(),
            "username": data.username,
            "name": data.name,
            "email": data.email,
            "phone": data.phone,
            "password": hash_password(data.password),
            "gender": data.gender.value,
            "role": Role.USER.value,
            "status": Status.ACTIVE.value,
            "created_at": timestamp,
            "updated_at": timestamp,
        }
        try:
            await self.db.users.insert_one(user_doc)
        except DuplicateKeyError:
            raise ConflictError("User with this email or username already exists")

        logger.info(f"Registered new user: {data.username}")
        return {**self.generate_tokens(user_doc["id"], user_doc["email"]), "user": auth_user(user_doc)}

    async def refresh_token(self, token: str) -> dict:
        """
        Exchange a refresh token for a new token pair.

        Any failure (bad signature, expiry, unknown or inactive user) is
        reported as the same UnauthorizedError.
        """
        try:
            payload = decode_refresh_token(token)
        except jwt.PyJWTError:
            raise UnauthorizedError("Invalid refresh token")

        user = await self.db.users.find_one({"id": payload.get("sub")}, USER_PROJECTION)
        if not user or user.get("status") != Status.ACTIVE.value:
            raise UnauthorizedError("Invalid refresh token")

        return self.generate_tokens(user["id"], user["email"])

    async def logout(self) -> dict:
        # Tokens are stateless and stay valid until they expire
        return {"message": "Logged out successfully"}
