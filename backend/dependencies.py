"""
Shared dependencies for DYHE Delivery backend.
Contains dependency functions used across multiple routes.
"""
from fastapi import Request, Depends
from typing import Callable

import jwt

from database import get_db
from errors import ForbiddenError, UnauthorizedError
from models.enums import Role, Status, ADMIN_ROLES
from utils.security import decode_access_token


async def get_current_user(request: Request, db=Depends(get_db)) -> dict:
    """
    Get current user from the bearer access token.

    Args:
        request: FastAPI Request object
        db: Database handle

    Returns:
        User document dict (without password hash)

    Raises:
        UnauthorizedError: 401 if the token is missing, invalid or expired,
            or the user no longer exists or is not active
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise UnauthorizedError("Not authenticated")
    token = auth_header.split(" ", 1)[1].strip()

    try:
        payload = decode_access_token(token)
    except jwt.PyJWTError:
        raise UnauthorizedError("Not authenticated")

    user = await db.users.find_one({"id": payload.get("sub")}, {"_id": 0, "password": 0})
    if not user or user.get("status") != Status.ACTIVE.value:
        raise UnauthorizedError("Not authenticated")

    return user


def require_roles(*roles: Role) -> Callable:
    """
    Build a dependency allowing only users holding one of the given roles.

    Usage:
        user: dict = Depends(require_roles(Role.ADMIN, Role.SUPER_ADMIN))
    """
    allowed = {role.value for role in roles}

    async def checker(user: dict = Depends(get_current_user)) -> dict:
        if user.get("role") not in allowed:
            raise ForbiddenError("Insufficient permissions")
        return user

    return checker


require_admin = require_roles(*ADMIN_ROLES)


async def require_driver(user: dict = Depends(get_current_user)) -> dict:
    if user.get("role") != Role.DRIVER.value:
        raise ForbiddenError("Only drivers can access this resource")
    return user
