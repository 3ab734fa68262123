"""
User routes for DYHE Delivery backend.
Handles staff account management (administrators only).
"""
from fastapi import APIRouter, Depends, Query
from typing import Optional

from database import get_db
from dependencies import require_admin
from models.schemas import UserCreate, UserUpdate, ChangePasswordRequest
from services.user_service import UserService

router = APIRouter(dependencies=[Depends(require_admin)])


def get_user_service(db=Depends(get_db)) -> UserService:
    return UserService(db)


@router.post("/users", status_code=201)
async def create_user(data: UserCreate, service: UserService = Depends(get_user_service)):
    """Create a new user"""
    return await service.create(data)


@router.get("/users")
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    service: UserService = Depends(get_user_service)
):
    """List users with pagination and search"""
    return await service.find_all(page, limit, search)


@router.get("/users/{user_id}")
async def get_user(user_id: str, service: UserService = Depends(get_user_service)):
    """Get a single user"""
    return await service.find_one(user_id)


@router.patch("/users/{user_id}")
async def update_user(user_id: str, data: UserUpdate, service: UserService = Depends(get_user_service)):
    """Update user details"""
    return await service.update(user_id, data)


@router.patch("/users/{user_id}/change-password")
async def change_user_password(
    user_id: str,
    data: ChangePasswordRequest,
    service: UserService = Depends(get_user_service)
):
    """Reset a user's password"""
    return await service.change_password(user_id, data)


@router.delete("/users/{user_id}")
async def delete_user(user_id: str, service: UserService = Depends(get_user_service)):
    """Delete a user (the last super admin cannot be deleted)"""
    return await service.remove(user_id)
