"""
User service for DYHE Delivery backend.
Handles staff account CRUD, password resets and the last-super-admin rule.
"""
import logging

from pymongo.errors import DuplicateKeyError

from errors import ConflictError, NotFoundError, ValidationError
from models.enums import Role
from models.schemas import UserCreate, UserUpdate, ChangePasswordRequest
from utils.helpers import new_id, now_iso, pagination_meta, search_filter
from utils.security import hash_password

logger = logging.getLogger(__name__)

USER_PROJECTION = {"_id": 0, "password": 0}
SEARCH_FIELDS = ["name", "email", "username", "phone"]
CONFLICT_MESSAGE = "User with this email or username already exists"


class UserService:
    def __init__(self, db):
        self.db = db

    async def create(self, data: UserCreate) -> dict:
        existing = await self.db.users.find_one(
            {"$or": [{"email": data.email}, {"username": data.username}]},
            {"_id": 0, "id": 1},
        )
        if existing:
            raise ConflictError(CONFLICT_MESSAGE)

        timestamp = now_iso()
        user_doc = {
            **data.model_dump(mode="json"),
            "id": new_id(),
            "password": hash_password(data.password),
            "created_at": timestamp,
            "updated_at": timestamp,
        }
        try:
            await self.db.users.insert_one(user_doc)
        except DuplicateKeyError:
            raise ConflictError(CONFLICT_MESSAGE)

        logger.info(f"Created user {user_doc['username']} ({user_doc['role']})")
        return {k: v for k, v in user_doc.items() if k not in ("_id", "password")}

    async def find_all(self, page: int = 1, limit: int = 10, search: str = None) -> dict:
        query = search_filter(search, SEARCH_FIELDS)
        skip = (page - 1) * limit

        total = await self.db.users.count_documents(query)
        users = await self.db.users.find(query, USER_PROJECTION).sort(
            "created_at", -1
        ).skip(skip).limit(limit).to_list(limit)

        return {"items": users, "pagination": pagination_meta(page, limit, total)}

    async def find_one(self, user_id: str) -> dict:
        user = await self.db.users.find_one({"id": user_id}, USER_PROJECTION)
        if not user:
            raise NotFoundError(f"User with ID {user_id} not found")
        return user

    async def update(self, user_id: str, data: UserUpdate) -> dict:
        await self.find_one(user_id)

        update_dict = {k: v for k, v in data.model_dump(mode="json", exclude_unset=True).items() if v is not None}

        collisions = []
        if "email" in update_dict:
            collisions.append({"email": update_dict["email"]})
        if "username" in update_dict:
            collisions.append({"username": update_dict["username"]})
        if collisions:
            existing = await self.db.users.find_one(
                {"$or": collisions, "id": {"$ne": user_id}},
                {"_id": 0, "id": 1},
            )
            if existing:
                raise ConflictError(CONFLICT_MESSAGE)

        if update_dict:
            update_dict["updated_at"] = now_iso()
            try:
                await self.db.users.update_one({"id": user_id}, {"$set": update_dict})
            except DuplicateKeyError:
                raise ConflictError(CONFLICT_MESSAGE)

        return await self.find_one(user_id)

    async def change_password(self, user_id: str, data: ChangePasswordRequest) -> dict:
        """Reset a user's password. Intended for administrators; no current-password check."""
        await self.find_one(user_id)
        await self.db.users.update_one(
            {"id": user_id},
            {"$set": {"password": hash_password(data.new_password), "updated_at": now_iso()}},
        )
        logger.info(f"Password changed for user {user_id}")
        return {"message": "Password changed successfully"}

    async def remove(self, user_id: str) -> dict:
        user = await self.find_one(user_id)

        if user.get("role") == Role.SUPER_ADMIN.value:
            super_admins = await self.db.users.count_documents({"role": Role.SUPER_ADMIN.value})
            if super_admins <= 1:
                raise ValidationError("Cannot delete the last super admin user")

        await self.db.users.delete_one({"id": user_id})
        logger.info(f"Deleted user {user_id}")
        return {"message": "User deleted successfully"}
