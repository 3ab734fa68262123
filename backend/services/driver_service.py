"""
Driver service for DYHE Delivery backend.
Handles driver profiles, their optional login accounts and deletion guards.
"""
import logging

from pymongo.errors import DuplicateKeyError

from errors import ConflictError, NotFoundError, ValidationError
from models.enums import Gender, Role, Status
from models.schemas import DriverCreate, DriverUpdate
from utils.helpers import new_id, now_iso, pagination_meta, search_filter
from utils.security import hash_password

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ["name", "email", "phone"]
CONFLICT_MESSAGE = "Driver with this email, phone, or bank account number already exists"
NULLABLE_FIELDS = ("bank_account_name", "google_maps_url", "latitude", "longitude")


class DriverService:
    def __init__(self, db):
        self.db = db

    async def _create_login_account(self, data: DriverCreate) -> str:
        """Create the DRIVER user account a driver signs in with; returns its id."""
        if not data.email:
            raise ValidationError("Email is required to create a driver login account")

        existing = await self.db.users.find_one({"username": data.username}, {"_id": 0, "id": 1})
        if existing:
            raise ConflictError("Username is already taken")
        existing = await self.db.users.find_one({"email": data.email}, {"_id": 0, "id": 1})
        if existing:
            raise ConflictError("A user account with this email already exists")

        timestamp = now_iso()
        user_doc = {
            "id": new_id(),
            "username": data.username,
            "name": data.name,
            "email": data.email,
            "phone": data.phone,
            "password": hash_password(data.password),
            "gender": Gender.MALE.value,
            "role": Role.DRIVER.value,
            "status": Status.ACTIVE.value,
            "created_at": timestamp,
            "updated_at": timestamp,
        }
        try:
            await self.db.users.insert_one(user_doc)
        except DuplicateKeyError:
            raise ConflictError("Username is already taken")
        return user_doc["id"]

    async def create(self, data: DriverCreate) -> dict:
        conditions = [{"phone": data.phone}, {"bank_account_number": data.bank_account_number}]
        if data.email:
            conditions.append({"email": data.email})
        existing = await self.db.drivers.find_one({"$or": conditions}, {"_id": 0, "id": 1})
        if existing:
            raise ConflictError(CONFLICT_MESSAGE)

        if bool(data.username) != bool(data.password):
            raise ValidationError("Username and password must be provided together")

        user_id = None
        if data.username:
            user_id = await self._create_login_account(data)

        timestamp = now_iso()
        driver_doc = data.model_dump(mode="json", exclude={"username", "password"})
        # Optional email is omitted rather than stored as null so the sparse unique index applies
        if driver_doc.get("email") is None:
            driver_doc.pop("email", None)
        driver_doc.update({
            "id": new_id(),
            "user_id": user_id,
            "created_at": timestamp,
            "updated_at": timestamp,
        })
        try:
            await self.db.drivers.insert_one(driver_doc)
        except DuplicateKeyError:
            if user_id:
                await self.db.users.delete_one({"id": user_id})
            raise ConflictError(CONFLICT_MESSAGE)

        driver_doc.pop("_id", None)
        logger.info(f"Created driver {driver_doc['name']} ({driver_doc['id']})")
        return await self._with_user(driver_doc)

    async def _with_user(self, driver: dict) -> dict:
        user = None
        if driver.get("user_id"):
            user = await self.db.users.find_one(
                {"id": driver["user_id"]},
                {"_id": 0, "id": 1, "username": 1, "role": 1},
            )
        return {**driver, "user": user}

    async def find_all(self, page: int = 1, limit: int = 10, search: str = None) -> dict:
        query = search_filter(search, SEARCH_FIELDS)
        skip = (page - 1) * limit

        total = await self.db.drivers.count_documents(query)
        drivers = await self.db.drivers.find(query, {"_id": 0}).sort(
            "created_at", -1
        ).skip(skip).limit(limit).to_list(limit)

        return {"items": drivers, "pagination": pagination_meta(page, limit, total)}

    async def _get(self, driver_id: str) -> dict:
        driver = await self.db.drivers.find_one({"id": driver_id}, {"_id": 0})
        if not driver:
            raise NotFoundError(f"Driver with ID {driver_id} not found")
        return driver

    async def find_one(self, driver_id: str) -> dict:
        driver = await self._get(driver_id)
        packages = await self.db.packages.find(
            {"driver_id": driver_id}, {"_id": 0}
        ).sort("created_at", -1).to_list(1000)
        return {**driver, "packages": packages}

    async def update(self, driver_id: str, data: DriverUpdate) -> dict:
        await self._get(driver_id)

        update_dict = data.model_dump(mode="json", exclude_unset=True)
        unset_fields = {}
        if "email" in update_dict and update_dict["email"] is None:
            del update_dict["email"]
            unset_fields["email"] = ""
        update_dict = {k: v for k, v in update_dict.items() if v is not None or k in NULLABLE_FIELDS}

        collisions = []
        if update_dict.get("email"):
            collisions.append({"email": update_dict["email"]})
        if update_dict.get("bank_account_number"):
            collisions.append({"bank_account_number": update_dict["bank_account_number"]})
        if collisions:
            existing = await self.db.drivers.find_one(
                {"$or": collisions, "id": {"$ne": driver_id}},
                {"_id": 0, "id": 1},
            )
            if existing:
                raise ConflictError("Driver with this email or bank account number already exists")

        update_dict["updated_at"] = now_iso()
        operation = {"$set": update_dict}
        if unset_fields:
            operation["$unset"] = unset_fields
        try:
            await self.db.drivers.update_one({"id": driver_id}, operation)
        except DuplicateKeyError:
            raise ConflictError("Driver with this email or bank account number already exists")

        return await self._with_user(await self._get(driver_id))

    async def remove(self, driver_id: str) -> dict:
        driver = await self._get(driver_id)

        package_count = await self.db.packages.count_documents({"driver_id": driver_id})
        if package_count > 0:
            raise ConflictError("Cannot delete driver with existing packages. Please remove all packages first.")

        await self.db.drivers.delete_one({"id": driver_id})
        if driver.get("user_id"):
            await self.db.users.delete_one({"id": driver["user_id"]})
        logger.info(f"Deleted driver {driver_id}")
        return {"message": "Driver deleted successfully"}

    async def change_password(self, driver_id: str, new_password: str) -> dict:
        driver = await self._get(driver_id)
        if not driver.get("user_id"):
            raise ValidationError("Driver does not have a login account")

        result = await self.db.users.update_one(
            {"id": driver["user_id"]},
            {"$set": {"password": hash_password(new_password), "updated_at": now_iso()}},
        )
        if result.matched_count == 0:
            raise NotFoundError("Driver login account not found")

        logger.info(f"Password changed for driver {driver_id}")
        return {"message": "Driver password changed successfully"}
