"""
Settings service for DYHE Delivery backend.
Handles the key/value configuration store (company info, label text, defaults).
"""
import logging
from typing import Dict, List, Optional

from pymongo.errors import DuplicateKeyError

from errors import ConflictError, NotFoundError
from models.schemas import SettingCreate, SettingUpdate
from utils.helpers import new_id, now_iso

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS = [
    # Company
    {"key": "company_name", "value": "DYHE DELIVERY", "category": "company", "description": "Company name", "is_public": True},
    {"key": "company_phone", "value": "", "category": "company", "description": "Company phone number", "is_public": True},
    {"key": "company_address", "value": "", "category": "company", "description": "Company address", "is_public": True},
    # Package labels
    {"key": "label_company_name", "value": "DYHE DELIVERY", "category": "label", "description": "Company name printed on labels"},
    {"key": "label_company_phone", "value": "", "category": "label", "description": "Phone printed on labels"},
    {"key": "label_company_address", "value": "", "category": "label", "description": "Address printed on labels"},
    {"key": "label_remarks", "value": "", "category": "label", "description": "Remarks printed on labels"},
    # System defaults
    {"key": "default_delivery_fee", "value": "1.00", "category": "system", "description": "Default delivery fee"},
    {"key": "default_cod_amount", "value": "0.00", "category": "system", "description": "Default COD amount"},
    {"key": "timezone", "value": "Asia/Phnom_Penh", "category": "system", "description": "Business timezone"},
    # Notifications
    {"key": "notification_email", "value": "admin@dyhe.com", "category": "notification", "description": "Notification email"},
    {"key": "notification_phone", "value": "", "category": "notification", "description": "Notification phone"},
]


class SettingsService:
    def __init__(self, db):
        self.db = db

    async def get_all(self) -> List[dict]:
        return await self.db.settings.find({}, {"_id": 0}).sort(
            [("category", 1), ("key", 1)]
        ).to_list(1000)

    async def get_by_category(self, category: str) -> List[dict]:
        return await self.db.settings.find({"category": category}, {"_id": 0}).sort("key", 1).to_list(1000)

    async def get_by_key(self, key: str) -> dict:
        setting = await self.db.settings.find_one({"key": key}, {"_id": 0})
        if not setting:
            raise NotFoundError(f"Setting with key '{key}' not found")
        return setting

    async def create(self, data: SettingCreate) -> dict:
        existing = await self.db.settings.find_one({"key": data.key}, {"_id": 0, "id": 1})
        if existing:
            raise ConflictError(f"Setting with key '{data.key}' already exists")

        timestamp = now_iso()
        setting_doc = {
            **data.model_dump(),
            "id": new_id(),
            "created_at": timestamp,
            "updated_at": timestamp,
        }
        try:
            await self.db.settings.insert_one(setting_doc)
        except DuplicateKeyError:
            raise ConflictError(f"Setting with key '{data.key}' already exists")

        setting_doc.pop("_id", None)
        return setting_doc

    async def update(self, key: str, data: SettingUpdate) -> dict:
        update_dict = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None or k == "description"}
        update_dict["updated_at"] = now_iso()

        result = await self.db.settings.update_one({"key": key}, {"$set": update_dict})
        if result.matched_count == 0:
            raise NotFoundError(f"Setting with key '{key}' not found")

        return await self.get_by_key(key)

    async def delete(self, key: str) -> dict:
        result = await self.db.settings.delete_one({"key": key})
        if result.deleted_count == 0:
            raise NotFoundError(f"Setting with key '{key}' not found")
        return {"message": "Setting deleted successfully"}

    async def upsert(self, key: str, value: str, category: str = "general", description: Optional[str] = None) -> dict:
        """Update the value of a key, creating the row (with category/description) when absent."""
        timestamp = now_iso()
        update = {"$set": {"value": value, "updated_at": timestamp}}
        on_insert = {"id": new_id(), "category": category, "is_public": False, "created_at": timestamp}
        if description is not None:
            update["$set"]["description"] = description
        else:
            on_insert["description"] = None
        update["$setOnInsert"] = on_insert

        await self.db.settings.update_one({"key": key}, update, upsert=True)
        return await self.get_by_key(key)

    async def bulk_update(self, values: Dict[str, str]) -> dict:
        for key, value in values.items():
            await self.upsert(key, str(value))
        logger.info(f"Bulk updated {len(values)} settings")
        return {"message": "Settings updated successfully"}

    async def get_all_as_object(self) -> Dict[str, str]:
        settings = await self.db.settings.find({}, {"_id": 0, "key": 1, "value": 1}).to_list(1000)
        return {s["key"]: s["value"] for s in settings}

    async def get_public_as_object(self) -> Dict[str, str]:
        settings = await self.db.settings.find({"is_public": True}, {"_id": 0, "key": 1, "value": 1}).to_list(1000)
        return {s["key"]: s["value"] for s in settings}

    async def seed_defaults(self) -> int:
        """Insert any default settings that are missing. Returns how many were created."""
        created = 0
        for default in DEFAULT_SETTINGS:
            existing = await self.db.settings.find_one({"key": default["key"]}, {"_id": 0, "id": 1})
            if existing:
                continue
            await self.create(SettingCreate(**default))
            created += 1
        if created:
            logger.info(f"Seeded {created} default settings")
        return created
