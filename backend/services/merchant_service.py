"""
Merchant service for DYHE Delivery backend.
Handles merchant CRUD with uniqueness and deletion guards.
"""
import logging

from pymongo.errors import DuplicateKeyError

from errors import ConflictError, NotFoundError
from models.schemas import MerchantCreate, MerchantUpdate
from utils.helpers import new_id, now_iso, pagination_meta, search_filter

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ["name", "email", "phone", "address"]
CONFLICT_MESSAGE = "Merchant with this email or bank account number already exists"
NULLABLE_FIELDS = ("google_maps_url", "latitude", "longitude")


class MerchantService:
    def __init__(self, db):
        self.db = db

    async def create(self, data: MerchantCreate) -> dict:
        conditions = [{"bank_account_number": data.bank_account_number}]
        if data.email:
            conditions.append({"email": data.email})
        existing = await self.db.merchants.find_one({"$or": conditions}, {"_id": 0, "id": 1})
        if existing:
            raise ConflictError(CONFLICT_MESSAGE)

        timestamp = now_iso()
        merchant_doc = data.model_dump(mode="json")
        if merchant_doc.get("email") is None:
            merchant_doc.pop("email", None)
        merchant_doc.update({
            "id": new_id(),
            "created_at": timestamp,
            "updated_at": timestamp,
        })
        try:
            await self.db.merchants.insert_one(merchant_doc)
        except DuplicateKeyError:
            raise ConflictError(CONFLICT_MESSAGE)

        merchant_doc.pop("_id", None)
        logger.info(f"Created merchant {merchant_doc['name']} ({merchant_doc['id']})")
        return merchant_doc

    async def find_all(self, page: int = 1, limit: int = 10, search: str = None) -> dict:
        query = search_filter(search, SEARCH_FIELDS)
        skip = (page - 1) * limit

        total = await self.db.merchants.count_documents(query)
        merchants = await self.db.merchants.find(query, {"_id": 0}).sort(
            "created_at", -1
        ).skip(skip).limit(limit).to_list(limit)

        return {"items": merchants, "pagination": pagination_meta(page, limit, total)}

    async def _get(self, merchant_id: str) -> dict:
        merchant = await self.db.merchants.find_one({"id": merchant_id}, {"_id": 0})
        if not merchant:
            raise NotFoundError(f"Merchant with ID {merchant_id} not found")
        return merchant

    async def find_one(self, merchant_id: str) -> dict:
        merchant = await self._get(merchant_id)
        packages = await self.db.packages.find(
            {"merchant_id": merchant_id}, {"_id": 0}
        ).sort("created_at", -1).to_list(1000)
        return {**merchant, "packages": packages}

    async def update(self, merchant_id: str, data: MerchantUpdate) -> dict:
        await self._get(merchant_id)

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
            existing = await self.db.merchants.find_one(
                {"$or": collisions, "id": {"$ne": merchant_id}},
                {"_id": 0, "id": 1},
            )
            if existing:
                raise ConflictError(CONFLICT_MESSAGE)

        update_dict["updated_at"] = now_iso()
        operation = {"$set": update_dict}
        if unset_fields:
            operation["$unset"] = unset_fields
        try:
            await self.db.merchants.update_one({"id": merchant_id}, operation)
        except DuplicateKeyError:
            raise ConflictError(CONFLICT_MESSAGE)

        return await self._get(merchant_id)

    async def remove(self, merchant_id: str) -> dict:
        await self._get(merchant_id)

        package_count = await self.db.packages.count_documents({"merchant_id": merchant_id})
        if package_count > 0:
            raise ConflictError("Cannot delete merchant with existing packages. Please remove all packages first.")

        await self.db.merchants.delete_one({"id": merchant_id})
        logger.info(f"Deleted merchant {merchant_id}")
        return {"message": "Merchant deleted successfully"}
