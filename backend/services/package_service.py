"""
Package service for DYHE Delivery backend.
Handles package CRUD, bulk creation/assignment, issue flags and driver self-service.
"""
import logging
from typing import List, Optional

from errors import ForbiddenError, NotFoundError, ValidationError
from models.enums import PackageStatus
from models.schemas import (
    PackageCreate, PackageUpdate, BulkCreatePackagesRequest, BulkAssignPackagesRequest,
    PackageIssueUpdate, PackageStatusUpdate,
)
from services.package_number_service import generate_unique_package_number
from utils.helpers import new_id, now_iso, pagination_meta, search_filter, date_range_query, business_today

logger = logging.getLogger(__name__)

MERCHANT_SUMMARY = {"_id": 0, "id": 1, "name": 1, "email": 1, "phone": 1}
DRIVER_SUMMARY = {"_id": 0, "id": 1, "name": 1, "email": 1, "phone": 1}
PACKAGE_SEARCH_FIELDS = ["package_number", "customer_name", "customer_phone", "customer_address"]
NULLABLE_FIELDS = ("driver_id", "notes")


def _new_package_doc(package_number: str, merchant_id: str, driver_id: Optional[str], status: str, **fields) -> dict:
    timestamp = now_iso()
    return {
        "id": new_id(),
        "package_number": package_number,
        "customer_name": fields["customer_name"],
        "customer_phone": fields["customer_phone"],
        "customer_address": fields["customer_address"],
        "cod_amount": fields.get("cod_amount") or 0,
        "delivery_fee": fields.get("delivery_fee") or 0,
        "status": status,
        "has_issue": False,
        "issue_note": None,
        "extra_delivery_fee": 0,
        "notes": fields.get("notes"),
        "merchant_id": merchant_id,
        "driver_id": driver_id,
        "created_at": timestamp,
        "updated_at": timestamp,
    }


class PackageService:
    def __init__(self, db):
        self.db = db

    # ============ HELPERS ============

    async def _require_merchant(self, merchant_id: str) -> dict:
        merchant = await self.db.merchants.find_one({"id": merchant_id}, MERCHANT_SUMMARY)
        if not merchant:
            raise NotFoundError(f"Merchant with ID {merchant_id} not found")
        return merchant

    async def _require_driver(self, driver_id: str) -> dict:
        driver = await self.db.drivers.find_one({"id": driver_id}, DRIVER_SUMMARY)
        if not driver:
            raise NotFoundError(f"Driver with ID {driver_id} not found")
        return driver

    async def _get(self, package_id: str) -> dict:
        package = await self.db.packages.find_one({"id": package_id}, {"_id": 0})
        if not package:
            raise NotFoundError(f"Package with ID {package_id} not found")
        return package

    async def enrich(self, packages: List[dict]) -> List[dict]:
        """Attach merchant and driver summaries to each package."""
        merchant_ids = list(set(p["merchant_id"] for p in packages if p.get("merchant_id")))
        driver_ids = list(set(p["driver_id"] for p in packages if p.get("driver_id")))

        merchants = {}
        if merchant_ids:
            docs = await self.db.merchants.find({"id": {"$in": merchant_ids}}, MERCHANT_SUMMARY).to_list(len(merchant_ids))
            merchants = {m["id"]: m for m in docs}

        drivers = {}
        if driver_ids:
            docs = await self.db.drivers.find({"id": {"$in": driver_ids}}, DRIVER_SUMMARY).to_list(len(driver_ids))
            drivers = {d["id"]: d for d in docs}

        return [
            {
                **p,
                "merchant": merchants.get(p.get("merchant_id")),
                "driver": drivers.get(p.get("driver_id")),
            }
            for p in packages
        ]

    async def _enrich_one(self, package: dict) -> dict:
        return (await self.enrich([package]))[0]

    async def build_query(
        self,
        search: Optional[str] = None,
        merchant_id: Optional[str] = None,
        driver_id: Optional[str] = None,
        status: Optional[str] = None,
        has_issue: Optional[bool] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> dict:
        """Build the packages filter shared by listings, reports and exports."""
        query = {}
        if merchant_id:
            query["merchant_id"] = merchant_id
        if driver_id:
            query["driver_id"] = None if driver_id == "unassigned" else driver_id
        if status:
            query["status"] = status
        if has_issue is not None:
            query["has_issue"] = has_issue
        query.update(date_range_query("created_at", start_date, end_date))

        if search:
            conditions = search_filter(search, PACKAGE_SEARCH_FIELDS)["$or"]
            matching_merchants = await self.db.merchants.find(
                search_filter(search, ["name", "phone"]),
                {"_id": 0, "id": 1},
            ).to_list(1000)
            if matching_merchants:
                conditions.append({"merchant_id": {"$in": [m["id"] for m in matching_merchants]}})
            query["$or"] = conditions
        return query

    # ============ CRUD ============

    async def create(self, data: PackageCreate) -> dict:
        await self._require_merchant(data.merchant_id)
        if data.driver_id:
            await self._require_driver(data.driver_id)

        package_number = await generate_unique_package_number(self.db)
        package_doc = _new_package_doc(
            package_number,
            data.merchant_id,
            data.driver_id,
            data.status.value,
            **data.model_dump(exclude={"merchant_id", "driver_id", "status"}),
        )
        await self.db.packages.insert_one(package_doc)
        package_doc.pop("_id", None)

        logger.info(f"Created package {package_number}")
        return await self._enrich_one(package_doc)

    async def bulk_create(self, data: BulkCreatePackagesRequest) -> dict:
        if not data.packages:
            raise ValidationError("At least one package is required")

        for index, item in enumerate(data.packages, start=1):
            if not (item.customer_name.strip() and item.customer_phone.strip() and item.customer_address.strip()):
                raise ValidationError(f"Package {index}: customer name, phone and address are required")

        await self._require_merchant(data.merchant_id)
        if data.driver_id:
            await self._require_driver(data.driver_id)

        taken = set()
        package_docs = []
        for item in data.packages:
            package_number = await generate_unique_package_number(self.db, taken)
            taken.add(package_number)
            package_docs.append(_new_package_doc(
                package_number,
                data.merchant_id,
                data.driver_id,
                data.status.value,
                **item.model_dump(),
            ))

        await self.db.packages.insert_many(package_docs)
        for doc in package_docs:
            doc.pop("_id", None)

        logger.info(f"Bulk created {len(package_docs)} packages for merchant {data.merchant_id}")
        return {
            "message": f"Successfully created {len(package_docs)} packages",
            "packages": await self.enrich(package_docs),
            "count": len(package_docs),
        }

    async def find_all(
        self,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
        merchant_id: Optional[str] = None,
        driver_id: Optional[str] = None,
        status: Optional[str] = None,
        has_issue: Optional[bool] = None,
    ) -> dict:
        query = await self.build_query(search, merchant_id, driver_id, status, has_issue)
        skip = (page - 1) * limit

        total = await self.db.packages.count_documents(query)
        packages = await self.db.packages.find(query, {"_id": 0}).sort(
            "created_at", -1
        ).skip(skip).limit(limit).to_list(limit)

        return {"items": await self.enrich(packages), "pagination": pagination_meta(page, limit, total)}

    async def find_one(self, package_id: str) -> dict:
        return await self._enrich_one(await self._get(package_id))

    async def update(self, package_id: str, data: PackageUpdate) -> dict:
        await self._get(package_id)

        update_dict = data.model_dump(mode="json", exclude_unset=True)
        if "merchant_id" in update_dict:
            if not update_dict["merchant_id"]:
                raise ValidationError("A package must belong to a merchant")
            await self._require_merchant(update_dict["merchant_id"])
        if update_dict.get("driver_id"):
            await self._require_driver(update_dict["driver_id"])

        update_dict = {k: v for k, v in update_dict.items() if v is not None or k in NULLABLE_FIELDS}
        update_dict["updated_at"] = now_iso()
        await self.db.packages.update_one({"id": package_id}, {"$set": update_dict})

        return await self.find_one(package_id)

    async def update_issue(self, package_id: str, data: PackageIssueUpdate) -> dict:
        await self._get(package_id)
        await self.db.packages.update_one(
            {"id": package_id},
            {"$set": {
                "has_issue": data.has_issue,
                "issue_note": data.issue_note,
                "extra_delivery_fee": data.extra_delivery_fee,
                "updated_at": now_iso(),
            }},
        )
        return await self.find_one(package_id)

    async def remove(self, package_id: str) -> dict:
        result = await self.db.packages.delete_one({"id": package_id})
        if result.deleted_count == 0:
            raise NotFoundError(f"Package with ID {package_id} not found")
        return {"message": "Package deleted successfully"}

    async def bulk_assign(self, data: BulkAssignPackagesRequest) -> dict:
        """Assign packages (by package number) to a driver and move them to the given status."""
        await self._require_driver(data.driver_id)

        numbers = list(dict.fromkeys(n.strip() for n in data.package_numbers if n.strip()))
        if not numbers:
            raise ValidationError("At least one package number is required")

        packages = await self.db.packages.find(
            {"package_number": {"$in": numbers}}, {"_id": 0}
        ).to_list(len(numbers))

        found = {p["package_number"] for p in packages}
        missing = [n for n in numbers if n not in found]
        if missing:
            raise ValidationError(f"Packages not found: {', '.join(missing)}")

        taken = [p["package_number"] for p in packages if p.get("driver_id") and p["driver_id"] != data.driver_id]
        if taken:
            raise ValidationError(f"Some packages are already assigned to other drivers: {', '.join(taken)}")

        await self.db.packages.update_many(
            {"package_number": {"$in": numbers}},
            {"$set": {"driver_id": data.driver_id, "status": data.status.value, "updated_at": now_iso()}},
        )
        updated = await self.db.packages.find(
            {"package_number": {"$in": numbers}}, {"_id": 0}
        ).to_list(len(numbers))

        logger.info(f"Assigned {len(updated)} packages to driver {data.driver_id}")
        return {
            "message": f"Successfully assigned {len(updated)} packages to driver",
            "packages": await self.enrich(updated),
            "count": len(updated),
        }

    # ============ DRIVER SELF-SERVICE ============

    async def _driver_for_user(self, user_id: str) -> dict:
        driver = await self.db.drivers.find_one({"user_id": user_id}, {"_id": 0})
        if not driver:
            raise NotFoundError("Driver profile not found")
        return driver

    async def get_driver_packages(self, user_id: str, page: int = 1, limit: int = 20, status: Optional[str] = None) -> dict:
        driver = await self._driver_for_user(user_id)
        query = {"driver_id": driver["id"]}
        if status:
            query["status"] = status
        skip = (page - 1) * limit

        total = await self.db.packages.count_documents(query)
        packages = await self.db.packages.find(query, {"_id": 0}).sort(
            "created_at", -1
        ).skip(skip).limit(limit).to_list(limit)

        return {"items": await self.enrich(packages), "pagination": pagination_meta(page, limit, total)}

    async def get_driver_package(self, user_id: str, package_id: str) -> dict:
        driver = await self._driver_for_user(user_id)
        package = await self.db.packages.find_one({"id": package_id, "driver_id": driver["id"]}, {"_id": 0})
        if not package:
            raise NotFoundError("Package not found or not assigned to you")
        return await self._enrich_one(package)

    async def update_status_by_driver(self, user_id: str, package_id: str, data: PackageStatusUpdate) -> dict:
        driver = await self._driver_for_user(user_id)
        package = await self._get(package_id)
        if package.get("driver_id") != driver["id"]:
            raise ForbiddenError("You can only update packages assigned to you")

        update_dict = {"status": data.status.value, "updated_at": now_iso()}
        if data.notes is not None:
            update_dict["notes"] = data.notes
        await self.db.packages.update_one({"id": package_id}, {"$set": update_dict})

        logger.info(f"Driver {driver['id']} set package {package['package_number']} to {data.status.value}")
        return await self.find_one(package_id)

    async def get_driver_stats(self, user_id: str) -> dict:
        driver = await self._driver_for_user(user_id)
        base = {"driver_id": driver["id"]}

        async def count(status: PackageStatus) -> int:
            return await self.db.packages.count_documents({**base, "status": status.value})

        today = business_today()
        delivered_today = await self.db.packages.count_documents({
            **base,
            "status": PackageStatus.DELIVERED.value,
            **date_range_query("updated_at", today, today),
        })
        delivered = await self.db.packages.find(
            {**base, "status": PackageStatus.DELIVERED.value}, {"_id": 0, "cod_amount": 1}
        ).to_list(None)

        return {
            "total": await self.db.packages.count_documents(base),
            "delivering": await count(PackageStatus.ON_DELIVERY),
            "delivered": len(delivered),
            "cancelled": await count(PackageStatus.FAILED),
            "returned": await count(PackageStatus.RETURNED),
            "today_delivered": delivered_today,
            "total_cod": round(sum(p.get("cod_amount", 0) or 0 for p in delivered), 2),
        }
