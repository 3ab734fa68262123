"""
Dashboard service for DYHE Delivery backend.
Aggregates package counters and rankings for the back-office home page.
"""
from typing import List

from models.enums import PackageStatus
from services.package_service import PackageService


class DashboardService:
    def __init__(self, db):
        self.db = db

    async def get_stats(self) -> dict:
        async def count(status: PackageStatus) -> int:
            return await self.db.packages.count_documents({"status": status.value})

        return {
            "total_received": await self.db.packages.count_documents({}),
            "total_delivered": await count(PackageStatus.DELIVERED),
            "total_pending": await count(PackageStatus.PENDING),
            "on_delivery": await count(PackageStatus.ON_DELIVERY),
            "total_failed": await count(PackageStatus.FAILED),
            "total_returned": await count(PackageStatus.RETURNED),
        }

    async def get_recent_packages(self, limit: int = 10) -> List[dict]:
        packages = await self.db.packages.find({}, {"_id": 0}).sort("created_at", -1).limit(limit).to_list(limit)
        return await PackageService(self.db).enrich(packages)

    async def get_status_distribution(self) -> List[dict]:
        rows = await self.db.packages.aggregate([
            {"$group": {"_id": "$status", "count": {"$sum": 1}}},
        ]).to_list(None)
        counts = {row["_id"]: row["count"] for row in rows}
        # Every status is reported, including those with no packages
        return [{"status": status.value, "count": counts.get(status.value, 0)} for status in PackageStatus]

    async def _top(self, collection: str, field: str, limit: int) -> List[dict]:
        rows = await self.db.packages.aggregate([
            {"$match": {field: {"$ne": None}}},
            {"$group": {"_id": f"${field}", "package_count": {"$sum": 1}}},
            {"$sort": {"package_count": -1, "_id": 1}},
            {"$limit": limit},
        ]).to_list(None)

        ids = [row["_id"] for row in rows]
        docs = await self.db[collection].find({"id": {"$in": ids}}, {"_id": 0}).to_list(len(ids) or 1)
        by_id = {d["id"]: d for d in docs}
        return [
            {**by_id[row["_id"]], "package_count": row["package_count"]}
            for row in rows
            if row["_id"] in by_id
        ]

    async def get_top_merchants(self, limit: int = 5) -> List[dict]:
        return await self._top("merchants", "merchant_id", limit)

    async def get_top_drivers(self, limit: int = 5) -> List[dict]:
        return await self._top("drivers", "driver_id", limit)
