"""
Report service for DYHE Delivery backend.
Builds filtered package reports, COD analytics and driver/merchant performance.
"""
import logging
from typing import List, Optional

from errors import NotFoundError
from models.enums import PackageStatus, ReportType
from models.schemas import ReportQuery
from services.package_service import PackageService
from utils.helpers import date_range_query, parse_iso, business_today

logger = logging.getLogger(__name__)

MERCHANT_TYPES = (ReportType.merchant, ReportType.merchants)
EARLIEST_DATE = "1900-01-01"


def total_fee(package: dict) -> float:
    return float(package.get("delivery_fee") or 0) + float(package.get("extra_delivery_fee") or 0)


def report_row(package: dict, with_fee: bool = False) -> dict:
    """Flatten an enriched package into a report row."""
    delivered = package.get("status") == PackageStatus.DELIVERED.value
    row = {
        "id": package["id"],
        "package_number": package["package_number"],
        "shipment_create_date": package.get("created_at"),
        "shipment_delivery_date": package.get("updated_at") if delivered else None,
        "receiver_name": package.get("customer_name"),
        "address": package.get("customer_address"),
        "contact": package.get("customer_phone"),
        "tracking_number": package["package_number"],
        "cash_collection_amount": float(package.get("cod_amount") or 0),
        "driver_name": (package.get("driver") or {}).get("name"),
        "merchant_name": (package.get("merchant") or {}).get("name"),
        "status": package.get("status"),
    }
    if with_fee:
        row["delivery_fee"] = total_fee(package)
    return row


def calculate_analytics(packages: List[dict]) -> dict:
    statuses = [p.get("status") for p in packages]
    delivered = [p for p in packages if p.get("status") == PackageStatus.DELIVERED.value]

    average_delivery_time = None
    if delivered:
        total_seconds = sum(
            (parse_iso(p["updated_at"]) - parse_iso(p["created_at"])).total_seconds()
            for p in delivered
        )
        average_delivery_time = total_seconds / len(delivered) / 3600

    return {
        "total_packages": len(packages),
        "total_cod": sum(float(p.get("cod_amount") or 0) for p in packages),
        "total_delivery_fee": sum(total_fee(p) for p in packages),
        "delivered": len(delivered),
        "pending": sum(1 for s in statuses if s in (PackageStatus.PENDING.value, PackageStatus.ON_DELIVERY.value)),
        "failed": statuses.count(PackageStatus.FAILED.value),
        # Cancellation is not part of the package lifecycle
        "cancelled": 0,
        "returned": statuses.count(PackageStatus.RETURNED.value),
        "average_delivery_time": average_delivery_time,
    }


def _performance(packages: List[dict]) -> dict:
    total = len(packages)
    delivered = sum(1 for p in packages if p.get("status") == PackageStatus.DELIVERED.value)
    return {
        "total_packages": total,
        "delivered_packages": delivered,
        "delivery_rate": round(delivered / total * 100, 2) if total else 0,
        "total_cod": sum(float(p.get("cod_amount") or 0) for p in packages),
        "total_delivery_fee": sum(total_fee(p) for p in packages),
    }


class ReportService:
    def __init__(self, db):
        self.db = db
        self.packages = PackageService(db)

    async def _query(self, query: ReportQuery) -> dict:
        return await self.packages.build_query(
            search=query.search,
            merchant_id=query.merchant_id,
            driver_id=query.driver_id,
            start_date=query.start_date,
            end_date=query.end_date,
        )

    async def find_packages(self, query: ReportQuery, paginate: bool = True) -> List[dict]:
        """Packages matching the report filters, newest first, with merchant/driver attached."""
        mongo_query = await self._query(query)
        cursor = self.db.packages.find(mongo_query, {"_id": 0}).sort("created_at", -1)
        if paginate:
            cursor = cursor.skip((query.page - 1) * query.limit).limit(query.limit)
        packages = await cursor.to_list(None)
        return await self.packages.enrich(packages)

    async def get_reports(self, query: ReportQuery) -> dict:
        logger.info(f"Building report: {query.model_dump(exclude_none=True)}")
        mongo_query = await self._query(query)

        page_packages = await self.find_packages(query)
        all_packages = await self.db.packages.find(
            mongo_query, {"_id": 0, "status": 1, "cod_amount": 1, "delivery_fee": 1,
                          "extra_delivery_fee": 1, "created_at": 1, "updated_at": 1}
        ).to_list(None)

        with_fee = query.type in MERCHANT_TYPES
        return {
            "data": [report_row(p, with_fee=with_fee) for p in page_packages],
            "analytics": calculate_analytics(all_packages),
            "total": len(all_packages),
            "page": query.page,
            "limit": query.limit,
        }

    async def get_driver_reports(self, query: ReportQuery) -> dict:
        return await self.get_reports(query.model_copy(update={"type": ReportType.driver}))

    async def get_merchant_reports(self, query: ReportQuery) -> dict:
        return await self.get_reports(query.model_copy(update={"type": ReportType.merchant}))

    async def get_driver_performance(
        self, driver_id: Optional[str] = None, start_date: Optional[str] = None, end_date: Optional[str] = None
    ) -> List[dict]:
        drivers = await self.db.drivers.find(
            {"id": driver_id} if driver_id else {}, {"_id": 0, "id": 1, "name": 1}
        ).sort("name", 1).to_list(None)

        results = []
        for driver in drivers:
            packages = await self.db.packages.find(
                {"driver_id": driver["id"], **date_range_query("created_at", start_date, end_date)},
                {"_id": 0},
            ).sort("created_at", -1).to_list(None)
            packages = await self.packages.enrich(packages)
            results.append({
                "driver_id": driver["id"],
                "driver_name": driver["name"],
                **_performance(packages),
                "packages": [
                    {
                        "id": p["id"],
                        "package_number": p["package_number"],
                        "merchant_name": (p.get("merchant") or {}).get("name"),
                        "customer_name": p.get("customer_name"),
                        "status": p.get("status"),
                        "cod_amount": float(p.get("cod_amount") or 0),
                        "delivery_fee": total_fee(p),
                        "created_at": p.get("created_at"),
                        "updated_at": p.get("updated_at"),
                    }
                    for p in packages
                ],
            })
        return results

    async def get_merchant_performance(
        self, merchant_id: Optional[str] = None, start_date: Optional[str] = None, end_date: Optional[str] = None
    ) -> List[dict]:
        merchants = await self.db.merchants.find(
            {"id": merchant_id} if merchant_id else {}, {"_id": 0, "id": 1, "name": 1}
        ).sort("name", 1).to_list(None)

        results = []
        for merchant in merchants:
            packages = await self.db.packages.find(
                {"merchant_id": merchant["id"], **date_range_query("created_at", start_date, end_date)},
                {"_id": 0},
            ).sort("created_at", -1).to_list(None)
            packages = await self.packages.enrich(packages)
            results.append({
                "merchant_id": merchant["id"],
                "merchant_name": merchant["name"],
                **_performance(packages),
                "packages": [
                    {
                        "id": p["id"],
                        "package_number": p["package_number"],
                        "driver_name": (p.get("driver") or {}).get("name") or "Not Assigned",
                        "customer_name": p.get("customer_name"),
                        "status": p.get("status"),
                        "cod_amount": float(p.get("cod_amount") or 0),
                        "delivery_fee": total_fee(p),
                        "created_at": p.get("created_at"),
                        "updated_at": p.get("updated_at"),
                    }
                    for p in packages
                ],
            })
        return results

    async def build_merchant_workbook_data(
        self, merchant_id: str, start_date: Optional[str] = None, end_date: Optional[str] = None
    ) -> dict:
        """
        Collect the two package sets of the per-merchant export.

        Pick-up sheet: packages created on the end date (today when omitted).
        Delivery sheet: packages created from the start date (or all history) to the end date.
        """
        merchant = await self.db.merchants.find_one({"id": merchant_id}, {"_id": 0})
        if not merchant:
            raise NotFoundError(f"Merchant with ID {merchant_id} not found")

        label = end_date or business_today()
        pickup = await self.db.packages.find(
            {"merchant_id": merchant_id, **date_range_query("created_at", label, label)},
            {"_id": 0},
        ).sort("created_at", 1).to_list(None)
        history = await self.db.packages.find(
            {"merchant_id": merchant_id, **date_range_query("created_at", start_date or EARLIEST_DATE, label)},
            {"_id": 0},
        ).sort("created_at", -1).to_list(None)

        logger.info(f"Merchant workbook {merchant_id}: {len(pickup)} pick-up, {len(history)} delivery rows")
        return {
            "merchant": merchant,
            "label": label,
            "pickup_packages": await self.packages.enrich(pickup),
            "history_packages": await self.packages.enrich(history),
        }
