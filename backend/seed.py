#!/usr/bin/env python3
"""
Seed script for DYHE Delivery backend.

Ensures indexes, the default super admin and default settings exist.
With --demo it also resets merchants, drivers and packages and loads demo data.
"""
import argparse
import asyncio
import logging
import random

from database import db, ensure_indexes
from main import create_default_admin
from models.enums import Bank, DriverStatus, PackageStatus
from models.schemas import BulkCreatePackagesRequest, BulkPackageItem, DriverCreate, MerchantCreate
from services.driver_service import DriverService
from services.merchant_service import MerchantService
from services.package_service import PackageService
from services.settings_service import SettingsService

logger = logging.getLogger("seed")

DEMO_MERCHANTS = 5
DEMO_DRIVERS = 3
DEMO_PACKAGES_PER_MERCHANT = 8


async def seed_demo_data(database) -> dict:
    """Replace merchants, drivers and packages with a small demo data set"""
    await database.packages.delete_many({})
    await database.drivers.delete_many({})
    await database.merchants.delete_many({})

    banks = list(Bank)
    merchant_service = MerchantService(database)
    merchants = []
    for i in range(1, DEMO_MERCHANTS + 1):
        merchants.append(await merchant_service.create(MerchantCreate(
            name=f"Merchant {i}",
            email=f"merchant{i}@dyhe.com",
            phone=f"0900000{i:03d}",
            deliver_fee=1.5,
            bank=banks[i % len(banks)],
            bank_account_number=f"10000000{i:03d}",
            bank_account_name=f"Merchant {i}",
            address=f"#{i} Street {100 + i}, Phnom Penh",
            latitude=11.5564,
            longitude=104.9282,
        )))

    driver_service = DriverService(database)
    drivers = []
    for i in range(1, DEMO_DRIVERS + 1):
        drivers.append(await driver_service.create(DriverCreate(
            name=f"Driver {i}",
            phone=f"0800000{i:03d}",
            deliver_fee=1.0,
            driver_status=DriverStatus.ACTIVE,
            bank=banks[i % len(banks)],
            bank_account_number=f"20000000{i:03d}",
            bank_account_name=f"Driver {i}",
        )))

    package_service = PackageService(database)
    statuses = list(PackageStatus)
    created = 0
    for merchant in merchants:
        driver = random.choice(drivers)
        result = await package_service.bulk_create(BulkCreatePackagesRequest(
            merchant_id=merchant["id"],
            driver_id=driver["id"],
            status=random.choice(statuses),
            packages=[
                BulkPackageItem(
                    customer_name=f"Customer {n}",
                    customer_phone=f"0120000{n:03d}",
                    customer_address=f"House {n}, Phnom Penh",
                    cod_amount=round(random.uniform(0, 50), 2),
                    delivery_fee=merchant["deliver_fee"],
                )
                for n in range(1, DEMO_PACKAGES_PER_MERCHANT + 1)
            ],
        ))
        created += result["count"]

    return {"merchants": len(merchants), "drivers": len(drivers), "packages": created}


async def run(demo: bool = False):
    await ensure_indexes(db)
    await create_default_admin(db)
    await SettingsService(db).seed_defaults()
    if demo:
        counts = await seed_demo_data(db)
        logger.info(f"Demo data loaded: {counts}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the DYHE Delivery database")
    parser.add_argument("--demo", action="store_true", help="reset and load demo merchants, drivers and packages")
    args = parser.parse_args()
    asyncio.run(run(demo=args.demo))
