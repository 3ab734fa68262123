"""
Package routes for DYHE Delivery backend.
Handles package CRUD, bulk operations and the driver self-service endpoints.
"""
from fastapi import APIRouter, Depends, Query
from typing import Optional

from database import get_db
from dependencies import get_current_user, require_driver
from models.enums import PackageStatus
from models.schemas import (
    PackageCreate, PackageUpdate, BulkCreatePackagesRequest, BulkAssignPackagesRequest,
    PackageIssueUpdate, PackageStatusUpdate,
)
from services.package_service import PackageService

router = APIRouter()


def get_package_service(db=Depends(get_db)) -> PackageService:
    return PackageService(db)


# ============ PACKAGE ROUTES ============

@router.post("/packages", status_code=201, dependencies=[Depends(get_current_user)])
async def create_package(data: PackageCreate, service: PackageService = Depends(get_package_service)):
    """Create a package for a merchant"""
    return await service.create(data)


@router.post("/packages/bulk", status_code=201, dependencies=[Depends(get_current_user)])
async def bulk_create_packages(
    data: BulkCreatePackagesRequest,
    service: PackageService = Depends(get_package_service)
):
    """Create several packages for one merchant at once"""
    return await service.bulk_create(data)


@router.post("/packages/bulk-assign", dependencies=[Depends(get_current_user)])
async def bulk_assign_packages(
    data: BulkAssignPackagesRequest,
    service: PackageService = Depends(get_package_service)
):
    """Assign packages to a driver by package number"""
    return await service.bulk_assign(data)


@router.get("/packages", dependencies=[Depends(get_current_user)])
async def list_packages(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=1000),
    search: Optional[str] = None,
    merchant_id: Optional[str] = None,
    driver_id: Optional[str] = None,
    status: Optional[PackageStatus] = None,
    has_issue: Optional[bool] = None,
    service: PackageService = Depends(get_package_service)
):
    """List packages with filtering and pagination.

    driver_id=unassigned returns packages without a driver.
    """
    return await service.find_all(
        page, limit, search, merchant_id, driver_id,
        status.value if status else None, has_issue
    )


@router.get("/packages/{package_id}", dependencies=[Depends(get_current_user)])
async def get_package(package_id: str, service: PackageService = Depends(get_package_service)):
    """Get a single package"""
    return await service.find_one(package_id)


@router.patch("/packages/{package_id}", dependencies=[Depends(get_current_user)])
async def update_package(
    package_id: str,
    data: PackageUpdate,
    service: PackageService = Depends(get_package_service)
):
    """Update package details, status or assignment"""
    return await service.update(package_id, data)


@router.patch("/packages/{package_id}/issue", dependencies=[Depends(get_current_user)])
async def update_package_issue(
    package_id: str,
    data: PackageIssueUpdate,
    service: PackageService = Depends(get_package_service)
):
    """Flag or clear a delivery issue and its extra fee"""
    return await service.update_issue(package_id, data)


@router.delete("/packages/{package_id}", dependencies=[Depends(get_current_user)])
async def delete_package(package_id: str, service: PackageService = Depends(get_package_service)):
    """Delete a package"""
    return await service.remove(package_id)


# ============ DRIVER SELF-SERVICE ROUTES ============

@router.get("/driver/packages")
async def list_my_packages(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[PackageStatus] = None,
    user: dict = Depends(require_driver),
    service: PackageService = Depends(get_package_service)
):
    """List packages assigned to the signed-in driver"""
    return await service.get_driver_packages(user["id"], page, limit, status.value if status else None)


@router.get("/driver/packages/stats/summary")
async def my_package_stats(
    user: dict = Depends(require_driver),
    service: PackageService = Depends(get_package_service)
):
    """Delivery counters for the signed-in driver"""
    return await service.get_driver_stats(user["id"])


@router.get("/driver/packages/{package_id}")
async def get_my_package(
    package_id: str,
    user: dict = Depends(require_driver),
    service: PackageService = Depends(get_package_service)
):
    """Get one package assigned to the signed-in driver"""
    return await service.get_driver_package(user["id"], package_id)


@router.patch("/driver/packages/{package_id}/status")
async def update_my_package_status(
    package_id: str,
    data: PackageStatusUpdate,
    user: dict = Depends(require_driver),
    service: PackageService = Depends(get_package_service)
):
    """Update the delivery status of a package assigned to the signed-in driver"""
    return await service.update_status_by_driver(user["id"], package_id, data)
