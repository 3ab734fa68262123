"""
Driver routes for DYHE Delivery backend.
Handles driver profile management.
"""
from fastapi import APIRouter, Depends, Query
from typing import Optional

from database import get_db
from dependencies import get_current_user, require_admin
from models.schemas import DriverCreate, DriverUpdate, DriverChangePasswordRequest
from services.driver_service import DriverService

router = APIRouter(dependencies=[Depends(get_current_user)])


def get_driver_service(db=Depends(get_db)) -> DriverService:
    return DriverService(db)


@router.post("/drivers", status_code=201)
async def create_driver(data: DriverCreate, service: DriverService = Depends(get_driver_service)):
    """Create a driver, optionally with a login account"""
    return await service.create(data)


@router.get("/drivers")
async def list_drivers(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    service: DriverService = Depends(get_driver_service)
):
    """List drivers with pagination and search"""
    return await service.find_all(page, limit, search)


@router.get("/drivers/{driver_id}")
async def get_driver(driver_id: str, service: DriverService = Depends(get_driver_service)):
    """Get a driver with its packages"""
    return await service.find_one(driver_id)


@router.patch("/drivers/{driver_id}")
async def update_driver(driver_id: str, data: DriverUpdate, service: DriverService = Depends(get_driver_service)):
    """Update driver details"""
    return await service.update(driver_id, data)


@router.patch("/drivers/{driver_id}/change-password", dependencies=[Depends(require_admin)])
async def change_driver_password(
    driver_id: str,
    data: DriverChangePasswordRequest,
    service: DriverService = Depends(get_driver_service)
):
    """Reset the password of a driver's login account"""
    return await service.change_password(driver_id, data.new_password)


@router.delete("/drivers/{driver_id}")
async def delete_driver(driver_id: str, service: DriverService = Depends(get_driver_service)):
    """Delete a driver that has no packages"""
    return await service.remove(driver_id)
