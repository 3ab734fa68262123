"""
Merchant routes for DYHE Delivery backend.
Handles merchant management.
"""
from fastapi import APIRouter, Depends, Query
from typing import Optional

from database import get_db
from dependencies import get_current_user
from models.schemas import MerchantCreate, MerchantUpdate
from services.merchant_service import MerchantService

router = APIRouter(dependencies=[Depends(get_current_user)])


def get_merchant_service(db=Depends(get_db)) -> MerchantService:
    return MerchantService(db)


@router.post("/merchants", status_code=201)
async def create_merchant(data: MerchantCreate, service: MerchantService = Depends(get_merchant_service)):
    """Create a merchant"""
    return await service.create(data)


@router.get("/merchants")
async def list_merchants(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    service: MerchantService = Depends(get_merchant_service)
):
    """List merchants with pagination and search"""
    return await service.find_all(page, limit, search)


@router.get("/merchants/{merchant_id}")
async def get_merchant(merchant_id: str, service: MerchantService = Depends(get_merchant_service)):
    """Get a merchant with its packages"""
    return await service.find_one(merchant_id)


@router.patch("/merchants/{merchant_id}")
async def update_merchant(
    merchant_id: str,
    data: MerchantUpdate,
    service: MerchantService = Depends(get_merchant_service)
):
    """Update merchant details"""
    return await service.update(merchant_id, data)


@router.delete("/merchants/{merchant_id}")
async def delete_merchant(merchant_id: str, service: MerchantService = Depends(get_merchant_service)):
    """Delete a merchant that has no packages"""
    return await service.remove(merchant_id)
