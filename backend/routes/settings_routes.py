"""
Settings routes for DYHE Delivery backend.
Handles the key/value settings store; public keys are readable without login.
"""
from fastapi import APIRouter, Depends

from database import get_db
from dependencies import require_admin
from models.schemas import SettingCreate, SettingUpdate, BulkSettingsUpdate
from services.settings_service import SettingsService

router = APIRouter()


def get_settings_service(db=Depends(get_db)) -> SettingsService:
    return SettingsService(db)


@router.get("/settings/public")
async def get_public_settings(service: SettingsService = Depends(get_settings_service)):
    """Public settings (company name, phone, address) as a key/value object"""
    return await service.get_public_as_object()


@router.get("/settings", dependencies=[Depends(require_admin)])
async def get_all_settings(service: SettingsService = Depends(get_settings_service)):
    return await service.get_all()


@router.get("/settings/object", dependencies=[Depends(require_admin)])
async def get_settings_object(service: SettingsService = Depends(get_settings_service)):
    """All settings folded into one key/value object"""
    return await service.get_all_as_object()


@router.get("/settings/category/{category}", dependencies=[Depends(require_admin)])
async def get_settings_by_category(category: str, service: SettingsService = Depends(get_settings_service)):
    return await service.get_by_category(category)


@router.get("/settings/key/{key}", dependencies=[Depends(require_admin)])
async def get_setting(key: str, service: SettingsService = Depends(get_settings_service)):
    return await service.get_by_key(key)


@router.post("/settings", status_code=201, dependencies=[Depends(require_admin)])
async def create_setting(data: SettingCreate, service: SettingsService = Depends(get_settings_service)):
    return await service.create(data)


@router.post("/settings/bulk-update", dependencies=[Depends(require_admin)])
async def bulk_update_settings(data: BulkSettingsUpdate, service: SettingsService = Depends(get_settings_service)):
    """Upsert many key/value pairs at once"""
    return await service.bulk_update(data)


@router.put("/settings/{key}", dependencies=[Depends(require_admin)])
async def update_setting(key: str, data: SettingUpdate, service: SettingsService = Depends(get_settings_service)):
    return await service.update(key, data)


@router.delete("/settings/{key}", dependencies=[Depends(require_admin)])
async def delete_setting(key: str, service: SettingsService = Depends(get_settings_service)):
    return await service.delete(key)
