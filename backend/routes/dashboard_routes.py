"""
Dashboard routes for DYHE Delivery backend.
Handles package counters and top merchant/driver rankings.
"""
from fastapi import APIRouter, Depends, Query

from database import get_db
from dependencies import get_current_user
from services.dashboard_service import DashboardService

router = APIRouter(dependencies=[Depends(get_current_user)])


def get_dashboard_service(db=Depends(get_db)) -> DashboardService:
    return DashboardService(db)


@router.get("/dashboard/stats")
async def get_stats(service: DashboardService = Depends(get_dashboard_service)):
    return await service.get_stats()


@router.get("/dashboard/recent-packages")
async def get_recent_packages(
    limit: int = Query(10, ge=1, le=100),
    service: DashboardService = Depends(get_dashboard_service)
):
    return await service.get_recent_packages(limit)


@router.get("/dashboard/package-status-distribution")
async def get_status_distribution(service: DashboardService = Depends(get_dashboard_service)):
    return await service.get_status_distribution()


@router.get("/dashboard/top-merchants")
async def get_top_merchants(
    limit: int = Query(5, ge=1, le=50),
    service: DashboardService = Depends(get_dashboard_service)
):
    return await service.get_top_merchants(limit)


@router.get("/dashboard/top-drivers")
async def get_top_drivers(
    limit: int = Query(5, ge=1, le=50),
    service: DashboardService = Depends(get_dashboard_service)
):
    return await service.get_top_drivers(limit)
