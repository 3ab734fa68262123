"""
Report routes for DYHE Delivery backend.
Handles package reports, performance summaries and CSV/Excel exports.
"""
from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from typing import Annotated, Optional
from datetime import datetime
from urllib.parse import quote

from database import get_db
from dependencies import get_current_user
from models.schemas import ReportQuery
from services.report_service import ReportService
from services.report_export_service import (
    XLSX_MEDIA_TYPE, build_report_csv, build_delivery_workbook, sheet_date,
)
from utils.helpers import BUSINESS_TZ

router = APIRouter(dependencies=[Depends(get_current_user)])

ReportParams = Annotated[ReportQuery, Query()]


def get_report_service(db=Depends(get_db)) -> ReportService:
    return ReportService(db)


# ============ REPORTS ============

@router.get("/reports")
async def get_reports(query: ReportParams, service: ReportService = Depends(get_report_service)):
    """Filtered package report with COD analytics"""
    return await service.get_reports(query)


@router.get("/reports/drivers")
async def get_driver_reports(query: ReportParams, service: ReportService = Depends(get_report_service)):
    return await service.get_driver_reports(query)


@router.get("/reports/merchants")
async def get_merchant_reports(query: ReportParams, service: ReportService = Depends(get_report_service)):
    return await service.get_merchant_reports(query)


@router.get("/reports/driver-performance")
async def get_driver_performance(
    driver_id: Optional[str] = None,
    start_date: Optional[str] = Query(None, pattern=r"^\d{4}-\d{2}-\d{2}$"),
    end_date: Optional[str] = Query(None, pattern=r"^\d{4}-\d{2}-\d{2}$"),
    service: ReportService = Depends(get_report_service)
):
    """Per-driver totals, delivery rate and packages"""
    return await service.get_driver_performance(driver_id, start_date, end_date)


@router.get("/reports/merchant-performance")
async def get_merchant_performance(
    merchant_id: Optional[str] = None,
    start_date: Optional[str] = Query(None, pattern=r"^\d{4}-\d{2}-\d{2}$"),
    end_date: Optional[str] = Query(None, pattern=r"^\d{4}-\d{2}-\d{2}$"),
    service: ReportService = Depends(get_report_service)
):
    """Per-merchant totals, delivery rate and packages"""
    return await service.get_merchant_performance(merchant_id, start_date, end_date)


# ============ EXPORTS ============

@router.get("/reports/export/csv")
async def export_reports_csv(query: ReportParams, service: ReportService = Depends(get_report_service)):
    """Export the filtered report as CSV"""
    report = await service.get_reports(query)
    content = build_report_csv(report)
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=delivery_report.csv"}
    )


@router.get("/reports/export/excel")
async def export_reports_excel(query: ReportParams, service: ReportService = Depends(get_report_service)):
    """Export the filtered report as a two-sheet Excel workbook"""
    packages = await service.find_packages(query)
    output = build_delivery_workbook(packages, packages)
    return StreamingResponse(
        output,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": "attachment; filename=DeliveryReport.xlsx"}
    )


@router.get("/reports/export/excel-per-merchant")
async def export_merchant_excel(
    merchant_id: str,
    start_date: Optional[str] = Query(None, pattern=r"^\d{4}-\d{2}-\d{2}$"),
    end_date: Optional[str] = Query(None, pattern=r"^\d{4}-\d{2}-\d{2}$"),
    service: ReportService = Depends(get_report_service)
):
    """Export one merchant's pick-up (end date) and delivery (range) sheets"""
    data = await service.build_merchant_workbook_data(merchant_id, start_date, end_date)
    label_date = datetime.strptime(data["label"], "%Y-%m-%d").replace(tzinfo=BUSINESS_TZ)
    output = build_delivery_workbook(
        data["pickup_packages"],
        data["history_packages"],
        label_date=label_date,
        merchant=data["merchant"],
    )

    # Header values are latin-1; the full name travels in filename*
    name = data["merchant"]["name"]
    safe_name = "".join(c for c in name if c.isascii() and (c.isalnum() or c in "-_")) or "merchant"
    suffix = f"_{sheet_date(label_date)}.xlsx"
    disposition = f"attachment; filename={safe_name}{suffix}; filename*=UTF-8''{quote(name + suffix)}"
    return StreamingResponse(
        output,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": disposition}
    )
