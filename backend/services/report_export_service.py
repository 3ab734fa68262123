"""
Report export service for DYHE Delivery backend.
Renders delivery reports as CSV text and as openpyxl workbooks.
"""
import csv
import io
from datetime import datetime
from io import BytesIO
from typing import List, Optional

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side

from models.enums import PackageStatus
from services.report_service import calculate_analytics, report_row, total_fee
from utils.helpers import BUSINESS_TZ, format_business_date

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

HEADER_FILL = PatternFill("solid", fgColor="1E3A8A")
TOTAL_FILL = PatternFill("solid", fgColor="FEF3C7")
DETAIL_HEADER_FILL = PatternFill("solid", fgColor="DBEAFE")
WHITE_BOLD = Font(bold=True, color="FFFFFF")
BLACK_BOLD = Font(bold=True, color="000000")
THIN_SIDE = Side(style="thin", color="BDBDBD")
THIN_BORDER = Border(left=THIN_SIDE, right=THIN_SIDE, top=THIN_SIDE, bottom=THIN_SIDE)

PACKAGE_HEADERS = [
    "ID", "Shipment Create Date", "Shipment Delivery Date", "Receiver Name",
    "Address", "Contact", "Tracking#", "Cash Collection Amount",
    "Driver", "Merchant", "Status",
]


def format_datetime(value: Optional[str]) -> str:
    """22-06-25 12:06 PM style, in the business timezone."""
    return format_business_date(value, "%d-%m-%y %I:%M %p")


def sheet_date(value: Optional[datetime] = None) -> str:
    """DD-Mon-YY label used in sheet names."""
    return (value or datetime.now(BUSINESS_TZ)).strftime("%d-%b-%y")


def _row_values(index: int, row: dict) -> list:
    return [
        index,
        format_datetime(row["shipment_create_date"]),
        format_datetime(row["shipment_delivery_date"]) if row["shipment_delivery_date"] else "Not Delivered",
        row["receiver_name"] or "",
        row["address"] or "",
        row["contact"] or "",
        row["tracking_number"],
        round(row["cash_collection_amount"], 2),
        row["driver_name"] or "Not Assigned",
        row["merchant_name"] or "",
        row["status"],
    ]


# ============ CSV ============

def build_report_csv(report: dict) -> str:
    """Summary block followed by the detailed package list."""
    analytics = report["analytics"]
    generated = datetime.now(BUSINESS_TZ).strftime("%Y-%m-%d at %H:%M:%S")

    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(["DYHE DELIVERY REPORT"])
    writer.writerow([f"Generated on: {generated}"])
    writer.writerow([])
    writer.writerow(["SUMMARY:"])
    writer.writerow(["Total Package", analytics["total_packages"]])
    writer.writerow(["Total Amount", f"${analytics['total_cod']:.2f}"])
    writer.writerow(["Delivered Packages", analytics["delivered"]])
    writer.writerow(["Pending Packages", analytics["pending"]])
    writer.writerow(["Failed Packages", analytics["failed"]])
    writer.writerow(["Returned Packages", analytics["returned"]])
    writer.writerow([])
    writer.writerow(["DETAILED PACKAGE LIST:"])
    writer.writerow([])
    writer.writerow(PACKAGE_HEADERS)
    for index, row in enumerate(report["data"], start=1):
        values = _row_values(index, row)
        values[7] = f"${values[7]:.2f}"
        writer.writerow(values)
    writer.writerow([])
    writer.writerow(["END OF REPORT"])
    return output.getvalue()


# ============ EXCEL ============

def _autosize(ws, max_width: int = 50):
    for column in ws.columns:
        max_length = 0
        column_letter = column[0].column_letter
        for cell in column:
            if cell.value is not None:
                max_length = max(max_length, len(str(cell.value)))
        ws.column_dimensions[column_letter].width = min(max_length + 2, max_width)


def _style_header(cell, fill=HEADER_FILL, font=WHITE_BOLD):
    cell.fill = fill
    cell.font = font
    cell.border = THIN_BORDER
    cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)


def _write_pickup_sheet(ws, rows: List[dict]):
    for col_idx, header in enumerate(PACKAGE_HEADERS, start=1):
        _style_header(ws.cell(row=1, column=col_idx, value=header))

    for row_idx, row in enumerate(rows, start=2):
        for col_idx, value in enumerate(_row_values(row_idx - 1, row), start=1):
            ws.cell(row=row_idx, column=col_idx, value=value).border = THIN_BORDER

    total_row = len(rows) + 2
    totals = [
        ("Total Package", len(rows)),
        ("Total Amount", round(sum(r["cash_collection_amount"] for r in rows), 2)),
    ]
    for offset, (label, value) in enumerate(totals):
        for col_idx, cell_value in ((7, label), (8, value)):
            cell = ws.cell(row=total_row + offset, column=col_idx, value=cell_value)
            cell.fill = TOTAL_FILL
            cell.font = BLACK_BOLD
            cell.border = THIN_BORDER
    _autosize(ws)


def _write_delivery_sheet(ws, packages: List[dict], report_date: str, merchant: Optional[dict] = None):
    analytics = calculate_analytics(packages)
    delivered = analytics["delivered"]

    info = [
        ("Merchant", merchant["name"] if merchant else "All merchants"),
        ("Bank account", f"{merchant.get('bank', '')} {merchant.get('bank_account_number', '')} {merchant.get('bank_account_name', '')}".strip() if merchant else ""),
        ("Report date", report_date),
    ]
    for row_idx, (label, value) in enumerate(info, start=1):
        _style_header(ws.cell(row=row_idx, column=1, value=label))
        ws.cell(row=row_idx, column=2, value=value).font = BLACK_BOLD

    status_headers = ["Total Packages", "Delivered", "Not Finished"]
    for col_idx, header in enumerate(status_headers, start=1):
        _style_header(ws.cell(row=5, column=col_idx, value=header))
    for col_idx, value in enumerate([analytics["total_packages"], delivered, analytics["total_packages"] - delivered], start=1):
        ws.cell(row=6, column=col_idx, value=value).border = THIN_BORDER

    delivered_packages = [p for p in packages if p.get("status") == PackageStatus.DELIVERED.value]
    delivered_cod = round(sum(float(p.get("cod_amount") or 0) for p in delivered_packages), 2)
    delivered_fees = round(sum(total_fee(p) for p in delivered_packages), 2)
    financial = [
        ("Total COD", round(analytics["total_cod"], 2)),
        ("Collected COD", delivered_cod),
        ("Delivery Fees", delivered_fees),
        ("Net Payable", round(delivered_cod - delivered_fees, 2)),
    ]
    for col_idx, (header, value) in enumerate(financial, start=1):
        _style_header(ws.cell(row=8, column=col_idx, value=header))
        cell = ws.cell(row=9, column=col_idx, value=value)
        cell.fill = TOTAL_FILL
        cell.font = BLACK_BOLD
        cell.border = THIN_BORDER

    detail_headers = ["No", "Shipment Create Date", "Receiver Name", "Address", "Contact",
                      "Tracking#", "COD", "Delivery Fee", "Driver", "Status"]
    for col_idx, header in enumerate(detail_headers, start=1):
        _style_header(ws.cell(row=11, column=col_idx, value=header), fill=DETAIL_HEADER_FILL, font=BLACK_BOLD)

    for index, package in enumerate(packages, start=1):
        values = [
            index,
            format_datetime(package.get("created_at")),
            package.get("customer_name", ""),
            package.get("customer_address", ""),
            package.get("customer_phone", ""),
            package["package_number"],
            round(float(package.get("cod_amount") or 0), 2),
            round(total_fee(package), 2),
            (package.get("driver") or {}).get("name") or "Not Assigned",
            package.get("status"),
        ]
        for col_idx, value in enumerate(values, start=1):
            ws.cell(row=11 + index, column=col_idx, value=value).border = THIN_BORDER
    _autosize(ws)


def build_delivery_workbook(
    pickup_packages: List[dict],
    delivery_packages: List[dict],
    label_date: Optional[datetime] = None,
    merchant: Optional[dict] = None,
) -> BytesIO:
    """
    Build the two-sheet delivery workbook.

    Args:
        pickup_packages: enriched packages for the "Pick up" sheet
        delivery_packages: enriched packages for the "Delivery report" sheet
        label_date: date used in sheet names (today in the business timezone by default)
        merchant: merchant document when exporting for a single merchant

    Returns:
        BytesIO positioned at the start of the .xlsx content
    """
    label = sheet_date(label_date)

    wb = Workbook()
    pickup_ws = wb.active
    pickup_ws.title = f"Pick up {label}"
    _write_pickup_sheet(pickup_ws, [report_row(p) for p in pickup_packages])

    delivery_ws = wb.create_sheet(f"Delivery report {label}")
    report_date = (label_date or datetime.now(BUSINESS_TZ)).strftime("%m/%d/%Y")
    _write_delivery_sheet(delivery_ws, delivery_packages, report_date, merchant)

    output = BytesIO()
    wb.save(output)
    output.seek(0)
    return output
