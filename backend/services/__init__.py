"""
Services package for DYHE Delivery backend.
Exports all service modules.
"""
from services import (
    auth_service,
    user_service,
    driver_service,
    merchant_service,
    package_service,
    package_number_service,
    dashboard_service,
    report_service,
    report_export_service,
    settings_service,
)

__all__ = [
    "auth_service",
    "user_service",
    "driver_service",
    "merchant_service",
    "package_service",
    "package_number_service",
    "dashboard_service",
    "report_service",
    "report_export_service",
    "settings_service",
]
