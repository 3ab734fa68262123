"""
Models package for DYHE Delivery backend.
Exports all Enums for use throughout the application.
"""

# Export all enums
from models.enums import (
    Role,
    Gender,
    Status,
    DriverStatus,
    Bank,
    PackageStatus,
    ReportType,
    ADMIN_ROLES,
)

# Note: schemas are imported from models.schemas as needed
# to avoid circular imports and keep imports explicit

__all__ = [
    # Enums
    "Role",
    "Gender",
    "Status",
    "DriverStatus",
    "Bank",
    "PackageStatus",
    "ReportType",
    "ADMIN_ROLES",
]
