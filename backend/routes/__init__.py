"""
Routes package for DYHE Delivery backend.
Exports all route modules for easy import in main.py.
"""
from routes import (
    auth_routes,
    user_routes,
    driver_routes,
    merchant_routes,
    package_routes,
    dashboard_routes,
    report_routes,
    settings_routes,
)

__all__ = [
    "auth_routes",
    "user_routes",
    "driver_routes",
    "merchant_routes",
    "package_routes",
    "dashboard_routes",
    "report_routes",
    "settings_routes",
]
