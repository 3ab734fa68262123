"""
Enum classes for DYHE Delivery backend.
Defines all roles, status types and classifications used throughout the system.
"""
from enum import Enum


class Role(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    USER = "USER"
    MERCHANT = "MERCHANT"
    DRIVER = "DRIVER"


class Gender(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"


class Status(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"


class DriverStatus(str, Enum):
    ACTIVE = "ACTIVE"
    ON_DUTY = "ON_DUTY"
    OFF_DUTY = "OFF_DUTY"
    SUSPENDED = "SUSPENDED"


class Bank(str, Enum):
    ABA = "ABA"
    ACELEDA = "ACELEDA"
    WING = "WING"
    CANADIA = "CANADIA"
    SATHAPANA = "SATHAPANA"


class PackageStatus(str, Enum):
    PENDING = "PENDING"
    ON_DELIVERY = "ON_DELIVERY"
    DELIVERED = "DELIVERED"
    FAILED = "FAILED"
    RETURNED = "RETURNED"


class ReportType(str, Enum):
    driver = "driver"
    drivers = "drivers"
    merchant = "merchant"
    merchants = "merchants"
    package = "package"
    packages = "packages"
    summary = "summary"


ADMIN_ROLES = (Role.SUPER_ADMIN, Role.ADMIN)
