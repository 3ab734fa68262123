"""
Pydantic model schemas for DYHE Delivery backend.
Defines all data validation models used in API requests and responses.
"""
from datetime import datetime
from pydantic import BaseModel, BeforeValidator, Field, ConfigDict, EmailStr, HttpUrl, field_validator
from typing import Annotated, Dict, List, Optional

from models.enums import (
    Role, Gender, Status, DriverStatus, Bank, PackageStatus, ReportType
)


def _blank_to_none(value):
    if isinstance(value, str) and value.strip() == "":
        return None
    return value


# Empty form fields arrive as "" and mean "not provided"
OptionalEmail = Annotated[Optional[EmailStr], BeforeValidator(_blank_to_none)]
OptionalUrl = Annotated[Optional[HttpUrl], BeforeValidator(_blank_to_none)]
OptionalText = Annotated[Optional[str], BeforeValidator(_blank_to_none)]


# ============ AUTH MODELS ============

class LoginRequest(BaseModel):
    email_or_username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class RegisterRequest(BaseModel):
    username: str = Field(min_length=3)
    name: str = Field(min_length=1)
    email: EmailStr
    phone: str = Field(min_length=1)
    password: str = Field(min_length=6)
    gender: Gender = Gender.MALE


class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


class AuthUser(BaseModel):
    id: str
    username: str
    name: str
    email: str
    role: Role


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str


class AuthResponse(TokenPair):
    user: AuthUser


# ============ USER MODELS ============

class UserCreate(BaseModel):
    username: str = Field(min_length=3)
    name: str = Field(min_length=1)
    email: EmailStr
    phone: str = Field(min_length=1)
    password: str = Field(min_length=6)
    gender: Gender = Gender.MALE
    role: Role = Role.USER
    status: Status = Status.ACTIVE


class UserUpdate(BaseModel):
    username: Optional[str] = Field(default=None, min_length=3)
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    gender: Optional[Gender] = None
    role: Optional[Role] = None
    status: Optional[Status] = None


class ChangePasswordRequest(BaseModel):
    new_password: str = Field(min_length=6)


class User(BaseModel):
    """User as returned by the API (never carries the password hash)."""
    model_config = ConfigDict(extra="ignore")
    id: str
    username: str
    name: str
    email: str
    phone: Optional[str] = None
    gender: Gender = Gender.MALE
    role: Role = Role.USER
    status: Status = Status.ACTIVE
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


# ============ DRIVER MODELS ============

class DriverCreate(BaseModel):
    name: str = Field(min_length=1)
    email: OptionalEmail = None
    phone: str = Field(min_length=1)
    username: Annotated[Optional[str], BeforeValidator(_blank_to_none), Field(min_length=3)] = None
    password: Annotated[Optional[str], BeforeValidator(_blank_to_none), Field(min_length=6)] = None
    deliver_fee: float = Field(ge=0)
    driver_status: DriverStatus = DriverStatus.ACTIVE
    bank: Bank
    bank_account_number: str = Field(min_length=8)
    bank_account_name: Optional[str] = None
    google_maps_url: OptionalText = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    status: Status = Status.ACTIVE


class DriverUpdate(BaseModel):
    name: Optional[str] = None
    email: OptionalEmail = None
    phone: Optional[str] = None
    deliver_fee: Optional[float] = Field(default=None, ge=0)
    driver_status: Optional[DriverStatus] = None
    bank: Optional[Bank] = None
    bank_account_number: Optional[str] = Field(default=None, min_length=8)
    bank_account_name: Optional[str] = None
    google_maps_url: OptionalText = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    status: Optional[Status] = None


class DriverChangePasswordRequest(BaseModel):
    new_password: str = Field(min_length=6)


# ============ MERCHANT MODELS ============

class MerchantCreate(BaseModel):
    name: str = Field(min_length=1)
    email: OptionalEmail = None
    phone: str = Field(min_length=1)
    deliver_fee: float = Field(ge=0)
    bank: Bank
    bank_account_number: str = Field(min_length=1)
    bank_account_name: str = Field(min_length=1)
    address: str = Field(min_length=1)
    google_maps_url: OptionalUrl = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    status: Status = Status.ACTIVE


class MerchantUpdate(BaseModel):
    name: Optional[str] = None
    email: OptionalEmail = None
    phone: Optional[str] = None
    deliver_fee: Optional[float] = Field(default=None, ge=0)
    bank: Optional[Bank] = None
    bank_account_number: Optional[str] = Field(default=None, min_length=1)
    bank_account_name: Optional[str] = None
    address: Optional[str] = None
    google_maps_url: OptionalUrl = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    status: Optional[Status] = None


# ============ PACKAGE MODELS ============

class PackageCreate(BaseModel):
    customer_name: str = Field(min_length=1)
    customer_phone: str = Field(min_length=1)
    customer_address: str = Field(min_length=1)
    cod_amount: float = Field(default=0, ge=0)
    delivery_fee: float = Field(default=0, ge=0)
    status: PackageStatus = PackageStatus.PENDING
    notes: Optional[str] = None
    merchant_id: str = Field(min_length=1)
    driver_id: OptionalText = None


class PackageUpdate(BaseModel):
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    cod_amount: Optional[float] = Field(default=None, ge=0)
    delivery_fee: Optional[float] = Field(default=None, ge=0)
    status: Optional[PackageStatus] = None
    notes: Optional[str] = None
    merchant_id: Optional[str] = None
    # Explicit null or blank unassigns the driver
    driver_id: OptionalText = None


class BulkPackageItem(BaseModel):
    customer_name: str = ""
    customer_phone: str = ""
    customer_address: str = ""
    cod_amount: float = Field(default=0, ge=0)
    delivery_fee: float = Field(default=0, ge=0)


class BulkCreatePackagesRequest(BaseModel):
    merchant_id: str = Field(min_length=1)
    driver_id: OptionalText = None
    status: PackageStatus = PackageStatus.PENDING
    packages: List[BulkPackageItem] = []


class BulkAssignPackagesRequest(BaseModel):
    driver_id: str = Field(min_length=1)
    package_numbers: List[str] = Field(min_length=1)
    status: PackageStatus = PackageStatus.ON_DELIVERY


class PackageIssueUpdate(BaseModel):
    has_issue: bool
    issue_note: Optional[str] = None
    extra_delivery_fee: float = Field(default=0, ge=0)


class PackageStatusUpdate(BaseModel):
    status: PackageStatus
    notes: Optional[str] = None


# ============ SETTINGS MODELS ============

class SettingCreate(BaseModel):
    key: str = Field(min_length=1)
    value: str
    category: str = "general"
    description: Optional[str] = None
    is_public: bool = False


class SettingUpdate(BaseModel):
    value: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    is_public: Optional[bool] = None


class Setting(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: str
    key: str
    value: str
    category: str = "general"
    description: Optional[str] = None
    is_public: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


BulkSettingsUpdate = Dict[str, str]


# ============ REPORT MODELS ============

class ReportQuery(BaseModel):
    driver_id: Optional[str] = None
    merchant_id: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    search: Optional[str] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=1000, ge=1)
    type: Optional[ReportType] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def check_date(cls, value):
        value = _blank_to_none(value)
        if value is None:
            return None
        datetime.strptime(value[:10], "%Y-%m-%d")
        return value[:10]
