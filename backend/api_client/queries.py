"""
Cached reads and invalidating mutations on top of Api.

Reads go through QueryCache under keys like ("drivers", params) and ("driver", id).
A successful mutation drops the listed key prefixes and reports a success message;
a failed one reports the server's detail (or a fallback) and re-raises.
"""
import logging
from typing import Any, Callable, Iterable, Optional

from api_client.cache import QueryCache, QueryKey, params_key
from api_client.client import ApiError
from api_client.resources import Api

logger = logging.getLogger(__name__)

Notify = Callable[[str, str], None]  # (level, message)

# Merchant and driver detail entries embed their packages
PACKAGE_KEYS = [("packages",), ("package",), ("merchant",), ("driver",), ("dashboard",)]


def _log_notify(level: str, message: str):
    if level == "error":
        logger.error(message)
    else:
        logger.info(message)


class Queries:
    def __init__(self, api: Api, cache: Optional[QueryCache] = None, notify: Optional[Notify] = None):
        self.api = api
        self.cache = cache or QueryCache()
        self.notify = notify or _log_notify

    # ============ CORE ============

    def query(self, key: QueryKey, fetch: Callable[[], Any]) -> Any:
        return self.cache.get_or_fetch(key, fetch)

    def mutate(
        self,
        fn: Callable[[], Any],
        invalidate: Iterable[QueryKey] = (),
        success_message: Optional[str] = None,
        error_message: str = "Request failed",
    ) -> Any:
        try:
            result = fn()
        except ApiError as e:
            self.notify("error", e.detail or error_message)
            raise
        for prefix in invalidate:
            self.cache.invalidate(prefix)
        if success_message:
            self.notify("success", success_message)
        return result

    # ============ DRIVERS ============

    def drivers(self, **params) -> dict:
        return self.query(("drivers", params_key(params)), lambda: self.api.drivers.list(**params))

    def driver(self, driver_id: str) -> dict:
        return self.query(("driver", driver_id), lambda: self.api.drivers.get(driver_id))

    def create_driver(self, data: dict) -> dict:
        return self.mutate(
            lambda: self.api.drivers.create(data),
            invalidate=[("drivers",)],
            success_message="Driver created successfully",
            error_message="Failed to create driver",
        )

    def update_driver(self, driver_id: str, data: dict) -> dict:
        return self.mutate(
            lambda: self.api.drivers.update(driver_id, data),
            invalidate=[("drivers",), ("driver", driver_id), ("packages",), ("package",)],
            success_message="Driver updated successfully",
            error_message="Failed to update driver",
        )

    def delete_driver(self, driver_id: str) -> dict:
        return self.mutate(
            lambda: self.api.drivers.delete(driver_id),
            invalidate=[("drivers",), ("driver", driver_id)],
            success_message="Driver deleted successfully",
            error_message="Failed to delete driver",
        )

    def change_driver_password(self, driver_id: str, new_password: str) -> dict:
        return self.mutate(
            lambda: self.api.drivers.change_password(driver_id, new_password),
            success_message="Password changed successfully",
            error_message="Failed to change password",
        )

    # ============ MERCHANTS ============

    def merchants(self, **params) -> dict:
        return self.query(("merchants", params_key(params)), lambda: self.api.merchants.list(**params))

    def merchant(self, merchant_id: str) -> dict:
        return self.query(("merchant", merchant_id), lambda: self.api.merchants.get(merchant_id))

    def create_merchant(self, data: dict) -> dict:
        return self.mutate(
            lambda: self.api.merchants.create(data),
            invalidate=[("merchants",)],
            success_message="Merchant created successfully",
            error_message="Failed to create merchant",
        )

    def update_merchant(self, merchant_id: str, data: dict) -> dict:
        return self.mutate(
            lambda: self.api.merchants.update(merchant_id, data),
            invalidate=[("merchants",), ("merchant", merchant_id), ("packages",), ("package",)],
            success_message="Merchant updated successfully",
            error_message="Failed to update merchant",
        )

    def delete_merchant(self, merchant_id: str) -> dict:
        return self.mutate(
            lambda: self.api.merchants.delete(merchant_id),
            invalidate=[("merchants",), ("merchant", merchant_id)],
            success_message="Merchant deleted successfully",
            error_message="Failed to delete merchant",
        )

    # ============ USERS ============

    def users(self, **params) -> dict:
        return self.query(("users", params_key(params)), lambda: self.api.users.list(**params))

    def user(self, user_id: str) -> dict:
        return self.query(("user", user_id), lambda: self.api.users.get(user_id))

    def create_user(self, data: dict) -> dict:
        return self.mutate(
            lambda: self.api.users.create(data),
            invalidate=[("users",)],
            success_message="User created successfully",
            error_message="Failed to create user",
        )

    def update_user(self, user_id: str, data: dict) -> dict:
        return self.mutate(
            lambda: self.api.users.update(user_id, data),
            invalidate=[("users",), ("user", user_id)],
            success_message="User updated successfully",
            error_message="Failed to update user",
        )

    def delete_user(self, user_id: str) -> dict:
        return self.mutate(
            lambda: self.api.users.delete(user_id),
            invalidate=[("users",), ("user", user_id)],
            success_message="User deleted successfully",
            error_message="Failed to delete user",
        )

    def change_user_password(self, user_id: str, new_password: str) -> dict:
        return self.mutate(
            lambda: self.api.users.change_password(user_id, new_password),
            success_message="Password changed successfully",
            error_message="Failed to change password",
        )

    # ============ PACKAGES ============

    def packages(self, **params) -> dict:
        return self.query(("packages", params_key(params)), lambda: self.api.packages.list(**params))

    def package(self, package_id: str) -> dict:
        return self.query(("package", package_id), lambda: self.api.packages.get(package_id))

    def create_package(self, data: dict) -> dict:
        return self.mutate(
            lambda: self.api.packages.create(data),
            invalidate=PACKAGE_KEYS,
            success_message="Package created successfully",
            error_message="Failed to create package",
        )

    def bulk_create_packages(self, merchant_id: str, packages: list, **kwargs) -> dict:
        return self.mutate(
            lambda: self.api.packages.bulk_create(merchant_id, packages, **kwargs),
            invalidate=PACKAGE_KEYS,
            success_message=f"{len(packages)} packages created successfully",
            error_message="Failed to create packages",
        )

    def bulk_assign_packages(self, driver_id: str, package_numbers: list, **kwargs) -> dict:
        return self.mutate(
            lambda: self.api.packages.bulk_assign(driver_id, package_numbers, **kwargs),
            invalidate=PACKAGE_KEYS,
            success_message="Packages assigned successfully",
            error_message="Failed to assign packages",
        )

    def update_package(self, package_id: str, data: dict) -> dict:
        return self.mutate(
            lambda: self.api.packages.update(package_id, data),
            invalidate=PACKAGE_KEYS,
            success_message="Package updated successfully",
            error_message="Failed to update package",
        )

    def delete_package(self, package_id: str) -> dict:
        return self.mutate(
            lambda: self.api.packages.delete(package_id),
            invalidate=PACKAGE_KEYS,
            success_message="Package deleted successfully",
            error_message="Failed to delete package",
        )

    # ============ SETTINGS ============

    def settings(self) -> list:
        return self.query(("settings",), self.api.settings.list)

    def public_settings(self) -> dict:
        return self.query(("settings", "public"), self.api.settings.public)

    def update_setting(self, key: str, data: dict) -> dict:
        return self.mutate(
            lambda: self.api.settings.update(key, data),
            invalidate=[("settings",)],
            success_message="Setting updated successfully",
            error_message="Failed to update setting",
        )

    def bulk_update_settings(self, values: dict) -> dict:
        return self.mutate(
            lambda: self.api.settings.bulk_update(values),
            invalidate=[("settings",)],
            success_message="Settings updated successfully",
            error_message="Failed to update settings",
        )

    # ============ DASHBOARD ============

    def dashboard_stats(self) -> dict:
        return self.query(("dashboard", "stats"), self.api.dashboard.stats)
