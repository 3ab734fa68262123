"""
Typed endpoint wrappers over ApiClient, one class per API area.
"""
from typing import List, Optional

from api_client.client import ApiClient


class AuthApi:
    def __init__(self, client: ApiClient):
        self.client = client

    def login(self, email_or_username: str, password: str) -> dict:
        """Sign in and keep the returned token pair on the client."""
        data = self.client.post("/auth/login", json={
            "email_or_username": email_or_username,
            "password": password,
        })
        self.client.tokens.set(data["access_token"], data["refresh_token"])
        return data

    def register(self, **fields) -> dict:
        data = self.client.post("/auth/register", json=fields)
        self.client.tokens.set(data["access_token"], data["refresh_token"])
        return data

    def refresh(self) -> bool:
        return self.client.refresh()

    def logout(self) -> dict:
        try:
            return self.client.post("/auth/logout")
        finally:
            self.client.tokens.clear()

    def profile(self) -> dict:
        return self.client.post("/auth/profile")

    def me(self) -> dict:
        return self.client.get("/auth/me")


class CrudApi:
    """list/get/create/update/delete for a plain REST collection."""

    path = ""

    def __init__(self, client: ApiClient):
        self.client = client

    def list(self, **params) -> dict:
        return self.client.get(self.path, params=params)

    def get(self, item_id: str) -> dict:
        return self.client.get(f"{self.path}/{item_id}")

    def create(self, data: dict) -> dict:
        return self.client.post(self.path, json=data)

    def update(self, item_id: str, data: dict) -> dict:
        return self.client.patch(f"{self.path}/{item_id}", json=data)

    def delete(self, item_id: str) -> dict:
        return self.client.delete(f"{self.path}/{item_id}")


class UsersApi(CrudApi):
    path = "/users"

    def change_password(self, user_id: str, new_password: str) -> dict:
        return self.client.patch(f"{self.path}/{user_id}/change-password", json={"new_password": new_password})


class DriversApi(CrudApi):
    path = "/drivers"

    def change_password(self, driver_id: str, new_password: str) -> dict:
        return self.client.patch(f"{self.path}/{driver_id}/change-password", json={"new_password": new_password})


class MerchantsApi(CrudApi):
    path = "/merchants"


class PackagesApi(CrudApi):
    path = "/packages"

    def bulk_create(self, merchant_id: str, packages: List[dict], driver_id: Optional[str] = None,
                    status: Optional[str] = None) -> dict:
        body = {"merchant_id": merchant_id, "driver_id": driver_id, "packages": packages}
        if status:
            body["status"] = status
        return self.client.post(f"{self.path}/bulk", json=body)

    def bulk_assign(self, driver_id: str, package_numbers: List[str], status: Optional[str] = None) -> dict:
        body = {"driver_id": driver_id, "package_numbers": package_numbers}
        if status:
            body["status"] = status
        return self.client.post(f"{self.path}/bulk-assign", json=body)

    def update_issue(self, package_id: str, data: dict) -> dict:
        return self.client.patch(f"{self.path}/{package_id}/issue", json=data)


class DriverPackagesApi:
    """Endpoints for the signed-in driver."""

    def __init__(self, client: ApiClient):
        self.client = client

    def list(self, **params) -> dict:
        return self.client.get("/driver/packages", params=params)

    def get(self, package_id: str) -> dict:
        return self.client.get(f"/driver/packages/{package_id}")

    def stats(self) -> dict:
        return self.client.get("/driver/packages/stats/summary")

    def update_status(self, package_id: str, status: str, **fields) -> dict:
        return self.client.patch(f"/driver/packages/{package_id}/status", json={"status": status, **fields})


class SettingsApi:
    def __init__(self, client: ApiClient):
        self.client = client

    def list(self) -> list:
        return self.client.get("/settings")

    def public(self) -> dict:
        return self.client.get("/settings/public")

    def as_object(self) -> dict:
        return self.client.get("/settings/object")

    def by_category(self, category: str) -> list:
        return self.client.get(f"/settings/category/{category}")

    def get(self, key: str) -> dict:
        return self.client.get(f"/settings/key/{key}")

    def create(self, data: dict) -> dict:
        return self.client.post("/settings", json=data)

    def update(self, key: str, data: dict) -> dict:
        return self.client.put(f"/settings/{key}", json=data)

    def bulk_update(self, values: dict) -> dict:
        return self.client.post("/settings/bulk-update", json=values)

    def delete(self, key: str) -> dict:
        return self.client.delete(f"/settings/{key}")


class DashboardApi:
    def __init__(self, client: ApiClient):
        self.client = client

    def stats(self) -> dict:
        return self.client.get("/dashboard/stats")

    def recent_packages(self, limit: int = 10) -> list:
        return self.client.get("/dashboard/recent-packages", params={"limit": limit})

    def status_distribution(self) -> list:
        return self.client.get("/dashboard/package-status-distribution")

    def top_merchants(self, limit: int = 5) -> list:
        return self.client.get("/dashboard/top-merchants", params={"limit": limit})

    def top_drivers(self, limit: int = 5) -> list:
        return self.client.get("/dashboard/top-drivers", params={"limit": limit})


class ReportsApi:
    def __init__(self, client: ApiClient):
        self.client = client

    def list(self, **params) -> dict:
        return self.client.get("/reports", params=params)

    def drivers(self, **params) -> dict:
        return self.client.get("/reports/drivers", params=params)

    def merchants(self, **params) -> dict:
        return self.client.get("/reports/merchants", params=params)

    def driver_performance(self, **params) -> list:
        return self.client.get("/reports/driver-performance", params=params)

    def merchant_performance(self, **params) -> list:
        return self.client.get("/reports/merchant-performance", params=params)

    def export_csv(self, **params) -> bytes:
        return self.client.get("/reports/export/csv", params=params, raw=True).content

    def export_excel(self, **params) -> bytes:
        return self.client.get("/reports/export/excel", params=params, raw=True).content

    def export_merchant_excel(self, merchant_id: str, **params) -> bytes:
        params["merchant_id"] = merchant_id
        return self.client.get("/reports/export/excel-per-merchant", params=params, raw=True).content


class Api:
    """All endpoint groups sharing one ApiClient."""

    def __init__(self, client: ApiClient):
        self.client = client
        self.auth = AuthApi(client)
        self.users = UsersApi(client)
        self.drivers = DriversApi(client)
        self.merchants = MerchantsApi(client)
        self.packages = PackagesApi(client)
        self.driver_packages = DriverPackagesApi(client)
        self.settings = SettingsApi(client)
        self.dashboard = DashboardApi(client)
        self.reports = ReportsApi(client)
