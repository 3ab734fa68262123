"""
Backend tests for the settings store
Tests /api/settings CRUD, bulk update, public keys and default seeding
"""
import asyncio

from services.settings_service import DEFAULT_SETTINGS, SettingsService


class TestSettingsSeed:
    """Default settings are created once"""

    def test_seed_defaults_is_idempotent(self, db):
        service = SettingsService(db)
        assert asyncio.run(service.seed_defaults()) == len(DEFAULT_SETTINGS)
        assert asyncio.run(service.seed_defaults()) == 0

    def test_public_settings_need_no_login(self, client, db):
        asyncio.run(SettingsService(db).seed_defaults())
        response = client.get("/api/settings/public")
        assert response.status_code == 200
        data = response.json()
        assert data["company_name"] == "DYHE DELIVERY"
        assert set(data) == {"company_name", "company_phone", "company_address"}


class TestSettingsCrud:
    """Tests for /api/settings"""

    def test_admin_only(self, client, user_headers):
        assert client.get("/api/settings", headers=user_headers).status_code == 403

    def test_create_and_get(self, client, admin_headers):
        response = client.post("/api/settings", json={"key": "sms_sender", "value": "DYHE"}, headers=admin_headers)
        assert response.status_code == 201, response.text
        assert response.json()["category"] == "general"
        assert response.json()["is_public"] is False

        fetched = client.get("/api/settings/key/sms_sender", headers=admin_headers)
        assert fetched.status_code == 200
        assert fetched.json()["value"] == "DYHE"

    def test_duplicate_key(self, client, admin_headers):
        client.post("/api/settings", json={"key": "dup", "value": "1"}, headers=admin_headers)
        response = client.post("/api/settings", json={"key": "dup", "value": "2"}, headers=admin_headers)
        assert response.status_code == 409
        assert response.json()["detail"] == "Setting with key 'dup' already exists"

    def test_missing_key(self, client, admin_headers):
        response = client.get("/api/settings/key/nothing", headers=admin_headers)
        assert response.status_code == 404
        assert response.json() == {"detail": "Setting with key 'nothing' not found", "error_code": "NOT_FOUND"}

    def test_update(self, client, admin_headers):
        client.post("/api/settings", json={"key": "label_footer", "value": "Thanks", "category": "label"},
                    headers=admin_headers)
        response = client.put("/api/settings/label_footer", json={"value": "Thank you!"}, headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["value"] == "Thank you!"
        assert response.json()["category"] == "label"

    def test_update_missing(self, client, admin_headers):
        response = client.put("/api/settings/ghost", json={"value": "x"}, headers=admin_headers)
        assert response.status_code == 404

    def test_by_category_sorted(self, client, admin_headers):
        for key in ["b_key", "a_key"]:
            client.post("/api/settings", json={"key": key, "value": "v", "category": "misc"}, headers=admin_headers)
        response = client.get("/api/settings/category/misc", headers=admin_headers)
        assert [s["key"] for s in response.json()] == ["a_key", "b_key"]

    def test_bulk_update_upserts(self, client, admin_headers):
        client.post("/api/settings", json={"key": "company_phone", "value": "", "category": "company"},
                    headers=admin_headers)
        response = client.post("/api/settings/bulk-update", json={
            "company_phone": "023 999 999",
            "brand_new": "fresh",
        }, headers=admin_headers)
        assert response.status_code == 200
        assert response.json() == {"message": "Settings updated successfully"}

        values = client.get("/api/settings/object", headers=admin_headers).json()
        assert values["company_phone"] == "023 999 999"
        assert values["brand_new"] == "fresh"

        created = client.get("/api/settings/key/brand_new", headers=admin_headers).json()
        assert created["category"] == "general"
        assert created["id"]

    def test_delete(self, client, admin_headers):
        client.post("/api/settings", json={"key": "temp", "value": "x"}, headers=admin_headers)
        response = client.delete("/api/settings/temp", headers=admin_headers)
        assert response.status_code == 200
        assert response.json() == {"message": "Setting deleted successfully"}
        assert client.delete("/api/settings/temp", headers=admin_headers).status_code == 404
