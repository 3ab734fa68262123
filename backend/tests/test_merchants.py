"""
Backend tests for merchant management
Tests /api/merchants CRUD, optional email, uniqueness and deletion guards
"""


def merchant_payload(n, **overrides):
    return {
        "name": f"Shop {n}",
        "phone": f"0880000{n}",
        "deliver_fee": 2,
        "bank": "WING",
        "bank_account_number": f"7700000{n}",
        "bank_account_name": f"Shop {n} Co",
        "address": f"Street {n}, Siem Reap",
        **overrides,
    }


class TestMerchants:
    """Tests for /api/merchants"""

    def test_create_merchant(self, client, admin_headers):
        """POST /api/merchants - Create merchant"""
        response = client.post("/api/merchants", json=merchant_payload(
            1, email="shop1@dyhe.com", google_maps_url="https://maps.google.com/?q=11.5,104.9",
        ), headers=admin_headers)
        assert response.status_code == 201, response.text
        data = response.json()
        assert data["email"] == "shop1@dyhe.com"
        assert data["google_maps_url"].startswith("https://maps.google.com")
        assert data["status"] == "ACTIVE"

    def test_create_without_email(self, client, admin_headers):
        first = client.post("/api/merchants", json=merchant_payload(2), headers=admin_headers)
        second = client.post("/api/merchants", json=merchant_payload(3, email=""), headers=admin_headers)
        assert first.status_code == 201
        assert second.status_code == 201
        assert "email" not in second.json()

    def test_invalid_maps_url(self, client, admin_headers):
        response = client.post("/api/merchants", json=merchant_payload(4, google_maps_url="not a url"),
                               headers=admin_headers)
        assert response.status_code == 422

    def test_address_required(self, client, admin_headers):
        payload = merchant_payload(5)
        del payload["address"]
        response = client.post("/api/merchants", json=payload, headers=admin_headers)
        assert response.status_code == 422

    def test_duplicate_email(self, client, admin_headers):
        client.post("/api/merchants", json=merchant_payload(6, email="dup@dyhe.com"), headers=admin_headers)
        response = client.post("/api/merchants", json=merchant_payload(7, email="dup@dyhe.com"),
                               headers=admin_headers)
        assert response.status_code == 409
        assert response.json()["detail"] == "Merchant with this email or bank account number already exists"

    def test_duplicate_bank_account(self, client, admin_headers):
        client.post("/api/merchants", json=merchant_payload(8), headers=admin_headers)
        response = client.post("/api/merchants", json=merchant_payload(9, bank_account_number="77000008"),
                               headers=admin_headers)
        assert response.status_code == 409

    def test_search_by_address(self, client, admin_headers, merchant_factory):
        merchant_factory(address="Riverside, Kampot")
        merchant_factory(address="Central Market, Phnom Penh")
        response = client.get("/api/merchants", params={"search": "kampot"}, headers=admin_headers)
        items = response.json()["items"]
        assert len(items) == 1
        assert items[0]["address"] == "Riverside, Kampot"

    def test_get_merchant_with_packages(self, client, admin_headers, merchant_factory, package_factory):
        merchant = merchant_factory()
        package_factory(merchant["id"])
        package_factory(merchant["id"])
        response = client.get(f"/api/merchants/{merchant['id']}", headers=admin_headers)
        assert response.status_code == 200
        assert len(response.json()["packages"]) == 2

    def test_update_merchant(self, client, admin_headers, merchant_factory):
        """PATCH /api/merchants/{id} - Update merchant"""
        merchant = merchant_factory()
        response = client.patch(
            f"/api/merchants/{merchant['id']}",
            json={"deliver_fee": 3.5, "status": "INACTIVE"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["deliver_fee"] == 3.5
        assert data["status"] == "INACTIVE"
        assert data["name"] == merchant["name"]

    def test_update_missing_merchant(self, client, admin_headers):
        response = client.patch("/api/merchants/unknown", json={"name": "X"}, headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "Merchant with ID unknown not found"

    def test_delete_merchant(self, client, admin_headers, merchant_factory):
        merchant = merchant_factory()
        response = client.delete(f"/api/merchants/{merchant['id']}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json() == {"message": "Merchant deleted successfully"}

    def test_cannot_delete_merchant_with_packages(self, client, admin_headers, merchant_factory,
                                                  package_factory):
        merchant = merchant_factory()
        package_factory(merchant["id"])
        response = client.delete(f"/api/merchants/{merchant['id']}", headers=admin_headers)
        assert response.status_code == 409
        assert response.json()["detail"] == (
            "Cannot delete merchant with existing packages. Please remove all packages first."
        )
