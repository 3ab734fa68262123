"""
Backend tests for packages
Tests /api/packages CRUD, filters, bulk creation, bulk assignment and issue flags
"""
import re

PACKAGE_NUMBER_PATTERN = re.compile(r"^DYHE\d{6}[A-Z0-9]{6}$")


def bulk_item(n, **overrides):
    return {
        "customer_name": f"Bulk Customer {n}",
        "customer_phone": f"0969000{n}",
        "customer_address": f"Village {n}",
        "cod_amount": 5,
        "delivery_fee": 1,
        **overrides,
    }


class TestCreatePackage:
    """Tests for POST /api/packages"""

    def test_create_package(self, client, admin_headers, merchant_factory):
        """POST /api/packages - Create package with generated number"""
        merchant = merchant_factory()
        response = client.post("/api/packages", json={
            "customer_name": "Dara",
            "customer_phone": "012999888",
            "customer_address": "Toul Kork",
            "cod_amount": 25.5,
            "merchant_id": merchant["id"],
        }, headers=admin_headers)
        assert response.status_code == 201, response.text
        data = response.json()
        assert PACKAGE_NUMBER_PATTERN.match(data["package_number"]), data["package_number"]
        assert data["status"] == "PENDING"
        assert data["has_issue"] is False
        assert data["extra_delivery_fee"] == 0
        assert data["driver_id"] is None
        assert data["merchant"]["name"] == merchant["name"]
        assert data["driver"] is None
        print(f"Created package {data['package_number']}")

    def test_unknown_merchant(self, client, admin_headers):
        response = client.post("/api/packages", json={
            "customer_name": "Dara",
            "customer_phone": "012999888",
            "customer_address": "Toul Kork",
            "merchant_id": "no-such-merchant",
        }, headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "Merchant with ID no-such-merchant not found"

    def test_unknown_driver(self, client, admin_headers, merchant_factory):
        response = client.post("/api/packages", json={
            "customer_name": "Dara",
            "customer_phone": "012999888",
            "customer_address": "Toul Kork",
            "merchant_id": merchant_factory()["id"],
            "driver_id": "ghost",
        }, headers=admin_headers)
        assert response.status_code == 404

    def test_package_numbers_are_unique(self, merchant_factory, package_factory):
        merchant = merchant_factory()
        numbers = {package_factory(merchant["id"])["package_number"] for _ in range(10)}
        assert len(numbers) == 10


class TestListPackages:
    """Tests for GET /api/packages filters"""

    def test_filter_by_status_and_merchant(self, client, admin_headers, merchant_factory, package_factory):
        first = merchant_factory()
        second = merchant_factory()
        package_factory(first["id"], status="DELIVERED")
        package_factory(first["id"])
        package_factory(second["id"], status="DELIVERED")

        response = client.get("/api/packages", params={
            "merchant_id": first["id"],
            "status": "DELIVERED",
        }, headers=admin_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["pagination"]["total"] == 1
        assert data["items"][0]["merchant"]["id"] == first["id"]

    def test_unassigned_filter(self, client, admin_headers, merchant_factory, driver_factory, package_factory):
        merchant = merchant_factory()
        driver = driver_factory()
        package_factory(merchant["id"], driver_id=driver["id"])
        loose = package_factory(merchant["id"])

        response = client.get("/api/packages", params={"driver_id": "unassigned"}, headers=admin_headers)
        assert [p["id"] for p in response.json()["items"]] == [loose["id"]]

    def test_blank_driver_counts_as_unassigned(self, client, admin_headers, merchant_factory, package_factory):
        package = package_factory(merchant_factory()["id"], driver_id="")
        assert package["driver_id"] is None

        response = client.get("/api/packages", params={"driver_id": "unassigned"}, headers=admin_headers)
        assert [p["id"] for p in response.json()["items"]] == [package["id"]]

    def test_search_matches_merchant_name(self, client, admin_headers, merchant_factory, package_factory):
        merchant = merchant_factory(name="Angkor Gadgets")
        package_factory(merchant["id"])
        package_factory(merchant_factory()["id"])

        response = client.get("/api/packages", params={"search": "angkor"}, headers=admin_headers)
        items = response.json()["items"]
        assert len(items) == 1
        assert items[0]["merchant_id"] == merchant["id"]

    def test_search_by_package_number(self, client, admin_headers, merchant_factory, package_factory):
        merchant = merchant_factory()
        target = package_factory(merchant["id"])
        package_factory(merchant["id"])
        response = client.get("/api/packages", params={"search": target["package_number"]}, headers=admin_headers)
        assert [p["id"] for p in response.json()["items"]] == [target["id"]]

    def test_any_signed_in_user_can_list(self, client, user_headers):
        response = client.get("/api/packages", headers=user_headers)
        assert response.status_code == 200
        assert response.json()["items"] == []


class TestUpdatePackage:
    """Tests for PATCH /api/packages/{id} and /issue"""

    def test_assign_and_unassign_driver(self, client, admin_headers, merchant_factory,
                                        driver_factory, package_factory):
        package = package_factory(merchant_factory()["id"])
        driver = driver_factory()

        assigned = client.patch(f"/api/packages/{package['id']}", json={
            "driver_id": driver["id"],
            "status": "ON_DELIVERY",
        }, headers=admin_headers)
        assert assigned.status_code == 200
        assert assigned.json()["driver"]["id"] == driver["id"]
        assert assigned.json()["status"] == "ON_DELIVERY"

        unassigned = client.patch(f"/api/packages/{package['id']}", json={"driver_id": None},
                                  headers=admin_headers)
        assert unassigned.status_code == 200
        assert unassigned.json()["driver_id"] is None
        assert unassigned.json()["status"] == "ON_DELIVERY"

    def test_blank_driver_unassigns(self, client, admin_headers, merchant_factory,
                                    driver_factory, package_factory):
        driver = driver_factory()
        package = package_factory(merchant_factory()["id"], driver_id=driver["id"])

        response = client.patch(f"/api/packages/{package['id']}", json={"driver_id": "  "},
                                headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["driver_id"] is None

    def test_merchant_cannot_be_removed(self, client, admin_headers, merchant_factory, package_factory):
        package = package_factory(merchant_factory()["id"])
        response = client.patch(f"/api/packages/{package['id']}", json={"merchant_id": None},
                                headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "A package must belong to a merchant"

    def test_invalid_status(self, client, admin_headers, merchant_factory, package_factory):
        package = package_factory(merchant_factory()["id"])
        response = client.patch(f"/api/packages/{package['id']}", json={"status": "LOST"},
                                headers=admin_headers)
        assert response.status_code == 422

    def test_flag_issue(self, client, admin_headers, merchant_factory, package_factory):
        package = package_factory(merchant_factory()["id"])
        response = client.patch(f"/api/packages/{package['id']}/issue", json={
            "has_issue": True,
            "issue_note": "Customer asked to redeliver",
            "extra_delivery_fee": 0.5,
        }, headers=admin_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["has_issue"] is True
        assert data["extra_delivery_fee"] == 0.5

        flagged = client.get("/api/packages", params={"has_issue": "true"}, headers=admin_headers)
        assert [p["id"] for p in flagged.json()["items"]] == [package["id"]]

    def test_delete_package(self, client, admin_headers, merchant_factory, package_factory):
        package = package_factory(merchant_factory()["id"])
        response = client.delete(f"/api/packages/{package['id']}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json() == {"message": "Package deleted successfully"}
        again = client.delete(f"/api/packages/{package['id']}", headers=admin_headers)
        assert again.status_code == 404


class TestBulkCreate:
    """Tests for POST /api/packages/bulk"""

    def test_bulk_create(self, client, admin_headers, merchant_factory, driver_factory):
        merchant = merchant_factory()
        driver = driver_factory()
        response = client.post("/api/packages/bulk", json={
            "merchant_id": merchant["id"],
            "driver_id": driver["id"],
            "status": "ON_DELIVERY",
            "packages": [bulk_item(n) for n in range(1, 4)],
        }, headers=admin_headers)
        assert response.status_code == 201, response.text
        data = response.json()
        assert data["count"] == 3
        assert data["message"] == "Successfully created 3 packages"
        assert len({p["package_number"] for p in data["packages"]}) == 3
        assert all(p["status"] == "ON_DELIVERY" for p in data["packages"])
        assert all(p["driver"]["id"] == driver["id"] for p in data["packages"])

    def test_bulk_create_empty(self, client, admin_headers, merchant_factory):
        response = client.post("/api/packages/bulk", json={
            "merchant_id": merchant_factory()["id"],
            "packages": [],
        }, headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "At least one package is required"

    def test_bulk_create_row_validation(self, client, admin_headers, merchant_factory):
        """A blank row fails the whole batch and nothing is stored"""
        merchant = merchant_factory()
        response = client.post("/api/packages/bulk", json={
            "merchant_id": merchant["id"],
            "packages": [bulk_item(1), bulk_item(2, customer_phone="  ")],
        }, headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Package 2: customer name, phone and address are required"

        listing = client.get("/api/packages", headers=admin_headers)
        assert listing.json()["pagination"]["total"] == 0


class TestBulkAssign:
    """Tests for POST /api/packages/bulk-assign"""

    def test_bulk_assign(self, client, admin_headers, merchant_factory, driver_factory, package_factory):
        merchant = merchant_factory()
        driver = driver_factory()
        packages = [package_factory(merchant["id"]) for _ in range(2)]

        response = client.post("/api/packages/bulk-assign", json={
            "driver_id": driver["id"],
            "package_numbers": [p["package_number"] for p in packages],
        }, headers=admin_headers)
        assert response.status_code == 200, response.text
        data = response.json()
        assert data["count"] == 2
        assert data["message"] == "Successfully assigned 2 packages to driver"
        assert all(p["driver_id"] == driver["id"] and p["status"] == "ON_DELIVERY" for p in data["packages"])

    def test_unknown_package_numbers(self, client, admin_headers, driver_factory):
        driver = driver_factory()
        response = client.post("/api/packages/bulk-assign", json={
            "driver_id": driver["id"],
            "package_numbers": ["DYHE000000AAAAAA"],
        }, headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Packages not found: DYHE000000AAAAAA"

    def test_already_assigned_elsewhere(self, client, admin_headers, merchant_factory,
                                        driver_factory, package_factory):
        merchant = merchant_factory()
        first = driver_factory()
        second = driver_factory()
        package = package_factory(merchant["id"], driver_id=first["id"])

        response = client.post("/api/packages/bulk-assign", json={
            "driver_id": second["id"],
            "package_numbers": [package["package_number"]],
        }, headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == (
            f"Some packages are already assigned to other drivers: {package['package_number']}"
        )

    def test_reassign_to_same_driver(self, client, admin_headers, merchant_factory,
                                     driver_factory, package_factory):
        merchant = merchant_factory()
        driver = driver_factory()
        package = package_factory(merchant["id"], driver_id=driver["id"])
        response = client.post("/api/packages/bulk-assign", json={
            "driver_id": driver["id"],
            "package_numbers": [package["package_number"]],
            "status": "DELIVERED",
        }, headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["packages"][0]["status"] == "DELIVERED"

    def test_empty_package_numbers(self, client, admin_headers, driver_factory):
        response = client.post("/api/packages/bulk-assign", json={
            "driver_id": driver_factory()["id"],
            "package_numbers": [],
        }, headers=admin_headers)
        assert response.status_code == 422
