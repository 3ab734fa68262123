"""
Tests for the Python API client
Token refresh on 401, session expiry, the query cache and invalidating mutations
"""
import jwt
import pytest

from api_client import Api, ApiClient, ApiError, Queries, QueryCache, SessionExpiredError, params_key
from config import JWT_SECRET, JWT_ALGORITHM
from models.enums import Role


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def signed_in(client, user_factory):
    """An Api whose client is signed in as an admin; returns (api, expired-session calls)"""
    user, _ = user_factory(Role.ADMIN)
    expired = []
    api = Api(ApiClient(http=client, on_session_expired=lambda: expired.append(True)))
    api.auth.login(user["username"], "secret123")
    return api, expired


def expired_token(user_id):
    return jwt.encode({"sub": user_id, "exp": 1}, JWT_SECRET, algorithm=JWT_ALGORITHM)


class TestApiClient:
    """Tests for ApiClient and the endpoint wrappers"""

    def test_login_stores_tokens(self, signed_in):
        api, _ = signed_in
        assert api.client.tokens.is_authenticated
        assert api.client.tokens.refresh_token
        assert api.auth.me()["role"] == "ADMIN"

    def test_bad_login_raises_without_refresh(self, client):
        api = Api(ApiClient(http=client))
        api.client.tokens.refresh_token = "stale-refresh"
        with pytest.raises(ApiError) as exc_info:
            api.auth.login("nobody", "wrong")
        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Invalid credentials"
        assert exc_info.value.error_code == "UNAUTHORIZED"
        assert not isinstance(exc_info.value, SessionExpiredError)

    def test_silent_refresh_on_401(self, signed_in):
        """An expired access token is refreshed once and the request replayed"""
        api, expired = signed_in
        me = api.auth.me()
        api.client.tokens.access_token = expired_token(me["id"])

        result = api.drivers.list()
        assert result["items"] == []
        assert api.client.tokens.access_token != expired_token(me["id"])
        assert api.client.tokens.refresh_token
        assert expired == []

    def test_failed_refresh_expires_session(self, signed_in):
        api, expired = signed_in
        me = api.auth.me()
        api.client.tokens.set(expired_token(me["id"]), "garbage-refresh")

        with pytest.raises(SessionExpiredError):
            api.drivers.list()
        assert expired == [True]
        assert api.client.tokens.access_token is None
        assert api.client.tokens.refresh_token is None

    def test_no_refresh_token_is_plain_401(self, client):
        api = Api(ApiClient(http=client))
        with pytest.raises(ApiError) as exc_info:
            api.drivers.list()
        assert exc_info.value.status_code == 401
        assert not isinstance(exc_info.value, SessionExpiredError)

    def test_logout_clears_tokens(self, signed_in):
        api, _ = signed_in
        assert api.auth.logout() == {"message": "Logged out successfully"}
        assert not api.client.tokens.is_authenticated

    def test_error_detail(self, signed_in):
        api, _ = signed_in
        with pytest.raises(ApiError) as exc_info:
            api.merchants.get("missing")
        assert exc_info.value.status_code == 404
        assert exc_info.value.detail == "Merchant with ID missing not found"

    def test_csv_export_bytes(self, signed_in):
        api, _ = signed_in
        content = api.reports.export_csv()
        assert content.startswith(b"DYHE DELIVERY REPORT")


class TestQueryCache:
    """Tests for QueryCache"""

    def test_fresh_then_stale(self):
        clock = FakeClock()
        cache = QueryCache(clock=clock)
        calls = []

        def fetch():
            calls.append(1)
            return len(calls)

        assert cache.get_or_fetch(("drivers",), fetch) == 1
        clock.now += 299
        assert cache.get_or_fetch(("drivers",), fetch) == 1
        clock.now += 2
        assert cache.get_or_fetch(("drivers",), fetch) == 2

    def test_invalidate_by_prefix(self):
        cache = QueryCache()
        cache.set(("drivers", ()), "all")
        cache.set(("drivers", (("page", 2),)), "page 2")
        cache.set(("driver", "d1"), "one")
        cache.set(("merchants", ()), "m")

        assert cache.invalidate(("drivers",)) == 2
        assert ("driver", "d1") in cache
        assert cache.invalidate(("driver", "d1")) == 1
        assert len(cache) == 1

    def test_params_key_ignores_order_and_none(self):
        assert params_key({"page": 1, "search": None, "limit": 10}) == params_key({"limit": 10, "page": 1})
        assert params_key(None) == ()


class TestQueries:
    """Tests for cached queries and invalidating mutations"""

    def test_mutation_invalidates_list(self, signed_in):
        api, _ = signed_in
        messages = []
        queries = Queries(api, notify=lambda level, message: messages.append((level, message)))

        assert queries.merchants()["items"] == []
        queries.create_merchant({
            "name": "Cached Shop",
            "phone": "012000111",
            "deliver_fee": 1,
            "bank": "ABA",
            "bank_account_number": "99990000",
            "bank_account_name": "Cached Shop",
            "address": "Phnom Penh",
        })
        assert messages == [("success", "Merchant created successfully")]
        assert [m["name"] for m in queries.merchants()["items"]] == ["Cached Shop"]

    def test_reads_are_served_from_cache(self, signed_in, merchant_factory):
        api, _ = signed_in
        queries = Queries(api)
        assert queries.merchants()["pagination"]["total"] == 0
        # Created behind the cache's back
        merchant_factory()
        assert queries.merchants()["pagination"]["total"] == 0
        assert queries.merchants(page=1)["pagination"]["total"] == 1

    def test_failed_mutation_notifies_and_raises(self, signed_in):
        api, _ = signed_in
        messages = []
        queries = Queries(api, notify=lambda level, message: messages.append((level, message)))
        with pytest.raises(ApiError):
            queries.delete_driver("missing")
        assert messages == [("error", "Driver with ID missing not found")]

    def test_update_drops_detail_entry(self, signed_in, driver_factory):
        api, _ = signed_in
        queries = Queries(api)
        driver = driver_factory()
        assert queries.driver(driver["id"])["name"] == driver["name"]
        queries.update_driver(driver["id"], {"name": "Renamed Rider"})
        assert queries.driver(driver["id"])["name"] == "Renamed Rider"

    def test_package_mutations_refresh_owner_details(self, signed_in, merchant_factory, driver_factory):
        api, _ = signed_in
        queries = Queries(api)
        merchant = merchant_factory()
        driver = driver_factory()
        assert queries.merchant(merchant["id"])["packages"] == []
        assert queries.driver(driver["id"])["packages"] == []

        package = queries.create_package({
            "customer_name": "Dara",
            "customer_phone": "012345678",
            "customer_address": "Street 63, Phnom Penh",
            "cod_amount": 5,
            "merchant_id": merchant["id"],
        })
        assert [p["id"] for p in queries.merchant(merchant["id"])["packages"]] == [package["id"]]

        queries.update_package(package["id"], {"driver_id": driver["id"]})
        assert [p["id"] for p in queries.driver(driver["id"])["packages"]] == [package["id"]]

        queries.update_package(package["id"], {"driver_id": None})
        assert queries.driver(driver["id"])["packages"] == []

    def test_merchant_rename_refreshes_package_rows(self, signed_in, merchant_factory, package_factory):
        api, _ = signed_in
        queries = Queries(api)
        merchant = merchant_factory(name="Old Name")
        package_factory(merchant["id"])
        assert queries.packages()["items"][0]["merchant"]["name"] == "Old Name"

        queries.update_merchant(merchant["id"], {"name": "New Name"})
        assert queries.packages()["items"][0]["merchant"]["name"] == "New Name"
