"""
HTTP transport for the DYHE Delivery API.
Adds the bearer token to every request and silently refreshes it once on 401.
"""
import logging
from typing import Callable, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8001"
API_PREFIX = "/api"

# Endpoints whose 401 means "bad credentials", never "expired session"
NO_REFRESH_PATHS = ("/auth/login", "/auth/register", "/auth/refresh")


class ApiError(Exception):
    """Non-2xx response from the API."""

    def __init__(self, status_code: int, detail: Optional[str] = None, error_code: Optional[str] = None):
        self.status_code = status_code
        self.detail = detail
        self.error_code = error_code
        super().__init__(detail or f"Request failed with status {status_code}")

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ApiError":
        detail = None
        error_code = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            detail = body.get("detail")
            if detail is not None and not isinstance(detail, str):
                detail = str(detail)
            error_code = body.get("error_code")
        return cls(response.status_code, detail, error_code)


class SessionExpiredError(ApiError):
    """The refresh token was rejected; the user has to log in again."""

    def __init__(self):
        super().__init__(401, "Session expired. Please log in again.", "SESSION_EXPIRED")


class TokenStore:
    """In-memory holder for the access/refresh token pair."""

    def __init__(self, access_token: Optional[str] = None, refresh_token: Optional[str] = None):
        self.access_token = access_token
        self.refresh_token = refresh_token

    def set(self, access_token: str, refresh_token: str):
        self.access_token = access_token
        self.refresh_token = refresh_token

    def clear(self):
        self.access_token = None
        self.refresh_token = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token)


class ApiClient:
    """
    Synchronous REST client.

    Args:
        base_url: server root, used only when no http client is given
        tokens: token store shared with the caller
        http: pre-built httpx.Client (e.g. a test client)
        on_session_expired: called after a failed refresh, before SessionExpiredError is raised
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        tokens: Optional[TokenStore] = None,
        http: Optional[httpx.Client] = None,
        on_session_expired: Optional[Callable[[], None]] = None,
        timeout: float = 30.0,
    ):
        self.tokens = tokens or TokenStore()
        self.http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self.on_session_expired = on_session_expired

    def close(self):
        self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        headers = dict(kwargs.pop("headers", None) or {})
        if self.tokens.access_token:
            headers["Authorization"] = f"Bearer {self.tokens.access_token}"
        return self.http.request(method, f"{API_PREFIX}{path}", headers=headers, **kwargs)

    def refresh(self) -> bool:
        """Swap the refresh token for a new pair. Returns False when the server rejects it."""
        if not self.tokens.refresh_token:
            return False
        response = self.http.post(
            f"{API_PREFIX}/auth/refresh",
            json={"refresh_token": self.tokens.refresh_token},
        )
        if response.status_code != 200:
            logger.info(f"Token refresh rejected with status {response.status_code}")
            return False
        data = response.json()
        self.tokens.set(data["access_token"], data["refresh_token"])
        return True

    def request(self, method: str, path: str, raw: bool = False, **kwargs):
        """
        Send a request and return the decoded JSON body (or the response when raw=True).

        Raises:
            SessionExpiredError: a 401 could not be recovered by refreshing
            ApiError: any other non-2xx response
        """
        response = self._send(method, path, **kwargs)

        if response.status_code == 401 and path not in NO_REFRESH_PATHS and self.tokens.refresh_token:
            if not self.refresh():
                self.tokens.clear()
                if self.on_session_expired:
                    self.on_session_expired()
                raise SessionExpiredError()
            # Retried once; a second 401 is reported as a plain error
            response = self._send(method, path, **kwargs)

        if response.is_error:
            raise ApiError.from_response(response)
        if raw:
            return response
        return response.json()

    def get(self, path: str, params: Optional[dict] = None, **kwargs):
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        return self.request("GET", path, params=params, **kwargs)

    def post(self, path: str, json=None, **kwargs):
        return self.request("POST", path, json=json, **kwargs)

    def put(self, path: str, json=None, **kwargs):
        return self.request("PUT", path, json=json, **kwargs)

    def patch(self, path: str, json=None, **kwargs):
        return self.request("PATCH", path, json=json, **kwargs)

    def delete(self, path: str, **kwargs):
        return self.request("DELETE", path, **kwargs)
