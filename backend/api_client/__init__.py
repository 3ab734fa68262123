"""
Python client for the DYHE Delivery API.
Token refresh on 401, a stale-time query cache and invalidating mutations.
"""
from api_client.cache import QueryCache, params_key
from api_client.client import ApiClient, ApiError, SessionExpiredError, TokenStore
from api_client.queries import Queries
from api_client.resources import Api

__all__ = [
    "Api",
    "ApiClient",
    "ApiError",
    "Queries",
    "QueryCache",
    "SessionExpiredError",
    "TokenStore",
    "params_key",
]
