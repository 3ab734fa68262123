"""
Utility helper functions for DYHE Delivery backend.
Contains shared helpers for timestamps, durations, pagination and search filters.
"""
import math
import re
import uuid
from datetime import datetime, timezone, timedelta
from typing import List, Optional, Tuple

from config import REPORT_UTC_OFFSET_HOURS

BUSINESS_TZ = timezone(timedelta(hours=REPORT_UTC_OFFSET_HOURS))

_DURATION_UNITS = {"s": "seconds", "m": "minutes", "h": "hours", "d": "days"}


def new_id() -> str:
    return str(uuid.uuid4())


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string with fixed microsecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def parse_iso(value: str) -> datetime:
    """Parse a stored ISO timestamp, assuming UTC when no offset is present."""
    parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_duration(value: str) -> timedelta:
    """
    Parse a duration such as "15m", "7d", "3600s" or "12h".

    A bare number is read as seconds.

    Raises:
        ValueError: if the value is not a recognised duration
    """
    match = re.fullmatch(r"\s*(\d+)\s*([smhd]?)\s*", value or "")
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS.get(unit or "s"): int(amount)})


def pagination_meta(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": math.ceil(total / limit) if limit else 0,
    }


def search_filter(search: Optional[str], fields: List[str]) -> dict:
    """
    Build a case-insensitive substring $or filter across the given fields.

    The search term is regex-escaped so user input is matched literally.
    """
    if not search:
        return {}
    pattern = re.escape(search.strip())
    return {"$or": [{field: {"$regex": pattern, "$options": "i"}} for field in fields]}


def business_day_range(start_date: Optional[str], end_date: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """
    Convert YYYY-MM-DD calendar days in the business timezone into UTC ISO bounds.

    Returns (start_inclusive, end_inclusive); either side is None when not given.
    """
    start_bound = None
    end_bound = None
    if start_date:
        day = datetime.strptime(start_date[:10], "%Y-%m-%d").replace(tzinfo=BUSINESS_TZ)
        start_bound = day.astimezone(timezone.utc).isoformat(timespec="microseconds")
    if end_date:
        day = datetime.strptime(end_date[:10], "%Y-%m-%d").replace(tzinfo=BUSINESS_TZ)
        day_end = day + timedelta(days=1) - timedelta(microseconds=1)
        end_bound = day_end.astimezone(timezone.utc).isoformat(timespec="microseconds")
    return start_bound, end_bound


def date_range_query(field: str, start_date: Optional[str], end_date: Optional[str]) -> dict:
    start_bound, end_bound = business_day_range(start_date, end_date)
    condition = {}
    if start_bound:
        condition["$gte"] = start_bound
    if end_bound:
        condition["$lte"] = end_bound
    return {field: condition} if condition else {}


def business_today() -> str:
    """Today's date (YYYY-MM-DD) in the business timezone."""
    return datetime.now(BUSINESS_TZ).strftime("%Y-%m-%d")


def format_business_date(value: Optional[str], fmt: str = "%Y-%m-%d %H:%M") -> str:
    """Render a stored UTC timestamp in the business timezone."""
    if not value:
        return ""
    return parse_iso(value).astimezone(BUSINESS_TZ).strftime(fmt)
