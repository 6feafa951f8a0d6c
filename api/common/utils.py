"""
Common utility functions shared across the application.
"""

import math
import urllib.parse
from datetime import date, datetime
from typing import Any, List, Optional, Tuple

from fastapi import HTTPException

from api.common.config import APP_TIMEZONE


def generate_default_thumbnail(name: str) -> str:
    """
    Generate a default thumbnail URL using the given name.

    Args:
        name: The name to use for generating the thumbnail

    Returns:
        str: Default thumbnail URL
    """
    encoded_name = urllib.parse.quote(name)
    encoded_colors = urllib.parse.quote("f0f0f0,e0e0e0,d0d0d0")
    return f"https://api.dicebear.com/9.x/initials/png?seed={encoded_name}&backgroundColor={encoded_colors}"


def page_to_offset(page: int, size: int) -> Tuple[int, int]:
    """Convert a 1-based page number and page size to (limit, offset)."""
    page = max(1, page)
    return size, (page - 1) * size


def count_pages(total: int, size: int) -> int:
    """Number of pages needed to show `total` items, `size` per page."""
    if size <= 0:
        return 0
    return math.ceil(total / size)


def build_page(items: List[Any], total: int, limit: int, offset: int) -> dict:
    """
    Build the keyword arguments of a PaginationResponse.

    Args:
        items: Items of the current page
        total: Total number of matching items
        limit: Page size
        offset: Number of items skipped

    Returns:
        dict with items, total, page, size, pages, hasNext and hasPrev
    """
    page = offset // limit + 1 if limit > 0 else 1
    pages = count_pages(total, limit)
    return {
        "items": items,
        "total": total,
        "page": page,
        "size": limit,
        "pages": pages,
        "hasNext": page < pages,
        "hasPrev": page > 1,
    }


def paginate(items: List[Any], limit: int, offset: int) -> dict:
    """Slice an in-memory list and return PaginationResponse keyword arguments."""
    return build_page(items[offset:offset + limit], len(items), limit, offset)


def safe_float(value: Any, fallback: float = 0.0) -> float:
    """Parse a float, returning `fallback` for empty or invalid input."""
    if value is None or value == '':
        return fallback
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return fallback
    if math.isnan(parsed):
        return fallback
    return parsed


def safe_int(value: Any, fallback: int = 0) -> int:
    """Parse an integer, returning `fallback` for empty or invalid input."""
    if value is None or value == '':
        return fallback
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return fallback


def calculate_total_price(price: Any, quantity: Any, discount: Any = 0, tax_amount: Any = 0) -> float:
    """
    Total of a sale line: price * quantity - discount + tax.

    Raises:
        HTTPException: If price or quantity is not strictly positive
    """
    safe_price = safe_float(price)
    safe_quantity = safe_int(quantity)

    if safe_price <= 0 or safe_quantity <= 0:
        raise HTTPException(
            status_code=400,
            detail="Price and quantity must be greater than 0"
        )

    total = safe_price * safe_quantity - safe_float(discount) + safe_float(tax_amount)
    return round(total, 2)


def clean_text(value: Optional[str]) -> Optional[str]:
    """Strip a text field, mapping blank strings to None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def now_local() -> datetime:
    """Current time in the application timezone."""
    return datetime.now(APP_TIMEZONE)


def today_iso() -> str:
    """Current date in the application timezone, as YYYY-MM-DD."""
    return now_local().strftime("%Y-%m-%d")


def normalize_date(value: Any, field_name: str = "date") -> Optional[str]:
    """
    Normalize a date to YYYY-MM-DD.

    Accepts YYYY-MM-DD strings, ISO datetimes ("2025-07-01T13:39:11.410Z")
    and date/datetime objects. Blank values give None.

    Raises:
        ValueError: If the value is not a recognizable date
    """
    if value is None or value == '':
        return None

    if isinstance(value, datetime):
        return value.strftime('%Y-%m-%d')
    if isinstance(value, date):
        return value.isoformat()

    if not isinstance(value, str):
        raise ValueError(f"Invalid date format for {field_name}: {value}. Expected YYYY-MM-DD.")

    value = value.strip()
    try:
        if 'T' in value:
            return datetime.fromisoformat(value.replace('Z', '+00:00')).strftime('%Y-%m-%d')
        return datetime.strptime(value, '%Y-%m-%d').strftime('%Y-%m-%d')
    except ValueError:
        raise ValueError(f"Invalid date format for {field_name}: {value}. Expected YYYY-MM-DD.")
