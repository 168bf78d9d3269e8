import math
from typing import Optional

from fastapi import Query
from fastapi_pagination import Params

from questionnaire_api.core.config import settings

# Row offsets must fit a signed 64-bit integer in the store
MAX_OFFSET = 2 ** 63 - 1


def parse_positive_int(raw: Optional[str], default: int) -> int:
    """Positive integer from a query string value, or the default when absent or invalid"""
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value >= 1 else default


def build_params(
        page: Optional[str] = None,
        limit: Optional[str] = None,
        *,
        default_size: int = settings.DEFAULT_PAGE_SIZE,
        max_size: int = settings.MAX_PAGE_SIZE,
) -> Params:
    """
    Build pagination parameters from raw query values.

    Args:
        page: Page number (1-indexed)
        limit: Items per page, clamped to max_size

    Returns:
        Pagination parameters
    """
    size = min(parse_positive_int(limit, default_size), max_size)
    page_number = min(parse_positive_int(page, 1), MAX_OFFSET // size + 1)
    return Params(page=page_number, size=size)


async def get_pagination_params(
        page: Optional[str] = Query(None, description="Page number, defaults to 1"),
        limit: Optional[str] = Query(None, description="Items per page, defaults to 10"),
) -> Params:
    """
    Get pagination parameters.

    Malformed values fall back to the defaults instead of failing the request.
    """
    return build_params(page, limit)


def total_pages(total: int, size: int) -> int:
    return math.ceil(total / size) if size else 0
