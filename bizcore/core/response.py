"""JSON response envelopes: `{data}` for single items, `{data, meta}` for pages."""


import math
from typing import Generic, TypeVar

from pydantic import BaseModel

from bizcore.core.pagination import PageMeta

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    data: T


class ListResponse(BaseModel, Generic[T]):
    data: list[T]
    meta: PageMeta


def paginated(items: list, total: int, page: int, limit: int) -> dict:
    """Build the body for a ListResponse; `pages` is at least 1."""
    return {
        "data": items,
        "meta": {
            "total": total,
            "page": page,
            "limit": limit,
            "pages": max(1, math.ceil(total / limit)) if limit else 1,
        },
    }
