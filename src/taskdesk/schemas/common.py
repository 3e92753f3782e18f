"""Response envelopes shared by every route.

- ApiResponse: {success, message, data, errors, timestamp} — success and
  failure responses have the same shape.
- PagedResponse: the `data` payload of list endpoints.
"""

import math
from datetime import datetime, timezone
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ApiResponse(BaseModel, Generic[T]):
    success: bool
    message: str
    data: Optional[T] = None
    errors: Optional[dict[str, str]] = None
    timestamp: datetime = Field(default_factory=_now)

    @classmethod
    def ok(cls, message: str, data=None) -> "ApiResponse":
        return cls(success=True, message=message, data=data)

    @classmethod
    def failure(cls, message: str, errors: Optional[dict[str, str]] = None) -> "ApiResponse":
        return cls(success=False, message=message, errors=errors or None)


class PagedResponse(BaseModel, Generic[T]):
    content: list[T]
    page_number: int
    page_size: int
    total_elements: int
    total_pages: int
    last: bool

    @classmethod
    def build(cls, content: list, total: int, page: int, size: int) -> "PagedResponse":
        """Wrap one page of results with its pagination metadata.

        `page` is zero-based. An empty result set has zero pages and
        its (only) page counts as the last one.
        """
        total_pages = math.ceil(total / size) if size else 0
        return cls(
            content=content,
            page_number=page,
            page_size=size,
            total_elements=total,
            total_pages=total_pages,
            last=page + 1 >= total_pages,
        )
