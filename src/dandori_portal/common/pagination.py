from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, Mapping, Sequence, TypeVar

from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

T = TypeVar("T")


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_args(cls, args: Mapping[str, str]) -> "PageRequest":
        """Read page/limit query params, clamping bad values instead of failing."""
        try:
            page = int(args.get("page", 1))
        except (TypeError, ValueError):
            page = 1
        try:
            limit = int(args.get("limit", DEFAULT_PAGE_SIZE))
        except (TypeError, ValueError):
            limit = DEFAULT_PAGE_SIZE
        return cls(page=max(page, 1), limit=min(max(limit, 1), MAX_PAGE_SIZE))


@dataclass(frozen=True)
class Page(Generic[T]):
    items: Sequence[T]
    total: int
    request: PageRequest

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.request.limit) if self.total else 0

    def meta(self) -> dict:
        return {
            "page": self.request.page,
            "limit": self.request.limit,
            "total": self.total,
            "total_pages": self.total_pages,
        }


def paginate_list(items: Sequence[T], request: PageRequest) -> Page[T]:
    """Slice an in-memory list (used by fakes and small JSON-backed lists)."""
    window = list(items)[request.offset : request.offset + request.limit]
    return Page(items=window, total=len(items), request=request)
