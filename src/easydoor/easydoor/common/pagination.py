from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Generic, Mapping, Sequence, TypeVar

from ..core.constants import DEFAULT_PAGE, DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from ..core.exceptions import ValidationError

T = TypeVar("T")


@dataclass(frozen=True)
class PageRequest:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_PAGE_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_args(cls, args: Mapping[str, Any], *, default_limit: int = DEFAULT_PAGE_LIMIT) -> "PageRequest":
        try:
            page = int(args.get("page") or DEFAULT_PAGE)
            limit = int(args.get("limit") or default_limit)
        except (TypeError, ValueError):
            raise ValidationError("page and limit must be integers")
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be positive")
        return cls(page=page, limit=min(limit, MAX_PAGE_LIMIT))


@dataclass(frozen=True)
class Page(Generic[T]):
    items: Sequence[T]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0
