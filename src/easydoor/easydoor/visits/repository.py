from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Protocol

from ..common.pagination import Page, PageRequest
from ..core.enums import VisitStatus
from .model import Visit


class VisitRepository(Protocol):
    """Giao diện repository cho Visit.

    `update_fields(..., expected=...)` là compare-and-swap: chỉ ghi khi các cột
    trong `expected` vẫn giữ giá trị đã đọc (None nghĩa là IS NULL).
    """

    def get_by_id(self, visit_id: int) -> Optional[Visit]:
        raise NotImplementedError

    def create_visit(
        self,
        *,
        visitor_id: int,
        employee_id: int,
        expected_clock_in: datetime,
        reason: str,
        comment: Optional[str],
        office_id: Optional[int],
    ) -> int:
        raise NotImplementedError

    def update_fields(
        self,
        visit_id: int,
        fields: Mapping[str, Any],
        *,
        expected: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        """Returns False when the row is gone or no longer matches `expected`."""

        raise NotImplementedError

    def delete(self, visit_id: int) -> Optional[Visit]:
        """Hard delete; returns the removed record."""

        raise NotImplementedError

    def list_visits(
        self,
        *,
        page: PageRequest,
        visitor_id: Optional[int] = None,
        employee_id: Optional[int] = None,
        status: Optional[VisitStatus] = None,
        office_id: Optional[int] = None,
    ) -> Page[Visit]:
        """Sorted by expected_clock_in, newest first."""

        raise NotImplementedError
