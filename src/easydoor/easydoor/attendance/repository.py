from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Protocol, Sequence

from ..common.pagination import Page, PageRequest
from ..core.enums import WorkingFrom
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    """Giao diện repository cho phiên chấm công.

    Ràng buộc "một phiên đang mở cho mỗi nhân viên" do tầng lưu trữ đảm bảo:
    `open_session` và `update_fields` ném ConflictError khi vi phạm.
    """

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def find_active(self, employee_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def open_session(
        self,
        *,
        employee_id: int,
        working_from: WorkingFrom,
        office_id: Optional[int],
        clock_in: datetime,
    ) -> int:
        """Atomic insert; raises ConflictError when the employee already has an open session."""

        raise NotImplementedError

    def close_session(self, attendance_id: int, *, clock_out: datetime, duration: str) -> bool:
        """Conditional on the session still being open; False otherwise."""

        raise NotImplementedError

    def update_fields(self, attendance_id: int, fields: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def delete(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_attendance(
        self,
        *,
        page: PageRequest,
        employee_id: Optional[int] = None,
        working_from: Optional[WorkingFrom] = None,
        office_id: Optional[int] = None,
        is_active: Optional[bool] = None,
        clock_in_from: Optional[datetime] = None,
        clock_in_before: Optional[datetime] = None,
    ) -> Page[AttendanceRecord]:
        """clock_in in [clock_in_from, clock_in_before); newest clock_in first."""

        raise NotImplementedError

    def list_active(
        self,
        *,
        office_id: Optional[int] = None,
        working_from: Optional[WorkingFrom] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_employee(
        self,
        employee_id: int,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[AttendanceRecord]:
        """clock_in in [start, end], both bounds optional; newest first."""

        raise NotImplementedError
