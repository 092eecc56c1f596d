from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.durations import format_elapsed, work_hours
from ..core.constants import OVERTIME_THRESHOLD_HOURS
from ..core.enums import WorkingFrom


@dataclass(frozen=True)
class AttendanceRecord:
    """Thực thể miền (domain): một phiên chấm công.

    Phiên đang mở khi `is_active` là True; mỗi nhân viên có tối đa một phiên đang mở.
    """

    attendance_id: int
    employee_id: int
    working_from: WorkingFrom
    clock_in: datetime
    office_id: Optional[int] = None
    clock_out: Optional[datetime] = None
    duration: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def work_hours(self) -> float:
        return work_hours(self.clock_in, self.clock_out)

    @property
    def is_overtime(self) -> bool:
        return self.work_hours > OVERTIME_THRESHOLD_HOURS

    def current_duration(self, now: datetime) -> Optional[str]:
        if not self.is_active or not self.clock_in:
            return None
        return format_elapsed(self.clock_in, now)
