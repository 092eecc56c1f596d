from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import VisitStatus


@dataclass(frozen=True)
class Visit:
    """Thực thể miền (domain): một lượt khách đến gặp nhân viên.

    `duration` là chuỗi hiển thị, được tính lại mỗi khi clock_out thay đổi.
    """

    visit_id: int
    visitor_id: int
    employee_id: int
    expected_clock_in: datetime
    reason: str
    status: VisitStatus = VisitStatus.PENDING
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    duration: Optional[str] = None
    comment: Optional[str] = None
    office_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == VisitStatus.IN_PROGRESS

    def is_overdue(self, now: datetime) -> bool:
        return self.status == VisitStatus.PENDING and now > self.expected_clock_in
