from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple


@dataclass(frozen=True)
class Company:
    """Thực thể miền (domain): Company.

    Các tuple id là tham chiếu ngược, được duy trì bởi các thao tác
    add/remove employee, employee-status và tạo/xoá Office.
    """

    company_id: int
    acronym: str
    full_name: str
    logo_url: Optional[str] = None
    office_ids: Tuple[int, ...] = field(default_factory=tuple)
    admin_ids: Tuple[int, ...] = field(default_factory=tuple)
    employee_ids: Tuple[int, ...] = field(default_factory=tuple)
    in_office_ids: Tuple[int, ...] = field(default_factory=tuple)
    out_of_service_ids: Tuple[int, ...] = field(default_factory=tuple)
    visitor_count: int = 0
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def total_employees(self) -> int:
        return len(self.employee_ids)

    @property
    def total_admins(self) -> int:
        return len(self.admin_ids)

    @property
    def total_offices(self) -> int:
        return len(self.office_ids)
