from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from ..common.datetime_utils import to_iso
from ..common.refs import RefResolver
from .model import AttendanceRecord


def attendance_json(
    record: AttendanceRecord,
    *,
    now: datetime,
    refs: Optional[RefResolver] = None,
) -> dict[str, Any]:
    """JSON view of a session; with `refs`, employee and office are populated."""
    return {
        "id": record.attendance_id,
        "employee": refs.user(record.employee_id) if refs else record.employee_id,
        "workingFrom": record.working_from.value,
        "office": refs.office(record.office_id) if refs else record.office_id,
        "clockIn": to_iso(record.clock_in),
        "clockOut": to_iso(record.clock_out),
        "duration": record.duration,
        "isActive": record.is_active,
        "workHours": record.work_hours,
        "isOvertime": record.is_overtime,
        "currentDuration": record.current_duration(now),
        "createdAt": to_iso(record.created_at),
        "updatedAt": to_iso(record.updated_at),
    }
