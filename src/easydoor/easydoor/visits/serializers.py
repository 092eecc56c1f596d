from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from ..common.datetime_utils import to_iso
from ..common.refs import RefResolver
from .model import Visit


def visit_json(visit: Visit, *, now: datetime, refs: Optional[RefResolver] = None) -> dict[str, Any]:
    """With `refs`, visitor, employee and office are populated."""
    return {
        "id": visit.visit_id,
        "visitor": refs.user(visit.visitor_id) if refs else visit.visitor_id,
        "employee": refs.user(visit.employee_id) if refs else visit.employee_id,
        "expectedClockIn": to_iso(visit.expected_clock_in),
        "clockIn": to_iso(visit.clock_in),
        "clockOut": to_iso(visit.clock_out),
        "duration": visit.duration,
        "reason": visit.reason,
        "comment": visit.comment,
        "status": visit.status.value,
        "office": refs.office(visit.office_id) if refs else visit.office_id,
        "isActive": visit.is_active,
        "isOverdue": visit.is_overdue(now),
        "createdAt": to_iso(visit.created_at),
        "updatedAt": to_iso(visit.updated_at),
    }
