from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Mapping, Optional, Sequence

from ..common.datetime_utils import now_local, parse_iso_date, parse_iso_datetime, parse_optional_datetime
from ..common.durations import format_duration, percentage, round_half_up
from ..common.logging_config import get_logger
from ..common.pagination import Page, PageRequest
from ..common.validators import optional_int, parse_bool, require_enum, require_int
from ..core.enums import WorkingFrom
from ..core.exceptions import (
    AlreadyDoneError,
    ConflictError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)
from ..offices.repository import OfficeRepository
from ..users.repository import UserRepository
from .model import AttendanceRecord
from .repository import AttendanceRepository

logger = get_logger(__name__)

_READ_ONLY_KEYS = {"id", "_id", "createdAt", "updatedAt", "__v"}


@dataclass(frozen=True)
class AttendanceSummary:
    """Tổng hợp chấm công của một nhân viên (chỉ đọc)."""

    employee_id: int
    start: Optional[datetime]
    end: Optional[datetime]
    total_sessions: int
    completed_sessions: int
    active_sessions: int
    total_work_hours: float
    average_work_hours: float
    office_work_days: int
    home_work_days: int
    office_percentage: int
    home_percentage: int
    records: Sequence[AttendanceRecord] = field(default_factory=tuple)


def summarize(
    employee_id: int,
    records: Sequence[AttendanceRecord],
    *,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> AttendanceSummary:
    completed = [r for r in records if r.clock_out]
    total_hours = sum(r.work_hours for r in completed)
    office_days = sum(1 for r in records if r.working_from == WorkingFrom.OFFICE)
    home_days = sum(1 for r in records if r.working_from == WorkingFrom.HOME)
    total = len(records)

    return AttendanceSummary(
        employee_id=employee_id,
        start=start,
        end=end,
        total_sessions=total,
        completed_sessions=len(completed),
        active_sessions=sum(1 for r in records if r.is_active),
        total_work_hours=round_half_up(total_hours, 2),
        average_work_hours=round_half_up(total_hours / len(completed), 2) if completed else 0,
        office_work_days=office_days,
        home_work_days=home_days,
        office_percentage=percentage(office_days, total),
        home_percentage=percentage(home_days, total),
        records=tuple(records),
    )


class AttendanceService:
    """Use case: vòng đời phiên chấm công (mở -> đóng).

    "Phiên đang mở" luôn được truy vấn lại từ kho (employee + is_active), không cache.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        offices: OfficeRepository,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._users = users
        self._offices = offices
        self._clock = clock

    def now(self) -> datetime:
        return self._clock()

    def clock_in(self, data: Mapping[str, Any]) -> AttendanceRecord:
        employee_id = require_int(data.get("employee"), "employee")
        working_from = require_enum(WorkingFrom, data.get("workingFrom"), "workingFrom")

        if not self._users.get_by_id(employee_id):
            raise NotFoundError("Employee not found")

        office_id: Optional[int] = None
        if working_from == WorkingFrom.OFFICE:
            office_id = optional_int(data.get("office"), "office")
            if office_id is None:
                raise PreconditionError("Office is required when working from office")
            if not self._offices.get_by_id(office_id):
                raise NotFoundError("Office not found")

        now = self.now()
        try:
            attendance_id = self._attendance.open_session(
                employee_id=employee_id,
                working_from=working_from,
                office_id=office_id,
                clock_in=now,
            )
        except ConflictError as e:
            active = self._attendance.find_active(employee_id)
            details = dict(e.details)
            if active:
                # AttendanceRecord; the controller renders it
                details["activeAttendance"] = active
            raise ConflictError(e.message, details=details) from e

        logger.info("Employee %s clocked in (%s, attendance=%s)", employee_id, working_from.value, attendance_id)
        return self.get_attendance(attendance_id)

    def clock_out(self, attendance_id: int) -> AttendanceRecord:
        record = self.get_attendance(attendance_id)
        if not record.is_active:
            raise AlreadyDoneError("Attendance session is not active")
        if record.clock_out:
            raise AlreadyDoneError("Employee is already clocked out")

        if not self._close(record):
            raise AlreadyDoneError("Attendance session is not active")
        return self.get_attendance(attendance_id)

    def clock_out_by_employee(self, employee_id: int) -> AttendanceRecord:
        record = self._attendance.find_active(employee_id)
        if not record or not self._close(record):
            raise NotFoundError("No active attendance session found for this employee")
        return self.get_attendance(record.attendance_id)

    def get_attendance(self, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(attendance_id)
        if not record:
            raise NotFoundError("Attendance record not found")
        return record

    def list_attendance(
        self,
        *,
        page: PageRequest,
        employee: Any = None,
        working_from: Optional[str] = None,
        office: Any = None,
        is_active: Optional[str] = None,
        on_date: Optional[str] = None,
    ) -> Page[AttendanceRecord]:
        day_start: Optional[datetime] = None
        day_end: Optional[datetime] = None
        if on_date:
            day = parse_iso_date(on_date)
            day_start = datetime(day.year, day.month, day.day)
            day_end = day_start + timedelta(days=1)

        return self._attendance.list_attendance(
            page=page,
            employee_id=optional_int(employee, "employee"),
            working_from=require_enum(WorkingFrom, working_from, "workingFrom") if working_from else None,
            office_id=optional_int(office, "office"),
            is_active=parse_bool(is_active, "isActive") if is_active is not None else None,
            clock_in_from=day_start,
            clock_in_before=day_end,
        )

    def list_active(self, *, office: Any = None, working_from: Optional[str] = None) -> Sequence[AttendanceRecord]:
        return self._attendance.list_active(
            office_id=optional_int(office, "office"),
            working_from=require_enum(WorkingFrom, working_from, "workingFrom") if working_from else None,
        )

    def summary(
        self,
        employee_id: int,
        *,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> AttendanceSummary:
        start = parse_optional_datetime(start_date, "startDate")
        end = parse_optional_datetime(end_date, "endDate")
        records = self._attendance.list_for_employee(employee_id, start=start, end=end)
        return summarize(employee_id, records, start=start, end=end)

    def update_attendance(self, attendance_id: int, changes: Mapping[str, Any]) -> AttendanceRecord:
        """Administrative patch; `isActive` always follows `clockOut`."""
        record = self.get_attendance(attendance_id)
        fields = self._parse_patch(changes)

        employee_id = fields.get("employee_id", record.employee_id)
        working_from = fields.get("working_from", record.working_from)
        office_id = fields.get("office_id", record.office_id)
        clock_in = fields.get("clock_in", record.clock_in)
        clock_out = fields.get("clock_out", record.clock_out)

        if clock_in is None:
            raise ValidationError("clockIn is required")
        if clock_out and clock_in > clock_out:
            raise ValidationError("clockIn must not be after clockOut")

        requested_active = fields.pop("requested_active", None)
        if requested_active is not None and requested_active != (clock_out is None):
            raise ValidationError("isActive must match clockOut (active sessions have no clockOut)")

        if working_from == WorkingFrom.HOME:
            office_id = None
            fields["office_id"] = None
        elif office_id is None:
            raise PreconditionError("Office is required when working from office")

        if "employee_id" in fields and not self._users.get_by_id(employee_id):
            raise NotFoundError("Employee not found")
        if office_id is not None and "office_id" in fields and office_id != record.office_id:
            if not self._offices.get_by_id(office_id):
                raise NotFoundError("Office not found")

        if "clock_in" in fields or "clock_out" in fields:
            fields["duration"] = format_duration(clock_in, clock_out) if clock_out else None
            fields["is_active"] = clock_out is None

        self._attendance.update_fields(attendance_id, fields)
        return self.get_attendance(attendance_id)

    def delete_attendance(self, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.delete(attendance_id)
        if not record:
            raise NotFoundError("Attendance record not found")
        logger.info("Attendance %s deleted", attendance_id)
        return record

    def _close(self, record: AttendanceRecord) -> bool:
        clock_out = self.now()
        duration = format_duration(record.clock_in, clock_out)
        closed = self._attendance.close_session(record.attendance_id, clock_out=clock_out, duration=duration)
        if closed:
            logger.info(
                "Employee %s clocked out (attendance=%s, %s)",
                record.employee_id,
                record.attendance_id,
                duration,
            )
        return closed

    def _parse_patch(self, changes: Mapping[str, Any]) -> dict[str, Any]:
        fields: dict[str, Any] = {}
        for key, value in changes.items():
            if key in _READ_ONLY_KEYS:
                continue
            if key == "employee":
                fields["employee_id"] = require_int(value, "employee")
            elif key == "workingFrom":
                fields["working_from"] = require_enum(WorkingFrom, value, "workingFrom")
            elif key == "office":
                fields["office_id"] = optional_int(value, "office")
            elif key == "clockIn":
                fields["clock_in"] = parse_iso_datetime(value, "clockIn")
            elif key == "clockOut":
                fields["clock_out"] = parse_optional_datetime(value, "clockOut")
            elif key == "isActive":
                fields["requested_active"] = parse_bool(value, "isActive")
            else:
                raise ValidationError(f"Field '{key}' cannot be updated")
        return fields
