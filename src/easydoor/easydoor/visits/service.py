from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Mapping, Optional

from ..common.backrefs import sync_backref
from ..common.datetime_utils import now_local, parse_iso_datetime, parse_optional_datetime
from ..common.durations import format_duration
from ..common.logging_config import get_logger
from ..common.pagination import Page, PageRequest
from ..common.validators import optional_int, optional_text, require_enum, require_int, require_non_empty
from ..core.constants import CANCELLATION_PREFIX
from ..core.enums import VisitStatus
from ..core.exceptions import (
    AlreadyDoneError,
    InvalidStateError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)
from ..offices.repository import OfficeRepository
from ..users.repository import UserRepository
from .model import Visit
from .repository import VisitRepository

logger = get_logger(__name__)

_READ_ONLY_KEYS = {"id", "_id", "createdAt", "updatedAt", "__v"}

_CANCELLABLE = {VisitStatus.PENDING, VisitStatus.ACCEPTED}


def append_cancellation(comment: Optional[str], reason: Optional[str]) -> Optional[str]:
    """Add 'Cancellation reason: ...' below the existing comment, never replacing it."""
    reason = optional_text(reason)
    if not reason:
        return comment
    line = f"{CANCELLATION_PREFIX}{reason}"
    return f"{comment}\n{line}" if comment else line


def check_consistency(
    status: VisitStatus,
    clock_in: Optional[datetime],
    clock_out: Optional[datetime],
) -> None:
    if clock_out and not clock_in:
        raise ValidationError("clockOut requires clockIn")
    if clock_in and clock_out and clock_in > clock_out:
        raise ValidationError("clockIn must not be after clockOut")
    if status in (VisitStatus.PENDING, VisitStatus.ACCEPTED) and clock_in:
        raise ValidationError(f"A {status.value} visit cannot have clockIn set")
    if status == VisitStatus.IN_PROGRESS and (not clock_in or clock_out):
        raise ValidationError("An in_progress visit needs clockIn and no clockOut")
    if status == VisitStatus.COMPLETED and not clock_out:
        raise ValidationError("A completed visit needs clockOut")


class VisitService:
    """Use case: vòng đời Visit (pending -> accepted -> in_progress -> completed, hoặc cancelled).

    Mọi chuyển trạng thái đọc lại bản ghi rồi ghi có điều kiện trên trạng thái vừa đọc.
    Nếu một request khác đã chuyển trạng thái trước, thao tác thất bại với InvalidStateError.
    """

    def __init__(
        self,
        visits: VisitRepository,
        users: UserRepository,
        offices: OfficeRepository,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._visits = visits
        self._users = users
        self._offices = offices
        self._clock = clock

    def now(self) -> datetime:
        return self._clock()

    def create_visit(self, data: Mapping[str, Any]) -> Visit:
        visitor_id = require_int(data.get("visitor"), "visitor")
        employee_id = require_int(data.get("employee"), "employee")
        expected_clock_in = parse_iso_datetime(data.get("expectedClockIn"), "expectedClockIn")
        reason = require_non_empty(data.get("reason"), "reason")
        office_id = optional_int(data.get("office"), "office")

        if not self._users.get_by_id(visitor_id):
            raise NotFoundError("Visitor not found")
        if not self._users.get_by_id(employee_id):
            raise NotFoundError("Employee not found")
        if office_id is not None and not self._offices.get_by_id(office_id):
            raise NotFoundError("Office not found")

        visit_id = self._visits.create_visit(
            visitor_id=visitor_id,
            employee_id=employee_id,
            expected_clock_in=expected_clock_in,
            reason=reason,
            comment=optional_text(data.get("comment")),
            office_id=office_id,
        )
        sync_backref(
            f"user {visitor_id}.visits += {visit_id}",
            lambda: self._users.add_visit(visitor_id, visit_id),
        )
        logger.info("Visit %s created (visitor=%s employee=%s)", visit_id, visitor_id, employee_id)
        return self.get_visit(visit_id)

    def get_visit(self, visit_id: int) -> Visit:
        visit = self._visits.get_by_id(visit_id)
        if not visit:
            raise NotFoundError("Visit not found")
        return visit

    def list_visits(
        self,
        *,
        page: PageRequest,
        visitor: Any = None,
        employee: Any = None,
        status: Optional[str] = None,
        office: Any = None,
    ) -> Page[Visit]:
        return self._visits.list_visits(
            page=page,
            visitor_id=optional_int(visitor, "visitor"),
            employee_id=optional_int(employee, "employee"),
            status=require_enum(VisitStatus, status, "status") if status else None,
            office_id=optional_int(office, "office"),
        )

    def list_by_status(self, status: str, *, page: PageRequest) -> Page[Visit]:
        return self._visits.list_visits(page=page, status=require_enum(VisitStatus, status, "status"))

    def accept(self, visit_id: int) -> Visit:
        visit = self.get_visit(visit_id)
        if visit.status != VisitStatus.PENDING:
            raise InvalidStateError("Only pending visits can be accepted", details={"status": visit.status.value})

        self._transition(visit, {"status": VisitStatus.ACCEPTED})
        logger.info("Visit %s accepted", visit_id)
        return self.get_visit(visit_id)

    def cancel(self, visit_id: int, reason: Optional[str] = None) -> Visit:
        visit = self.get_visit(visit_id)
        if visit.status == VisitStatus.COMPLETED:
            raise InvalidStateError("Completed visits cannot be cancelled", details={"status": visit.status.value})
        if visit.status not in _CANCELLABLE:
            raise InvalidStateError(
                "Only pending or accepted visits can be cancelled",
                details={"status": visit.status.value},
            )

        self._transition(
            visit,
            {"status": VisitStatus.CANCELLED, "comment": append_cancellation(visit.comment, reason)},
        )
        logger.info("Visit %s cancelled", visit_id)
        return self.get_visit(visit_id)

    def clock_in(self, visit_id: int) -> Visit:
        visit = self.get_visit(visit_id)
        if visit.status != VisitStatus.ACCEPTED:
            raise InvalidStateError("Only accepted visits can be clocked in", details={"status": visit.status.value})
        if visit.clock_in:
            raise AlreadyDoneError("Visitor is already clocked in")

        self._transition(
            visit,
            {"clock_in": self.now(), "status": VisitStatus.IN_PROGRESS},
            extra_guard={"clock_in": None},
        )
        logger.info("Visit %s clocked in", visit_id)
        return self.get_visit(visit_id)

    def clock_out(self, visit_id: int) -> Visit:
        visit = self.get_visit(visit_id)
        if not visit.clock_in:
            raise PreconditionError("Visitor must be clocked in before clocking out")
        if visit.clock_out:
            raise AlreadyDoneError("Visitor is already clocked out")

        clock_out = self.now()
        fields: dict[str, Any] = {
            "clock_out": clock_out,
            "duration": format_duration(visit.clock_in, clock_out),
        }
        if visit.status == VisitStatus.IN_PROGRESS:
            fields["status"] = VisitStatus.COMPLETED

        self._transition(visit, fields, extra_guard={"clock_out": None})
        logger.info("Visit %s clocked out after %s", visit_id, fields["duration"])
        return self.get_visit(visit_id)

    def update_visit(self, visit_id: int, changes: Mapping[str, Any]) -> Visit:
        """Administrative patch. Skips the transition graph but keeps status and clocks consistent."""
        visit = self.get_visit(visit_id)
        fields = self._parse_patch(changes)

        status = fields.get("status", visit.status)
        clock_in = fields.get("clock_in", visit.clock_in)
        clock_out = fields.get("clock_out", visit.clock_out)
        check_consistency(status, clock_in, clock_out)

        if "clock_in" in fields or "clock_out" in fields:
            fields["duration"] = format_duration(clock_in, clock_out) if clock_in and clock_out else None

        office_id = fields.get("office_id")
        if office_id is not None and not self._offices.get_by_id(office_id):
            raise NotFoundError("Office not found")

        self._transition(visit, fields)
        return self.get_visit(visit_id)

    def delete_visit(self, visit_id: int) -> Visit:
        visit = self._visits.delete(visit_id)
        if not visit:
            raise NotFoundError("Visit not found")
        sync_backref(
            f"user {visit.visitor_id}.visits -= {visit_id}",
            lambda: self._users.remove_visit(visit.visitor_id, visit_id),
        )
        logger.info("Visit %s deleted", visit_id)
        return visit

    def _parse_patch(self, changes: Mapping[str, Any]) -> dict[str, Any]:
        fields: dict[str, Any] = {}
        for key, value in changes.items():
            if key in _READ_ONLY_KEYS:
                continue
            if key == "status":
                fields["status"] = require_enum(VisitStatus, value, "status")
            elif key == "reason":
                fields["reason"] = require_non_empty(value, "reason")
            elif key == "comment":
                fields["comment"] = optional_text(value)
            elif key == "expectedClockIn":
                fields["expected_clock_in"] = parse_iso_datetime(value, "expectedClockIn")
            elif key == "clockIn":
                fields["clock_in"] = parse_optional_datetime(value, "clockIn")
            elif key == "clockOut":
                fields["clock_out"] = parse_optional_datetime(value, "clockOut")
            elif key == "office":
                fields["office_id"] = optional_int(value, "office")
            else:
                raise ValidationError(f"Field '{key}' cannot be updated")
        return fields

    def _transition(
        self,
        visit: Visit,
        fields: Mapping[str, Any],
        *,
        extra_guard: Optional[Mapping[str, Any]] = None,
    ) -> None:
        expected = {"status": visit.status, **(extra_guard or {})}
        if not self._visits.update_fields(visit.visit_id, fields, expected=expected):
            current = self._visits.get_by_id(visit.visit_id)
            if not current:
                raise NotFoundError("Visit not found")
            raise InvalidStateError(
                "Visit was modified concurrently",
                details={"status": current.status.value},
            )
