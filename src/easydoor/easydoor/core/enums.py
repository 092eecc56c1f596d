from __future__ import annotations

from enum import Enum


class VisitStatus(str, Enum):
    """Trạng thái vòng đời của một lượt khách đến thăm."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    CANCELLED = "cancelled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class WorkingFrom(str, Enum):
    """Nơi làm việc của một phiên chấm công."""

    OFFICE = "office"
    HOME = "home"


class UserStatus(str, Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


class Civility(str, Enum):
    MR = "mr"
    MRS = "mrs"
    MS = "ms"


class Membership(str, Enum):
    """Danh sách tham chiếu ngược của Company chứa user id."""

    ADMIN = "admin"
    EMPLOYEE = "employee"
    IN_OFFICE = "in_office"
    OUT_OF_SERVICE = "out_of_service"


class PresenceStatus(str, Enum):
    """Giá trị `status` chấp nhận bởi /companies/<id>/employee-status."""

    IN_OFFICE = "inOffice"
    OUT_OF_SERVICE = "outOfService"

    @property
    def membership(self) -> Membership:
        if self is PresenceStatus.IN_OFFICE:
            return Membership.IN_OFFICE
        return Membership.OUT_OF_SERVICE
