from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Optional

import pytest

from src.easydoor.easydoor.attendance.model import AttendanceRecord
from src.easydoor.easydoor.common.pagination import Page
from src.easydoor.easydoor.companies.model import Company
from src.easydoor.easydoor.core.enums import Membership, VisitStatus
from src.easydoor.easydoor.core.exceptions import ConflictError
from src.easydoor.easydoor.offices.model import Office
from src.easydoor.easydoor.service_cards.model import ServiceCard
from src.easydoor.easydoor.users.model import User
from src.easydoor.easydoor.visits.model import Visit

BASE_TIME = datetime(2026, 3, 2, 9, 0, 0)


def _stamp(record_id: int) -> datetime:
    # created_at tăng dần theo id để thứ tự "newest first" ổn định
    return datetime(2026, 1, 1) + timedelta(seconds=record_id)


def _paginate(items, page) -> Page:
    items = list(items)
    if page is None:
        return Page(items=items, page=1, limit=max(len(items), 1), total=len(items))
    return Page(
        items=items[page.offset: page.offset + page.limit],
        page=page.page,
        limit=page.limit,
        total=len(items),
    )


class FakeClock:
    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


class InMemoryUsers:
    def __init__(self):
        self._users: dict[int, User] = {}
        self._next_id = 1

    def add(self, email: str, **fields) -> User:
        user_id = self.create_user(
            email=email,
            password_hash=fields.pop("password_hash", "not-a-hash"),
            first_name=fields.pop("first_name", None),
            last_name=fields.pop("last_name", None),
            phone=None,
            civility=None,
        )
        if fields:
            self.update_fields(user_id, fields)
        return self._users[user_id]

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._users.get(int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self._users.values() if u.email == email), None)

    def create_user(self, *, email, password_hash, first_name, last_name, phone, civility) -> int:
        if self.get_by_email(email):
            raise ConflictError("User with this email already exists", details={"field": "email"})
        user_id = self._next_id
        self._next_id += 1
        self._users[user_id] = User(
            user_id=user_id,
            email=email,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            civility=civility,
            created_at=_stamp(user_id),
            updated_at=_stamp(user_id),
        )
        return user_id

    def update_fields(self, user_id: int, fields) -> bool:
        user = self._users.get(int(user_id))
        if not user:
            return False
        self._users[user.user_id] = replace(user, **dict(fields))
        return True

    def list_users(self, *, page, status=None, is_admin=None) -> Page:
        items = [u for u in self._users.values() if u.is_active]
        if status is not None:
            items = [u for u in items if u.status == status]
        if is_admin is not None:
            items = [u for u in items if u.is_admin == is_admin]
        items.sort(key=lambda u: (u.created_at, u.user_id), reverse=True)
        return _paginate(items, page)

    def add_visit(self, user_id: int, visit_id: int) -> None:
        user = self._users[int(user_id)]
        if visit_id not in user.visit_ids:
            self._users[user.user_id] = replace(user, visit_ids=user.visit_ids + (visit_id,))

    def remove_visit(self, user_id: int, visit_id: int) -> None:
        user = self._users[int(user_id)]
        self._users[user.user_id] = replace(user, visit_ids=tuple(v for v in user.visit_ids if v != visit_id))


_MEMBERSHIP_FIELDS = {
    Membership.ADMIN: "admin_ids",
    Membership.EMPLOYEE: "employee_ids",
    Membership.IN_OFFICE: "in_office_ids",
    Membership.OUT_OF_SERVICE: "out_of_service_ids",
}


class InMemoryCompanies:
    def __init__(self):
        self._companies: dict[int, Company] = {}
        self._next_id = 1

    def add(self, acronym: str = "ACME", full_name: str = "Acme Corporation") -> Company:
        return self._companies[self.create_company(acronym=acronym, full_name=full_name, logo_url=None)]

    def get_by_id(self, company_id: int) -> Optional[Company]:
        return self._companies.get(int(company_id))

    def get_by_acronym(self, acronym: str) -> Optional[Company]:
        return next((c for c in self._companies.values() if c.acronym == acronym), None)

    def create_company(self, *, acronym, full_name, logo_url) -> int:
        if self.get_by_acronym(acronym):
            raise ConflictError("Company with this acronym already exists", details={"field": "acronym"})
        company_id = self._next_id
        self._next_id += 1
        self._companies[company_id] = Company(
            company_id=company_id,
            acronym=acronym,
            full_name=full_name,
            logo_url=logo_url,
            created_at=_stamp(company_id),
            updated_at=_stamp(company_id),
        )
        return company_id

    def update_fields(self, company_id: int, fields) -> bool:
        company = self._companies.get(int(company_id))
        if not company:
            return False
        self._companies[company.company_id] = replace(company, **dict(fields))
        return True

    def list_companies(self, *, page, is_active=None) -> Page:
        items = list(self._companies.values())
        if is_active is not None:
            items = [c for c in items if c.is_active == is_active]
        items.sort(key=lambda c: (c.created_at, c.company_id), reverse=True)
        return _paginate(items, page)

    def add_member(self, company_id: int, user_id: int, membership: Membership) -> None:
        company = self._companies[int(company_id)]
        name = _MEMBERSHIP_FIELDS[membership]
        ids = getattr(company, name)
        if user_id not in ids:
            self._companies[company.company_id] = replace(company, **{name: ids + (user_id,)})

    def remove_member(self, company_id: int, user_id: int, memberships) -> None:
        for membership in memberships:
            company = self._companies[int(company_id)]
            name = _MEMBERSHIP_FIELDS[membership]
            ids = tuple(i for i in getattr(company, name) if i != user_id)
            self._companies[company.company_id] = replace(company, **{name: ids})

    def add_office(self, company_id: int, office_id: int) -> None:
        company = self._companies[int(company_id)]
        if office_id not in company.office_ids:
            self._companies[company.company_id] = replace(company, office_ids=company.office_ids + (office_id,))

    def remove_office(self, company_id: int, office_id: int) -> None:
        company = self._companies[int(company_id)]
        ids = tuple(i for i in company.office_ids if i != office_id)
        self._companies[company.company_id] = replace(company, office_ids=ids)


class InMemoryOffices:
    def __init__(self):
        self._offices: dict[int, Office] = {}
        self._next_id = 1

    def add(self, company_id: int, name: str = "HQ", city: str = "Paris", capacity: int = 50) -> Office:
        office_id = self.create_office(
            name=name,
            address="1 Main Street",
            city=city,
            country="France",
            company_id=company_id,
            zip_code=None,
            phone=None,
            email=None,
            capacity=capacity,
        )
        return self._offices[office_id]

    def get_by_id(self, office_id: int) -> Optional[Office]:
        return self._offices.get(int(office_id))

    def create_office(self, *, name, address, city, country, company_id, zip_code, phone, email, capacity) -> int:
        office_id = self._next_id
        self._next_id += 1
        self._offices[office_id] = Office(
            office_id=office_id,
            name=name,
            address=address,
            city=city,
            country=country,
            company_id=company_id,
            zip_code=zip_code,
            phone=phone,
            email=email,
            capacity=capacity,
            created_at=_stamp(office_id),
            updated_at=_stamp(office_id),
        )
        return office_id

    def update_fields(self, office_id: int, fields) -> bool:
        office = self._offices.get(int(office_id))
        if not office:
            return False
        self._offices[office.office_id] = replace(office, **dict(fields))
        return True

    def list_offices(self, *, page, company_id=None, city=None, is_active=None) -> Page:
        items = list(self._offices.values())
        if company_id is not None:
            items = [o for o in items if o.company_id == company_id]
        if city:
            items = [o for o in items if city.lower() in o.city.lower()]
        if is_active is not None:
            items = [o for o in items if o.is_active == is_active]
        items.sort(key=lambda o: (o.created_at, o.office_id), reverse=True)
        return _paginate(items, page)

    def list_by_company(self, company_id: int, *, is_active=None):
        items = [o for o in self._offices.values() if o.company_id == company_id]
        if is_active is not None:
            items = [o for o in items if o.is_active == is_active]
        return sorted(items, key=lambda o: o.name)


class InMemoryServiceCards:
    def __init__(self):
        self._cards: dict[int, ServiceCard] = {}
        self._next_id = 1

    def get_by_id(self, card_id: int) -> Optional[ServiceCard]:
        return self._cards.get(int(card_id))

    def find_active(self, user_id: int, company_id: int) -> Optional[ServiceCard]:
        return next(
            (c for c in self._cards.values() if c.user_id == user_id and c.company_id == company_id and c.is_active),
            None,
        )

    def create_card(self, *, user_id, company_id, position, issue_at, expire_at, card_number) -> int:
        if any(c.card_number == card_number for c in self._cards.values()):
            raise ConflictError("Service card number already exists", details={"field": "cardNumber"})
        card_id = self._next_id
        self._next_id += 1
        self._cards[card_id] = ServiceCard(
            card_id=card_id,
            user_id=user_id,
            company_id=company_id,
            position=position,
            issue_at=issue_at,
            expire_at=expire_at,
            card_number=card_number,
            created_at=_stamp(card_id),
            updated_at=_stamp(card_id),
        )
        return card_id

    def update_fields(self, card_id: int, fields) -> bool:
        card = self._cards.get(int(card_id))
        if not card:
            return False
        self._cards[card.card_id] = replace(card, **dict(fields))
        return True

    def delete(self, card_id: int) -> bool:
        return self._cards.pop(int(card_id), None) is not None

    def list_cards(self, *, page=None, user_id=None, company_id=None, is_active=None, position=None) -> Page:
        items = list(self._cards.values())
        if user_id is not None:
            items = [c for c in items if c.user_id == user_id]
        if company_id is not None:
            items = [c for c in items if c.company_id == company_id]
        if is_active is not None:
            items = [c for c in items if c.is_active == is_active]
        if position:
            items = [c for c in items if position.lower() in c.position.lower()]
        items.sort(key=lambda c: (c.created_at, c.card_id), reverse=True)
        return _paginate(items, page)


class InMemoryVisits:
    def __init__(self):
        self._visits: dict[int, Visit] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def get_by_id(self, visit_id: int) -> Optional[Visit]:
        return self._visits.get(int(visit_id))

    def create_visit(self, *, visitor_id, employee_id, expected_clock_in, reason, comment, office_id) -> int:
        with self._lock:
            visit_id = self._next_id
            self._next_id += 1
            self._visits[visit_id] = Visit(
                visit_id=visit_id,
                visitor_id=visitor_id,
                employee_id=employee_id,
                expected_clock_in=expected_clock_in,
                reason=reason,
                comment=comment,
                office_id=office_id,
                created_at=_stamp(visit_id),
                updated_at=_stamp(visit_id),
            )
            return visit_id

    def update_fields(self, visit_id: int, fields, *, expected=None) -> bool:
        with self._lock:
            visit = self._visits.get(int(visit_id))
            if not visit:
                return False
            for column, value in (expected or {}).items():
                if getattr(visit, column) != value:
                    return False
            self._visits[visit.visit_id] = replace(visit, **dict(fields))
            return True

    def delete(self, visit_id: int) -> Optional[Visit]:
        with self._lock:
            return self._visits.pop(int(visit_id), None)

    def list_visits(self, *, page, visitor_id=None, employee_id=None, status=None, office_id=None) -> Page:
        items = list(self._visits.values())
        if visitor_id is not None:
            items = [v for v in items if v.visitor_id == visitor_id]
        if employee_id is not None:
            items = [v for v in items if v.employee_id == employee_id]
        if status is not None:
            items = [v for v in items if v.status == status]
        if office_id is not None:
            items = [v for v in items if v.office_id == office_id]
        items.sort(key=lambda v: (v.expected_clock_in, v.visit_id), reverse=True)
        return _paginate(items, page)

    def force_status(self, visit_id: int, status: VisitStatus) -> None:
        """Simulate a concurrent writer changing the row behind the service's back."""
        self._visits[visit_id] = replace(self._visits[visit_id], status=status)


class InMemoryAttendance:
    """Enforces one open session per employee under a lock, like the unique index does in MySQL."""

    def __init__(self):
        self._records: dict[int, AttendanceRecord] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def _active_for(self, employee_id: int, *, exclude: Optional[int] = None) -> Optional[AttendanceRecord]:
        return next(
            (
                r
                for r in self._records.values()
                if r.employee_id == employee_id and r.is_active and r.attendance_id != exclude
            ),
            None,
        )

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        return self._records.get(int(attendance_id))

    def find_active(self, employee_id: int) -> Optional[AttendanceRecord]:
        return self._active_for(employee_id)

    def open_session(self, *, employee_id, working_from, office_id, clock_in) -> int:
        with self._lock:
            if self._active_for(employee_id):
                raise ConflictError("Employee already has an active attendance session")
            attendance_id = self._next_id
            self._next_id += 1
            self._records[attendance_id] = AttendanceRecord(
                attendance_id=attendance_id,
                employee_id=employee_id,
                working_from=working_from,
                office_id=office_id,
                clock_in=clock_in,
                created_at=clock_in,
                updated_at=clock_in,
            )
            return attendance_id

    def close_session(self, attendance_id: int, *, clock_out, duration) -> bool:
        with self._lock:
            record = self._records.get(int(attendance_id))
            if not record or not record.is_active:
                return False
            self._records[record.attendance_id] = replace(
                record, clock_out=clock_out, duration=duration, is_active=False
            )
            return True

    def update_fields(self, attendance_id: int, fields) -> bool:
        with self._lock:
            record = self._records.get(int(attendance_id))
            if not record:
                return False
            updated = replace(record, **dict(fields))
            if updated.is_active and self._active_for(updated.employee_id, exclude=updated.attendance_id):
                raise ConflictError("Employee already has an active attendance session")
            self._records[record.attendance_id] = updated
            return True

    def delete(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with self._lock:
            return self._records.pop(int(attendance_id), None)

    def list_attendance(
        self,
        *,
        page,
        employee_id=None,
        working_from=None,
        office_id=None,
        is_active=None,
        clock_in_from=None,
        clock_in_before=None,
    ) -> Page:
        items = list(self._records.values())
        if employee_id is not None:
            items = [r for r in items if r.employee_id == employee_id]
        if working_from is not None:
            items = [r for r in items if r.working_from == working_from]
        if office_id is not None:
            items = [r for r in items if r.office_id == office_id]
        if is_active is not None:
            items = [r for r in items if r.is_active == is_active]
        if clock_in_from is not None:
            items = [r for r in items if r.clock_in >= clock_in_from]
        if clock_in_before is not None:
            items = [r for r in items if r.clock_in < clock_in_before]
        items.sort(key=lambda r: (r.clock_in, r.attendance_id), reverse=True)
        return _paginate(items, page)

    def list_active(self, *, office_id=None, working_from=None):
        items = [r for r in self._records.values() if r.is_active]
        if office_id is not None:
            items = [r for r in items if r.office_id == office_id]
        if working_from is not None:
            items = [r for r in items if r.working_from == working_from]
        return sorted(items, key=lambda r: r.clock_in, reverse=True)

    def list_for_employee(self, employee_id: int, *, start=None, end=None):
        items = [r for r in self._records.values() if r.employee_id == employee_id]
        if start is not None:
            items = [r for r in items if r.clock_in >= start]
        if end is not None:
            items = [r for r in items if r.clock_in <= end]
        return sorted(items, key=lambda r: r.clock_in, reverse=True)


@pytest.fixture
def fixed_now() -> datetime:
    return BASE_TIME


@pytest.fixture
def clock(fixed_now) -> FakeClock:
    return FakeClock(fixed_now)


@pytest.fixture
def users() -> InMemoryUsers:
    return InMemoryUsers()


@pytest.fixture
def companies() -> InMemoryCompanies:
    return InMemoryCompanies()


@pytest.fixture
def offices() -> InMemoryOffices:
    return InMemoryOffices()


@pytest.fixture
def service_cards() -> InMemoryServiceCards:
    return InMemoryServiceCards()


@pytest.fixture
def visits() -> InMemoryVisits:
    return InMemoryVisits()


@pytest.fixture
def attendance() -> InMemoryAttendance:
    return InMemoryAttendance()
