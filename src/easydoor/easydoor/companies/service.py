from __future__ import annotations

from typing import Any, Callable, Mapping, Optional

from ..common.backrefs import sync_backref
from ..common.logging_config import get_logger
from ..common.pagination import Page, PageRequest
from ..common.validators import optional_text, parse_bool, require_enum, require_int, require_non_empty
from ..core.enums import Membership, PresenceStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..users.repository import UserRepository
from .model import Company
from .repository import CompanyRepository

logger = get_logger(__name__)

_READ_ONLY_KEYS = {"id", "_id", "createdAt", "updatedAt", "__v"}


def normalize_acronym(value: Any) -> str:
    return require_non_empty(value, "acronym").upper()


def _visitor_count(value: Any) -> int:
    count = require_int(value, "visitorCount")
    if count < 0:
        raise ValidationError("visitorCount must be >= 0")
    return count


class CompanyService:
    def __init__(self, companies: CompanyRepository, users: UserRepository):
        self._companies = companies
        self._users = users
        self._patchers: dict[str, tuple[str, Callable[[Any], Any]]] = {
            "acronym": ("acronym", normalize_acronym),
            "fullName": ("full_name", lambda v: require_non_empty(v, "fullName")),
            "logoUrl": ("logo_url", optional_text),
            "visitorCount": ("visitor_count", _visitor_count),
            "active": ("is_active", lambda v: parse_bool(v, "active")),
        }

    def create_company(self, *, acronym: Any, full_name: Any, logo_url: Any = None) -> Company:
        acronym = normalize_acronym(acronym)
        full_name = require_non_empty(full_name, "fullName")

        if self._companies.get_by_acronym(acronym):
            raise ConflictError("Company with this acronym already exists", details={"field": "acronym"})

        company_id = self._companies.create_company(
            acronym=acronym,
            full_name=full_name,
            logo_url=optional_text(logo_url),
        )
        logger.info("Company %s (%s) created", company_id, acronym)
        return self.get_company(company_id)

    def get_company(self, company_id: int) -> Company:
        company = self._companies.get_by_id(company_id)
        if not company:
            raise NotFoundError("Company not found")
        return company

    def list_companies(self, *, page: PageRequest, active: Optional[str] = None) -> Page[Company]:
        return self._companies.list_companies(
            page=page,
            is_active=parse_bool(active, "active") if active is not None else None,
        )

    def update_company(self, company_id: int, changes: Mapping[str, Any]) -> Company:
        fields: dict[str, Any] = {}
        for key, value in changes.items():
            if key in _READ_ONLY_KEYS:
                continue
            patcher = self._patchers.get(key)
            if not patcher:
                raise ValidationError(f"Field '{key}' cannot be updated")
            column, parse = patcher
            fields[column] = parse(value)

        self.get_company(company_id)
        if "acronym" in fields:
            other = self._companies.get_by_acronym(fields["acronym"])
            if other and other.company_id != company_id:
                raise ConflictError("Company with this acronym already exists", details={"field": "acronym"})

        self._companies.update_fields(company_id, fields)
        return self.get_company(company_id)

    def delete_company(self, company_id: int) -> Company:
        """Soft delete."""
        self.get_company(company_id)
        self._companies.update_fields(company_id, {"is_active": False})
        return self.get_company(company_id)

    def add_employee(self, company_id: int, employee_id: int, *, is_admin: bool = False) -> Company:
        self.get_company(company_id)
        if not self._users.get_by_id(employee_id):
            raise NotFoundError("User not found")

        if is_admin:
            self._companies.add_member(company_id, employee_id, Membership.ADMIN)
        self._companies.add_member(company_id, employee_id, Membership.EMPLOYEE)

        sync_backref(
            f"user {employee_id}.employer <- company {company_id}",
            lambda: self._users.update_fields(employee_id, {"employer_id": company_id}),
        )
        logger.info("User %s added to company %s (admin=%s)", employee_id, company_id, is_admin)
        return self.get_company(company_id)

    def remove_employee(self, company_id: int, employee_id: int) -> Company:
        self.get_company(company_id)
        self._companies.remove_member(company_id, employee_id, list(Membership))

        sync_backref(
            f"user {employee_id}.employer <- null",
            lambda: self._users.update_fields(employee_id, {"employer_id": None}),
        )
        logger.info("User %s removed from company %s", employee_id, company_id)
        return self.get_company(company_id)

    def update_employee_status(self, company_id: int, employee_id: int, status: Any) -> Company:
        presence = require_enum(PresenceStatus, status, "status")
        self.get_company(company_id)

        self._companies.remove_member(company_id, employee_id, [Membership.IN_OFFICE, Membership.OUT_OF_SERVICE])
        self._companies.add_member(company_id, employee_id, presence.membership)
        return self.get_company(company_id)
