from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Sequence

from ..common.backrefs import sync_backref
from ..common.logging_config import get_logger
from ..common.pagination import Page, PageRequest
from ..common.validators import optional_int, optional_text, parse_bool, require_int, require_non_empty
from ..companies.repository import CompanyRepository
from ..core.constants import DEFAULT_OFFICE_CAPACITY
from ..core.exceptions import NotFoundError, ValidationError
from .model import Office
from .repository import OfficeRepository

logger = get_logger(__name__)

_READ_ONLY_KEYS = {"id", "_id", "createdAt", "updatedAt", "__v"}


def _capacity(value: Any) -> int:
    capacity = require_int(value, "capacity")
    if capacity < 1:
        raise ValidationError("capacity must be >= 1")
    return capacity


def _occupancy(value: Any) -> int:
    occupancy = require_int(value, "currentOccupancy")
    if occupancy < 0:
        raise ValidationError("currentOccupancy must be >= 0")
    return occupancy


def _email(value: Any) -> Optional[str]:
    text = optional_text(value)
    return text.lower() if text else None


@dataclass(frozen=True)
class OfficeStats:
    office: Office

    @property
    def status(self) -> str:
        return "active" if self.office.is_active else "inactive"


class OfficeService:
    def __init__(self, offices: OfficeRepository, companies: CompanyRepository):
        self._offices = offices
        self._companies = companies
        self._patchers: dict[str, tuple[str, Callable[[Any], Any]]] = {
            "name": ("name", lambda v: require_non_empty(v, "name")),
            "address": ("address", lambda v: require_non_empty(v, "address")),
            "city": ("city", lambda v: require_non_empty(v, "city")),
            "country": ("country", lambda v: require_non_empty(v, "country")),
            "zipCode": ("zip_code", optional_text),
            "phone": ("phone", optional_text),
            "email": ("email", _email),
            "capacity": ("capacity", _capacity),
            "currentOccupancy": ("current_occupancy", _occupancy),
            "company": ("company_id", lambda v: require_int(v, "company")),
            "active": ("is_active", lambda v: parse_bool(v, "active")),
        }

    def create_office(self, data: Mapping[str, Any]) -> Office:
        company_id = require_int(data.get("company"), "company")
        name = require_non_empty(data.get("name"), "name")
        address = require_non_empty(data.get("address"), "address")
        city = require_non_empty(data.get("city"), "city")
        country = require_non_empty(data.get("country"), "country")
        capacity = data.get("capacity")
        capacity = _capacity(capacity) if capacity is not None else DEFAULT_OFFICE_CAPACITY

        if not self._companies.get_by_id(company_id):
            raise NotFoundError("Company not found")

        office_id = self._offices.create_office(
            name=name,
            address=address,
            city=city,
            country=country,
            company_id=company_id,
            zip_code=optional_text(data.get("zipCode")),
            phone=optional_text(data.get("phone")),
            email=_email(data.get("email")),
            capacity=capacity,
        )
        sync_backref(
            f"company {company_id}.office += {office_id}",
            lambda: self._companies.add_office(company_id, office_id),
        )
        logger.info("Office %s created for company %s", office_id, company_id)
        return self.get_office(office_id)

    def get_office(self, office_id: int) -> Office:
        office = self._offices.get_by_id(office_id)
        if not office:
            raise NotFoundError("Office not found")
        return office

    def list_offices(
        self,
        *,
        page: PageRequest,
        company: Any = None,
        city: Optional[str] = None,
        active: Optional[str] = None,
    ) -> Page[Office]:
        return self._offices.list_offices(
            page=page,
            company_id=optional_int(company, "company"),
            city=optional_text(city),
            is_active=parse_bool(active, "active") if active is not None else None,
        )

    def list_by_company(self, company_id: int, *, active: Optional[str] = None) -> Sequence[Office]:
        is_active = parse_bool(active, "active") if active is not None else True
        return self._offices.list_by_company(company_id, is_active=is_active)

    def update_office(self, office_id: int, changes: Mapping[str, Any]) -> Office:
        fields: dict[str, Any] = {}
        for key, value in changes.items():
            if key in _READ_ONLY_KEYS:
                continue
            patcher = self._patchers.get(key)
            if not patcher:
                raise ValidationError(f"Field '{key}' cannot be updated")
            column, parse = patcher
            fields[column] = parse(value)

        office = self.get_office(office_id)
        capacity = fields.get("capacity", office.capacity)
        occupancy = fields.get("current_occupancy", office.current_occupancy)
        if occupancy > capacity:
            raise ValidationError(
                "Current occupancy cannot exceed office capacity",
                details={"capacity": capacity, "requested": occupancy},
            )

        new_company = fields.get("company_id")
        if new_company is not None and new_company != office.company_id:
            if not self._companies.get_by_id(new_company):
                raise NotFoundError("Company not found")

        self._offices.update_fields(office_id, fields)

        if new_company is not None and new_company != office.company_id:
            sync_backref(
                f"company {office.company_id}.office -= {office_id}",
                lambda: self._companies.remove_office(office.company_id, office_id),
            )
            sync_backref(
                f"company {new_company}.office += {office_id}",
                lambda: self._companies.add_office(new_company, office_id),
            )
        return self.get_office(office_id)

    def delete_office(self, office_id: int) -> Office:
        """Soft delete; the office also leaves its company's office list."""
        office = self.get_office(office_id)
        self._offices.update_fields(office_id, {"is_active": False})
        sync_backref(
            f"company {office.company_id}.office -= {office_id}",
            lambda: self._companies.remove_office(office.company_id, office_id),
        )
        logger.info("Office %s deactivated", office_id)
        return self.get_office(office_id)

    def update_occupancy(self, office_id: int, current_occupancy: Any) -> Office:
        occupancy = _occupancy(current_occupancy)
        office = self.get_office(office_id)
        if occupancy > office.capacity:
            raise ValidationError(
                "Current occupancy cannot exceed office capacity",
                details={"capacity": office.capacity, "requested": occupancy},
            )
        self._offices.update_fields(office_id, {"current_occupancy": occupancy})
        return self.get_office(office_id)

    def stats(self, office_id: int) -> OfficeStats:
        return OfficeStats(office=self.get_office(office_id))
