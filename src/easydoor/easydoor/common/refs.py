from __future__ import annotations

from typing import Any, Optional

from ..companies.repository import CompanyRepository
from ..offices.repository import OfficeRepository
from ..users.repository import UserRepository


class RefResolver:
    """Resolve ids into the small embedded objects returned by read views ("populate").

    A reference to a record that no longer exists is rendered as null.
    """

    def __init__(self, users: UserRepository, offices: OfficeRepository, companies: CompanyRepository):
        self._users = users
        self._offices = offices
        self._companies = companies

    def user(self, user_id: Optional[int]) -> Optional[dict[str, Any]]:
        if user_id is None:
            return None
        user = self._users.get_by_id(user_id)
        if not user:
            return None
        return {
            "id": user.user_id,
            "firstName": user.first_name,
            "lastName": user.last_name,
            "email": user.email,
        }

    def office(self, office_id: Optional[int]) -> Optional[dict[str, Any]]:
        if office_id is None:
            return None
        office = self._offices.get_by_id(office_id)
        if not office:
            return None
        return {
            "id": office.office_id,
            "name": office.name,
            "address": office.address,
            "city": office.city,
        }

    def company(self, company_id: Optional[int]) -> Optional[dict[str, Any]]:
        if company_id is None:
            return None
        company = self._companies.get_by_id(company_id)
        if not company:
            return None
        return {
            "id": company.company_id,
            "fullName": company.full_name,
            "acronym": company.acronym,
        }
