from __future__ import annotations

from typing import Any, Optional

from ..common.datetime_utils import to_iso
from ..common.refs import RefResolver
from .model import Company


def company_json(company: Company, *, refs: Optional[RefResolver] = None) -> dict[str, Any]:
    """With `refs`, member and office ids are expanded into embedded objects."""

    def users(ids):
        return [refs.user(i) for i in ids] if refs else list(ids)

    return {
        "id": company.company_id,
        "acronym": company.acronym,
        "fullName": company.full_name,
        "logoUrl": company.logo_url,
        "office": [refs.office(i) for i in company.office_ids] if refs else list(company.office_ids),
        "admin": users(company.admin_ids),
        "employee": users(company.employee_ids),
        "inOffice": users(company.in_office_ids),
        "outOfService": users(company.out_of_service_ids),
        "visitorCount": company.visitor_count,
        "active": company.is_active,
        "totalEmployees": company.total_employees,
        "totalAdmins": company.total_admins,
        "totalOffices": company.total_offices,
        "createdAt": to_iso(company.created_at),
        "updatedAt": to_iso(company.updated_at),
    }
