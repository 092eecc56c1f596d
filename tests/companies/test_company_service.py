from __future__ import annotations

import pytest

from src.easydoor.easydoor.common.pagination import PageRequest
from src.easydoor.easydoor.companies.service import CompanyService
from src.easydoor.easydoor.core.exceptions import ConflictError, NotFoundError, ValidationError


@pytest.fixture
def svc(companies, users) -> CompanyService:
    return CompanyService(companies, users)


def test_create_company_uppercases_acronym(svc):
    company = svc.create_company(acronym="acme", full_name="Acme Corporation")
    assert company.acronym == "ACME"
    assert company.is_active
    assert company.total_employees == 0


def test_create_company_duplicate_acronym(svc):
    svc.create_company(acronym="ACME", full_name="Acme")

    with pytest.raises(ConflictError):
        svc.create_company(acronym="acme", full_name="Acme again")


def test_add_employee_as_admin_sets_employer(svc, users):
    company = svc.create_company(acronym="ACME", full_name="Acme")
    user = users.add("jane@example.com")

    updated = svc.add_employee(company.company_id, user.user_id, is_admin=True)
    assert updated.employee_ids == (user.user_id,)
    assert updated.admin_ids == (user.user_id,)
    assert users.get_by_id(user.user_id).employer_id == company.company_id

    again = svc.add_employee(company.company_id, user.user_id)
    assert again.employee_ids == (user.user_id,)


def test_add_unknown_employee(svc):
    company = svc.create_company(acronym="ACME", full_name="Acme")

    with pytest.raises(NotFoundError):
        svc.add_employee(company.company_id, 404)


def test_remove_employee_clears_every_list(svc, users):
    company = svc.create_company(acronym="ACME", full_name="Acme")
    user = users.add("jane@example.com")
    svc.add_employee(company.company_id, user.user_id, is_admin=True)
    svc.update_employee_status(company.company_id, user.user_id, "inOffice")

    updated = svc.remove_employee(company.company_id, user.user_id)
    assert updated.employee_ids == ()
    assert updated.admin_ids == ()
    assert updated.in_office_ids == ()
    assert users.get_by_id(user.user_id).employer_id is None


def test_employee_status_moves_between_presence_lists(svc, users):
    company = svc.create_company(acronym="ACME", full_name="Acme")
    user = users.add("jane@example.com")

    updated = svc.update_employee_status(company.company_id, user.user_id, "inOffice")
    assert updated.in_office_ids == (user.user_id,)

    updated = svc.update_employee_status(company.company_id, user.user_id, "outOfService")
    assert updated.in_office_ids == ()
    assert updated.out_of_service_ids == (user.user_id,)

    with pytest.raises(ValidationError):
        svc.update_employee_status(company.company_id, user.user_id, "away")


def test_update_company_patch(svc):
    company = svc.create_company(acronym="ACME", full_name="Acme")
    svc.create_company(acronym="GLOBEX", full_name="Globex")

    updated = svc.update_company(company.company_id, {"visitorCount": 3, "updatedAt": "x"})
    assert updated.visitor_count == 3

    with pytest.raises(ValidationError):
        svc.update_company(company.company_id, {"visitorCount": -1})
    with pytest.raises(ValidationError):
        svc.update_company(company.company_id, {"employee": [1]})
    with pytest.raises(ConflictError):
        svc.update_company(company.company_id, {"acronym": "globex"})


def test_delete_company_is_soft_and_filterable(svc):
    keep = svc.create_company(acronym="ACME", full_name="Acme")
    gone = svc.create_company(acronym="GLOBEX", full_name="Globex")

    assert not svc.delete_company(gone.company_id).is_active
    page = svc.list_companies(page=PageRequest(), active="true")
    assert [c.company_id for c in page.items] == [keep.company_id]
    assert svc.list_companies(page=PageRequest()).total == 2
