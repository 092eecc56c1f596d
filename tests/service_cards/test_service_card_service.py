from __future__ import annotations

import re
from datetime import datetime

import pytest

from src.easydoor.easydoor.core.exceptions import ConflictError, NotFoundError, ValidationError
from src.easydoor.easydoor.service_cards.service import (
    ServiceCardService,
    default_expiry,
    generate_card_number,
    to_base36,
)


@pytest.fixture
def setup(service_cards, users, companies, clock):
    user = users.add("jane@example.com")
    company = companies.add()
    svc = ServiceCardService(service_cards, users, companies, clock=clock)
    return svc, user, company


def test_create_card_defaults(setup, users, clock):
    svc, user, company = setup

    card = svc.create_card({"user": user.user_id, "company": company.company_id, "position": "Engineer"})
    assert card.issue_at == clock()
    assert card.expire_at == datetime(2027, 3, 2, 9, 0, 0)
    assert card.is_active
    assert re.fullmatch(r"SC-[0-9A-Z]+-[0-9A-Z]{6}", card.card_number)
    assert users.get_by_id(user.user_id).service_card_id == card.card_id


def test_create_card_missing_references(setup):
    svc, user, company = setup

    with pytest.raises(NotFoundError, match="User"):
        svc.create_card({"user": 404, "company": company.company_id, "position": "Engineer"})
    with pytest.raises(NotFoundError, match="Company"):
        svc.create_card({"user": user.user_id, "company": 404, "position": "Engineer"})


def test_one_active_card_per_user_and_company(setup):
    svc, user, company = setup
    first = svc.create_card({"user": user.user_id, "company": company.company_id, "position": "Engineer"})

    with pytest.raises(ConflictError):
        svc.create_card({"user": user.user_id, "company": company.company_id, "position": "Manager"})

    svc.toggle_status(first.card_id)
    second = svc.create_card({"user": user.user_id, "company": company.company_id, "position": "Manager"})
    assert second.card_id != first.card_id


def test_validity_reports_expiry(setup, clock):
    svc, user, company = setup
    card = svc.create_card(
        {
            "user": user.user_id,
            "company": company.company_id,
            "position": "Guard",
            "expireAt": "2026-03-04T09:00:00",
        }
    )

    validity = svc.validity(card.card_id)
    assert validity.is_valid
    assert validity.days_until_expiration == 2

    clock.advance(days=3)
    validity = svc.validity(card.card_id)
    assert validity.is_expired
    assert not validity.is_valid
    assert validity.days_until_expiration == -1


def test_update_card_ignores_card_number(setup):
    svc, user, company = setup
    card = svc.create_card({"user": user.user_id, "company": company.company_id, "position": "Engineer"})

    updated = svc.update_card(card.card_id, {"position": "Lead", "cardNumber": "SC-FORGED"})
    assert updated.position == "Lead"
    assert updated.card_number == card.card_number

    with pytest.raises(ValidationError):
        svc.update_card(card.card_id, {"serial": "x"})


def test_delete_card_clears_user_reference(setup, users):
    svc, user, company = setup
    card = svc.create_card({"user": user.user_id, "company": company.company_id, "position": "Engineer"})

    svc.delete_card(card.card_id)
    assert users.get_by_id(user.user_id).service_card_id is None
    with pytest.raises(NotFoundError):
        svc.get_card(card.card_id)


def test_list_by_company_filters(setup, users):
    svc, user, company = setup
    other = users.add("other@example.com")
    svc.create_card({"user": user.user_id, "company": company.company_id, "position": "Engineer"})
    inactive = svc.create_card({"user": other.user_id, "company": company.company_id, "position": "Guard"})
    svc.toggle_status(inactive.card_id)

    assert len(svc.list_by_company(company.company_id)) == 2
    assert [c.card_id for c in svc.list_by_company(company.company_id, is_active="false")] == [inactive.card_id]
    assert [c.user_id for c in svc.list_by_user(other.user_id)] == [other.user_id]


def test_default_expiry_leap_day():
    assert default_expiry(datetime(2028, 2, 29, 8, 30)) == datetime(2029, 3, 1, 8, 30)
    assert default_expiry(datetime(2026, 5, 1)) == datetime(2027, 5, 1)


def test_card_number_stamp_is_base36_millis():
    now = datetime(2026, 3, 2, 9, 0, 0)
    stamp = generate_card_number(now).split("-")[1]

    assert stamp == to_base36(int(now.timestamp() * 1000)).upper()
    assert to_base36(0) == "0"
    assert to_base36(35) == "z"
    assert to_base36(36) == "10"
