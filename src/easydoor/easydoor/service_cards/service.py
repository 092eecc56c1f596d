from __future__ import annotations

import secrets
import string
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Mapping, Optional

from ..common.backrefs import sync_backref
from ..common.datetime_utils import now_local, parse_iso_datetime, parse_optional_datetime
from ..common.logging_config import get_logger
from ..common.pagination import Page, PageRequest
from ..common.validators import optional_int, optional_text, parse_bool, require_int, require_non_empty
from ..companies.repository import CompanyRepository
from ..core.constants import SERVICE_CARD_PREFIX, SERVICE_CARD_VALIDITY_YEARS
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..users.repository import UserRepository
from .model import ServiceCard
from .repository import ServiceCardRepository

logger = get_logger(__name__)

# cardNumber is immutable once issued; clients may still echo it back.
_READ_ONLY_KEYS = {"id", "_id", "createdAt", "updatedAt", "__v", "cardNumber"}

_BASE36 = string.digits + string.ascii_lowercase


def to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_card_number(now: datetime) -> str:
    """SC-<epoch ms in base36>-<6 random base36 chars>, upper-cased."""
    stamp = to_base36(int(now.timestamp() * 1000))
    suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"{SERVICE_CARD_PREFIX}-{stamp}-{suffix}".upper()


def default_expiry(issue_at: datetime) -> datetime:
    target_year = issue_at.year + SERVICE_CARD_VALIDITY_YEARS
    try:
        return issue_at.replace(year=target_year)
    except ValueError:
        # 29 Feb rolls over to 1 Mar in a non-leap year.
        return issue_at.replace(year=target_year, month=3, day=1)


@dataclass(frozen=True)
class CardValidity:
    card: ServiceCard
    is_expired: bool
    is_valid: bool
    days_until_expiration: int


class ServiceCardService:
    def __init__(
        self,
        cards: ServiceCardRepository,
        users: UserRepository,
        companies: CompanyRepository,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._cards = cards
        self._users = users
        self._companies = companies
        self._clock = clock
        self._patchers: dict[str, tuple[str, Callable[[Any], Any]]] = {
            "user": ("user_id", lambda v: require_int(v, "user")),
            "company": ("company_id", lambda v: require_int(v, "company")),
            "position": ("position", lambda v: require_non_empty(v, "position")),
            "issueAt": ("issue_at", lambda v: parse_iso_datetime(v, "issueAt")),
            "expireAt": ("expire_at", lambda v: parse_iso_datetime(v, "expireAt")),
            "isActive": ("is_active", lambda v: parse_bool(v, "isActive")),
        }

    def now(self) -> datetime:
        return self._clock()

    def create_card(self, data: Mapping[str, Any]) -> ServiceCard:
        user_id = require_int(data.get("user"), "user")
        company_id = require_int(data.get("company"), "company")
        position = require_non_empty(data.get("position"), "position")
        issue_at = parse_optional_datetime(data.get("issueAt"), "issueAt") or self.now()
        expire_at = parse_optional_datetime(data.get("expireAt"), "expireAt") or default_expiry(issue_at)

        if not self._users.get_by_id(user_id):
            raise NotFoundError("User not found")
        if not self._companies.get_by_id(company_id):
            raise NotFoundError("Company not found")
        if self._cards.find_active(user_id, company_id):
            raise ConflictError("User already has an active service card for this company")

        card_id = self._cards.create_card(
            user_id=user_id,
            company_id=company_id,
            position=position,
            issue_at=issue_at,
            expire_at=expire_at,
            card_number=generate_card_number(self.now()),
        )
        sync_backref(
            f"user {user_id}.serviceCard <- {card_id}",
            lambda: self._users.update_fields(user_id, {"service_card_id": card_id}),
        )
        logger.info("Service card %s issued to user %s (company %s)", card_id, user_id, company_id)
        return self.get_card(card_id)

    def get_card(self, card_id: int) -> ServiceCard:
        card = self._cards.get_by_id(card_id)
        if not card:
            raise NotFoundError("Service card not found")
        return card

    def list_cards(
        self,
        *,
        page: PageRequest,
        user: Any = None,
        company: Any = None,
        is_active: Optional[str] = None,
        position: Optional[str] = None,
    ) -> Page[ServiceCard]:
        return self._cards.list_cards(
            page=page,
            user_id=optional_int(user, "user"),
            company_id=optional_int(company, "company"),
            is_active=parse_bool(is_active, "isActive") if is_active is not None else None,
            position=optional_text(position),
        )

    def list_by_user(self, user_id: int, *, is_active: Optional[str] = None) -> list[ServiceCard]:
        page = self._cards.list_cards(
            user_id=user_id,
            is_active=parse_bool(is_active, "isActive") if is_active is not None else None,
        )
        return list(page.items)

    def list_by_company(
        self,
        company_id: int,
        *,
        is_active: Optional[str] = None,
        position: Optional[str] = None,
    ) -> list[ServiceCard]:
        page = self._cards.list_cards(
            company_id=company_id,
            is_active=parse_bool(is_active, "isActive") if is_active is not None else None,
            position=optional_text(position),
        )
        return list(page.items)

    def update_card(self, card_id: int, changes: Mapping[str, Any]) -> ServiceCard:
        fields: dict[str, Any] = {}
        for key, value in changes.items():
            if key in _READ_ONLY_KEYS:
                continue
            patcher = self._patchers.get(key)
            if not patcher:
                raise ValidationError(f"Field '{key}' cannot be updated")
            column, parse = patcher
            fields[column] = parse(value)

        self.get_card(card_id)
        self._cards.update_fields(card_id, fields)
        return self.get_card(card_id)

    def delete_card(self, card_id: int) -> ServiceCard:
        """Hard delete; the owner's serviceCard reference is cleared."""
        card = self.get_card(card_id)
        if not self._cards.delete(card_id):
            raise NotFoundError("Service card not found")
        sync_backref(
            f"user {card.user_id}.serviceCard <- null",
            lambda: self._users.update_fields(card.user_id, {"service_card_id": None}),
        )
        logger.info("Service card %s deleted", card_id)
        return card

    def toggle_status(self, card_id: int) -> ServiceCard:
        card = self.get_card(card_id)
        self._cards.update_fields(card_id, {"is_active": not card.is_active})
        return self.get_card(card_id)

    def validity(self, card_id: int) -> CardValidity:
        card = self.get_card(card_id)
        now = self.now()
        return CardValidity(
            card=card,
            is_expired=card.is_expired(now),
            is_valid=card.is_valid(now),
            days_until_expiration=card.days_until_expiration(now),
        )
