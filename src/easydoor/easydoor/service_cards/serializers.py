from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from ..common.datetime_utils import to_iso
from ..common.refs import RefResolver
from .model import ServiceCard
from .service import CardValidity


def card_json(card: ServiceCard, *, now: datetime, refs: Optional[RefResolver] = None) -> dict[str, Any]:
    return {
        "id": card.card_id,
        "user": refs.user(card.user_id) if refs else card.user_id,
        "company": refs.company(card.company_id) if refs else card.company_id,
        "position": card.position,
        "issueAt": to_iso(card.issue_at),
        "expireAt": to_iso(card.expire_at),
        "cardNumber": card.card_number,
        "isActive": card.is_active,
        "isExpired": card.is_expired(now),
        "isValid": card.is_valid(now),
        "daysUntilExpiration": card.days_until_expiration(now),
        "createdAt": to_iso(card.created_at),
        "updatedAt": to_iso(card.updated_at),
    }


def validity_json(validity: CardValidity, *, refs: Optional[RefResolver] = None) -> dict[str, Any]:
    card = validity.card
    return {
        "serviceCard": {
            "id": card.card_id,
            "user": refs.user(card.user_id) if refs else card.user_id,
            "company": refs.company(card.company_id) if refs else card.company_id,
            "position": card.position,
        },
        "validity": {
            "isActive": card.is_active,
            "isExpired": validity.is_expired,
            "isValid": validity.is_valid,
            "daysUntilExpiration": validity.days_until_expiration,
            "expireAt": to_iso(card.expire_at),
            "cardNumber": card.card_number,
        },
    }
