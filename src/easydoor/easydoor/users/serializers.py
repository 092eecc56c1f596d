from __future__ import annotations

from typing import Any

from ..common.datetime_utils import to_iso
from .model import User


def user_json(user: User) -> dict[str, Any]:
    """Public view of a user. The password hash and the stored token are never exposed."""
    return {
        "id": user.user_id,
        "email": user.email,
        "civility": user.civility.value if user.civility else None,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "imageUrl": user.image_url,
        "phone": user.phone,
        "employer": user.employer_id,
        "serviceCard": user.service_card_id,
        "visits": list(user.visit_ids),
        "countryCode": user.country_code,
        "languageCode": user.language_code,
        "playerId": user.player_id,
        "status": user.status.value,
        "admin": user.is_admin,
        "active": user.is_active,
        "createdAt": to_iso(user.created_at),
        "updatedAt": to_iso(user.updated_at),
    }
