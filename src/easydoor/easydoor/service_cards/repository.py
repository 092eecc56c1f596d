from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Protocol

from ..common.pagination import Page, PageRequest
from .model import ServiceCard


class ServiceCardRepository(Protocol):
    def get_by_id(self, card_id: int) -> Optional[ServiceCard]:
        raise NotImplementedError

    def find_active(self, user_id: int, company_id: int) -> Optional[ServiceCard]:
        raise NotImplementedError

    def create_card(
        self,
        *,
        user_id: int,
        company_id: int,
        position: str,
        issue_at: datetime,
        expire_at: datetime,
        card_number: str,
    ) -> int:
        """Raises ConflictError when the card number is already taken."""

        raise NotImplementedError

    def update_fields(self, card_id: int, fields: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def delete(self, card_id: int) -> bool:
        raise NotImplementedError

    def list_cards(
        self,
        *,
        page: Optional[PageRequest] = None,
        user_id: Optional[int] = None,
        company_id: Optional[int] = None,
        is_active: Optional[bool] = None,
        position: Optional[str] = None,
    ) -> Page[ServiceCard]:
        """Newest first. Without `page` every match is returned in a single page."""

        raise NotImplementedError

