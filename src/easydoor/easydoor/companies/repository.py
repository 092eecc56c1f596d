from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Protocol

from ..common.pagination import Page, PageRequest
from ..core.enums import Membership
from .model import Company


class CompanyRepository(Protocol):
    def get_by_id(self, company_id: int) -> Optional[Company]:
        raise NotImplementedError

    def get_by_acronym(self, acronym: str) -> Optional[Company]:
        raise NotImplementedError

    def create_company(self, *, acronym: str, full_name: str, logo_url: Optional[str]) -> int:
        """Raises ConflictError when the acronym is already taken."""

        raise NotImplementedError

    def update_fields(self, company_id: int, fields: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def list_companies(self, *, page: PageRequest, is_active: Optional[bool] = None) -> Page[Company]:
        raise NotImplementedError

    def add_member(self, company_id: int, user_id: int, membership: Membership) -> None:
        """Idempotent: adding an existing member is a no-op."""

        raise NotImplementedError

    def remove_member(self, company_id: int, user_id: int, memberships: Iterable[Membership]) -> None:
        raise NotImplementedError

    def add_office(self, company_id: int, office_id: int) -> None:
        raise NotImplementedError

    def remove_office(self, company_id: int, office_id: int) -> None:
        raise NotImplementedError
