from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from ..common.pagination import Page, PageRequest
from .model import Office


class OfficeRepository(Protocol):
    def get_by_id(self, office_id: int) -> Optional[Office]:
        raise NotImplementedError

    def create_office(
        self,
        *,
        name: str,
        address: str,
        city: str,
        country: str,
        company_id: int,
        zip_code: Optional[str],
        phone: Optional[str],
        email: Optional[str],
        capacity: int,
    ) -> int:
        raise NotImplementedError

    def update_fields(self, office_id: int, fields: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def list_offices(
        self,
        *,
        page: PageRequest,
        company_id: Optional[int] = None,
        city: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Page[Office]:
        """`city` is a case-insensitive substring match; newest first."""

        raise NotImplementedError

    def list_by_company(self, company_id: int, *, is_active: Optional[bool] = None) -> Sequence[Office]:
        """Sorted by name."""

        raise NotImplementedError
