from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol

from ..common.pagination import Page, PageRequest
from ..core.enums import Civility, UserStatus
from .model import User


class UserRepository(Protocol):
    """Giao diện repository cho User.

    Lưu ý (DIP): tầng service phụ thuộc vào interface này, không phụ thuộc trực tiếp DB cụ thể.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        email: str,
        password_hash: str,
        first_name: Optional[str],
        last_name: Optional[str],
        phone: Optional[str],
        civility: Optional[Civility],
    ) -> int:
        """Raises ConflictError when the email is already taken."""

        raise NotImplementedError

    def update_fields(self, user_id: int, fields: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def list_users(
        self,
        *,
        page: PageRequest,
        status: Optional[UserStatus] = None,
        is_admin: Optional[bool] = None,
    ) -> Page[User]:
        """Active users only, newest first."""

        raise NotImplementedError

    def add_visit(self, user_id: int, visit_id: int) -> None:
        raise NotImplementedError

    def remove_visit(self, user_id: int, visit_id: int) -> None:
        raise NotImplementedError
