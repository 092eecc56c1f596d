from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

from ..core.constants import DEFAULT_LANGUAGE_CODE
from ..core.enums import Civility, UserStatus


@dataclass(frozen=True)
class User:
    """Thực thể miền (domain): User.

    Lưu ý: Đây là đối tượng dữ liệu thuần (không chứa code truy cập DB).
    `visit_ids` là tham chiếu ngược (back-reference) tới các Visit của khách.
    """

    user_id: int
    email: str
    password_hash: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    civility: Optional[Civility] = None
    phone: Optional[str] = None
    image_url: Optional[str] = None
    token: Optional[str] = None
    employer_id: Optional[int] = None
    service_card_id: Optional[int] = None
    visit_ids: Tuple[int, ...] = field(default_factory=tuple)
    country_code: Optional[str] = None
    language_code: str = DEFAULT_LANGUAGE_CODE
    player_id: Optional[str] = None
    status: UserStatus = UserStatus.AVAILABLE
    is_admin: bool = False
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)
