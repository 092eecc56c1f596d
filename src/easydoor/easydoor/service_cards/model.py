from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional


@dataclass(frozen=True)
class ServiceCard:
    """Thẻ công vụ của một user tại một company."""

    card_id: int
    user_id: int
    company_id: int
    position: str
    issue_at: datetime
    expire_at: datetime
    card_number: str
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return now > self.expire_at

    def is_valid(self, now: datetime) -> bool:
        return self.is_active and not self.is_expired(now)

    def days_until_expiration(self, now: datetime) -> int:
        return math.ceil((self.expire_at - now) / timedelta(days=1))
