from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.durations import round_half_up


@dataclass(frozen=True)
class Office:
    """Thực thể miền (domain): Office."""

    office_id: int
    name: str
    address: str
    city: str
    country: str
    company_id: int
    zip_code: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    capacity: int = 50
    current_occupancy: int = 0
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def occupancy_percentage(self) -> int:
        if self.capacity <= 0:
            return 0
        return int(round_half_up(self.current_occupancy / self.capacity * 100))

    @property
    def available_space(self) -> int:
        return max(0, self.capacity - self.current_occupancy)

    @property
    def is_at_capacity(self) -> bool:
        return self.current_occupancy >= self.capacity
