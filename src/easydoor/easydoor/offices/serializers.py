from __future__ import annotations

from typing import Any, Optional

from ..common.datetime_utils import to_iso
from ..common.refs import RefResolver
from .model import Office
from .service import OfficeStats


def office_json(office: Office, *, refs: Optional[RefResolver] = None) -> dict[str, Any]:
    return {
        "id": office.office_id,
        "name": office.name,
        "address": office.address,
        "city": office.city,
        "country": office.country,
        "zipCode": office.zip_code,
        "phone": office.phone,
        "email": office.email,
        "capacity": office.capacity,
        "currentOccupancy": office.current_occupancy,
        "company": refs.company(office.company_id) if refs else office.company_id,
        "active": office.is_active,
        "occupancyPercentage": office.occupancy_percentage,
        "availableSpace": office.available_space,
        "createdAt": to_iso(office.created_at),
        "updatedAt": to_iso(office.updated_at),
    }


def stats_json(stats: OfficeStats) -> dict[str, Any]:
    office = stats.office
    return {
        "office": {"id": office.office_id, "name": office.name, "city": office.city},
        "stats": {
            "capacity": office.capacity,
            "currentOccupancy": office.current_occupancy,
            "availableSpace": office.available_space,
            "occupancyPercentage": office.occupancy_percentage,
            "isAtCapacity": office.is_at_capacity,
            "status": stats.status,
        },
    }
