"""Ví dụ: dùng service layer (không qua Flask).

Mục tiêu: minh hoạ Controllers chỉ là lớp mỏng, nghiệp vụ nằm ở Services.
"""

import importlib

from config import get_settings_module

from src.easydoor.easydoor.common.pagination import PageRequest
from src.easydoor.easydoor.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, jwt_secret=settings.JWT_SECRET)
    for record in container.attendance_service.list_active():
        print(record.employee_id, record.working_from.value, record.current_duration(container.attendance_service.now()))
    page = container.visit_service.list_visits(page=PageRequest(limit=5))
    print(f"{page.total} visits, showing {len(page.items)}")


if __name__ == "__main__":
    main()
