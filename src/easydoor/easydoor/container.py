from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .common.refs import RefResolver
from .companies.mysql_company_repository import MySQLCompanyRepository
from .companies.repository import CompanyRepository
from .companies.service import CompanyService
from .core.constants import DEFAULT_JWT_EXPIRES_DAYS, DEFAULT_PAGE_LIMIT
from .database.connection import DBConfig, DatabaseConnection
from .offices.mysql_office_repository import MySQLOfficeRepository
from .offices.repository import OfficeRepository
from .offices.service import OfficeService
from .service_cards.mysql_service_card_repository import MySQLServiceCardRepository
from .service_cards.repository import ServiceCardRepository
from .service_cards.service import ServiceCardService
from .users.auth import TokenCodec, make_token_required
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService
from .visits.mysql_visit_repository import MySQLVisitRepository
from .visits.repository import VisitRepository
from .visits.service import VisitService


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    companies_repo: CompanyRepository
    offices_repo: OfficeRepository
    service_cards_repo: ServiceCardRepository
    visits_repo: VisitRepository
    attendance_repo: AttendanceRepository

    token_codec: TokenCodec
    token_required: Callable
    refs: RefResolver

    auth_service: AuthService
    user_service: UserService
    company_service: CompanyService
    office_service: OfficeService
    service_card_service: ServiceCardService
    visit_service: VisitService
    attendance_service: AttendanceService

    default_page_limit: int = DEFAULT_PAGE_LIMIT
    conn: Optional[DatabaseConnection] = None


def wire_container(
    *,
    users_repo: UserRepository,
    companies_repo: CompanyRepository,
    offices_repo: OfficeRepository,
    service_cards_repo: ServiceCardRepository,
    visits_repo: VisitRepository,
    attendance_repo: AttendanceRepository,
    jwt_secret: str,
    jwt_expires_days: int = DEFAULT_JWT_EXPIRES_DAYS,
    default_page_limit: int = DEFAULT_PAGE_LIMIT,
    clock: Optional[Callable] = None,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Build services on top of any repositories that honour the protocols (MySQL or in-memory)."""
    clock_kwargs: dict[str, Any] = {"clock": clock} if clock else {}
    codec = TokenCodec(secret=jwt_secret, expires_days=jwt_expires_days)

    return Container(
        users_repo=users_repo,
        companies_repo=companies_repo,
        offices_repo=offices_repo,
        service_cards_repo=service_cards_repo,
        visits_repo=visits_repo,
        attendance_repo=attendance_repo,
        token_codec=codec,
        token_required=make_token_required(codec, users_repo),
        refs=RefResolver(users_repo, offices_repo, companies_repo),
        auth_service=AuthService(users_repo, codec),
        user_service=UserService(users_repo),
        company_service=CompanyService(companies_repo, users_repo),
        office_service=OfficeService(offices_repo, companies_repo),
        service_card_service=ServiceCardService(service_cards_repo, users_repo, companies_repo, **clock_kwargs),
        visit_service=VisitService(visits_repo, users_repo, offices_repo, **clock_kwargs),
        attendance_service=AttendanceService(attendance_repo, users_repo, offices_repo, **clock_kwargs),
        default_page_limit=default_page_limit,
        conn=conn,
    )


def build_container(
    *,
    db_config: Mapping[str, Any],
    jwt_secret: str,
    jwt_expires_days: int = DEFAULT_JWT_EXPIRES_DAYS,
    default_page_limit: int = DEFAULT_PAGE_LIMIT,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    return wire_container(
        users_repo=MySQLUserRepository(conn),
        companies_repo=MySQLCompanyRepository(conn),
        offices_repo=MySQLOfficeRepository(conn),
        service_cards_repo=MySQLServiceCardRepository(conn),
        visits_repo=MySQLVisitRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        jwt_secret=jwt_secret,
        jwt_expires_days=jwt_expires_days,
        default_page_limit=default_page_limit,
        conn=conn,
    )
