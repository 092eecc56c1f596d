from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.logging_config import get_logger
from ..common.pagination import Page, PageRequest
from ..common.validators import (
    optional_text,
    parse_bool,
    require_enum,
    require_min_length,
    require_non_empty,
    require_str,
)
from ..core.constants import DEFAULT_LANGUAGE_CODE, MIN_PASSWORD_LENGTH
from ..core.enums import Civility, UserStatus
from ..core.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from .auth import TokenCodec
from .model import User
from .repository import UserRepository

logger = get_logger(__name__)

# Keys that clients may send back from a read view; silently dropped from patches.
_READ_ONLY_KEYS = {"id", "_id", "createdAt", "updatedAt", "__v"}


def normalize_email(value: Optional[str]) -> str:
    email = require_non_empty(require_str(value, "email"), "email").lower()
    if "@" not in email:
        raise ValidationError("email is not valid")
    return email


def _civility(value: Any) -> Optional[Civility]:
    if value is None or value == "":
        return None
    return require_enum(Civility, value, "civility")


@dataclass(frozen=True)
class AuthResult:
    user: User
    token: str


class AuthService:
    """Use case: register, login, logout."""

    def __init__(self, users: UserRepository, codec: TokenCodec):
        self._users = users
        self._codec = codec

    def register(
        self,
        *,
        email: str,
        password: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        phone: Optional[str] = None,
        civility: Any = None,
    ) -> AuthResult:
        email = normalize_email(email)
        require_min_length(password, "password", MIN_PASSWORD_LENGTH)

        if self._users.get_by_email(email):
            raise ConflictError("User with this email already exists", details={"field": "email"})

        user_id = self._users.create_user(
            email=email,
            password_hash=generate_password_hash(password),
            first_name=optional_text(first_name),
            last_name=optional_text(last_name),
            phone=optional_text(phone),
            civility=_civility(civility),
        )
        token = self._codec.encode(user_id)
        self._users.update_fields(user_id, {"token": token})
        logger.info("User %s registered", user_id)
        return AuthResult(user=self._require(user_id), token=token)

    def login(self, email: Any, password: Any) -> AuthResult:
        email = require_str(email, "email").strip().lower()
        password = require_str(password, "password")

        user = self._users.get_by_email(email)
        if not user or not user.is_active:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password)
        except (TypeError, ValueError):
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")

        token = self._codec.encode(user.user_id)
        self._users.update_fields(user.user_id, {"token": token})
        return AuthResult(user=self._require(user.user_id), token=token)

    def logout(self, user_id: int) -> None:
        self._users.update_fields(user_id, {"token": None})

    def _require(self, user_id: int) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user


class UserService:
    """Use case: read and maintain user profiles."""

    def __init__(self, users: UserRepository):
        self._users = users
        self._patchers: dict[str, tuple[str, Callable[[Any], Any]]] = {
            "email": ("email", normalize_email),
            "password": ("password_hash", self._hash_password),
            "firstName": ("first_name", optional_text),
            "lastName": ("last_name", optional_text),
            "civility": ("civility", _civility),
            "phone": ("phone", optional_text),
            "imageUrl": ("image_url", optional_text),
            "countryCode": ("country_code", optional_text),
            "languageCode": ("language_code", lambda v: optional_text(v) or DEFAULT_LANGUAGE_CODE),
            "playerId": ("player_id", optional_text),
            "status": ("status", lambda v: require_enum(UserStatus, v, "status")),
            "admin": ("is_admin", lambda v: parse_bool(v, "admin")),
        }

    @staticmethod
    def _hash_password(value: Any) -> str:
        require_min_length(value, "password", MIN_PASSWORD_LENGTH)
        return generate_password_hash(value)

    def get_user(self, user_id: int) -> User:
        user = self._users.get_by_id(user_id)
        if not user or not user.is_active:
            raise NotFoundError("User not found")
        return user

    def list_users(
        self,
        *,
        page: PageRequest,
        status: Optional[str] = None,
        admin: Optional[str] = None,
    ) -> Page[User]:
        return self._users.list_users(
            page=page,
            status=require_enum(UserStatus, status, "status") if status else None,
            is_admin=parse_bool(admin, "admin") if admin is not None else None,
        )

    def update_user(self, user_id: int, changes: Mapping[str, Any]) -> User:
        fields: dict[str, Any] = {}
        for key, value in changes.items():
            if key in _READ_ONLY_KEYS:
                continue
            patcher = self._patchers.get(key)
            if not patcher:
                raise ValidationError(f"Field '{key}' cannot be updated")
            column, parse = patcher
            fields[column] = parse(value)

        if "email" in fields:
            other = self._users.get_by_email(fields["email"])
            if other and other.user_id != user_id:
                raise ConflictError("User with this email already exists", details={"field": "email"})

        self.get_user(user_id)
        self._users.update_fields(user_id, fields)
        return self.get_user(user_id)

    def delete_user(self, user_id: int) -> User:
        """Soft delete: the record stays, `active` becomes false."""
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        self._users.update_fields(user_id, {"is_active": False, "token": None})
        logger.info("User %s deactivated", user_id)
        return self._users.get_by_id(user_id) or user
