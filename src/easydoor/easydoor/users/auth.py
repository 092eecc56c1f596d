from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Callable, Optional

import jwt
from flask import g, request

from ..core.constants import DEFAULT_JWT_EXPIRES_DAYS, JWT_ALGORITHM
from ..core.exceptions import AuthenticationError
from .model import User
from .repository import UserRepository


@dataclass(frozen=True)
class TokenCodec:
    """Issue and verify the bearer tokens ({userId, exp}, HS256)."""

    secret: str
    expires_days: int = DEFAULT_JWT_EXPIRES_DAYS

    def encode(self, user_id: int, *, now: Optional[datetime] = None) -> str:
        issued = now or datetime.now(timezone.utc)
        payload = {
            "userId": int(user_id),
            "iat": issued,
            "exp": issued + timedelta(days=self.expires_days),
        }
        return jwt.encode(payload, self.secret, algorithm=JWT_ALGORITHM)

    def decode(self, token: str) -> int:
        try:
            payload = jwt.decode(token, self.secret, algorithms=[JWT_ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Invalid token.", details={"error": "Token expired"})
        except jwt.InvalidTokenError as e:
            raise AuthenticationError("Invalid token.", details={"error": str(e)})

        user_id = payload.get("userId")
        if not isinstance(user_id, int):
            raise AuthenticationError("Invalid token.", details={"error": "Missing userId"})
        return user_id


def bearer_token() -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        token = header[len("Bearer "):].strip()
        return token or None
    return None


def make_token_required(codec: TokenCodec, users: UserRepository) -> Callable:
    """Build the `token_required` decorator bound to a codec and user store."""

    def token_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            token = bearer_token()
            if not token:
                raise AuthenticationError("Access denied. No token provided.")

            user = users.get_by_id(codec.decode(token))
            if not user or not user.is_active:
                raise AuthenticationError("Invalid token. User not found or inactive.")

            g.current_user = user
            return view(*args, **kwargs)

        return wrapper

    return token_required


def current_user() -> User:
    return g.current_user
