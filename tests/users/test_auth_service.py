from __future__ import annotations

import pytest
from flask import Flask, jsonify

from src.easydoor.easydoor.common.pagination import PageRequest
from src.easydoor.easydoor.common.responses import register_error_handlers
from src.easydoor.easydoor.core.constants import DEFAULT_LANGUAGE_CODE
from src.easydoor.easydoor.core.enums import UserStatus
from src.easydoor.easydoor.core.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from src.easydoor.easydoor.users.auth import TokenCodec, current_user, make_token_required
from src.easydoor.easydoor.users.service import AuthService, UserService


@pytest.fixture
def codec() -> TokenCodec:
    return TokenCodec(secret="unit-test-secret", expires_days=7)


def test_register_hashes_password_and_issues_token(users, codec):
    svc = AuthService(users, codec)

    result = svc.register(email="  Jane@Example.com ", password="secret1", first_name="Jane")
    assert result.user.email == "jane@example.com"
    assert result.user.password_hash != "secret1"
    assert result.user.token == result.token
    assert codec.decode(result.token) == result.user.user_id


def test_register_validates_input(users, codec):
    svc = AuthService(users, codec)

    with pytest.raises(ValidationError):
        svc.register(email="jane@example.com", password="123")
    with pytest.raises(ValidationError):
        svc.register(email="not-an-email", password="secret1")
    with pytest.raises(ValidationError):
        svc.register(email="jane@example.com", password="secret1", civility="sir")


def test_register_duplicate_email(users, codec):
    svc = AuthService(users, codec)
    svc.register(email="jane@example.com", password="secret1")

    with pytest.raises(ConflictError):
        svc.register(email="JANE@example.com", password="secret2")


def test_login_and_logout(users, codec):
    svc = AuthService(users, codec)
    registered = svc.register(email="jane@example.com", password="secret1")

    result = svc.login("jane@example.com", "secret1")
    assert result.user.user_id == registered.user.user_id

    svc.logout(result.user.user_id)
    assert users.get_by_id(result.user.user_id).token is None


def test_login_rejects_bad_credentials(users, codec):
    svc = AuthService(users, codec)
    svc.register(email="jane@example.com", password="secret1")
    users.add("legacy@example.com", password_hash="CHANGE_ME")

    with pytest.raises(AuthenticationError):
        svc.login("jane@example.com", "wrong-password")
    with pytest.raises(AuthenticationError):
        svc.login("nobody@example.com", "secret1")
    with pytest.raises(AuthenticationError):
        svc.login("legacy@example.com", "CHANGE_ME")


def test_credentials_must_be_strings(users, codec):
    svc = AuthService(users, codec)
    svc.register(email="jane@example.com", password="secret1")

    with pytest.raises(ValidationError, match="password must be a string"):
        svc.register(email="john@example.com", password=1234567)
    with pytest.raises(ValidationError, match="email must be a string"):
        svc.login(42, "secret1")
    with pytest.raises(ValidationError, match="password must be a string"):
        svc.login("jane@example.com", 1234567)
    with pytest.raises(ValidationError, match="password is required"):
        svc.login("jane@example.com", None)
    with pytest.raises(ValidationError, match="password must be a string"):
        UserService(users).update_user(1, {"password": 1234567})


def test_language_code_defaults_to_en(users, codec):
    result = AuthService(users, codec).register(email="jane@example.com", password="secret1")
    assert result.user.language_code == DEFAULT_LANGUAGE_CODE == "en"

    updated = UserService(users).update_user(result.user.user_id, {"languageCode": "  "})
    assert updated.language_code == DEFAULT_LANGUAGE_CODE


def test_login_rejects_deactivated_user(users, codec):
    auth = AuthService(users, codec)
    result = auth.register(email="jane@example.com", password="secret1")
    UserService(users).delete_user(result.user.user_id)

    with pytest.raises(AuthenticationError):
        auth.login("jane@example.com", "secret1")


def test_token_with_wrong_secret_is_rejected(codec):
    token = TokenCodec(secret="other-secret").encode(1)

    with pytest.raises(AuthenticationError):
        codec.decode(token)


def _protected_app(users, codec) -> Flask:
    app = Flask(__name__)
    register_error_handlers(app)
    token_required = make_token_required(codec, users)

    @app.route("/me", endpoint="me")
    @token_required
    def me():
        return jsonify({"id": current_user().user_id})

    return app


def test_token_required_accepts_valid_bearer(users, codec):
    user = users.add("jane@example.com")
    client = _protected_app(users, codec).test_client()

    resp = client.get("/me", headers={"Authorization": f"Bearer {codec.encode(user.user_id)}"})
    assert resp.status_code == 200
    assert resp.get_json() == {"id": user.user_id}


def test_token_required_rejects_missing_and_inactive(users, codec):
    user = users.add("jane@example.com")
    client = _protected_app(users, codec).test_client()

    resp = client.get("/me")
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "Access denied. No token provided."

    users.update_fields(user.user_id, {"is_active": False})
    resp = client.get("/me", headers={"Authorization": f"Bearer {codec.encode(user.user_id)}"})
    assert resp.status_code == 401


def test_update_user_patch_rules(users):
    svc = UserService(users)
    user = users.add("jane@example.com")
    users.add("taken@example.com")

    updated = svc.update_user(user.user_id, {"firstName": "Jane", "status": "unavailable", "id": 99, "__v": 0})
    assert updated.first_name == "Jane"
    assert updated.status == UserStatus.UNAVAILABLE

    with pytest.raises(ValidationError):
        svc.update_user(user.user_id, {"token": "forged"})
    with pytest.raises(ConflictError):
        svc.update_user(user.user_id, {"email": "taken@example.com"})


def test_delete_user_is_soft(users):
    svc = UserService(users)
    user = users.add("jane@example.com")

    deleted = svc.delete_user(user.user_id)
    assert not deleted.is_active
    assert users.get_by_id(user.user_id) is not None
    with pytest.raises(NotFoundError):
        svc.get_user(user.user_id)


def test_list_users_hides_inactive(users):
    svc = UserService(users)
    keep = users.add("a@example.com")
    gone = users.add("b@example.com")
    svc.delete_user(gone.user_id)

    page = svc.list_users(page=PageRequest())
    assert [u.user_id for u in page.items] == [keep.user_id]
