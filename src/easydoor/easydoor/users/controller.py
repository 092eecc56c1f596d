from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.pagination import PageRequest
from ..common.responses import envelope, json_body, page_envelope
from ..container import Container
from .auth import current_user
from .serializers import user_json


def register(app: Flask, container: Container) -> None:
    token_required = container.token_required

    @app.route("/api/users/register", methods=["POST"], endpoint="users_register")
    def register_user():
        data = json_body()
        result = container.auth_service.register(
            email=data.get("email"),
            password=data.get("password"),
            first_name=data.get("firstName"),
            last_name=data.get("lastName"),
            phone=data.get("phone"),
            civility=data.get("civility"),
        )
        return jsonify(envelope("User registered successfully", token=result.token, user=user_json(result.user))), 201

    @app.route("/api/users/login", methods=["POST"], endpoint="users_login")
    def login():
        data = json_body()
        result = container.auth_service.login(data.get("email"), data.get("password"))
        return jsonify(envelope("Login successful", token=result.token, user=user_json(result.user)))

    @app.route("/api/users/logout", methods=["POST"], endpoint="users_logout")
    @token_required
    def logout():
        container.auth_service.logout(current_user().user_id)
        return jsonify(envelope("Logout successful"))

    @app.route("/api/users/profile", methods=["GET"], endpoint="users_profile")
    @token_required
    def profile():
        return jsonify(envelope("Profile retrieved successfully", user=user_json(current_user())))

    @app.route("/api/users", methods=["GET"], endpoint="users_list")
    @token_required
    def list_users():
        page = container.user_service.list_users(
            page=PageRequest.from_args(request.args, default_limit=container.default_page_limit),
            status=request.args.get("status"),
            admin=request.args.get("admin"),
        )
        return jsonify(page_envelope("users", "totalUsers", page, [user_json(u) for u in page.items]))

    @app.route("/api/users/<int:user_id>", methods=["GET"], endpoint="users_get")
    @token_required
    def get_user(user_id: int):
        return jsonify(envelope("User retrieved successfully", user=user_json(container.user_service.get_user(user_id))))

    @app.route("/api/users/<int:user_id>", methods=["PATCH"], endpoint="users_update")
    @token_required
    def update_user(user_id: int):
        user = container.user_service.update_user(user_id, json_body())
        return jsonify(envelope("User updated successfully", user=user_json(user)))

    @app.route("/api/users/<int:user_id>", methods=["DELETE"], endpoint="users_delete")
    @token_required
    def delete_user(user_id: int):
        user = container.user_service.delete_user(user_id)
        return jsonify(envelope("User deactivated successfully", user=user_json(user)))
