from __future__ import annotations

from typing import Any, Mapping, Sequence

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from ..core.exceptions import (
    AlreadyDoneError,
    AuthenticationError,
    ConflictError,
    DomainError,
    InvalidStateError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)
from .logging_config import get_logger
from .pagination import Page

logger = get_logger(__name__)

STATUS_BY_ERROR: dict[type, int] = {
    ValidationError: 400,
    PreconditionError: 400,
    InvalidStateError: 400,
    AlreadyDoneError: 400,
    NotFoundError: 404,
    ConflictError: 409,
    AuthenticationError: 401,
}


def status_for(error: DomainError) -> int:
    for cls in type(error).__mro__:
        if cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[cls]
    return 400


def envelope(message: str, **payload: Any) -> dict[str, Any]:
    return {"message": message, **payload}


def page_envelope(name: str, total_key: str, page: Page, items: Sequence[Mapping[str, Any]]) -> dict[str, Any]:
    """{<name>: [...], currentPage, totalPages, <total_key>}"""
    return {
        name: list(items),
        "currentPage": page.page,
        "totalPages": page.total_pages,
        total_key: page.total,
    }


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(error: DomainError):
        body = {"message": error.message, "error": error.kind}
        body.update(error.details)
        return jsonify(body), status_for(error)

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        return jsonify({"message": error.description, "error": error.name}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        logger.error("Unhandled error: %s", error, exc_info=error)
        return jsonify({"message": "Internal server error", "error": type(error).__name__}), 500


def json_body() -> dict[str, Any]:
    """Request JSON object; an absent body counts as {}."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data
