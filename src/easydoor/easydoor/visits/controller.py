from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.pagination import PageRequest
from ..common.responses import envelope, json_body, page_envelope
from ..container import Container
from .serializers import visit_json


def register(app: Flask, container: Container) -> None:
    token_required = container.token_required
    service = container.visit_service

    def _json(visit):
        return visit_json(visit, now=service.now(), refs=container.refs)

    def _page_request() -> PageRequest:
        return PageRequest.from_args(request.args, default_limit=container.default_page_limit)

    @app.route("/api/visits", methods=["POST"], endpoint="visits_create")
    @token_required
    def create_visit():
        visit = service.create_visit(json_body())
        return jsonify(envelope("Visit created successfully", visit=_json(visit))), 201

    @app.route("/api/visits", methods=["GET"], endpoint="visits_list")
    @token_required
    def list_visits():
        page = service.list_visits(
            page=_page_request(),
            visitor=request.args.get("visitor"),
            employee=request.args.get("employee"),
            status=request.args.get("status"),
            office=request.args.get("office"),
        )
        return jsonify(page_envelope("visits", "totalVisits", page, [_json(v) for v in page.items]))

    @app.route("/api/visits/status/<status>", methods=["GET"], endpoint="visits_by_status")
    @token_required
    def visits_by_status(status: str):
        page = service.list_by_status(status, page=_page_request())
        return jsonify(page_envelope("visits", "totalVisits", page, [_json(v) for v in page.items]))

    @app.route("/api/visits/<int:visit_id>", methods=["GET"], endpoint="visits_get")
    @token_required
    def get_visit(visit_id: int):
        return jsonify(envelope("Visit retrieved successfully", visit=_json(service.get_visit(visit_id))))

    @app.route("/api/visits/<int:visit_id>", methods=["PATCH"], endpoint="visits_update")
    @token_required
    def update_visit(visit_id: int):
        visit = service.update_visit(visit_id, json_body())
        return jsonify(envelope("Visit updated successfully", visit=_json(visit)))

    @app.route("/api/visits/<int:visit_id>", methods=["DELETE"], endpoint="visits_delete")
    @token_required
    def delete_visit(visit_id: int):
        visit = service.delete_visit(visit_id)
        return jsonify(envelope("Visit deleted successfully", visit=visit_json(visit, now=service.now())))

    @app.route("/api/visits/<int:visit_id>/accept", methods=["PATCH"], endpoint="visits_accept")
    @token_required
    def accept_visit(visit_id: int):
        return jsonify(envelope("Visit accepted successfully", visit=_json(service.accept(visit_id))))

    @app.route("/api/visits/<int:visit_id>/cancel", methods=["PATCH"], endpoint="visits_cancel")
    @token_required
    def cancel_visit(visit_id: int):
        visit = service.cancel(visit_id, json_body().get("reason"))
        return jsonify(envelope("Visit cancelled successfully", visit=_json(visit)))

    @app.route("/api/visits/<int:visit_id>/clock-in", methods=["PATCH"], endpoint="visits_clock_in")
    @token_required
    def clock_in_visitor(visit_id: int):
        return jsonify(envelope("Visitor clocked in successfully", visit=_json(service.clock_in(visit_id))))

    @app.route("/api/visits/<int:visit_id>/clock-out", methods=["PATCH"], endpoint="visits_clock_out")
    @token_required
    def clock_out_visitor(visit_id: int):
        visit = service.clock_out(visit_id)
        return jsonify(envelope("Visitor clocked out successfully", visit=_json(visit), duration=visit.duration))
