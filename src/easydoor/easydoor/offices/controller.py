from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.pagination import PageRequest
from ..common.responses import envelope, json_body, page_envelope
from ..container import Container
from .serializers import office_json, stats_json


def register(app: Flask, container: Container) -> None:
    token_required = container.token_required
    service = container.office_service

    def _json(office):
        return office_json(office, refs=container.refs)

    @app.route("/api/offices", methods=["POST"], endpoint="offices_create")
    @token_required
    def create_office():
        office = service.create_office(json_body())
        return jsonify(envelope("Office created successfully", office=_json(office))), 201

    @app.route("/api/offices", methods=["GET"], endpoint="offices_list")
    @token_required
    def list_offices():
        page = service.list_offices(
            page=PageRequest.from_args(request.args, default_limit=container.default_page_limit),
            company=request.args.get("company"),
            city=request.args.get("city"),
            active=request.args.get("active"),
        )
        return jsonify(page_envelope("offices", "totalOffices", page, [_json(o) for o in page.items]))

    @app.route("/api/offices/company/<int:company_id>", methods=["GET"], endpoint="offices_by_company")
    @token_required
    def offices_by_company(company_id: int):
        offices = service.list_by_company(company_id, active=request.args.get("active"))
        return jsonify({"offices": [_json(o) for o in offices], "totalOffices": len(offices)})

    @app.route("/api/offices/<int:office_id>", methods=["GET"], endpoint="offices_get")
    @token_required
    def get_office(office_id: int):
        return jsonify(envelope("Office retrieved successfully", office=_json(service.get_office(office_id))))

    @app.route("/api/offices/<int:office_id>/stats", methods=["GET"], endpoint="offices_stats")
    @token_required
    def office_stats(office_id: int):
        return jsonify(stats_json(service.stats(office_id)))

    @app.route("/api/offices/<int:office_id>", methods=["PATCH"], endpoint="offices_update")
    @token_required
    def update_office(office_id: int):
        office = service.update_office(office_id, json_body())
        return jsonify(envelope("Office updated successfully", office=_json(office)))

    @app.route("/api/offices/<int:office_id>/occupancy", methods=["PATCH"], endpoint="offices_occupancy")
    @token_required
    def update_occupancy(office_id: int):
        office = service.update_occupancy(office_id, json_body().get("currentOccupancy"))
        return jsonify(envelope("Office occupancy updated successfully", office=_json(office)))

    @app.route("/api/offices/<int:office_id>", methods=["DELETE"], endpoint="offices_delete")
    @token_required
    def delete_office(office_id: int):
        office = service.delete_office(office_id)
        return jsonify(envelope("Office deleted successfully", office=_json(office)))
