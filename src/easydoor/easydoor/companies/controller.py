from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.pagination import PageRequest
from ..common.responses import envelope, json_body, page_envelope
from ..common.validators import parse_bool, require_int
from ..container import Container
from .serializers import company_json


def register(app: Flask, container: Container) -> None:
    token_required = container.token_required
    service = container.company_service

    def _json(company):
        return company_json(company, refs=container.refs)

    @app.route("/api/companies", methods=["POST"], endpoint="companies_create")
    @token_required
    def create_company():
        data = json_body()
        company = service.create_company(
            acronym=data.get("acronym"),
            full_name=data.get("fullName"),
            logo_url=data.get("logoUrl"),
        )
        return jsonify(envelope("Company created successfully", company=_json(company))), 201

    @app.route("/api/companies", methods=["GET"], endpoint="companies_list")
    @token_required
    def list_companies():
        page = service.list_companies(
            page=PageRequest.from_args(request.args, default_limit=container.default_page_limit),
            active=request.args.get("active"),
        )
        return jsonify(page_envelope("companies", "totalCompanies", page, [company_json(c) for c in page.items]))

    @app.route("/api/companies/<int:company_id>", methods=["GET"], endpoint="companies_get")
    @token_required
    def get_company(company_id: int):
        return jsonify(envelope("Company retrieved successfully", company=_json(service.get_company(company_id))))

    @app.route("/api/companies/<int:company_id>", methods=["PATCH"], endpoint="companies_update")
    @token_required
    def update_company(company_id: int):
        company = service.update_company(company_id, json_body())
        return jsonify(envelope("Company updated successfully", company=_json(company)))

    @app.route("/api/companies/<int:company_id>", methods=["DELETE"], endpoint="companies_delete")
    @token_required
    def delete_company(company_id: int):
        company = service.delete_company(company_id)
        return jsonify(envelope("Company deleted successfully", company=_json(company)))

    @app.route("/api/companies/<int:company_id>/add-employee", methods=["PATCH"], endpoint="companies_add_employee")
    @token_required
    def add_employee(company_id: int):
        data = json_body()
        is_admin = data.get("isAdmin")
        company = service.add_employee(
            company_id,
            require_int(data.get("employeeId"), "employeeId"),
            is_admin=parse_bool(is_admin, "isAdmin") if is_admin is not None else False,
        )
        return jsonify(envelope("Employee added successfully", company=_json(company)))

    @app.route(
        "/api/companies/<int:company_id>/remove-employee",
        methods=["PATCH"],
        endpoint="companies_remove_employee",
    )
    @token_required
    def remove_employee(company_id: int):
        data = json_body()
        company = service.remove_employee(company_id, require_int(data.get("employeeId"), "employeeId"))
        return jsonify(envelope("Employee removed successfully", company=_json(company)))

    @app.route(
        "/api/companies/<int:company_id>/employee-status",
        methods=["PATCH"],
        endpoint="companies_employee_status",
    )
    @token_required
    def employee_status(company_id: int):
        data = json_body()
        company = service.update_employee_status(
            company_id,
            require_int(data.get("employeeId"), "employeeId"),
            data.get("status"),
        )
        return jsonify(envelope("Employee status updated successfully", company=_json(company)))
