from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.pagination import PageRequest
from ..common.responses import envelope, json_body, page_envelope
from ..container import Container
from .serializers import card_json, validity_json


def register(app: Flask, container: Container) -> None:
    token_required = container.token_required
    service = container.service_card_service

    def _json(card):
        return card_json(card, now=service.now(), refs=container.refs)

    @app.route("/api/service-cards", methods=["POST"], endpoint="service_cards_create")
    @token_required
    def create_card():
        card = service.create_card(json_body())
        return jsonify(envelope("Service card created successfully", serviceCard=_json(card))), 201

    @app.route("/api/service-cards", methods=["GET"], endpoint="service_cards_list")
    @token_required
    def list_cards():
        page = service.list_cards(
            page=PageRequest.from_args(request.args, default_limit=container.default_page_limit),
            user=request.args.get("user"),
            company=request.args.get("company"),
            is_active=request.args.get("isActive"),
            position=request.args.get("position"),
        )
        return jsonify(page_envelope("serviceCards", "totalServiceCards", page, [_json(c) for c in page.items]))

    @app.route("/api/service-cards/user/<int:user_id>", methods=["GET"], endpoint="service_cards_by_user")
    @token_required
    def cards_by_user(user_id: int):
        cards = service.list_by_user(user_id, is_active=request.args.get("isActive"))
        return jsonify({"serviceCards": [_json(c) for c in cards], "totalCards": len(cards)})

    @app.route("/api/service-cards/company/<int:company_id>", methods=["GET"], endpoint="service_cards_by_company")
    @token_required
    def cards_by_company(company_id: int):
        cards = service.list_by_company(
            company_id,
            is_active=request.args.get("isActive"),
            position=request.args.get("position"),
        )
        return jsonify({"serviceCards": [_json(c) for c in cards], "totalCards": len(cards)})

    @app.route("/api/service-cards/<int:card_id>", methods=["GET"], endpoint="service_cards_get")
    @token_required
    def get_card(card_id: int):
        return jsonify(envelope("Service card retrieved successfully", serviceCard=_json(service.get_card(card_id))))

    @app.route("/api/service-cards/<int:card_id>/validity", methods=["GET"], endpoint="service_cards_validity")
    @token_required
    def card_validity(card_id: int):
        return jsonify(validity_json(service.validity(card_id), refs=container.refs))

    @app.route("/api/service-cards/<int:card_id>", methods=["PATCH"], endpoint="service_cards_update")
    @token_required
    def update_card(card_id: int):
        card = service.update_card(card_id, json_body())
        return jsonify(envelope("Service card updated successfully", serviceCard=_json(card)))

    @app.route(
        "/api/service-cards/<int:card_id>/toggle-status",
        methods=["PATCH"],
        endpoint="service_cards_toggle",
    )
    @token_required
    def toggle_status(card_id: int):
        card = service.toggle_status(card_id)
        state = "activated" if card.is_active else "deactivated"
        return jsonify(envelope(f"Service card {state} successfully", serviceCard=_json(card)))

    @app.route("/api/service-cards/<int:card_id>", methods=["DELETE"], endpoint="service_cards_delete")
    @token_required
    def delete_card(card_id: int):
        card = service.delete_card(card_id)
        return jsonify(envelope("Service card deleted successfully", serviceCard=card_json(card, now=service.now())))
