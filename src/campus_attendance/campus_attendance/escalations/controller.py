from __future__ import annotations

from flask import Flask, request

from ..common.http import api_login_required, json_body, ok
from ..container import Container
from .model import OPEN_ACTION, RESOLVE_ACTION


def register(app: Flask, container: Container) -> None:
    @app.route("/api/verification-requests", methods=["POST"], endpoint="api_verification_requests_open")
    @api_login_required
    def open_request(actor):
        body = {**json_body(), "action": OPEN_ACTION}
        req = container.escalation_service.open_or_resolve(actor, body)
        return ok(req.to_dict(), 201)

    @app.route(
        "/api/verification-requests/<int:request_id>",
        methods=["PUT"],
        endpoint="api_verification_requests_resolve",
    )
    @api_login_required
    def resolve_request(actor, request_id: int):
        body = {**json_body(), "action": RESOLVE_ACTION, "request_id": request_id}
        req = container.escalation_service.open_or_resolve(actor, body)
        return ok(req.to_dict())

    @app.route("/api/verification-requests", methods=["GET"], endpoint="api_verification_requests_list")
    @api_login_required
    def list_requests(actor):
        rows = container.escalation_service.list_requests(actor, request.args.get("status") or None)
        return ok([r.to_dict() for r in rows])
