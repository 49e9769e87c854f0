from __future__ import annotations

from flask import Flask, request

from ..common.http import api_login_required, json_body, ok
from ..core.enums import CaptureMethod, Decision, VirtualAction
from ..core.exceptions import ValidationError
from ..container import Container
from ..virtual.verifier import client_ip_from_headers
from .model import ClientInfo


def _decision_from(body: dict) -> Decision | str:
    if "decision" in body:
        return body["decision"]
    verified = body.get("verified")
    if isinstance(verified, bool):
        return Decision.VERIFIED if verified else Decision.DISPUTED
    raise ValidationError("decision is required ('verified' or 'disputed')")


def _client() -> ClientInfo:
    return ClientInfo(
        user_agent=request.headers.get("User-Agent") or "unknown",
        ip_address=client_ip_from_headers(request.headers, request.remote_addr),
    )


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/take", methods=["POST"], endpoint="api_attendance_take")
    @api_login_required
    def take_attendance(actor):
        body = json_body()
        coordinates = None
        if "latitude" in body or "longitude" in body:
            coordinates = (body.get("latitude"), body.get("longitude"))

        action = body.get("virtual_action")
        record = container.attendance_service.capture_attendance(
            actor,
            body.get("schedule_id"),
            body.get("method") or CaptureMethod.ONSITE,
            coordinates=coordinates,
            virtual_action=action,
            client=_client(),
        )
        ended = str(action or "").lower() == VirtualAction.END.value
        return ok(record.to_dict(), 200 if ended else 201)

    @app.route(
        "/api/attendance/<int:record_id>/class-rep-verification",
        methods=["POST"],
        endpoint="api_attendance_class_rep_verification",
    )
    @api_login_required
    def class_rep_verification(actor, record_id: int):
        body = json_body()
        record = container.attendance_service.decide_class_rep_verification(
            actor, record_id, _decision_from(body), body.get("comment")
        )
        return ok(record.to_dict())

    @app.route(
        "/api/attendance/<int:record_id>/supervisor-verification",
        methods=["POST"],
        endpoint="api_attendance_supervisor_verification",
    )
    @api_login_required
    def supervisor_verification(actor, record_id: int):
        body = json_body()
        record = container.attendance_service.decide_supervisor_verification(
            actor, record_id, _decision_from(body), body.get("comment")
        )
        return ok(record.to_dict())

    @app.route("/api/attendance/<int:record_id>", methods=["GET"], endpoint="api_attendance_get")
    @api_login_required
    def get_attendance(actor, record_id: int):
        return ok(container.attendance_service.get_record(actor, record_id).to_dict())
