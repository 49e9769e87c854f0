from __future__ import annotations

from flask import Flask, request

from ..common.http import api_login_required, ok, optional_int_arg
from ..container import Container
from ..core import constants


def register(app: Flask, container: Container) -> None:
    @app.route("/api/audit/logs", methods=["GET"], endpoint="api_audit_logs")
    @api_login_required
    def list_logs(actor):
        entries = container.audit_trail.list_entries(
            actor,
            actor_id=optional_int_arg("actor_id"),
            action=request.args.get("action") or None,
            target_type=request.args.get("target_type") or None,
            target_id=optional_int_arg("target_id"),
            min_risk=optional_int_arg("min_risk"),
            limit=optional_int_arg("limit") or constants.DEFAULT_LIST_LIMIT,
        )
        return ok(
            [
                {**e.to_dict(), "risk_level": container.audit_trail.risk_level(e.risk_score)}
                for e in entries
            ]
        )

    @app.route("/api/audit/logs/<int:entry_id>/integrity", methods=["GET"], endpoint="api_audit_log_integrity")
    @api_login_required
    def check_integrity(actor, entry_id: int):
        entry, intact = container.audit_trail.check_entry(actor, entry_id)
        return ok({"entry_id": entry.entry_id, "intact": intact, "data_hash": entry.data_hash})
