from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.validators import require_int, require_positive_int
from ..container import Container
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import Role


def register(app: Flask, container: Container) -> None:
    @app.route("/audit", methods=["GET"], endpoint="list_audit")
    def list_audit():
        container.user_service.require_role(require_int(request.args.get("adminId"), "adminId"), Role.ADMIN)

        limit = request.args.get("limit")
        actor = request.args.get("actorId")
        entries = container.audit_trail.recent(
            limit=min(require_positive_int(limit, "limit"), DEFAULT_HISTORY_LIMIT) if limit else DEFAULT_HISTORY_LIMIT,
            actor_id=require_int(actor, "actorId") if actor else None,
        )
        return jsonify({"entries": [e.to_dict() for e in entries]})
