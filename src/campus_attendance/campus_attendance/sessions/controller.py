from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_datetime
from ..common.http import json_body
from ..common.validators import require_float, require_int, require_latitude, require_longitude
from ..container import Container
from ..core.exceptions import ValidationError
from .model import Geofence


def register(app: Flask, container: Container) -> None:
    def _parse_geofence(raw) -> Geofence | None:
        if raw is None:
            return None
        if not isinstance(raw, dict):
            raise ValidationError("geofence must be an object")
        radius = raw.get("radiusM", raw.get("radius"))
        return Geofence(
            latitude=require_latitude(raw.get("latitude")),
            longitude=require_longitude(raw.get("longitude")),
            radius_m=(
                require_float(radius, "geofence.radiusM")
                if radius is not None
                else float(app.config["DEFAULT_GEOFENCE_RADIUS_M"])
            ),
        )

    @app.route("/sessions", methods=["POST"], endpoint="create_session")
    def create_session():
        data = json_body()
        scheduled_end = data.get("scheduledEnd")
        session = container.session_service.create_session(
            faculty_id=require_int(data.get("facultyId"), "facultyId"),
            subject=data.get("subject"),
            scheduled_start=parse_iso_datetime(data.get("scheduledStart")),
            scheduled_end=parse_iso_datetime(scheduled_end) if scheduled_end else None,
            late_after_minutes=data.get("lateAfterMinutes"),
        )
        return jsonify(session.to_public_dict()), 201

    @app.route("/sessions", methods=["GET"], endpoint="list_sessions")
    def list_sessions():
        faculty_id = require_int(request.args.get("facultyId"), "facultyId")
        sessions = container.session_service.list_for_faculty(faculty_id)
        return jsonify({"sessions": [s.to_public_dict() for s in sessions]})

    @app.route("/sessions/<int:session_id>", methods=["GET"], endpoint="get_session")
    def get_session(session_id: int):
        session = container.session_service.get_session(session_id)
        return jsonify(session.to_public_dict())

    @app.route("/sessions/<int:session_id>/qr", methods=["POST"], endpoint="issue_qr")
    def issue_qr(session_id: int):
        data = json_body()
        expiry = data.get("expiryMinutes")
        issued = container.qr_issuer.issue_token(
            session_id,
            require_int(data.get("facultyId"), "facultyId"),
            expiry_minutes=require_int(expiry, "expiryMinutes") if expiry is not None else None,
            geofence=_parse_geofence(data.get("geofence")),
        )
        return jsonify(issued.to_dict()), 201

    @app.route("/sessions/<int:session_id>/qr.png", methods=["GET"], endpoint="session_qr_png")
    def session_qr_png(session_id: int):
        faculty_id = require_int(request.args.get("facultyId"), "facultyId")
        png = container.qr_issuer.current_qr_png(session_id, faculty_id)
        return app.response_class(png, mimetype="image/png", headers={"Cache-Control": "no-store"})

    @app.route("/sessions/<int:session_id>/close", methods=["POST"], endpoint="close_session")
    def close_session(session_id: int):
        data = json_body()
        roster = data.get("roster") or []
        if not isinstance(roster, list):
            raise ValidationError("roster must be a list of user ids")
        stats = container.session_service.close_session(
            session_id=session_id,
            faculty_id=require_int(data.get("facultyId"), "facultyId"),
            roster=roster,
        )
        return jsonify(stats.to_dict())

    @app.route("/sessions/<int:session_id>/stats", methods=["GET"], endpoint="session_stats")
    def session_stats(session_id: int):
        return jsonify(container.session_service.session_stats(session_id).to_dict())
