from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_optional_date
from ..common.http import json_body
from ..common.validators import optional_text, require_int, require_latitude, require_longitude
from ..container import Container
from ..core.constants import MAX_TEXT_LENGTH
from ..core.exceptions import ValidationError
from .model import Location


def register(app: Flask, container: Container) -> None:
    def _parse_location(raw) -> Location | None:
        if raw is None:
            return None
        if not isinstance(raw, dict):
            raise ValidationError("location must be an object")
        return Location(latitude=require_latitude(raw.get("latitude")), longitude=require_longitude(raw.get("longitude")))

    @app.route("/attendance", methods=["POST"], endpoint="mark_attendance")
    def mark_attendance():
        """QR scan: validate the token and record one attendance entry."""
        data = json_body()
        token = data.get("token")
        if not isinstance(token, str):
            raise ValidationError("token is required")

        record = container.attendance_validator.validate(
            token.strip(),
            require_int(data.get("userId"), "userId"),
            _parse_location(data.get("location")),
            device_fingerprint=optional_text(data.get("deviceFingerprint"), "deviceFingerprint", max_length=MAX_TEXT_LENGTH),
        )
        return jsonify(record.to_dict()), 201

    @app.route("/attendance", methods=["GET"], endpoint="list_attendance")
    def list_attendance():
        user_id = require_int(request.args.get("userId"), "userId")
        report = container.analytics.user_report(
            user_id,
            start=parse_optional_date(request.args.get("start")),
            end=parse_optional_date(request.args.get("end")),
        )
        return jsonify(
            {
                "records": [r.to_dict() for r in report.records],
                "summary": report.summary.to_dict(),
            }
        )

    @app.route("/attendance/<int:record_id>", methods=["PATCH"], endpoint="override_attendance")
    def override_attendance(record_id: int):
        data = json_body()
        record = container.attendance_service.override_status(
            record_id=record_id,
            admin_id=require_int(data.get("adminId"), "adminId"),
            status=container.attendance_service.parse_status(data.get("status")),
            note=data.get("note"),
        )
        return jsonify(record.to_dict())

    @app.route("/attendance/<int:record_id>", methods=["DELETE"], endpoint="delete_attendance")
    def delete_attendance(record_id: int):
        container.attendance_service.delete_record(
            record_id=record_id,
            admin_id=require_int(request.args.get("adminId"), "adminId"),
        )
        return "", 204
