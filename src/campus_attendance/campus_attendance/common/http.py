from __future__ import annotations

import logging
from typing import Any

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from ..core.exceptions import DomainError, StoreUnavailable, ValidationError

logger = logging.getLogger(__name__)


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def error_payload(kind: str, message: str) -> dict[str, Any]:
    return {"success": False, "error": kind, "message": message}


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(err: DomainError):
        if isinstance(err, StoreUnavailable):
            logger.error("Store unavailable while handling %s %s", request.method, request.path, exc_info=err)
        return jsonify(error_payload(err.kind, str(err))), err.http_status

    @app.errorhandler(HTTPException)
    def handle_http_error(err: HTTPException):
        return jsonify(error_payload(err.name.replace(" ", ""), err.description or err.name)), err.code
