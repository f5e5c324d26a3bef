# loto/routes/api_helpers.py
"""
JSON envelope shared by the API blueprints:

    {"ok": true, ...}                     success
    {"ok": false, "error": "...", ...}    failure

LotoError subclasses are turned into failures with their own http_status
by the handler installed through register_error_handlers().
"""
from __future__ import annotations

import logging
from typing import Any, List, Mapping

from flask import Blueprint, Response, jsonify, request

from loto.errors import InvalidOrderError, LotoError, ValidationError

logger = logging.getLogger(__name__)


def ok(status: int = 200, **kw):
    return jsonify({"ok": True, **kw}), status


def err(msg: str, status: int = 400, **ctx):
    return jsonify({"ok": False, "error": msg, **ctx}), status


def register_error_handlers(bp: Blueprint) -> None:
    @bp.errorhandler(LotoError)
    def _loto_error(e: LotoError):
        ctx = {}
        if isinstance(e, InvalidOrderError):
            ctx = {"missing": e.missing, "unexpected": e.unexpected}
        logger.info(f"[api] {request.method} {request.path} -> {e.http_status}: {e}")
        return err(str(e), e.http_status, kind=type(e).__name__, **ctx)


def json_body() -> Mapping[str, Any]:
    """Request JSON object; an empty body counts as {}."""
    data = request.get_json(silent=True)
    if data is None:
        if request.get_data(cache=True):
            raise ValidationError("Request body must be valid JSON.")
        return {}
    if not isinstance(data, Mapping):
        raise ValidationError("Request body must be a JSON object.")
    return data


def as_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"'{name}' must be an integer.")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    raise ValidationError(f"'{name}' must be an integer.")


def as_int_list(value: Any, name: str) -> List[int]:
    if not isinstance(value, (list, tuple)):
        raise ValidationError(f"'{name}' must be a list of integers.")
    return [as_int(v, name) for v in value]


def attachment(body, filename: str, content_type: str) -> Response:
    resp = Response(body, content_type=content_type)
    resp.headers["Content-Disposition"] = f'attachment; filename="{filename}"'
    return resp
