# loto/routes/catalog_routes/saved_lists_api.py
from __future__ import annotations

from flask import Blueprint, request

from loto.errors import NotFoundError
from loto.routes.api_helpers import json_body, ok, register_error_handlers
from loto.services.saved_list_service import SavedListService

saved_lists_api_bp = Blueprint(
    "saved_lists_api_bp",
    __name__,
    url_prefix="/api/saved-lists",
)
register_error_handlers(saved_lists_api_bp)


def _not_found(list_id: int) -> NotFoundError:
    return NotFoundError(f"Saved list {list_id} not found.")


@saved_lists_api_bp.get("")
def list_saved():
    rows = SavedListService().get_all(request.args.get("q"))
    return ok(items=[r.to_json() for r in rows], total=len(rows))


@saved_lists_api_bp.get("/<int:list_id>")
def get_saved(list_id: int):
    row = SavedListService().get_by_id(list_id)
    if row is None:
        raise _not_found(list_id)
    return ok(savedList=row.to_json())


@saved_lists_api_bp.post("")
def create_saved():
    row = SavedListService().create(json_body())
    return ok(201, savedList=row.to_json())


@saved_lists_api_bp.route("/<int:list_id>", methods=["PUT", "PATCH"])
def update_saved(list_id: int):
    row = SavedListService().update(list_id, json_body())
    if row is None:
        raise _not_found(list_id)
    return ok(savedList=row.to_json())


@saved_lists_api_bp.delete("/<int:list_id>")
def delete_saved(list_id: int):
    if not SavedListService().delete(list_id):
        raise _not_found(list_id)
    return ok(deleted=list_id)
