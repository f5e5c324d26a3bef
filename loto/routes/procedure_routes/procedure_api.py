# loto/routes/procedure_routes/procedure_api.py
"""
The procedure being built by the current operator.

The engine lives in the Flask session as its JSON state and is rebuilt
against the catalog on every request, so points deleted from the catalog
meanwhile simply disappear (reported as droppedCount).

Endpoints (prefix /api/procedure):
  GET    ""                 -> current state
  POST   /add               {pointIds: [..]}
  POST   /remove            {pointId}
  POST   /reorder           {pointIds: [..]}           full permutation
  POST   /move              {pointId, direction: up|down}
  POST   /override          {pointId, method}
  POST   /clear
  POST   /metadata          {name, jsaNumber, workOrder, jobDescription, description}
  POST   /save              {listId?, ...metadata}     creates or updates a saved list
  POST   /load/<list_id>
  GET    /export.csv
  GET    /export.pdf
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Tuple

from flask import Blueprint, current_app, session

from loto.errors import NotFoundError
from loto.models import HydrationResult, ProcedureMetadata
from loto.routes.api_helpers import (
    as_int,
    as_int_list,
    attachment,
    json_body,
    ok,
    register_error_handlers,
)
from loto.services.catalog_service import CatalogService
from loto.services.export.csv_export import CSV_MIMETYPE, render_csv
from loto.services.export.filenames import export_filename
from loto.services.export.pdf_export import PDF_MIMETYPE, render_pdf
from loto.services.procedure.list_engine import ProcedureListEngine
from loto.services.saved_list_service import SavedListService

logger = logging.getLogger(__name__)

SESSION_KEY = "loto_procedure"

procedure_api_bp = Blueprint(
    "procedure_api_bp",
    __name__,
    url_prefix="/api/procedure",
)
register_error_handlers(procedure_api_bp)


# ===============================
# Session helpers
# ===============================
def _load_engine() -> Tuple[ProcedureListEngine, HydrationResult]:
    return ProcedureListEngine.from_state(session.get(SESSION_KEY), CatalogService())


def _store(engine: ProcedureListEngine) -> None:
    session[SESSION_KEY] = engine.to_state()


def _state(engine: ProcedureListEngine, hydration: Optional[HydrationResult] = None, **extra):
    dropped = hydration.dropped_ids if hydration else []
    return ok(
        entries=[e.to_json() for e in engine.snapshot()],
        metadata=engine.metadata.to_json(),
        total=len(engine),
        droppedCount=len(dropped),
        droppedIds=dropped,
        **extra,
    )


# ===============================
# State
# ===============================
@procedure_api_bp.get("")
def get_state():
    engine, hydration = _load_engine()
    _store(engine)
    return _state(engine, hydration)


@procedure_api_bp.post("/add")
def add_points():
    data = json_body()
    ids = as_int_list(data.get("pointIds"), "pointIds")

    engine, hydration = _load_engine()
    found = CatalogService().get_many(ids)
    unknown = [pid for pid in ids if pid not in found]
    if unknown:
        raise NotFoundError(f"Isolation point(s) not found: {unknown}")

    added = engine.add(found[pid] for pid in ids)
    _store(engine)
    return _state(engine, hydration, added=added)


@procedure_api_bp.post("/remove")
def remove_point():
    point_id = as_int(json_body().get("pointId"), "pointId")
    engine, hydration = _load_engine()
    engine.remove(point_id)
    _store(engine)
    return _state(engine, hydration)


@procedure_api_bp.post("/reorder")
def reorder():
    new_order = as_int_list(json_body().get("pointIds"), "pointIds")
    engine, hydration = _load_engine()
    engine.reorder(new_order)
    _store(engine)
    return _state(engine, hydration)


@procedure_api_bp.post("/move")
def move():
    data = json_body()
    point_id = as_int(data.get("pointId"), "pointId")
    engine, hydration = _load_engine()
    engine.move_adjacent(point_id, data.get("direction"))
    _store(engine)
    return _state(engine, hydration)


@procedure_api_bp.post("/override")
def override():
    data = json_body()
    point_id = as_int(data.get("pointId"), "pointId")
    engine, hydration = _load_engine()
    engine.override_method(point_id, data.get("method"))
    _store(engine)
    return _state(engine, hydration)


@procedure_api_bp.post("/clear")
def clear():
    engine = ProcedureListEngine()
    _store(engine)
    return _state(engine)


@procedure_api_bp.post("/metadata")
def update_metadata():
    engine, hydration = _load_engine()
    engine.update_metadata(ProcedureMetadata.from_mapping(json_body()))
    _store(engine)
    return _state(engine, hydration)


# ===============================
# Saved lists
# ===============================
@procedure_api_bp.post("/save")
def save():
    data = json_body()
    engine, hydration = _load_engine()
    engine.update_metadata(ProcedureMetadata.from_mapping(data))
    draft = engine.to_saved_list()

    service = SavedListService()
    if data.get("listId") is not None:
        list_id = as_int(data.get("listId"), "listId")
        row = service.update(list_id, draft.as_dict())
        if row is None:
            raise NotFoundError(f"Saved list {list_id} not found.")
    else:
        row = service.create(draft)

    _store(engine)
    return _state(engine, hydration, savedList=row.to_json())


@procedure_api_bp.post("/load/<int:list_id>")
def load(list_id: int):
    row = SavedListService().get_by_id(list_id)
    if row is None:
        raise NotFoundError(f"Saved list {list_id} not found.")
    engine, hydration = ProcedureListEngine.from_saved_list(row, CatalogService())
    _store(engine)
    return _state(engine, hydration, savedList=row.to_json())


# ===============================
# Exports
# ===============================
@procedure_api_bp.get("/export.csv")
def export_csv():
    engine, _ = _load_engine()
    today = date.today()
    body = render_csv(engine.ordered_points(), engine.metadata, today=today)
    logger.info(f"[export] CSV export: {len(engine)} step(s)")
    return attachment(body, export_filename(engine.metadata.name, "csv", today), CSV_MIMETYPE)


@procedure_api_bp.get("/export.pdf")
def export_pdf():
    engine, _ = _load_engine()
    rendered = render_pdf(
        engine.ordered_points(),
        engine.metadata,
        generated_at=datetime.now(),
        product_name=current_app.config["LOTO_PRODUCT_NAME"],
    )
    return attachment(rendered.content, rendered.filename, PDF_MIMETYPE)
