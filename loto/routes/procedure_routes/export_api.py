# loto/routes/procedure_routes/export_api.py
"""
Stateless export: the client sends the ordered list itself.

POST /api/export/isolation-list?format=csv|pdf
    {
      "isolationPointIds": [3, 1, {"id": 7, "method": "Rack-Out and LOTO"}],
      "name": "...", "jsaNumber": "...", "workOrder": "...", "jobDescription": "..."
    }

Ids unknown to the catalog are left out; their count is returned in the
X-Dropped-Count header.
"""
from __future__ import annotations

import logging
from datetime import datetime

from flask import Blueprint, current_app, request

from loto.errors import ValidationError
from loto.models import ProcedureMetadata
from loto.routes.api_helpers import attachment, json_body, register_error_handlers
from loto.services.catalog_service import CatalogService
from loto.services.export.csv_export import CSV_MIMETYPE, render_csv
from loto.services.export.filenames import export_filename
from loto.services.export.pdf_export import PDF_MIMETYPE, render_pdf
from loto.services.procedure.list_engine import ProcedureListEngine

logger = logging.getLogger(__name__)

export_api_bp = Blueprint("export_api_bp", __name__, url_prefix="/api/export")
register_error_handlers(export_api_bp)

FORMATS = ("csv", "pdf")


@export_api_bp.post("/isolation-list")
def export_isolation_list():
    fmt = (request.args.get("format") or "csv").lower()
    if fmt not in FORMATS:
        raise ValidationError(f"Unsupported export format {fmt!r} (use csv or pdf).")

    data = json_body()
    refs = data.get("isolationPointIds")
    if not isinstance(refs, list):
        raise ValidationError("Invalid isolation point IDs")

    engine = ProcedureListEngine(metadata=ProcedureMetadata.from_mapping(data))
    hydration = engine.load(refs, CatalogService())

    now = datetime.now()
    if fmt == "pdf":
        rendered = render_pdf(
            engine.ordered_points(),
            engine.metadata,
            generated_at=now,
            product_name=current_app.config["LOTO_PRODUCT_NAME"],
        )
        resp = attachment(rendered.content, rendered.filename, PDF_MIMETYPE)
    else:
        body = render_csv(engine.ordered_points(), engine.metadata, today=now.date())
        resp = attachment(
            body, export_filename(engine.metadata.name, "csv", now.date()), CSV_MIMETYPE
        )

    resp.headers["X-Dropped-Count"] = str(hydration.dropped_count)
    logger.info(
        f"[export] Stateless {fmt} export: {len(engine)} step(s), "
        f"{hydration.dropped_count} dropped"
    )
    return resp
