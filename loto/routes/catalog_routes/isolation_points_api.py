# loto/routes/catalog_routes/isolation_points_api.py
from __future__ import annotations

from flask import Blueprint, current_app, request

from loto.errors import NotFoundError, ValidationError
from loto.models import ISOLATION_METHODS, POINT_TYPES, POSITIONS, FilterCriteria
from loto.models.catalog_models.filters import DIMENSIONS
from loto.routes.api_helpers import attachment, json_body, ok, register_error_handlers
from loto.services.catalog_service import CatalogService
from loto.services.import_service import (
    TEMPLATE_FILENAME,
    catalog_template_csv,
    parse_catalog_csv,
)

isolation_points_api_bp = Blueprint(
    "isolation_points_api_bp",
    __name__,
    url_prefix="/api/isolation-points",
)
register_error_handlers(isolation_points_api_bp)


def _criteria_from_args() -> FilterCriteria:
    # ?units=Unit 1&units=Unit 2 and ?units=Unit 1,Unit 2 are both accepted
    data = {"search": request.args.get("search")}
    for dim in DIMENSIONS:
        values = []
        for raw in request.args.getlist(dim):
            values.extend(v for v in raw.split(",") if v.strip())
        data[dim] = values
    return FilterCriteria.from_mapping(data)


# ===============================
# Reads
# ===============================
@isolation_points_api_bp.get("")
def list_points():
    criteria = _criteria_from_args()
    points = CatalogService().search(criteria)
    return ok(items=[p.to_json() for p in points], total=len(points))


@isolation_points_api_bp.post("/search")
def search_points():
    """Same as the listing, with the criteria in a JSON body."""
    criteria = FilterCriteria.from_mapping(json_body())
    points = CatalogService().search(criteria)
    return ok(items=[p.to_json() for p in points], total=len(points))


@isolation_points_api_bp.get("/facets")
def facets():
    return ok(
        facets=CatalogService().facets(),
        vocabularies={
            "types": list(POINT_TYPES),
            "methods": list(ISOLATION_METHODS),
            "positions": list(POSITIONS),
        },
    )


@isolation_points_api_bp.get("/<int:point_id>")
def get_point(point_id: int):
    point = CatalogService().get_by_id(point_id)
    if point is None:
        raise NotFoundError(f"Isolation point {point_id} not found.")
    return ok(point=point.to_json())


# ===============================
# Writes
# ===============================
@isolation_points_api_bp.post("")
def create_point():
    point = CatalogService().create(json_body())
    return ok(201, point=point.to_json())


@isolation_points_api_bp.route("/<int:point_id>", methods=["PUT", "PATCH"])
def update_point(point_id: int):
    point = CatalogService().update(point_id, json_body())
    if point is None:
        raise NotFoundError(f"Isolation point {point_id} not found.")
    return ok(point=point.to_json())


@isolation_points_api_bp.delete("/<int:point_id>")
def delete_point(point_id: int):
    if not CatalogService().delete(point_id):
        raise NotFoundError(f"Isolation point {point_id} not found.")
    return ok(deleted=point_id)


# ===============================
# Bulk import
# ===============================
@isolation_points_api_bp.get("/import/template")
def import_template():
    return attachment(catalog_template_csv(), TEMPLATE_FILENAME, "text/csv; charset=utf-8")


@isolation_points_api_bp.post("/import")
def import_points():
    """
    Accepts the CSV as a multipart upload (field 'file') or as the raw body.
    Rows with errors are reported; the valid ones are inserted unless
    '?dry_run=1' is given.
    """
    upload = request.files.get("file")
    raw = upload.read() if upload else request.get_data()
    if not raw:
        raise ValidationError("No CSV content received.")

    report = parse_catalog_csv(raw, max_rows=current_app.config.get("LOTO_MAX_IMPORT_ROWS"))
    if request.args.get("dry_run") in ("1", "true", "yes"):
        return ok(
            valid=len(report.drafts),
            created=0,
            conflicts=[],
            errors=report.errors_json(),
            dryRun=True,
        )

    result = CatalogService().bulk_create(report.drafts)
    return ok(
        valid=len(report.drafts),
        created=len(result.created),
        conflicts=result.conflicts,
        errors=report.errors_json(),
        dryRun=False,
    )
