# loto/services/export/csv_export.py
"""
CSV rendering of a procedure.

Layout:

    LOCKOUT/TAGOUT PROCEDURE                 <- only when any metadata field is set
    ========================
    Procedure Name:,Unit 1 Maintenance
    JSA Number:,JSA-001
    Work Order:,WO-42
    Job Description:,"Replace seals, pump A"
    Export Date:,2026-10-19
    Total Points:,3
                                             <- blank line
    Step,KKS Code,Unit,Description,Type,Isolation Method
    "1","1AAA01AA001","Unit 1","Primary Coolant Pump Motor Breaker","Electrical","Open and LOTO"

Rows are always fully quoted (embedded quotes doubled, commas and line
breaks kept verbatim). Metadata values are quoted only when needed.
Lines end with '\n'. The output depends only on the inputs and on the
export date.
"""
from __future__ import annotations

import csv
import io
from datetime import date
from typing import Optional, Sequence

from loto.models import IsolationPoint, ProcedureMetadata
from loto.utils.text_utils import as_text

TITLE = "LOCKOUT/TAGOUT PROCEDURE"
SEPARATOR = "=" * len(TITLE)
COLUMNS = ("Step", "KKS Code", "Unit", "Description", "Type", "Isolation Method")

# (label, metadata attribute), in output order
METADATA_LINES = (
    ("Procedure Name", "name"),
    ("JSA Number", "jsa_number"),
    ("Work Order", "work_order"),
    ("Job Description", "job_description"),
)

CSV_MIMETYPE = "text/csv; charset=utf-8"


def _row(step: int, point: IsolationPoint) -> list:
    return [
        str(step),
        as_text(point.kks),
        as_text(point.unit),
        as_text(point.description),
        as_text(point.type),
        as_text(point.isolation_method),
    ]


def render_csv(
    ordered_points: Sequence[IsolationPoint],
    metadata: Optional[ProcedureMetadata] = None,
    today: Optional[date] = None,
) -> str:
    """
    Renders the procedure as CSV text.

    ``ordered_points`` must already carry the effective isolation method of
    each entry (see ProcedureListEngine.ordered_points()). An empty list is
    valid and yields the header (and metadata block) only.
    """
    metadata = metadata or ProcedureMetadata()
    buf = io.StringIO()

    if metadata.has_export_fields:
        meta_writer = csv.writer(buf, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
        buf.write(TITLE + "\n")
        buf.write(SEPARATOR + "\n")
        for label, attr in METADATA_LINES:
            value = getattr(metadata, attr)
            if value:
                meta_writer.writerow([f"{label}:", value])
        meta_writer.writerow(["Export Date:", (today or date.today()).isoformat()])
        meta_writer.writerow(["Total Points:", str(len(ordered_points))])
        buf.write("\n")

    buf.write(",".join(COLUMNS) + "\n")

    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for step, point in enumerate(ordered_points, start=1):
        writer.writerow(_row(step, point))

    return buf.getvalue()
