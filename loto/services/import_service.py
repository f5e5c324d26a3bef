# loto/services/import_service.py
"""
Bulk import of catalog rows from CSV.

The file is parsed with pandas (every cell read as text), checked for the
expected columns and then validated row by row. Valid rows become
IsolationPointDraft objects; invalid ones are reported as
(row_number, message) pairs where the header is row 1 and blank
lines keep their place in the numbering. Nothing is
written here: CatalogService.bulk_create persists the drafts.
"""
from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from typing import IO, List, Optional, Tuple, Union

import pandas as pd

from loto.errors import ValidationError
from loto.models import IsolationPointDraft
from loto.models.catalog_models.isolation_point import REQUIRED_FIELDS

logger = logging.getLogger(__name__)

# CSV column -> draft attribute, in template order
IMPORT_COLUMNS = {
    "KKS": "kks",
    "Unit": "unit",
    "Description": "description",
    "Type": "type",
    "Panel KKS": "panel_kks",
    "Load KKS": "load_kks",
    "Isolation Method": "isolation_method",
    "Normal Position": "normal_position",
    "Isolation Position": "isolation_position",
    "Special Instructions": "special_instructions",
}

TEMPLATE_SAMPLE = (
    "1AAA01AA001",
    "Unit 1",
    "Sample Description",
    "Electrical",
    "1AAA01AB001",
    "1AAA01AC001",
    "Open and LOTO",
    "Closed",
    "Open",
    "Sample special instructions",
)

TEMPLATE_FILENAME = "isolation-points-template.csv"
DEFAULT_MAX_ROWS = 5000

_LABEL_BY_ATTR = {attr: label for label, attr in IMPORT_COLUMNS.items()}


@dataclass
class ImportReport:
    drafts: List[IsolationPointDraft] = field(default_factory=list)
    errors: List[Tuple[int, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def errors_json(self) -> List[dict]:
        return [{"row": row, "error": msg} for row, msg in self.errors]


def catalog_template_csv() -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(IMPORT_COLUMNS.keys())
    writer.writerow(TEMPLATE_SAMPLE)
    return buf.getvalue()


def _read_frame(source: Union[str, bytes, IO]) -> pd.DataFrame:
    if isinstance(source, bytes):
        try:
            source = source.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ValidationError(
                f"The CSV file is not valid UTF-8 (byte {e.start}). Save it as UTF-8 and retry."
            )
    if isinstance(source, str):
        source = io.StringIO(source)
    try:
        return pd.read_csv(
            source,
            dtype=str,
            keep_default_na=False,
            skipinitialspace=True,
            skip_blank_lines=False,
        )
    except pd.errors.EmptyDataError:
        raise ValidationError("The CSV file is empty.")
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise ValidationError(f"The CSV file could not be parsed: {e}")


def parse_catalog_csv(
    source: Union[str, bytes, IO], max_rows: Optional[int] = DEFAULT_MAX_ROWS
) -> ImportReport:
    """
    Parses and validates a catalog CSV.

    File-level problems (unreadable file, missing columns, too many rows)
    raise ValidationError. Row-level problems (missing required value,
    KKS repeated inside the file) end up in ``report.errors``.
    """
    df = _read_frame(source)
    df.columns = [str(c).strip().lstrip("\ufeff") for c in df.columns]

    missing = [c for c in IMPORT_COLUMNS if c not in df.columns]
    if missing:
        raise ValidationError(f"Missing column(s): {', '.join(missing)}")
    df = df.fillna("")
    blank = [all(not str(v).strip() for v in cells) for cells in df.itertuples(index=False)]
    data_rows = blank.count(False)
    if max_rows is not None and data_rows > max_rows:
        raise ValidationError(f"Too many rows: {data_rows} (limit {max_rows}).")

    report = ImportReport()
    seen_kks = {}
    for pos, (_, row) in enumerate(df.iterrows()):
        # blank lines are kept by the reader so positions match the file
        row_number = pos + 2  # header is row 1
        if blank[pos]:
            continue
        values = {
            attr: (str(row[label]).strip() or None) for label, attr in IMPORT_COLUMNS.items()
        }

        absent = [_LABEL_BY_ATTR[f] for f in REQUIRED_FIELDS if not values.get(f)]
        if absent:
            report.errors.append((row_number, f"Missing required value(s): {', '.join(absent)}"))
            continue

        key = values["kks"].lower()
        if key in seen_kks:
            report.errors.append(
                (row_number, f"Duplicate KKS '{values['kks']}' (first seen on row {seen_kks[key]})")
            )
            continue
        seen_kks[key] = row_number

        report.drafts.append(IsolationPointDraft(**values))

    logger.info(
        f"[import] Parsed catalog CSV: {len(report.drafts)} valid row(s), "
        f"{len(report.errors)} rejected"
    )
    if report.errors:
        logger.warning(f"[import] Rejected rows: {report.errors[:20]}")
    return report
