# loto/services/export/filenames.py
from __future__ import annotations

from datetime import date
from typing import Optional

from loto.utils.text_utils import filename_part

UNNAMED_CSV = "isolation-points.csv"


def export_filename(name: Optional[str], extension: str, day: Optional[date] = None) -> str:
    """
    LOTO-Procedure-<name>-<YYYY-MM-DD>.<ext>, non-alphanumerics in the name
    replaced by '-'. Unnamed CSV exports fall back to a generic name.
    """
    day = day or date.today()
    if extension == "csv" and not (name or "").strip():
        return UNNAMED_CSV
    return f"LOTO-Procedure-{filename_part(name)}-{day.isoformat()}.{extension}"
