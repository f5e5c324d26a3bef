# loto/utils/text_utils.py
from __future__ import annotations

import re
import unicodedata
from typing import Optional

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")
_WHITESPACE_CONTROLS = {"\t", "\n", "\r", "\x0b", "\x0c"}


def as_text(value: Optional[object]) -> str:
    """None -> ''. Anything else -> str(value)."""
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def strip_control_chars(value: Optional[object]) -> str:
    """
    Removes control characters (Unicode category Cc/Cf) from a text field.
    Tabs and line breaks become a single space so words do not run together.
    """
    out = []
    for ch in as_text(value):
        if ch in _WHITESPACE_CONTROLS:
            out.append(" ")
            continue
        if unicodedata.category(ch) in ("Cc", "Cf"):
            continue
        out.append(ch)
    return "".join(out)


def filename_part(value: Optional[str], fallback: str = "Procedure") -> str:
    """Every non-alphanumeric character becomes '-' (same rule as the download names)."""
    value = (value or "").strip() or fallback
    return _NON_ALNUM.sub("-", value)
