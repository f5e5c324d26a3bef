# -*- coding: utf-8 -*-
"""
loto/services/filter_service.py

Pure functions that narrow the isolation point catalog for the list builder.
Public functions:
- filter_points(points, criteria)   -> matching points, source order preserved.
- facet_counts(points)              -> distinct values per filter dimension with counts.
- search_saved_lists(lists, term)   -> saved lists whose text fields contain the term.

Nothing here touches the database: callers pass a catalog snapshot.
"""
from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from loto.models import FilterCriteria, IsolationPoint
from loto.utils.text_utils import as_text

logger = logging.getLogger(__name__)

# Fields scanned by the free-text search, in display order.
SEARCH_FIELDS = (
    "kks",
    "description",
    "unit",
    "type",
    "isolation_method",
    "panel_kks",
    "load_kks",
    "normal_position",
    "isolation_position",
    "special_instructions",
)

# Filter dimension -> point attribute it constrains
DIMENSION_FIELDS: Dict[str, str] = {
    "units": "unit",
    "types": "type",
    "methods": "isolation_method",
    "positions": "normal_position",
}

SAVED_LIST_SEARCH_FIELDS = ("name", "description", "jsa_number", "work_order", "job_description")


def _matches_search(point: IsolationPoint, needle: str) -> bool:
    return any(needle in as_text(getattr(point, f, None)).lower() for f in SEARCH_FIELDS)


def _build_predicates(criteria: FilterCriteria) -> List[Callable[[IsolationPoint], bool]]:
    predicates: List[Callable[[IsolationPoint], bool]] = []
    if criteria.search:
        needle = criteria.search.lower()
        predicates.append(lambda p: _matches_search(p, needle))
    for dimension, attr in DIMENSION_FIELDS.items():
        allowed = getattr(criteria, dimension)
        if allowed:
            predicates.append(
                lambda p, attr=attr, allowed=allowed: getattr(p, attr, None) in allowed
            )
    return predicates


def filter_points(
    points: Iterable[IsolationPoint], criteria: Optional[FilterCriteria] = None
) -> List[IsolationPoint]:
    """
    Returns the points satisfying every supplied dimension (AND), where a
    dimension matches when the point's value is in the supplied set (OR).
    Empty criteria return the whole snapshot, in the same order.
    """
    points = list(points)
    if criteria is None or criteria.is_empty:
        return points

    predicates = _build_predicates(criteria)
    result = [p for p in points if all(pred(p) for pred in predicates)]
    logger.debug(f"[filter] {len(result)}/{len(points)} points match {criteria}")
    return result


def facet_counts(points: Iterable[IsolationPoint]) -> Dict[str, List[Dict[str, Any]]]:
    """
    Counts the distinct values of each filter dimension, e.g.:
      {"units": [{"value": "Unit 1", "count": 3}, ...], "types": [...], ...}
    Values are sorted alphabetically; empty values are skipped.
    """
    counters: Dict[str, Counter] = {d: Counter() for d in DIMENSION_FIELDS}
    for p in points:
        for dimension, attr in DIMENSION_FIELDS.items():
            value = getattr(p, attr, None)
            if value:
                counters[dimension][value] += 1
    return {
        dimension: [{"value": v, "count": c} for v, c in sorted(counter.items())]
        for dimension, counter in counters.items()
    }


def search_saved_lists(lists: Sequence[Any], term: Optional[str]) -> List[Any]:
    """Case-insensitive substring search over a saved list's name and metadata."""
    needle = (term or "").lower()
    if not needle:
        return list(lists)
    return [
        sl
        for sl in lists
        if any(
            needle in as_text(getattr(sl, f, None)).lower()
            for f in SAVED_LIST_SEARCH_FIELDS
        )
    ]
