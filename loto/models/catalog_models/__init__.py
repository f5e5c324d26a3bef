"""Catalog models package.

Dataclasses describing isolation points and the criteria used to
filter them.
"""

from .isolation_point import (  # noqa: F401  pylint: disable=unused-import
    ISOLATION_METHODS,
    POINT_TYPES,
    POSITIONS,
    IsolationPoint,
    IsolationPointDraft,
)
from .filters import FilterCriteria  # noqa: F401  pylint: disable=unused-import

__all__ = [
    "ISOLATION_METHODS",
    "POINT_TYPES",
    "POSITIONS",
    "IsolationPoint",
    "IsolationPointDraft",
    "FilterCriteria",
]
