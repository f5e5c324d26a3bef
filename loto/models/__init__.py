"""Top-level package for domain models.

This module aggregates the dataclass models defined within the
``loto.models`` package.  They are plain value objects: persistence
lives in :mod:`loto.models_sqla`, behaviour in :mod:`loto.services`.

You can refer to individual models via attributes on this module,
e.g. ``loto.models.IsolationPoint`` or ``loto.models.ProcedureMetadata``.
"""

# Catalog models
from .catalog_models.isolation_point import (  # noqa: F401  pylint: disable=unused-import
    ISOLATION_METHODS,
    POINT_TYPES,
    POSITIONS,
    IsolationPoint,
    IsolationPointDraft,
)
from .catalog_models.filters import FilterCriteria  # noqa: F401  pylint: disable=unused-import

# Procedure models
from .procedure_models.procedure import (  # noqa: F401  pylint: disable=unused-import
    HydrationResult,
    ProcedureEntry,
    ProcedureMetadata,
    SavedListDraft,
)

__all__ = [
    # Catalog
    "ISOLATION_METHODS",
    "POINT_TYPES",
    "POSITIONS",
    "IsolationPoint",
    "IsolationPointDraft",
    "FilterCriteria",
    # Procedure
    "HydrationResult",
    "ProcedureEntry",
    "ProcedureMetadata",
    "SavedListDraft",
]
