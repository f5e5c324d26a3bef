"""Procedure models package.

Dataclasses exchanged by the procedure list engine, the exporters and
the saved list store.
"""

from .procedure import (  # noqa: F401  pylint: disable=unused-import
    HydrationResult,
    ProcedureEntry,
    ProcedureMetadata,
    SavedListDraft,
    StoredReference,
)

__all__ = [
    "HydrationResult",
    "ProcedureEntry",
    "ProcedureMetadata",
    "SavedListDraft",
    "StoredReference",
]
