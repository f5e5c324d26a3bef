"""Procedure list models.

These dataclasses describe what the procedure engine holds and hands
out: the entries (point + effective isolation method), the free-text
metadata attached to a procedure, and the shapes exchanged with the
saved list store.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Union

from loto.errors import DroppedReferenceWarning, ValidationError

from ..catalog_models.isolation_point import IsolationPoint

# A stored reference is either a bare point id or {"id": ..., "method": ...}
StoredReference = Union[int, Dict[str, Any]]

# attribute -> accepted payload keys (first one is the canonical JSON key)
METADATA_KEYS: Dict[str, tuple] = {
    "name": ("name", "listName"),
    "description": ("description",),
    "jsa_number": ("jsaNumber", "jsa_number"),
    "work_order": ("workOrder", "work_order"),
    "job_description": ("jobDescription", "job_description"),
}


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class ProcedureEntry:
    """One step of a procedure. ``order_index`` is 0-based."""

    point: IsolationPoint
    order_index: int
    effective_isolation_method: str

    @property
    def point_id(self) -> int:
        return self.point.id

    @property
    def is_overridden(self) -> bool:
        return self.effective_isolation_method != self.point.isolation_method

    def effective_point(self) -> IsolationPoint:
        """The catalog point carrying the effective method, as the exporters expect."""
        if not self.is_overridden:
            return self.point
        return replace(self.point, isolation_method=self.effective_isolation_method)

    def to_json(self) -> Dict[str, Any]:
        return {
            "step": self.order_index + 1,
            "pointId": self.point.id,
            "effectiveIsolationMethod": self.effective_isolation_method,
            "overridden": self.is_overridden,
            "point": self.point.to_json(),
        }


@dataclass(frozen=True)
class ProcedureMetadata:
    """Free-text metadata of a procedure. Blank strings are stored as ``None``."""

    name: Optional[str] = field(default=None)
    jsa_number: Optional[str] = field(default=None)
    work_order: Optional[str] = field(default=None)
    job_description: Optional[str] = field(default=None)
    description: Optional[str] = field(default=None)

    def __post_init__(self) -> None:
        for attr in METADATA_KEYS:
            value = getattr(self, attr)
            if value is not None and not isinstance(value, str):
                raise ValidationError(f"'{attr}' must be a string.")
            object.__setattr__(self, attr, _clean(value))

    @property
    def has_export_fields(self) -> bool:
        return any((self.name, self.jsa_number, self.work_order, self.job_description))

    def merged(self, other: "ProcedureMetadata") -> "ProcedureMetadata":
        """Fields set in ``other`` win; unset ones keep the current value."""
        changes = {k: v for k, v in asdict(other).items() if v is not None}
        return replace(self, **changes)

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "ProcedureMetadata":
        if not data:
            return cls()
        if not isinstance(data, Mapping):
            raise ValidationError("Metadata must be an object.")
        kwargs = {}
        for attr, keys in METADATA_KEYS.items():
            for key in keys:
                if key in data:
                    kwargs[attr] = data[key]
                    break
        return cls(**kwargs)

    def to_json(self) -> Dict[str, Any]:
        return {keys[0]: getattr(self, attr) for attr, keys in METADATA_KEYS.items()}


@dataclass
class SavedListDraft:
    """What :meth:`ProcedureListEngine.to_saved_list` hands to the saved list store."""

    name: str
    isolation_point_ids: List[StoredReference]
    description: Optional[str] = field(default=None)
    jsa_number: Optional[str] = field(default=None)
    work_order: Optional[str] = field(default=None)
    job_description: Optional[str] = field(default=None)

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class HydrationResult:
    """Outcome of loading a saved list into an engine."""

    loaded: int
    warning: Optional[DroppedReferenceWarning] = field(default=None)

    @property
    def dropped_count(self) -> int:
        return self.warning.count if self.warning else 0

    @property
    def dropped_ids(self) -> List[int]:
        return self.warning.dropped_ids if self.warning else []
