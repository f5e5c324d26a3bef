"""Isolation point model definitions.

The :class:`IsolationPoint` dataclass is the read-only view of a catalog
row used by the filter evaluator, the procedure engine and the
exporters.  It maps onto the ``isolation_points`` table through
:class:`loto.models_sqla.IsolationPointRecord`; this module never talks
to the database itself.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Tuple

# Vocabularies offered by the UI. The engine accepts any non-empty method.
POINT_TYPES: Tuple[str, ...] = ("Electrical", "Mechanical", "Hydraulic", "Pneumatic")

ISOLATION_METHODS: Tuple[str, ...] = (
    "Close (Normal Operation)",
    "Close and LOTO",
    "Close and Tag Only",
    "Remove Earth (Normal Operation)",
    "Earth",
    "Insert Blind",
    "Off and LOTO",
    "Off and Tag Only",
    "Open (Normal Operation)",
    "Open and LOTO",
    "Open and Tag Only",
    "Remove Blind (Normal Operation)",
    "Rack-In (Normal Operation)",
    "Rack-Out and LOTO",
)

POSITIONS: Tuple[str, ...] = ("Open", "Closed", "Energized", "De-energized", "Normal", "Isolated")

# Fields a catalog row cannot be created without.
REQUIRED_FIELDS: Tuple[str, ...] = (
    "kks",
    "unit",
    "description",
    "type",
    "isolation_method",
    "normal_position",
)

OPTIONAL_FIELDS: Tuple[str, ...] = (
    "panel_kks",
    "load_kks",
    "isolation_position",
    "special_instructions",
)

# snake_case attribute -> camelCase key used by the JSON API
JSON_KEYS: Dict[str, str] = {
    "id": "id",
    "kks": "kks",
    "unit": "unit",
    "description": "description",
    "type": "type",
    "panel_kks": "panelKks",
    "load_kks": "loadKks",
    "isolation_method": "isolationMethod",
    "normal_position": "normalPosition",
    "isolation_position": "isolationPosition",
    "special_instructions": "specialInstructions",
}


@dataclass(frozen=True)
class IsolationPoint:
    """A single device that must be put in a safe state."""

    id: int
    kks: str
    unit: str
    description: str
    type: str
    isolation_method: str
    normal_position: str
    panel_kks: Optional[str] = field(default=None)
    load_kks: Optional[str] = field(default=None)
    isolation_position: Optional[str] = field(default=None)
    special_instructions: Optional[str] = field(default=None)

    def to_json(self) -> Dict[str, Any]:
        data = asdict(self)
        return {JSON_KEYS[k]: v for k, v in data.items()}

    def __repr__(self) -> str:
        return f"<IsolationPoint {self.kks or self.id}>"


@dataclass
class IsolationPointDraft:
    """A validated catalog row that has not been persisted yet."""

    kks: str
    unit: str
    description: str
    type: str
    isolation_method: str
    normal_position: str
    panel_kks: Optional[str] = field(default=None)
    load_kks: Optional[str] = field(default=None)
    isolation_position: Optional[str] = field(default=None)
    special_instructions: Optional[str] = field(default=None)

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)
