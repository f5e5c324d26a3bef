# -*- coding: utf-8 -*-
"""
loto/services/procedure/list_engine.py

In-memory model of the procedure an operator is building: an ordered,
de-duplicated sequence of isolation points, each with an effective
isolation method (the catalog value unless overridden), plus metadata.

Public API of ProcedureListEngine:
- add(points)                        -> number of points actually appended.
- remove(point_id)                   -> no-op when absent.
- reorder(new_order)                 -> InvalidOrderError unless a permutation.
- move_adjacent(point_id, direction) -> swap with the neighbour; no-op at the edges.
- override_method(point_id, method)  -> NotFoundError when absent.
- clear()
- snapshot() / ordered_points()      -> immutable views for the exporters.
- to_saved_list(metadata)            -> SavedListDraft for the saved list store.
- from_saved_list(saved, catalog)    -> (engine, HydrationResult); unknown ids dropped.

Order is the physical sequence of isolation steps: only reorder() and
move_adjacent() change the relative order of existing entries.
One engine belongs to one client session; there is no locking.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple, Union

from loto.errors import DroppedReferenceWarning, InvalidOrderError, NotFoundError, ValidationError
from loto.models import (
    HydrationResult,
    IsolationPoint,
    ProcedureEntry,
    ProcedureMetadata,
    SavedListDraft,
)
from loto.models.procedure_models.procedure import StoredReference

logger = logging.getLogger(__name__)


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"


class PointLookup(Protocol):
    def get_by_id(self, point_id: int) -> Optional[IsolationPoint]: ...


def parse_stored_reference(ref: Any) -> Tuple[int, Optional[str]]:
    """
    Accepts the two persisted shapes of a saved list entry:
      - 12
      - {"id": 12, "method": "Open and LOTO"}
    Returns (point_id, method_or_None).
    """
    if isinstance(ref, bool):
        raise ValidationError(f"Invalid isolation point reference: {ref!r}")
    if isinstance(ref, int):
        return ref, None
    if isinstance(ref, Mapping):
        pid = ref.get("id")
        if isinstance(pid, bool) or not isinstance(pid, int):
            raise ValidationError(f"Invalid isolation point reference: {ref!r}")
        method = ref.get("method")
        if method is not None and not isinstance(method, str):
            raise ValidationError(f"Invalid isolation method for point {pid}: {method!r}")
        method = (method or "").strip() or None
        return pid, method
    raise ValidationError(f"Invalid isolation point reference: {ref!r}")


def _references_of(saved: Any) -> List[Any]:
    if isinstance(saved, Mapping):
        refs = saved.get("isolation_point_ids", saved.get("isolationPointIds"))
    else:
        refs = getattr(saved, "isolation_point_ids", None)
    if refs is None:
        return []
    if not isinstance(refs, (list, tuple)):
        raise ValidationError("isolation_point_ids must be an ordered list.")
    return list(refs)


def _saved_metadata(saved: Any) -> ProcedureMetadata:
    if isinstance(saved, Mapping):
        return ProcedureMetadata.from_mapping(saved)
    return ProcedureMetadata(
        name=getattr(saved, "name", None),
        description=getattr(saved, "description", None),
        jsa_number=getattr(saved, "jsa_number", None),
        work_order=getattr(saved, "work_order", None),
        job_description=getattr(saved, "job_description", None),
    )


class ProcedureListEngine:
    """Ordered, de-duplicated list of isolation points with per-entry method overrides."""

    def __init__(self, metadata: Optional[ProcedureMetadata] = None):
        self._points: List[IsolationPoint] = []
        # point_id -> overridden method; absent means "catalog value"
        self._overrides: Dict[int, str] = {}
        self.metadata: ProcedureMetadata = metadata or ProcedureMetadata()

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------
    def __len__(self) -> int:
        return len(self._points)

    def __contains__(self, point_id: object) -> bool:
        return any(p.id == point_id for p in self._points)

    @property
    def point_ids(self) -> List[int]:
        return [p.id for p in self._points]

    def _index_of(self, point_id: int) -> Optional[int]:
        for idx, p in enumerate(self._points):
            if p.id == point_id:
                return idx
        return None

    def effective_method(self, point_id: int) -> str:
        idx = self._index_of(point_id)
        if idx is None:
            raise NotFoundError(f"Isolation point {point_id} is not in the procedure.")
        return self._overrides.get(point_id, self._points[idx].isolation_method)

    def snapshot(self) -> Tuple[ProcedureEntry, ...]:
        """Immutable copy of the current entries, in procedure order."""
        return tuple(
            ProcedureEntry(
                point=p,
                order_index=i,
                effective_isolation_method=self._overrides.get(p.id, p.isolation_method),
            )
            for i, p in enumerate(self._points)
        )

    def ordered_points(self) -> List[IsolationPoint]:
        """Points in procedure order, each carrying its effective isolation method."""
        return [entry.effective_point() for entry in self.snapshot()]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def add(self, points: Iterable[IsolationPoint]) -> int:
        present = set(self.point_ids)
        added = 0
        skipped = 0
        for p in points:
            if p.id in present:
                skipped += 1
                continue
            self._points.append(p)
            present.add(p.id)
            added += 1
        logger.debug(f"[procedure] add: {added} added, {skipped} duplicate(s) skipped")
        return added

    def remove(self, point_id: int) -> None:
        idx = self._index_of(point_id)
        if idx is None:
            logger.debug(f"[procedure] remove: point {point_id} not in list (no-op)")
            return
        del self._points[idx]
        self._overrides.pop(point_id, None)

    def reorder(self, new_order: Sequence[int]) -> None:
        new_order = list(new_order)
        current = self.point_ids
        if len(new_order) != len(set(new_order)):
            raise InvalidOrderError("New order contains repeated point ids.")
        missing = [pid for pid in current if pid not in set(new_order)]
        unexpected = [pid for pid in new_order if pid not in set(current)]
        if missing or unexpected:
            raise InvalidOrderError(
                "New order must be a permutation of the current points "
                f"(missing={missing}, unexpected={unexpected}).",
                missing=missing,
                unexpected=unexpected,
            )
        by_id = {p.id: p for p in self._points}
        self._points = [by_id[pid] for pid in new_order]

    def move_adjacent(self, point_id: int, direction: Union[Direction, str]) -> None:
        try:
            direction = Direction(direction)
        except ValueError:
            raise ValidationError(f"Invalid direction {direction!r} (use 'up' or 'down').")

        idx = self._index_of(point_id)
        if idx is None:
            raise NotFoundError(f"Isolation point {point_id} is not in the procedure.")

        target = idx - 1 if direction is Direction.UP else idx + 1
        if target < 0 or target >= len(self._points):
            return
        self._points[idx], self._points[target] = self._points[target], self._points[idx]

    def override_method(self, point_id: int, new_method: str) -> None:
        idx = self._index_of(point_id)
        if idx is None:
            raise NotFoundError(f"Isolation point {point_id} is not in the procedure.")
        if not isinstance(new_method, str) or not new_method.strip():
            raise ValidationError("Isolation method must be a non-empty string.")

        new_method = new_method.strip()
        if new_method == self._points[idx].isolation_method:
            # Back to the catalog value
            self._overrides.pop(point_id, None)
        else:
            self._overrides[point_id] = new_method
        logger.debug(f"[procedure] point {point_id} method -> {new_method!r}")

    def clear(self) -> None:
        self._points = []
        self._overrides = {}

    def update_metadata(self, metadata: ProcedureMetadata) -> ProcedureMetadata:
        self.metadata = self.metadata.merged(metadata)
        return self.metadata

    # ------------------------------------------------------------------
    # Persistence round-trip
    # ------------------------------------------------------------------
    def stored_references(self) -> List[StoredReference]:
        """
        Ordered references for storage: plain ids when nothing is overridden,
        otherwise {"id", "method"} objects for every entry, with
        method None where the catalog value applies.
        """
        entries = self.snapshot()
        if not any(e.is_overridden for e in entries):
            return [e.point_id for e in entries]
        return [
            {"id": e.point_id, "method": e.effective_isolation_method if e.is_overridden else None}
            for e in entries
        ]

    def to_saved_list(self, metadata: Optional[ProcedureMetadata] = None) -> SavedListDraft:
        meta = self.metadata.merged(metadata) if metadata else self.metadata
        if not meta.name:
            raise ValidationError("A name is required to save the procedure.")
        if not self._points:
            raise ValidationError("Cannot save an empty procedure.")
        return SavedListDraft(
            name=meta.name,
            isolation_point_ids=self.stored_references(),
            description=meta.description,
            jsa_number=meta.jsa_number,
            work_order=meta.work_order,
            job_description=meta.job_description,
        )

    def load(self, references: Iterable[Any], catalog: PointLookup) -> HydrationResult:
        """
        Replaces the entries with the referenced catalog points, in order.
        Ids missing from the catalog are dropped and reported, never raised.
        Repeated ids keep their first position.
        """
        parsed = [parse_stored_reference(ref) for ref in references]

        self.clear()
        dropped: List[int] = []
        for pid, method in parsed:
            if pid in self:
                continue
            point = catalog.get_by_id(pid)
            if point is None:
                dropped.append(pid)
                continue
            self._points.append(point)
            if method and method != point.isolation_method:
                self._overrides[pid] = method

        warning = DroppedReferenceWarning(dropped) if dropped else None
        if warning:
            logger.warning(f"[procedure] {warning}")
        return HydrationResult(loaded=len(self._points), warning=warning)

    @classmethod
    def from_saved_list(
        cls, saved: Any, catalog: PointLookup
    ) -> Tuple["ProcedureListEngine", HydrationResult]:
        """
        Builds an engine from a saved list (record, dict or SavedListDraft).
        """
        engine = cls(metadata=_saved_metadata(saved))
        result = engine.load(_references_of(saved), catalog)
        return engine, result

    def to_state(self) -> Dict[str, Any]:
        """JSON-safe state, used to keep the engine in the client session."""
        return {"entries": self.stored_references(), "metadata": self.metadata.to_json()}

    @classmethod
    def from_state(
        cls, state: Optional[Mapping[str, Any]], catalog: PointLookup
    ) -> Tuple["ProcedureListEngine", HydrationResult]:
        state = state or {}
        engine = cls(metadata=ProcedureMetadata.from_mapping(state.get("metadata")))
        result = engine.load(state.get("entries") or [], catalog)
        return engine, result
