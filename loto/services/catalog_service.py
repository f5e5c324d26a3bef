# -*- coding: utf-8 -*-
"""
loto/services/catalog_service.py

Read/write access to the isolation point catalog.
Public API of CatalogService:
- get_all()                 -> every point, ordered by id.
- get_by_id(point_id)       -> IsolationPoint or None.
- search(criteria)          -> filter_points() over the current catalog.
- facets()                  -> facet_counts() over the current catalog.
- create(data)              -> new IsolationPoint; ValidationError on bad input or duplicate KKS.
- update(point_id, data)    -> partial update; None when the id is unknown.
- delete(point_id)          -> True when a row was removed.
- bulk_create(drafts)       -> BulkCreateResult (created points + KKS already in the catalog).

Every method returns IsolationPoint snapshots, never live ORM rows.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from loto import db
from loto.errors import ValidationError
from loto.models import FilterCriteria, IsolationPoint, IsolationPointDraft
from loto.models.catalog_models.isolation_point import (
    JSON_KEYS,
    OPTIONAL_FIELDS,
    REQUIRED_FIELDS,
)
from loto.models_sqla import IsolationPointRecord
from loto.services.filter_service import facet_counts, filter_points

logger = logging.getLogger(__name__)

# camelCase payload key -> attribute
_ATTR_BY_KEY: Dict[str, str] = {v: k for k, v in JSON_KEYS.items() if k != "id"}
_EDITABLE = REQUIRED_FIELDS + OPTIONAL_FIELDS


@dataclass
class BulkCreateResult:
    created: List[IsolationPoint] = field(default_factory=list)
    conflicts: List[str] = field(default_factory=list)  # KKS already present


def normalize_point_payload(data: Any, *, partial: bool = False) -> Dict[str, Optional[str]]:
    """
    Maps a JSON payload (camelCase or snake_case keys) onto record attributes.
    Strings are stripped; blank optional fields become None. Unknown keys are
    ignored. With ``partial`` only the supplied fields are returned, but a
    required field still cannot be blanked.
    """
    if isinstance(data, IsolationPointDraft):
        data = data.as_dict()
    if not isinstance(data, Mapping):
        raise ValidationError("Isolation point payload must be an object.")

    values: Dict[str, Optional[str]] = {}
    for key, raw in data.items():
        attr = key if key in _EDITABLE else _ATTR_BY_KEY.get(key)
        if attr is None:
            continue
        if raw is not None and not isinstance(raw, str):
            raise ValidationError(f"'{attr}' must be a string.")
        values[attr] = (raw or "").strip() or None

    missing = [
        f
        for f in REQUIRED_FIELDS
        if (f in values or not partial) and not values.get(f)
    ]
    if missing:
        raise ValidationError(f"Missing required field(s): {', '.join(missing)}")
    return values


class CatalogService:
    """Isolation point catalog backed by the ``isolation_points`` table."""

    def __init__(self, session=None):
        self.session = session or db.session

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get_all(self) -> List[IsolationPoint]:
        rows = self.session.scalars(
            select(IsolationPointRecord).order_by(IsolationPointRecord.id.asc())
        ).all()
        return [r.to_point() for r in rows]

    def get_by_id(self, point_id: int) -> Optional[IsolationPoint]:
        row = self.session.get(IsolationPointRecord, point_id)
        return row.to_point() if row else None

    def get_many(self, point_ids: Iterable[int]) -> Dict[int, IsolationPoint]:
        ids = list(point_ids)
        if not ids:
            return {}
        rows = self.session.scalars(
            select(IsolationPointRecord).where(IsolationPointRecord.id.in_(ids))
        ).all()
        return {r.id: r.to_point() for r in rows}

    def search(self, criteria: Optional[FilterCriteria] = None) -> List[IsolationPoint]:
        return filter_points(self.get_all(), criteria)

    def facets(self) -> Dict[str, List[Dict[str, Any]]]:
        return facet_counts(self.get_all())

    def _kks_taken(self, kks: str, exclude_id: Optional[int] = None) -> bool:
        stmt = select(IsolationPointRecord.id).where(
            func.lower(IsolationPointRecord.kks) == kks.lower()
        )
        if exclude_id is not None:
            stmt = stmt.where(IsolationPointRecord.id != exclude_id)
        return self.session.scalar(stmt) is not None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def create(self, data: Union[Mapping[str, Any], IsolationPointDraft]) -> IsolationPoint:
        values = normalize_point_payload(data)
        if self._kks_taken(values["kks"]):
            raise ValidationError(f"KKS '{values['kks']}' already exists in the catalog.")

        row = IsolationPointRecord(**values)
        try:
            self.session.add(row)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"[catalog] Error creating point {values['kks']}: {e}")
            raise
        logger.info(f"[catalog] Point created: {row.kks} (id={row.id})")
        return row.to_point()

    def update(self, point_id: int, data: Mapping[str, Any]) -> Optional[IsolationPoint]:
        row = self.session.get(IsolationPointRecord, point_id)
        if row is None:
            return None

        values = normalize_point_payload(data, partial=True)
        if "kks" in values and self._kks_taken(values["kks"], exclude_id=point_id):
            raise ValidationError(f"KKS '{values['kks']}' already exists in the catalog.")

        try:
            for attr, value in values.items():
                setattr(row, attr, value)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"[catalog] Error updating point {point_id}: {e}")
            raise
        logger.info(f"[catalog] Point updated: {row.kks} (id={row.id}) fields={sorted(values)}")
        return row.to_point()

    def delete(self, point_id: int) -> bool:
        row = self.session.get(IsolationPointRecord, point_id)
        if row is None:
            return False
        try:
            self.session.delete(row)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"[catalog] Error deleting point {point_id}: {e}")
            raise
        logger.info(f"[catalog] Point deleted: id={point_id}")
        return True

    def bulk_create(self, drafts: Iterable[IsolationPointDraft]) -> BulkCreateResult:
        """
        Inserts every draft whose KKS is not in the catalog yet, in one
        transaction. Drafts with an existing KKS are reported, not raised.
        """
        result = BulkCreateResult()
        rows: List[IsolationPointRecord] = []
        seen = set()
        for draft in drafts:
            values = normalize_point_payload(draft)
            key = values["kks"].lower()
            if key in seen or self._kks_taken(values["kks"]):
                result.conflicts.append(values["kks"])
                continue
            seen.add(key)
            rows.append(IsolationPointRecord(**values))

        if rows:
            try:
                self.session.add_all(rows)
                self.session.commit()
            except SQLAlchemyError as e:
                self.session.rollback()
                logger.error(f"[catalog] Bulk insert of {len(rows)} point(s) failed: {e}")
                raise

        result.created = [r.to_point() for r in rows]
        logger.info(
            f"[catalog] Bulk create: {len(result.created)} created, "
            f"{len(result.conflicts)} conflict(s)"
        )
        if result.conflicts:
            logger.warning(f"[catalog] KKS already in catalog: {result.conflicts}")
        return result
