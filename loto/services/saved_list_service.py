# loto/services/saved_list_service.py
"""
Persistence of named procedures (saved lists).

Entries are stored in procedure order, either as bare point ids or as
{"id", "method"} objects when an isolation method was overridden.
"""
from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Union

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from loto import db
from loto.errors import ValidationError
from loto.models import ProcedureMetadata, SavedListDraft
from loto.models.procedure_models.procedure import METADATA_KEYS
from loto.models_sqla import SavedListRecord
from loto.services.filter_service import search_saved_lists
from loto.services.procedure.list_engine import parse_stored_reference

logger = logging.getLogger(__name__)

_IDS_KEYS = ("isolation_point_ids", "isolationPointIds")


def _validated_references(refs: Any) -> List[Any]:
    if not isinstance(refs, (list, tuple)):
        raise ValidationError("isolationPointIds must be an ordered list.")
    out = []
    for ref in refs:
        pid, method = parse_stored_reference(ref)
        out.append({"id": pid, "method": method} if isinstance(ref, Mapping) else pid)
    return out


def _draft_from_mapping(data: Any) -> SavedListDraft:
    if not isinstance(data, Mapping):
        raise ValidationError("Saved list payload must be an object.")
    meta = ProcedureMetadata.from_mapping(data)
    refs = next((data[k] for k in _IDS_KEYS if k in data), [])
    return SavedListDraft(
        name=meta.name or "",
        isolation_point_ids=_validated_references(refs),
        description=meta.description,
        jsa_number=meta.jsa_number,
        work_order=meta.work_order,
        job_description=meta.job_description,
    )


class SavedListService:
    def __init__(self, session=None):
        self.session = session or db.session

    def get_all(self, term: Optional[str] = None) -> List[SavedListRecord]:
        """Saved lists, most recently updated first, optionally narrowed by ``term``."""
        rows = self.session.scalars(
            select(SavedListRecord).order_by(
                SavedListRecord.updated_at.desc(), SavedListRecord.id.desc()
            )
        ).all()
        return search_saved_lists(rows, term)

    def get_by_id(self, list_id: int) -> Optional[SavedListRecord]:
        return self.session.get(SavedListRecord, list_id)

    def create(self, draft: Union[SavedListDraft, Mapping[str, Any]]) -> SavedListRecord:
        if not isinstance(draft, SavedListDraft):
            draft = _draft_from_mapping(draft)
        if not (draft.name or "").strip():
            raise ValidationError("A saved list needs a name.")

        row = SavedListRecord(
            name=draft.name.strip(),
            description=draft.description,
            isolation_point_ids=_validated_references(draft.isolation_point_ids),
            jsa_number=draft.jsa_number,
            work_order=draft.work_order,
            job_description=draft.job_description,
        )
        try:
            self.session.add(row)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"[procedure] Error saving list {draft.name!r}: {e}")
            raise
        logger.info(
            f"[procedure] Saved list created: {row.name!r} (id={row.id}, "
            f"{len(row.isolation_point_ids)} point(s))"
        )
        return row

    def update(self, list_id: int, partial: Mapping[str, Any]) -> Optional[SavedListRecord]:
        """Applies the supplied fields only. Returns None for an unknown id."""
        row = self.get_by_id(list_id)
        if row is None:
            return None
        if not isinstance(partial, Mapping):
            raise ValidationError("Saved list payload must be an object.")

        meta = ProcedureMetadata.from_mapping(partial)
        if ("name" in partial or "listName" in partial) and not meta.name:
            raise ValidationError("A saved list needs a name.")
        refs = next((partial[k] for k in _IDS_KEYS if k in partial), None)
        if refs is not None:
            refs = _validated_references(refs)

        try:
            for attr, keys in METADATA_KEYS.items():
                if any(k in partial for k in keys + (attr,)):
                    setattr(row, attr, getattr(meta, attr))
            if refs is not None:
                row.isolation_point_ids = refs
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"[procedure] Error updating saved list {list_id}: {e}")
            raise
        logger.info(f"[procedure] Saved list updated: {row.name!r} (id={row.id})")
        return row

    def delete(self, list_id: int) -> bool:
        row = self.get_by_id(list_id)
        if row is None:
            return False
        try:
            self.session.delete(row)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"[procedure] Error deleting saved list {list_id}: {e}")
            raise
        logger.info(f"[procedure] Saved list deleted: id={list_id}")
        return True
