"""SQLAlchemy models for the isolation point catalog and saved lists.

These are the persistence-side counterparts of the dataclasses in
``loto.models``.  Services read rows through these classes and hand
out :class:`~loto.models.IsolationPoint` snapshots, so the procedure
engine and the exporters never hold a live ORM object.

Usage:
    from loto import db
    from loto.models_sqla import IsolationPointRecord, SavedListRecord

The ``db`` object must be initialised by calling ``db.init_app(app)``
in the application factory (this already happens in ``loto/__init__.py``).
"""

from datetime import datetime

from loto import db  # reuse the SQLAlchemy instance from the app
from loto.models.catalog_models.isolation_point import IsolationPoint

# ============================
# Catalog models
# ============================


class IsolationPointRecord(db.Model):
    __tablename__ = "isolation_points"

    id = db.Column(db.Integer, primary_key=True)
    kks = db.Column(db.String(64), nullable=False, unique=True)
    unit = db.Column(db.String(64), nullable=False)
    description = db.Column(db.Text, nullable=False)
    type = db.Column(db.String(32), nullable=False)
    panel_kks = db.Column(db.String(64), nullable=True)
    load_kks = db.Column(db.String(64), nullable=True)
    isolation_method = db.Column(db.String(100), nullable=False)
    normal_position = db.Column(db.String(50), nullable=False)
    isolation_position = db.Column(db.String(50), nullable=True)
    special_instructions = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def as_dict(self) -> dict:
        return {c.name: getattr(self, c.name) for c in self.__table__.columns}

    def to_point(self) -> IsolationPoint:
        return IsolationPoint(
            id=self.id,
            kks=self.kks,
            unit=self.unit,
            description=self.description,
            type=self.type,
            isolation_method=self.isolation_method,
            normal_position=self.normal_position,
            panel_kks=self.panel_kks,
            load_kks=self.load_kks,
            isolation_position=self.isolation_position,
            special_instructions=self.special_instructions,
        )

    def __repr__(self) -> str:
        return f"<IsolationPointRecord {self.kks or self.id}>"


# ============================
# Procedure models
# ============================


class SavedListRecord(db.Model):
    __tablename__ = "saved_lists"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    # Ordered: list of ints, or of {"id": int, "method": str} when overrides exist
    isolation_point_ids = db.Column(db.JSON, nullable=False, default=list)
    jsa_number = db.Column(db.String(100), nullable=True)
    work_order = db.Column(db.String(100), nullable=True)
    job_description = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def as_dict(self) -> dict:
        return {c.name: getattr(self, c.name) for c in self.__table__.columns}

    def to_json(self) -> dict:
        def _iso(dt):
            return dt.isoformat() if dt else None

        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "isolationPointIds": list(self.isolation_point_ids or []),
            "jsaNumber": self.jsa_number,
            "workOrder": self.work_order,
            "jobDescription": self.job_description,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<SavedListRecord {self.name!r}>"
