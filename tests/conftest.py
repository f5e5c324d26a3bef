"""
Shared pytest fixtures.

- app / client: application built by create_app() on in-memory SQLite.
- make_point: factory for IsolationPoint value objects (no database).
- lookup: dict-backed catalog for the procedure engine.
- catalog: the sample catalog persisted through CatalogService.
"""
import pytest

from loto import create_app, db
from loto.models import IsolationPoint, IsolationPointDraft
from loto.services.catalog_service import CatalogService


@pytest.fixture()
def app():
    app = create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test-secret",
            "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
            "LOTO_PRODUCT_NAME": "Test Isolation System",
            "LOTO_MAX_IMPORT_ROWS": 50,
        }
    )
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def make_point():
    def _make(point_id, **overrides):
        values = {
            "id": point_id,
            "kks": f"1AAA{point_id:02d}AA{point_id:03d}",
            "unit": "Unit 1",
            "description": f"Isolation point {point_id}",
            "type": "Electrical",
            "isolation_method": "Open and LOTO",
            "normal_position": "Closed",
        }
        values.update(overrides)
        return IsolationPoint(**values)

    return _make


class DictCatalog:
    def __init__(self, points):
        self.points = {p.id: p for p in points}

    def get_by_id(self, point_id):
        return self.points.get(point_id)


@pytest.fixture()
def lookup():
    return DictCatalog


SAMPLE_DRAFTS = [
    IsolationPointDraft(
        kks="1AAA01AA001",
        unit="Unit 1",
        description="Primary Coolant Pump Motor Breaker",
        type="Electrical",
        isolation_method="Rack-Out and LOTO",
        normal_position="Closed",
        isolation_position="Open",
        panel_kks="1AAA01AB001",
    ),
    IsolationPointDraft(
        kks="1BBB02AA015",
        unit="Unit 1",
        description="Main Steam Isolation Valve",
        type="Mechanical",
        isolation_method="Close and LOTO",
        normal_position="Open",
        isolation_position="Closed",
    ),
    IsolationPointDraft(
        kks="2CCC03AA027",
        unit="Unit 2",
        description="Hydraulic System Isolation",
        type="Hydraulic",
        isolation_method="Open and LOTO",
        normal_position="Closed",
        special_instructions="Depressurize hydraulic system before valve operation.",
    ),
    IsolationPointDraft(
        kks="1EEE05AA089",
        unit="Unit 1",
        description="Emergency Shutdown Breaker",
        type="Electrical",
        isolation_method="Off and LOTO",
        normal_position="Energized",
        isolation_position="De-energized",
    ),
]


@pytest.fixture()
def catalog(app):
    """Persisted sample points, in insertion (= id) order."""
    return CatalogService().bulk_create(SAMPLE_DRAFTS).created
