"""Loads the sample catalog and saved procedures into the configured database.

    DATABASE_URL=sqlite:///loto.db python scripts/seed_catalog.py

Points whose KKS already exists are skipped; saved lists are matched by name.
"""
from loto import create_app, db
from loto.models import IsolationPointDraft, SavedListDraft
from loto.services.catalog_service import CatalogService
from loto.services.saved_list_service import SavedListService

SAMPLE_POINTS = [
    IsolationPointDraft(
        kks="1AAA01AA001",
        unit="Unit 1",
        description="Primary Coolant Pump Motor Breaker",
        type="Electrical",
        panel_kks="1AAA01AB001",
        load_kks="1AAA01AC001",
        isolation_method="Rack-Out and LOTO",
        normal_position="Closed",
        isolation_position="Open",
        special_instructions="Verify zero energy state before proceeding. "
        "Requires two-person verification for safety-critical systems.",
    ),
    IsolationPointDraft(
        kks="1BBB02AA015",
        unit="Unit 1",
        description="Main Steam Isolation Valve",
        type="Mechanical",
        panel_kks="1BBB02AB015",
        load_kks="1BBB02AC015",
        isolation_method="Close and LOTO",
        normal_position="Open",
        isolation_position="Closed",
        special_instructions="Ensure steam pressure is relieved before isolation. "
        "Check valve position indicator.",
    ),
    IsolationPointDraft(
        kks="2CCC03AA027",
        unit="Unit 2",
        description="Hydraulic System Isolation",
        type="Hydraulic",
        panel_kks="2CCC03AB027",
        load_kks="2CCC03AC027",
        isolation_method="Open and LOTO",
        normal_position="Closed",
        isolation_position="Open",
        special_instructions="Depressurize hydraulic system before valve operation. Use proper PPE.",
    ),
    IsolationPointDraft(
        kks="3DDD04AA042",
        unit="Unit 3",
        description="Compressed Air System Isolator",
        type="Pneumatic",
        panel_kks="3DDD04AB042",
        load_kks="3DDD04AC042",
        isolation_method="Close and LOTO",
        normal_position="Open",
        isolation_position="Closed",
        special_instructions="Verify air pressure is released downstream. "
        "Lock valve in closed position.",
    ),
    IsolationPointDraft(
        kks="1EEE05AA089",
        unit="Unit 1",
        description="Emergency Shutdown Breaker",
        type="Electrical",
        panel_kks="1EEE05AB089",
        load_kks="1EEE05AC089",
        isolation_method="Off and LOTO",
        normal_position="Energized",
        isolation_position="De-energized",
        special_instructions="Critical safety system - notify control room before isolation. "
        "Test emergency backup systems.",
    ),
    IsolationPointDraft(
        kks="2FFF06AA123",
        unit="Unit 2",
        description="Feedwater Pump Discharge Valve",
        type="Mechanical",
        panel_kks="2FFF06AB123",
        load_kks="2FFF06AC123",
        isolation_method="Close and LOTO",
        normal_position="Open",
        isolation_position="Closed",
        special_instructions="Coordinate with operations before isolation. "
        "Monitor water level indicators.",
    ),
    IsolationPointDraft(
        kks="3GGG07AA156",
        unit="Unit 3",
        description="Cooling Water Intake Isolation",
        type="Hydraulic",
        panel_kks="3GGG07AB156",
        load_kks="3GGG07AC156",
        isolation_method="Close and Tag Only",
        normal_position="Open",
        isolation_position="Closed",
        special_instructions="Ensure alternative cooling path is available before isolation.",
    ),
    IsolationPointDraft(
        kks="1HHH08AA201",
        unit="Unit 1",
        description="Instrument Air Supply Isolation",
        type="Pneumatic",
        panel_kks="1HHH08AB201",
        load_kks="1HHH08AC201",
        isolation_method="Close and LOTO",
        normal_position="Open",
        isolation_position="Closed",
        special_instructions="Critical for control systems - coordinate with control room operations.",
    ),
]

# (name, description, KKS codes in procedure order)
SAMPLE_LISTS = [
    (
        "Unit 1 Maintenance",
        "Routine maintenance isolation points for Unit 1",
        ["1AAA01AA001", "1BBB02AA015", "1EEE05AA089"],
    ),
    (
        "Emergency Shutdown Procedure",
        "Emergency isolation procedure for all units",
        ["1EEE05AA089", "1AAA01AA001", "1BBB02AA015", "1HHH08AA201"],
    ),
    (
        "Cooling System Isolation",
        "Isolation points for cooling system maintenance",
        ["2CCC03AA027", "2FFF06AA123", "3GGG07AA156"],
    ),
]


def main():
    app = create_app()
    with app.app_context():
        db.create_all()

        catalog = CatalogService()
        result = catalog.bulk_create(SAMPLE_POINTS)
        print(f"Points created: {len(result.created)} (already present: {len(result.conflicts)})")

        id_by_kks = {p.kks: p.id for p in catalog.get_all()}
        lists = SavedListService()
        existing = {row.name for row in lists.get_all()}
        for name, description, kks_codes in SAMPLE_LISTS:
            if name in existing:
                print(f"Already exists: {name}")
                continue
            lists.create(
                SavedListDraft(
                    name=name,
                    description=description,
                    isolation_point_ids=[id_by_kks[k] for k in kks_codes],
                )
            )
            print(f"Saved list created: {name}")

    print("Seed completed.")


if __name__ == "__main__":
    main()
