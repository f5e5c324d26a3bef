import csv
import io
from datetime import date

import pytest

from loto.models import ProcedureMetadata
from loto.services.export.csv_export import render_csv
from loto.services.export.filenames import export_filename
from loto.services.procedure.list_engine import ProcedureListEngine

TODAY = date(2026, 10, 19)
HEADER = "Step,KKS Code,Unit,Description,Type,Isolation Method"


@pytest.fixture()
def three_points(make_point):
    return [
        make_point(1),
        make_point(2, description='Valve, "Main" isolation', type="Mechanical"),
        make_point(3, unit="Unit 2"),
    ]


def test_quotes_and_commas_are_escaped(three_points):
    out = render_csv(three_points, today=TODAY)
    lines = out.split("\n")
    assert lines[0] == HEADER
    assert '"Valve, ""Main"" isolation"' in lines[2]
    assert lines[2] == (
        '"2","1AAA02AA002","Unit 1","Valve, ""Main"" isolation","Mechanical","Open and LOTO"'
    )
    # parses back to the original value
    rows = list(csv.reader(io.StringIO(out)))
    assert rows[2][3] == 'Valve, "Main" isolation'


def test_steps_follow_list_order(three_points):
    out = render_csv(list(reversed(three_points)), today=TODAY)
    rows = list(csv.reader(io.StringIO(out)))[1:]
    assert [r[0] for r in rows] == ["1", "2", "3"]
    assert [r[1] for r in rows] == ["1AAA03AA003", "1AAA02AA002", "1AAA01AA001"]


def test_metadata_block(three_points):
    meta = ProcedureMetadata(
        name="Unit 1 Maintenance", jsa_number="JSA-001", job_description="Replace seals, pump A"
    )
    lines = render_csv(three_points, meta, today=TODAY).split("\n")
    assert lines[:8] == [
        "LOCKOUT/TAGOUT PROCEDURE",
        "========================",
        "Procedure Name:,Unit 1 Maintenance",
        "JSA Number:,JSA-001",
        'Job Description:,"Replace seals, pump A"',
        "Export Date:,2026-10-19",
        "Total Points:,3",
        "",
    ]
    assert lines[8] == HEADER


def test_no_metadata_block_without_export_fields(three_points):
    out = render_csv(three_points, ProcedureMetadata(description="only a description"), today=TODAY)
    assert out.startswith(HEADER + "\n")


def test_empty_list_is_allowed_for_csv():
    # CSV tolerates an empty procedure; the PDF renderer refuses it
    out = render_csv([], ProcedureMetadata(name="Nothing yet"), today=TODAY)
    assert "Total Points:,0\n" in out
    assert out.endswith(HEADER + "\n")
    assert render_csv([], today=TODAY) == HEADER + "\n"


def test_override_is_rendered(three_points):
    eng = ProcedureListEngine()
    eng.add(three_points)
    eng.override_method(3, "Rack-Out and LOTO")
    rows = list(csv.reader(io.StringIO(render_csv(eng.ordered_points(), today=TODAY))))
    assert rows[3][5] == "Rack-Out and LOTO"
    assert rows[1][5] == "Open and LOTO"


def test_output_is_deterministic(three_points):
    meta = ProcedureMetadata(name="Same")
    assert render_csv(three_points, meta, today=TODAY) == render_csv(three_points, meta, today=TODAY)


def test_missing_optional_values_render_empty(make_point):
    point = make_point(1, unit="", description="")
    row = render_csv([point], today=TODAY).split("\n")[1]
    assert row == '"1","1AAA01AA001","","","Electrical","Open and LOTO"'


def test_export_filenames():
    assert export_filename("Unit 1 / Pump", "pdf", TODAY) == "LOTO-Procedure-Unit-1---Pump-2026-10-19.pdf"
    assert export_filename(None, "pdf", TODAY) == "LOTO-Procedure-Procedure-2026-10-19.pdf"
    assert export_filename("  ", "csv", TODAY) == "isolation-points.csv"
    assert export_filename("Main", "csv", TODAY) == "LOTO-Procedure-Main-2026-10-19.csv"
