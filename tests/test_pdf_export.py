import re
from datetime import datetime

import pytest

from loto.errors import EmptyProcedureError
from loto.models import ProcedureMetadata
from loto.services.export.pdf_export import (
    BANNER,
    BODY_BOTTOM,
    METADATA,
    REMINDERS,
    SAFETY_WARNING,
    SIGNATURES,
    STEPS,
    plan_pages,
    render_pdf,
)
from loto.services.procedure.list_engine import ProcedureListEngine

GENERATED = datetime(2026, 10, 19, 14, 30, 5)


def _render(points, meta=None, **kw):
    return render_pdf(points, meta, generated_at=GENERATED, compress=False, **kw)


def _page_streams(rendered):
    # uncompressed content streams, one per page in page order
    return re.findall(rb"stream\r?\n(.*?)endstream", rendered.content, re.S)


def test_empty_procedure_raises_before_any_page():
    # PDF refuses what CSV accepts: an empty procedure
    with pytest.raises(EmptyProcedureError):
        render_pdf([], ProcedureMetadata(name="Empty"))


def test_short_document(make_point):
    rendered = _render([make_point(1), make_point(2)], ProcedureMetadata(name="Pump 3 overhaul"))
    assert rendered.content.startswith(b"%PDF")
    assert rendered.filename == "LOTO-Procedure-Pump-3-overhaul-2026-10-19.pdf"
    assert rendered.pages[0].steps == (1, 2)
    assert rendered.pages[0].sections[:4] == (BANNER, SAFETY_WARNING, METADATA, STEPS)
    assert b"LOCKOUT/TAGOUT PROCEDURE" in rendered.content
    assert b"PUMP 3 OVERHAUL" in rendered.content
    assert b"Generated: 2026-10-19 14:30:05" in rendered.content
    total = rendered.page_count
    assert f"Page {total} of {total}".encode() in rendered.content


def test_missing_metadata_shows_placeholder(make_point):
    rendered = _render([make_point(1)], ProcedureMetadata(jsa_number="JSA-17"))
    assert b"JSA-17" in rendered.content
    assert b"Not Specified" in rendered.content


def test_product_name_in_footer(make_point):
    rendered = _render([make_point(1)], product_name="Plant 7 Isolation Desk")
    assert b"Plant 7 Isolation Desk" in rendered.content


def test_safety_warning_is_drawn_on_the_first_page(make_point):
    rendered = _render([make_point(1)])
    first = _page_streams(rendered)[0]
    assert b"DANGER - AUTHORIZED PERSONNEL ONLY" in first
    assert b"Unauthorized modifications are prohibited." in first
    assert b"may result in serious injury or death." in first
    assert all(SAFETY_WARNING not in page.sections for page in rendered.pages[1:])


def test_sign_off_and_reminders_close_the_document(make_point):
    rendered = _render([make_point(1)])
    last = _page_streams(rendered)[-1]
    assert b"AUTHORIZATION & VERIFICATION" in last
    for role in (b"Procedure Prepared By:", b"Electrical Isolation Verified By:",
                 b"Mechanical Isolation Verified By:",
                 b"Work Completed - Isolation Removed By:"):
        assert role in last
    assert last.count(b"Date:") == 5
    assert b"SAFETY REMINDERS:" in last
    assert b"Verify zero energy state before beginning work" in last
    assert b"Only authorized personnel may remove locks and tags" in last
    assert rendered.pages[-1].sections[-2:] == (SIGNATURES, REMINDERS)
    assert all(SIGNATURES not in page.sections for page in rendered.pages[:-1])


def test_sign_off_shares_the_last_page_when_there_is_room(make_point):
    rendered = _render([make_point(i) for i in range(1, 15)])
    assert rendered.pages[-1].sections == (STEPS, SIGNATURES, REMINDERS)
    assert rendered.pages[-1].content_bottom >= BODY_BOTTOM


def test_sign_off_moves_to_a_new_page_when_the_last_one_is_full(make_point):
    # one row cut to the height of a whole page fills page 2 by itself
    point = make_point(1, description="Drain and vent the line before opening. " * 400)
    rendered = _render([point])

    assert [page.steps for page in rendered.pages] == [(), (1,), ()]
    assert rendered.pages[0].sections == (BANNER, SAFETY_WARNING, METADATA)
    assert rendered.pages[1].sections == (STEPS,)
    assert rendered.pages[2].sections == (SIGNATURES, REMINDERS)

    streams = _page_streams(rendered)
    assert len(streams) == 3
    assert b"Page 3 of 3" in streams[2]
    assert b"AUTHORIZATION & VERIFICATION" in streams[2]


def test_two_hundred_entries_paginate_with_repeated_header(make_point):
    points = [make_point(i) for i in range(1, 201)]
    rendered = _render(points, ProcedureMetadata(name="Big one"))
    total = rendered.page_count
    assert total > 1

    streams = _page_streams(rendered)
    assert len(streams) == total
    for number, (stream, page) in enumerate(zip(streams, rendered.pages), start=1):
        assert stream.count(b"KKS Code") == (1 if page.steps else 0)
        assert f"Page {number} of {total}".encode() in stream
    assert sum(1 for s in streams if b"KKS Code" in s) == sum(1 for p in rendered.pages if p.steps)

    steps = [s for page in rendered.pages for s in page.steps]
    assert steps == list(range(1, 201))
    assert all(page.content_bottom >= BODY_BOTTOM for page in rendered.pages)


def test_long_descriptions_wrap_and_rows_stay_whole(make_point):
    long_text = "Isolate the upstream and downstream block valves before venting. " * 12
    points = [make_point(i, description=long_text) for i in range(1, 31)]
    rendered = _render(points)
    steps = [s for page in rendered.pages for s in page.steps]
    assert steps == list(range(1, 31))
    assert rendered.page_count > 1


@pytest.mark.parametrize(
    "overrides",
    [
        {"isolation_method": "Rack out the breaker, lock and verify. " * 60},
        {"unit": "Unit " * 300},
    ],
)
def test_oversized_cells_are_cut_to_stay_above_the_footer(make_point, overrides):
    points = [make_point(1), make_point(2, **overrides), make_point(3)]
    rendered = _render(points)

    assert [s for page in rendered.pages for s in page.steps] == [1, 2, 3]
    for page in rendered.pages:
        assert page.content_bottom >= BODY_BOTTOM - 0.01
    assert b"..." in rendered.content


def test_overridden_method_is_rendered(make_point):
    eng = ProcedureListEngine()
    eng.add([make_point(1), make_point(2)])
    eng.override_method(2, "Rack-Out and LOTO")
    rendered = _render(eng.ordered_points())
    assert b"Rack-Out and LOTO" in rendered.content


def test_control_characters_and_markup_are_neutralised(make_point):
    point = make_point(1, description="Breaker <b>A</b> & B\x07\ttrip")
    rendered = _render([point])
    assert rendered.content.startswith(b"%PDF")
    assert b"\x07" not in rendered.content


def test_plan_pages_with_fixed_capacity():
    plan = plan_pages([10.0] * 200, first_page_capacity=55, page_capacity=100)
    assert [len(p) for p in plan[:3]] == [5, 10, 10]
    assert [i for page in plan for i in page] == list(range(200))


def test_plan_pages_oversized_row_gets_its_own_page():
    plan = plan_pages([10, 500, 10], first_page_capacity=50, page_capacity=100)
    assert plan == [[0], [1], [2]]


def test_plan_pages_first_page_without_room():
    assert plan_pages([30, 30], first_page_capacity=20, page_capacity=100) == [[], [0, 1]]
