import csv
import io

import pytest


@pytest.fixture()
def ids(catalog):
    return [p.id for p in catalog]


def _add(client, point_ids):
    return client.post("/api/procedure/add", json={"pointIds": point_ids})


def test_health(client):
    resp = client.get("/health/ping")
    assert resp.status_code == 200
    assert resp.get_json()["ok"] is True


# ----------------------------------------------------------------------
# Catalog endpoints
# ----------------------------------------------------------------------
def test_list_and_filter_points(client, catalog):
    body = client.get("/api/isolation-points").get_json()
    assert body["total"] == 4

    body = client.get(
        "/api/isolation-points", query_string={"units": "Unit 1", "types": "Electrical"}
    ).get_json()
    assert [p["kks"] for p in body["items"]] == ["1AAA01AA001", "1EEE05AA089"]

    body = client.post("/api/isolation-points/search", json={"search": "steam"}).get_json()
    assert [p["kks"] for p in body["items"]] == ["1BBB02AA015"]


def test_point_crud_and_errors(client, catalog):
    resp = client.post(
        "/api/isolation-points",
        json={
            "kks": "5ZZZ05AA005",
            "unit": "Unit 5",
            "description": "New breaker",
            "type": "Electrical",
            "isolationMethod": "Off and LOTO",
            "normalPosition": "Closed",
        },
    )
    assert resp.status_code == 201
    point_id = resp.get_json()["point"]["id"]

    resp = client.patch(f"/api/isolation-points/{point_id}", json={"unit": "Unit 6"})
    assert resp.get_json()["point"]["unit"] == "Unit 6"

    resp = client.post("/api/isolation-points", json={"kks": "X"})
    assert resp.status_code == 400
    assert resp.get_json()["ok"] is False

    assert client.delete(f"/api/isolation-points/{point_id}").status_code == 200
    assert client.get(f"/api/isolation-points/{point_id}").status_code == 404


def test_facets_endpoint(client, catalog):
    body = client.get("/api/isolation-points/facets").get_json()
    assert {"units", "types", "methods", "positions"} <= set(body["facets"])
    assert "Open and LOTO" in body["vocabularies"]["methods"]


def test_import_endpoint(client, app):
    template = client.get("/api/isolation-points/import/template")
    assert template.status_code == 200
    assert "attachment" in template.headers["Content-Disposition"]

    dry = client.post("/api/isolation-points/import?dry_run=1", data=template.data)
    assert dry.get_json()["created"] == 0

    resp = client.post(
        "/api/isolation-points/import",
        data={"file": (io.BytesIO(template.data), "points.csv")},
        content_type="multipart/form-data",
    )
    body = resp.get_json()
    assert body["created"] == 1
    assert body["errors"] == []


# ----------------------------------------------------------------------
# Procedure builder
# ----------------------------------------------------------------------
def test_add_reorder_move_override(client, ids):
    body = _add(client, [ids[0], ids[1], ids[0]]).get_json()
    assert body["added"] == 2
    assert [e["pointId"] for e in body["entries"]] == [ids[0], ids[1]]

    _add(client, [ids[2]])
    body = client.post("/api/procedure/reorder", json={"pointIds": [ids[2], ids[0], ids[1]]}).get_json()
    assert [e["pointId"] for e in body["entries"]] == [ids[2], ids[0], ids[1]]

    body = client.post("/api/procedure/move", json={"pointId": ids[1], "direction": "up"}).get_json()
    assert [e["pointId"] for e in body["entries"]] == [ids[2], ids[1], ids[0]]

    body = client.post(
        "/api/procedure/override", json={"pointId": ids[0], "method": "Earth"}
    ).get_json()
    assert body["entries"][2]["effectiveIsolationMethod"] == "Earth"
    assert body["entries"][2]["overridden"] is True

    # state survives across requests
    body = client.get("/api/procedure").get_json()
    assert [e["pointId"] for e in body["entries"]] == [ids[2], ids[1], ids[0]]


def test_bad_reorder_is_rejected_and_state_kept(client, ids):
    _add(client, [ids[0], ids[1]])
    resp = client.post("/api/procedure/reorder", json={"pointIds": [ids[1]]})
    assert resp.status_code == 400
    assert resp.get_json()["missing"] == [ids[0]]
    body = client.get("/api/procedure").get_json()
    assert [e["pointId"] for e in body["entries"]] == [ids[0], ids[1]]


def test_unknown_points_and_bad_payloads(client, ids):
    assert _add(client, [9999]).status_code == 404
    assert _add(client, "1,2").status_code == 400
    assert client.post("/api/procedure/override", json={"pointId": ids[0], "method": "x"}).status_code == 404
    assert client.post("/api/procedure/move", json={"pointId": ids[0], "direction": "up"}).status_code == 404


def test_remove_and_clear(client, ids):
    _add(client, [ids[0], ids[1]])
    body = client.post("/api/procedure/remove", json={"pointId": ids[0]}).get_json()
    assert [e["pointId"] for e in body["entries"]] == [ids[1]]
    body = client.post("/api/procedure/clear").get_json()
    assert body["entries"] == []


def test_save_and_load(client, ids):
    _add(client, [ids[3], ids[0]])
    client.post("/api/procedure/override", json={"pointId": ids[3], "method": "Earth"})

    assert client.post("/api/procedure/save", json={}).status_code == 400

    resp = client.post("/api/procedure/save", json={"name": "Shutdown", "jsaNumber": "JSA-2"})
    saved = resp.get_json()["savedList"]
    assert saved["isolationPointIds"] == [{"id": ids[3], "method": "Earth"}, {"id": ids[0], "method": None}]
    assert saved["jsaNumber"] == "JSA-2"

    client.post("/api/procedure/clear")
    client.delete(f"/api/isolation-points/{ids[0]}")

    body = client.post(f"/api/procedure/load/{saved['id']}").get_json()
    assert [e["pointId"] for e in body["entries"]] == [ids[3]]
    assert body["entries"][0]["effectiveIsolationMethod"] == "Earth"
    assert body["droppedCount"] == 1
    assert body["metadata"]["name"] == "Shutdown"

    assert client.post("/api/procedure/load/999").status_code == 404


def test_save_updates_existing_list(client, ids):
    _add(client, [ids[0]])
    saved = client.post("/api/procedure/save", json={"name": "First"}).get_json()["savedList"]
    _add(client, [ids[1]])
    body = client.post(
        "/api/procedure/save", json={"listId": saved["id"], "name": "Second"}
    ).get_json()
    assert body["savedList"]["id"] == saved["id"]
    assert body["savedList"]["name"] == "Second"
    assert body["savedList"]["isolationPointIds"] == [ids[0], ids[1]]


def test_saved_lists_api(client, ids):
    resp = client.post("/api/saved-lists", json={"name": "Cooling", "isolationPointIds": [ids[2]]})
    assert resp.status_code == 201
    list_id = resp.get_json()["savedList"]["id"]

    assert client.get("/api/saved-lists?q=cool").get_json()["total"] == 1
    assert client.get("/api/saved-lists?q=nothing").get_json()["total"] == 0
    resp = client.put(f"/api/saved-lists/{list_id}", json={"description": "Intake"})
    assert resp.get_json()["savedList"]["description"] == "Intake"
    assert client.delete(f"/api/saved-lists/{list_id}").status_code == 200
    assert client.get(f"/api/saved-lists/{list_id}").status_code == 404


# ----------------------------------------------------------------------
# Exports
# ----------------------------------------------------------------------
def test_csv_export_renders_override(client, ids):
    _add(client, [ids[1], ids[0]])
    client.post("/api/procedure/override", json={"pointId": ids[0], "method": "Earth"})
    client.post("/api/procedure/metadata", json={"name": "Pump 3", "workOrder": "WO-9"})

    resp = client.get("/api/procedure/export.csv")
    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"
    assert "LOTO-Procedure-Pump-3-" in resp.headers["Content-Disposition"]

    text = resp.get_data(as_text=True)
    assert "Work Order:,WO-9" in text
    rows = list(csv.reader(io.StringIO(text.split("\n\n", 1)[1])))
    assert [r[1] for r in rows[1:]] == ["1BBB02AA015", "1AAA01AA001"]
    assert rows[2][5] == "Earth"


def test_empty_exports_asymmetry(client, app):
    resp = client.get("/api/procedure/export.csv")
    assert resp.status_code == 200
    assert resp.headers["Content-Disposition"] == 'attachment; filename="isolation-points.csv"'

    resp = client.get("/api/procedure/export.pdf")
    assert resp.status_code == 400
    assert resp.get_json()["kind"] == "EmptyProcedureError"


def test_pdf_export(client, ids):
    _add(client, ids)
    client.post("/api/procedure/metadata", json={"name": "Full list"})
    resp = client.get("/api/procedure/export.pdf")
    assert resp.status_code == 200
    assert resp.mimetype == "application/pdf"
    assert resp.data.startswith(b"%PDF")
    assert "LOTO-Procedure-Full-list-" in resp.headers["Content-Disposition"]


def test_stateless_export(client, ids):
    resp = client.post(
        "/api/export/isolation-list",
        json={"isolationPointIds": [ids[2], {"id": ids[0], "method": "Earth"}, 999]},
    )
    assert resp.status_code == 200
    assert resp.headers["X-Dropped-Count"] == "1"
    rows = list(csv.reader(io.StringIO(resp.get_data(as_text=True))))
    assert [r[1] for r in rows[1:]] == ["2CCC03AA027", "1AAA01AA001"]
    assert rows[2][5] == "Earth"

    resp = client.post("/api/export/isolation-list?format=pdf", json={"isolationPointIds": [ids[0]]})
    assert resp.data.startswith(b"%PDF")

    assert client.post("/api/export/isolation-list", json={"isolationPointIds": 5}).status_code == 400
    assert client.post("/api/export/isolation-list?format=xml", json={"isolationPointIds": []}).status_code == 400
