"""
Tests for api/routes/timeline.py — timeline editing endpoints.

Uses the ``api_client`` fixture from conftest.py: the timeline store and the
analysis engine are overridden with per-test instances.
"""

from core.timeline.types import Panel


def _times(body: dict) -> list[float]:
    return [p["timestamp"] for p in body["panels"]]


class TestHealthAndMetrics:
    def test_health(self, api_client):
        resp = api_client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    def test_metrics(self, api_client):
        resp = api_client.get("/metrics")
        assert resp.status_code == 200
        assert "bbe_timeline_mutations_total" in resp.text


class TestGetTimeline:
    def test_empty(self, api_client):
        resp = api_client.get("/timeline")
        assert resp.status_code == 200
        assert resp.json() == {"load_id": 0, "panels": [], "active_index": None}

    def test_active_index_for_time(self, api_client, store):
        store.replace((Panel(0.0), Panel(1.0), Panel(2.0)))
        assert api_client.get("/timeline", params={"time": 1.5}).json()["active_index"] == 1
        assert api_client.get("/timeline", params={"time": -0.1}).json()["active_index"] == -1

    def test_board_shape(self, api_client, store):
        store.replace((Panel(1.0, board=((0, 1, 2, 0), (0, 0, 0, 1))),))
        panel = api_client.get("/timeline").json()["panels"][0]
        assert panel == {"timestamp": 1.0, "board": [[0, 1, 2, 0], [0, 0, 0, 1]]}


class TestEditPanels:
    def test_insert(self, api_client):
        api_client.post("/timeline/panels", json={"time": 2.0})
        resp = api_client.post("/timeline/panels", json={"time": 1.0})
        assert resp.status_code == 200
        assert _times(resp.json()) == [1.0, 2.0]

    def test_insert_negative_time_is_422(self, api_client):
        resp = api_client.post("/timeline/panels", json={"time": -1.0})
        assert resp.status_code == 422

    def test_remove(self, api_client, store):
        store.replace((Panel(0.0), Panel(1.0)))
        resp = api_client.delete("/timeline/panels/0")
        assert resp.status_code == 200
        assert _times(resp.json()) == [1.0]

    def test_remove_out_of_range_is_noop(self, api_client, store):
        store.replace((Panel(0.0),))
        resp = api_client.delete("/timeline/panels/-1")
        assert resp.status_code == 200
        assert _times(resp.json()) == [0.0]

    def test_cycle_cell(self, api_client, store):
        store.replace((Panel(0.0),))
        for expected in (1, 2, 0):
            resp = api_client.post("/timeline/panels/0/cells", json={"row": 1, "col": 3})
            assert resp.json()["panels"][0]["board"][1][3] == expected

    def test_cycle_cell_outside_board_is_422(self, api_client, store):
        store.replace((Panel(0.0),))
        resp = api_client.post("/timeline/panels/0/cells", json={"row": 2, "col": 0})
        assert resp.status_code == 422

    def test_nudge_clamps_and_resorts(self, api_client, store):
        store.replace((Panel(0.2), Panel(1.0), Panel(2.0)))
        resp = api_client.post("/timeline/panels/2/nudge", json={"offset": -1.5})
        assert _times(resp.json()) == [0.2, 0.5, 1.0]
        resp = api_client.post("/timeline/panels/0/nudge", json={"offset": -1.0})
        assert _times(resp.json()) == [0.0, 0.5, 1.0]


class TestExportImport:
    def test_export(self, api_client, store):
        store.replace((Panel(0.6), Panel(1.0, board=((1, 1, 1, 1), (2, 2, 2, 2)))))
        resp = api_client.get("/timeline/export")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/plain")
        assert "music-map.txt" in resp.headers["content-disposition"]
        assert resp.text == "0.60\n0000\n0000\n\n1.00\n1111\n2222"

    def test_export_empty(self, api_client):
        assert api_client.get("/timeline/export").text == ""

    def test_export_after_large_nudge(self, api_client, store):
        store.replace((Panel(1.0),))
        api_client.post("/timeline/panels/0/nudge", json={"offset": 1e27})
        resp = api_client.get("/timeline/export")
        assert resp.status_code == 200
        assert resp.text.splitlines()[0] == f"{int(1e27)}.00"

    def test_import_replaces_timeline(self, api_client, store):
        store.replace((Panel(9.0),))
        text = "2.00\n0000\n0000\n\n1.00\n0120\n2001\n\nbroken"
        resp = api_client.post("/timeline/import", json={"text": text})
        assert resp.status_code == 200
        body = resp.json()
        assert body["imported"] == 2
        assert body["skipped_blocks"] == 1
        assert _times(body) == [1.0, 2.0]
        assert [p.timestamp for p in store.snapshot()] == [1.0, 2.0]

    def test_import_then_export_round_trip(self, api_client):
        text = "0.50\n0000\n1111\n\n3.25\n2020\n0202"
        api_client.post("/timeline/import", json={"text": text})
        assert api_client.get("/timeline/export").text == text

    def test_import_is_a_new_load(self, api_client, engine):
        engine.start_file("/music/track.wav").wait(timeout=10)
        api_client.post("/timeline/import", json={"text": "4.00\n0000\n0000"})
        body = api_client.get("/timeline").json()
        assert body["load_id"] == 2
        assert engine.current_load_id == 2
        assert _times(body) == [4.0]
