import importlib
import inspect
from pathlib import Path
import sys
import threading
import time

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))


# We import the server AFTER monkeypatching env so it picks up the settings
def make_app(monkeypatch, tmp_path, api_token=None):
    if api_token is not None:
        monkeypatch.setenv("API_TOKEN", api_token)
    else:
        monkeypatch.delenv("API_TOKEN", raising=False)
    monkeypatch.setenv("GUTSAFE_DB_PATH", str(tmp_path / "api.db"))
    monkeypatch.setenv("GUTSAFE_TIMEZONE", "UTC")

    server_main = importlib.import_module("server.main")
    importlib.reload(server_main)
    return server_main.app


@pytest.fixture
def client(monkeypatch, tmp_path):
    return TestClient(make_app(monkeypatch, tmp_path))


def _log(client, user_id="u1", **fields):
    body = {
        "user_id": user_id,
        "symptoms": [{"type": "bloated", "severity": 14}],
        "foodItems": ["dairy"],
    }
    body.update(fields)
    r = client.post("/log", json=body)
    assert r.status_code == 200, r.text
    return r.json()


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_auth_enabled_blocks_without_header(monkeypatch, tmp_path):
    client = TestClient(make_app(monkeypatch, tmp_path, api_token="secrettoken"))
    assert client.get("/entries", params={"user_id": "u1"}).status_code == 401
    r = client.get("/entries", params={"user_id": "u1"}, headers={"Authorization": "Bearer secrettoken"})
    assert r.status_code == 200


def test_log_clamps_severity_and_normalises_type(client):
    body = _log(client)
    assert body["symptoms"][0] == {"type": "bloating", "severity": 10, "description": None, "duration": None}
    assert body["foodItems"] == ["dairy"]
    assert body["id"] and body["timestamp"]


def test_log_rejects_unknown_symptom(client):
    r = client.post("/log", json={"user_id": "u1", "symptoms": [{"type": "sneezing", "severity": 3}]})
    assert r.status_code == 400
    r = client.post("/log", json={"user_id": "u1", "symptoms": []})
    assert r.status_code == 422


def test_entries_filters(client):
    _log(client)
    _log(client, symptoms=[{"type": "gas", "severity": 3}], foodItems=["beans"])
    _log(client, user_id="someone-else")

    assert len(client.get("/entries", params={"user_id": "u1"}).json()) == 2
    assert [e["foodItems"] for e in client.get("/entries", params={"user_id": "u1", "food": "BEA"}).json()] == [["beans"]]
    assert len(client.get("/entries", params={"user_id": "u1", "type": "bloating"}).json()) == 1
    assert len(client.get("/entries", params={"user_id": "u1", "since": "2000-01-01T00:00:00"}).json()) == 2
    assert client.get("/entries", params={"user_id": "u1", "until": "2000-01-01"}).json() == []


def test_entries_bad_since_returns_400(client):
    r = client.get("/entries", params={"user_id": "u1", "since": "???"})
    assert r.status_code == 400


def test_update_and_delete(client):
    entry = _log(client)

    assert client.patch("/entries/missing", params={"user_id": "u1"}, json={"notes": "x"}).status_code == 404
    r = client.patch(f"/entries/{entry['id']}", params={"user_id": "u1"}, json={"notes": "after pizza"})
    assert r.status_code == 200
    assert client.get("/entries", params={"user_id": "u1"}).json()[0]["notes"] == "after pizza"

    assert client.delete(f"/entries/{entry['id']}", params={"user_id": "u1"}).status_code == 200
    assert client.delete(f"/entries/{entry['id']}", params={"user_id": "u1"}).status_code == 404
    assert client.get("/entries", params={"user_id": "u1"}).json() == []


def test_report_insights_and_summary(client):
    _log(client)
    r = client.get("/report", params={"user_id": "u1", "period": "week"})
    assert r.status_code == 200
    report = r.json()
    assert report["totalLogs"] == 1
    assert report["symptomFrequency"] == {"bloating": 1}
    assert report["topTriggers"][0]["trigger"] == "dairy"
    assert report["insights"]["riskFactors"]["high"] == ["bloating (frequent and severe)"]

    insights = client.get("/insights", params={"user_id": "u1"}).json()
    assert insights["patterns"][0]["symptom"] == "bloating"

    summary = client.get("/summary", params={"user_id": "u1", "period": "week"}).json()["summary"]
    assert "bloating" in summary

    assert client.get("/report", params={"user_id": "u1", "period": "decade"}).status_code == 422


def test_empty_report_is_not_an_error(client):
    r = client.get("/report", params={"user_id": "new-user"})
    assert r.status_code == 200
    assert r.json()["totalLogs"] == 0
    summary = client.get("/summary", params={"user_id": "new-user"}).json()["summary"]
    assert summary == "No entries found for this user."


def test_export_import_roundtrip(client):
    _log(client)
    exported = client.get("/export", params={"user_id": "u1"})
    assert exported.status_code == 200
    assert len(exported.json()["symptomLogs"]) == 1

    r = client.post("/import", params={"user_id": "u2"}, content=exported.content)
    assert r.json() == {"imported": 1}
    assert len(client.get("/entries", params={"user_id": "u2"}).json()) == 1


def test_bad_import_returns_400_and_keeps_data(client):
    _log(client)
    r = client.post("/import", params={"user_id": "u1"}, content=b'{"logs": []}')
    assert r.status_code == 400
    assert r.json()["detail"] == "Invalid data format"
    assert len(client.get("/entries", params={"user_id": "u1"}).json()) == 1


def test_clear_entries(client):
    _log(client)
    assert client.delete("/entries", params={"user_id": "u1"}).json() == {"cleared": True}
    assert client.get("/entries", params={"user_id": "u1"}).json() == []


def test_log_with_existing_id_returns_400(client):
    entry = _log(client)
    r = client.post("/log", json={"user_id": "u1", "id": entry["id"], "symptoms": [{"type": "gas", "severity": 2}]})
    assert r.status_code == 400
    assert "already exists" in r.json()["detail"]
    assert len(client.get("/entries", params={"user_id": "u1"}).json()) == 1


def test_update_clamps_severity(client):
    entry = _log(client)
    r = client.patch(
        f"/entries/{entry['id']}",
        params={"user_id": "u1"},
        json={"symptoms": [{"type": "gas", "severity": 0}, {"type": "nausea", "severity": 20}]},
    )
    assert r.status_code == 200
    symptoms = client.get("/entries", params={"user_id": "u1"}).json()[0]["symptoms"]
    assert [s["severity"] for s in symptoms] == [1, 10]

    r = client.patch(f"/entries/{entry['id']}", params={"user_id": "u1"}, json={"symptoms": [{"type": "gas", "severity": "lots"}]})
    assert r.status_code == 400


def test_import_with_duplicate_ids_returns_400(client):
    _log(client)
    doc = client.get("/export", params={"user_id": "u1"}).json()
    doc["symptomLogs"].append(dict(doc["symptomLogs"][0]))
    r = client.post("/import", params={"user_id": "u1"}, json=doc)
    assert r.status_code == 400
    assert r.json()["detail"] == "Invalid data format"
    assert len(client.get("/entries", params={"user_id": "u1"}).json()) == 1


def test_import_runs_off_the_event_loop(monkeypatch, tmp_path):
    make_app(monkeypatch, tmp_path)
    server_main = sys.modules["server.main"]
    assert not inspect.iscoroutinefunction(server_main.api_import)


def test_concurrent_first_requests_build_one_service(monkeypatch, tmp_path):
    make_app(monkeypatch, tmp_path)
    server_main = sys.modules["server.main"]
    built = []
    real_build = server_main.build_service

    def slow_build(user_id, settings):
        time.sleep(0.2)
        built.append(user_id)
        return real_build(user_id, settings)

    monkeypatch.setattr(server_main, "build_service", slow_build)
    results = []
    threads = [threading.Thread(target=lambda: results.append(server_main.get_service("u1"))) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert built == ["u1"]
    assert results[0] is results[1]


def test_least_recently_used_service_is_evicted(monkeypatch, tmp_path):
    monkeypatch.setenv("GUTSAFE_MAX_SESSIONS", "2")
    client = TestClient(make_app(monkeypatch, tmp_path))
    server_main = sys.modules["server.main"]

    _log(client, user_id="a")
    _log(client, user_id="b")
    client.get("/entries", params={"user_id": "a"})
    _log(client, user_id="c")

    assert list(server_main.app.state.services) == ["a", "c"]
    # the evicted user reloads from the database
    assert len(client.get("/entries", params={"user_id": "b"}).json()) == 1
