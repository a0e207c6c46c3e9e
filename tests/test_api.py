from __future__ import annotations

from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from lettersynth.core.config import get_settings
from lettersynth.main import create_app


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch) -> Iterator[TestClient]:
    monkeypatch.setenv("LETTERSYNTH_SEED_BINDINGS_ON_STARTUP", "false")
    monkeypatch.setenv("LETTERSYNTH_SAMPLE_RATE", "8000")
    get_settings.cache_clear()
    with TestClient(create_app()) as test_client:
        yield test_client
    get_settings.cache_clear()


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/api/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["sample_rate"] == 8000
    assert body["bound_letters"] == 0
    assert body["playing"] is False


def test_startup_seeds_bindings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LETTERSYNTH_BINDING_SEED", "99")
    get_settings.cache_clear()
    try:
        with TestClient(create_app()) as client:
            first = client.get("/api/bindings").json()
        with TestClient(create_app()) as client:
            second = client.get("/api/bindings").json()
    finally:
        get_settings.cache_clear()

    assert len(first) == 26
    assert first == second


def test_units_endpoints(client: TestClient) -> None:
    units = client.get("/api/units")
    assert units.status_code == 200
    assert [unit["name"] for unit in units.json()][:3] == ["sin", "square", "saw"]
    assert len(units.json()) == 9

    effects = client.get("/api/units", params={"kind": "effect"}).json()
    assert [unit["name"] for unit in effects] == ["filter", "delay", "reverb"]

    reverb = client.get("/api/units/reverb").json()
    assert [param["name"] for param in reverb["params"]] == ["size", "damp", "wet", "dry", "width"]
    assert reverb["kind"] == "effect"

    missing = client.get("/api/units/chorus")
    assert missing.status_code == 404
    assert missing.json()["detail"]["error"] == "unknown_type"


def test_binding_round_trip(client: TestClient) -> None:
    created = client.put("/api/bindings/A", json={"type_name": "sin", "params": [70]})
    assert created.status_code == 200
    assert created.json()["letter"] == "a"
    assert created.json()["params"][0]["value"] == 70

    updated = client.patch("/api/bindings/a", json={"params": {"note": "60"}})
    assert updated.status_code == 200
    assert updated.json()["params"][0] == {"name": "note", "kind": "int", "value": 60, "default": 66}

    listed = client.get("/api/bindings").json()
    assert [binding["letter"] for binding in listed] == ["a"]


def test_binding_errors(client: TestClient) -> None:
    unbound = client.get("/api/bindings/z")
    assert unbound.status_code == 404
    assert unbound.json()["detail"]["error"] == "unbound_letter"

    unknown_type = client.put("/api/bindings/a", json={"type_name": "chorus"})
    assert unknown_type.status_code == 422
    assert unknown_type.json()["detail"]["error"] == "unknown_type"

    client.put("/api/bindings/a", json={"type_name": "delay", "overrides": {"time": 1.5}})
    unknown_param = client.patch("/api/bindings/a", json={"params": {"volume": 1}})
    assert unknown_param.status_code == 422
    assert unknown_param.json()["detail"]["error"] == "unknown_parameter"

    mismatch = client.patch("/api/bindings/a", json={"params": {"wet": "soaked"}})
    assert mismatch.status_code == 422
    assert mismatch.json()["detail"]["error"] == "type_mismatch"

    patch_unbound = client.patch("/api/bindings/q", json={"params": {"note": 1}})
    assert patch_unbound.status_code == 404

    values = client.get("/api/bindings/a").json()["params"]
    assert [param["value"] for param in values] == [1.5, 0.5, 0.5, 0.5]


def test_commands_endpoint(client: TestClient) -> None:
    result = client.post("/api/commands", json={"line": "SET b delay time 1.5"})
    assert result.status_code == 200
    assert result.json()["ok"] is True
    assert result.json()["verb"] == "set"

    binding = client.get("/api/bindings/b").json()
    assert binding["type_name"] == "delay"
    assert binding["params"][0]["value"] == 1.5

    failed = client.post("/api/commands", json={"line": "SET c nothing"})
    assert failed.status_code == 200
    assert failed.json()["ok"] is False
    assert failed.json()["error_kind"] == "unknown_type"


def test_graph_play_and_pause(client: TestClient) -> None:
    client.put("/api/bindings/a", json={"type_name": "sin"})
    client.put("/api/bindings/b", json={"type_name": "saw"})

    saved = client.put("/api/graph/notation", json={"notation": "AB"})
    assert saved.json()["notation"] == "ab"
    assert saved.json()["playing"] is False

    played = client.post("/api/graph/play")
    assert played.status_code == 200
    body = played.json()
    assert body["playing"] is True
    assert len(body["nodes"]) == 3
    assert len(body["connections"]) == 4

    paused = client.post("/api/graph/pause").json()
    assert paused["playing"] is False
    assert [node["name"] for node in paused["nodes"]] == ["Audio Output"]
    assert client.get("/api/graph").json()["notation"] == "ab"


def test_play_with_unbalanced_notation(client: TestClient) -> None:
    client.put("/api/bindings/a", json={"type_name": "sin"})
    client.put("/api/graph/notation", json={"notation": "(a"})

    response = client.post("/api/graph/play")
    assert response.status_code == 422
    assert response.json()["detail"]["error"] == "unbalanced_parentheses"
    assert len(client.get("/api/graph").json()["nodes"]) == 1
