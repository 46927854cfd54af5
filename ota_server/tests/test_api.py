from datetime import date

import pytest
from fastapi.testclient import TestClient

from conftest import RECORD_PASSWORD, publish
from ota_server.main import create_app
from ota_server.manifest import repository
from ota_server.models.session import get_db
from ota_server.records.store import day_bounds

DIGITS_SHA256 = "84d89877f0d4041efb6bf91a16f0248f2fd573e6af05c19f96bedb9f882f7882"

MANIFEST = 'version: "2.0.0"\nfiles:\n  - name: "robo"\n    url: "http://ota.test/ota/robo/files/robo"\n'


@pytest.fixture
def app(apps_dir, db_session):
    application = create_app()

    def _override_db():
        yield db_session

    application.dependency_overrides[get_db] = _override_db
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def registry(app):
    return app.state.registry


def test_health_and_ping(client):
    for path in ("/health", "/ping"):
        response = client.get(path)
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


def test_ready_reports_checks(client):
    body = client.get("/health/ready").json()
    assert body["checks"]["apps_dir"] is True
    assert set(body["checks"]) == {"db", "apps_dir"}


def test_metrics_endpoint(client):
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "ota_agents_tracked" in response.text


def test_manifest_served_and_agent_recorded(client, apps_dir, registry):
    publish(apps_dir, "robo", {"robo": b"0123456789"}, MANIFEST)

    response = client.get(
        "/ota/robo/version.yaml",
        headers={"X-Agent-ID": "robot-7", "User-Agent": "robo-agent/1.0", "X-Local-Version": "1.9.0"},
    )

    assert response.status_code == 200
    assert response.text == MANIFEST
    assert response.headers["content-type"].startswith("application/x-yaml")
    assert response.headers["cache-control"] == "no-cache"
    agents = registry.list_agents("robo")
    assert len(agents) == 1
    assert agents[0].id == "robot-7"
    assert agents[0].current_version == "2.0.0"
    assert agents[0].local_version == "1.9.0"
    assert agents[0].client_label == "robo-agent/1.0"


def test_missing_manifest_is_404_and_not_recorded(client, registry):
    response = client.get("/ota/ghost/version.yaml")
    assert response.status_code == 404
    assert registry.list_agents("ghost") == []


def test_file_download(client, apps_dir, registry):
    publish(apps_dir, "robo", {"robo": b"0123456789"}, MANIFEST)

    response = client.get("/ota/robo/files/robo", headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})

    assert response.status_code == 200
    assert response.content == b"0123456789"
    assert "attachment" in response.headers["content-disposition"]
    agents = registry.list_agents("robo")
    assert agents[0].id == "203.0.113.7"
    assert agents[0].last_action.value == "file_download"
    assert agents[0].current_version is None


def test_file_download_missing_or_escaping(client, apps_dir):
    publish(apps_dir, "robo", {"robo": b"x"}, MANIFEST)
    (apps_dir / "robo" / "secret.txt").write_text("nope")
    assert client.get("/ota/robo/files/missing.bin").status_code == 404
    assert client.get("/ota/robo/files/..%2Fsecret.txt").status_code == 404


def test_agents_endpoint_uses_wire_names(client, apps_dir):
    publish(apps_dir, "robo", {"robo": b"x"}, MANIFEST)
    client.get("/ota/robo/version.yaml", headers={"X-Agent-ID": "robot-7"})
    client.get("/ota/robo/version.yaml", headers={"X-Agent-ID": "robot-7"})

    body = client.get("/ota/robo/agents").json()

    assert body["app"] == "robo"
    assert body["total"] == 1
    agent = body["agents"][0]
    assert agent["id"] == "robot-7"
    assert agent["ip"] == "testclient"
    assert agent["requestCount"] == 2
    assert agent["currentVersion"] == "2.0.0"
    assert agent["lastAction"] == "config_check"
    assert set(agent) == {
        "id",
        "ip",
        "lastSeen",
        "requestCount",
        "currentVersion",
        "localVersion",
        "lastAction",
        "userAgent",
    }


def test_agents_for_unknown_app_is_empty(client):
    body = client.get("/ota/nobody/agents").json()
    assert body["agents"] == []
    assert body["total"] == 0


def test_app_info(client, apps_dir):
    publish(apps_dir, "robo", {"robo": b"0123456789"}, MANIFEST)
    body = client.get("/ota/robo/info").json()
    assert body["config"] == {"version": "2.0.0"}
    assert body["binary"]["name"] == "robo"
    assert body["binary"]["size"] == 10
    assert body["agents"]["count"] == 0


def test_service_info_lists_published_apps(client, apps_dir):
    publish(apps_dir, "robo", {"robo": b"x"}, MANIFEST)
    publish(apps_dir, "draft", {"draft": b"x"})
    for path in ("/", "/info"):
        body = client.get(path).json()
        assert [app["name"] for app in body["apps"]] == ["robo"]


def test_publish_manifest_requires_password(client, apps_dir):
    publish(apps_dir, "robo", {"robo": b"0123456789"})
    payload = {"version": "2.0.0", "files": [{"file": "robo", "target": "/usr/local/bin/robo"}]}
    assert client.post("/ota/robo/manifest", json=payload).status_code == 401
    response = client.post(
        "/ota/robo/manifest",
        json={**payload, "restart_cmd": ""},
        headers={"X-Record-Password": RECORD_PASSWORD},
    )
    assert response.status_code == 200
    assert f'sha256: "{DIGITS_SHA256}"' in response.text
    assert 'url: "http://ota.test/ota/robo/files/robo"' in response.text
    assert (apps_dir / "robo" / "version.yaml").read_text() == response.text


def test_publish_manifest_errors(client, apps_dir):
    publish(apps_dir, "robo", {"robo": b"x"})
    headers = {"X-Record-Password": RECORD_PASSWORD}
    empty = client.post("/ota/robo/manifest", json={"version": "1", "files": []}, headers=headers)
    assert empty.status_code == 400
    missing = client.post(
        "/ota/robo/manifest",
        json={"version": "1", "files": [{"file": "nope", "target": "/x"}]},
        headers=headers,
    )
    assert missing.status_code == 404


def test_record_post_and_get(client):
    posted = client.post("/game/record", json={"timestamp": 1700000000, "type": "win", "duration": 1200})
    assert posted.status_code == 200
    assert posted.json()["status"] == "ok"
    queried = client.get("/game/record", params={"timestamp": 1700000100, "type": "loss", "duration": 300})
    assert queried.status_code == 200
    assert queried.json()["id"] != posted.json()["id"]


def test_record_rejects_invalid_json(client):
    response = client.post("/game/record", content=b"{not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid JSON"


def test_record_other_methods_not_allowed(client):
    assert client.put("/game/record").status_code == 405


def test_record_query_is_gated(client):
    assert client.get("/game/records").status_code == 401
    assert client.get("/game/records", params={"password": "wrong-password"}).status_code == 401


def test_record_query_filters(client):
    day = date(2025, 3, 1)
    start, end = day_bounds(day)
    client.post("/game/record", json={"timestamp": start, "type": "win", "duration": 1000})
    client.post("/game/record", json={"timestamp": start + 60, "type": "loss", "duration": 500})
    client.post("/game/record", json={"timestamp": end, "type": "win", "duration": 1000})

    body = client.get(
        "/game/records",
        params={"date": "2025-03-01", "password": RECORD_PASSWORD},
    ).json()

    assert [record["timestamp"] for record in body["records"]] == [start + 60, start]
    assert body["summary"] == {"count": 2, "total_duration_ms": 1500, "total_duration_seconds": 1.5}

    wins = client.get(
        "/game/records",
        params={"type": "win"},
        headers={"X-Record-Password": RECORD_PASSWORD},
    ).json()
    assert len(wins["records"]) == 2


def test_record_types(client):
    client.post("/game/record", json={"timestamp": 1, "type": "win", "duration": 1})
    client.post("/game/record", json={"timestamp": 2, "type": "loss", "duration": 1})
    body = client.get("/game/records/types", headers={"X-Record-Password": RECORD_PASSWORD}).json()
    assert body == {"types": ["loss", "win"]}


def test_record_type_too_long_is_rejected(client):
    long_type = "t" * 65
    assert client.get("/game/record", params={"type": long_type, "duration": 1}).status_code == 422
    assert client.post("/game/record", json={"type": long_type, "duration": 1}).status_code == 400


def test_app_info_filesystem_error_is_500(client, apps_dir, monkeypatch):
    publish(apps_dir, "robo", {"robo": b"x"}, MANIFEST)

    def _broken(app_name):
        raise PermissionError("denied")

    monkeypatch.setattr(repository, "latest_binary", _broken)
    response = client.get("/ota/robo/info")
    assert response.status_code == 500
