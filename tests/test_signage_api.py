"""Tests for the signage HTTP gateway and admin gate."""

import base64

import pytest
from fastapi.testclient import TestClient

import signage_api.main as main
from signage_api.services.config_store import ConfigStore, get_store
from signage_api.services.errors import StorageUnavailable


@pytest.fixture()
def client(store):
    main.app.dependency_overrides[get_store] = lambda: store
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()


class _DownStore(ConfigStore):
    def __init__(self):
        pass

    def get_all(self):
        raise StorageUnavailable()

    def upsert(self, device_id, config):
        raise StorageUnavailable()


@pytest.fixture()
def down_client():
    main.app.dependency_overrides[get_store] = lambda: _DownStore()
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()


class TestList:
    def test_empty_store(self, client):
        res = client.get("/signage/configs")
        assert res.status_code == 200
        assert res.json() == {}

    def test_end_to_end(self, client, clock):
        res = client.put("/signage/config", json={
            "deviceId": "D1",
            "webUrl": "https://a",
            "videoUrl": "https://b",
            "layout": "split",
            "screen": {"splitRatio": 150},
        })
        assert res.status_code == 200
        record = res.json()
        assert record == {
            "webUrl": "https://a",
            "videoUrl": "https://b",
            "layout": "split",
            "screen": {"orientation": "row", "splitRatio": 100, "gapPx": 0, "paddingPx": 0},
            "updatedAt": int(clock.now),
        }
        listed = client.get("/signage/configs")
        assert listed.json() == {"D1": record}


class TestUpsert:
    @pytest.mark.parametrize("path", ["/signage/config", "/signage/configs"])
    def test_both_paths_write(self, client, path):
        res = client.put(path, json={"deviceId": "D9", "layout": "bogus"})
        assert res.status_code == 200
        assert res.json()["layout"] == "split"
        assert client.get("/signage/config/D9").json() == res.json()

    def test_missing_screen_defaults(self, client):
        res = client.put("/signage/config", json={
            "deviceId": "D1", "webUrl": "x", "videoUrl": "y", "layout": "split",
        })
        assert res.json()["screen"] == {"orientation": "row", "splitRatio": 50, "gapPx": 0, "paddingPx": 0}

    @pytest.mark.parametrize("body", [{"deviceId": ""}, {"webUrl": "x"}, ["D1"], None])
    def test_bad_identifier_rejected(self, client, body):
        client.put("/signage/config", json={"deviceId": "D1"})
        before = client.get("/signage/configs").json()

        res = client.put("/signage/config", json=body)
        assert res.status_code == 400
        detail = res.json()["detail"]
        assert detail["error"] == "invalid_identifier"
        assert detail["field"] == "deviceId"
        assert client.get("/signage/configs").json() == before

    def test_client_timestamp_ignored(self, client, clock):
        res = client.put("/signage/config", json={"deviceId": "D1", "updatedAt": 5})
        assert res.json()["updatedAt"] == int(clock.now)

    def test_huge_integer_clamped(self, client):
        res = client.put(
            "/signage/config",
            content='{"deviceId": "D1", "screen": {"splitRatio": 1' + "0" * 400 + "}}",
            headers={"Content-Type": "application/json"},
        )
        assert res.status_code == 200
        assert res.json()["screen"]["splitRatio"] == 100


class TestSingleFetch:
    def test_unknown_device(self, client):
        res = client.get("/signage/config/ghost")
        assert res.status_code == 404
        assert res.json()["detail"]["error"] == "not_found"


class TestStorageFailure:
    def test_list_reports_server_error(self, down_client):
        res = down_client.get("/signage/configs")
        assert res.status_code == 503
        assert res.json()["detail"]["error"] == "storage_unavailable"

    def test_upsert_reports_server_error(self, down_client):
        res = down_client.put("/signage/config", json={"deviceId": "D1"})
        assert res.status_code == 503
        assert res.json()["detail"]["error"] == "storage_unavailable"

    def test_validation_checked_before_storage(self, down_client):
        res = down_client.put("/signage/config", json={"deviceId": ""})
        assert res.status_code == 400


def _basic(user, password):
    token = base64.b64encode(f"{user}:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


class TestAdminGate:
    @pytest.fixture(autouse=True)
    def _token(self, monkeypatch):
        monkeypatch.setattr(main, "ADMIN_TOKEN", "s3cret")
        monkeypatch.setattr(main, "ADMIN_USER", "admin")

    @pytest.mark.parametrize("method, path", [
        ("get", "/signage/configs"),
        ("get", "/signage/config/D1"),
        ("put", "/signage/config"),
        ("put", "/signage/configs"),
    ])
    def test_missing_credential(self, client, store, method, path):
        res = getattr(client, method)(path, **({"json": {"deviceId": "D1"}} if method == "put" else {}))
        assert res.status_code == 401
        assert "WWW-Authenticate" in res.headers
        assert store.get_all() == {}

    def test_wrong_token_forbidden(self, client, store):
        res = client.put("/signage/config", json={"deviceId": "D1"}, headers={"X-Admin-Token": "nope"})
        assert res.status_code == 403
        assert store.get_all() == {}

    def test_wrong_basic_password_forbidden(self, client):
        res = client.get("/signage/configs", headers=_basic("admin", "nope"))
        assert res.status_code == 403

    def test_malformed_basic_header(self, client):
        res = client.get("/signage/configs", headers={"Authorization": "Basic ???"})
        assert res.status_code == 401

    def test_token_header_allows(self, client):
        res = client.put("/signage/config", json={"deviceId": "D1"}, headers={"X-Admin-Token": "s3cret"})
        assert res.status_code == 200

    def test_basic_auth_allows(self, client):
        res = client.get("/signage/configs", headers=_basic("admin", "s3cret"))
        assert res.status_code == 200

    def test_preflight_passes_with_cors_headers(self, client):
        res = client.options("/signage/configs", headers={
            "Origin": "https://admin.example.com",
            "Access-Control-Request-Method": "PUT",
        })
        assert res.status_code == 200
        assert "access-control-allow-origin" in res.headers

    def test_health_not_gated(self, client):
        res = client.get("/healthz")
        assert res.status_code == 200
        assert res.json() == {"ok": True, "devices": 0}
