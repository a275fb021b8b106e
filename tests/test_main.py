"""
Test file for the FastAPI RPC surface

Tests endpoint wiring and the mapping of plugin errors onto SCIM error
responses, using FastAPI's TestClient with the plugin dependency overridden.
"""

import pytest
from fastapi.testclient import TestClient

from scim_identity.main import app, get_plugin
from scim_identity.services.plugin import IdentityManagementPlugin
from tests.scim_payloads import (
    EMPTY_LIST_RESPONSE,
    GROUP_ID,
    LIST_GROUPS_RESPONSE,
    basic_auth_yaml,
    group,
    list_response,
    user,
)


@pytest.fixture
def plugin():
    return IdentityManagementPlugin(timeout=5.0)


@pytest.fixture
def client(plugin):
    app.dependency_overrides[get_plugin] = lambda: plugin
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def configured_client(client, scim_server):
    response = client.post("/v1/configure", json={"yamlConfiguration": basic_auth_yaml(scim_server.base_url)})
    assert response.status_code == 200
    return client


def assert_scim_error(response, status_code):
    assert response.status_code == status_code
    assert response.headers["content-type"].startswith("application/scim+json")
    body = response.json()
    assert body["schemas"] == ["urn:ietf:params:scim:api:messages:2.0:Error"]
    assert body["status"] == str(status_code)
    return body


class TestHealth:

    def test_unconfigured(self, client):
        response = client.get("/health")
        assert response.status_code == 503
        assert response.json()["status"] == "unconfigured"

    def test_configured(self, configured_client):
        response = configured_client.get("/health")
        assert response.status_code == 200
        assert response.json()["configured"] is True


class TestConfigureEndpoint:

    def test_success(self, client, scim_server):
        response = client.post("/v1/configure", json={"yamlConfiguration": basic_auth_yaml(scim_server.base_url)})
        assert response.status_code == 200
        assert response.json() == {"configured": True}

    def test_invalid_yaml(self, client):
        response = client.post("/v1/configure", json={"yamlConfiguration": "host: [broken"})
        body = assert_scim_error(response, 400)
        assert "failed to parse yaml configuration" in body["detail"]

    def test_missing_body_field(self, client):
        assert client.post("/v1/configure", json={}).status_code == 422


class TestGroupEndpoints:

    def test_unconfigured(self, client):
        body = assert_scim_error(client.post("/v1/get-group", json={"groupName": "KeyAdmin"}), 503)
        assert body["detail"] == "no scim client exists"

    def test_get_group(self, configured_client, scim_server):
        scim_server.respond("GET", "/Groups/", body=LIST_GROUPS_RESPONSE)

        response = configured_client.post("/v1/get-group", json={"groupName": "KeyAdmin"})

        assert response.status_code == 200
        assert response.json() == {"group": {"id": GROUP_ID, "name": "KeyAdmin"}}

    def test_get_group_not_found(self, configured_client, scim_server):
        scim_server.respond("GET", "/Groups/", body=EMPTY_LIST_RESPONSE)
        assert_scim_error(configured_client.post("/v1/get-group", json={"groupName": "Nobody"}), 404)

    def test_get_group_ambiguous(self, configured_client, scim_server):
        scim_server.respond("GET", "/Groups/", body=list_response(group("g1", "Dup"), group("g2", "Dup")))
        assert_scim_error(configured_client.post("/v1/get-group", json={"groupName": "Dup"}), 409)

    def test_get_group_blank_name(self, configured_client):
        assert_scim_error(configured_client.post("/v1/get-group", json={"groupName": ""}), 400)

    def test_upstream_failure(self, configured_client, scim_server):
        scim_server.respond("GET", "/Groups/", status=500, body={"detail": "down"})
        body = assert_scim_error(configured_client.post("/v1/get-group", json={"groupName": "KeyAdmin"}), 502)
        assert "error listing SCIM groups" in body["detail"]

    def test_get_all_groups(self, configured_client, scim_server):
        scim_server.respond("GET", "/Groups/", body=LIST_GROUPS_RESPONSE)

        response = configured_client.post("/v1/get-all-groups", json={})

        assert response.json() == {"groups": [{"id": GROUP_ID, "name": "KeyAdmin"}]}

    def test_get_groups_for_user(self, configured_client, scim_server):
        scim_server.respond("GET", "/Groups/", body=LIST_GROUPS_RESPONSE)

        response = configured_client.post("/v1/get-groups-for-user", json={"userId": "u-1"})

        assert response.json()["groups"][0]["name"] == "KeyAdmin"
        assert scim_server.requests[0].query == {"filter": 'groups.display eq "u-1"'}


class TestUsersEndpoint:

    def test_get_users_for_group(self, configured_client, scim_server):
        scim_server.respond("GET", f"/Groups/{GROUP_ID}", body=group(GROUP_ID, "KeyAdmin", ["m-1"]))
        scim_server.respond("GET", "/Users/m-1", body=user(
            "m-1", "jdoe", display_name="Jane Doe", emails=[{"value": "jane@example.com"}],
        ))

        response = configured_client.post("/v1/get-users-for-group", json={"groupId": GROUP_ID})

        assert response.status_code == 200
        assert response.json() == {"users": [{"id": "m-1", "name": "Jane Doe", "email": "jane@example.com"}]}

    def test_auth_context_missing_host(self, client, scim_server):
        client.post("/v1/configure", json={"yamlConfiguration": basic_auth_yaml(
            scim_server.base_url, auth_context={"hostField": "issuer"},
        )})

        response = client.post("/v1/get-users-for-group", json={"groupId": GROUP_ID, "authContext": {"x": "y"}})

        assert_scim_error(response, 400)


class TestStartup:

    def test_config_file_applied(self, scim_server, tmp_path, monkeypatch):
        config_file = tmp_path / "plugin.yaml"
        config_file.write_text(basic_auth_yaml(scim_server.base_url))
        monkeypatch.setenv("SCIM_PLUGIN_CONFIG_FILE", str(config_file))
        monkeypatch.setattr("scim_identity.config.settings", None)
        monkeypatch.setattr("scim_identity.main.plugin", None)

        with TestClient(app) as client:
            response = client.get("/health")

        assert response.status_code == 200
