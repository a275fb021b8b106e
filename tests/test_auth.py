"""
Tests for outbound SCIM authentication

Covers credential selection, the basic / client-id / OAuth2 auth objects
and session configuration for mTLS.
"""

import base64
from urllib.parse import parse_qs

import pytest
import requests

from scim_identity.errors import (
    AmbiguousAuthParamsError,
    AuthParamsMissingError,
    ClientIDRequiredError,
    ConfigurationError,
    ListGroupsError,
    UnexpectedStatusError,
)
from scim_identity.handlers.auth import (
    BasicCredentials,
    ClientIDQueryAuth,
    MTLSCredentials,
    OAuth2ClientCredentialsAuth,
    OAuth2Credentials,
    SCIMBasicAuth,
    configure_session,
    credentials_from_params,
    validate_credentials,
)
from scim_identity.models.filters import NULL_FILTER
from scim_identity.services.scim_client import SCIMClient
from tests.scim_payloads import LIST_GROUPS_RESPONSE


def prepared(url="https://idp.example.com/scim/Users/?filter=a"):
    return requests.Request("GET", url).prepare()


class TestCredentialSelection:
    """Test class for credentials_from_params"""

    def test_secret_selects_basic(self):
        creds = credentials_from_params("plugin", client_secret="s3cret")
        assert isinstance(creds, BasicCredentials)
        assert creds.client_secret == "s3cret"

    def test_cert_and_key_select_mtls(self):
        creds = credentials_from_params("plugin", cert_file="c.pem", key_file="c.key")
        assert isinstance(creds, MTLSCredentials)
        assert creds.client_id == "plugin"

    @pytest.mark.parametrize("cert_file,key_file", [("c.pem", "c.key"), ("c.pem", None), (None, "c.key")])
    def test_secret_and_certificate_rejected(self, cert_file, key_file):
        with pytest.raises(AmbiguousAuthParamsError, match="not both") as exc_info:
            credentials_from_params("plugin", client_secret="s3cret", cert_file=cert_file, key_file=key_file)

        assert isinstance(exc_info.value, ConfigurationError)

    def test_client_id_required(self):
        with pytest.raises(ClientIDRequiredError):
            credentials_from_params("", client_secret="s3cret")

    @pytest.mark.parametrize("cert_file,key_file", [(None, None), ("c.pem", None), (None, "c.key")])
    def test_nothing_usable(self, cert_file, key_file):
        with pytest.raises(AuthParamsMissingError, match="must provide client secret or TLS config"):
            credentials_from_params("plugin", cert_file=cert_file, key_file=key_file)

    def test_oauth2_requires_token_url(self):
        creds = OAuth2Credentials(client_id="plugin", client_secret="s3cret", token_url="")
        with pytest.raises(AuthParamsMissingError):
            validate_credentials(creds)

    def test_mtls_pair_loads(self, client_cert_pair):
        cert, key = client_cert_pair
        validate_credentials(MTLSCredentials(client_id="plugin", cert_file=cert, key_file=key))

    def test_mtls_requires_client_id(self, client_cert_pair):
        cert, key = client_cert_pair
        with pytest.raises(ClientIDRequiredError, match="client ID is required"):
            validate_credentials(MTLSCredentials(client_id="", cert_file=cert, key_file=key))


class TestAuthObjects:
    """Test class for requests auth objects"""

    def test_basic_header(self):
        request = SCIMBasicAuth("plugin", "s3cret")(prepared())
        expected = base64.b64encode(b"plugin:s3cret").decode()
        assert request.headers["Authorization"] == f"Basic {expected}"

    def test_client_id_query_appended(self):
        request = ClientIDQueryAuth("plugin")(prepared())
        query = parse_qs(request.url.split("?", 1)[1])
        assert query == {"filter": ["a"], "client_id": ["plugin"]}

    def test_mtls_session(self, client_cert_pair):
        cert, key = client_cert_pair
        session = requests.Session()

        auth = configure_session(
            session, MTLSCredentials(client_id="plugin", cert_file=cert, key_file=key, ca_file="/etc/ca.pem"),
        )

        assert isinstance(auth, ClientIDQueryAuth)
        assert auth.client_id == "plugin"
        assert session.cert == (cert, key)
        assert session.verify == "/etc/ca.pem"

    def test_unknown_credentials(self):
        with pytest.raises(AuthParamsMissingError):
            configure_session(requests.Session(), object())


class TestOAuth2:
    """Test class for the client-credentials grant against the mock server"""

    @pytest.fixture
    def oauth2_credentials(self, scim_server):
        return OAuth2Credentials(
            client_id="plugin",
            client_secret="s3cret",
            token_url=f"{scim_server.base_url}/oauth/token",
            scope="scim.read",
        )

    def test_token_requested_once_and_reused(self, scim_server, oauth2_credentials):
        scim_server.respond("POST", "/oauth/token", body={"access_token": "tok-1", "expires_in": 3600})
        scim_server.respond("GET", "/Groups/", body=LIST_GROUPS_RESPONSE)
        client = SCIMClient(scim_server.base_url, oauth2_credentials)

        client.list_groups(False, NULL_FILTER)
        client.list_groups(False, NULL_FILTER)

        token_requests = [r for r in scim_server.requests if r.path == "/oauth/token"]
        scim_requests = [r for r in scim_server.requests if r.path == "/Groups/"]
        assert len(token_requests) == 1
        assert [r.headers["Authorization"] for r in scim_requests] == ["Bearer tok-1", "Bearer tok-1"]

        form = parse_qs(token_requests[0].body.decode())
        assert form == {"grant_type": ["client_credentials"], "scope": ["scim.read"]}
        expected = base64.b64encode(b"plugin:s3cret").decode()
        assert token_requests[0].headers["Authorization"] == f"Basic {expected}"

    def test_expired_token_refreshed(self, scim_server, oauth2_credentials):
        scim_server.respond("POST", "/oauth/token", body={"access_token": "tok", "expires_in": 0})
        auth = OAuth2ClientCredentialsAuth(oauth2_credentials)

        auth.access_token()
        auth.access_token()

        assert len(scim_server.requests) == 2

    def test_token_endpoint_failure(self, scim_server, oauth2_credentials):
        scim_server.respond("POST", "/oauth/token", status=401, body={"error": "invalid_client"})
        client = SCIMClient(scim_server.base_url, oauth2_credentials)

        with pytest.raises(ListGroupsError) as exc_info:
            client.list_groups(False, NULL_FILTER)

        cause = exc_info.value.__cause__
        assert isinstance(cause, UnexpectedStatusError)
        assert cause.api_name == "OAuth2"
