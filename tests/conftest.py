from pathlib import Path

import pytest

from scim_identity.handlers.auth import BasicCredentials
from scim_identity.services.scim_client import SCIMClient
from tests.mock_scim_server import MockSCIMServer


@pytest.fixture
def scim_server():
    """Running mock SCIM server, shut down after the test."""
    with MockSCIMServer() as server:
        yield server


@pytest.fixture
def basic_credentials():
    return BasicCredentials(client_id="identity-plugin", client_secret="s3cret")


@pytest.fixture
def scim_client(scim_server, basic_credentials):
    client = SCIMClient(scim_server.base_url, basic_credentials, timeout=5.0)
    yield client
    client.close()


FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def client_cert_pair():
    """Self-signed certificate and matching key (PEM paths)."""
    return str(FIXTURES_DIR / "client.pem"), str(FIXTURES_DIR / "client.key")
