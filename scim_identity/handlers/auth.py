"""
Outbound authentication for SCIM requests.

The SCIM client authenticates with exactly one of three credential shapes:

- ``BasicCredentials``: ``Authorization: Basic base64(client_id:client_secret)``
- ``MTLSCredentials``: client certificate presented at the TLS layer, with the
  client id sent as a ``client_id`` query parameter
- ``OAuth2Credentials``: client-credentials grant, bearer token per request

Credentials are validated when the client is built; anything that does not
match exactly one recognised shape is rejected.
"""

import base64
import logging
import ssl
import threading
import time
from typing import Literal, Optional, Tuple, Union

import requests
from pydantic import BaseModel, ConfigDict
from requests.auth import AuthBase, HTTPBasicAuth

from ..errors import (
    AmbiguousAuthParamsError,
    AuthParamsMissingError,
    ClientCertificateError,
    ClientIDRequiredError,
    wrap,
)
from ..httpclient import close_response, decode_response

logger = logging.getLogger(__name__)

HEADER_AUTHORIZATION = "Authorization"
CLIENT_ID_QUERY_PARAM = "client_id"

# Refresh OAuth2 tokens slightly before the server-side expiry
TOKEN_EXPIRY_SKEW_SECONDS = 30


class _Credentials(BaseModel):
    model_config = ConfigDict(frozen=True)

    client_id: str


class BasicCredentials(_Credentials):
    kind: Literal["basic"] = "basic"
    client_secret: str


class MTLSCredentials(_Credentials):
    kind: Literal["mtls"] = "mtls"
    cert_file: str
    key_file: str
    ca_file: Optional[str] = None


class OAuth2Credentials(_Credentials):
    kind: Literal["oauth2"] = "oauth2"
    client_secret: str
    token_url: str
    scope: Optional[str] = None


SCIMCredentials = Union[BasicCredentials, MTLSCredentials, OAuth2Credentials]


def credentials_from_params(
    client_id: str,
    client_secret: Optional[str] = None,
    cert_file: Optional[str] = None,
    key_file: Optional[str] = None,
    ca_file: Optional[str] = None,
) -> SCIMCredentials:
    """
    Pick basic or mTLS credentials from flat parameters.

    A client secret selects basic auth, a certificate and key select mTLS.
    Supplying both is ambiguous and rejected.

    Raises:
        ClientIDRequiredError: client id is empty
        AuthParamsMissingError: neither a secret nor a certificate/key pair
        AmbiguousAuthParamsError: both a secret and a certificate/key pair
    """
    if not client_id:
        raise ClientIDRequiredError()

    has_certificate = bool(cert_file or key_file)
    if client_secret and has_certificate:
        raise AmbiguousAuthParamsError()

    if client_secret:
        return BasicCredentials(client_id=client_id, client_secret=client_secret)

    if cert_file and key_file:
        return MTLSCredentials(
            client_id=client_id,
            cert_file=cert_file,
            key_file=key_file,
            ca_file=ca_file,
        )

    raise AuthParamsMissingError()


def validate_credentials(credentials: SCIMCredentials) -> None:
    """
    Reject credentials that do not form one complete, loadable shape.

    Raises:
        ClientIDRequiredError: client id is empty
        AuthParamsMissingError: unknown shape or missing secret/token URL
        ClientCertificateError: certificate/key pair cannot be loaded
    """
    if isinstance(credentials, BasicCredentials):
        if not credentials.client_id:
            raise ClientIDRequiredError()
        if not credentials.client_secret:
            raise AuthParamsMissingError()
    elif isinstance(credentials, MTLSCredentials):
        if not credentials.client_id:
            raise ClientIDRequiredError()
        load_client_certificate(credentials.cert_file, credentials.key_file)
    elif isinstance(credentials, OAuth2Credentials):
        if not credentials.client_id:
            raise ClientIDRequiredError()
        if not credentials.client_secret or not credentials.token_url:
            raise AuthParamsMissingError("OAuth2 auth requires a client secret and a token URL")
    else:
        raise AuthParamsMissingError()


def load_client_certificate(cert_file: str, key_file: str) -> Tuple[str, str]:
    """Check that the certificate and key parse as a matching pair."""
    context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
    try:
        context.load_cert_chain(certfile=cert_file, keyfile=key_file)
    except (OSError, ssl.SSLError) as e:
        raise wrap(ClientCertificateError("failed to parse client certificate x509 pair"), e)

    return cert_file, key_file


class SCIMBasicAuth(AuthBase):
    """Sets the Basic authorization header explicitly from client id and secret."""

    def __init__(self, client_id: str, client_secret: str):
        self.client_id = client_id
        self.client_secret = client_secret

    def __call__(self, request: requests.PreparedRequest) -> requests.PreparedRequest:
        # Padded standard base64 as RFC 7617 specifies
        token = base64.b64encode(f"{self.client_id}:{self.client_secret}".encode("utf-8")).decode("ascii")
        request.headers[HEADER_AUTHORIZATION] = f"Basic {token}"
        return request


class ClientIDQueryAuth(AuthBase):
    """Appends ``client_id`` to the query string (certificate-based hybrid setups)."""

    def __init__(self, client_id: str):
        self.client_id = client_id

    def __call__(self, request: requests.PreparedRequest) -> requests.PreparedRequest:
        request.prepare_url(request.url, {CLIENT_ID_QUERY_PARAM: self.client_id})
        return request


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "Bearer"
    expires_in: Optional[int] = None


class OAuth2ClientCredentialsAuth(AuthBase):
    """
    Bearer auth backed by the OAuth2 client-credentials grant.

    The token is requested on first use and reused until shortly before it
    expires. The cache is the only mutable state of a SCIM client and is
    guarded by a lock.
    """

    def __init__(
        self,
        credentials: OAuth2Credentials,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
        log: Optional[logging.Logger] = None,
    ):
        self.credentials = credentials
        self.session = session or requests.Session()
        self.timeout = timeout
        self.logger = log or logger
        self._lock = threading.Lock()
        self._token: Optional[str] = None
        self._expires_at: Optional[float] = None

    def __call__(self, request: requests.PreparedRequest) -> requests.PreparedRequest:
        request.headers[HEADER_AUTHORIZATION] = f"Bearer {self.access_token()}"
        return request

    def access_token(self) -> str:
        with self._lock:
            if self._token is None or self._is_expired():
                self._token, self._expires_at = self._fetch_token()
            return self._token

    def _is_expired(self) -> bool:
        return self._expires_at is not None and time.monotonic() >= self._expires_at

    def _fetch_token(self) -> Tuple[str, Optional[float]]:
        data = {"grant_type": "client_credentials"}
        if self.credentials.scope:
            data["scope"] = self.credentials.scope

        self.logger.debug(f"Requesting OAuth2 token from {self.credentials.token_url}")
        response = self.session.post(
            self.credentials.token_url,
            data=data,
            auth=HTTPBasicAuth(self.credentials.client_id, self.credentials.client_secret),
            headers={"Accept": "application/json"},
            timeout=self.timeout,
        )
        try:
            token = decode_response(response, TokenResponse, 200, api_name="OAuth2")
        finally:
            close_response(response, "OAuth2 token", self.logger)

        expires_at = None
        if token.expires_in is not None:
            expires_at = time.monotonic() + max(token.expires_in - TOKEN_EXPIRY_SKEW_SECONDS, 0)

        return token.access_token, expires_at


def configure_session(
    session: requests.Session,
    credentials: SCIMCredentials,
    timeout: float = 30.0,
    log: Optional[logging.Logger] = None,
) -> Optional[AuthBase]:
    """
    Attach transport-level material to ``session`` and return the per-request auth.
    """
    if isinstance(credentials, BasicCredentials):
        return SCIMBasicAuth(credentials.client_id, credentials.client_secret)

    if isinstance(credentials, MTLSCredentials):
        session.cert = (credentials.cert_file, credentials.key_file)
        if credentials.ca_file:
            session.verify = credentials.ca_file
        return ClientIDQueryAuth(credentials.client_id)

    if isinstance(credentials, OAuth2Credentials):
        return OAuth2ClientCredentialsAuth(credentials, session=session, timeout=timeout, log=log)

    raise AuthParamsMissingError()
