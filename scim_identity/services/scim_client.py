"""
SCIM Client Service

Read-only SCIM 2.0 client for looking up users and groups in an external
identity provider. Owns the HTTP session and the outbound authentication
material, and exposes GetUser / ListUsers / GetGroup / ListGroups.

Every failure is raised as the operation's error class (``GetUserError``,
``ListUsersError``, ``GetGroupError``, ``ListGroupsError``) with the
transport, builder or decode error chained as its cause.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Type

import requests

from ..errors import (
    GetGroupError,
    GetUserError,
    HTTPDecodeError,
    ListGroupsError,
    ListUsersError,
    SCIMClientError,
    wrap,
)
from ..handlers.auth import SCIMCredentials, configure_session, validate_credentials
from ..httpclient import close_response, decode_response
from ..models.filters import FilterExpression
from ..models.scim_resources import Group, GroupList, User, UserList
from .request_builder import build_list_request


APPLICATION_SCIM_JSON = "application/scim+json"

BASE_PATH_USERS = "/Users"
BASE_PATH_GROUPS = "/Groups"

WRITE_METHODS = {"POST", "PUT", "PATCH"}

DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class RequestContext:
    """
    Per-call request settings.

    Attributes:
        timeout: Overrides the client timeout for this call (seconds)
        host: Overrides the SCIM base host for this call
        headers: Extra headers sent with this call
    """

    timeout: Optional[float] = None
    host: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)


class SCIMClient:
    """
    HTTP client for a SCIM 2.0 identity provider.

    The client is immutable after construction and safe to share between
    concurrent callers. Rebuild it when configuration changes.

    Example usage:
        client = SCIMClient(
            "https://idp.example.com/scim",
            BasicCredentials(client_id="plugin", client_secret="s3cret"),
        )
        user = client.get_user("aaaaaaaa-bbbb-cccc-dddd-eeeeeeeeeeee")
        groups = client.list_groups(
            True,
            FilterComparison(attribute="displayName", operator=FilterOperator.EQUAL, value="KeyAdmin"),
        )
    """

    def __init__(
        self,
        host: str,
        auth: SCIMCredentials,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        verify: bool = True,
        logger: Optional[logging.Logger] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the SCIM client.

        Args:
            host: SCIM base URL, e.g. ``https://idp.example.com/scim``
            auth: Basic, mTLS or OAuth2 credentials
            timeout: Default per-request timeout in seconds
            verify: Verify the server's TLS certificate
            logger: Logger used for diagnostics
            session: Pre-built requests session (tests)

        Raises:
            ClientIDRequiredError: client id is empty
            AuthParamsMissingError: credentials do not match a recognised shape
            ClientCertificateError: mTLS certificate/key cannot be loaded
        """
        validate_credentials(auth)

        self.host = host.rstrip("/")
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

        self.session = session or requests.Session()
        self.session.verify = verify
        self._auth = configure_session(self.session, auth, timeout=timeout, log=self.logger)

    # -- Public API ----------------------------------------------------------

    def get_user(self, user_id: str, context: Optional[RequestContext] = None) -> User:
        """Retrieve a SCIM user by id (``GET {host}/Users/{id}``)."""
        return self._get_resource(f"{BASE_PATH_USERS}/{user_id}", User, GetUserError, "GetUser", context)

    def list_users(
        self,
        use_http_post: bool,
        filter: Optional[FilterExpression],
        cursor: Optional[str] = None,
        count: Optional[int] = None,
        context: Optional[RequestContext] = None,
    ) -> UserList:
        """
        List SCIM users.

        Supports filtering and cursor/count pagination. ``use_http_post`` sends a
        SearchRequest to ``/Users/.search`` instead of a GET with a query string.
        """
        return self._list_resources(
            BASE_PATH_USERS, UserList, ListUsersError, "ListUsers",
            use_http_post, filter, cursor, count, context,
        )

    def get_group(self, group_id: str, context: Optional[RequestContext] = None) -> Group:
        """Retrieve a SCIM group by id (``GET {host}/Groups/{id}``)."""
        return self._get_resource(f"{BASE_PATH_GROUPS}/{group_id}", Group, GetGroupError, "GetGroup", context)

    def list_groups(
        self,
        use_http_post: bool,
        filter: Optional[FilterExpression],
        cursor: Optional[str] = None,
        count: Optional[int] = None,
        context: Optional[RequestContext] = None,
    ) -> GroupList:
        """
        List SCIM groups.

        Same request shapes as ``list_users`` against ``/Groups``.
        """
        return self._list_resources(
            BASE_PATH_GROUPS, GroupList, ListGroupsError, "ListGroups",
            use_http_post, filter, cursor, count, context,
        )

    def close(self) -> None:
        self.session.close()

    # -- Internals -----------------------------------------------------------

    def _get_resource(self, resource_path, model, error_type: Type[SCIMClientError], operation, context):
        response = None
        try:
            response = self._make_api_request("GET", resource_path, context=context)
            return decode_response(response, model, 200, api_name="SCIM")
        except (requests.RequestException, HTTPDecodeError) as e:
            raise wrap(error_type(), e)
        finally:
            close_response(response, operation, self.logger)

    def _list_resources(
        self, base_path, model, error_type: Type[SCIMClientError], operation,
        use_http_post, filter, cursor, count, context,
    ):
        response = None
        try:
            list_request = build_list_request(use_http_post, filter, cursor=cursor, count=count)
            response = self._make_api_request(
                list_request.method,
                f"{base_path}/{list_request.path_suffix}",
                query_string=list_request.query_string,
                body=list_request.body,
                context=context,
            )
            return decode_response(response, model, 200, api_name="SCIM")
        except (requests.RequestException, HTTPDecodeError, SCIMClientError) as e:
            raise wrap(error_type(), e)
        finally:
            close_response(response, operation, self.logger)

    def _build_headers(self, method: str, context: Optional[RequestContext]) -> Dict[str, str]:
        headers = {"Accept": APPLICATION_SCIM_JSON}
        if method in WRITE_METHODS:
            headers["Content-Type"] = APPLICATION_SCIM_JSON
        if context is not None:
            headers.update(context.headers)
        return headers

    def _make_api_request(
        self,
        method: str,
        resource_path: str,
        query_string: str = "",
        body: Optional[bytes] = None,
        context: Optional[RequestContext] = None,
    ) -> requests.Response:
        host = self.host
        timeout = self.timeout
        if context is not None:
            if context.host:
                host = context.host.rstrip("/")
            if context.timeout is not None:
                timeout = context.timeout

        url = f"{host}{resource_path}"
        if query_string:
            url = f"{url}?{query_string}"

        self.logger.debug(f"SCIM request: {method} {url}")

        return self.session.request(
            method,
            url,
            data=body,
            headers=self._build_headers(method, context),
            auth=self._auth,
            timeout=timeout,
        )
