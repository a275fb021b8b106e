"""
Identity Management Plugin

Maps the plugin host's identity operations onto SCIM client calls:

- ``configure``: parse YAML, build the SCIM client and resolution strategy
- ``get_group``: exactly one group by name
- ``get_all_groups``: every group
- ``get_users_for_group``: members of a group (direct search or traversal)
- ``get_groups_for_user``: groups a user belongs to

Until ``configure`` succeeds every operation raises ``NoSCIMClientError``.
"""

import logging
from dataclasses import dataclass
from typing import List, Mapping, Optional

from ..config import (
    AuthConfig,
    AuthContextConfig,
    ParamsConfig,
    PluginConfig,
    load_plugin_config,
    parse_bool,
    resolve_value,
)
from ..errors import (
    AuthContextError,
    AuthParamsMissingError,
    ConfigurationError,
    GetAllGroupsError,
    GetGroupsForUserError,
    GetUsersForGroupError,
    GroupNotFoundError,
    MultipleGroupsError,
    NoFilterIDError,
    NoSCIMClientError,
    PluginGetGroupError,
    SCIMClientError,
    wrap,
)
from ..handlers.auth import (
    MTLSCredentials,
    OAuth2Credentials,
    SCIMCredentials,
    credentials_from_params,
)
from ..models.filters import ALL_RESOURCES_FILTER, equality_filter, is_null_filter
from ..models.identity import IdentityGroup, IdentityUser, project_group, project_groups, project_users
from .resolution import (
    DEFAULT_GROUP_ATTRIBUTE,
    DEFAULT_GROUP_MEMBERS_ATTRIBUTE,
    DEFAULT_LIST_METHOD,
    DEFAULT_USER_ATTRIBUTE,
    LIST_METHODS,
    MembershipResolver,
    ResolutionParams,
    select_membership_resolver,
)
from .scim_client import DEFAULT_TIMEOUT_SECONDS, RequestContext, SCIMClient


def build_credentials(auth: AuthConfig) -> SCIMCredentials:
    """
    Resolve the auth section of the plugin config into one credential shape.

    Raises:
        ClientIDRequiredError: auth section without a client id
        AuthParamsMissingError: the section for ``auth.type`` is missing or incomplete
        SecretResolutionError: a referenced secret cannot be loaded
    """
    if auth.type == "basic":
        if auth.basic is None:
            raise AuthParamsMissingError("auth type basic requires a basic section")
        return credentials_from_params(
            resolve_value(auth.basic.clientID, ""),
            client_secret=resolve_value(auth.basic.clientSecret),
        )

    if auth.type == "mtls":
        if auth.mtls is None:
            raise AuthParamsMissingError("auth type mtls requires an mtls section")
        return MTLSCredentials(
            client_id=resolve_value(auth.mtls.clientID, ""),
            cert_file=resolve_value(auth.mtls.cert),
            key_file=resolve_value(auth.mtls.certKey),
            ca_file=resolve_value(auth.mtls.serverCA),
        )

    if auth.oauth2 is None:
        raise AuthParamsMissingError("auth type oauth2 requires an oauth2 section")
    return OAuth2Credentials(
        client_id=resolve_value(auth.oauth2.clientID, ""),
        client_secret=resolve_value(auth.oauth2.clientSecret, ""),
        token_url=resolve_value(auth.oauth2.tokenURL, ""),
        scope=resolve_value(auth.oauth2.scope),
    )


def build_params(params: ParamsConfig) -> ResolutionParams:
    """
    Resolve the params section, applying defaults for unset values.

    Raises:
        ConfigurationError: unknown list method or malformed boolean
    """
    list_method = resolve_value(params.listMethod, DEFAULT_LIST_METHOD).strip().upper() or DEFAULT_LIST_METHOD
    if list_method not in LIST_METHODS:
        raise ConfigurationError(f"invalid listMethod {list_method!r}: must be one of {', '.join(LIST_METHODS)}")

    return ResolutionParams(
        group_attribute=resolve_value(params.groupAttribute) or DEFAULT_GROUP_ATTRIBUTE,
        user_attribute=resolve_value(params.userAttribute) or DEFAULT_USER_ATTRIBUTE,
        group_members_attribute=resolve_value(params.groupMembersAttribute) or DEFAULT_GROUP_MEMBERS_ATTRIBUTE,
        list_method=list_method,
        allow_search_users_by_group=parse_bool(
            resolve_value(params.allowSearchUsersByGroup),
            "allowSearchUsersByGroup",
        ),
    )


@dataclass(frozen=True)
class PluginState:
    """Everything one successful ``configure`` produces, swapped in as a unit."""

    scim_client: SCIMClient
    params: ResolutionParams
    membership_resolver: MembershipResolver
    auth_context_config: Optional[AuthContextConfig] = None


class IdentityManagementPlugin:
    """
    SCIM-backed identity management plugin.

    State: unconfigured until ``configure`` succeeds, then serving. A failed
    ``configure`` leaves the previous state untouched. Each operation reads
    the current ``PluginState`` once, so a concurrent reconfigure never mixes
    old and new settings within one call.

    Example usage:
        plugin = IdentityManagementPlugin()
        plugin.configure(yaml_text)

        group = plugin.get_group("KeyAdmin")
        users = plugin.get_users_for_group(group.id)
    """

    def __init__(self, logger: Optional[logging.Logger] = None, timeout: float = DEFAULT_TIMEOUT_SECONDS):
        self.logger = logger or logging.getLogger(__name__)
        self.timeout = timeout

        self._state: Optional[PluginState] = None

    @property
    def state(self) -> Optional[PluginState]:
        return self._state

    @property
    def configured(self) -> bool:
        return self._state is not None

    @property
    def scim_client(self) -> Optional[SCIMClient]:
        return self._state.scim_client if self._state else None

    @property
    def params(self) -> ResolutionParams:
        return self._state.params if self._state else ResolutionParams()

    @property
    def membership_resolver(self) -> Optional[MembershipResolver]:
        return self._state.membership_resolver if self._state else None

    def configure(self, yaml_text: str) -> None:
        """
        Apply a YAML configuration.

        Raises:
            ConfigurationError: bad YAML, unresolvable reference, invalid auth
                combination or malformed param
        """
        self.logger.info("Configuring plugin")

        cfg: PluginConfig = load_plugin_config(yaml_text)

        host = resolve_value(cfg.host, "").strip()
        if not host:
            raise ConfigurationError("SCIM host is required")

        credentials = build_credentials(cfg.auth)
        params = build_params(cfg.params)
        client = SCIMClient(host, credentials, timeout=self.timeout, logger=self.logger)
        resolver = select_membership_resolver(params, logger=self.logger)

        # In-flight calls keep using the previous state and its session
        self._state = PluginState(
            scim_client=client,
            params=params,
            membership_resolver=resolver,
            auth_context_config=cfg.authContext,
        )

        self.logger.info(
            f"Plugin configured: host={host}, auth={cfg.auth.type}, "
            f"listMethod={params.list_method}, resolver={type(resolver).__name__}"
        )

    # -- Operations ----------------------------------------------------------

    def get_group(self, group_name: str, auth_context: Optional[Mapping[str, str]] = None) -> IdentityGroup:
        """
        Look up exactly one group by name.

        Raises:
            NoSCIMClientError: plugin not configured
            PluginGetGroupError: blank name or SCIM failure
            GroupNotFoundError: no group matches
            MultipleGroupsError: more than one group matches
        """
        state = self._require_state()

        filter = equality_filter(DEFAULT_GROUP_ATTRIBUTE, group_name, state.params.group_attribute)
        if is_null_filter(filter):
            raise wrap(PluginGetGroupError(), NoFilterIDError())

        try:
            groups = state.scim_client.list_groups(
                state.params.use_http_post, filter, context=self._request_context(state, auth_context)
            ).Resources
        except SCIMClientError as e:
            raise wrap(PluginGetGroupError(), e)

        if not groups:
            raise GroupNotFoundError(f"group does not exist: {group_name}")
        if len(groups) > 1:
            raise MultipleGroupsError(f"multiple groups found for name: {group_name}")

        return project_group(groups[0])

    def get_all_groups(self, auth_context: Optional[Mapping[str, str]] = None) -> List[IdentityGroup]:
        state = self._require_state()

        try:
            groups = state.scim_client.list_groups(
                state.params.use_http_post, ALL_RESOURCES_FILTER, context=self._request_context(state, auth_context)
            )
        except SCIMClientError as e:
            raise wrap(GetAllGroupsError(), e)

        return project_groups(groups.Resources)

    def get_groups_for_user(self, user_id: str, auth_context: Optional[Mapping[str, str]] = None) -> List[IdentityGroup]:
        """
        Groups whose configured membership attribute equals ``user_id``.

        A blank id fails before any request is sent.
        """
        state = self._require_state()

        filter = equality_filter(DEFAULT_USER_ATTRIBUTE, user_id, state.params.user_attribute)
        if is_null_filter(filter):
            raise wrap(GetGroupsForUserError(), NoFilterIDError())

        try:
            groups = state.scim_client.list_groups(
                state.params.use_http_post, filter, context=self._request_context(state, auth_context)
            )
        except SCIMClientError as e:
            raise wrap(GetGroupsForUserError(), e)

        return project_groups(groups.Resources)

    def get_users_for_group(self, group_id: str, auth_context: Optional[Mapping[str, str]] = None) -> List[IdentityUser]:
        """
        Member users of ``group_id`` using the configured resolution strategy.

        All-or-nothing: any failed SCIM call fails the whole operation.
        """
        state = self._require_state()

        if not group_id or not group_id.strip():
            raise wrap(GetUsersForGroupError(), NoFilterIDError())

        try:
            users = state.membership_resolver.users_for_group(
                state.scim_client, group_id, context=self._request_context(state, auth_context)
            )
        except SCIMClientError as e:
            raise wrap(GetUsersForGroupError(), e)

        return project_users(users)

    # -- Internals -----------------------------------------------------------

    def _require_state(self) -> PluginState:
        state = self._state
        if state is None:
            raise NoSCIMClientError()
        return state

    @staticmethod
    def _request_context(
        state: PluginState, auth_context: Optional[Mapping[str, str]]
    ) -> Optional[RequestContext]:
        """Translate the caller's auth context into a per-request host/header override."""
        cfg = state.auth_context_config
        if cfg is None or not auth_context:
            return None

        host = auth_context.get(cfg.hostField)
        if not host:
            raise AuthContextError(f"auth context is missing host field {cfg.hostField!r}")

        headers = {
            header: auth_context[key]
            for header, key in cfg.headerFields.items()
            if key in auth_context
        }

        return RequestContext(host=host.rstrip("/") + cfg.basePath, headers=headers)
