"""
Group Membership Resolution

Two ways of answering "which users belong to this group", chosen once at
configure time:

- ``DirectSearchResolver``: one user search filtered on a group-membership
  attribute of the user resource (``groups.value eq "<group id>"``).
- ``MembershipTraversalResolver``: for SCIM servers without a queryable
  membership attribute; fetch the group, then fetch each member by id.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from ..errors import GetUserError
from ..models.filters import equality_filter
from ..models.scim_resources import User
from .request_builder import METHOD_GET, METHOD_POST
from .scim_client import RequestContext, SCIMClient

DEFAULT_GROUP_ATTRIBUTE = "displayName"
DEFAULT_USER_ATTRIBUTE = "groups.display"
DEFAULT_GROUP_MEMBERS_ATTRIBUTE = "groups.value"
DEFAULT_LIST_METHOD = METHOD_GET

LIST_METHODS = (METHOD_GET, METHOD_POST)


@dataclass(frozen=True)
class ResolutionParams:
    """
    Deployment-specific SCIM attribute names and request shape.

    Attributes:
        group_attribute: Group attribute matched by group name
        user_attribute: Group attribute matched by user id
        group_members_attribute: User attribute matched by group id (direct search)
        list_method: ``GET`` (query string) or ``POST`` (``.search`` body)
        allow_search_users_by_group: Use direct search instead of traversal
    """

    group_attribute: str = DEFAULT_GROUP_ATTRIBUTE
    user_attribute: str = DEFAULT_USER_ATTRIBUTE
    group_members_attribute: str = DEFAULT_GROUP_MEMBERS_ATTRIBUTE
    list_method: str = DEFAULT_LIST_METHOD
    allow_search_users_by_group: bool = False

    @property
    def use_http_post(self) -> bool:
        return self.list_method == METHOD_POST


class MembershipResolver(ABC):
    """Strategy for enumerating the users of a group."""

    @abstractmethod
    def users_for_group(
        self,
        client: SCIMClient,
        group_id: str,
        context: Optional[RequestContext] = None,
    ) -> List[User]:
        """Return the member users of ``group_id``; any SCIM failure propagates."""


class DirectSearchResolver(MembershipResolver):
    def __init__(self, params: ResolutionParams):
        self.params = params

    def users_for_group(self, client, group_id, context=None):
        filter = equality_filter(DEFAULT_GROUP_MEMBERS_ATTRIBUTE, group_id, self.params.group_members_attribute)
        users = client.list_users(self.params.use_http_post, filter, context=context)
        return users.Resources


class MembershipTraversalResolver(MembershipResolver):
    """
    Fetch the group, then ``GET /Users/{id}`` for each member.

    One round-trip per member, in member order. The first failing lookup
    aborts the whole resolution; no partial list is returned. A member
    without a value fails the resolution before any user is fetched.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def users_for_group(self, client, group_id, context=None):
        group = client.get_group(group_id, context=context)
        self.logger.debug(f"Resolving {len(group.members)} members of group {group_id}")

        if any(not member.value for member in group.members):
            raise GetUserError(f"group {group_id} has a member without a value")

        return [client.get_user(member.value, context=context) for member in group.members]


def select_membership_resolver(
    params: ResolutionParams,
    logger: Optional[logging.Logger] = None,
) -> MembershipResolver:
    if params.allow_search_users_by_group:
        return DirectSearchResolver(params)
    return MembershipTraversalResolver(logger=logger)
