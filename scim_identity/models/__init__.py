"""
SCIM Identity Models Package

Pydantic models for SCIM 2.0 resources, filter expressions and the
host-facing identity shapes.
"""

from .filters import (
    ALL_RESOURCES_FILTER,
    NULL_FILTER,
    FilterAnd,
    FilterComparison,
    FilterExpression,
    FilterKind,
    FilterNot,
    FilterOperator,
    FilterOr,
    NullFilter,
    equality_filter,
    is_null_filter,
)
from .identity import (
    AuthContextRequest,
    ConfigureRequest,
    GetAllGroupsRequest,
    GetGroupRequest,
    GetGroupsForUserRequest,
    GetUsersForGroupRequest,
    GroupResponse,
    GroupsResponse,
    IdentityGroup,
    IdentityUser,
    UsersResponse,
    primary_email,
    project_group,
    project_groups,
    project_user,
    project_users,
)
from .scim_resources import (
    SCIM_ERROR_SCHEMA,
    SCIM_GROUP_SCHEMA,
    SCIM_LIST_RESPONSE_SCHEMA,
    SCIM_SEARCH_REQUEST_SCHEMA,
    SCIM_USER_SCHEMA,
    Group,
    GroupList,
    MultiValuedAttribute,
    SCIMError,
    SearchRequest,
    User,
    UserList,
)

__all__ = [
    "ALL_RESOURCES_FILTER",
    "NULL_FILTER",
    "FilterAnd",
    "FilterComparison",
    "FilterExpression",
    "FilterKind",
    "FilterNot",
    "FilterOperator",
    "FilterOr",
    "NullFilter",
    "equality_filter",
    "is_null_filter",
    "AuthContextRequest",
    "ConfigureRequest",
    "GetAllGroupsRequest",
    "GetGroupRequest",
    "GetGroupsForUserRequest",
    "GetUsersForGroupRequest",
    "GroupResponse",
    "GroupsResponse",
    "IdentityGroup",
    "IdentityUser",
    "UsersResponse",
    "primary_email",
    "project_group",
    "project_groups",
    "project_user",
    "project_users",
    "SCIM_ERROR_SCHEMA",
    "SCIM_GROUP_SCHEMA",
    "SCIM_LIST_RESPONSE_SCHEMA",
    "SCIM_SEARCH_REQUEST_SCHEMA",
    "SCIM_USER_SCHEMA",
    "Group",
    "GroupList",
    "MultiValuedAttribute",
    "SCIMError",
    "SearchRequest",
    "User",
    "UserList",
]
