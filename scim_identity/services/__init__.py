"""
SCIM Identity Services

SCIM request building, the SCIM client, membership resolution strategies and
the identity management plugin.
"""

from .plugin import IdentityManagementPlugin
from .request_builder import build_list_request, build_query_string, build_search_body
from .resolution import (
    DirectSearchResolver,
    MembershipResolver,
    MembershipTraversalResolver,
    ResolutionParams,
    select_membership_resolver,
)
from .scim_client import RequestContext, SCIMClient

__all__ = [
    "IdentityManagementPlugin",
    "build_list_request",
    "build_query_string",
    "build_search_body",
    "DirectSearchResolver",
    "MembershipResolver",
    "MembershipTraversalResolver",
    "ResolutionParams",
    "select_membership_resolver",
    "RequestContext",
    "SCIMClient",
]
