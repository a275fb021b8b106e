"""
SCIM 2.0 Resource Models

Pydantic models for the SCIM 2.0 User and Group resources (RFC 7643) and the
list/search envelopes (RFC 7644) consumed from an external identity provider.
Only the attributes the plugin reads are modelled; provider extensions,
``meta`` and ``name`` are ignored on decode.
"""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


# SCIM 2.0 Schema URNs
SCIM_USER_SCHEMA = "urn:ietf:params:scim:schemas:core:2.0:User"
SCIM_GROUP_SCHEMA = "urn:ietf:params:scim:schemas:core:2.0:Group"
SCIM_LIST_RESPONSE_SCHEMA = "urn:ietf:params:scim:api:messages:2.0:ListResponse"
SCIM_SEARCH_REQUEST_SCHEMA = "urn:ietf:params:scim:api:messages:2.0:SearchRequest"
SCIM_ERROR_SCHEMA = "urn:ietf:params:scim:api:messages:2.0:Error"


def _none_to_empty_list(value):
    return [] if value is None else value


class MultiValuedAttribute(BaseModel):
    """
    Entry of a SCIM multi-valued attribute.

    Used uniformly for user emails, user group memberships and group members.
    """
    primary: bool = False
    display: Optional[str] = None
    value: str = ""

    @field_validator("primary", mode="before")
    @classmethod
    def _null_primary(cls, value):
        return False if value is None else value


class BaseResource(BaseModel):
    id: str = ""
    externalId: Optional[str] = None
    schemas: List[str] = Field(default_factory=list)

    @field_validator("schemas", mode="before")
    @classmethod
    def _null_schemas(cls, value):
        return _none_to_empty_list(value)


class User(BaseResource):
    """
    SCIM 2.0 User Resource

    ``emails`` may be empty; see ``primary_email`` in ``models.identity`` for
    how a single address is picked.
    """
    userName: str = ""
    displayName: Optional[str] = None
    active: bool = False
    emails: List[MultiValuedAttribute] = Field(default_factory=list)
    groups: List[MultiValuedAttribute] = Field(default_factory=list)
    userType: Optional[str] = None

    @field_validator("emails", "groups", mode="before")
    @classmethod
    def _null_lists(cls, value):
        return _none_to_empty_list(value)

    class Config:
        json_schema_extra = {
            "example": {
                "schemas": [SCIM_USER_SCHEMA],
                "id": "aaaaaaaa-bbbb-cccc-dddd-eeeeeeeeeeee",
                "userName": "cloudanalyst",
                "displayName": "Cloud Analyst",
                "active": True,
                "emails": [{"value": "cloud.analyst@example.com", "primary": True}],
                "groups": [{"value": "16e720aa-a009-4949-9bf9-aaaaaaaaaaaa", "display": "KeyAdmin"}],
                "userType": "employee",
            }
        }


class Group(BaseResource):
    """
    SCIM 2.0 Group Resource

    ``members[].value`` holds the id of a member user. It is a reference only
    and is resolved with a separate ``GET /Users/{id}``.
    """
    displayName: Optional[str] = None
    members: List[MultiValuedAttribute] = Field(default_factory=list)

    @field_validator("members", mode="before")
    @classmethod
    def _null_members(cls, value):
        return _none_to_empty_list(value)

    class Config:
        json_schema_extra = {
            "example": {
                "schemas": [SCIM_GROUP_SCHEMA],
                "id": "16e720aa-a009-4949-9bf9-aaaaaaaaaaaa",
                "displayName": "KeyAdmin",
                "members": [{"value": "aaaaaaaa-bbbb-cccc-dddd-eeeeeeeeeeee"}],
            }
        }


class _ListResponse(BaseModel):
    # Pagination metadata is accepted but callers supply cursor/count themselves.
    totalResults: Optional[int] = None
    startIndex: Optional[int] = None
    itemsPerPage: Optional[int] = None


class UserList(_ListResponse):
    """SCIM 2.0 List Response carrying User resources."""
    Resources: List[User] = Field(default_factory=list)

    @field_validator("Resources", mode="before")
    @classmethod
    def _null_resources(cls, value):
        return _none_to_empty_list(value)


class GroupList(_ListResponse):
    """SCIM 2.0 List Response carrying Group resources."""
    Resources: List[Group] = Field(default_factory=list)

    @field_validator("Resources", mode="before")
    @classmethod
    def _null_resources(cls, value):
        return _none_to_empty_list(value)


class SearchRequest(BaseModel):
    """
    SCIM 2.0 SearchRequest

    Body of ``POST /Users/.search`` and ``POST /Groups/.search``.
    """
    schemas: List[str] = Field(default=[SCIM_SEARCH_REQUEST_SCHEMA])
    filter: Optional[str] = None
    count: Optional[int] = None
    cursor: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "schemas": [SCIM_SEARCH_REQUEST_SCHEMA],
                "filter": 'displayName eq "KeyAdmin"',
                "count": 100,
            }
        }


class SCIMError(BaseModel):
    """
    SCIM 2.0 Error Response

    Standard error format, also used by the plugin's HTTP surface.
    """
    schemas: List[str] = Field(default=[SCIM_ERROR_SCHEMA])
    status: str
    detail: Optional[str] = None
    scimType: Optional[str] = None
