"""
Host-facing identity shapes.

The plugin host never sees full SCIM resources. Users and groups are
projected to ``{id, name, email}`` / ``{id, name}``.
"""

from typing import Dict, List

from pydantic import BaseModel, Field

from .scim_resources import Group, User


class IdentityUser(BaseModel):
    id: str
    name: str
    email: str = ""


class IdentityGroup(BaseModel):
    id: str
    name: str


def primary_email(user: User) -> str:
    """Email flagged primary, else the first email, else an empty string."""
    for email in user.emails:
        if email.primary:
            return email.value

    if user.emails:
        return user.emails[0].value

    return ""


def project_user(user: User) -> IdentityUser:
    return IdentityUser(
        id=user.id,
        name=user.displayName or user.userName,
        email=primary_email(user),
    )


def project_group(group: Group) -> IdentityGroup:
    return IdentityGroup(id=group.id, name=group.displayName or "")


def project_users(users: List[User]) -> List[IdentityUser]:
    return [project_user(user) for user in users]


def project_groups(groups: List[Group]) -> List[IdentityGroup]:
    return [project_group(group) for group in groups]


class GroupResponse(BaseModel):
    group: IdentityGroup


class GroupsResponse(BaseModel):
    groups: List[IdentityGroup] = Field(default_factory=list)


class UsersResponse(BaseModel):
    users: List[IdentityUser] = Field(default_factory=list)


# -- Plugin RPC requests -------------------------------------------------------


class ConfigureRequest(BaseModel):
    yamlConfiguration: str

    class Config:
        json_schema_extra = {
            "example": {
                "yamlConfiguration": (
                    "host: https://idp.example.com/scim\n"
                    "auth:\n"
                    "  type: basic\n"
                    "  basic:\n"
                    "    clientID: identity-plugin\n"
                    "    clientSecret: {source: env, env: SCIM_CLIENT_SECRET}\n"
                )
            }
        }


class AuthContextRequest(BaseModel):
    authContext: Dict[str, str] = Field(default_factory=dict)


class GetGroupRequest(AuthContextRequest):
    groupName: str

    class Config:
        json_schema_extra = {"example": {"groupName": "KeyAdmin"}}


class GetAllGroupsRequest(AuthContextRequest):
    pass


class GetUsersForGroupRequest(AuthContextRequest):
    groupId: str

    class Config:
        json_schema_extra = {"example": {"groupId": "16e720aa-a009-4949-9bf9-aaaaaaaaaaaa"}}


class GetGroupsForUserRequest(AuthContextRequest):
    userId: str
