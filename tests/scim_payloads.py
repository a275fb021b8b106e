"""Canned SCIM responses shared by the client, plugin and API tests."""

import json

USER_ID = "aaaaaaaa-bbbb-cccc-dddd-eeeeeeeeeeee"
GROUP_ID = "16e720aa-a009-4949-9bf9-aaaaaaaaaaaa"
MEMBER_ID = "11111111-bbbb-cccc-dddd-ffffffffffff"

LIST_RESPONSE_SCHEMA = "urn:ietf:params:scim:api:messages:2.0:ListResponse"

GET_USER_RESPONSE = {
    "id": USER_ID,
    "meta": {
        "created": "2020-04-10T11:29:36Z",
        "lastModified": "2021-05-18T15:18:00Z",
        "location": f"https://dummy.domain.com/scim/Users/{USER_ID}",
        "resourceType": "User",
        "groups.cnt": 0,
    },
    "schemas": [
        "urn:ietf:params:scim:schemas:core:2.0:User",
        "urn:ietf:params:scim:schemas:extension:comp:2.0:User",
    ],
    "userName": "cloudanalyst",
    "name": {"familyName": "Analyst", "givenName": "Cloud"},
    "displayName": "None",
    "userType": "employee",
    "active": True,
    "emails": [{"value": "cloud.analyst@example.com", "primary": True}],
    "groups": [{"value": USER_ID, "display": "CloudAnalyst"}],
    "urn:ietf:params:scim:schemas:extension:comp:2.0:User": {
        "emails": [{"verified": False, "value": "cloud.analyst@example.com", "primary": True}],
        "userId": "P000011",
        "status": "active",
    },
}

GET_GROUP_RESPONSE = {
    "id": GROUP_ID,
    "meta": {
        "created": "2020-11-12T14:55:12Z",
        "lastModified": "2021-03-31T14:56:01Z",
        "resourceType": "Group",
    },
    "schemas": [
        "urn:ietf:params:scim:schemas:core:2.0:Group",
        "urn:comp:cloud:scim:schemas:extension:custom:2.0:Group",
    ],
    "displayName": "KeyAdmin",
    "members": [{"value": MEMBER_ID, "type": "User"}],
    "urn:comp:cloud:scim:schemas:extension:custom:2.0:Group": {"name": "KeyAdmin", "description": ""},
}


def list_response(*resources):
    return {
        "Resources": list(resources),
        "schemas": [LIST_RESPONSE_SCHEMA],
        "totalResults": len(resources),
        "itemsPerPage": len(resources),
        "startIndex": 1,
    }


def user(user_id, user_name, display_name=None, emails=None):
    return {
        "id": user_id,
        "userName": user_name,
        "displayName": display_name,
        "active": True,
        "emails": emails,
    }


def group(group_id, display_name, member_ids=()):
    return {
        "id": group_id,
        "displayName": display_name,
        "members": [{"value": member_id, "type": "User"} for member_id in member_ids],
    }


LIST_USERS_RESPONSE = list_response(GET_USER_RESPONSE)
LIST_GROUPS_RESPONSE = list_response(GET_GROUP_RESPONSE)
EMPTY_LIST_RESPONSE = list_response()


def basic_auth_yaml(host, params=None, auth_context=None):
    """Plugin YAML with basic auth against ``host``; ``params``/``auth_context`` rendered as JSON flow mappings."""
    lines = [
        f"host: {host}",
        "auth:",
        "  type: basic",
        "  basic:",
        "    clientID: identity-plugin",
        "    clientSecret: s3cret",
    ]
    if params:
        lines.append(f"params: {json.dumps(params)}")
    if auth_context:
        lines.append(f"authContext: {json.dumps(auth_context)}")
    return "\n".join(lines) + "\n"
