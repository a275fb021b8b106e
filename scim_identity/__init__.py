"""
SCIM Identity Plugin

SCIM 2.0 client and identity management plugin resolving users, groups and
group memberships from an external identity provider.
"""

__version__ = "1.0.0"
