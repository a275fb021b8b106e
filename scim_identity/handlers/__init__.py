"""
Outbound authentication handlers for SCIM requests.
"""

from .auth import (
    BasicCredentials,
    MTLSCredentials,
    OAuth2Credentials,
    SCIMCredentials,
    credentials_from_params,
)

__all__ = [
    "BasicCredentials",
    "MTLSCredentials",
    "OAuth2Credentials",
    "SCIMCredentials",
    "credentials_from_params",
]
