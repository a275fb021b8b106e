"""
Exception hierarchy for the SCIM identity plugin.

Errors are layered: an operation-level marker (e.g. ``ListUsersError``) is
raised ``from`` the underlying cause (transport failure, unexpected status,
undecodable body), so callers can branch on the marker with a single
``except``/``isinstance`` check and still inspect ``__cause__``.
"""


class ScimIdentityError(Exception):
    """Base class for every error raised by this package."""


# Configuration ---------------------------------------------------------------


class ConfigurationError(ScimIdentityError):
    """Plugin or client configuration could not be applied."""


class ClientIDRequiredError(ConfigurationError):
    def __init__(self, message: str = "client ID is required"):
        super().__init__(message)


class AuthParamsMissingError(ConfigurationError):
    def __init__(self, message: str = "must provide client secret or TLS config"):
        super().__init__(message)


class AmbiguousAuthParamsError(ConfigurationError):
    def __init__(self, message: str = "provide either a client secret or a TLS certificate, not both"):
        super().__init__(message)


class ClientCertificateError(ConfigurationError):
    """Client certificate/key pair could not be loaded."""


class SecretResolutionError(ConfigurationError):
    """A source reference (embedded, env, file) could not be resolved."""


# HTTP decoding ---------------------------------------------------------------


class HTTPDecodeError(ScimIdentityError):
    """Base for failures while turning an HTTP response into a model."""


class UnexpectedStatusError(HTTPDecodeError):
    def __init__(self, api_name: str, status_code: int, reason: str = "", body: str = ""):
        self.api_name = api_name
        self.status_code = status_code
        self.body = body
        status = f"{status_code} {reason}".strip()
        message = f"invalid response from {api_name}: unexpected status code {status}"
        if body:
            message = f"{message}: {body}"
        super().__init__(message)


class InvalidResponseError(HTTPDecodeError):
    def __init__(self, api_name: str, detail: str):
        self.api_name = api_name
        super().__init__(f"invalid response from {api_name}: {detail}")


# SCIM client -----------------------------------------------------------------


class SCIMClientError(ScimIdentityError):
    """Base for SCIM client operation failures."""

    default_message = "SCIM client error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.default_message)


class GetUserError(SCIMClientError):
    default_message = "error getting SCIM user"


class ListUsersError(SCIMClientError):
    default_message = "error listing SCIM users"


class GetGroupError(SCIMClientError):
    default_message = "error getting SCIM group"


class ListGroupsError(SCIMClientError):
    default_message = "error listing SCIM groups"


class NoFilterError(SCIMClientError):
    default_message = "filter not provided"


class MarshalError(SCIMClientError):
    default_message = "failed to marshal search request"


# Plugin ----------------------------------------------------------------------


class PluginError(ScimIdentityError):
    """Base for identity management plugin failures."""

    default_message = "identity management plugin error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.default_message)


class NoSCIMClientError(PluginError):
    default_message = "no scim client exists"


class NoFilterIDError(PluginError):
    default_message = "no filter id provided"


class GroupNotFoundError(PluginError):
    default_message = "group does not exist"


class MultipleGroupsError(PluginError):
    default_message = "multiple groups found"


class AuthContextError(PluginError):
    default_message = "auth context does not resolve a SCIM host"


class PluginGetGroupError(PluginError):
    default_message = "failed to get group"


class GetAllGroupsError(PluginError):
    default_message = "failed to get all groups"


class GetUsersForGroupError(PluginError):
    default_message = "failed to get users for group"


class GetGroupsForUserError(PluginError):
    default_message = "failed to get groups for user"


def wrap(outer: Exception, inner: BaseException) -> Exception:
    """Attach ``inner`` as the cause of ``outer`` and fold its text into the message."""
    outer.args = (f"{outer}: {inner}",)
    outer.__cause__ = inner
    outer.__suppress_context__ = True
    return outer


def error_chain(exc: BaseException):
    """Yield ``exc`` followed by every exception in its ``__cause__`` chain."""
    current = exc
    while current is not None:
        yield current
        current = current.__cause__


def has_cause(exc: BaseException, error_type: type) -> bool:
    """True if ``exc`` or anything it was raised from is an ``error_type``."""
    return any(isinstance(err, error_type) for err in error_chain(exc))
