"""
SCIM Identity Plugin - FastAPI RPC Surface

Thin HTTP stand-in for the plugin host's RPC boundary. Every endpoint maps
one-to-one onto an ``IdentityManagementPlugin`` operation; errors are
returned in the SCIM error format.

Endpoints:
- GET /health - Health check (503 until the plugin is configured)
- POST /v1/configure - Apply a YAML plugin configuration
- POST /v1/get-group - Look up exactly one group by name
- POST /v1/get-all-groups - List every group
- POST /v1/get-users-for-group - Member users of a group
- POST /v1/get-groups-for-user - Groups a user belongs to
"""

import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.responses import JSONResponse

from . import __version__
from .config import get_settings
from .errors import (
    AuthContextError,
    ConfigurationError,
    GroupNotFoundError,
    MultipleGroupsError,
    NoFilterIDError,
    NoSCIMClientError,
    ScimIdentityError,
    has_cause,
)
from .models import (
    SCIM_ERROR_SCHEMA,
    ConfigureRequest,
    GetAllGroupsRequest,
    GetGroupRequest,
    GetGroupsForUserRequest,
    GetUsersForGroupRequest,
    GroupResponse,
    GroupsResponse,
    SCIMError,
    UsersResponse,
)
from .services import IdentityManagementPlugin

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# FastAPI app initialization
app = FastAPI(
    title="SCIM Identity Plugin",
    description="Identity management plugin resolving users and groups from a SCIM 2.0 identity provider",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Global plugin instance (initialized on startup)
plugin: Optional[IdentityManagementPlugin] = None


@app.on_event("startup")
async def startup_event():
    """
    Initialize the plugin on application startup.

    Applies ``SCIM_PLUGIN_CONFIG_FILE`` when set; otherwise the plugin stays
    unconfigured until ``POST /v1/configure``.
    """
    global plugin

    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level)

    logger.info("Starting SCIM Identity Plugin...")
    plugin = IdentityManagementPlugin(timeout=settings.request_timeout)

    if settings.config_file:
        try:
            plugin.configure(settings.config_file.read_text(encoding="utf-8"))
        except (OSError, ConfigurationError) as e:
            logger.error(f"Failed to apply configuration from {settings.config_file}: {e}")
            raise

        logger.info(f"Plugin configured from {settings.config_file}")


def get_plugin() -> IdentityManagementPlugin:
    """FastAPI dependency returning the global plugin instance."""
    global plugin
    if plugin is None:
        plugin = IdentityManagementPlugin(timeout=get_settings().request_timeout)
    return plugin


def scim_error_response(status_code: int, detail: str) -> JSONResponse:
    error_response = SCIMError(
        schemas=[SCIM_ERROR_SCHEMA],
        status=str(status_code),
        detail=detail
    )

    return JSONResponse(
        content=error_response.model_dump(exclude_none=True),
        status_code=status_code,
        headers={"Content-Type": "application/scim+json"}
    )


def error_status(exc: ScimIdentityError) -> int:
    """Map a plugin error onto the HTTP status returned to the caller."""
    if isinstance(exc, NoSCIMClientError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    if isinstance(exc, GroupNotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, MultipleGroupsError):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, (ConfigurationError, AuthContextError)) or has_cause(exc, NoFilterIDError):
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_502_BAD_GATEWAY


@app.get("/health")
def health_check(plugin: IdentityManagementPlugin = Depends(get_plugin)):
    """
    Health check endpoint.

    Returns:
        dict: Health status and whether a SCIM client is configured
    """
    configured = plugin.configured

    health_response = {
        "status": "healthy" if configured else "unconfigured",
        "configured": configured,
        "version": __version__
    }

    status_code = 200 if configured else 503

    if not configured:
        logger.warning("Health check: plugin is not configured")

    return JSONResponse(content=health_response, status_code=status_code)


@app.post("/v1/configure")
def configure(request: ConfigureRequest, plugin: IdentityManagementPlugin = Depends(get_plugin)):
    """
    Apply a YAML plugin configuration.

    A failed configuration leaves the previous one in place.
    """
    plugin.configure(request.yamlConfiguration)
    return {"configured": True}


@app.post("/v1/get-group", response_model=GroupResponse)
def get_group(request: GetGroupRequest, plugin: IdentityManagementPlugin = Depends(get_plugin)):
    logger.info(f"GetGroup: {request.groupName}")
    group = plugin.get_group(request.groupName, auth_context=request.authContext)
    return GroupResponse(group=group)


@app.post("/v1/get-all-groups", response_model=GroupsResponse)
def get_all_groups(request: GetAllGroupsRequest, plugin: IdentityManagementPlugin = Depends(get_plugin)):
    groups = plugin.get_all_groups(auth_context=request.authContext)
    logger.info(f"GetAllGroups: returned {len(groups)} groups")
    return GroupsResponse(groups=groups)


@app.post("/v1/get-users-for-group", response_model=UsersResponse)
def get_users_for_group(request: GetUsersForGroupRequest, plugin: IdentityManagementPlugin = Depends(get_plugin)):
    """
    Member users of a group.

    Uses direct search or membership traversal depending on
    ``allowSearchUsersByGroup``.
    """
    users = plugin.get_users_for_group(request.groupId, auth_context=request.authContext)
    logger.info(f"GetUsersForGroup: {request.groupId} has {len(users)} users")
    return UsersResponse(users=users)


@app.post("/v1/get-groups-for-user", response_model=GroupsResponse)
def get_groups_for_user(request: GetGroupsForUserRequest, plugin: IdentityManagementPlugin = Depends(get_plugin)):
    groups = plugin.get_groups_for_user(request.userId, auth_context=request.authContext)
    logger.info(f"GetGroupsForUser: {request.userId} is in {len(groups)} groups")
    return GroupsResponse(groups=groups)


# Exception handlers
@app.exception_handler(ScimIdentityError)
async def plugin_exception_handler(request, exc):
    """Convert plugin errors to SCIM error format."""
    status_code = error_status(exc)
    if status_code >= 500:
        logger.error(f"{request.url.path} failed: {exc}")
    else:
        logger.warning(f"{request.url.path} rejected: {exc}")

    return scim_error_response(status_code, str(exc))


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    """Convert FastAPI HTTPExceptions to SCIM error format."""
    return scim_error_response(exc.status_code, exc.detail)


@app.exception_handler(Exception)
async def general_exception_handler(request, exc):
    """Convert unhandled exceptions to SCIM error format."""
    logger.error(f"Unhandled exception: {exc}")
    return scim_error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def run():
    """Entry point for ``scim-plugin-server``."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        app,
        host=settings.server_host,
        port=settings.server_port,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    run()
