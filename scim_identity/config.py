"""
Configuration module for the SCIM identity plugin.

Two layers of configuration live here:

- ``PluginSettings``: process settings (log level, timeouts, server bind,
  optional startup config file) loaded from ``SCIM_PLUGIN_*`` environment
  variables with Pydantic Settings.
- ``PluginConfig``: the YAML document handed to ``Configure`` by the plugin
  host, describing the SCIM host, outbound auth, optional auth context and
  resolution params. Any value may be given literally or as a source
  reference (``embedded``, ``env`` or ``file``).
"""

import os
from pathlib import Path
from typing import Dict, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings

from .errors import ConfigurationError, SecretResolutionError, wrap


VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class PluginSettings(BaseSettings):
    """
    Process-level settings for the SCIM identity plugin.

    All settings are loaded from environment variables prefixed with
    ``SCIM_PLUGIN_`` (or a ``.env`` file) with validation.
    """

    log_level: str = Field(
        "INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    request_timeout: float = Field(
        30.0,
        gt=0,
        description="Timeout in seconds for each SCIM HTTP request"
    )

    config_file: Optional[Path] = Field(
        None,
        description="Plugin YAML configuration applied at server startup"
    )

    server_host: str = Field(
        "127.0.0.1",
        description="Bind address of the plugin HTTP surface"
    )

    server_port: int = Field(
        8080,
        description="Bind port of the plugin HTTP surface"
    )

    class Config:
        env_prefix = "SCIM_PLUGIN_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level is one of the standard Python logging levels."""
        if v.upper() not in VALID_LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of: {', '.join(VALID_LOG_LEVELS)}")
        return v.upper()


# Global settings instance
settings: Optional[PluginSettings] = None


def get_settings() -> PluginSettings:
    """
    Get the global settings instance, creating it if necessary.

    Returns:
        PluginSettings: The global settings instance
    """
    global settings
    if settings is None:
        settings = PluginSettings()
    return settings


def reload_settings() -> PluginSettings:
    """
    Force reload settings from environment variables.

    Returns:
        PluginSettings: New settings instance
    """
    global settings
    settings = PluginSettings()
    return settings


# -- Source references --------------------------------------------------------


class FileSource(BaseModel):
    path: str


class SourceRef(BaseModel):
    """
    Indirect reference to a configuration value.

    YAML forms accepted::

        host: https://idp.example.com/scim          # literal
        host: {source: embedded, value: https://...}
        clientSecret: {source: env, env: SCIM_CLIENT_SECRET}
        clientSecret: {source: file, file: {path: /etc/scim/secret}}
    """

    source: Literal["embedded", "env", "file"] = "embedded"
    value: Optional[str] = None
    env: Optional[str] = None
    file: Optional[FileSource] = None

    def load(self) -> str:
        """
        Resolve the referenced value.

        Raises:
            SecretResolutionError: the referenced env variable or file is missing
        """
        if self.source == "embedded":
            if self.value is None:
                raise SecretResolutionError("embedded source has no value")
            return self.value

        if self.source == "env":
            if not self.env:
                raise SecretResolutionError("env source has no variable name")
            if self.env not in os.environ:
                raise SecretResolutionError(f"environment variable {self.env} is not set")
            return os.environ[self.env]

        if self.file is None:
            raise SecretResolutionError("file source has no path")
        try:
            return Path(self.file.path).read_text(encoding="utf-8").strip()
        except OSError as e:
            raise wrap(SecretResolutionError(f"failed to read {self.file.path}"), e)


ConfigValue = Union[str, bool, int, SourceRef]


def resolve_value(value: Optional[ConfigValue], default: Optional[str] = None) -> Optional[str]:
    """Resolve a literal-or-reference value to a string (``default`` when unset)."""
    if value is None:
        return default
    if isinstance(value, SourceRef):
        return value.load()
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def parse_bool(raw: Optional[str], name: str, default: bool = False) -> bool:
    """
    Parse a boolean param strictly.

    Raises:
        ConfigurationError: the value is not a recognised boolean
    """
    if raw is None or raw.strip() == "":
        return default

    normalized = raw.strip().lower()
    if normalized in ("true", "1", "yes"):
        return True
    if normalized in ("false", "0", "no"):
        return False

    raise ConfigurationError(f"invalid boolean value for {name}: {raw!r}")


# -- Plugin YAML --------------------------------------------------------------


class BasicAuthConfig(BaseModel):
    clientID: ConfigValue
    clientSecret: Optional[ConfigValue] = None


class MTLSAuthConfig(BaseModel):
    clientID: ConfigValue
    cert: ConfigValue  # path to PEM certificate
    certKey: ConfigValue  # path to PEM private key
    serverCA: Optional[ConfigValue] = None


class OAuth2AuthConfig(BaseModel):
    clientID: ConfigValue
    clientSecret: ConfigValue
    tokenURL: ConfigValue
    scope: Optional[ConfigValue] = None


class AuthConfig(BaseModel):
    type: Literal["basic", "mtls", "oauth2"]
    basic: Optional[BasicAuthConfig] = None
    mtls: Optional[MTLSAuthConfig] = None
    oauth2: Optional[OAuth2AuthConfig] = None


class AuthContextConfig(BaseModel):
    """
    Per-request override of the SCIM host and headers.

    ``hostField`` names the auth-context key holding the host, ``basePath`` is
    appended to it, and ``headerFields`` maps header names to context keys.
    """
    hostField: str
    headerFields: Dict[str, str] = Field(default_factory=dict)
    basePath: str = ""


class ParamsConfig(BaseModel):
    groupAttribute: Optional[ConfigValue] = None
    userAttribute: Optional[ConfigValue] = None
    groupMembersAttribute: Optional[ConfigValue] = None
    listMethod: Optional[ConfigValue] = None
    allowSearchUsersByGroup: Optional[ConfigValue] = None


class PluginConfig(BaseModel):
    """YAML configuration handed to ``Configure``."""

    host: ConfigValue
    auth: AuthConfig
    authContext: Optional[AuthContextConfig] = None
    params: ParamsConfig = Field(default_factory=ParamsConfig)

    class Config:
        json_schema_extra = {
            "example": {
                "host": "https://idp.example.com/scim",
                "auth": {
                    "type": "basic",
                    "basic": {
                        "clientID": "identity-plugin",
                        "clientSecret": {"source": "env", "env": "SCIM_CLIENT_SECRET"},
                    },
                },
                "params": {
                    "groupAttribute": "displayName",
                    "userAttribute": "members.value",
                    "listMethod": "POST",
                    "allowSearchUsersByGroup": "false",
                },
            }
        }


def load_plugin_config(yaml_text: str) -> PluginConfig:
    """
    Parse and validate the plugin YAML configuration.

    Raises:
        ConfigurationError: the document is not valid YAML or does not match the schema
    """
    try:
        data = yaml.safe_load(yaml_text)
    except yaml.YAMLError as e:
        raise wrap(ConfigurationError("failed to parse yaml configuration"), e)

    if not isinstance(data, dict):
        raise ConfigurationError("yaml configuration must be a mapping")

    try:
        return PluginConfig.model_validate(data)
    except ValidationError as e:
        raise wrap(ConfigurationError("invalid plugin configuration"), e)
