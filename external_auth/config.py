# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""External auth configuration.

Configuration is read once at process start from environment variables and
validated with pydantic. It is treated as immutable for the process lifetime;
provider credentials are only checked for completeness when a provider
adapter is built from them.
"""

import os
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigInvalidError
from .state import DEFAULT_STATE_EXPIRY


def _split_csv(value: Any) -> Any:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class ProviderConfig(BaseModel):
    """OAuth configuration for one external provider.

    Attributes:
        enabled: Whether the provider may be used
        url: Optional override of the provider base endpoint
        client_id: One or more allowed client IDs; the first is sent to the provider
        secret: OAuth client secret
        redirect_uri: Callback URL registered with the provider
        scopes: Comma-separated extra scopes
        email_optional: Whether a login without an email address is accepted
    """

    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    url: str = ""
    client_id: List[str] = Field(default_factory=list)
    secret: str = ""
    redirect_uri: str = ""
    scopes: str = ""
    email_optional: bool = False

    @field_validator("client_id", mode="before")
    @classmethod
    def _parse_client_id(cls, value: Any) -> Any:
        return _split_csv(value)

    def validate_oauth(self) -> None:
        """Check the configuration is complete enough to build a provider.

        Raises:
            ConfigInvalidError: If the provider is disabled or credentials are missing
        """
        if not self.enabled:
            raise ConfigInvalidError("provider is not enabled")
        if not self.client_id:
            raise ConfigInvalidError("missing OAuth client ID")
        if not self.secret:
            raise ConfigInvalidError("missing OAuth secret")
        if not self.redirect_uri:
            raise ConfigInvalidError("missing redirect URI")


class ExternalAuthConfig(BaseModel):
    """Service-wide external auth configuration.

    Attributes:
        site_url: Default post-login destination
        state_secret: Secret used to sign OAuth state tokens
        state_expiry_seconds: Lifetime of a state token
        uri_allow_list: Glob patterns of extra allowed redirect targets
        http_timeout_seconds: Timeout for each provider request
        external: Provider configurations keyed by provider name
    """

    model_config = ConfigDict(frozen=True)

    site_url: str
    state_secret: str = Field(min_length=1, repr=False)
    state_expiry_seconds: int = Field(default=DEFAULT_STATE_EXPIRY, gt=0, le=3600)
    uri_allow_list: List[str] = Field(default_factory=list)
    http_timeout_seconds: float = Field(default=10.0, gt=0)
    external: Dict[str, ProviderConfig] = Field(default_factory=dict)

    @field_validator("site_url")
    @classmethod
    def _check_site_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("site_url must be an absolute http(s) URL")
        return value.rstrip("/")

    @field_validator("uri_allow_list", mode="before")
    @classmethod
    def _parse_allow_list(cls, value: Any) -> Any:
        return _split_csv(value)

    @field_validator("external", mode="before")
    @classmethod
    def _normalize_provider_names(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            return {str(name).lower(): cfg for name, cfg in value.items()}
        return value

    def provider(self, name: str) -> Optional[ProviderConfig]:
        """Return the configuration for a provider, if present."""
        return self.external.get(name.lower())


_PROVIDER_FIELDS = {
    "enabled": "ENABLED",
    "url": "URL",
    "client_id": "CLIENT_ID",
    "secret": "SECRET",
    "redirect_uri": "REDIRECT_URI",
    "scopes": "SCOPES",
    "email_optional": "EMAIL_OPTIONAL",
}


def _default(value: Optional[str], env: Mapping[str, str], env_var: str, fallback: Any = None) -> Any:
    """Pick an explicit value, then env var, then fallback."""
    if value is not None:
        return value
    return env.get(env_var, fallback)


def _load_provider(name: str, env: Mapping[str, str]) -> Optional[Dict[str, Any]]:
    prefix = f"EXTERNAL_{name.upper()}_"
    values = {
        field: env[prefix + suffix]
        for field, suffix in _PROVIDER_FIELDS.items()
        if prefix + suffix in env
    }
    return values or None


def load_config(
    site_url: Optional[str] = None,
    state_secret: Optional[str] = None,
    provider_names: Optional[Iterable[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ExternalAuthConfig:
    """Load external auth configuration from the environment.

    Args:
        site_url: Explicit site URL (default: EXTERNAL_AUTH_SITE_URL)
        state_secret: Explicit state secret (default: EXTERNAL_AUTH_STATE_SECRET)
        provider_names: Providers to look up (default: all registered providers)
        environ: Environment mapping (default: os.environ)

    Returns:
        Validated configuration

    Raises:
        ConfigInvalidError: If required settings are missing or invalid

    Example:
        >>> config = load_config(environ={
        ...     "EXTERNAL_AUTH_SITE_URL": "https://app.example.com",
        ...     "EXTERNAL_AUTH_STATE_SECRET": "change-me-to-a-long-random-value",
        ...     "EXTERNAL_DESCOPE_CLIENT_ID": "client",
        ... })
        >>> config.provider("descope").client_id
        ['client']
    """
    env = os.environ if environ is None else environ

    if provider_names is None:
        from .factory import supported_providers

        provider_names = supported_providers()

    external = {}
    for name in provider_names:
        values = _load_provider(name, env)
        if values is not None:
            external[name.lower()] = values

    raw: Dict[str, Any] = {
        "site_url": _default(site_url, env, "EXTERNAL_AUTH_SITE_URL", ""),
        "state_secret": _default(state_secret, env, "EXTERNAL_AUTH_STATE_SECRET", ""),
        "uri_allow_list": env.get("EXTERNAL_AUTH_URI_ALLOW_LIST", ""),
        "external": external,
    }
    if "EXTERNAL_AUTH_STATE_EXPIRY_SECONDS" in env:
        raw["state_expiry_seconds"] = env["EXTERNAL_AUTH_STATE_EXPIRY_SECONDS"]
    if "EXTERNAL_AUTH_HTTP_TIMEOUT_SECONDS" in env:
        raw["http_timeout_seconds"] = env["EXTERNAL_AUTH_HTTP_TIMEOUT_SECONDS"]

    try:
        return ExternalAuthConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigInvalidError(f"Invalid external auth configuration: {e}") from e
