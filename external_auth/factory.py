# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Registry and factory for external provider adapters.

Provider names map to constructors that take a ProviderConfig and the
requested extra scopes. Provider-specific quirks (such as Descope's
application-scoped API host) are resolved inside each constructor.
"""

from typing import Any, Callable, Dict, List

from .config import ProviderConfig
from .descope_provider import DescopeProvider
from .errors import UnknownProviderError
from .github_provider import GitHubProvider
from .google_provider import GoogleProvider
from .provider import OAuthProvider

ProviderConstructor = Callable[..., OAuthProvider]

_REGISTRY: Dict[str, ProviderConstructor] = {
    "descope": DescopeProvider.from_config,
    "github": GitHubProvider.from_config,
    "google": GoogleProvider.from_config,
}


def supported_providers() -> List[str]:
    """Return the names of all registered providers, sorted."""
    return sorted(_REGISTRY)


def is_supported(provider_type: str) -> bool:
    """Check whether a provider name is registered."""
    return bool(provider_type) and provider_type.lower() in _REGISTRY


def register_provider(provider_type: str, constructor: ProviderConstructor) -> None:
    """Register a provider constructor under a name.

    Registration is meant to happen at process start, before any request
    is served.

    Args:
        provider_type: Provider name (case-insensitive)
        constructor: Callable taking (config, scopes, **kwargs)
    """
    if not provider_type:
        raise ValueError("provider_type is required")
    _REGISTRY[provider_type.lower()] = constructor


def create_provider(
    provider_type: str,
    config: ProviderConfig,
    scopes: str = "",
    **kwargs: Any,
) -> OAuthProvider:
    """Create a provider adapter by name.

    Args:
        provider_type: Provider name (case-insensitive)
        config: Provider configuration
        scopes: Comma-separated scopes requested for this flow
        **kwargs: Adapter options (timeout, transport)

    Returns:
        OAuthProvider instance

    Raises:
        UnknownProviderError: If no provider is registered under the name
        ConfigInvalidError: If the configuration is incomplete

    Examples:
        >>> provider = create_provider(
        ...     "descope",
        ...     ProviderConfig(
        ...         client_id=["your_client_id"],
        ...         secret="your_client_secret",
        ...         redirect_uri="https://auth.example.com/callback",
        ...         url="https://api.descope.com/P2abc",
        ...     ),
        ... )
        >>> provider.api_host
        'https://api.descope.com/P2abc'
    """
    if not is_supported(provider_type):
        raise UnknownProviderError(
            f"Unsupported provider: {provider_type}. "
            f"Supported providers: {', '.join(supported_providers())}"
        )

    constructor = _REGISTRY[provider_type.lower()]
    return constructor(config, scopes, **kwargs)
