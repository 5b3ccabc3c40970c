# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""External identity provider integration layer.

Supports third-party OAuth2/OIDC providers (Descope, GitHub, Google) behind
one authorize/exchange/fetch contract, with a signed state token carrying
the flow's context across the provider round-trip.
"""

__version__ = "0.1.0"

from .config import ExternalAuthConfig, ProviderConfig, load_config
from .descope_provider import DescopeProvider, resolve_descope_api_host
from .errors import (
    ConfigInvalidError,
    ExternalAuthError,
    InvalidRequestError,
    InvalidStateError,
    ProfileFetchError,
    ProviderCallbackError,
    TokenExchangeError,
    UnknownProviderError,
)
from .factory import create_provider, register_provider, supported_providers
from .github_provider import GitHubProvider
from .google_provider import GoogleProvider
from .models import Claims, Email, OAuthToken, StateClaims, UserProvidedData
from .oauth2_provider import OAuth2Provider
from .provider import OAuthProvider
from .service import AccountLinker, CallbackResult, ExternalAuthService, ProfileResponseLinker
from .state import StateCodec

__all__ = [
    # Version
    "__version__",
    # Models
    "Claims",
    "Email",
    "OAuthToken",
    "StateClaims",
    "UserProvidedData",
    # Configuration
    "ExternalAuthConfig",
    "ProviderConfig",
    "load_config",
    # Providers
    "OAuthProvider",
    "OAuth2Provider",
    "DescopeProvider",
    "GitHubProvider",
    "GoogleProvider",
    "resolve_descope_api_host",
    # Factory
    "create_provider",
    "register_provider",
    "supported_providers",
    # State
    "StateCodec",
    # Service
    "AccountLinker",
    "CallbackResult",
    "ExternalAuthService",
    "ProfileResponseLinker",
    # Exceptions
    "ExternalAuthError",
    "ConfigInvalidError",
    "InvalidStateError",
    "UnknownProviderError",
    "InvalidRequestError",
    "ProviderCallbackError",
    "TokenExchangeError",
    "ProfileFetchError",
]
