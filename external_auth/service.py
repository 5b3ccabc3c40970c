# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""External auth service implementation.

Drives the two halves of the authorization code flow: building the provider
redirect with a signed state, and completing the callback by verifying the
state, exchanging the code, fetching the profile, and handing the result to
the account linker.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit

import httpx

from .config import ExternalAuthConfig
from .errors import (
    ConfigInvalidError,
    InvalidRequestError,
    ProfileFetchError,
    ProviderCallbackError,
    TokenExchangeError,
    UnknownProviderError,
)
from .factory import create_provider, is_supported, supported_providers
from .logger import Logger, create_logger
from .models import StateClaims, UserProvidedData
from .provider import OAuthProvider
from .state import StateCodec


def compile_redirect_pattern(pattern: str) -> "re.Pattern[str]":
    """Compile an allow-list glob into a regex matched against whole URLs.

    "." and "/" are separators: "*" and "?" never cross them, so
    "https://*.example.org/*" cannot match "https://evil.com/x.example.org/".
    "**" matches across separators.
    """
    parts = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**", i):
            parts.append(".*")
            i += 2
            continue
        char = pattern[i]
        if char == "*":
            parts.append("[^./]*")
        elif char == "?":
            parts.append("[^./]")
        else:
            parts.append(re.escape(char))
        i += 1
    return re.compile("".join(parts))


class AccountLinker(ABC):
    """Receives normalized user data at the end of a successful callback.

    Implementations decide whether the identity belongs to a new or existing
    account and create the service's own session; this layer does not.
    """

    @abstractmethod
    async def link(self, user_data: UserProvidedData, claims: StateClaims) -> Dict[str, Any]:
        """Link the external identity and return the response body.

        Args:
            user_data: Normalized profile from the provider
            claims: Verified state claims of the flow

        Returns:
            JSON-serializable result for the callback response
        """
        pass


class ProfileResponseLinker(AccountLinker):
    """Account linker that returns the normalized profile unchanged."""

    async def link(self, user_data: UserProvidedData, claims: StateClaims) -> Dict[str, Any]:
        return {
            "provider": claims.provider,
            "redirect_to": claims.referrer or claims.site_url,
            "user": user_data.to_dict(),
        }


@dataclass
class CallbackResult:
    """Outcome of a completed callback."""
    user_data: UserProvidedData
    claims: StateClaims
    linked: Dict[str, Any]


class ExternalAuthService:
    """Coordinates external providers for the authorize and callback steps.

    The service holds only read-only configuration; provider adapters are
    built per request and all round-trip context lives in the signed state.

    Attributes:
        config: Service configuration
        state_codec: Signs and verifies state tokens
        account_linker: Receives normalized user data on success
    """

    def __init__(
        self,
        config: ExternalAuthConfig,
        account_linker: Optional[AccountLinker] = None,
        logger: Optional[Logger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the service.

        Args:
            config: Service configuration
            account_linker: Linker for completed logins (default returns the profile)
            logger: Logger (default from create_logger)
            transport: Optional httpx transport passed to every adapter

        Raises:
            ConfigInvalidError: If the state secret or expiry is invalid
        """
        self.config = config
        self.state_codec = StateCodec(config.state_secret, config.state_expiry_seconds)
        self.account_linker = account_linker or ProfileResponseLinker()
        self.logger = logger or create_logger(name="external_auth.service")
        self._transport = transport
        self._redirect_patterns = [compile_redirect_pattern(p) for p in config.uri_allow_list]

    def configured_providers(self) -> List[str]:
        """Return supported providers that are configured and enabled."""
        configured = []
        for name in supported_providers():
            provider_config = self.config.provider(name)
            if provider_config is not None and provider_config.enabled:
                configured.append(name)
        return configured

    def is_ready(self) -> bool:
        """Check if at least one provider can serve logins."""
        return len(self.configured_providers()) > 0

    def get_provider(self, name: str, scopes: str = "") -> OAuthProvider:
        """Build the adapter for a provider name.

        Args:
            name: Provider name
            scopes: Comma-separated extra scopes for this flow

        Returns:
            Provider adapter

        Raises:
            UnknownProviderError: If the provider is unsupported, unconfigured or disabled
            ConfigInvalidError: If the provider configuration is incomplete
        """
        if not is_supported(name):
            raise UnknownProviderError(
                f"Unsupported provider: {name}. "
                f"Supported providers: {', '.join(supported_providers())}"
            )

        provider_config = self.config.provider(name)
        if provider_config is None:
            raise UnknownProviderError(f"Unsupported provider: {name} is not configured")
        if not provider_config.enabled:
            raise UnknownProviderError(f"Unsupported provider: {name} is disabled")

        try:
            return create_provider(
                name,
                provider_config,
                scopes,
                timeout=self.config.http_timeout_seconds,
                transport=self._transport,
            )
        except ConfigInvalidError as e:
            self.logger.error(f"Provider {name} is misconfigured: {e}", provider=name)
            raise ConfigInvalidError(f"Provider {name} is misconfigured: {e}") from e

    def is_redirect_url_valid(self, redirect_url: str) -> bool:
        """Check a post-login redirect target against the site URL and allow list."""
        if not redirect_url:
            return False

        try:
            target = urlsplit(redirect_url)
            site = urlsplit(self.config.site_url)
        except ValueError:
            return False

        if target.scheme in ("http", "https") and target.hostname and target.hostname == site.hostname:
            return True

        return any(pattern.fullmatch(redirect_url) for pattern in self._redirect_patterns)

    def authorize(
        self,
        provider: str,
        redirect_to: Optional[str] = None,
        scopes: str = "",
        invite_token: Optional[str] = None,
        linking_target_id: Optional[str] = None,
        flow_state_id: Optional[str] = None,
    ) -> str:
        """Start the authorization code flow.

        No server-side state is created; everything the callback needs is
        carried in the signed state token.

        Args:
            provider: Provider name
            redirect_to: Requested post-login destination
            scopes: Comma-separated extra scopes
            invite_token: Optional invite being redeemed
            linking_target_id: Optional account to link the identity to
            flow_state_id: Optional identifier of an enclosing flow

        Returns:
            Provider authorization URL to redirect the user to

        Raises:
            UnknownProviderError: If the provider is unknown or disabled
            ConfigInvalidError: If the provider configuration is incomplete
        """
        provider = provider.lower()
        adapter = self.get_provider(provider, scopes)
        provider_config = self.config.provider(provider)

        referrer = self.config.site_url
        if redirect_to:
            if self.is_redirect_url_valid(redirect_to):
                referrer = redirect_to
            else:
                self.logger.warning(
                    "Ignoring redirect_to outside the allow list",
                    provider=adapter.name,
                )

        claims = StateClaims(
            provider=provider,
            site_url=self.config.site_url,
            invite_token=invite_token,
            referrer=referrer,
            flow_state_id=flow_state_id,
            linking_target_id=linking_target_id,
            email_optional=provider_config.email_optional,
        )
        state = self.state_codec.sign(claims)

        self.logger.info(f"Initiated authorization for provider={adapter.name}", provider=adapter.name)
        return adapter.get_authorization_url(state)

    async def handle_callback(
        self,
        code: Optional[str],
        state: Optional[str],
        error: Optional[str] = None,
        error_description: Optional[str] = None,
    ) -> CallbackResult:
        """Complete the flow started by authorize.

        Args:
            code: Authorization code from the provider
            state: Signed state token
            error: OAuth error reported by the provider, if any
            error_description: Human-readable description of the error

        Returns:
            Normalized user data, verified claims and the linker's result

        Raises:
            ProviderCallbackError: If the provider reported an error
            InvalidRequestError: If the code is missing
            InvalidStateError: If the state fails verification
            TokenExchangeError: If the code exchange fails
            ProfileFetchError: If the profile cannot be fetched, or has no email
                and the provider does not allow that
        """
        if error:
            self.logger.warning(f"Provider returned error on callback: {error}", error=error)
            message = f"{error}: {error_description}" if error_description else error
            raise ProviderCallbackError(message)

        # Verify before anything touches the network
        claims = self.state_codec.verify(state or "")

        if not code:
            raise InvalidRequestError("Authorization code missing from callback")

        adapter = self.get_provider(claims.provider)

        try:
            token = await adapter.exchange_code(code)
        except TokenExchangeError as e:
            self.logger.error(f"Token exchange failed for provider={adapter.name}: {e}", provider=adapter.name)
            raise

        try:
            user_data = await adapter.get_user_data(token)
        except ProfileFetchError as e:
            # Tokens were issued; a retry needs a fresh authorization code
            self.logger.error(
                f"Profile fetch failed after successful token exchange for provider={adapter.name}: {e}",
                provider=adapter.name,
                token_type=token.token_type,
                has_refresh_token=bool(token.refresh_token),
                expires_in=token.expires_in,
            )
            raise

        if not user_data.emails and not claims.email_optional:
            self.logger.warning(
                f"Provider {claims.provider} returned no email address",
                provider=claims.provider,
                subject=user_data.metadata.subject,
            )
            raise ProfileFetchError(f"Provider {claims.provider} returned no email address")

        linked = await self.account_linker.link(user_data, claims)

        self.logger.info(
            f"Completed callback for provider={adapter.name}",
            provider=adapter.name,
            subject=user_data.metadata.subject,
        )
        return CallbackResult(user_data=user_data, claims=claims, linked=linked)
