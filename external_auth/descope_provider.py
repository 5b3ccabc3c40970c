# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Descope OIDC provider adapter.

This module provides authentication via Descope, including the
application-scoped API host that Descope projects use.
"""

from typing import Any, Dict, Optional

import httpx

from .config import ProviderConfig
from .errors import ProfileFetchError
from .models import Claims, Email, OAuthToken, UserProvidedData
from .oauth2_provider import DEFAULT_HTTP_TIMEOUT, OAuth2Provider, choose_host, merge_scopes, parse_flag

DEFAULT_DESCOPE_API_BASE = "https://api.descope.com"

DESCOPE_SCOPES = ("openid", "profile", "email")


def resolve_descope_api_host(configured_url: Optional[str], default_base: str = DEFAULT_DESCOPE_API_BASE) -> str:
    """Derive the effective Descope API host from the configured URL.

    When the configured URL carries a path segment after the host (the
    Descope application ID), that segment is appended to the default API
    base. The configured host itself is never used: operators set the URL
    only to communicate the application ID.

    Args:
        configured_url: Operator-supplied base URL (may be empty)
        default_base: Canonical Descope API base

    Returns:
        API host for authorize, token and userinfo calls

    Examples:
        >>> resolve_descope_api_host("")
        'https://api.descope.com'
        >>> resolve_descope_api_host("https://auth.example.com/P2abc")
        'https://api.descope.com/P2abc'
    """
    base_url = choose_host(configured_url, default_base)

    # scheme://host/<application id>
    if base_url.count("/") > 2:
        app_id = base_url.split("/")[3]
        if app_id:
            return f"{choose_host('', default_base)}/{app_id}"

    return choose_host("", default_base)


class DescopeProvider(OAuth2Provider):
    """Descope OIDC provider adapter.

    Attributes:
        api_host: Resolved API host, possibly scoped to an application ID
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        api_host: str = DEFAULT_DESCOPE_API_BASE,
        scopes: Optional[str] = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the Descope provider.

        Args:
            client_id: Descope OAuth client ID
            client_secret: Descope OAuth client secret
            redirect_uri: OAuth callback URL
            api_host: Resolved API host (see resolve_descope_api_host)
            scopes: Comma-separated scopes requested in addition to openid/profile/email
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport
        """
        super().__init__(
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=redirect_uri,
            auth_url=f"{api_host}/oauth2/v1/authorize",
            token_url=f"{api_host}/oauth2/v1/token",
            scopes=merge_scopes(DESCOPE_SCOPES, scopes),
            timeout=timeout,
            transport=transport,
        )
        self.api_host = api_host
        self.userinfo_url = f"{api_host}/oauth2/v1/userinfo"

    @property
    def name(self) -> str:
        return "descope"

    @classmethod
    def from_config(cls, config: ProviderConfig, scopes: str = "", **kwargs: Any) -> "DescopeProvider":
        """Create a DescopeProvider from provider configuration.

        Args:
            config: Provider configuration
            scopes: Comma-separated scopes requested for this flow
            **kwargs: Passed to the constructor (timeout, transport)

        Returns:
            DescopeProvider instance

        Raises:
            ConfigInvalidError: If required configuration is missing
        """
        config.validate_oauth()

        return cls(
            client_id=config.client_id[0],
            client_secret=config.secret,
            redirect_uri=config.redirect_uri,
            api_host=resolve_descope_api_host(config.url),
            scopes=",".join(s for s in (config.scopes, scopes) if s),
            **kwargs,
        )

    async def get_user_data(self, token: OAuthToken) -> UserProvidedData:
        """Fetch the Descope userinfo and normalize it."""
        userinfo = self._require_object(await self._get_json(self.userinfo_url, token), self.userinfo_url)
        return self._map_userinfo(userinfo)

    def _map_userinfo(self, userinfo: Dict[str, Any]) -> UserProvidedData:
        """Map Descope userinfo to UserProvidedData.

        Raises:
            ProfileFetchError: If the userinfo carries no subject
        """
        subject = str(userinfo.get("sub") or "")
        if not subject:
            raise ProfileFetchError("Descope userinfo missing subject")

        email = userinfo.get("email") or ""
        email_verified = parse_flag(userinfo.get("email_verified"))

        data = UserProvidedData()
        if email:
            data.emails = [Email(email=email, verified=email_verified, primary=True)]

        data.metadata = Claims(
            issuer=self.api_host,
            subject=subject,
            provider_id=subject,
            name=userinfo.get("name") or "",
            given_name=userinfo.get("given_name") or "",
            family_name=userinfo.get("family_name") or "",
            picture=userinfo.get("picture") or "",
            email=email,
            email_verified=email_verified,
            phone=userinfo.get("phone_number") or "",
            phone_verified=parse_flag(userinfo.get("phone_verified")),
        )
        return data
