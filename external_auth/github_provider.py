# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""GitHub OAuth provider adapter.

This module provides authentication via GitHub OAuth, including GitHub
Enterprise Server when a base URL is configured.
"""

from typing import Any, Dict, List, Optional

import httpx

from .config import ProviderConfig
from .errors import ProfileFetchError
from .models import Claims, Email, OAuthToken, UserProvidedData
from .oauth2_provider import DEFAULT_HTTP_TIMEOUT, OAuth2Provider, choose_host, merge_scopes, parse_flag

DEFAULT_GITHUB_AUTH_BASE = "https://github.com"
DEFAULT_GITHUB_API_BASE = "https://api.github.com"

GITHUB_SCOPES = ("user:email",)


class GitHubProvider(OAuth2Provider):
    """GitHub OAuth provider adapter.

    GitHub has no userinfo endpoint; the profile comes from /user and the
    address list from /user/emails.

    Attributes:
        api_base_url: Base URL for the GitHub REST API
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        auth_base_url: str = DEFAULT_GITHUB_AUTH_BASE,
        api_base_url: str = DEFAULT_GITHUB_API_BASE,
        scopes: Optional[str] = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the GitHub provider.

        Args:
            client_id: GitHub OAuth application client ID
            client_secret: GitHub OAuth application client secret
            redirect_uri: OAuth callback URL
            auth_base_url: Base URL for the OAuth endpoints
            api_base_url: Base URL for the GitHub API
            scopes: Comma-separated scopes in addition to user:email
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport
        """
        super().__init__(
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=redirect_uri,
            auth_url=f"{auth_base_url}/login/oauth/authorize",
            token_url=f"{auth_base_url}/login/oauth/access_token",
            scopes=merge_scopes(GITHUB_SCOPES, scopes),
            timeout=timeout,
            transport=transport,
        )
        self.api_base_url = api_base_url

    @property
    def name(self) -> str:
        return "github"

    @classmethod
    def from_config(cls, config: ProviderConfig, scopes: str = "", **kwargs: Any) -> "GitHubProvider":
        """Create a GitHubProvider from provider configuration.

        A configured URL points at a GitHub Enterprise Server, whose REST API
        lives under /api/v3 of the same host.
        """
        config.validate_oauth()

        auth_base_url = choose_host(config.url, DEFAULT_GITHUB_AUTH_BASE)
        api_base_url = choose_host(config.url, DEFAULT_GITHUB_API_BASE)
        if not api_base_url.endswith(DEFAULT_GITHUB_API_BASE):
            api_base_url += "/api/v3"

        return cls(
            client_id=config.client_id[0],
            client_secret=config.secret,
            redirect_uri=config.redirect_uri,
            auth_base_url=auth_base_url,
            api_base_url=api_base_url,
            scopes=",".join(s for s in (config.scopes, scopes) if s),
            **kwargs,
        )

    async def _get_user_emails(self, token: OAuthToken) -> List[Email]:
        """Retrieve the user's email addresses in the order GitHub lists them.

        The list is optional; a failed request yields no addresses.
        """
        try:
            entries = await self._get_json(f"{self.api_base_url}/user/emails", token)
        except ProfileFetchError:
            return []
        if not isinstance(entries, list):
            return []

        emails: List[Email] = []
        has_primary = False
        for entry in entries:
            if not isinstance(entry, dict) or not entry.get("email"):
                continue
            primary = parse_flag(entry.get("primary")) and not has_primary
            has_primary = has_primary or primary
            emails.append(
                Email(
                    email=entry["email"],
                    verified=parse_flag(entry.get("verified")),
                    primary=primary,
                )
            )
        return emails

    async def get_user_data(self, token: OAuthToken) -> UserProvidedData:
        """Fetch the GitHub profile and email list and normalize them."""
        url = f"{self.api_base_url}/user"
        user = self._require_object(await self._get_json(url, token), url)
        emails = await self._get_user_emails(token)
        return self._map_user(user, emails)

    def _map_user(self, user: Dict[str, Any], emails: List[Email]) -> UserProvidedData:
        """Map GitHub user and emails to UserProvidedData."""
        user_id = user.get("id")
        if user_id in (None, ""):
            raise ProfileFetchError("GitHub user missing id")
        subject = str(user_id)

        data = UserProvidedData(emails=emails)
        primary = data.primary_email()

        login = user.get("login") or ""
        name = user.get("name") or ""
        avatar_url = user.get("avatar_url") or ""

        data.metadata = Claims(
            issuer=self.api_base_url,
            subject=subject,
            provider_id=subject,
            name=name,
            full_name=name,
            preferred_username=login,
            picture=avatar_url,
            avatar_url=avatar_url,
            email=primary.email if primary else "",
            email_verified=primary.verified if primary else False,
        )
        return data
