# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Google OIDC provider adapter."""

from typing import Any, Dict, Optional

import httpx

from .config import ProviderConfig
from .errors import ProfileFetchError
from .models import Claims, Email, OAuthToken, UserProvidedData
from .oauth2_provider import DEFAULT_HTTP_TIMEOUT, OAuth2Provider, choose_host, merge_scopes, parse_flag

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_ISSUER = "https://accounts.google.com"
DEFAULT_GOOGLE_API_BASE = "https://openidconnect.googleapis.com"

GOOGLE_SCOPES = ("openid", "email", "profile")


class GoogleProvider(OAuth2Provider):
    """Google OIDC provider adapter.

    Attributes:
        userinfo_url: OIDC userinfo endpoint
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        api_base_url: str = DEFAULT_GOOGLE_API_BASE,
        scopes: Optional[str] = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=redirect_uri,
            auth_url=GOOGLE_AUTH_URL,
            token_url=GOOGLE_TOKEN_URL,
            scopes=merge_scopes(GOOGLE_SCOPES, scopes),
            timeout=timeout,
            transport=transport,
        )
        self.userinfo_url = f"{api_base_url}/v1/userinfo"

    @property
    def name(self) -> str:
        return "google"

    @classmethod
    def from_config(cls, config: ProviderConfig, scopes: str = "", **kwargs: Any) -> "GoogleProvider":
        """Create a GoogleProvider from provider configuration."""
        config.validate_oauth()

        return cls(
            client_id=config.client_id[0],
            client_secret=config.secret,
            redirect_uri=config.redirect_uri,
            api_base_url=choose_host(config.url, DEFAULT_GOOGLE_API_BASE),
            scopes=",".join(s for s in (config.scopes, scopes) if s),
            **kwargs,
        )

    async def get_user_data(self, token: OAuthToken) -> UserProvidedData:
        userinfo = self._require_object(await self._get_json(self.userinfo_url, token), self.userinfo_url)
        return self._map_userinfo(userinfo)

    def _map_userinfo(self, userinfo: Dict[str, Any]) -> UserProvidedData:
        """Map Google userinfo to UserProvidedData."""
        # Google's "sub" claim is the stable account ID
        subject = str(userinfo.get("sub") or "")
        if not subject:
            raise ProfileFetchError("Google userinfo missing subject")

        email = userinfo.get("email") or ""
        email_verified = parse_flag(userinfo.get("email_verified"))

        data = UserProvidedData()
        if email:
            data.emails = [Email(email=email, verified=email_verified, primary=True)]

        name = userinfo.get("name") or ""
        if not name:
            name = f"{userinfo.get('given_name', '')} {userinfo.get('family_name', '')}".strip()

        data.metadata = Claims(
            issuer=GOOGLE_ISSUER,
            subject=subject,
            provider_id=subject,
            name=name,
            full_name=name,
            given_name=userinfo.get("given_name") or "",
            family_name=userinfo.get("family_name") or "",
            picture=userinfo.get("picture") or "",
            avatar_url=userinfo.get("picture") or "",
            email=email,
            email_verified=email_verified,
        )
        return data
