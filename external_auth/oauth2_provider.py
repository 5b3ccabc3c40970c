# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""OAuth2 base provider with the common authorization code flow logic.

This module provides a base class for OAuth2-based provider adapters,
implementing authorization URL generation, the code-for-token exchange,
and authenticated JSON requests against provider APIs.
"""

from typing import Any, Dict, Iterable, Optional
from urllib.parse import parse_qsl

import httpx

from .errors import ProfileFetchError, TokenExchangeError
from .models import OAuthToken
from .provider import OAuthProvider

DEFAULT_HTTP_TIMEOUT = 10.0

# Cap on how much of an upstream error body ends up in an error message
_ERROR_BODY_LIMIT = 200


def choose_host(base: Optional[str], default_host: str) -> str:
    """Return the configured base URL, or the default when none is set.

    A trailing slash is stripped from the configured value.
    """
    if not base:
        return default_host
    return base[:-1] if base.endswith("/") else base


def parse_flag(value: Any) -> bool:
    """Read a boolean claim that providers may send as a bool or a string.

    Only True and the string "true" (any case) count as set; anything else,
    including "false" and a missing value, is False.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return False


def merge_scopes(required: Iterable[str], *extra: Optional[str]) -> tuple[str, ...]:
    """Combine required scopes with comma-separated extra scopes.

    Order is preserved and duplicates and blanks are dropped.
    """
    candidates = list(required)
    for csv in extra:
        if csv:
            candidates.extend(csv.split(","))

    seen: set[str] = set()
    result: list[str] = []
    for scope in candidates:
        scope = scope.strip()
        if scope and scope not in seen:
            seen.add(scope)
            result.append(scope)
    return tuple(result)


class OAuth2Provider(OAuthProvider):
    """Base class for OAuth2 provider adapters.

    Provides common OAuth2 functionality including:
    - Authorization URL generation
    - Token exchange via authorization code (credentials in the form body)
    - Bearer-authenticated JSON requests for profile data

    Attributes:
        client_id: OAuth client ID sent to the provider
        client_secret: OAuth client secret
        redirect_uri: Callback URL registered with the provider
        auth_url: Provider authorization endpoint
        token_url: Provider token endpoint
        scopes: Scopes requested on authorization
        timeout: Per-request timeout in seconds
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        auth_url: str,
        token_url: str,
        scopes: Iterable[str],
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the OAuth2 provider.

        Args:
            client_id: OAuth client ID
            client_secret: OAuth client secret
            redirect_uri: Callback URL for OAuth flow
            auth_url: Authorization endpoint URL
            token_url: Token endpoint URL
            scopes: OAuth scopes to request
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.auth_url = auth_url
        self.token_url = token_url
        self.scopes = tuple(scopes)
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    def get_authorization_url(self, state: str, **extra_params: str) -> str:
        """Generate authorization URL for the OAuth flow.

        Args:
            state: Signed state token
            **extra_params: Additional query parameters

        Returns:
            Authorization URL
        """
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.scopes),
            "state": state,
        }
        params.update({k: v for k, v in extra_params.items() if v})

        return str(httpx.URL(self.auth_url).copy_merge_params(params))

    async def exchange_code(self, code: str) -> OAuthToken:
        """Exchange authorization code for tokens.

        The exchange is attempted exactly once; codes are single-use.

        Args:
            code: Authorization code from callback

        Returns:
            Token response

        Raises:
            TokenExchangeError: If the request fails or the provider rejects the code
        """
        try:
            async with self._client() as client:
                response = await client.post(
                    self.token_url,
                    data={
                        "grant_type": "authorization_code",
                        "code": code,
                        "redirect_uri": self.redirect_uri,
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                    },
                    headers={"Accept": "application/json"},
                )
        except httpx.HTTPError as e:
            raise TokenExchangeError(f"Token endpoint unavailable: {e}") from e

        data = self._decode_token_response(response)

        if response.status_code >= 400 or data.get("error"):
            error = data.get("error") or f"HTTP {response.status_code}"
            description = data.get("error_description")
            message = f"Token exchange failed: {error}"
            if description:
                message = f"{message} ({description})"
            raise TokenExchangeError(message)

        try:
            return OAuthToken.from_response(data)
        except (TypeError, ValueError) as e:
            raise TokenExchangeError(f"Token exchange failed: {e}") from e

    @staticmethod
    def _decode_token_response(response: httpx.Response) -> Dict[str, Any]:
        """Decode a token response that may be JSON or form-encoded."""
        content_type = response.headers.get("content-type", "")
        if "application/x-www-form-urlencoded" in content_type or "text/plain" in content_type:
            return dict(parse_qsl(response.text))

        try:
            data = response.json()
        except ValueError as e:
            if response.status_code >= 400:
                return {}
            raise TokenExchangeError(
                f"Token endpoint returned an undecodable response: {response.text[:_ERROR_BODY_LIMIT]}"
            ) from e

        if not isinstance(data, dict):
            raise TokenExchangeError("Token endpoint returned a non-object response")
        return data

    async def _get_json(self, url: str, token: OAuthToken) -> Any:
        """Make a bearer-authenticated GET and decode the JSON body.

        Args:
            url: Provider API URL
            token: Tokens carrying the access token

        Returns:
            Decoded JSON body

        Raises:
            ProfileFetchError: If the request fails or returns an error status
        """
        try:
            async with self._client() as client:
                response = await client.get(
                    url,
                    headers={
                        "Authorization": f"Bearer {token.access_token}",
                        "Accept": "application/json",
                    },
                )
        except httpx.HTTPError as e:
            raise ProfileFetchError(f"Profile endpoint unavailable: {e}") from e

        if response.status_code >= 300:
            raise ProfileFetchError(
                f"Profile request to {url} failed with HTTP {response.status_code}: "
                f"{response.text[:_ERROR_BODY_LIMIT]}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise ProfileFetchError(f"Profile response from {url} is not valid JSON") from e

    @staticmethod
    def _require_object(data: Any, url: str) -> Dict[str, Any]:
        if not isinstance(data, dict):
            raise ProfileFetchError(f"Profile response from {url} is not a JSON object")
        return data
