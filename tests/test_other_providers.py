# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Tests for the GitHub and Google provider adapters."""

import httpx
import pytest

from external_auth import (
    GitHubProvider,
    GoogleProvider,
    OAuthToken,
    ProfileFetchError,
    ProviderConfig,
    TokenExchangeError,
)


def provider_config(**overrides):
    values = {
        "client_id": ["test-client-id"],
        "secret": "test-client-secret",
        "redirect_uri": "https://auth.example.com/callback",
    }
    values.update(overrides)
    return ProviderConfig(**values)


def json_routes(routes):
    """Build a transport answering GETs from a path -> (status, body) mapping."""
    def handler(request):
        status, body = routes.get(request.url.path, (404, {"message": "Not Found"}))
        return httpx.Response(status, json=body)

    return httpx.MockTransport(handler)


class TestGitHubProvider:
    """Tests for GitHubProvider."""

    def test_provider_initialization(self):
        provider = GitHubProvider.from_config(provider_config())

        assert provider.name == "github"
        assert provider.api_base_url == "https://api.github.com"
        assert provider.auth_url == "https://github.com/login/oauth/authorize"
        assert provider.token_url == "https://github.com/login/oauth/access_token"
        assert provider.scopes == ("user:email",)

    def test_enterprise_url(self):
        """Test a configured URL targets GitHub Enterprise Server."""
        provider = GitHubProvider.from_config(provider_config(url="https://github.enterprise.com/"))

        assert provider.auth_url == "https://github.enterprise.com/login/oauth/authorize"
        assert provider.api_base_url == "https://github.enterprise.com/api/v3"

    @pytest.mark.asyncio
    async def test_user_data_keeps_email_order_and_primary(self):
        """Test emails are kept in order with exactly one primary."""
        transport = json_routes({
            "/user": (200, {"id": 1234, "login": "octocat", "name": "The Octocat", "avatar_url": "https://a/1"}),
            "/user/emails": (200, [
                {"email": "old@example.com", "verified": False, "primary": False},
                {"email": "octocat@example.com", "verified": True, "primary": True},
                {"email": "second@example.com", "verified": True, "primary": True},
            ]),
        })
        provider = GitHubProvider.from_config(provider_config(), transport=transport)

        data = await provider.get_user_data(OAuthToken(access_token="T"))

        assert [e.email for e in data.emails] == [
            "old@example.com",
            "octocat@example.com",
            "second@example.com",
        ]
        assert [e.primary for e in data.emails] == [False, True, False]
        assert data.metadata.subject == "1234"
        assert data.metadata.preferred_username == "octocat"
        assert data.metadata.email == "octocat@example.com"
        assert data.metadata.email_verified is True
        assert data.metadata.avatar_url == "https://a/1"

    @pytest.mark.asyncio
    async def test_email_list_failure_yields_no_emails(self):
        """Test a failed /user/emails call leaves the list empty."""
        transport = json_routes({
            "/user": (200, {"id": 99, "login": "private"}),
            "/user/emails": (403, {"message": "Forbidden"}),
        })
        provider = GitHubProvider.from_config(provider_config(), transport=transport)

        data = await provider.get_user_data(OAuthToken(access_token="T"))

        assert data.emails == []
        assert data.metadata.subject == "99"
        assert data.metadata.email == ""

    @pytest.mark.asyncio
    async def test_user_endpoint_failure(self):
        transport = json_routes({"/user": (401, {"message": "Bad credentials"})})
        provider = GitHubProvider.from_config(provider_config(), transport=transport)

        with pytest.raises(ProfileFetchError):
            await provider.get_user_data(OAuthToken(access_token="T"))

    @pytest.mark.asyncio
    async def test_oauth_error_in_successful_response(self):
        """Test GitHub's 200-with-error token response is rejected."""
        transport = httpx.MockTransport(
            lambda r: httpx.Response(200, json={"error": "bad_verification_code"})
        )
        provider = GitHubProvider.from_config(provider_config(), transport=transport)

        with pytest.raises(TokenExchangeError, match="bad_verification_code"):
            await provider.exchange_code("used-code")

    @pytest.mark.asyncio
    async def test_string_flags_in_email_list(self):
        transport = json_routes({
            "/user": (200, {"id": 7, "login": "flags"}),
            "/user/emails": (200, [
                {"email": "a@example.com", "verified": "false", "primary": "false"},
                {"email": "b@example.com", "verified": "true", "primary": "true"},
            ]),
        })
        provider = GitHubProvider.from_config(provider_config(), transport=transport)

        data = await provider.get_user_data(OAuthToken(access_token="T"))

        assert [(e.verified, e.primary) for e in data.emails] == [(False, False), (True, True)]
        assert data.metadata.email == "b@example.com"


class TestGoogleProvider:
    """Tests for GoogleProvider."""

    def test_provider_initialization(self):
        provider = GoogleProvider.from_config(provider_config())

        assert provider.name == "google"
        assert provider.scopes == ("openid", "email", "profile")
        assert provider.userinfo_url == "https://openidconnect.googleapis.com/v1/userinfo"

    @pytest.mark.asyncio
    async def test_user_data(self):
        transport = json_routes({
            "/v1/userinfo": (200, {
                "sub": "10769150350006150715113082367",
                "email": "jsmith@example.com",
                "email_verified": True,
                "given_name": "Jane",
                "family_name": "Smith",
            }),
        })
        provider = GoogleProvider.from_config(provider_config(), transport=transport)

        data = await provider.get_user_data(OAuthToken(access_token="T"))

        assert data.metadata.issuer == "https://accounts.google.com"
        assert data.metadata.subject == "10769150350006150715113082367"
        assert data.metadata.name == "Jane Smith"
        assert len(data.emails) == 1
        assert data.emails[0].primary is True
        assert data.emails[0].verified is True

    @pytest.mark.asyncio
    async def test_string_false_email_verified_is_unverified(self):
        """Test Google's string-typed "false" flag does not mark the email verified."""
        transport = json_routes({
            "/v1/userinfo": (200, {"sub": "42", "email": "j@example.com", "email_verified": "false"}),
        })
        provider = GoogleProvider.from_config(provider_config(), transport=transport)

        data = await provider.get_user_data(OAuthToken(access_token="T"))

        assert data.emails[0].verified is False
        assert data.metadata.email_verified is False
