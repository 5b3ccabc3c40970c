# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Pytest configuration for external_auth tests."""

import json
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs

import httpx
import pytest

from external_auth import ExternalAuthConfig, ExternalAuthService, ProviderConfig, StateCodec
from external_auth.logger import SilentLogger

STATE_SECRET = "test-state-secret-0123456789abcdef"
SITE_URL = "https://app.example.com"
REDIRECT_URI = "https://auth.example.com/callback"


class MockProviderServer:
    """In-process stand-in for a provider's token and userinfo endpoints.

    Codes are single-use: a code is accepted once and rejected with
    invalid_grant afterwards, as real providers do.
    """

    def __init__(
        self,
        token_path: str = "/oauth2/v1/token",
        userinfo_path: str = "/oauth2/v1/userinfo",
        user: Optional[Dict[str, Any]] = None,
        valid_codes: tuple[str, ...] = ("authcode",),
    ):
        self.token_path = token_path
        self.userinfo_path = userinfo_path
        self.user = user if user is not None else {"sub": "123", "email": "a@b.com", "email_verified": True}
        self.valid_codes = set(valid_codes)
        self.token_count = 0
        self.userinfo_count = 0
        self.requests: List[httpx.Request] = []
        self.token_forms: List[Dict[str, str]] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.path.endswith(self.token_path):
            self.token_count += 1
            form = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
            self.token_forms.append(form)
            code = form.get("code")
            if code not in self.valid_codes:
                return httpx.Response(
                    400,
                    json={"error": "invalid_grant", "error_description": "code already used or unknown"},
                )
            self.valid_codes.discard(code)
            return httpx.Response(
                200,
                json={"access_token": "T", "refresh_token": "R", "expires_in": 100000},
            )

        if request.url.path.endswith(self.userinfo_path):
            self.userinfo_count += 1
            if request.headers.get("Authorization") != "Bearer T":
                return httpx.Response(401, json={"error": "invalid_token"})
            return httpx.Response(200, content=json.dumps(self.user), headers={"Content-Type": "application/json"})

        return httpx.Response(500, json={"error": f"unknown call {request.url.path}"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def mock_server() -> MockProviderServer:
    """Mock Descope endpoints returning the documented token and userinfo bodies."""
    return MockProviderServer()


@pytest.fixture
def descope_config() -> ProviderConfig:
    """Complete Descope provider configuration."""
    return ProviderConfig(
        client_id=["testclientid"],
        secret="testsecret",
        redirect_uri=REDIRECT_URI,
    )


@pytest.fixture
def auth_config(descope_config) -> ExternalAuthConfig:
    """Service configuration with Descope enabled."""
    return ExternalAuthConfig(
        site_url=SITE_URL,
        state_secret=STATE_SECRET,
        uri_allow_list=["https://*.example.org/*"],
        external={"descope": descope_config},
    )


@pytest.fixture
def silent_logger() -> SilentLogger:
    return SilentLogger(name="test")


@pytest.fixture
def auth_service(auth_config, mock_server, silent_logger) -> ExternalAuthService:
    """Service wired to the mock provider transport."""
    return ExternalAuthService(
        config=auth_config,
        logger=silent_logger,
        transport=mock_server.transport,
    )


@pytest.fixture
def state_codec(auth_config):
    """State codec sharing the service's secret."""
    return StateCodec(auth_config.state_secret, auth_config.state_expiry_seconds)
