# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Tests for the provider registry and factory."""

import pytest

from external_auth import (
    DescopeProvider,
    GitHubProvider,
    GoogleProvider,
    ProviderConfig,
    UnknownProviderError,
    create_provider,
    register_provider,
    supported_providers,
)
from external_auth import factory


@pytest.fixture
def provider_config():
    return ProviderConfig(
        client_id=["test-client-id"],
        secret="test-secret",
        redirect_uri="https://auth.example.com/callback",
    )


@pytest.fixture
def isolated_registry(monkeypatch):
    """Let a test register providers without leaking them to other tests."""
    monkeypatch.setattr(factory, "_REGISTRY", dict(factory._REGISTRY))


def test_supported_providers():
    assert supported_providers() == ["descope", "github", "google"]


@pytest.mark.parametrize(
    "name, expected",
    [
        ("descope", DescopeProvider),
        ("github", GitHubProvider),
        ("google", GoogleProvider),
        ("GitHub", GitHubProvider),
    ],
)
def test_create_provider(provider_config, name, expected):
    assert isinstance(create_provider(name, provider_config), expected)


def test_create_provider_passes_scopes(provider_config):
    provider = create_provider("github", provider_config, "read:org")

    assert provider.scopes == ("user:email", "read:org")


def test_create_provider_passes_timeout(provider_config):
    provider = create_provider("google", provider_config, timeout=3.0)

    assert provider.timeout == 3.0


@pytest.mark.parametrize("name", ["myspace", ""])
def test_unknown_provider(provider_config, name):
    with pytest.raises(UnknownProviderError, match="Unsupported provider"):
        create_provider(name, provider_config)


def test_register_provider(provider_config, isolated_registry):
    """Test a registered constructor is reachable by name."""
    calls = []

    def build(config, scopes="", **kwargs):
        calls.append((config, scopes))
        return GitHubProvider.from_config(config, scopes, **kwargs)

    register_provider("Gitea", build)

    assert "gitea" in supported_providers()
    create_provider("gitea", provider_config, "repo")
    assert calls == [(provider_config, "repo")]


def test_register_provider_requires_name(isolated_registry):
    with pytest.raises(ValueError):
        register_provider("", GitHubProvider.from_config)
