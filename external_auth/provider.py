# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Abstract external identity provider interface.

This module defines the contract that all provider adapters must implement,
enabling support for multiple third-party OAuth2/OIDC providers behind one
authorize/exchange/fetch flow without coupling the service to any of them.
"""

from abc import ABC, abstractmethod

from .models import OAuthToken, UserProvidedData


class OAuthProvider(ABC):
    """Abstract base class for provider adapters.

    Adapters are immutable after construction and safe to share across
    concurrent requests.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier (e.g., 'descope', 'github')."""
        pass

    @abstractmethod
    def get_authorization_url(self, state: str, **extra_params: str) -> str:
        """Build the URL that starts the authorization code flow.

        Args:
            state: Signed state token
            **extra_params: Additional query parameters for the provider

        Returns:
            Full authorization URL to redirect the user to
        """
        pass

    @abstractmethod
    async def exchange_code(self, code: str) -> OAuthToken:
        """Exchange an authorization code for tokens.

        Args:
            code: Authorization code from the callback

        Returns:
            Tokens issued by the provider

        Raises:
            TokenExchangeError: If the grant fails for any reason
        """
        pass

    @abstractmethod
    async def get_user_data(self, token: OAuthToken) -> UserProvidedData:
        """Fetch the user's profile and normalize it.

        Args:
            token: Tokens from exchange_code

        Returns:
            Normalized user data

        Raises:
            ProfileFetchError: If the profile cannot be fetched or has no subject
        """
        pass
