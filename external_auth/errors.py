# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Error taxonomy for the external identity provider layer.

Every error raised by this package derives from ExternalAuthError and carries
a stable machine-readable code plus the HTTP status the API layer reports.
None of them are retried: authorization codes are single-use and state tokens
are time-boxed.
"""


class ExternalAuthError(Exception):
    """Base class for all external auth errors."""

    code = "external_auth_error"
    status_code = 500


class ConfigInvalidError(ExternalAuthError):
    """Raised when provider or service configuration is unusable."""

    code = "config_invalid"
    status_code = 500


class InvalidStateError(ExternalAuthError):
    """Raised when the OAuth state token is tampered, expired, or malformed."""

    code = "invalid_state"
    status_code = 400


class UnknownProviderError(ExternalAuthError):
    """Raised when a provider name is unsupported, unconfigured, or disabled."""

    code = "unknown_provider"
    status_code = 400


class InvalidRequestError(ExternalAuthError):
    """Raised when a callback request is missing required parameters."""

    code = "invalid_request"
    status_code = 400


class ProviderCallbackError(ExternalAuthError):
    """Raised when the provider redirects back with an OAuth error."""

    code = "provider_error"
    status_code = 400


class TokenExchangeError(ExternalAuthError):
    """Raised when the authorization code grant fails."""

    code = "token_exchange_failed"
    status_code = 502


class ProfileFetchError(ExternalAuthError):
    """Raised when the user profile cannot be fetched or normalized."""

    code = "profile_fetch_failed"
    status_code = 502
