# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Signing and verification of the OAuth state parameter.

The state token is a short-lived HS256 JWT that carries the provider name
and post-login destination across the provider round-trip, so the server
keeps no session between the authorize redirect and the callback.
"""

import time
from typing import Any

import jwt

from .errors import ConfigInvalidError, InvalidStateError
from .models import StateClaims

STATE_ALGORITHM = "HS256"
DEFAULT_STATE_EXPIRY = 300  # 5 minutes
MAX_STATE_EXPIRY = 3600


class StateCodec:
    """Signs and verifies state tokens with a single fixed algorithm.

    Attributes:
        expiry: Token lifetime in seconds
    """

    def __init__(self, secret: str, expiry: int = DEFAULT_STATE_EXPIRY):
        """Initialize the codec.

        Args:
            secret: HMAC secret shared by the authorize and callback halves
            expiry: Token lifetime in seconds

        Raises:
            ConfigInvalidError: If the secret is empty or expiry is out of range
        """
        if not secret:
            raise ConfigInvalidError("state signing secret is required")
        if expiry <= 0 or expiry > MAX_STATE_EXPIRY:
            raise ConfigInvalidError(
                f"state expiry must be between 1 and {MAX_STATE_EXPIRY} seconds, got {expiry}"
            )

        self._secret = secret
        self.expiry = expiry

    def sign(self, claims: StateClaims, issued_at: int | None = None) -> str:
        """Sign claims into a compact state token.

        Args:
            claims: Claims to carry through the round-trip
            issued_at: Issue time as a Unix timestamp (default: now)

        Returns:
            Signed JWT string
        """
        now = int(time.time()) if issued_at is None else issued_at

        payload: dict[str, Any] = claims.to_payload()
        payload["iat"] = now
        payload["exp"] = now + self.expiry

        return jwt.encode(payload, self._secret, algorithm=STATE_ALGORITHM)

    def verify(self, token: str) -> StateClaims:
        """Verify a state token and return its claims.

        Args:
            token: State token from the callback request

        Returns:
            Decoded claims

        Raises:
            InvalidStateError: If the token is malformed, tampered, expired,
                signed with another algorithm, or missing required claims
        """
        if not token:
            raise InvalidStateError("OAuth state parameter missing")

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[STATE_ALGORITHM],
                options={"require": ["exp", "iat", "provider", "site_url"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise InvalidStateError("OAuth state has expired") from e
        except jwt.InvalidAlgorithmError as e:
            raise InvalidStateError("OAuth state signed with an unexpected algorithm") from e
        except jwt.InvalidTokenError as e:
            raise InvalidStateError(f"OAuth state is invalid: {e}") from e

        if not isinstance(payload.get("provider"), str) or not payload["provider"]:
            raise InvalidStateError("OAuth state has no provider")

        return StateClaims.from_payload(payload)
