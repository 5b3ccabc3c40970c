# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Data models shared by provider adapters and the auth flow.

This module defines the state token claims, the OAuth token returned by a
code exchange, and the normalized user profile every provider adapter must
produce regardless of the upstream JSON shape.
"""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional


@dataclass
class StateClaims:
    """Context carried through the provider round-trip in the OAuth state.

    Attributes:
        provider: Name of the provider the flow was started for
        site_url: Where the end user returns after the flow
        invite_token: Optional invite being redeemed by this login
        referrer: Validated post-login redirect target
        flow_state_id: Optional identifier of a richer multi-step flow
        linking_target_id: Optional account that the identity should attach to
        email_optional: Whether the provider may legitimately omit an email
        issued_at: Token issue time (set on decode, ignored by equality)
        expires_at: Token expiry time (set on decode, ignored by equality)
    """
    provider: str
    site_url: str
    invite_token: Optional[str] = None
    referrer: Optional[str] = None
    flow_state_id: Optional[str] = None
    linking_target_id: Optional[str] = None
    email_optional: bool = False
    issued_at: Optional[int] = field(default=None, compare=False)
    expires_at: Optional[int] = field(default=None, compare=False)

    # Optional claims are only written to the token when set
    OPTIONAL_CLAIMS = (
        "invite_token",
        "referrer",
        "flow_state_id",
        "linking_target_id",
    )

    def to_payload(self) -> Dict[str, Any]:
        """Convert claims to a JWT payload (without iat/exp)."""
        payload: Dict[str, Any] = {
            "provider": self.provider,
            "site_url": self.site_url,
        }
        for name in self.OPTIONAL_CLAIMS:
            value = getattr(self, name)
            if value:
                payload[name] = value
        if self.email_optional:
            payload["email_optional"] = True
        return payload

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "StateClaims":
        """Build claims from a decoded JWT payload."""
        return cls(
            provider=payload["provider"],
            site_url=payload["site_url"],
            invite_token=payload.get("invite_token"),
            referrer=payload.get("referrer"),
            flow_state_id=payload.get("flow_state_id"),
            linking_target_id=payload.get("linking_target_id"),
            email_optional=bool(payload.get("email_optional", False)),
            issued_at=payload.get("iat"),
            expires_at=payload.get("exp"),
        )


@dataclass
class OAuthToken:
    """Tokens returned by a provider's token endpoint.

    Token values are excluded from repr so they never end up in logs.
    """
    access_token: str = field(repr=False)
    token_type: str = "Bearer"
    refresh_token: str = field(default="", repr=False)
    expires_in: Optional[int] = None
    id_token: str = field(default="", repr=False)
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "OAuthToken":
        """Build a token from a decoded token endpoint response.

        Raises:
            ValueError: If the response carries no access_token
        """
        access_token = data.get("access_token")
        if not access_token:
            raise ValueError("no access_token in token response")

        expires_in = data.get("expires_in")
        if expires_in in (None, ""):
            expires_in = None
        else:
            expires_in = int(expires_in)

        return cls(
            access_token=str(access_token),
            token_type=str(data.get("token_type") or "Bearer"),
            refresh_token=str(data.get("refresh_token") or ""),
            expires_in=expires_in,
            id_token=str(data.get("id_token") or ""),
            raw=dict(data),
        )


@dataclass
class Email:
    """An email address reported by a provider."""
    email: str
    verified: bool = False
    primary: bool = False


@dataclass
class Claims:
    """Normalized identity metadata in OIDC standard-claim vocabulary."""
    issuer: str = ""
    subject: str = ""
    provider_id: str = ""
    name: str = ""
    given_name: str = ""
    family_name: str = ""
    preferred_username: str = ""
    picture: str = ""
    avatar_url: str = ""
    full_name: str = ""
    email: str = ""
    email_verified: bool = False
    phone: str = ""
    phone_verified: bool = False
    custom_claims: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a dictionary, omitting empty values."""
        result: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value:
                result[f.name] = value
        return result


@dataclass
class UserProvidedData:
    """Canonical profile produced by every provider adapter.

    Attributes:
        emails: Ordered email addresses, at most one marked primary
        metadata: Normalized identity claims; metadata.subject is the
            federation key used for account linking
    """
    emails: List[Email] = field(default_factory=list)
    metadata: Claims = field(default_factory=Claims)

    def primary_email(self) -> Optional[Email]:
        """Return the primary email, if any."""
        for email in self.emails:
            if email.primary:
                return email
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a dictionary for serialization."""
        return {
            "emails": [
                {"email": e.email, "verified": e.verified, "primary": e.primary}
                for e in self.emails
            ],
            "metadata": self.metadata.to_dict(),
        }
