"""Authorization material and the basic authenticators.

An authenticator produces the credentials for one request to one registry.
Providers that talk to external tools live in their own modules
(``helper``, ``gcloud``); the ones here are pure values.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Optional, Dict


@dataclass(frozen=True)
class AuthConfig:
    """Credentials for a single registry request.

    Field names follow Docker's ``config.json`` / credential helper
    vocabulary so the result can be handed to any registry client.

    Attributes:
        username: Username for basic auth
        password: Password or access token for basic auth
        auth: Pre-encoded ``base64(username:password)``
        identity_token: Refresh token exchanged for a registry token
        registry_token: Bearer token sent to the registry as-is
    """
    username: Optional[str] = None
    password: Optional[str] = None
    auth: Optional[str] = None
    identity_token: Optional[str] = None
    registry_token: Optional[str] = None

    @property
    def is_anonymous(self) -> bool:
        """True when no credential material is present."""
        return not any((
            self.username,
            self.password,
            self.auth,
            self.identity_token,
            self.registry_token,
        ))

    def to_dict(self) -> Dict[str, str]:
        """Convert to Docker's JSON key names, omitting empty fields."""
        data = {
            "username": self.username,
            "password": self.password,
            "auth": self.auth,
            "identitytoken": self.identity_token,
            "registrytoken": self.registry_token,
        }
        return {k: v for k, v in data.items() if v}

    def __repr__(self) -> str:
        # Never echo secrets
        return f"AuthConfig(username={self.username!r}, anonymous={self.is_anonymous})"


class Anonymous:
    """Authenticator that always succeeds with no credentials.

    Use the module level ``ANONYMOUS`` instance; resolvers compare against
    it by identity.
    """

    def authorization(self) -> AuthConfig:
        return AuthConfig()

    def __repr__(self) -> str:
        return "ANONYMOUS"


ANONYMOUS = Anonymous()


class Basic:
    """Static username/password authenticator."""

    def __init__(self, username: str, password: str):
        self.username = username
        self.password = password

    def authorization(self) -> AuthConfig:
        return AuthConfig(username=self.username, password=self.password)

    def __repr__(self) -> str:
        return f"Basic(username={self.username!r})"


class Bearer:
    """Static registry token authenticator."""

    def __init__(self, token: str):
        self.token = token

    def authorization(self) -> AuthConfig:
        return AuthConfig(registry_token=self.token)

    def __repr__(self) -> str:
        return "Bearer(...)"


class FromConfig:
    """Authenticator returning a fixed AuthConfig."""

    def __init__(self, config: AuthConfig):
        self.config = config

    def authorization(self) -> AuthConfig:
        return self.config

    def __repr__(self) -> str:
        return f"FromConfig({self.config!r})"


def encode_basic_auth(username: str, password: str) -> str:
    """Encode credentials the way Docker stores them in ``auths``."""
    raw = f"{username}:{password}".encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


__all__ = [
    "AuthConfig",
    "Anonymous",
    "ANONYMOUS",
    "Basic",
    "Bearer",
    "FromConfig",
    "encode_basic_auth",
]
