"""Port definitions for the credential-resolution core.

These protocols are the boundaries between the resolution core and the
machinery that actually knows about credentials. Everything behind them
(config files, credential helpers, cloud SDKs) can be replaced with fakes
in tests.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, Optional, runtime_checkable, TYPE_CHECKING

from .auth import AuthConfig

if TYPE_CHECKING:
    from .config import CredentialConfig


@runtime_checkable
class Authenticator(Protocol):
    """Produces current authorization material for one request."""

    def authorization(self) -> AuthConfig:
        """Return credentials for the next registry request.

        Raises:
            Provider-specific exceptions; callers see them unchanged.
        """
        ...


@runtime_checkable
class Reference(Protocol):
    """Anything that points at content in a registry."""

    def registry_host(self) -> str:
        """Return the registry host (``hostname[:port]``), already normalized."""
        ...


class CredentialConfigLoader(Protocol):
    """Loads the local credential configuration."""

    def __call__(self, config_dir: Optional[Path] = None) -> "CredentialConfig":
        """Load configuration from ``config_dir``.

        Raises:
            CredentialConfigError: If the configuration cannot be read
        """
        ...


@runtime_checkable
class Keychain(Protocol):
    """Resolves an authenticator for a registry host.

    Returns ``ANONYMOUS`` when it has nothing configured for the host.
    """

    def resolve(self, host: str) -> Authenticator:
        ...


class CloudTokenBrokerFactory(Protocol):
    """Constructs a cloud-native token broker authenticator."""

    def __call__(self) -> Authenticator:
        """Build the authenticator.

        Raises:
            ProviderUnavailableError: If the broker cannot run here
        """
        ...


__all__ = [
    "Authenticator",
    "Reference",
    "CredentialConfigLoader",
    "Keychain",
    "CloudTokenBrokerFactory",
]
