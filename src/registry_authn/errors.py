"""Registry authentication exceptions."""


class AuthnError(Exception):
    """Base class for registry authentication errors."""
    pass


class ReferenceFormatError(AuthnError, ValueError):
    """Raised when an image reference cannot be parsed."""
    pass


class CredentialConfigError(AuthnError):
    """Raised when the local credential configuration cannot be loaded."""
    pass


class ProviderUnavailableError(AuthnError):
    """Raised when an authenticator cannot be constructed on this machine."""
    pass


class CredentialHelperError(AuthnError):
    """Raised when a docker-credential-* helper fails."""
    pass


class TokenBrokerError(AuthnError):
    """Raised when a cloud token broker cannot produce a token."""
    pass


__all__ = [
    "AuthnError",
    "ReferenceFormatError",
    "CredentialConfigError",
    "ProviderUnavailableError",
    "CredentialHelperError",
    "TokenBrokerError",
]
