"""registry-authn - per-registry authenticator selection and caching."""

from .version import VERSION
from .errors import (
    AuthnError,
    ReferenceFormatError,
    CredentialConfigError,
    ProviderUnavailableError,
    CredentialHelperError,
    TokenBrokerError,
)
from .auth import (
    AuthConfig,
    Anonymous,
    ANONYMOUS,
    Basic,
    Bearer,
    FromConfig,
    encode_basic_auth,
)
from .ports import (
    Authenticator,
    Reference,
    CredentialConfigLoader,
    Keychain,
    CloudTokenBrokerFactory,
)
from .reference import ImageReference, normalize_host, DEFAULT_REGISTRY
from .config import AuthEntry, CredentialConfig, load_config, default_config_dir
from .helper import HelperAuthenticator
from .keychain import DefaultKeychain
from .gcloud import GcloudAuthenticator, new_gcloud_authenticator
from .policy import ResolutionPolicy
from .cache import LockedAuthenticator, AuthenticatorCache
from .settings import AuthnSettings

__version__ = VERSION

__all__ = [
    # Version
    "VERSION",
    # Errors
    "AuthnError",
    "ReferenceFormatError",
    "CredentialConfigError",
    "ProviderUnavailableError",
    "CredentialHelperError",
    "TokenBrokerError",
    # Authorization material and basic authenticators
    "AuthConfig",
    "Anonymous",
    "ANONYMOUS",
    "Basic",
    "Bearer",
    "FromConfig",
    "encode_basic_auth",
    # Ports
    "Authenticator",
    "Reference",
    "CredentialConfigLoader",
    "Keychain",
    "CloudTokenBrokerFactory",
    # References
    "ImageReference",
    "normalize_host",
    "DEFAULT_REGISTRY",
    # Credential configuration
    "AuthEntry",
    "CredentialConfig",
    "load_config",
    "default_config_dir",
    # Providers
    "HelperAuthenticator",
    "DefaultKeychain",
    "GcloudAuthenticator",
    "new_gcloud_authenticator",
    # Resolution
    "ResolutionPolicy",
    "LockedAuthenticator",
    "AuthenticatorCache",
    # Settings
    "AuthnSettings",
]
