"""Resolution policy: picks one authenticator for a registry host.

The order is fixed:
1. A configured cloud credential helper -> native cloud token broker
2. Whatever non-anonymous authenticator the keychain offers
3. Cloud token broker for the cloud's own registry hosts
4. Anonymous

A later step never overrides an earlier one, even if it would produce a
"better" authenticator. A failing config loader, keychain or cloud factory
only skips its own step.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .auth import ANONYMOUS
from .config import load_config
from .gcloud import new_gcloud_authenticator
from .keychain import DefaultKeychain
from .ports import (
    Authenticator,
    Reference,
    CredentialConfigLoader,
    Keychain,
    CloudTokenBrokerFactory,
)

logger = logging.getLogger(__name__)

DEFAULT_CLOUD_HELPER = "gcloud"
DEFAULT_CLOUD_REGISTRY = "gcr.io"
DEFAULT_CLOUD_REGISTRY_SUFFIX = ".gcr.io"


class ResolutionPolicy:
    """Selects an authenticator for a reference. Never fails.

    Attributes:
        config_loader: Loads the local credential configuration
        keychain: Generic keychain consulted in step 2
        cloud_factory: Builds the cloud token broker (steps 1 and 3)
        config_dir: Passed to ``config_loader``
        cloud_helper: Helper name that selects the cloud broker in step 1
        cloud_registry: Exact host handled by the cloud broker in step 3
        cloud_registry_suffix: Host suffix handled by the cloud broker in step 3
    """

    def __init__(
        self,
        config_loader: CredentialConfigLoader = load_config,
        keychain: Optional[Keychain] = None,
        cloud_factory: CloudTokenBrokerFactory = new_gcloud_authenticator,
        config_dir: Optional[Path] = None,
        cloud_helper: str = DEFAULT_CLOUD_HELPER,
        cloud_registry: str = DEFAULT_CLOUD_REGISTRY,
        cloud_registry_suffix: str = DEFAULT_CLOUD_REGISTRY_SUFFIX,
    ):
        self.config_loader = config_loader
        self.keychain = keychain if keychain is not None else DefaultKeychain(config_dir, config_loader)
        self.cloud_factory = cloud_factory
        self.config_dir = config_dir
        self.cloud_helper = cloud_helper
        self.cloud_registry = cloud_registry
        self.cloud_registry_suffix = cloud_registry_suffix

    def select_authenticator(self, ref: Reference) -> Authenticator:
        host = ref.registry_host()

        # 1. Explicitly configured cloud helper
        if self._cloud_helper_configured(host):
            auth = self._try_cloud(host, "configured helper")
            if auth is not None:
                return auth

        # 2. Non-anonymous keychain entry
        auth = self._from_keychain(host)
        if auth is not ANONYMOUS:
            logger.debug("Using keychain authenticator %r for %s", auth, host)
            return auth

        # 3. Cloud registry host
        if self.is_cloud_registry(host):
            auth = self._try_cloud(host, "cloud registry host")
            if auth is not None:
                return auth

        # 4. Anonymous
        logger.debug("Using anonymous access for %s", host)
        return ANONYMOUS

    def is_cloud_registry(self, host: str) -> bool:
        return host == self.cloud_registry or host.endswith(self.cloud_registry_suffix)

    def _cloud_helper_configured(self, host: str) -> bool:
        try:
            cfg = self.config_loader(self.config_dir)
        except Exception as e:
            logger.debug("Credential config unavailable for %s: %s", host, e)
            return False
        return cfg.helper_for(host) == self.cloud_helper

    def _try_cloud(self, host: str, reason: str) -> Optional[Authenticator]:
        try:
            auth = self.cloud_factory()
        except Exception as e:
            logger.debug("Cloud token broker unavailable for %s (%s): %s", host, reason, e)
            return None
        logger.debug("Using cloud token broker for %s (%s)", host, reason)
        return auth

    def _from_keychain(self, host: str) -> Authenticator:
        try:
            return self.keychain.resolve(host)
        except Exception as e:
            logger.debug("Keychain failed for %s: %s", host, e)
            return ANONYMOUS


__all__ = [
    "ResolutionPolicy",
    "DEFAULT_CLOUD_HELPER",
    "DEFAULT_CLOUD_REGISTRY",
    "DEFAULT_CLOUD_REGISTRY_SUFFIX",
]
