"""Default keychain: resolves authenticators from the Docker config.

Lookup order for a host:
1. ``credHelpers[host]``
2. inline ``auths`` entry
3. global ``credsStore``
4. ``ANONYMOUS``

Credential helpers are run while resolving, so a configured helper that
has nothing stored for the host resolves to ``ANONYMOUS`` as well.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .auth import ANONYMOUS, AuthConfig, Basic, Bearer, FromConfig
from .config import load_config
from .errors import CredentialConfigError, CredentialHelperError
from .helper import HelperAuthenticator
from .ports import Authenticator, CredentialConfigLoader

logger = logging.getLogger(__name__)


class DefaultKeychain:
    """Keychain reading the local Docker credential configuration.

    The configuration is re-read on every ``resolve`` so that a fresh
    ``docker login`` is honoured for hosts not yet cached upstream.
    """

    def __init__(
        self,
        config_dir: Optional[Path] = None,
        loader: CredentialConfigLoader = load_config,
    ):
        self.config_dir = config_dir
        self.loader = loader

    def resolve(self, host: str) -> Authenticator:
        try:
            cfg = self.loader(self.config_dir)
        except CredentialConfigError as e:
            logger.debug("Keychain could not load credential config: %s", e)
            return ANONYMOUS

        helper = cfg.helper_for(host)
        if helper:
            return _from_helper(helper, host)

        entry = cfg.auth_for(host)
        if entry is not None and not entry.is_empty():
            try:
                return _from_auth_entry(entry)
            except CredentialConfigError as e:
                logger.debug("Ignoring unusable auths entry for %s: %s", host, e)

        if cfg.creds_store:
            return _from_helper(cfg.creds_store, host)

        return ANONYMOUS


def _from_helper(helper: str, host: str) -> Authenticator:
    """Ask a credential helper now; hosts it knows nothing about stay anonymous."""
    try:
        cfg = HelperAuthenticator(helper, host).authorization()
    except CredentialHelperError as e:
        logger.debug("Credential helper %s failed for %s: %s", helper, host, e)
        return ANONYMOUS
    if cfg.is_anonymous:
        return ANONYMOUS
    return FromConfig(cfg)


def _from_auth_entry(entry) -> Authenticator:
    if entry.registry_token:
        return Bearer(entry.registry_token)
    if entry.identity_token:
        return FromConfig(AuthConfig(
            username=entry.username,
            identity_token=entry.identity_token,
        ))
    creds = entry.basic_credentials()
    if creds is None:
        raise CredentialConfigError("auths entry carries no usable credentials")
    return Basic(*creds)


__all__ = ["DefaultKeychain"]
