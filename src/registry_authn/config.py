"""Docker credential configuration (``config.json``).

Only the parts relevant to choosing an authenticator are modelled:
inline ``auths`` entries, per-registry ``credHelpers`` and the global
``credsStore``. Everything else in the file is ignored.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import os
from pathlib import Path
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError

from .errors import CredentialConfigError
from .reference import normalize_host

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "config.json"
DOCKER_HUB_AUTH_KEY = "https://index.docker.io/v1/"


def default_config_dir() -> Path:
    """Return ``$DOCKER_CONFIG`` if set, else ``~/.docker``."""
    env = os.environ.get("DOCKER_CONFIG")
    if env:
        return Path(env)
    return Path.home() / ".docker"


class AuthEntry(BaseModel):
    """One entry of the ``auths`` section."""

    auth: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    identity_token: Optional[str] = Field(default=None, alias="identitytoken")
    registry_token: Optional[str] = Field(default=None, alias="registrytoken")

    model_config = {"populate_by_name": True, "extra": "ignore"}

    def basic_credentials(self) -> Optional[Tuple[str, str]]:
        """Return ``(username, password)`` from explicit fields or ``auth``.

        Raises:
            CredentialConfigError: If ``auth`` is not valid base64 ``user:pass``
        """
        if self.username and self.password:
            return self.username, self.password
        if not self.auth:
            return None
        try:
            decoded = base64.b64decode(self.auth, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise CredentialConfigError("auth field is not valid base64") from e
        username, sep, password = decoded.partition(":")
        if not sep:
            raise CredentialConfigError("auth field must decode to 'username:password'")
        return username, password

    def is_empty(self) -> bool:
        return not any((self.auth, self.username, self.password,
                        self.identity_token, self.registry_token))


class CredentialConfig(BaseModel):
    """Parsed ``config.json``."""

    auths: Dict[str, AuthEntry] = Field(default_factory=dict)
    cred_helpers: Dict[str, str] = Field(default_factory=dict, alias="credHelpers")
    creds_store: Optional[str] = Field(default=None, alias="credsStore")

    model_config = {"populate_by_name": True, "extra": "ignore"}

    def helper_for(self, host: str) -> Optional[str]:
        """Return the credential helper configured for exactly this host."""
        return self.cred_helpers.get(host)

    def auth_for(self, host: str) -> Optional[AuthEntry]:
        """Return the inline ``auths`` entry for a host.

        Keys may be bare hosts or URLs (``https://host/v1/``); both match.
        """
        for key, entry in self.auths.items():
            if _host_from_key(key) == host:
                return entry
        return None

    @classmethod
    def from_json_string(cls, text: str) -> "CredentialConfig":
        """Parse configuration from JSON text.

        Raises:
            CredentialConfigError: If the text is not a valid configuration
        """
        try:
            data = json.loads(text) if text.strip() else {}
        except json.JSONDecodeError as e:
            raise CredentialConfigError(f"Invalid JSON in credential config: {e}") from e
        if not isinstance(data, dict):
            raise CredentialConfigError("Credential config must be a JSON object")
        try:
            return cls(**data)
        except ValidationError as e:
            raise CredentialConfigError(f"Invalid credential config: {e}") from e


def _host_from_key(key: str) -> str:
    """Strip scheme and path from an ``auths`` key and normalize the host."""
    host = key
    if "://" in host:
        host = host.split("://", 1)[1]
    return normalize_host(host.split("/", 1)[0])


def load_config(config_dir: Optional[Path] = None) -> CredentialConfig:
    """Load ``config.json`` from a Docker configuration directory.

    Args:
        config_dir: Directory holding ``config.json`` (defaults to
            ``default_config_dir()``)

    Returns:
        The parsed configuration; empty when the file does not exist

    Raises:
        CredentialConfigError: If the file exists but cannot be read or parsed
    """
    config_dir = Path(config_dir) if config_dir is not None else default_config_dir()
    config_file = config_dir / CONFIG_FILE_NAME

    if not config_file.exists():
        logger.debug("No credential config at %s", config_file)
        return CredentialConfig()

    try:
        text = config_file.read_text(encoding="utf-8")
    except OSError as e:
        raise CredentialConfigError(f"Cannot read {config_file}: {e}") from e
    return CredentialConfig.from_json_string(text)


__all__ = [
    "AuthEntry",
    "CredentialConfig",
    "load_config",
    "default_config_dir",
    "CONFIG_FILE_NAME",
    "DOCKER_HUB_AUTH_KEY",
]
