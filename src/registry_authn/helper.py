"""Authenticator backed by a ``docker-credential-<name>`` helper program.

The helper protocol: write the server URL to the helper's stdin when
running ``docker-credential-<name> get``; it answers with JSON
``{"ServerURL": ..., "Username": ..., "Secret": ...}``.
"""

from __future__ import annotations

import json
import logging
import subprocess

from .auth import AuthConfig
from .config import DOCKER_HUB_AUTH_KEY
from .errors import CredentialHelperError
from .reference import DEFAULT_REGISTRY

logger = logging.getLogger(__name__)

HELPER_PREFIX = "docker-credential-"
IDENTITY_TOKEN_USERNAME = "<token>"
_NOT_FOUND_MESSAGE = "credentials not found in native keychain"


class HelperAuthenticator:
    """Delegates to an external credential helper on every call.

    Attributes:
        helper: Helper name without the ``docker-credential-`` prefix
        host: Registry host to request credentials for
    """

    def __init__(self, helper: str, host: str):
        self.helper = helper
        self.host = host

    @property
    def program(self) -> str:
        return f"{HELPER_PREFIX}{self.helper}"

    @property
    def server_url(self) -> str:
        # Docker Hub credentials are stored under the legacy v1 URL
        if self.host == DEFAULT_REGISTRY:
            return DOCKER_HUB_AUTH_KEY
        return self.host

    def authorization(self) -> AuthConfig:
        """Run the helper and convert its answer.

        Raises:
            CredentialHelperError: If the helper is missing, fails or
                returns malformed output
        """
        try:
            proc = subprocess.run(
                [self.program, "get"],
                input=self.server_url,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            raise CredentialHelperError(f"Cannot run {self.program}: {e}") from e

        if proc.returncode != 0:
            output = (proc.stdout or proc.stderr).strip()
            if _NOT_FOUND_MESSAGE in output:
                logger.debug("%s has no credentials for %s", self.program, self.host)
                return AuthConfig()
            raise CredentialHelperError(
                f"{self.program} exited with {proc.returncode}: {output}"
            )

        try:
            payload = json.loads(proc.stdout)
            username = payload["Username"]
            secret = payload["Secret"]
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            raise CredentialHelperError(f"Malformed output from {self.program}") from e

        if username == IDENTITY_TOKEN_USERNAME:
            return AuthConfig(identity_token=secret)
        return AuthConfig(username=username, password=secret)

    def __repr__(self) -> str:
        return f"HelperAuthenticator(helper={self.helper!r}, host={self.host!r})"


__all__ = ["HelperAuthenticator", "HELPER_PREFIX"]
