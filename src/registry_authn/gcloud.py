"""Google Cloud token broker backed by the ``gcloud`` CLI.

``gcloud config config-helper`` hands out short-lived access tokens. They
are cached here until shortly before expiry, which is why a single
instance must not be called from several threads at once without the
handle lock from ``cache``.
"""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from .auth import AuthConfig
from .errors import ProviderUnavailableError, TokenBrokerError

logger = logging.getLogger(__name__)

GCLOUD_USERNAME = "_token"
DEFAULT_REFRESH_MARGIN = 300.0  # Refresh 5 minutes before the token expires


def _parse_expiry(value: str) -> float:
    """Parse gcloud's RFC 3339 ``token_expiry`` into a Unix timestamp."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


class GcloudAuthenticator:
    """Authenticator reusing gcloud access tokens until they near expiry.

    Attributes:
        command: Path to the gcloud executable
        refresh_margin: Seconds before expiry at which a token is refreshed
    """

    def __init__(
        self,
        command: str,
        refresh_margin: float = DEFAULT_REFRESH_MARGIN,
        clock: Callable[[], float] = time.time,
    ):
        self.command = command
        self.refresh_margin = refresh_margin
        self._clock = clock
        self._token: Optional[str] = None
        self._expires_at: float = 0.0

    def authorization(self) -> AuthConfig:
        """Return a cached token or fetch a fresh one.

        Raises:
            TokenBrokerError: If gcloud fails or returns malformed output
        """
        if self._token is None or self._clock() >= self._expires_at - self.refresh_margin:
            self._refresh()
        return AuthConfig(username=GCLOUD_USERNAME, password=self._token)

    def _refresh(self) -> None:
        try:
            proc = subprocess.run(
                [self.command, "config", "config-helper", "--format=json"],
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            raise TokenBrokerError(f"Cannot run {self.command}: {e}") from e

        if proc.returncode != 0:
            raise TokenBrokerError(
                f"gcloud config-helper exited with {proc.returncode}: {proc.stderr.strip()}"
            )

        try:
            credential = json.loads(proc.stdout)["credential"]
            token = credential["access_token"]
            expires_at = _parse_expiry(credential["token_expiry"])
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise TokenBrokerError("Malformed output from gcloud config-helper") from e

        logger.debug("Refreshed gcloud access token, expires at %s", expires_at)
        self._token = token
        self._expires_at = expires_at

    def __repr__(self) -> str:
        return f"GcloudAuthenticator(command={self.command!r})"


def new_gcloud_authenticator(
    command: str = "gcloud",
    refresh_margin: float = DEFAULT_REFRESH_MARGIN,
) -> GcloudAuthenticator:
    """Construct a gcloud authenticator if gcloud can hand out a token.

    A first token is fetched here, so an installed but logged-out gcloud
    is reported as unavailable rather than failing on every request.

    Raises:
        ProviderUnavailableError: If ``command`` cannot be found on PATH or
            cannot produce a token
    """
    path = shutil.which(command)
    if path is None:
        raise ProviderUnavailableError(f"{command} not found on PATH")
    auth = GcloudAuthenticator(path, refresh_margin=refresh_margin)
    try:
        auth.authorization()
    except TokenBrokerError as e:
        raise ProviderUnavailableError(f"{command} cannot provide a token: {e}") from e
    return auth


__all__ = [
    "GcloudAuthenticator",
    "new_gcloud_authenticator",
    "GCLOUD_USERNAME",
    "DEFAULT_REFRESH_MARGIN",
]
