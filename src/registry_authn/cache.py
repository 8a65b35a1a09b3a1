"""Per-registry authenticator cache.

One authenticator is chosen per registry host and then reused for the
life of the cache. Choosing happens under a single cache-wide lock, so
concurrent first requests for a host all receive the same handle.
Each handle carries its own lock because some providers refresh tokens
internally and are not safe to call concurrently.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional, Union

from .auth import AuthConfig
from .ports import Authenticator, Reference
from .policy import ResolutionPolicy
from .reference import ImageReference

logger = logging.getLogger(__name__)


class LockedAuthenticator:
    """Authenticator that can be used safely from multiple threads."""

    def __init__(self, delegate: Authenticator):
        self._delegate = delegate
        self._lock = threading.Lock()

    @property
    def delegate(self) -> Authenticator:
        return self._delegate

    def authorization(self) -> AuthConfig:
        with self._lock:
            return self._delegate.authorization()

    def __repr__(self) -> str:
        return f"LockedAuthenticator({self._delegate!r})"


class AuthenticatorCache:
    """Stores one ``LockedAuthenticator`` per registry host.

    Entries are created on first use and never evicted.

    Example:
        >>> cache = AuthenticatorCache()
        >>> auth = cache.resolve("gcr.io/my-project/app:v1")
        >>> auth.authorization()
    """

    def __init__(self, policy: Optional[ResolutionPolicy] = None):
        self.policy = policy if policy is not None else ResolutionPolicy()
        self._by_registry: Dict[str, LockedAuthenticator] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings) -> "AuthenticatorCache":
        """Build a cache whose policy is configured from ``AuthnSettings``."""
        return cls(settings.build_policy())

    def resolve(self, ref: Union[Reference, str]) -> LockedAuthenticator:
        """Return the authenticator handle for the reference's registry.

        Args:
            ref: Reference object or reference string like ``gcr.io/p/app:v1``

        Returns:
            The handle for ``ref.registry_host()``; identical across calls

        Raises:
            ReferenceFormatError: If ``ref`` is a malformed string
        """
        if isinstance(ref, str):
            ref = ImageReference.parse(ref)
        host = ref.registry_host()

        with self._lock:
            auth = self._by_registry.get(host)
            if auth is not None:
                return auth

            # Resolve while holding the lock: at most one construction per host
            auth = LockedAuthenticator(self.policy.select_authenticator(ref))
            self._by_registry[host] = auth
            logger.info("Selected %r for registry %s", auth.delegate, host)
            return auth

    for_reference = resolve

    def hosts(self) -> List[str]:
        """List registry hosts with a cached authenticator."""
        with self._lock:
            return sorted(self._by_registry)

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_registry)


__all__ = ["LockedAuthenticator", "AuthenticatorCache"]
