"""Image references and registry host extraction.

References are parsed using Docker's conventions:

    [registry/]repository[:tag][@digest]

Examples:
    'gcr.io/my-project/app:v1'      -> host 'gcr.io'
    'localhost:5000/app@sha256:...' -> host 'localhost:5000'
    'busybox'                       -> host 'index.docker.io', repo 'library/busybox'
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from .errors import ReferenceFormatError

# Constants
DEFAULT_REGISTRY = "index.docker.io"
DEFAULT_TAG = "latest"
_DOCKER_HUB_ALIASES = {"docker.io", "index.docker.io", "registry-1.docker.io"}

# Conservative regex patterns for validation
_HOST_RE = re.compile(r"^[a-z0-9](?:[a-z0-9.-]*[a-z0-9])?(?::[0-9]{1,5})?$")
_REPO_COMPONENT_RE = re.compile(r"^[a-z0-9]+(?:(?:[._]|__|-+)[a-z0-9]+)*$")
_TAG_RE = re.compile(r"^[\w][\w.-]{0,127}$")
_DIGEST_RE = re.compile(r"^[a-z0-9]+(?:[.+_-][a-z0-9]+)*:[a-zA-Z0-9=_-]{32,}$")


def _looks_like_host(component: str) -> bool:
    return "." in component or ":" in component or component == "localhost"


def normalize_host(host: str) -> str:
    """Lowercase a registry host and fold Docker Hub aliases together."""
    host = host.lower()
    if host in _DOCKER_HUB_ALIASES:
        return DEFAULT_REGISTRY
    return host


@dataclass(frozen=True)
class ImageReference:
    """Parsed reference to a tagged or digested image.

    Attributes:
        registry: Normalized registry host (``hostname[:port]``)
        repository: Repository path within the registry
        tag: Tag, or None when only a digest was given
        digest: Content digest like ``sha256:...``
    """
    registry: str
    repository: str
    tag: Optional[str] = None
    digest: Optional[str] = None

    def __post_init__(self):
        if not _HOST_RE.match(self.registry):
            raise ReferenceFormatError(f"Invalid registry host: {self.registry!r}")
        if not self.repository:
            raise ReferenceFormatError("repository must be non-empty")
        for part in self.repository.split("/"):
            if not _REPO_COMPONENT_RE.match(part):
                raise ReferenceFormatError(
                    f"Invalid repository component {part!r} in {self.repository!r}"
                )
        if self.tag is not None and not _TAG_RE.match(self.tag):
            raise ReferenceFormatError(f"Invalid tag: {self.tag!r}")
        if self.digest is not None and not _DIGEST_RE.match(self.digest):
            raise ReferenceFormatError(f"Invalid digest: {self.digest!r}")

    def registry_host(self) -> str:
        return self.registry

    @classmethod
    def parse(cls, ref: str) -> "ImageReference":
        """Parse a reference string.

        Raises:
            ReferenceFormatError: If the reference is malformed
        """
        if not ref or ref != ref.strip():
            raise ReferenceFormatError(f"Invalid reference: {ref!r}")

        name, digest = ref, None
        if "@" in name:
            name, digest = name.split("@", 1)

        # A colon after the last slash separates the tag, otherwise it is a port
        tag = None
        last_slash = name.rfind("/")
        last_colon = name.rfind(":")
        if last_colon > last_slash:
            name, tag = name[:last_colon], name[last_colon + 1:]

        parts = name.split("/", 1)
        if len(parts) == 2 and _looks_like_host(parts[0]):
            registry, repository = normalize_host(parts[0]), parts[1]
        else:
            registry, repository = DEFAULT_REGISTRY, name

        if registry == DEFAULT_REGISTRY and "/" not in repository:
            repository = f"library/{repository}"

        if tag is None and digest is None:
            tag = DEFAULT_TAG

        return cls(registry=registry, repository=repository, tag=tag, digest=digest)

    def __str__(self) -> str:
        s = f"{self.registry}/{self.repository}"
        if self.tag is not None:
            s += f":{self.tag}"
        if self.digest is not None:
            s += f"@{self.digest}"
        return s


__all__ = [
    "ImageReference",
    "normalize_host",
    "DEFAULT_REGISTRY",
    "DEFAULT_TAG",
]
