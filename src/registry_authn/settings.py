"""Settings for the resolution policy.

Settings may come from a YAML file:

    config_dir: /home/ci/.docker
    cloud_helper: gcloud
    cloud_registry: gcr.io
    cloud_registry_suffix: .gcr.io
    gcloud_command: gcloud
    token_refresh_margin: 300
"""

from __future__ import annotations

from functools import partial
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, field_validator

from .gcloud import DEFAULT_REFRESH_MARGIN, new_gcloud_authenticator
from .policy import (
    ResolutionPolicy,
    DEFAULT_CLOUD_HELPER,
    DEFAULT_CLOUD_REGISTRY,
    DEFAULT_CLOUD_REGISTRY_SUFFIX,
)


class AuthnSettings(BaseModel):
    """Configuration for building a ``ResolutionPolicy``."""

    config_dir: Optional[Path] = None  # None -> $DOCKER_CONFIG or ~/.docker
    cloud_helper: str = DEFAULT_CLOUD_HELPER
    cloud_registry: str = DEFAULT_CLOUD_REGISTRY
    cloud_registry_suffix: str = DEFAULT_CLOUD_REGISTRY_SUFFIX
    gcloud_command: str = "gcloud"
    token_refresh_margin: float = DEFAULT_REFRESH_MARGIN

    model_config = {"extra": "forbid"}

    @field_validator('cloud_helper', 'cloud_registry', 'gcloud_command')
    def validate_non_empty(cls, v):
        if not v or not v.strip():
            raise ValueError("must be non-empty")
        return v.strip()

    @field_validator('cloud_registry_suffix')
    def validate_suffix(cls, v):
        # 'gcr.io' as a suffix would also match 'notgcr.io'
        if not v or v[0].isalnum():
            raise ValueError("cloud_registry_suffix must start with a separator like '.' or '-'")
        return v.lower()

    @field_validator('token_refresh_margin')
    def validate_margin(cls, v):
        if v < 0:
            raise ValueError("token_refresh_margin must be non-negative")
        return v

    @classmethod
    def from_yaml(cls, path: Path) -> 'AuthnSettings':
        """Load from a specific YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f)
        return cls(**(data or {}))

    @classmethod
    def from_yaml_string(cls, yaml_str: str) -> 'AuthnSettings':
        """Load from YAML string."""
        data = yaml.safe_load(yaml_str)
        return cls(**(data or {}))

    def to_yaml_string(self) -> str:
        """Export to YAML string."""
        data = self.model_dump(mode="json", exclude_none=True)
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)

    def build_policy(self) -> ResolutionPolicy:
        """Create a policy using the default loader, keychain and gcloud broker."""
        factory = partial(
            new_gcloud_authenticator,
            command=self.gcloud_command,
            refresh_margin=self.token_refresh_margin,
        )
        return ResolutionPolicy(
            cloud_factory=factory,
            config_dir=self.config_dir,
            cloud_helper=self.cloud_helper,
            cloud_registry=self.cloud_registry.lower(),
            cloud_registry_suffix=self.cloud_registry_suffix,
        )


__all__ = ["AuthnSettings"]
