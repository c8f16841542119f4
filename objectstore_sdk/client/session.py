# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Connection settings.

Settings are read from a YAML credentials file with one section per profile::

    default:
      auth_url: https://identity.example.com/v2.0
      username: alice
      password: secret
      tenant_name: research
      region: region-a

and may be overridden by ``OBJSTORE_*`` environment variables (for example
``OBJSTORE_TOKEN`` or ``OBJSTORE_SWIFT_ENDPOINT``).
"""
import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

import yaml

from .exceptions import ConfigurationError

DEFAULT_CREDENTIALS_FILE = os.path.join('~', '.objectstore', 'credentials.yaml')
ENV_PREFIX = 'OBJSTORE_'


@dataclass
class Session:
    """
    Endpoint, credential and behaviour settings for object storage access.

    Attributes:
        auth_url (str): Identity service endpoint
        swift_endpoint (str): Object storage endpoint; skips the catalog lookup
            when given together with ``token``
        token (str): Pre-issued auth token
        username (str): User name for password authentication
        password (str): Password for password authentication
        tenant_id (str): Tenant id to scope the token to
        tenant_name (str): Tenant name, used when no tenant id is set
        region (str): Catalog region of the object storage endpoint
        content_type (str): Content type applied to objects written through
            the filesystem layer
        never_write_remote (bool): Debug flag; filesystem sessions never
            upload
        timeout (float): HTTP timeout in seconds
        max_retries (int): Connection attempts per request
    """
    auth_url: Optional[str] = None
    swift_endpoint: Optional[str] = None
    token: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    tenant_id: Optional[str] = None
    tenant_name: Optional[str] = None
    region: Optional[str] = None
    content_type: Optional[str] = None
    never_write_remote: bool = False
    timeout: float = 30.0
    max_retries: int = 3

    @classmethod
    def from_profile(cls, profile: Optional[str] = None, path: Optional[str] = None) -> 'Session':
        """
        Load settings from the credentials file and the environment.

        Args:
            profile (str, optional): Profile name. Defaults to
                ``$OBJSTORE_PROFILE`` or ``default``.
            path (str, optional): Credentials file. Defaults to
                ``$OBJSTORE_CREDENTIALS_FILE`` or ``~/.objectstore/credentials.yaml``.

        Returns:
            Session: The merged settings

        Raises:
            ConfigurationError: If the file is malformed or lacks the
                requested profile
        """
        explicit_profile = profile or os.environ.get(f'{ENV_PREFIX}PROFILE')
        profile = explicit_profile or 'default'
        path = os.path.expanduser(path or os.environ.get(f'{ENV_PREFIX}CREDENTIALS_FILE')
                                  or DEFAULT_CREDENTIALS_FILE)

        values: Dict[str, Any] = {}
        if os.path.exists(path):
            try:
                with open(path) as f:
                    document = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid credentials file {path}: {e}") from e
            if not isinstance(document, dict):
                raise ConfigurationError(f"Credentials file {path} must map profile names to settings")
            if profile in document:
                values.update(document[profile] or {})
            elif explicit_profile:
                raise ConfigurationError(f"Profile {profile!r} not found in {path}")

        values.update(cls._environment_overrides())
        return cls.from_dict(values)

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> 'Session':
        """Build settings from a mapping, rejecting unknown keys."""
        known = {f.name: f for f in fields(cls)}
        unknown = set(values) - set(known)
        if unknown:
            raise ConfigurationError(f"Unknown settings: {', '.join(sorted(unknown))}")

        converted = {}
        for key, value in values.items():
            if value is None:
                continue
            if key == 'never_write_remote' and isinstance(value, str):
                value = value.lower() in ('true', '1', 'yes')
            elif key == 'timeout':
                value = float(value)
            elif key == 'max_retries':
                value = int(value)
            converted[key] = value
        return cls(**converted)

    @classmethod
    def _environment_overrides(cls) -> Dict[str, str]:
        overrides = {}
        for f in fields(cls):
            value = os.environ.get(f'{ENV_PREFIX}{f.name.upper()}')
            if value is not None:
                overrides[f.name] = value
        return overrides
