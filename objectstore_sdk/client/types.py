# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class AccountInfo:
    """Usage totals for an account."""
    bytes: int
    containers: int
    objects: int


@dataclass
class ListObjectsOptions:
    """Options for listing objects in a container."""
    prefix: Optional[str] = None
    delimiter: Optional[str] = None
    path: Optional[str] = None
    limit: Optional[int] = None
    marker: Optional[str] = None

    def to_params(self) -> Dict[str, Any]:
        """
        Render the options as listing query parameters.

        The marker is only sent together with a limit.
        """
        params = {'format': 'json'}
        if self.path is not None:
            params['path'] = self.path
        elif self.prefix is not None:
            params['prefix'] = self.prefix
        if self.delimiter:
            params['delimiter'] = self.delimiter
        if self.limit:
            params['limit'] = int(self.limit)
            if self.marker:
                params['marker'] = self.marker
        return params


@dataclass
class IdentityToken:
    """Result of authenticating against the identity service."""
    token: str
    expires: Optional[str] = None
    tenant_id: Optional[str] = None
    tenant_name: Optional[str] = None
    service_catalog: List[Dict[str, Any]] = field(default_factory=list)
