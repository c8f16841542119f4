# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Object storage client.

Classes:
    ObjectStorage: Account level operations.
    Container: Object operations within a container.
    StorageObject, RemoteObject, Subdir: Objects and listing entries.
    ACL: Container access rules.
    Session: Connection settings.
"""
from .acl import ACL, AclRule
from .container import Container
from .exceptions import (
    ConfigurationError,
    ConflictError,
    ContainerNotEmptyError,
    ContentVerificationError,
    NotFoundError,
    ObjectExistsError,
    ObjectStoreError,
    TransportError,
)
from .identity import IdentityService, ServiceCatalogCache, service_catalog_cache
from .object_storage import ObjectStorage
from .objects import EntryKind, RemoteObject, StorageObject, Subdir
from .session import Session
from .transport import HttpTransport
from .types import AccountInfo, IdentityToken, ListObjectsOptions

__all__ = [
    'ACL', 'AclRule', 'AccountInfo', 'ConfigurationError', 'ConflictError', 'Container',
    'ContainerNotEmptyError', 'ContentVerificationError', 'EntryKind', 'HttpTransport',
    'IdentityService', 'IdentityToken', 'ListObjectsOptions', 'NotFoundError',
    'ObjectExistsError', 'ObjectStorage', 'ObjectStoreError', 'RemoteObject',
    'ServiceCatalogCache', 'Session', 'StorageObject', 'Subdir', 'TransportError',
    'service_catalog_cache',
]
