# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Filesystem emulation over object storage.

Classes:
    ObjectStoreFS: Path-addressed facade (open, stat, listdir, rename, ...).
    StreamSession: One open file handle.
    DirectoryEmulator: Directories synthesized from name prefixes.
    StatSynthesizer: File status records.

The FUSE mount lives in :mod:`objectstore_sdk.fs.fuse_mount` and is imported
separately because it needs libfuse.
"""
from .directory import DirectoryEmulator, DirectoryHandle, DirectoryListing
from .filesystem import ObjectStoreFS
from .modes import OpenMode, mode_from_flags
from .paths import ObjectPath
from .session import SessionState, StreamSession
from .stat import FileStat, StatSynthesizer

__all__ = [
    'DirectoryEmulator', 'DirectoryHandle', 'DirectoryListing', 'FileStat', 'ObjectPath',
    'ObjectStoreFS', 'OpenMode', 'SessionState', 'StatSynthesizer', 'StreamSession',
    'mode_from_flags',
]
