# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Object storage SDK with a filesystem emulation layer.

Subpackages:
    client: REST client for containers, objects and ACLs.
    fs: Stream sessions, directory emulation and the FUSE mount.
"""
__version__ = '0.1.0'
