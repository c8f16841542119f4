# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""Entry point for ``python -m objectstore_sdk.fs <container> <mountpoint>``."""
from .fuse_mount import main

main()
