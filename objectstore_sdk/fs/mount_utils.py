# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Helpers around the lifetime of a container mount: FUSE options, detaching
with fusermount and unmounting on SIGINT/SIGTERM.
"""

import signal
import subprocess
import sys
import time
from .utils import logger, time_function

# Attribute and entry cache lifetime in seconds. Kept short since other
# clients may change objects at any time.
ATTR_TIMEOUT = 5

def is_mounted(mountpoint):
    """True if something is mounted at ``mountpoint``."""
    return subprocess.run(["mountpoint", "-q", mountpoint]).returncode == 0

def unmount(mountpoint, operations=None):
    """
    Upload open files, then detach the mount with ``fusermount -u``.

    Args:
        mountpoint (str): Mounted directory
        operations (ObjectStoreFuse, optional): Mounted operations whose open
            sessions are closed first so buffered writes reach the store

    Returns:
        bool: True if the mount was detached
    """
    logger.info(f"Unmounting container mount at {mountpoint}")
    start_time = time.time()

    mountpoint = mountpoint.rstrip('/')
    if operations is not None:
        operations.close_all_sessions()

    if not is_mounted(mountpoint):
        logger.warning(f"{mountpoint} is not mounted, nothing to detach.")
        time_function("unmount", start_time)
        return False

    try:
        subprocess.run(["fusermount", "-u", mountpoint], check=True)
    except (OSError, subprocess.CalledProcessError) as e:
        logger.error(f"fusermount failed for {mountpoint}: {e}")
        print(f"Error: could not unmount {mountpoint}: {e}")
        return False
    finally:
        time_function("unmount", start_time)

    logger.info(f"Detached {mountpoint}")
    return True

def install_signal_handlers(mountpoint, operations=None, signals=(signal.SIGINT, signal.SIGTERM)):
    """
    Unmount and exit when the process receives one of ``signals``.

    Args:
        mountpoint (str): Mounted directory
        operations (ObjectStoreFuse, optional): Passed on to :func:`unmount`
        signals (tuple): Signals to handle. Defaults to SIGINT and SIGTERM.

    Returns:
        callable: The installed handler
    """
    def handler(signum, frame):
        logger.info(f"Received {signal.Signals(signum).name}, unmounting {mountpoint}")
        unmount(mountpoint, operations)
        sys.exit(0)

    for signum in signals:
        signal.signal(signum, handler)
    return handler

def get_mount_options(container, foreground=True, allow_other=False):
    """
    FUSE options for mounting ``container``.

    Args:
        container (str): Container name, shown as the filesystem source
            in ``mount`` output
        foreground (bool, optional): Run in foreground. Defaults to True.
        allow_other (bool, optional): Let other users access the mount.
            Needs 'user_allow_other' in /etc/fuse.conf. Defaults to False.

    Returns:
        dict: Keyword options for ``fuse.FUSE``
    """
    options = {
        'fsname': f'objectstore:{container}',
        'foreground': foreground,
        'default_permissions': True,
        'rw': True,
        'big_writes': True,
        'hard_remove': True,
        'entry_timeout': ATTR_TIMEOUT,
        'attr_timeout': ATTR_TIMEOUT,
        'negative_timeout': 0,
    }
    if allow_other:
        options['allow_other'] = True
    return options
