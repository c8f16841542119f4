# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
FUSE mount for object storage containers.

This module mounts one container as a local directory. Every FUSE call is
translated to :class:`~objectstore_sdk.fs.filesystem.ObjectStoreFS` and
:class:`~objectstore_sdk.fs.session.StreamSession` operations: open files are
buffered locally and uploaded on flush or release, directories are
synthesized from object name prefixes.

Usage:
    # Create a mount point
    mkdir -p /mnt/docs

    # Mount the container
    python -m objectstore_sdk.fs docs /mnt/docs

    # Now you can work with the files as if they were local
    ls /mnt/docs
    cat /mnt/docs/notes/today.txt
"""

from fuse import FUSE, FuseOSError, Operations
import errno
import io
import itertools
import os
import sys
import time
from threading import Lock

from ..client.exceptions import (
    ConfigurationError,
    ContainerNotEmptyError,
    ForbiddenError,
    NotFoundError,
    ObjectExistsError,
    ObjectStoreError,
    UnauthorizedError,
)
from ..client.session import Session
from .filesystem import ObjectStoreFS
from .modes import mode_from_flags
from .paths import ObjectPath
from .utils import enable_tracing, logger, time_function, trace_op
from .mount_utils import get_mount_options, install_signal_handlers, unmount

ERRNO_MAP = (
    (NotFoundError, errno.ENOENT),
    (ObjectExistsError, errno.EEXIST),
    (ContainerNotEmptyError, errno.ENOTEMPTY),
    (ForbiddenError, errno.EACCES),
    (UnauthorizedError, errno.EACCES),
    (ConfigurationError, errno.EINVAL),
    (io.UnsupportedOperation, errno.EBADF),
)


def translate_error(e):
    """
    Map an exception to an errno value.

    Args:
        e (Exception): Error raised by the storage layer

    Returns:
        int: The errno, EIO for anything unrecognized
    """
    for error_class, code in ERRNO_MAP:
        if isinstance(e, error_class):
            return code
    return errno.EIO


class ObjectStoreFuse(Operations):
    """
    FUSE implementation for one object storage container.

    Attributes:
        fs (ObjectStoreFS): Filesystem facade
        container (str): Name of the mounted container
        sessions (dict): Open file handles mapped to stream sessions
    """

    def __init__(self, container_name, fs):
        """
        Initialize the FUSE filesystem.

        Args:
            container_name (str): Container to expose
            fs (ObjectStoreFS): Filesystem facade to use

        Raises:
            ValueError: If the container cannot be accessed
        """
        logger.info(f"Initializing ObjectStoreFuse with container: {container_name}")
        start_time = time.time()

        self.fs = fs
        self.container = container_name
        self.sessions = {}
        self._paths = {}
        self._pending_dirs = set()
        self._handles = itertools.count(1)
        self._lock = Lock()

        try:
            self.fs.object_storage().container(container_name)
        except ObjectStoreError as e:
            logger.error(f"Failed to access container {container_name}: {e}")
            raise ValueError(f"Failed to access container {container_name}: {e}") from e

        time_function("__init__", start_time)

    def _url(self, path):
        """Convert a mount path to a filesystem URL."""
        return str(ObjectPath(self.container, path.lstrip('/')))

    def _register(self, path, session):
        with self._lock:
            fh = next(self._handles)
            self.sessions[fh] = session
            self._paths.setdefault(path, set()).add(fh)
        return fh

    def _unregister(self, path, fh):
        with self._lock:
            session = self.sessions.pop(fh, None)
            handles = self._paths.get(path)
            if handles is not None:
                handles.discard(fh)
                if not handles:
                    del self._paths[path]
        return session

    def _session(self, fh):
        session = self.sessions.get(fh)
        if session is None:
            raise FuseOSError(errno.EBADF)
        return session

    def _open_session_for(self, path):
        """Any session currently open on the path, or None."""
        with self._lock:
            for fh in self._paths.get(path, ()):
                return self.sessions.get(fh)
        return None

    def _has_open_children(self, path):
        prefix = path.rstrip('/') + '/'
        with self._lock:
            return any(p.startswith(prefix) for p in self._paths)

    def _dir_attrs(self, st):
        return {**st.as_dict(), 'st_nlink': 2, 'st_size': 4096}

    def getattr(self, path, fh=None):
        """
        Get file attributes.

        Open files report their buffered size so a newly created file exists
        before its first upload.

        Args:
            path (str): Path to the file or directory
            fh (int, optional): File handle

        Returns:
            dict: File attributes

        Raises:
            FuseOSError: If the file or directory does not exist
        """
        trace_op("getattr", path, fh=fh)
        start_time = time.time()

        try:
            if path == '/':
                st = self.fs.stat(str(ObjectPath(self.container)))
                time_function("getattr (root)", start_time)
                return self._dir_attrs(st)

            session = self.sessions.get(fh) if fh is not None else None
            if session is None:
                session = self._open_session_for(path)
            if session is not None and not session.closed:
                time_function("getattr (open file)", start_time)
                return {**session.stat().as_dict(), 'st_nlink': 1}

            if path in self._pending_dirs:
                return self._dir_attrs(self.fs.stat_synthesizer.for_directory())

            st = self.fs.stat(self._url(path))
            time_function("getattr", start_time)
            if st.is_dir:
                return self._dir_attrs(st)
            return {**st.as_dict(), 'st_nlink': 1}

        except FuseOSError:
            raise
        except NotFoundError:
            if self._has_open_children(path):
                return self._dir_attrs(self.fs.stat_synthesizer.for_directory())
            logger.debug(f"getattr: Path {path} does not exist")
            raise FuseOSError(errno.ENOENT)
        except Exception as e:
            logger.error(f"getattr error for {path}: {e}", exc_info=True)
            raise FuseOSError(translate_error(e))

    def readdir(self, path, fh):
        """
        List a directory.

        Args:
            path (str): Directory path
            fh (int): Directory handle

        Returns:
            list: Entry names, including '.' and '..'
        """
        trace_op("readdir", path, fh=fh)
        start_time = time.time()
        try:
            names = self.fs.listdir(self._url(path))
            prefix = '' if path == '/' else path.rstrip('/')
            extra = {
                p[len(prefix) + 1:].split('/', 1)[0]
                for p in list(self._paths) + list(self._pending_dirs)
                if p.startswith(prefix + '/')
            }
            entries = ['.', '..'] + sorted(set(names) | extra)
            time_function("readdir", start_time)
            return entries
        except Exception as e:
            logger.error(f"readdir error for {path}: {e}", exc_info=True)
            raise FuseOSError(translate_error(e))

    def open(self, path, flags):
        """
        Open a file.

        Args:
            path (str): Path to the file
            flags (int): Open flags (O_RDONLY, O_WRONLY, etc.)

        Returns:
            int: File handle
        """
        trace_op("open", path, flags=flags)
        start_time = time.time()
        mode = mode_from_flags(flags)
        try:
            session = self.fs.open(self._url(path), mode)
        except Exception as e:
            logger.error(f"open: cannot open {path} with mode {mode}: {e}")
            raise FuseOSError(translate_error(e))
        fh = self._register(path, session)
        logger.debug(f"open: {path} mode={mode} fh={fh}")
        time_function("open", start_time)
        return fh

    def create(self, path, mode, fi=None):
        """
        Create and open a new file.

        Args:
            path (str): Path to the file
            mode (int): File mode (ignored, permissions come from the ACL)

        Returns:
            int: File handle
        """
        trace_op("create", path, mode=mode)
        start_time = time.time()
        try:
            session = self.fs.open(self._url(path), 'w+')
        except Exception as e:
            logger.error(f"create: cannot create {path}: {e}")
            raise FuseOSError(translate_error(e))
        fh = self._register(path, session)
        time_function("create", start_time)
        return fh

    def read(self, path, size, offset, fh):
        """
        Read from an open file.

        Returns:
            bytes: Up to ``size`` bytes; b'' past the end
        """
        trace_op("read", path, size=size, offset=offset, fh=fh)
        session = self._session(fh)
        try:
            return session.read_at(offset, size)
        except Exception as e:
            logger.error(f"Error reading {path}: {e}", exc_info=True)
            raise FuseOSError(translate_error(e))

    def write(self, path, data, offset, fh):
        """
        Write to an open file's buffer.

        Returns:
            int: Number of bytes written
        """
        trace_op("write", path, offset=offset, size=len(data))
        session = self._session(fh)
        try:
            return session.write_at(offset, data)
        except Exception as e:
            logger.error(f"write: Error writing to {path}: {e}", exc_info=True)
            raise FuseOSError(translate_error(e))

    def truncate(self, path, length, fh=None):
        """
        Truncate a file, through its open handle when there is one.
        """
        trace_op("truncate", path, length=length, fh=fh)
        start_time = time.time()
        session = self.sessions.get(fh) if fh is not None else self._open_session_for(path)
        try:
            if session is not None and session.writable():
                session.truncate(length)
            else:
                with self.fs.open(self._url(path), 'r+') as temp:
                    temp.truncate(length)
        except Exception as e:
            logger.error(f"truncate error for {path}: {e}", exc_info=True)
            raise FuseOSError(translate_error(e))
        time_function("truncate", start_time)
        return 0

    def flush(self, path, fh):
        """Upload the file if it changed since the last upload."""
        trace_op("flush", path, fh=fh)
        session = self.sessions.get(fh)
        if session is None:
            return 0
        try:
            session.flush()
        except Exception as e:
            logger.error(f"flush error for {path}: {e}", exc_info=True)
            raise FuseOSError(translate_error(e))
        return 0

    def fsync(self, path, datasync, fh):
        """Synchronize file contents to storage."""
        trace_op("fsync", path, datasync=datasync, fh=fh)
        return self.flush(path, fh)

    def release(self, path, fh):
        """
        Close the file handle, uploading pending changes.

        Returns:
            int: 0 on success
        """
        trace_op("release", path, fh=fh)
        start_time = time.time()
        session = self._unregister(path, fh)
        if session is None:
            return 0
        try:
            session.close()
        except Exception as e:
            logger.error(f"release: Error closing {path}: {e}", exc_info=True)
            raise FuseOSError(translate_error(e))
        time_function("release", start_time)
        return 0

    def unlink(self, path):
        """Delete a file."""
        trace_op("unlink", path)
        try:
            deleted = self.fs.unlink(self._url(path))
        except Exception as e:
            logger.error(f"unlink error for {path}: {e}", exc_info=True)
            raise FuseOSError(translate_error(e))
        if not deleted:
            raise FuseOSError(errno.ENOENT)
        return 0

    def rename(self, old, new):
        """
        Rename a file (copy, then delete the source).

        Directories cannot be renamed since they are only name prefixes.
        """
        trace_op("rename", old, new=new)
        start_time = time.time()
        session = self._open_session_for(old)
        try:
            if session is not None:
                session.flush()
            self.fs.rename(self._url(old), self._url(new))
        except NotFoundError:
            if self.fs.isdir(self._url(old)):
                raise FuseOSError(errno.EXDEV)
            raise FuseOSError(errno.ENOENT)
        except Exception as e:
            logger.error(f"rename error {old} -> {new}: {e}", exc_info=True)
            raise FuseOSError(translate_error(e))
        time_function("rename", start_time)
        return 0

    def mkdir(self, path, mode):
        """
        Create a directory.

        Nothing is stored: the directory stays visible for the life of the
        mount, or until files are created in it.
        """
        trace_op("mkdir", path, mode=mode)
        try:
            created = self.fs.mkdir(self._url(path))
        except Exception as e:
            logger.error(f"mkdir error for {path}: {e}", exc_info=True)
            raise FuseOSError(translate_error(e))
        if not created:
            raise FuseOSError(errno.EEXIST)
        self._pending_dirs.add(path)
        return 0

    def rmdir(self, path):
        """Remove an empty directory."""
        trace_op("rmdir", path)
        try:
            removed = self.fs.rmdir(self._url(path))
        except Exception as e:
            logger.error(f"rmdir error for {path}: {e}", exc_info=True)
            raise FuseOSError(translate_error(e))
        if not removed:
            raise FuseOSError(errno.ENOTEMPTY)
        self._pending_dirs.discard(path)
        return 0

    def chmod(self, path, mode):
        """
        Change file/directory mode (implemented as a no-op).

        Permissions are derived from the container ACL.
        """
        trace_op("chmod", path, mode=mode)
        return 0

    def chown(self, path, uid, gid):
        """Change ownership (implemented as a no-op)."""
        trace_op("chown", path, uid=uid, gid=gid)
        return 0

    def utimens(self, path, times=None):
        """Timestamps are set by the store (implemented as a no-op)."""
        return 0

    def access(self, path, mode):
        """
        Check if a file can be accessed with the given mode.

        Raises:
            FuseOSError: If the path does not exist
        """
        trace_op("access", path, mode=mode)
        self.getattr(path)
        return 0

    def statfs(self, path):
        """
        Get filesystem statistics.

        The store has no capacity limit to report, so a large free volume
        is returned.
        """
        trace_op("statfs", path)
        block_size = 4096
        total_blocks = 1250000000     # 5TB
        return {
            'f_bsize': block_size,
            'f_frsize': block_size,
            'f_blocks': total_blocks,
            'f_bfree': total_blocks,
            'f_bavail': total_blocks,
            'f_files': 1000000000,
            'f_ffree': 999999999,
            'f_favail': 999999999,
            'f_flag': 0,
            'f_namemax': 1024,
        }

    def close_all_sessions(self):
        """Upload and close every open session, e.g. before unmounting."""
        with self._lock:
            items = list(self.sessions.items())
            self.sessions.clear()
            self._paths.clear()
        for fh, session in items:
            try:
                session.close()
            except ObjectStoreError as e:
                logger.error(f"Failed to close session {fh} ({session.name}): {e}")

    def destroy(self, path):
        """Called by FUSE on unmount."""
        self.close_all_sessions()
        self.fs.close()


def mount(container: str, mountpoint: str, session: Session = None, foreground: bool = True,
          allow_other: bool = False):
    """
    Mount a container at the specified mountpoint.

    Args:
        container (str): Name of the container to mount
        mountpoint (str): Local path where the filesystem should be mounted
        session (Session, optional): Connection settings. Defaults to the
            active credentials profile.
        foreground (bool, optional): Run in foreground. Defaults to True.
        allow_other (bool, optional): Allow other users to access the mount.
            Requires 'user_allow_other' in /etc/fuse.conf. Defaults to False.
    """
    logger.info(f"Mounting container {container} at {mountpoint}")
    start_time = time.time()

    if os.path.exists(mountpoint):
        if not os.path.isdir(mountpoint):
            logger.error(f"Mountpoint path exists but is not a directory: {mountpoint}")
            print(f"Error: {mountpoint} exists but is not a directory. Please specify a directory path.")
            return
    else:
        logger.info(f"Mountpoint {mountpoint} does not exist, creating it...")
        try:
            os.makedirs(mountpoint, mode=0o755)
        except OSError as e:
            logger.error(f"Failed to create mountpoint {mountpoint}: {e}")
            print(f"Error: Failed to create mountpoint directory {mountpoint}: {e}")
            return

    fs = ObjectStoreFS(session or Session.from_profile())
    operations = ObjectStoreFuse(container, fs)
    options = get_mount_options(container, foreground, allow_other)

    install_signal_handlers(mountpoint, operations)

    try:
        logger.info(f"Starting FUSE mount with options: {options}")
        FUSE(operations, mountpoint, nothreads=False, **options)
        time_function("mount", start_time)
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received, unmounting...")
        unmount(mountpoint, operations)
    except RuntimeError as e:
        logger.error(f"Error during mount: {e}")
        print(f"Error: {e}")
        print(f"Check that {mountpoint} is not already mounted: fusermount -u {mountpoint}")
        unmount(mountpoint, operations)


def main():
    """
    CLI entry point for mounting containers.

    Usage:
        python -m objectstore_sdk.fs <container> <mountpoint>

    Options:
        --profile: Credentials profile to use
        --allow-other: Allow other users to access the mount
            (requires user_allow_other in /etc/fuse.conf)
        --content-type: Content type for files written through the mount
        --never-write-remote: Debug mode, never upload anything
        --trace: Enable detailed tracing of file operations for debugging
    """
    import argparse
    parser = argparse.ArgumentParser(description='Mount an object storage container as a local filesystem')
    parser.add_argument('container', help='The name of the container to mount')
    parser.add_argument('mountpoint', help='The directory to mount the container on')
    parser.add_argument('--profile', help='Credentials profile (default: $OBJSTORE_PROFILE or "default")')
    parser.add_argument('--allow-other', action='store_true',
                        help='Allow other users to access the mount (requires user_allow_other in /etc/fuse.conf)')
    parser.add_argument('--content-type', help='Content type for files written through the mount')
    parser.add_argument('--never-write-remote', action='store_true',
                        help='Debug mode: keep all writes local')
    parser.add_argument('--trace', action='store_true',
                        help='Enable detailed tracing of file operations for debugging')

    args = parser.parse_args()

    if args.trace:
        enable_tracing()
        print("Detailed operation tracing enabled")

    try:
        session = Session.from_profile(args.profile)
    except ConfigurationError as e:
        print(f"Error: {e}")
        sys.exit(1)
    if args.content_type:
        session.content_type = args.content_type
    if args.never_write_remote:
        session.never_write_remote = True

    try:
        mount(args.container, args.mountpoint, session, allow_other=args.allow_other)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

if __name__ == '__main__':
    main()
