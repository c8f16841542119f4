# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Stream sessions: one open file handle over a remote object.

The store cannot write part of an object, so a session copies the object into
a local :class:`~objectstore_sdk.fs.buffer.SessionBuffer` when it opens, serves
reads, writes and seeks from that buffer, and uploads the whole buffer when it
is flushed or closed.

Sessions do not coordinate with each other. Two sessions on the same object
each hold their own copy and the last one to flush wins.

Example:
    with StreamSession.open(store, 'docs', 'notes/today.txt', 'a') as session:
        session.write(b'one more line\\n')
"""
import enum
import io
import os
import threading
import time
from typing import Optional

from ..client.container import Container
from ..client.exceptions import ConfigurationError, NotFoundError, ObjectExistsError
from ..client.object_storage import ObjectStorage
from ..client.objects import StorageObject
from .buffer import SessionBuffer
from .modes import OpenMode
from .stat import FileStat, StatSynthesizer
from .utils import logger, time_function, trace_op


class SessionState(enum.Enum):
    CLOSED = 'closed'
    OPENING = 'opening'
    READ_ONLY = 'read-only'
    WRITE_ONLY = 'write-only'
    READ_WRITE = 'read-write'
    FLUSHING = 'flushing'


class StreamSession:
    """
    An open object, readable and writable through a local buffer.

    Use :meth:`open` to create one.

    Attributes:
        container (Container): Container holding the object
        obj (StorageObject): The object; a RemoteObject if it existed when
            the session opened
        mode (OpenMode): Interpreted open mode
        state (SessionState): Current lifecycle state
        never_write_remote (bool): Never upload, even when dirty
        content_type (str): Content type applied before each upload
    """

    def __init__(self, container: Container, obj: StorageObject, mode: OpenMode, buffer: SessionBuffer,
                 never_write_remote: bool = False, content_type: Optional[str] = None,
                 stat_synthesizer: Optional[StatSynthesizer] = None):
        self.container = container
        self.obj = obj
        self.mode = mode
        self.never_write_remote = never_write_remote or mode.never_write_remote
        self.content_type = content_type
        self.stat_synthesizer = stat_synthesizer or StatSynthesizer()
        self._buffer = buffer
        self._lock = threading.RLock()
        self.state = self._open_state()

    @classmethod
    def open(cls, store: ObjectStorage, container_name: str, object_name: str, mode: str = 'r',
             never_write_remote: bool = False, content_type: Optional[str] = None,
             stat_synthesizer: Optional[StatSynthesizer] = None) -> 'StreamSession':
        """
        Open an object.

        Args:
            store (ObjectStorage): Account to open the object in
            container_name (str): Container name
            object_name (str): Object name
            mode (str): Open mode, see :mod:`objectstore_sdk.fs.modes`
            never_write_remote (bool): Never upload. Defaults to False.
            content_type (str, optional): Content type set on upload
            stat_synthesizer (StatSynthesizer, optional): Builds stat records

        Returns:
            StreamSession: The open session

        Raises:
            ValueError: If the mode is invalid
            ConfigurationError: If container or object name is missing
            NotFoundError: If the container is missing, or the object is
                missing and the mode does not create
            ObjectExistsError: If the mode is exclusive and the object exists
        """
        open_mode = OpenMode.parse(mode)
        trace_op("open", f"{container_name}/{object_name}", mode=mode)
        start_time = time.time()

        if not container_name:
            raise ConfigurationError("No container name was supplied.")
        if not object_name:
            raise ConfigurationError("No object name was supplied.")

        container = store.container(container_name)

        try:
            if open_mode.truncate:
                obj = container.proxy_object(object_name)
            else:
                obj = container.object(object_name)
        except NotFoundError:
            if not open_mode.create:
                logger.debug(f"open: {container_name}/{object_name} not found and mode {mode} does not create")
                raise
            logger.debug(f"open: creating {container_name}/{object_name}")
            buffer = SessionBuffer()
            buffer.dirty = True
            time_function("open (new)", start_time)
            return cls(container, StorageObject(object_name), open_mode, buffer,
                       never_write_remote, content_type, stat_synthesizer)

        if open_mode.fail_if_exists:
            raise ObjectExistsError(f"{container_name}/{object_name} already exists.")

        if open_mode.truncate:
            buffer = SessionBuffer()
            buffer.dirty = True
        else:
            buffer = SessionBuffer.from_stream(io.BytesIO(obj.content()))
            if open_mode.append:
                buffer.seek(0, os.SEEK_END)

        time_function("open", start_time)
        return cls(container, obj, open_mode, buffer, never_write_remote, content_type, stat_synthesizer)

    def _open_state(self) -> SessionState:
        if self.mode.read and self.mode.write:
            return SessionState.READ_WRITE
        if self.mode.write:
            return SessionState.WRITE_ONLY
        return SessionState.READ_ONLY

    @property
    def name(self) -> str:
        return self.obj.name

    @property
    def closed(self) -> bool:
        return self.state is SessionState.CLOSED

    @property
    def dirty(self) -> bool:
        return self._buffer is not None and self._buffer.dirty

    def readable(self) -> bool:
        return self.mode.read

    def writable(self) -> bool:
        return self.mode.write

    def seekable(self) -> bool:
        return True

    def _check_open(self):
        if self.closed:
            raise ValueError("I/O operation on closed session")

    def read(self, size: int = -1) -> bytes:
        """
        Read up to ``size`` bytes (all remaining bytes by default).

        Returns:
            bytes: b'' at the end of the object
        """
        with self._lock:
            self._check_open()
            if not self.mode.read:
                raise io.UnsupportedOperation("session not opened for reading")
            return self._buffer.read(size)

    def write(self, data: bytes) -> int:
        """Write at the current position; the object becomes dirty."""
        with self._lock:
            self._check_open()
            if not self.mode.write:
                raise io.UnsupportedOperation("session not opened for writing")
            return self._buffer.write(data)

    def read_at(self, offset: int, size: int) -> bytes:
        """Seek to ``offset`` and read ``size`` bytes as one step."""
        with self._lock:
            self.seek(offset)
            return self.read(size)

    def write_at(self, offset: int, data: bytes) -> int:
        """Seek to ``offset`` and write ``data`` as one step."""
        with self._lock:
            self.seek(offset)
            return self.write(data)

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        """Move the position. Allowed in append mode too."""
        with self._lock:
            self._check_open()
            return self._buffer.seek(offset, whence)

    def tell(self) -> int:
        with self._lock:
            self._check_open()
            return self._buffer.tell()

    def eof(self) -> bool:
        with self._lock:
            self._check_open()
            return self._buffer.at_end()

    def truncate(self, size: Optional[int] = None) -> int:
        """Resize the object to ``size`` bytes (the current position by default)."""
        with self._lock:
            self._check_open()
            if not self.mode.write:
                raise io.UnsupportedOperation("session not opened for writing")
            if size is None:
                size = self._buffer.tell()
            return self._buffer.truncate(size)

    def flush(self) -> bool:
        """
        Upload the buffer if it is dirty.

        Skipped entirely when the session never writes remotely. The buffer
        position is preserved.

        Returns:
            bool: True if an upload happened
        """
        with self._lock:
            self._check_open()
            return self._write_remote()

    def _write_remote(self) -> bool:
        if self.content_type:
            self.obj.content_type = self.content_type

        if self.never_write_remote:
            logger.debug(f"flush: never writing {self.name} remotely")
            return False
        if not self._buffer.dirty:
            return False

        trace_op("flush", f"{self.container.name}/{self.name}", size=self._buffer.size())
        start_time = time.time()
        previous_state = self.state
        self.state = SessionState.FLUSHING
        position = self._buffer.tell()
        try:
            self._buffer.seek(0)
            self.container.save(self.obj, self._buffer.raw)
            self._buffer.dirty = False
        finally:
            self._buffer.seek(position)
            self.state = previous_state
        time_function("flush", start_time)
        return True

    def close(self):
        """
        Upload pending changes and release the buffer.

        Calling close on a closed session does nothing. The buffer is
        released even when the upload fails; the error is re-raised.
        """
        with self._lock:
            if self.closed:
                return
            try:
                self._write_remote()
            finally:
                self._buffer.close()
                self._buffer = None
                self.obj = None
                self.state = SessionState.CLOSED

    def stat(self) -> FileStat:
        """Status of the open object; size is the buffer size."""
        with self._lock:
            self._check_open()
            return self.stat_synthesizer.for_object(self.obj, self.container, self._buffer.size())

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self):
        return f"StreamSession({self.container.name!r}, {self.obj.name if self.obj else None!r}, {self.state.value})"
