# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Local buffer backing a stream session.

The store cannot write part of an object, so an open file is held in a
:class:`SessionBuffer` while it is read and modified and uploaded as a whole
on flush. The buffer is a SpooledTemporaryFile: small files stay in memory,
large ones spill to disk.
"""

import os
import tempfile
from threading import RLock
from typing import BinaryIO, Iterator

from .utils import logger

# Spool to disk after 64MB in RAM
DEFAULT_SPOOL_MAX_SIZE = 64 * 1024 * 1024
COPY_CHUNK_SIZE = 4 * 1024 * 1024


class SessionBuffer:
    """
    A seekable, resizable byte buffer with a dirty flag.

    All operations hold a reentrant lock so a buffer may be used from the
    several threads a FUSE mount dispatches on.

    Attributes:
        dirty (bool): Local content differs from what was last uploaded
    """

    def __init__(self, spool_max_size: int = DEFAULT_SPOOL_MAX_SIZE):
        self.lock = RLock()
        self.dirty = False
        self._file = tempfile.SpooledTemporaryFile(max_size=spool_max_size, mode='w+b')

    @classmethod
    def from_stream(cls, stream: BinaryIO, spool_max_size: int = DEFAULT_SPOOL_MAX_SIZE) -> 'SessionBuffer':
        """Create a buffer holding a copy of ``stream``, positioned at 0."""
        buffer = cls(spool_max_size)
        with buffer.lock:
            while True:
                chunk = stream.read(COPY_CHUNK_SIZE)
                if not chunk:
                    break
                buffer._file.write(chunk)
            buffer._file.seek(0)
        return buffer

    @property
    def closed(self) -> bool:
        return self._file is None or self._file.closed

    def _check_open(self):
        if self.closed:
            raise ValueError("I/O operation on closed buffer")

    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes from the current position; b'' at the end."""
        with self.lock:
            self._check_open()
            if size is None or size < 0:
                return self._file.read()
            return self._file.read(size)

    def write(self, data: bytes) -> int:
        """Write at the current position and mark the buffer dirty."""
        with self.lock:
            self._check_open()
            written = self._file.write(data)
            if data:
                self.dirty = True
            return written

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        with self.lock:
            self._check_open()
            if whence == os.SEEK_SET and offset < 0:
                raise ValueError(f"negative seek position {offset}")
            return self._file.seek(offset, whence)

    def tell(self) -> int:
        with self.lock:
            self._check_open()
            return self._file.tell()

    def truncate(self, size: int) -> int:
        """
        Resize the buffer to ``size`` bytes, zero-filling when growing.

        The position is left unchanged.
        """
        with self.lock:
            self._check_open()
            position = self._file.tell()
            current = self.size()
            if size < current:
                self._file.truncate(size)
            elif size > current:
                self._file.seek(current)
                self._file.write(b'\0' * (size - current))
            self._file.seek(position)
            if size != current:
                self.dirty = True
            return size

    def size(self) -> int:
        """Current size of the buffered data in bytes."""
        with self.lock:
            self._check_open()
            position = self._file.tell()
            self._file.seek(0, os.SEEK_END)
            size = self._file.tell()
            self._file.seek(position)
            return size

    def at_end(self) -> bool:
        with self.lock:
            return self.tell() >= self.size()

    def chunks(self, chunk_size: int = COPY_CHUNK_SIZE) -> Iterator[bytes]:
        """Iterate over the whole content from the start; restores the position."""
        with self.lock:
            self._check_open()
            position = self._file.tell()
            self._file.seek(0)
            try:
                while True:
                    chunk = self._file.read(chunk_size)
                    if not chunk:
                        break
                    yield chunk
            finally:
                self._file.seek(position)

    def getvalue(self) -> bytes:
        return b''.join(self.chunks())

    @property
    def raw(self) -> BinaryIO:
        """The underlying file object, for uploads that read it directly."""
        self._check_open()
        return self._file

    def close(self) -> None:
        """
        Explicitly closes the SpooledTemporaryFile to release resources.
        """
        with self.lock:
            if self._file is not None and not self._file.closed:
                self._file.close()
                logger.debug("Closed session buffer.")
            self._file = None
