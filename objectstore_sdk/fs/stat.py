# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
File status records for objects, containers and synthesized directories.

The store has one timestamp per object and no permission bits. Every record
reports that timestamp as access, modification and change time, and derives
its permission bits from the container ACL: objects in a public container
are ``0o775``, all others ``0o770``. Objects have no ACL of their own.
"""
import os
import stat as stat_module
import time
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from ..client.container import Container
from ..client.objects import StorageObject

DEFAULT_FAKE_STAT_MODE = 0o777

# Fields the store cannot supply.
UNKNOWN = -1


@dataclass
class FileStat:
    """A generic file status record."""
    dev: int = 0
    ino: int = 0
    mode: int = 0
    nlink: int = 0
    uid: int = 0
    gid: int = 0
    rdev: int = 0
    size: int = 0
    atime: float = 0
    mtime: float = 0
    ctime: float = 0
    blksize: int = UNKNOWN
    blocks: int = UNKNOWN

    @property
    def is_dir(self) -> bool:
        return stat_module.S_ISDIR(self.mode)

    @property
    def is_file(self) -> bool:
        return stat_module.S_ISREG(self.mode)

    def as_dict(self) -> Dict[str, Any]:
        """``st_*`` keyed attributes, leaving out unknown fields."""
        return {f'st_{key}': value for key, value in asdict(self).items() if value != UNKNOWN}


class StatSynthesizer:
    """
    Builds :class:`FileStat` records.

    Args:
        fake_stat_mode (int): Permission bits for synthesized directories.
            Defaults to 0o777.
    """

    def __init__(self, fake_stat_mode: int = DEFAULT_FAKE_STAT_MODE):
        self.fake_stat_mode = fake_stat_mode

    def _base(self, mode: int, size: int, timestamp: float) -> FileStat:
        return FileStat(
            mode=mode,
            uid=os.geteuid(),
            gid=os.getegid(),
            size=size,
            atime=timestamp,
            mtime=timestamp,
            ctime=timestamp,
        )

    def for_object(self, obj: StorageObject, container: Container, size: Optional[int] = None) -> FileStat:
        """
        Status of an object.

        Args:
            obj (StorageObject): A remote object, or a local one that has not
                been saved yet (timestamps are then 0)
            container (Container): Owning container; its ACL decides the mode
            size (int, optional): Size to report instead of the object's
                content length, e.g. a session's buffer size

        Returns:
            FileStat: A regular file record
        """
        mode = stat_module.S_IFREG | container.acl().file_mode()
        if size is None:
            size = obj.content_length
        return self._base(mode, size, getattr(obj, 'last_modified', 0) or 0)

    def for_container(self, container: Container) -> FileStat:
        """Status of a container, reported as a directory."""
        mode = stat_module.S_IFDIR | container.acl().file_mode()
        return self._base(mode, container.bytes(), time.time())

    def for_directory(self, timestamp: Optional[float] = None) -> FileStat:
        """Status of a directory synthesized from an object name prefix."""
        mode = stat_module.S_IFDIR | self.fake_stat_mode
        return self._base(mode, 0, time.time() if timestamp is None else timestamp)
