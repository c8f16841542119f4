# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Directory emulation over a flat namespace.

There are no directory objects. A directory ``p`` exists exactly when a
delimited listing with prefix ``p/`` returns something, so an empty directory
cannot be told apart from one that never existed. ``mkdir`` and ``rmdir``
persist nothing; they only report whether the prefix is free.
"""
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from ..client.container import Container, ListingEntry
from ..client.exceptions import NotFoundError
from ..client.objects import EntryKind, RemoteObject, Subdir
from .utils import logger

DEFAULT_PAGE_SIZE = 1000


@dataclass
class DirectoryListing:
    """Entries under one prefix, split into files and subdirectories."""
    prefix: str
    files: List[RemoteObject] = field(default_factory=list)
    subdirs: List[Subdir] = field(default_factory=list)

    def names(self) -> List[str]:
        """
        Entry names relative to the prefix, in lexical order.

        Subdirectory names keep their trailing delimiter.
        """
        names = [entry.name[len(self.prefix):] for entry in self.files]
        names.extend(subdir.path[len(self.prefix):] for subdir in self.subdirs)
        return sorted(name for name in names if name)

    def __len__(self):
        return len(self.files) + len(self.subdirs)


class DirectoryEmulator:
    """
    Lists and tests synthesized directories in one container.

    Args:
        container (Container): The container to list
        delimiter (str): Path separator. Defaults to ``/``.
        page_size (int): Listing page size. Defaults to 1000.
    """

    def __init__(self, container: Container, delimiter: str = '/', page_size: int = DEFAULT_PAGE_SIZE):
        self.container = container
        self.delimiter = delimiter
        self.page_size = page_size

    def normalize(self, path: str) -> str:
        """Turn a directory path into a listing prefix (``a/b`` -> ``a/b/``)."""
        path = path.lstrip(self.delimiter)
        if path and not path.endswith(self.delimiter):
            path += self.delimiter
        return path

    def iter_entries(self, path: str) -> Iterator[ListingEntry]:
        """Yield every entry under ``path``, following marker pages."""
        prefix = self.normalize(path)
        marker = None
        while True:
            page = self.container.objects_with_prefix(prefix, self.delimiter, self.page_size, marker)
            yield from page
            if len(page) < self.page_size:
                break
            marker = page[-1].name

    def list(self, path: str, limit: Optional[int] = None, marker: Optional[str] = None) -> DirectoryListing:
        """
        List one directory level.

        Args:
            path (str): Directory path; ``''`` is the container root
            limit (int, optional): Fetch a single page of this size instead
                of all entries
            marker (str, optional): With ``limit``, start after this name

        Returns:
            DirectoryListing: Leaves in ``files``, synthesized directories in
                ``subdirs``
        """
        prefix = self.normalize(path)
        if limit:
            entries = self.container.objects_with_prefix(prefix, self.delimiter, limit, marker)
        else:
            entries = self.iter_entries(prefix)

        listing = DirectoryListing(prefix)
        for entry in entries:
            if entry.kind is EntryKind.BRANCH:
                listing.subdirs.append(entry)
            else:
                listing.files.append(entry)
        logger.debug(f"Listed {prefix!r} in {self.container.name}: "
                     f"{len(listing.files)} files, {len(listing.subdirs)} subdirs")
        return listing

    def exists(self, path: str) -> bool:
        """True if any object name starts with the directory prefix."""
        prefix = self.normalize(path)
        try:
            return bool(self.container.objects_with_prefix(prefix, self.delimiter, 1))
        except NotFoundError:
            return False

    def mkdir(self, path: str) -> bool:
        """Succeeds only if nothing lives under the prefix yet. Persists nothing."""
        return not self.exists(path)

    def rmdir(self, path: str) -> bool:
        """Succeeds only if nothing lives under the prefix. Deletes nothing."""
        return not self.exists(path)

    def open(self, path: str) -> 'DirectoryHandle':
        return DirectoryHandle(self.list(path).names())


class DirectoryHandle:
    """
    An open directory: a snapshot of entry names read one at a time.
    """

    def __init__(self, names: List[str]):
        self._names = names
        self._index = 0
        self.closed = False

    def readdir(self) -> Optional[str]:
        """Next entry name, or None when the listing is exhausted."""
        if self.closed:
            raise ValueError("readdir on closed directory")
        if self._index >= len(self._names):
            return None
        name = self._names[self._index]
        self._index += 1
        return name

    def rewind(self):
        self._index = 0

    def close(self):
        self.closed = True
        self._names = []

    def __iter__(self):
        while True:
            name = self.readdir()
            if name is None:
                return
            yield name

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
