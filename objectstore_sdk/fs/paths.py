# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Filesystem URLs.

Objects are addressed as ``swift://<container>/<object name>``; the object
name keeps any ``/`` it contains. A URL without an object name refers to the
container itself.
"""
from dataclasses import dataclass
from urllib.parse import unquote

DEFAULT_SCHEME = 'swift'


@dataclass(frozen=True)
class ObjectPath:
    """A parsed filesystem URL."""
    container: str
    name: str = ''
    scheme: str = DEFAULT_SCHEME

    @classmethod
    def parse(cls, url: str) -> 'ObjectPath':
        """
        Split a URL into container and object name.

        Args:
            url (str): ``scheme://container/name``; percent escapes are decoded

        Returns:
            ObjectPath: The parsed path. ``container`` is empty when the URL
                names none.

        Raises:
            ValueError: If the URL has no ``scheme://`` part
        """
        scheme, sep, rest = url.partition('://')
        if not sep:
            raise ValueError(f"Not a filesystem URL: {url!r}")
        container, _, name = rest.partition('/')
        return cls(unquote(container), unquote(name), scheme)

    @property
    def is_container(self) -> bool:
        return bool(self.container) and not self.name

    def join(self, name: str) -> 'ObjectPath':
        """Append a relative name to this path's object name."""
        base = self.name
        if base and not base.endswith('/'):
            base += '/'
        return ObjectPath(self.container, base + name.lstrip('/'), self.scheme)

    def __str__(self):
        return f"{self.scheme}://{self.container}/{self.name}"
