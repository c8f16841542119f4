# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Objects, remote objects and synthesized subdirectories.

A :class:`StorageObject` is a purely local value: build one, give it content
and save it through a container. A :class:`RemoteObject` is returned by the
store; it knows its URL and can fetch its body on demand. Listing results mix
remote objects and :class:`Subdir` markers; both expose ``kind`` so callers
can dispatch on :class:`EntryKind` instead of probing attributes.
"""
import enum
import hashlib
import io
import logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Dict, Iterable, Optional, Union
from urllib.parse import quote

from .exceptions import ConfigurationError, ContentVerificationError

logger = logging.getLogger(__name__)

METADATA_HEADER_PREFIX = 'X-Object-Meta-'


class EntryKind(enum.Enum):
    """Shape of a listing entry."""
    LEAF = 'leaf'
    BRANCH = 'branch'


def object_url(base: str, name: str) -> str:
    """
    Join a container URL and an object name.

    Each path segment of the name is percent-encoded on its own so the
    separators survive.
    """
    return f"{base.rstrip('/')}/{quote(name, safe='/')}"


def parse_timestamp(value: Optional[str]) -> float:
    """
    Convert a listing or header timestamp to epoch seconds.

    Accepts the ISO form used in JSON listings (``2012-01-24T12:46:01.682010``,
    naive values are UTC) and the HTTP date form used in ``Last-Modified``.
    Returns 0.0 for missing or unparsable values.
    """
    if not value:
        return 0.0
    try:
        parsed = datetime.fromisoformat(value.rstrip('Z'))
    except ValueError:
        try:
            parsed = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            logger.warning(f"Unparsable timestamp: {value}")
            return 0.0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


class Subdir:
    """
    A virtual directory produced by a delimited listing.

    Not a stored entity: ``path`` is the shared prefix (ending with the
    delimiter) of one or more object names.
    """
    kind = EntryKind.BRANCH

    def __init__(self, path: str, delimiter: str = '/'):
        self.path = path
        self.delimiter = delimiter

    @property
    def name(self) -> str:
        return self.path

    def __eq__(self, other):
        return isinstance(other, Subdir) and (self.path, self.delimiter) == (other.path, other.delimiter)

    def __hash__(self):
        return hash((self.path, self.delimiter))

    def __repr__(self):
        return f"Subdir({self.path!r}, {self.delimiter!r})"


class StorageObject:
    """
    A local object, not yet (or not necessarily) stored.

    Args:
        name (str): Object name; may contain ``/``
        content (bytes or str, optional): Object body; str is UTF-8 encoded
        content_type (str, optional): MIME type, defaults to
            ``application/octet-stream``
    """

    DEFAULT_CONTENT_TYPE = 'application/octet-stream'

    def __init__(self, name: str, content: Union[bytes, str, None] = None,
                 content_type: Optional[str] = None):
        self.name = name
        self.content_type = content_type or self.DEFAULT_CONTENT_TYPE
        self.metadata: Dict[str, str] = {}
        self.encoding: Optional[str] = None
        self.disposition: Optional[str] = None
        self._additional_headers: Dict[str, str] = {}
        self._chunked = False
        self._content: Optional[bytes] = None
        if content is not None:
            self.set_content(content)

    def set_content(self, content: Union[bytes, str], content_type: Optional[str] = None):
        """Replace the local body, optionally changing the content type."""
        if isinstance(content, str):
            content = content.encode('utf-8')
        self._content = bytes(content)
        if content_type:
            self.content_type = content_type

    def content(self) -> Optional[bytes]:
        return self._content

    def has_content(self) -> bool:
        """True if a local body is present."""
        return self._content is not None

    @property
    def content_length(self) -> int:
        return len(self._content) if self._content is not None else 0

    @property
    def etag(self) -> str:
        """MD5 hex digest of the local content."""
        return hashlib.md5(self._content or b'').hexdigest()

    def set_chunked(self, enabled: bool):
        """Upload with chunked transfer encoding instead of a Content-Length."""
        self._chunked = enabled

    def is_chunked(self) -> bool:
        return self._chunked

    def set_additional_headers(self, headers: Dict[str, str]):
        self._additional_headers = dict(headers)

    def additional_headers(self) -> Dict[str, str]:
        """Extension headers sent along when the object is saved."""
        return dict(self._additional_headers)

    def remove_headers(self, keys: Iterable[str]):
        lowered = {k.lower() for k in keys}
        self._additional_headers = {
            k: v for k, v in self._additional_headers.items() if k.lower() not in lowered
        }

    def __repr__(self):
        return f"{type(self).__name__}({self.name!r})"


class RemoteObject(StorageObject):
    """
    An object as reported by the store.

    Metadata comes from a listing or from response headers. The body is only
    held locally when it was fetched eagerly, set explicitly, or fetched with
    caching enabled. While a local body is present the object may be dirty.

    Attributes:
        url (str): Object URL
        last_modified (float): Modification time in epoch seconds
        caching (bool): Keep fetched bodies locally. Defaults to False.
        content_verification (bool): Check fetched bodies against the etag.
            Defaults to True.
    """
    kind = EntryKind.LEAF

    RESERVED_HEADERS = frozenset({
        'etag', 'content-length', 'x-auth-token', 'transfer-encoding', 'x-trans-id',
    })

    def __init__(self, name: str, url: Optional[str] = None, token: Optional[str] = None,
                 transport=None):
        super().__init__(name)
        self.url = url
        self.token = token
        self.transport = transport
        self.last_modified = 0.0
        self.caching = False
        self.content_verification = True
        self._remote_etag = ''
        self._remote_length = 0
        self._all_headers: Dict[str, str] = {}

    @classmethod
    def new_from_json(cls, data: dict, token: str, base_url: str, transport=None) -> 'RemoteObject':
        """Build from one entry of a JSON container listing."""
        obj = cls(data['name'], object_url(base_url, data['name']), token, transport)
        obj.content_type = data.get('content_type') or cls.DEFAULT_CONTENT_TYPE
        obj._remote_length = int(data.get('bytes') or 0)
        obj._remote_etag = str(data.get('hash') or '')
        obj.last_modified = parse_timestamp(data.get('last_modified'))
        return obj

    @classmethod
    def new_from_headers(cls, name: str, headers, token: str, base_url: str,
                         transport=None) -> 'RemoteObject':
        """Build from the headers of a GET or HEAD object response."""
        obj = cls(name, object_url(base_url, name), token, transport)
        obj._apply_headers(headers)
        return obj

    def _apply_headers(self, headers):
        self.set_headers(headers)
        lowered = {k.lower(): v for k, v in headers.items()}
        self.content_type = lowered.get('content-type') or self.DEFAULT_CONTENT_TYPE
        self._remote_length = int(lowered.get('content-length') or 0)
        self._remote_etag = lowered.get('etag', '').strip('"')
        self.last_modified = parse_timestamp(lowered.get('last-modified'))
        self.encoding = lowered.get('content-encoding')
        self.disposition = lowered.get('content-disposition')

        prefix = METADATA_HEADER_PREFIX.lower()
        self.metadata = {
            key[len(prefix):]: value for key, value in headers.items()
            if key.lower().startswith(prefix)
        }

    @property
    def content_length(self) -> int:
        if self.has_content():
            return super().content_length
        return self._remote_length

    @property
    def etag(self) -> str:
        if self.has_content():
            return super().etag
        return self._remote_etag

    @property
    def remote_etag(self) -> str:
        """Etag last reported by the store."""
        return self._remote_etag

    def set_headers(self, headers):
        self._all_headers = dict(headers.items())

    def headers(self) -> Dict[str, str]:
        """All headers from the last response describing this object."""
        return dict(self._all_headers)

    def filter_headers(self, headers: Dict[str, str]) -> Dict[str, str]:
        """Drop headers that must never be replayed on save."""
        return {k: v for k, v in headers.items() if k.lower() not in self.RESERVED_HEADERS}

    def additional_headers(self, merge_all: bool = False) -> Dict[str, str]:
        """
        Extension headers for save.

        Args:
            merge_all (bool): Also include every (non-reserved) header the
                store returned for this object. Defaults to False.
        """
        headers = super().additional_headers()
        if merge_all:
            merged = self.filter_headers(self._all_headers)
            merged.update(headers)
            return merged
        return headers

    def remove_headers(self, keys: Iterable[str]):
        keys = list(keys)
        super().remove_headers(keys)
        lowered = {k.lower() for k in keys}
        self._all_headers = {k: v for k, v in self._all_headers.items() if k.lower() not in lowered}

    def set_caching(self, enabled: bool):
        self.caching = enabled

    def is_caching(self) -> bool:
        return self.caching

    def set_content_verification(self, enabled: bool):
        self.content_verification = enabled

    def is_verifying_content(self) -> bool:
        return self.content_verification

    def content(self) -> bytes:
        """
        Return the object body.

        Uses the local body when present. Otherwise fetches it, verifies it
        against the remote etag and keeps it only when caching is enabled.

        Raises:
            ContentVerificationError: If the checksum does not match and
                verification is enabled
            TransportError: If the fetch fails
        """
        if self.has_content():
            return self._content

        response = self._fetch(True)
        content = response.content
        self._remote_etag = response.headers.get('etag', self._remote_etag).strip('"')
        if self.content_verification:
            digest = hashlib.md5(content).hexdigest()
            if digest != self._remote_etag:
                raise ContentVerificationError(
                    f"Checksum mismatch for {self.name}: expected {self._remote_etag}, got {digest}"
                )
        if self.caching:
            self._content = content
        return content

    def stream(self, refresh: bool = False) -> io.BytesIO:
        """
        Return the body as a seekable stream positioned at 0.

        A refreshed stream reads the stored body as is. The local body, if
        any, is left untouched.

        Args:
            refresh (bool): Fetch even if a local body is present

        Returns:
            io.BytesIO: The body
        """
        if refresh:
            return io.BytesIO(self._fetch(True).content)
        return io.BytesIO(self.content())

    def is_dirty(self) -> bool:
        """True if a local body is present and differs from the remote etag."""
        if not self.has_content():
            return False
        return hashlib.md5(self._content).hexdigest() != self._remote_etag

    def refresh(self, fetch_content: bool = False) -> bool:
        """
        Discard local changes and reload from the store.

        Args:
            fetch_content (bool): Also load the body. Defaults to False.
        """
        response = self._fetch(fetch_content)
        self._content = None
        self._apply_headers(response.headers)
        if fetch_content:
            self._content = response.content
        return True

    def _fetch(self, fetch_content: bool):
        if not self.url or not self.token or self.transport is None:
            raise ConfigurationError(f"Object {self.name} is not bound to a URL and token.")
        headers = {'X-Auth-Token': self.token}
        if fetch_content:
            return self.transport.get(self.url, headers=headers)
        return self.transport.head(self.url, headers=headers)
