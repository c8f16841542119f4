# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Containers and the operations on their objects.

A :class:`Container` is obtained from
:class:`~objectstore_sdk.client.object_storage.ObjectStorage`. Containers that
come from an account listing only know their name, size and object count; ACL
and metadata are loaded with one HEAD request the first time they are needed.
"""
import hashlib
import logging
from typing import BinaryIO, Dict, Iterator, List, Optional, Union
from urllib.parse import quote

from .acl import ACL
from .exceptions import ConfigurationError, NotFoundError, ObjectStoreError, TransportError
from .objects import METADATA_HEADER_PREFIX, RemoteObject, StorageObject, Subdir, object_url
from .types import ListObjectsOptions

logger = logging.getLogger(__name__)

ListingEntry = Union[RemoteObject, Subdir]

CHUNK_SIZE = 1024 * 1024


def _stream_chunks(stream: BinaryIO, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        yield chunk


class Container:
    """
    A named container of objects.

    Args:
        name (str): Container name
        url (str, optional): Container URL
        token (str, optional): Auth token
        transport (HttpTransport, optional): Transport used for requests
    """

    METADATA_HEADER_PREFIX = METADATA_HEADER_PREFIX
    CONTAINER_METADATA_HEADER_PREFIX = 'X-Container-Meta-'

    def __init__(self, name: str, url: Optional[str] = None, token: Optional[str] = None,
                 transport=None):
        self.name = name
        self.url = url
        self.token = token
        self.transport = transport
        self.base_url: Optional[str] = None
        self._bytes: Optional[int] = None
        self._count: Optional[int] = None
        self._acl: Optional[ACL] = None
        self._metadata: Optional[Dict[str, str]] = None

    @staticmethod
    def generate_metadata_headers(metadata: Dict[str, str], prefix: Optional[str] = None) -> Dict[str, str]:
        """Turn a metadata dict into prefixed headers."""
        prefix = prefix or Container.METADATA_HEADER_PREFIX
        return {f'{prefix}{key}': str(value) for key, value in (metadata or {}).items()}

    @staticmethod
    def extract_header_attributes(headers, prefix: Optional[str] = None) -> Dict[str, str]:
        """Collect headers starting with ``prefix`` (case-insensitive), prefix removed."""
        prefix = (prefix or Container.METADATA_HEADER_PREFIX).lower()
        return {
            key[len(prefix):]: value for key, value in headers.items()
            if key.lower().startswith(prefix)
        }

    object_url = staticmethod(object_url)

    @classmethod
    def new_from_json(cls, data: dict, token: str, base_url: str, transport=None) -> 'Container':
        """Build from one entry of a JSON account listing."""
        container = cls(data['name'], f"{base_url}/{quote(data['name'], safe='')}", token, transport)
        container.base_url = base_url
        if 'count' in data:
            container._count = int(data['count'])
        if 'bytes' in data:
            container._bytes = int(data['bytes'])
        return container

    @classmethod
    def new_from_response(cls, name: str, response, token: str, base_url: str,
                          transport=None) -> 'Container':
        """Build from a container HEAD response; every field is populated."""
        container = cls(name, f"{base_url}/{quote(name, safe='')}", token, transport)
        container.base_url = base_url
        container._apply_headers(response.headers)
        return container

    def _apply_headers(self, headers):
        self._bytes = int(headers.get('X-Container-Bytes-Used', 0) or 0)
        self._count = int(headers.get('X-Container-Object-Count', 0) or 0)
        self._acl = ACL.new_from_headers(headers)
        self._metadata = self.extract_header_attributes(headers, self.CONTAINER_METADATA_HEADER_PREFIX)

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {'X-Auth-Token': self.token}
        if extra:
            headers.update(extra)
        return headers

    def _require_binding(self):
        if not self.url or not self.token or self.transport is None:
            raise ConfigurationError(
                f"Container {self.name} has no URL, token or transport; cannot contact the store."
            )

    def _load_extra_data(self):
        """Fetch byte count, object count, ACL and metadata in one HEAD request."""
        self._require_binding()
        logger.debug(f"Loading container details for {self.name}")
        response = self.transport.head(self.url, headers=self._headers())
        self._apply_headers(response.headers)

    def bytes(self) -> int:
        """Bytes used by the container."""
        if self._bytes is None:
            self._load_extra_data()
        return self._bytes

    def count(self) -> int:
        """Number of objects in the container."""
        if self._count is None:
            self._load_extra_data()
        return self._count

    def acl(self) -> ACL:
        if self._acl is None:
            self._load_extra_data()
        return self._acl

    def metadata(self) -> Dict[str, str]:
        if self._metadata is None:
            self._load_extra_data()
        return dict(self._metadata)

    def set_metadata(self, metadata: Dict[str, str]):
        """Set local metadata; persisted by ObjectStorage.update_container."""
        self._metadata = dict(metadata)

    def save(self, obj: StorageObject, stream: Optional[BinaryIO] = None) -> bool:
        """
        Upload an object.

        Without ``stream`` the object's own content is sent. With ``stream``
        the stream is read from its start; the checksum and length are
        computed in a first pass and the stream is rewound before upload.

        Args:
            obj (StorageObject): Object carrying name, type and headers
            stream (BinaryIO, optional): Seekable binary stream to upload
                instead of the object's content

        Returns:
            bool: True on success

        Raises:
            ValueError: If the object has no name
            TransportError: If the store does not answer 201
        """
        if not obj.name:
            raise ValueError("An object name is required to save an object.")
        self._require_binding()

        url = self.object_url(self.url, obj.name)
        headers = self._headers({'Content-Type': obj.content_type})
        headers.update(self.generate_metadata_headers(obj.metadata))
        if obj.encoding:
            headers['Content-Encoding'] = obj.encoding
        if obj.disposition:
            headers['Content-Disposition'] = obj.disposition
        headers.update(obj.additional_headers())

        if stream is None:
            content = obj.content() or b''
            headers['Etag'] = hashlib.md5(content).hexdigest()
            if obj.is_chunked():
                headers['Transfer-Encoding'] = 'chunked'
                body = iter([content])
            else:
                headers['Content-Length'] = str(len(content))
                body = content
        else:
            stream.seek(0)
            digest = hashlib.md5()
            length = 0
            for chunk in _stream_chunks(stream):
                digest.update(chunk)
                length += len(chunk)
            stream.seek(0)
            headers['Etag'] = digest.hexdigest()
            if obj.is_chunked():
                headers['Transfer-Encoding'] = 'chunked'
            else:
                headers['Content-Length'] = str(length)
            body = _stream_chunks(stream)

        response = self.transport.put(url, content=body, headers=headers)
        if response.status_code != 201:
            raise TransportError(
                f"Unexpected status {response.status_code} saving object",
                method='PUT', url=url, status_code=response.status_code
            )
        logger.debug(f"Saved {obj.name} to container {self.name}")
        return True

    def update_metadata(self, obj: StorageObject) -> bool:
        """
        Replace an object's metadata without re-uploading it.

        Raises:
            TransportError: If the store does not answer 202
        """
        self._require_binding()
        url = self.object_url(self.url, obj.name)
        headers = self._headers(self.generate_metadata_headers(obj.metadata))
        headers.update(obj.additional_headers())
        response = self.transport.post(url, headers=headers)
        if response.status_code != 202:
            raise TransportError(
                f"Unexpected status {response.status_code} updating metadata",
                method='POST', url=url, status_code=response.status_code
            )
        return True

    def copy(self, obj: StorageObject, new_name: str, container: Optional[str] = None) -> bool:
        """
        Copy an object server side.

        Args:
            obj (StorageObject): Source object in this container
            new_name (str): Destination object name
            container (str, optional): Destination container name. Defaults
                to this container.

        Returns:
            bool: True on success

        Raises:
            ValueError: If ``new_name`` is empty
            TransportError: If the store does not answer 201
        """
        if not new_name:
            raise ValueError("A new name is required to copy an object.")
        self._require_binding()
        container = container or self.name
        url = self.object_url(self.url, obj.name)
        destination = f"/{quote(container, safe='')}/{quote(new_name, safe='/')}"
        response = self.transport.copy(url, headers=self._headers({'Destination': destination}))
        if response.status_code != 201:
            raise TransportError(
                f"Unexpected status {response.status_code} copying object",
                method='COPY', url=url, status_code=response.status_code
            )
        return True

    def object(self, name: str) -> RemoteObject:
        """
        Fetch an object with its body (GET).

        Raises:
            NotFoundError: If the object does not exist
        """
        self._require_binding()
        url = self.object_url(self.url, name)
        response = self.transport.get(url, headers=self._headers())
        obj = RemoteObject.new_from_headers(name, response.headers, self.token, self.url, self.transport)
        obj.set_content(response.content)
        return obj

    def proxy_object(self, name: str) -> RemoteObject:
        """
        Fetch an object's metadata only (HEAD); the body loads on demand.

        Raises:
            NotFoundError: If the object does not exist
        """
        self._require_binding()
        url = self.object_url(self.url, name)
        response = self.transport.head(url, headers=self._headers())
        return RemoteObject.new_from_headers(name, response.headers, self.token, self.url, self.transport)

    def objects(self, limit: Optional[int] = None, marker: Optional[str] = None) -> List[ListingEntry]:
        """List objects without a delimiter."""
        return self._object_query(ListObjectsOptions(limit=limit, marker=marker))

    def objects_with_prefix(self, prefix: str, delimiter: str = '/', limit: Optional[int] = None,
                            marker: Optional[str] = None) -> List[ListingEntry]:
        """
        List entries under a prefix.

        With a delimiter, names continuing past the next delimiter collapse
        into a single :class:`Subdir`.

        Args:
            prefix (str): Name prefix
            delimiter (str): Grouping delimiter. Defaults to ``/``.
            limit (int, optional): Page size
            marker (str, optional): Return entries strictly after this name;
                only used together with ``limit``

        Returns:
            list: RemoteObject and Subdir entries in lexical order
        """
        return self._object_query(ListObjectsOptions(prefix=prefix, delimiter=delimiter,
                                                     limit=limit, marker=marker))

    def objects_by_path(self, path: str, delimiter: str = '/', limit: Optional[int] = None,
                        marker: Optional[str] = None) -> List[ListingEntry]:
        """List the entries directly inside a path."""
        return self._object_query(ListObjectsOptions(path=path, delimiter=delimiter,
                                                     limit=limit, marker=marker))

    def _object_query(self, options: ListObjectsOptions) -> List[ListingEntry]:
        self._require_binding()
        response = self.transport.get(self.url, headers=self._headers(), params=options.to_params())
        if response.status_code == 204 or not response.content:
            return []

        entries: List[ListingEntry] = []
        for item in response.json():
            if 'subdir' in item:
                entries.append(Subdir(item['subdir'], options.delimiter or '/'))
            elif 'name' in item:
                entries.append(RemoteObject.new_from_json(item, self.token, self.url, self.transport))
            else:
                raise ObjectStoreError(f"Unexpected entity returned: {item!r}", code="ERR_UNEXPECTED_ENTITY")
        return entries

    def __iter__(self) -> Iterator[ListingEntry]:
        """Iterate over every object, paging with markers."""
        marker = None
        page_size = 1000
        while True:
            page = self.objects(limit=page_size, marker=marker)
            yield from page
            if len(page) < page_size:
                break
            marker = page[-1].name

    def delete(self, name: str) -> bool:
        """
        Delete an object.

        Returns:
            bool: True if deleted, False if it did not exist

        Raises:
            TransportError: For any other failure
        """
        self._require_binding()
        url = self.object_url(self.url, name)
        try:
            response = self.transport.delete(url, headers=self._headers())
        except NotFoundError:
            return False
        if response.status_code != 204:
            raise TransportError(
                f"Unexpected status {response.status_code} deleting object",
                method='DELETE', url=url, status_code=response.status_code
            )
        return True

    def __repr__(self):
        return f"Container({self.name!r})"
