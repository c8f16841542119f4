# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Account level access to object storage.

Example:
    store = ObjectStorage.new_from_service_catalog(catalog, token, 'region-a')
    store.create_container('photos', ACL.make_public())
    container = store.container('photos')
    container.save(StorageObject('cat.jpg', data, 'image/jpeg'))
"""
import logging
from typing import Dict, List, Optional
from urllib.parse import quote

from .acl import ACL
from .container import Container
from .exceptions import ConfigurationError, ConflictError, ContainerNotEmptyError, NotFoundError, TransportError
from .transport import HttpTransport
from .types import AccountInfo, IdentityToken

logger = logging.getLogger(__name__)

SERVICE_TYPE = 'object-store'


class ObjectStorage:
    """
    An object storage account reached through a token and an endpoint URL.

    Args:
        token (str): Auth token
        url (str): Account endpoint, e.g. ``https://host/v1/AUTH_tenant``
        transport (HttpTransport, optional): Transport; a default one is
            created when omitted
    """

    def __init__(self, token: str, url: str, transport: Optional[HttpTransport] = None):
        self.token = token
        self.url = url.rstrip('/')
        self.transport = transport or HttpTransport()

    @classmethod
    def new_from_service_catalog(cls, catalog: List[dict], token: str, region: Optional[str] = None,
                                 transport: Optional[HttpTransport] = None) -> 'ObjectStorage':
        """
        Locate the object-store endpoint in a service catalog.

        Args:
            catalog (list): Service catalog entries
            token (str): Auth token
            region (str, optional): Endpoint region; the first endpoint is used
                when omitted
            transport (HttpTransport, optional): Transport to use

        Returns:
            ObjectStorage: Storage bound to the endpoint's public URL

        Raises:
            ConfigurationError: If no matching endpoint exists
        """
        for entry in catalog or []:
            if entry.get('type') != SERVICE_TYPE:
                continue
            for endpoint in entry.get('endpoints', []):
                if region is None or endpoint.get('region') == region:
                    return cls(token, endpoint['publicURL'], transport)
        raise ConfigurationError(f"No {SERVICE_TYPE} endpoint found for region {region!r}.")

    @classmethod
    def new_from_identity(cls, identity: IdentityToken, region: Optional[str] = None,
                          transport: Optional[HttpTransport] = None) -> 'ObjectStorage':
        return cls.new_from_service_catalog(identity.service_catalog, identity.token, region, transport)

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {'X-Auth-Token': self.token}
        if extra:
            headers.update(extra)
        return headers

    def _container_url(self, name: str) -> str:
        return f"{self.url}/{quote(name, safe='')}"

    def containers(self, limit: int = 0, marker: Optional[str] = None) -> Dict[str, Container]:
        """
        List containers in the account.

        Args:
            limit (int): Page size; 0 for the server default
            marker (str, optional): Start after this container name

        Returns:
            dict: Container name to Container, in listing order
        """
        params = {'format': 'json'}
        if limit > 0:
            params['limit'] = limit
        if marker:
            params['marker'] = marker
        response = self.transport.get(self.url, headers=self._headers(), params=params)
        if response.status_code == 204 or not response.content:
            return {}
        return {
            item['name']: Container.new_from_json(item, self.token, self.url, self.transport)
            for item in response.json()
        }

    def container(self, name: str) -> Container:
        """
        Fetch a container with its ACL and metadata.

        Raises:
            NotFoundError: If the container does not exist
        """
        response = self.transport.head(self._container_url(name), headers=self._headers())
        return Container.new_from_response(name, response, self.token, self.url, self.transport)

    def has_container(self, name: str) -> bool:
        try:
            self.container(name)
        except NotFoundError:
            return False
        return True

    def create_container(self, name: str, acl: Optional[ACL] = None,
                         metadata: Optional[Dict[str, str]] = None) -> bool:
        """
        Create a container.

        Returns:
            bool: True if created, False if it already existed

        Raises:
            TransportError: For any other status
        """
        headers = self._headers()
        if acl is not None:
            headers.update(acl.headers())
        headers.update(Container.generate_metadata_headers(metadata, Container.CONTAINER_METADATA_HEADER_PREFIX))

        url = self._container_url(name)
        response = self.transport.put(url, headers=headers)
        if response.status_code == 201:
            logger.info(f"Created container {name}")
            return True
        if response.status_code == 202:
            return False
        raise TransportError(
            f"Unexpected status {response.status_code} creating container",
            method='PUT', url=url, status_code=response.status_code
        )

    def update_container(self, name: str, acl: Optional[ACL] = None,
                         metadata: Optional[Dict[str, str]] = None) -> bool:
        """
        Update a container's ACL and/or metadata.

        When an ACL is given, permissions it does not mention are cleared so
        that e.g. ``ACL.make_private()`` revokes earlier grants.
        """
        headers = self._headers()
        if acl is not None:
            headers.update({ACL.HEADER_READ: '', ACL.HEADER_WRITE: ''})
            headers.update(acl.headers())
        headers.update(Container.generate_metadata_headers(metadata, Container.CONTAINER_METADATA_HEADER_PREFIX))

        url = self._container_url(name)
        response = self.transport.post(url, headers=headers)
        if response.status_code not in (202, 204):
            raise TransportError(
                f"Unexpected status {response.status_code} updating container",
                method='POST', url=url, status_code=response.status_code
            )
        return True

    def change_container_acl(self, name: str, acl: ACL) -> bool:
        return self.update_container(name, acl)

    def delete_container(self, name: str) -> bool:
        """
        Delete an empty container.

        Returns:
            bool: True if deleted, False if it did not exist

        Raises:
            ContainerNotEmptyError: If the container still holds objects
        """
        url = self._container_url(name)
        try:
            response = self.transport.delete(url, headers=self._headers())
        except NotFoundError:
            return False
        except ConflictError as e:
            raise ContainerNotEmptyError(
                f"Container {name} is not empty", method='DELETE', url=url, status_code=e.status_code
            ) from e
        if response.status_code != 204:
            raise TransportError(
                f"Unexpected status {response.status_code} deleting container",
                method='DELETE', url=url, status_code=response.status_code
            )
        logger.info(f"Deleted container {name}")
        return True

    def account_info(self) -> AccountInfo:
        response = self.transport.head(self.url, headers=self._headers())
        headers = response.headers
        return AccountInfo(
            bytes=int(headers.get('X-Account-Bytes-Used', 0)),
            containers=int(headers.get('X-Account-Container-Count', 0)),
            objects=int(headers.get('X-Account-Object-Count', 0)),
        )
