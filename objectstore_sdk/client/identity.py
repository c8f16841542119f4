# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Identity service authentication and the service catalog cache.
"""
import logging
import threading
from typing import Any, Dict, List, Optional

from .exceptions import AuthenticationError, TransportError
from .transport import HttpTransport
from .types import IdentityToken

logger = logging.getLogger(__name__)


class IdentityService:
    """
    Password authentication against a v2 identity endpoint.

    Args:
        auth_url (str): Identity endpoint, e.g. ``https://host:35357/v2.0``
        transport (HttpTransport, optional): Transport to use
    """

    def __init__(self, auth_url: str, transport: Optional[HttpTransport] = None):
        self.auth_url = auth_url.rstrip('/')
        self.transport = transport or HttpTransport()

    def authenticate_as_user(self, username: str, password: str, tenant_id: Optional[str] = None,
                             tenant_name: Optional[str] = None) -> IdentityToken:
        """
        Authenticate with a username and password.

        Args:
            username (str): Account user name
            password (str): Password
            tenant_id (str, optional): Tenant to scope the token to
            tenant_name (str, optional): Used when no tenant id is given

        Returns:
            IdentityToken: Token and service catalog

        Raises:
            AuthenticationError: If the identity service rejects the request
                or returns an unusable response
        """
        auth: Dict[str, Any] = {
            'passwordCredentials': {'username': username, 'password': password},
        }
        if tenant_id:
            auth['tenantId'] = tenant_id
        elif tenant_name:
            auth['tenantName'] = tenant_name

        url = f"{self.auth_url}/tokens"
        logger.debug(f"Authenticating {username} at {url}")
        try:
            response = self.transport.post(url, json={'auth': auth},
                                           headers={'Accept': 'application/json'})
            access = response.json()['access']
            token = access['token']
        except TransportError as e:
            raise AuthenticationError(f"Authentication failed: {e.message}") from e
        except (ValueError, KeyError, TypeError) as e:
            raise AuthenticationError(f"Malformed identity response: {e}") from e

        tenant = token.get('tenant') or {}
        return IdentityToken(
            token=token['id'],
            expires=token.get('expires'),
            tenant_id=tenant.get('id'),
            tenant_name=tenant.get('name'),
            service_catalog=access.get('serviceCatalog', []),
        )


class ServiceCatalogCache:
    """
    Token to service catalog mapping shared by filesystem sessions.

    Populated after each successful authentication; an entry is replaced only
    when the same token authenticates again, or dropped by :meth:`clear`.
    """

    def __init__(self):
        self._catalogs: Dict[str, List[dict]] = {}
        self._lock = threading.Lock()

    def get(self, token: Optional[str]) -> Optional[List[dict]]:
        if not token:
            return None
        with self._lock:
            return self._catalogs.get(token)

    def put(self, token: str, catalog: List[dict]):
        with self._lock:
            self._catalogs[token] = catalog

    def clear(self):
        with self._lock:
            self._catalogs.clear()

    def __contains__(self, token):
        with self._lock:
            return token in self._catalogs

    def __len__(self):
        with self._lock:
            return len(self._catalogs)


# Process-wide cache used when a filesystem is not handed its own.
service_catalog_cache = ServiceCatalogCache()
