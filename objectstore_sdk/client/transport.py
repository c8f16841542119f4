# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
HTTP transport for the object storage client.

A thin synchronous wrapper around :class:`httpx.Client`. Every request either
returns a successful :class:`httpx.Response` or raises a
:class:`~objectstore_sdk.client.exceptions.TransportError` subclass matching the
status code, so resource classes only deal with the success statuses they
expect.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from .exceptions import error_for_status
from .retry import retry

logger = logging.getLogger(__name__)

USER_AGENT = "objectstore-sdk/0.1.0"


class HttpTransport:
    """
    HTTP client wrapper with connection pooling and connect retries.

    Args:
        timeout (float): Per-request timeout in seconds. Defaults to 30.
        max_retries (int): Attempts for connection failures. Defaults to 3.
        transport (httpx.BaseTransport, optional): Low-level httpx transport,
            e.g. ``httpx.MockTransport`` in tests.
    """

    def __init__(self, timeout: float = 30.0, max_retries: int = 3,
                 transport: Optional[httpx.BaseTransport] = None):
        self.timeout = timeout
        self.max_retries = max_retries
        self._client = httpx.Client(
            timeout=timeout,
            transport=transport,
            headers={'User-Agent': USER_AGENT},
            limits=httpx.Limits(max_connections=100, max_keepalive_connections=100),
        )

    def get(self, url: str, headers: Optional[Dict[str, str]] = None, **kwargs) -> httpx.Response:
        """Make a GET request."""
        return self.request("GET", url, headers=headers, **kwargs)

    def head(self, url: str, headers: Optional[Dict[str, str]] = None, **kwargs) -> httpx.Response:
        """Make a HEAD request."""
        return self.request("HEAD", url, headers=headers, **kwargs)

    def put(self, url: str, content: Any = None, headers: Optional[Dict[str, str]] = None,
            **kwargs) -> httpx.Response:
        """Make a PUT request. ``content`` may be bytes or an iterator of bytes."""
        return self.request("PUT", url, headers=headers, content=content, **kwargs)

    def post(self, url: str, json: Optional[Dict] = None, headers: Optional[Dict[str, str]] = None,
             **kwargs) -> httpx.Response:
        """Make a POST request."""
        return self.request("POST", url, headers=headers, json=json, **kwargs)

    def delete(self, url: str, headers: Optional[Dict[str, str]] = None, **kwargs) -> httpx.Response:
        """Make a DELETE request."""
        return self.request("DELETE", url, headers=headers, **kwargs)

    def copy(self, url: str, headers: Optional[Dict[str, str]] = None, **kwargs) -> httpx.Response:
        """Make a COPY request (server-side copy; needs a ``Destination`` header)."""
        return self.request("COPY", url, headers=headers, **kwargs)

    def request(self, method: str, url: str, headers: Optional[Dict[str, str]] = None,
                **kwargs) -> httpx.Response:
        """
        Send a request and raise on any error status.

        Args:
            method (str): HTTP method
            url (str): Absolute URL
            headers (dict, optional): Request headers

        Returns:
            httpx.Response: The response, status below 400

        Raises:
            TransportError: For network failures and error statuses; the
                subclass depends on the status code
        """
        response = self._send(method, url, headers=headers, **kwargs)
        logger.debug(f"{method} {url} -> {response.status_code}")
        if response.status_code >= 400:
            raise error_for_status(response.status_code, method, url, response.text)
        return response

    @retry()
    def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        return self._client.request(method, url, **kwargs)

    def close(self):
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
