# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Exceptions raised by the object storage client and filesystem layer.

Every error carries a short ``code`` and a human readable ``message``.
HTTP failures are surfaced as :class:`TransportError` subclasses chosen by
status code so callers can special-case not-found and conflict responses.
"""
from typing import Optional


class ObjectStoreError(Exception):
    """Base exception for object storage errors."""
    def __init__(self, message: str, code: str = "ERR_UNKNOWN"):
        self.code = code
        self.message = message
        super().__init__(f"{code}: {message}")


class ConfigurationError(ObjectStoreError):
    """Configuration or credential error."""
    def __init__(self, message: str):
        super().__init__(message, code="ERR_CONFIG")


class AuthenticationError(ObjectStoreError):
    """Authentication against the identity service failed."""
    def __init__(self, message: str):
        super().__init__(message, code="ERR_AUTH")


class ContentVerificationError(ObjectStoreError):
    """Fetched content does not match the etag reported by the store."""
    def __init__(self, message: str):
        super().__init__(message, code="ERR_CONTENT_VERIFICATION")


class ObjectExistsError(ObjectStoreError):
    """An exclusive create found an existing object."""
    def __init__(self, message: str):
        super().__init__(message, code="ERR_OBJECT_EXISTS")


class TransportError(ObjectStoreError):
    """
    A request failed at the HTTP or network level.

    Attributes:
        method (str): HTTP method of the failed request
        url (str): URL of the failed request
        status_code (int): HTTP status, or None for network failures
    """
    default_code = "ERR_TRANSPORT"

    def __init__(self, message: str, method: Optional[str] = None, url: Optional[str] = None,
                 status_code: Optional[int] = None, code: Optional[str] = None):
        self.method = method
        self.url = url
        self.status_code = status_code
        if method and url:
            message = f"{message} ({method} {url})"
        super().__init__(message, code=code or self.default_code)


class UnauthorizedError(TransportError):
    default_code = "ERR_UNAUTHORIZED"


class ForbiddenError(TransportError):
    default_code = "ERR_FORBIDDEN"


class NotFoundError(TransportError):
    default_code = "ERR_NOT_FOUND"


class MethodNotAllowedError(TransportError):
    default_code = "ERR_METHOD_NOT_ALLOWED"


class ConflictError(TransportError):
    default_code = "ERR_CONFLICT"


class ContainerNotEmptyError(ConflictError):
    """Deleting a container that still holds objects."""
    default_code = "ERR_CONTAINER_NOT_EMPTY"


class LengthRequiredError(TransportError):
    default_code = "ERR_LENGTH_REQUIRED"


class UnprocessableEntityError(TransportError):
    """Usually an etag mismatch on upload."""
    default_code = "ERR_UNPROCESSABLE_ENTITY"


class ServerError(TransportError):
    default_code = "ERR_SERVER"


STATUS_ERRORS = {
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    405: MethodNotAllowedError,
    409: ConflictError,
    411: LengthRequiredError,
    422: UnprocessableEntityError,
}


def error_for_status(status_code: int, method: str, url: str, body: str = "") -> TransportError:
    """
    Build the exception matching an HTTP error status.

    Args:
        status_code (int): HTTP status returned by the store
        method (str): HTTP method of the request
        url (str): Request URL
        body (str, optional): Response body, appended to the message when present

    Returns:
        TransportError: The most specific error class for the status
    """
    if status_code in STATUS_ERRORS:
        error_class = STATUS_ERRORS[status_code]
    elif status_code >= 500:
        error_class = ServerError
    else:
        error_class = TransportError
    message = f"Request failed with status {status_code}"
    if body:
        message = f"{message}: {body[:200]}"
    return error_class(message, method=method, url=url, status_code=status_code)
