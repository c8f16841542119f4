# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Retry Module.

This module provides a retry decorator with exponential backoff for the HTTP
transport. Only failures to establish a connection are retried, for every
method including streamed uploads. HTTP error statuses are never retried.

Functions:
    retry: Decorator for retrying functions with exponential backoff.
"""
import logging
import time
from functools import wraps
from typing import Any, Callable, Tuple, Type

import httpx

from .exceptions import TransportError

logger = logging.getLogger(__name__)

RETRYABLE_EXCEPTIONS = (
    httpx.ConnectError,
    httpx.ConnectTimeout,
    httpx.PoolTimeout,
)


def retry(
    max_attempts: int = 3,
    initial_backoff: float = 0.1,
    max_backoff: float = 5.0,
    backoff_multiplier: float = 2.0,
    retryable_exceptions: Tuple[Type[Exception], ...] = RETRYABLE_EXCEPTIONS
) -> Callable:
    """
    Decorator for retrying a transport call with exponential backoff.

    The wrapped callable receives the HTTP method and URL as its first two
    positional arguments after ``self``; they are used in log lines and in the
    final error message.

    Args:
        max_attempts (int): Maximum number of attempts. Defaults to 3.
            Instances may override it with a ``max_retries`` attribute.
        initial_backoff (float): Initial backoff time in seconds. Defaults to 0.1.
        max_backoff (float): Maximum backoff time in seconds. Defaults to 5.0.
        backoff_multiplier (float): Multiplier for exponential backoff. Defaults to 2.0.
        retryable_exceptions (Tuple[Type[Exception], ...]): Exceptions that trigger a retry.

    Returns:
        Callable: A decorator that wraps the function.
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(self, method: str, url: str, *args: Any, **kwargs: Any) -> Any:
            """
            Executes the function with retry logic and exponential backoff.

            Raises:
                TransportError: If all attempts fail or a non-retryable
                    network error occurs.
            """
            attempts = max(1, getattr(self, 'max_retries', max_attempts) or 1)
            backoff = initial_backoff
            last_exception = None

            for attempt in range(attempts):
                try:
                    return func(self, method, url, *args, **kwargs)
                except retryable_exceptions as e:
                    last_exception = e
                    if attempt < attempts - 1:
                        logger.warning(
                            f"{type(e).__name__} during {method} {url}. "
                            f"Attempt {attempt + 1}/{attempts}. Retrying after {backoff:.2f}s..."
                        )
                        time.sleep(backoff)
                        backoff = min(backoff * backoff_multiplier, max_backoff)
                except httpx.RequestError as e:
                    raise TransportError(f"Network error: {e}", method=method, url=url) from e

            raise TransportError(
                f"Connection failed after {attempts} attempts: {last_exception}",
                method=method, url=url
            ) from last_exception

        return wrapper
    return decorator
