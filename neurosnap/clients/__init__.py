"""Expose constructed client wrappers."""

from .backend import (
    BackendClient,
    BackendError,
    BackendHTTPError,
    BackendResponseError,
    BackendTimeoutError,
    BackendUnreachableError,
)

__all__ = [
    "BackendClient",
    "BackendError",
    "BackendHTTPError",
    "BackendResponseError",
    "BackendTimeoutError",
    "BackendUnreachableError",
]
