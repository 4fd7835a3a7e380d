"""Shared utilities package."""

from packages.shared.exceptions import (
    AppException,
    BackendUnavailable,
    ConfigurationError,
    EmptyContent,
    InvalidKey,
    NotFound,
    StorageError,
    StorageUnavailable,
    UnsupportedOperation,
)

__all__ = [
    "AppException",
    "BackendUnavailable",
    "ConfigurationError",
    "EmptyContent",
    "InvalidKey",
    "NotFound",
    "StorageError",
    "StorageUnavailable",
    "UnsupportedOperation",
]
