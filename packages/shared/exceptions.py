"""Shared exception classes and handlers."""

from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.detail = detail or {}
        super().__init__(self.message)


# =============================================================================
# Storage Errors
# =============================================================================


class StorageError(AppException):
    """Base class for every error raised across the storage contract."""

    def __init__(
        self,
        message: str = "Storage operation failed",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, status_code=status_code, detail=detail)


class InvalidKey(StorageError):
    """Key is malformed or resolves outside the backend root."""

    def __init__(self, key: str | None, reason: str = "invalid storage key") -> None:
        self.key = key
        super().__init__(
            message=f"Invalid key '{key}': {reason}",
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"key": key, "reason": reason},
        )


class EmptyContent(StorageError):
    """Refusing to store zero bytes."""

    def __init__(self, key: str | None = None) -> None:
        self.key = key
        super().__init__(
            message=f"Cannot store empty content for key '{key}'",
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"key": key},
        )


class NotFound(StorageError):
    """Object does not exist in the backend."""

    def __init__(self, key: str, backend: str | None = None) -> None:
        self.key = key
        self.backend = backend
        message = f"Object '{key}' not found"
        if backend:
            message = f"Object '{key}' not found in {backend} storage"
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"key": key},
        )


class UnsupportedOperation(StorageError):
    """Capability is absent on this backend."""

    def __init__(self, operation: str, backend: str) -> None:
        self.operation = operation
        self.backend = backend
        super().__init__(
            message=f"Operation '{operation}' is not supported by {backend} storage",
            status_code=status.HTTP_501_NOT_IMPLEMENTED,
            detail={"operation": operation, "backend": backend},
        )


class BackendUnavailable(StorageError):
    """Backend failed its reachability check or could not be set up."""

    def __init__(self, backend: str, reason: str) -> None:
        self.backend = backend
        super().__init__(
            message=f"{backend} storage is unavailable: {reason}",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"backend": backend},
        )


class StorageUnavailable(StorageError):
    """Every available backend failed the operation."""

    def __init__(
        self,
        operation: str,
        key: str | None = None,
        primary_error: Exception | None = None,
        fallback_error: Exception | None = None,
    ) -> None:
        self.operation = operation
        self.key = key
        self.primary_error = primary_error
        self.fallback_error = fallback_error
        detail: dict[str, Any] = {"operation": operation}
        if key is not None:
            detail["key"] = key
        super().__init__(
            message=f"Storage unavailable for '{operation}' ({key}): primary and fallback both failed",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=detail,
        )


class ConfigurationError(StorageError):
    """Storage configuration is invalid or names an unknown backend."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message)


async def app_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle AppException and return JSON response."""
    if isinstance(exc, AppException):
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": exc.message,
                "detail": exc.detail,
            },
        )
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "detail": {}},
    )
