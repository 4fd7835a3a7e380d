"""Abstract base class for storage backends."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO, Union

from packages.shared.exceptions import EmptyContent

Content = Union[bytes, bytearray, memoryview, BinaryIO]


class StorageBackend(ABC):
    """
    Storage contract shared by every driver and by the failover gateway.

    Callers only ever see this interface and the exceptions from
    packages.shared.exceptions; backend-specific errors are translated
    before they cross it.
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the name of this backend (e.g., 'local', 's3')."""
        pass

    @abstractmethod
    def init(self) -> None:
        """
        Validate the backend and perform one-time setup.

        Raises:
            BackendUnavailable: If the backend cannot be used
        """
        pass

    @abstractmethod
    def store(
        self,
        content: Content,
        key: str,
        content_type: str | None = None,
    ) -> str:
        """
        Write bytes under a key, overwriting any existing object.

        Args:
            content: Raw bytes or a readable binary file object
            key: Storage key
            content_type: MIME type, where the backend records one

        Returns:
            Access reference for the stored object (key or URL)

        Raises:
            EmptyContent: If content has no bytes
            InvalidKey: If the key is malformed or escapes the backend root
        """
        pass

    @abstractmethod
    def load_as_handle(self, key: str) -> BinaryIO:
        """
        Open an object for reading.

        Raises:
            NotFound: If the object doesn't exist
        """
        pass

    @abstractmethod
    def load_as_local_path(self, key: str) -> Path:
        """
        Local filesystem path of an object.

        Raises:
            UnsupportedOperation: If the backend has no local paths
        """
        pass

    @abstractmethod
    def list_all(self) -> list[str]:
        """Best-effort list of stored keys."""
        pass

    @abstractmethod
    def exists(self, key: str) -> bool:
        """
        Check if an object exists at the given key.

        Args:
            key: Storage key to check

        Returns:
            True if the object exists, False otherwise
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Delete an object.

        Returns:
            True if deleted, False if not found
        """
        pass

    @abstractmethod
    def delete_all(self) -> None:
        """Remove every object. Test and cleanup tooling only."""
        pass

    @abstractmethod
    def get_signed_url(self, key: str, ttl_seconds: int | None = None) -> str:
        """
        Time-limited access URL for an object.

        Args:
            key: Storage key
            ttl_seconds: Lifetime of the URL; None uses the configured default

        Raises:
            UnsupportedOperation: If the backend cannot sign URLs
        """
        pass

    @staticmethod
    def read_content(content: Content, key: str | None = None) -> bytes:
        """
        Normalize content to bytes.

        File objects are read from the start when seekable.

        Raises:
            EmptyContent: If there is nothing to store
        """
        if content is None:
            raise EmptyContent(key)
        if isinstance(content, (bytes, bytearray, memoryview)):
            data = bytes(content)
        else:
            if hasattr(content, "seekable") and content.seekable():
                content.seek(0)
            data = content.read()
        if not data:
            raise EmptyContent(key)
        return data
