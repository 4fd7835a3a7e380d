"""Local disk storage backend."""

import hashlib
import hmac
import logging
import shutil
import time
from pathlib import Path
from typing import BinaryIO
from urllib.parse import urlencode

from packages.shared.exceptions import BackendUnavailable, InvalidKey, NotFound, StorageError
from packages.shared.storage.base import Content, StorageBackend
from packages.shared.storage.config import StorageConfig
from packages.shared.storage.keys import validate_key

logger = logging.getLogger(__name__)


class LocalFileStorage(StorageBackend):
    """
    Local disk storage backend.

    Objects live at <base_path>/<key>. Every key is resolved and checked to
    stay under base_path before anything touches the disk.

    Signed URLs are HMAC-signed when a signing secret is configured;
    without one the plain public URL is returned (and a warning logged),
    since a static file server cannot enforce expiry on its own.
    """

    def __init__(
        self,
        base_path: str = "./uploads",
        base_url: str = "http://localhost:8080/api/files",
        signing_secret: str | None = None,
        default_ttl_seconds: int = 3600,
    ):
        """
        Initialize local file storage.

        Args:
            base_path: Base directory for file storage
            base_url: Public URL prefix that serves base_path
            signing_secret: Secret for HMAC-signed URLs (None disables signing)
            default_ttl_seconds: Signed URL lifetime when none is requested
        """
        self.base_path = Path(base_path)
        self.base_url = base_url.rstrip("/")
        self.signing_secret = signing_secret
        self.default_ttl_seconds = default_ttl_seconds

    @classmethod
    def from_config(cls, config: StorageConfig) -> "LocalFileStorage":
        return cls(
            base_path=config.location,
            base_url=config.base_url,
            signing_secret=config.local_signing_secret,
            default_ttl_seconds=config.signed_url_ttl_seconds,
        )

    @property
    def backend_name(self) -> str:
        return "local"

    def init(self) -> None:
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Could not initialize local storage at {self.base_path}: {e}")
            raise BackendUnavailable(self.backend_name, str(e)) from e
        logger.info(f"Initialized local storage directory: {self.base_path}")

    def _resolve_path(self, key: str) -> Path:
        """
        Map a key to an absolute path under base_path.

        Raises:
            InvalidKey: If the key is malformed or resolves outside base_path
        """
        validate_key(key)
        root = self.base_path.resolve()
        target = (root / key).resolve()
        if target == root or not target.is_relative_to(root):
            logger.error(f"Rejected key outside storage root: {key} -> {target}")
            raise InvalidKey(key, "resolves outside the storage root")
        return target

    def public_url(self, key: str) -> str:
        return f"{self.base_url}/{key.lstrip('/')}"

    def store(
        self,
        content: Content,
        key: str,
        content_type: str | None = None,
    ) -> str:
        """
        Save bytes to local disk.

        Args:
            content: Bytes or binary file object
            key: Storage key
            content_type: Ignored; the file server infers it

        Returns:
            Public URL of the stored file
        """
        full_path = self._resolve_path(key)
        data = self.read_content(content, key)

        try:
            full_path.parent.mkdir(parents=True, exist_ok=True)
            full_path.write_bytes(data)
        except OSError as e:
            logger.error(f"Failed to store file {key} locally: {e}")
            raise StorageError(f"Failed to store file: {key}") from e

        logger.info(f"Stored file locally: {full_path} ({len(data)} bytes)")
        return self.public_url(key)

    def load_as_handle(self, key: str) -> BinaryIO:
        full_path = self._resolve_path(key)
        if not full_path.is_file():
            raise NotFound(key, self.backend_name)
        try:
            return full_path.open("rb")
        except FileNotFoundError:
            raise NotFound(key, self.backend_name) from None
        except OSError as e:
            raise StorageError(f"Could not read file: {key}") from e

    def load_as_local_path(self, key: str) -> Path:
        full_path = self._resolve_path(key)
        if not full_path.is_file():
            raise NotFound(key, self.backend_name)
        return full_path

    def list_all(self) -> list[str]:
        """
        List every stored file as a key relative to base_path.

        Returns:
            Sorted POSIX-style keys
        """
        if not self.base_path.exists():
            return []
        try:
            return sorted(
                path.relative_to(self.base_path).as_posix()
                for path in self.base_path.rglob("*")
                if path.is_file()
            )
        except OSError as e:
            logger.error(f"Failed to read stored files from {self.base_path}: {e}")
            raise StorageError("Failed to read stored files") from e

    def exists(self, key: str) -> bool:
        return self._resolve_path(key).is_file()

    def delete(self, key: str) -> bool:
        """
        Delete a file from local disk.

        Returns:
            True if deleted, False if not found
        """
        full_path = self._resolve_path(key)
        if not full_path.is_file():
            logger.debug(f"Attempted to delete non-existent local file: {key}")
            return False
        try:
            full_path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error(f"Failed to delete local file {key}: {e}")
            return False
        logger.info(f"Deleted local file: {full_path}")
        return True

    def delete_all(self) -> None:
        logger.warning(f"Deleting all files in local storage directory: {self.base_path}")
        if self.base_path.exists():
            try:
                shutil.rmtree(self.base_path)
            except OSError as e:
                raise StorageError(f"Could not delete local storage directory: {e}") from e
        self.init()

    # =========================================================================
    # Signed URLs
    # =========================================================================

    def _signature(self, key: str, expires: int) -> str:
        message = f"{key}\n{expires}".encode("utf-8")
        return hmac.new(self.signing_secret.encode("utf-8"), message, hashlib.sha256).hexdigest()

    def get_signed_url(self, key: str, ttl_seconds: int | None = None) -> str:
        validate_key(key)
        if not self.signing_secret:
            logger.warning(
                f"Local storage has no signing secret; returning unsigned, non-expiring URL for {key}"
            )
            return self.public_url(key)

        ttl = ttl_seconds if ttl_seconds and ttl_seconds > 0 else self.default_ttl_seconds
        expires = int(time.time()) + ttl
        query = urlencode({"expires": expires, "signature": self._signature(key, expires)})
        return f"{self.public_url(key)}?{query}"

    def verify_signed_url(self, key: str, expires: int | str, signature: str) -> bool:
        """
        Check a signature produced by get_signed_url.

        Returns:
            True if the signature matches and has not expired
        """
        if not self.signing_secret:
            return False
        try:
            expires_at = int(expires)
        except (TypeError, ValueError):
            return False
        if expires_at < int(time.time()):
            return False
        return hmac.compare_digest(self._signature(key, expires_at), signature or "")
