"""Storage backend that keeps nothing, for test profiles."""

import logging
from pathlib import Path
from typing import BinaryIO

from packages.shared.exceptions import NotFound
from packages.shared.storage.base import Content, StorageBackend
from packages.shared.storage.keys import validate_key

logger = logging.getLogger(__name__)


class NoOpStorage(StorageBackend):
    """Accepts every write and discards it."""

    def __init__(self, base_url: str = "http://localhost/noop"):
        self.base_url = base_url.rstrip("/")

    @property
    def backend_name(self) -> str:
        return "noop"

    def init(self) -> None:
        logger.info("NoOpStorage initialized; stored content will be discarded")

    def store(
        self,
        content: Content,
        key: str,
        content_type: str | None = None,
    ) -> str:
        validate_key(key)
        self.read_content(content, key)
        return key

    def load_as_handle(self, key: str) -> BinaryIO:
        raise NotFound(key, self.backend_name)

    def load_as_local_path(self, key: str) -> Path:
        raise NotFound(key, self.backend_name)

    def list_all(self) -> list[str]:
        return []

    def exists(self, key: str) -> bool:
        return False

    def delete(self, key: str) -> bool:
        return True

    def delete_all(self) -> None:
        pass

    def get_signed_url(self, key: str, ttl_seconds: int | None = None) -> str:
        return f"{self.base_url}/{key}"
