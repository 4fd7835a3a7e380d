"""
Tests for backend selection and the no-op backend.
"""

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from apps.api.config import Settings
from packages.shared.exceptions import BackendUnavailable, ConfigurationError, EmptyContent, NotFound
from packages.shared.storage import (
    FailoverStorage,
    LocalFileStorage,
    NoOpStorage,
    S3FileStorage,
    StorageConfig,
    build_storage_backend,
    get_storage_backend_from_settings,
)


def make_config(tmp_path: Path, storage_type: str) -> StorageConfig:
    return StorageConfig(storage_type=storage_type, location=str(tmp_path / "uploads"))


class TestBuildStorageBackend:
    """Tests for build_storage_backend."""

    @pytest.mark.parametrize("storage_type", ["filesystem", "local"])
    def test_filesystem(self, tmp_path: Path, storage_type: str) -> None:
        backend = build_storage_backend(make_config(tmp_path, storage_type))

        assert isinstance(backend, LocalFileStorage)
        assert backend.base_path == tmp_path / "uploads"

    @pytest.mark.parametrize("storage_type", ["cloud", "s3"])
    def test_cloud(self, tmp_path: Path, s3_client: MagicMock, storage_type: str) -> None:
        backend = build_storage_backend(make_config(tmp_path, storage_type), s3_client=s3_client)

        assert isinstance(backend, S3FileStorage)
        assert backend.client is s3_client

    def test_cloud_with_fallback(self, tmp_path: Path, s3_client: MagicMock) -> None:
        backend = build_storage_backend(make_config(tmp_path, "cloud-with-fallback"), s3_client=s3_client)

        assert isinstance(backend, FailoverStorage)
        assert isinstance(backend.primary, S3FileStorage)
        assert isinstance(backend.fallback, LocalFileStorage)
        assert backend.backend_name == "s3+local"

    def test_noop(self, tmp_path: Path) -> None:
        assert isinstance(build_storage_backend(make_config(tmp_path, "noop")), NoOpStorage)

    def test_unknown_type(self, tmp_path: Path) -> None:
        config = make_config(tmp_path, "filesystem").model_copy(update={"storage_type": "ftp"})

        with pytest.raises(ConfigurationError):
            build_storage_backend(config)

    def test_initialize_creates_local_root(self, tmp_path: Path) -> None:
        build_storage_backend(make_config(tmp_path, "filesystem"), initialize=True)

        assert (tmp_path / "uploads").is_dir()

    def test_initialize_cloud_fails_fast(self, tmp_path: Path, s3_client: MagicMock) -> None:
        s3_client.head_bucket.side_effect = ClientError({"Error": {"Code": "404"}}, "HeadBucket")

        with pytest.raises(BackendUnavailable):
            build_storage_backend(make_config(tmp_path, "cloud"), s3_client=s3_client, initialize=True)

    def test_initialize_fallback_degrades(self, tmp_path: Path, s3_client: MagicMock) -> None:
        s3_client.head_bucket.side_effect = ClientError({"Error": {"Code": "404"}}, "HeadBucket")

        backend = build_storage_backend(
            make_config(tmp_path, "cloud-with-fallback"), s3_client=s3_client, initialize=True
        )

        assert isinstance(backend, FailoverStorage)
        assert (tmp_path / "uploads").is_dir()

    def test_from_settings(self, tmp_path: Path) -> None:
        settings = Settings(storage_type="noop", storage_location=str(tmp_path))

        assert isinstance(get_storage_backend_from_settings(settings), NoOpStorage)


class TestNoOpStorage:
    """NoOpStorage accepts writes and keeps nothing."""

    def test_store_returns_key(self) -> None:
        assert NoOpStorage().store(b"x", "a.txt") == "a.txt"

    def test_store_still_validates(self) -> None:
        with pytest.raises(EmptyContent):
            NoOpStorage().store(b"", "a.txt")

    def test_nothing_is_kept(self) -> None:
        storage = NoOpStorage()
        storage.store(b"x", "a.txt")

        assert storage.exists("a.txt") is False
        assert storage.list_all() == []
        with pytest.raises(NotFound):
            storage.load_as_handle("a.txt")

    def test_signed_url(self) -> None:
        assert NoOpStorage("http://noop/").get_signed_url("a.txt") == "http://noop/a.txt"
