"""
Pytest configuration and fixtures.

Provides reusable fixtures for storage testing:
- override_env: Point the app at a temporary local storage directory
- storage_config: StorageConfig with filesystem defaults under tmp_path
- local_storage: Initialized LocalFileStorage under tmp_path
- s3_client: MagicMock standing in for a boto3 S3 client
- app / client: FastAPI application and TestClient
"""

import os
from collections.abc import Generator
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from packages.shared.storage import LocalFileStorage, StorageConfig

FIXED_NOW = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# Environment Fixture
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def override_env(tmp_path_factory: pytest.TempPathFactory) -> Generator[None, None, None]:
    """
    Set test environment variables before any imports that read them.

    Scope: session (runs once for entire test session)
    Autouse: True (automatically used by all tests)
    """
    original_env = os.environ.copy()

    os.environ["ENVIRONMENT"] = "test"
    os.environ["STORAGE_TYPE"] = "filesystem"
    os.environ["STORAGE_LOCATION"] = str(tmp_path_factory.mktemp("app-uploads"))

    yield

    # Restore original environment
    os.environ.clear()
    os.environ.update(original_env)


# =============================================================================
# Storage Fixtures
# =============================================================================


@pytest.fixture
def fixed_clock():
    """Clock returning 2026-01-01 12:00:00 UTC."""
    return lambda: FIXED_NOW


@pytest.fixture
def storage_config(tmp_path: Path) -> StorageConfig:
    """Filesystem configuration rooted in a per-test directory."""
    return StorageConfig(
        storage_type="filesystem",
        environment="test",
        location=str(tmp_path / "uploads"),
        base_url="http://localhost:8080/api/files",
    )


@pytest.fixture
def local_storage(storage_config: StorageConfig) -> LocalFileStorage:
    """Initialized local storage under tmp_path."""
    storage = LocalFileStorage.from_config(storage_config)
    storage.init()
    return storage


@pytest.fixture
def s3_client() -> MagicMock:
    """Mock boto3 S3 client; every call succeeds unless a test says otherwise."""
    client = MagicMock()
    client.head_bucket.return_value = {}
    client.put_object.return_value = {}
    client.head_object.return_value = {}
    client.delete_object.return_value = {}
    client.list_objects_v2.return_value = {"IsTruncated": False}
    client.delete_objects.return_value = {}
    client.generate_presigned_url.return_value = (
        "https://app-assets.s3.amazonaws.com/k?X-Amz-Signature=abc"
    )
    return client


# =============================================================================
# App Fixtures
# =============================================================================


@pytest.fixture(scope="module")
def app() -> FastAPI:
    """
    Import and return the FastAPI application.

    Scope: module (one app instance per test module)
    """
    from apps.api.main import app as fastapi_app

    return fastapi_app


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """
    Create a TestClient for the FastAPI app.

    Scope: function (fresh client per test)
    Clears dependency_overrides before and after each test.
    """
    app.dependency_overrides.clear()

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
