"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from packages.shared.storage.config import FileCategory, StorageConfig, StorageType


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Autotrader Storage Gateway"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production", "test"] = "development"
    log_level: str = "INFO"

    # Backend selection: filesystem | cloud | cloud-with-fallback | noop
    storage_type: StorageType = "filesystem"

    # Local disk
    storage_location: str = "./uploads"
    storage_base_url: str = "http://localhost:8080/api/files"
    storage_local_signing_secret: str | None = None

    # Buckets
    storage_default_bucket: str = "app-assets"
    storage_bucket_names: dict[FileCategory, str] = Field(
        default_factory=dict,
        description="Per-category bucket overrides, JSON object",
    )

    # S3/MinIO
    storage_endpoint_url: str | None = None  # Set for MinIO, None for AWS S3
    storage_public_endpoint_url: str | None = None  # Externally reachable endpoint
    storage_region: str = "us-east-1"
    storage_access_key_id: str | None = None
    storage_secret_access_key: str | None = None
    storage_path_style_access: bool = False

    # URLs
    storage_public_access_enabled: bool = False
    storage_signed_url_ttl_seconds: int = 3600
    storage_cdn_base_url: str | None = None
    storage_azure_account_name: str = "defaultaccount"

    # Keys
    storage_key_templates: dict[FileCategory, str] = Field(
        default_factory=dict,
        description="Per-category key template overrides, JSON object",
    )

    def storage_config(self) -> StorageConfig:
        """Build the immutable storage configuration."""
        return StorageConfig(
            storage_type=self.storage_type,
            environment=self.environment,
            location=self.storage_location,
            base_url=self.storage_base_url,
            local_signing_secret=self.storage_local_signing_secret,
            default_bucket=self.storage_default_bucket,
            bucket_names=self.storage_bucket_names,
            endpoint_url=self.storage_endpoint_url,
            public_endpoint_url=self.storage_public_endpoint_url,
            region=self.storage_region,
            access_key_id=self.storage_access_key_id,
            secret_access_key=self.storage_secret_access_key,
            path_style_access=self.storage_path_style_access,
            public_access_enabled=self.storage_public_access_enabled,
            signed_url_ttl_seconds=self.storage_signed_url_ttl_seconds,
            cdn_base_url=self.storage_cdn_base_url,
            azure_account_name=self.storage_azure_account_name,
            key_templates=self.storage_key_templates,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
