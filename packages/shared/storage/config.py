"""
Immutable storage configuration.

StorageConfig is built once at process start (see apps.api.config) and
passed by construction into every storage component. Nothing in the
storage package reads configuration from ambient globals.
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class FileCategory(str, Enum):
    """Kinds of stored objects, each with its own key template and bucket."""

    LISTING_MEDIA = "listing-media"
    USER_AVATAR = "user-avatar"
    TEMP_UPLOAD = "temp-upload"
    SAMPLE_DATA = "sample-data"
    DOCUMENT = "document"
    THUMBNAIL = "thumbnail"
    BACKUP = "backup"
    LOG = "log"
    UNKNOWN = "unknown"


DEFAULT_KEY_TEMPLATES: dict[FileCategory, str] = {
    FileCategory.LISTING_MEDIA: "listings/{id}/{timestamp}_{filename}",
    FileCategory.USER_AVATAR: "users/{id}/avatar_{timestamp}_{filename}",
    FileCategory.TEMP_UPLOAD: "temp/{uuid}_{filename}",
    FileCategory.SAMPLE_DATA: "samples/{category}/{filename}",
    FileCategory.DOCUMENT: "documents/{category}/{timestamp}_{filename}",
    FileCategory.THUMBNAIL: "thumbnails/{originalPath}/{filename}",
    FileCategory.BACKUP: "backups/{date}/{category}/{filename}",
    FileCategory.LOG: "logs/{date}/{category}/{filename}",
}

StorageType = Literal["filesystem", "local", "cloud", "s3", "cloud-with-fallback", "noop"]

# S3 rejects DeleteObjects requests with more than 1000 keys
MAX_DELETE_BATCH_SIZE = 1000


class StorageConfig(BaseModel):
    """
    Storage settings shared by drivers, resolver and URL generator.

    Frozen: reconfiguration requires building a new instance (and in
    practice restarting the process).
    """

    model_config = ConfigDict(frozen=True)

    # Backend selection
    storage_type: StorageType = "filesystem"
    environment: Literal["development", "staging", "production", "test"] = "development"

    # Filesystem driver
    location: str = "./uploads"
    base_url: str = "http://localhost:8080/api/files"
    local_signing_secret: str | None = None

    # Buckets
    default_bucket: str = "app-assets"
    bucket_names: dict[FileCategory, str] = Field(default_factory=dict)

    # S3-compatible endpoint
    endpoint_url: str | None = None
    public_endpoint_url: str | None = None
    region: str = "us-east-1"
    access_key_id: str | None = None
    secret_access_key: str | None = None
    path_style_access: bool = False
    connect_timeout: float = Field(default=5.0, gt=0)
    read_timeout: float = Field(default=30.0, gt=0)

    # URLs
    public_access_enabled: bool = False
    signed_url_ttl_seconds: int = Field(default=3600, gt=0)
    cdn_base_url: str | None = None
    azure_account_name: str = "defaultaccount"

    # Keys
    key_templates: dict[FileCategory, str] = Field(default_factory=dict)

    delete_batch_size: int = Field(default=MAX_DELETE_BATCH_SIZE, ge=1, le=MAX_DELETE_BATCH_SIZE)

    @field_validator("base_url", "endpoint_url", "public_endpoint_url", "cdn_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip().rstrip("/")
        return value or None

    @field_validator("bucket_names", "key_templates")
    @classmethod
    def _no_unknown_category(cls, value: dict[FileCategory, str]) -> dict[FileCategory, str]:
        if FileCategory.UNKNOWN in value:
            raise ValueError("'unknown' cannot be configured explicitly")
        return value

    @model_validator(mode="after")
    def _require_base_url(self) -> "StorageConfig":
        if not self.base_url:
            raise ValueError("base_url must not be empty")
        return self

    def template_for(self, category: FileCategory) -> str:
        """Return the key template for a category, honoring overrides."""
        return self.key_templates.get(category) or DEFAULT_KEY_TEMPLATES[category]

    @property
    def templates(self) -> dict[FileCategory, str]:
        """All effective key templates, in category order."""
        return {category: self.template_for(category) for category in DEFAULT_KEY_TEMPLATES}
