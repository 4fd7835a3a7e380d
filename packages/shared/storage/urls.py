"""
URL generation for stored objects.

The same key can be served three ways:
- PUBLIC: direct URL built from the provider's base URL
- SIGNED: presigned, time-limited URL (degrades to PUBLIC on failure)
- CDN: URL under the configured CDN base (PUBLIC when no CDN is set)

Supported providers are detected from the configured endpoint:
AWS S3, MinIO, Scaleway, Google Cloud Storage, Azure Blob, and a generic
S3-compatible fallback.
"""

import logging
from enum import Enum
from typing import Any
from urllib.parse import SplitResult, urlsplit, urlunsplit

from packages.shared.storage.resolver import StorageConfigurationResolver

logger = logging.getLogger(__name__)

DEFAULT_MINIO_ENDPOINT = "http://localhost:9000"
_LOOPBACK_HOSTS = ("localhost", "127.0.0.1")


class UrlType(str, Enum):
    """How a URL grants access to an object."""

    PUBLIC = "public"
    SIGNED = "signed"
    CDN = "cdn"


class Provider(str, Enum):
    """Object storage providers with distinct URL shapes."""

    AWS_S3 = "aws_s3"
    MINIO = "minio"
    SCALEWAY = "scaleway"
    GOOGLE_CLOUD = "google_cloud"
    AZURE_BLOB = "azure_blob"
    GENERIC = "generic"


def detect_provider(endpoint_url: str | None) -> Provider:
    """Infer the provider from an endpoint URL (None means AWS)."""
    if not endpoint_url or "amazonaws.com" in endpoint_url:
        return Provider.AWS_S3
    if "minio" in endpoint_url or any(host in endpoint_url for host in _LOOPBACK_HOSTS):
        return Provider.MINIO
    if "scw.cloud" in endpoint_url:
        return Provider.SCALEWAY
    if "googleapis.com" in endpoint_url:
        return Provider.GOOGLE_CLOUD
    if "blob.core.windows.net" in endpoint_url:
        return Provider.AZURE_BLOB
    return Provider.GENERIC


class StorageUrlGenerator:
    """
    Builds public, signed and CDN URLs for storage keys.

    Provider detection and per-(provider, bucket) base URLs are memoized on
    the instance; inputs never change after construction.
    """

    def __init__(self, resolver: StorageConfigurationResolver, client: Any = None):
        """
        Args:
            resolver: Configuration resolver for buckets, region and TTLs
            client: boto3 S3 client used for presigning (None disables signing)
        """
        self.resolver = resolver
        self.config = resolver.config
        self.client = client
        self._provider: Provider | None = None
        self._base_url_cache: dict[tuple[Provider, str], str] = {}
        logger.info(f"StorageUrlGenerator initialized for provider: {self.detect_provider().value}")

    def detect_provider(self) -> Provider:
        if self._provider is None:
            self._provider = detect_provider(self.config.endpoint_url)
        return self._provider

    def generate_url(
        self,
        key: str,
        url_type: UrlType | str,
        ttl_seconds: int | None = None,
    ) -> str:
        """
        Generate a URL for a key.

        Args:
            key: Storage key
            url_type: PUBLIC, SIGNED or CDN
            ttl_seconds: Lifetime of signed URLs (ignored otherwise)

        Returns:
            Absolute URL

        Raises:
            ValueError: If url_type is missing or unknown
        """
        if url_type is None:
            raise ValueError("url_type is required")
        url_type = UrlType(url_type)

        bucket = self.resolver.get_bucket_for_key(key)
        provider = self.detect_provider()
        logger.debug(f"Generating {url_type.value} URL for key: {key} with provider: {provider.value}")

        if url_type is UrlType.SIGNED:
            return self._generate_signed_url(bucket, key, provider, ttl_seconds)
        if url_type is UrlType.CDN:
            return self._generate_cdn_url(bucket, key, provider)
        return self._generate_public_url(bucket, key, provider)

    def clear_cache(self) -> None:
        self._base_url_cache.clear()
        self._provider = None
        logger.debug("StorageUrlGenerator cache cleared")

    # =========================================================================
    # URL types
    # =========================================================================

    def _generate_public_url(self, bucket: str, key: str, provider: Provider) -> str:
        return f"{self.get_base_url(provider, bucket)}/{key}"

    def _generate_signed_url(
        self,
        bucket: str,
        key: str,
        provider: Provider,
        ttl_seconds: int | None,
    ) -> str:
        if (
            provider is Provider.MINIO
            and self.resolver.is_public_access_enabled()
            and not self.resolver.is_production()
        ):
            logger.debug("Using direct URL for MinIO with public access")
            return self._generate_public_url(bucket, key, provider)

        try:
            if self.client is None:
                raise RuntimeError("no S3 client configured for presigning")
            url = self.client.generate_presigned_url(
                ClientMethod="get_object",
                Params={"Bucket": bucket, "Key": key},
                ExpiresIn=self.resolver.resolve_ttl(ttl_seconds),
            )
            return self._apply_provider_fixes(url, bucket, provider)
        except Exception as e:
            logger.error(f"Failed to generate signed URL for key: {key}, falling back to public URL: {e}")
            return self._generate_public_url(bucket, key, provider)

    def _generate_cdn_url(self, bucket: str, key: str, provider: Provider) -> str:
        if self.config.cdn_base_url:
            return f"{self.config.cdn_base_url}/{key}"
        logger.debug("No CDN configured, falling back to public URL")
        return self._generate_public_url(bucket, key, provider)

    # =========================================================================
    # Base URLs
    # =========================================================================

    def get_base_url(self, provider: Provider, bucket: str) -> str:
        cache_key = (provider, bucket)
        cached = self._base_url_cache.get(cache_key)
        if cached is not None:
            return cached

        if provider is Provider.AWS_S3:
            value = self._aws_base_url(bucket)
        elif provider is Provider.MINIO:
            value = f"{self._minio_external_endpoint()}/{bucket}"
        elif provider is Provider.SCALEWAY:
            value = f"https://{bucket}.s3.{self.resolver.region}.scw.cloud"
        elif provider is Provider.GOOGLE_CLOUD:
            value = f"https://storage.googleapis.com/{bucket}"
        elif provider is Provider.AZURE_BLOB:
            value = f"https://{self.config.azure_account_name}.blob.core.windows.net/{bucket}"
        else:
            value = self._generic_base_url(bucket)

        self._base_url_cache[cache_key] = value
        return value

    def _aws_base_url(self, bucket: str) -> str:
        region = self.resolver.region
        if self.config.path_style_access:
            return f"https://s3.{region}.amazonaws.com/{bucket}"
        return f"https://{bucket}.s3.{region}.amazonaws.com"

    def _minio_external_endpoint(self) -> str:
        return self.config.public_endpoint_url or self.config.endpoint_url or DEFAULT_MINIO_ENDPOINT

    def _generic_base_url(self, bucket: str) -> str:
        endpoint = self.config.endpoint_url or self.resolver.get_storage_base_url()
        if self.config.path_style_access:
            return f"{endpoint}/{bucket}"

        parts = urlsplit(endpoint)
        if not parts.scheme or not parts.hostname:
            logger.warning(f"Invalid endpoint URL, falling back to path-style: {endpoint}")
            return f"{endpoint}/{bucket}"
        port = f":{parts.port}" if parts.port else ""
        return f"{parts.scheme}://{bucket}.{parts.hostname}{port}"

    # =========================================================================
    # Provider fixes
    # =========================================================================

    def _apply_provider_fixes(self, url: str, bucket: str, provider: Provider) -> str:
        if provider is Provider.MINIO:
            return self._apply_minio_fixes(url, bucket)
        return url

    def _apply_minio_fixes(self, url: str, bucket: str) -> str:
        """
        Make a MinIO presigned URL reachable from outside the cluster.

        The host is replaced with the external endpoint (or localhost when
        none is configured) and the bucket segment is added to the path when
        the signer used virtual-hosted addressing. The query string, which
        carries the signature, is kept verbatim.
        """
        parts = urlsplit(url)
        scheme, netloc = parts.scheme, parts.netloc

        external = self._external_endpoint_parts()
        if external is not None:
            scheme, netloc = external.scheme, external.netloc
        elif parts.hostname not in _LOOPBACK_HOSTS:
            netloc = "localhost" + (f":{parts.port}" if parts.port else "")

        path = parts.path if parts.path.startswith("/") else f"/{parts.path}"
        if not path.startswith(f"/{bucket}/"):
            path = f"/{bucket}{path}"

        fixed = urlunsplit((scheme, netloc, path, parts.query, parts.fragment))
        if fixed != url:
            logger.debug(f"Rewrote MinIO presigned URL host/path for bucket {bucket}")
        return fixed

    def _external_endpoint_parts(self) -> SplitResult | None:
        if not self.config.public_endpoint_url:
            return None
        parts = urlsplit(self.config.public_endpoint_url)
        if not parts.scheme or not parts.netloc:
            logger.warning(f"Ignoring invalid public endpoint URL: {self.config.public_endpoint_url}")
            return None
        return parts
