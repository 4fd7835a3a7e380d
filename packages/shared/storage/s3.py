"""S3-compatible object storage backend (AWS S3, MinIO, Scaleway, ...)."""

import logging
from pathlib import Path
from typing import Any, BinaryIO

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from packages.shared.exceptions import (
    BackendUnavailable,
    NotFound,
    StorageError,
    UnsupportedOperation,
)
from packages.shared.storage.base import Content, StorageBackend
from packages.shared.storage.config import StorageConfig
from packages.shared.storage.keys import validate_key
from packages.shared.storage.resolver import StorageConfigurationResolver
from packages.shared.storage.urls import StorageUrlGenerator, UrlType

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


def _get_client_kwargs(config: StorageConfig) -> dict:
    """Build kwargs for the boto3 S3 client."""
    kwargs: dict[str, Any] = {
        "region_name": config.region,
        "config": BotoConfig(
            signature_version="s3v4",
            connect_timeout=config.connect_timeout,
            read_timeout=config.read_timeout,
            s3={"addressing_style": "path" if config.path_style_access else "auto"},
        ),
    }
    if config.endpoint_url:
        kwargs["endpoint_url"] = config.endpoint_url
    if config.access_key_id and config.secret_access_key:
        kwargs["aws_access_key_id"] = config.access_key_id
        kwargs["aws_secret_access_key"] = config.secret_access_key
    return kwargs


def create_s3_client(config: StorageConfig) -> Any:
    """Create a boto3 S3 client from storage configuration."""
    return boto3.client("s3", **_get_client_kwargs(config))


class S3FileStorage(StorageBackend):
    """
    S3-compatible storage backend.

    Buckets are routed per key category through the configuration resolver;
    signed URLs come from the URL generator. botocore exceptions are
    translated before leaving this class.
    """

    def __init__(
        self,
        resolver: StorageConfigurationResolver,
        client: Any = None,
        url_generator: StorageUrlGenerator | None = None,
    ):
        """
        Initialize S3 file storage.

        Args:
            resolver: Configuration resolver (buckets, region, TTLs)
            client: boto3 S3 client; created from the config when omitted
            url_generator: URL generator; created around the same client when omitted
        """
        self.resolver = resolver
        self.config = resolver.config
        self.client = client if client is not None else create_s3_client(self.config)
        self.url_generator = url_generator or StorageUrlGenerator(resolver, self.client)
        logger.info(
            f"Configured S3FileStorage. Bucket: {self.bucket}, "
            f"Endpoint: {self.config.endpoint_url or 'AWS'}, "
            f"Expiration: {self.config.signed_url_ttl_seconds}s"
        )

    @classmethod
    def from_config(cls, config: StorageConfig, client: Any = None) -> "S3FileStorage":
        return cls(StorageConfigurationResolver(config), client=client)

    @property
    def backend_name(self) -> str:
        return "s3"

    @property
    def bucket(self) -> str:
        return self.resolver.default_bucket_name

    def init(self) -> None:
        """
        Verify the default bucket exists and is reachable.

        Raises:
            BackendUnavailable: If the bucket is missing or inaccessible
        """
        try:
            self.client.head_bucket(Bucket=self.bucket)
        except ClientError as e:
            code = _error_code(e)
            if code in _NOT_FOUND_CODES or code == "NoSuchBucket":
                logger.error(f"S3 bucket '{self.bucket}' does not exist! Please create it.")
                raise BackendUnavailable(self.backend_name, f"bucket not found: {self.bucket}") from e
            logger.error(f"Error accessing S3 bucket '{self.bucket}': {e}")
            raise BackendUnavailable(self.backend_name, f"could not verify bucket access ({code})") from e
        except BotoCoreError as e:
            logger.error(f"Could not reach S3 endpoint for bucket '{self.bucket}': {e}")
            raise BackendUnavailable(self.backend_name, str(e)) from e
        logger.info(f"S3 bucket '{self.bucket}' exists and is accessible.")

    def store(
        self,
        content: Content,
        key: str,
        content_type: str | None = None,
    ) -> str:
        """
        Upload bytes to the bucket routed for the key's category.

        Returns:
            The key
        """
        validate_key(key)
        data = self.read_content(content, key)
        bucket = self.resolver.get_bucket_for_key(key)

        params: dict[str, Any] = {"Bucket": bucket, "Key": key, "Body": data}
        if content_type:
            params["ContentType"] = content_type
        try:
            self.client.put_object(**params)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to store {key} in bucket {bucket}: {e}")
            raise StorageError(f"Failed to store file: {key}") from e

        logger.info(f"Stored s3://{bucket}/{key} ({len(data)} bytes)")
        return key

    def load_as_handle(self, key: str) -> BinaryIO:
        """
        Open an object for streaming reads.

        Returns:
            The response body stream; bytes are read on demand
        """
        validate_key(key)
        bucket = self.resolver.get_bucket_for_key(key)
        try:
            response = self.client.get_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                raise NotFound(key, self.backend_name) from e
            raise StorageError(f"Could not read file: {key}") from e
        except BotoCoreError as e:
            raise StorageError(f"Could not read file: {key}") from e
        return response["Body"]

    def load_as_local_path(self, key: str) -> Path:
        raise UnsupportedOperation("load_as_local_path", self.backend_name)

    def list_all(self) -> list[str]:
        logger.warning("list_all is not implemented for S3. Returning empty list.")
        return []

    def exists(self, key: str) -> bool:
        validate_key(key)
        bucket = self.resolver.get_bucket_for_key(key)
        try:
            self.client.head_object(Bucket=bucket, Key=key)
            return True
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                return False
            raise StorageError(f"Could not check file: {key}") from e
        except BotoCoreError as e:
            raise StorageError(f"Could not check file: {key}") from e

    def delete(self, key: str) -> bool:
        """
        Delete an object.

        S3 reports success for absent keys, so existence is checked first.

        Returns:
            True if deleted, False if not found

        Raises:
            StorageError: If the existence check or the delete fails
        """
        validate_key(key)
        bucket = self.resolver.get_bucket_for_key(key)
        try:
            self.client.head_object(Bucket=bucket, Key=key)
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                logger.debug(f"Attempted to delete non-existent object: s3://{bucket}/{key}")
                return False
            logger.error(f"Failed to check s3://{bucket}/{key} before delete: {e}")
            raise StorageError(f"Could not delete file: {key}") from e
        except BotoCoreError as e:
            logger.error(f"Failed to check s3://{bucket}/{key} before delete: {e}")
            raise StorageError(f"Could not delete file: {key}") from e

        try:
            self.client.delete_object(Bucket=bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to delete file: s3://{bucket}/{key}: {e}")
            raise StorageError(f"Could not delete file: {key}") from e
        logger.info(f"Deleted s3://{bucket}/{key}")
        return True

    def delete_all(self) -> None:
        """
        Empty every configured bucket.

        Listings are paginated with continuation tokens and deletes are sent
        in batches no larger than delete_batch_size.
        """
        for bucket in self.resolver.bucket_names_in_use():
            try:
                deleted = self._empty_bucket(bucket)
            except (ClientError, BotoCoreError) as e:
                raise StorageError(f"Could not delete all files from bucket {bucket}") from e
            logger.warning(f"Deleted {deleted} objects from bucket {bucket}")

    def _empty_bucket(self, bucket: str) -> int:
        batch_size = self.config.delete_batch_size
        deleted = 0
        params: dict[str, Any] = {"Bucket": bucket}

        while True:
            response = self.client.list_objects_v2(**params)
            keys = [obj["Key"] for obj in response.get("Contents", [])]

            for start in range(0, len(keys), batch_size):
                batch = keys[start : start + batch_size]
                result = self.client.delete_objects(
                    Bucket=bucket,
                    Delete={"Objects": [{"Key": k} for k in batch], "Quiet": True},
                )
                errors = result.get("Errors", []) if result else []
                for error in errors:
                    logger.warning(f"Could not delete s3://{bucket}/{error.get('Key')}: {error.get('Message')}")
                deleted += len(batch) - len(errors)

            token = response.get("NextContinuationToken")
            if not response.get("IsTruncated") or not token:
                break
            params["ContinuationToken"] = token

        return deleted

    def get_signed_url(self, key: str, ttl_seconds: int | None = None) -> str:
        validate_key(key)
        return self.url_generator.generate_url(key, UrlType.SIGNED, ttl_seconds)

    def generate_url(self, key: str, url_type: UrlType | str = UrlType.PUBLIC, ttl_seconds: int | None = None) -> str:
        """Any URL type for a key (public, signed or CDN)."""
        return self.url_generator.generate_url(key, url_type, ttl_seconds)
