"""
Storage key generation.

Turns (category, entity id, filename) into a deterministic, collision-resistant
key using the per-category templates from StorageConfig, and classifies
existing keys back into categories by template prefix.

Usage:
    generator = StorageKeyGenerator(config)
    key = generator.generate_key(FileCategory.LISTING_MEDIA, 123, "My Car Photo.JPG")
    # listings/123/20260101_120000_My_Car_Photo.JPG
"""

import logging
import re
import uuid
from collections.abc import Callable, Mapping
from datetime import datetime, timezone

from packages.shared.exceptions import InvalidKey
from packages.shared.storage.config import FileCategory, StorageConfig

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
DATE_FORMAT = "%Y-%m-%d"
FALLBACK_FILENAME = "file"

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9._-]")
_SEPARATOR_RUNS = re.compile(r"([._-])\1+")
_PLACEHOLDER = re.compile(r"\{[A-Za-z]+\}")

# Placeholders filled from the caller-supplied entity identifier
_SUBJECT_PLACEHOLDERS = ("id", "category", "originalPath")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def sanitize_filename(filename: str | None) -> str:
    """
    Make a single path component safe for use in a storage key.

    Characters outside [a-zA-Z0-9._-] become '_', runs of the same
    separator collapse to one, and separators are trimmed from both ends.

    Args:
        filename: Original filename (or any identifier)

    Returns:
        Sanitized component, never empty and never containing '..'
    """
    if filename is None or not str(filename).strip():
        return FALLBACK_FILENAME

    safe = _UNSAFE_CHARS.sub("_", str(filename).strip())
    safe = _SEPARATOR_RUNS.sub(r"\1", safe)
    safe = safe.strip("._-")
    return safe or FALLBACK_FILENAME


def validate_key(key: str | None) -> str:
    """
    Reject keys that are empty, absolute, or contain traversal segments.

    Raises:
        InvalidKey: If the key is unusable
    """
    if key is None or not key.strip():
        raise InvalidKey(key, "key is empty")
    if "\x00" in key or "\\" in key:
        raise InvalidKey(key, "key contains forbidden characters")
    if key.startswith("/"):
        raise InvalidKey(key, "absolute keys are not allowed")
    if any(segment == ".." for segment in key.split("/")):
        raise InvalidKey(key, "path traversal segments are not allowed")
    return key


def template_prefix(template: str) -> str:
    """
    Static directory prefix of a template, up to and including the last '/'
    before the first placeholder.

    'listings/{id}/{timestamp}_{filename}' -> 'listings/'
    """
    head = template.split("{", 1)[0]
    cut = head.rfind("/")
    return head[: cut + 1] if cut >= 0 else ""


class StorageKeyGenerator:
    """Builds and inspects storage keys from configurable templates."""

    def __init__(
        self,
        config: StorageConfig,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Args:
            config: Storage configuration holding the key templates
            clock: Returns the current time; defaults to UTC now
        """
        self.config = config
        self._clock = clock or _utcnow

    # =========================================================================
    # Generation
    # =========================================================================

    def generate_key(
        self,
        category: FileCategory | str,
        entity_id: object,
        filename: str | None,
        extra: Mapping[str, object] | None = None,
    ) -> str:
        """
        Generate a storage key for a category.

        Args:
            category: File category (enum member or its value)
            entity_id: Identifier filling {id}, {category} and {originalPath}
            filename: Original filename, sanitized into {filename}
            extra: Additional placeholder values (sanitized), overriding defaults

        Returns:
            Storage key

        Raises:
            ValueError: If the category is unknown or the template has
                placeholders nothing can fill
        """
        resolved = self._resolve_category(category)
        template = self.config.template_for(resolved)
        now = self._clock()

        subject = sanitize_filename(None if entity_id is None else str(entity_id))
        values: dict[str, str] = {name: subject for name in _SUBJECT_PLACEHOLDERS}
        values.update(
            timestamp=now.strftime(TIMESTAMP_FORMAT),
            date=now.strftime(DATE_FORMAT),
            uuid=str(uuid.uuid4()),
            filename=sanitize_filename(filename),
        )
        for name, value in (extra or {}).items():
            values[name] = sanitize_filename(None if value is None else str(value))

        key = self._substitute(template, values)
        unresolved = _PLACEHOLDER.findall(key)
        if unresolved:
            raise ValueError(
                f"Template for {resolved.value} has unresolved placeholders: {', '.join(unresolved)}"
            )

        validate_key(key)
        logger.debug(f"Generated {resolved.value} key: {key} (id={entity_id}, filename={filename})")
        return key

    def generate_listing_media_key(self, listing_id: object, filename: str | None) -> str:
        return self.generate_key(FileCategory.LISTING_MEDIA, listing_id, filename)

    def generate_user_avatar_key(self, user_id: object, filename: str | None) -> str:
        return self.generate_key(FileCategory.USER_AVATAR, user_id, filename)

    def generate_temp_upload_key(self, filename: str | None) -> str:
        return self.generate_key(FileCategory.TEMP_UPLOAD, None, filename)

    def generate_sample_data_key(self, sample_category: str, filename: str | None) -> str:
        return self.generate_key(FileCategory.SAMPLE_DATA, sample_category, filename)

    def generate_document_key(self, document_category: str, filename: str | None) -> str:
        return self.generate_key(FileCategory.DOCUMENT, document_category, filename)

    def generate_thumbnail_key(self, original_path: str, filename: str | None) -> str:
        return self.generate_key(FileCategory.THUMBNAIL, original_path, filename)

    def generate_backup_key(self, backup_category: str, filename: str | None) -> str:
        return self.generate_key(FileCategory.BACKUP, backup_category, filename)

    def generate_log_key(self, level: str, filename: str | None) -> str:
        return self.generate_key(FileCategory.LOG, level, filename)

    def generate_custom_key(self, template: str, **replacements: object) -> str:
        """
        Fill an ad-hoc template. Every replacement value is sanitized.

        Example:
            generate_custom_key("custom/{type}/{id}_{name}", type="images", id=123, name="test.jpg")
            # custom/images/123_test.jpg
        """
        values = {
            name: sanitize_filename(None if value is None else str(value))
            for name, value in replacements.items()
        }
        key = self._substitute(template, values)
        validate_key(key)
        logger.debug(f"Generated custom key: {key} from template: {template}")
        return key

    # =========================================================================
    # Inspection
    # =========================================================================

    @staticmethod
    def get_directory_path(key: str | None) -> str:
        """Directory part of a key ('' when the key has no '/')."""
        if not key or "/" not in key:
            return ""
        return key.rsplit("/", 1)[0]

    @staticmethod
    def get_filename(key: str | None) -> str | None:
        """Last path component of a key."""
        if not key or "/" not in key:
            return key
        return key.rsplit("/", 1)[1]

    def template_prefix(self, category: FileCategory | str) -> str:
        return template_prefix(self.config.template_for(self._resolve_category(category)))

    def is_key_of_category(self, key: str | None, category: FileCategory | str) -> bool:
        prefix = self.template_prefix(category)
        return bool(key) and bool(prefix) and key.startswith(prefix)

    def classify_key(self, key: str | None) -> FileCategory:
        """
        Guess the category of an existing key from its prefix.

        The longest matching template prefix wins, so overlapping custom
        templates resolve to the most specific category.
        """
        if not key:
            return FileCategory.UNKNOWN

        best = FileCategory.UNKNOWN
        best_length = 0
        for category, template in self.config.templates.items():
            prefix = template_prefix(template)
            if prefix and key.startswith(prefix) and len(prefix) > best_length:
                best, best_length = category, len(prefix)
        return best

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _resolve_category(category: FileCategory | str) -> FileCategory:
        try:
            resolved = FileCategory(category)
        except ValueError:
            raise ValueError(f"Unknown file category: {category}") from None
        if resolved is FileCategory.UNKNOWN:
            raise ValueError("Cannot generate keys for the 'unknown' category")
        return resolved

    @staticmethod
    def _substitute(template: str, values: Mapping[str, str]) -> str:
        # Literal replacement only; str.format would evaluate attribute lookups
        key = template
        for name, value in values.items():
            key = key.replace("{" + name + "}", value)
        return key
