"""
Tests for storage key generation and classification.
"""

import re

import pytest

from packages.shared.exceptions import InvalidKey
from packages.shared.storage import FileCategory, StorageConfig, StorageKeyGenerator
from packages.shared.storage.keys import sanitize_filename, template_prefix, validate_key

SAFE_COMPONENT = re.compile(r"^[a-zA-Z0-9._-]+$")


@pytest.fixture
def generator(storage_config: StorageConfig, fixed_clock) -> StorageKeyGenerator:
    return StorageKeyGenerator(storage_config, clock=fixed_clock)


# =============================================================================
# Sanitization
# =============================================================================


class TestSanitizeFilename:
    """Tests for sanitize_filename."""

    def test_replaces_spaces(self) -> None:
        assert sanitize_filename("My Car Photo.JPG") == "My_Car_Photo.JPG"

    @pytest.mark.parametrize("filename", [None, "", "   "])
    def test_empty_falls_back_to_file(self, filename) -> None:
        assert sanitize_filename(filename) == "file"

    def test_only_separators_falls_back_to_file(self) -> None:
        assert sanitize_filename("...___") == "file"

    def test_collapses_separator_runs(self) -> None:
        assert sanitize_filename("a  b__c--d") == "a_b_c-d"

    def test_strips_leading_and_trailing_separators(self) -> None:
        assert sanitize_filename("  _photo.png_ ") == "photo.png"

    @pytest.mark.parametrize(
        "filename",
        ["../../etc/passwd", "résumé (final).pdf", "a/b\\c:d*e?f", "x\x00y", "..", "日本語.txt"],
    )
    def test_output_is_always_safe(self, filename: str) -> None:
        result = sanitize_filename(filename)
        assert SAFE_COMPONENT.match(result)
        assert ".." not in result
        assert result


class TestValidateKey:
    """Tests for validate_key."""

    def test_accepts_nested_key(self) -> None:
        assert validate_key("listings/1/photo.jpg") == "listings/1/photo.jpg"

    @pytest.mark.parametrize(
        "key",
        [None, "", "  ", "../../etc/passwd", "a/../b", "/etc/passwd", "a\\b", "a\x00b"],
    )
    def test_rejects_bad_keys(self, key) -> None:
        with pytest.raises(InvalidKey):
            validate_key(key)


# =============================================================================
# Generation
# =============================================================================


class TestGenerateKey:
    """Tests for StorageKeyGenerator.generate_key."""

    def test_listing_media_example(self, generator: StorageKeyGenerator) -> None:
        key = generator.generate_key(FileCategory.LISTING_MEDIA, 123, "My Car Photo.JPG")

        assert key == "listings/123/20260101_120000_My_Car_Photo.JPG"

    def test_accepts_category_value(self, generator: StorageKeyGenerator) -> None:
        key = generator.generate_key("user-avatar", 7, "me.png")

        assert key == "users/7/avatar_20260101_120000_me.png"

    def test_temp_upload_uses_uuid(self, generator: StorageKeyGenerator) -> None:
        first = generator.generate_temp_upload_key("scan.pdf")
        second = generator.generate_temp_upload_key("scan.pdf")

        assert re.match(r"^temp/[0-9a-f-]{36}_scan\.pdf$", first)
        assert first != second

    def test_category_helpers(self, generator: StorageKeyGenerator) -> None:
        assert generator.generate_sample_data_key("cars", "a.csv") == "samples/cars/a.csv"
        assert (
            generator.generate_document_key("invoices", "inv 1.pdf")
            == "documents/invoices/20260101_120000_inv_1.pdf"
        )
        assert generator.generate_backup_key("db", "dump.sql") == "backups/2026-01-01/db/dump.sql"
        assert generator.generate_log_key("error", "app.log") == "logs/2026-01-01/error/app.log"
        assert generator.generate_user_avatar_key(5, "a.png").startswith("users/5/avatar_")
        assert generator.generate_listing_media_key(9, "b.png").startswith("listings/9/")

    def test_thumbnail_flattens_original_path(self, generator: StorageKeyGenerator) -> None:
        key = generator.generate_thumbnail_key("listings/1/photo.jpg", "small.jpg")

        assert key == "thumbnails/listings_1_photo.jpg/small.jpg"

    def test_entity_id_cannot_escape(self, generator: StorageKeyGenerator) -> None:
        key = generator.generate_key(FileCategory.LISTING_MEDIA, "../../etc", "passwd")

        assert ".." not in key
        assert key.startswith("listings/")

    @pytest.mark.parametrize(
        "category",
        [c for c in FileCategory if c is not FileCategory.UNKNOWN],
    )
    def test_every_category_starts_with_its_prefix(
        self, generator: StorageKeyGenerator, category: FileCategory
    ) -> None:
        key = generator.generate_key(category, "x y", "weird name?.txt")

        assert key.startswith(generator.template_prefix(category))
        assert ".." not in key
        assert generator.classify_key(key) is category

    def test_unknown_category_rejected(self, generator: StorageKeyGenerator) -> None:
        with pytest.raises(ValueError):
            generator.generate_key("not-a-category", 1, "a.txt")
        with pytest.raises(ValueError):
            generator.generate_key(FileCategory.UNKNOWN, 1, "a.txt")

    def test_custom_template_override(self, tmp_path, fixed_clock) -> None:
        config = StorageConfig(
            location=str(tmp_path),
            key_templates={FileCategory.LISTING_MEDIA: "media/{id}/{date}/{filename}"},
        )
        generator = StorageKeyGenerator(config, clock=fixed_clock)

        assert generator.generate_listing_media_key(1, "a.jpg") == "media/1/2026-01-01/a.jpg"

    def test_unresolved_placeholder_rejected(self, tmp_path, fixed_clock) -> None:
        config = StorageConfig(
            location=str(tmp_path),
            key_templates={FileCategory.DOCUMENT: "docs/{tenant}/{filename}"},
        )
        generator = StorageKeyGenerator(config, clock=fixed_clock)

        with pytest.raises(ValueError, match="tenant"):
            generator.generate_document_key("x", "a.pdf")

    def test_extra_placeholders(self, tmp_path, fixed_clock) -> None:
        config = StorageConfig(
            location=str(tmp_path),
            key_templates={FileCategory.DOCUMENT: "docs/{tenant}/{filename}"},
        )
        generator = StorageKeyGenerator(config, clock=fixed_clock)

        key = generator.generate_key(FileCategory.DOCUMENT, "x", "a.pdf", extra={"tenant": "acme corp"})

        assert key == "docs/acme_corp/a.pdf"

    def test_placeholder_syntax_is_not_evaluated(self, generator: StorageKeyGenerator) -> None:
        key = generator.generate_custom_key("custom/{name}", name="{0.__class__}")

        assert key == "custom/0._class"

    def test_custom_key(self, generator: StorageKeyGenerator) -> None:
        key = generator.generate_custom_key("custom/{type}/{id}_{name}", type="images", id=123, name="test.jpg")

        assert key == "custom/images/123_test.jpg"


# =============================================================================
# Inspection
# =============================================================================


class TestKeyInspection:
    """Tests for directory/filename extraction and classification."""

    def test_directory_and_filename(self) -> None:
        key = "listings/123/20260101_120000_photo.jpg"

        assert StorageKeyGenerator.get_directory_path(key) == "listings/123"
        assert StorageKeyGenerator.get_filename(key) == "20260101_120000_photo.jpg"

    def test_flat_key(self) -> None:
        assert StorageKeyGenerator.get_directory_path("photo.jpg") == ""
        assert StorageKeyGenerator.get_filename("photo.jpg") == "photo.jpg"
        assert StorageKeyGenerator.get_filename(None) is None

    def test_template_prefix(self) -> None:
        assert template_prefix("listings/{id}/{timestamp}_{filename}") == "listings/"
        assert template_prefix("users/{id}/avatar_{timestamp}_{filename}") == "users/"
        assert template_prefix("a/b/c") == "a/b/"
        assert template_prefix("{filename}") == ""

    def test_classify_unknown(self, generator: StorageKeyGenerator) -> None:
        assert generator.classify_key("random/thing.bin") is FileCategory.UNKNOWN
        assert generator.classify_key("") is FileCategory.UNKNOWN

    def test_longest_prefix_wins(self, tmp_path) -> None:
        config = StorageConfig(
            location=str(tmp_path),
            key_templates={
                FileCategory.DOCUMENT: "files/{category}/{filename}",
                FileCategory.BACKUP: "files/backups/{date}/{filename}",
            },
        )
        generator = StorageKeyGenerator(config)

        assert generator.classify_key("files/backups/2026-01-01/x.sql") is FileCategory.BACKUP
        assert generator.classify_key("files/other/x.pdf") is FileCategory.DOCUMENT

    def test_is_key_of_category(self, generator: StorageKeyGenerator) -> None:
        assert generator.is_key_of_category("listings/1/a.jpg", FileCategory.LISTING_MEDIA)
        assert not generator.is_key_of_category("users/1/a.jpg", FileCategory.LISTING_MEDIA)
        assert not generator.is_key_of_category(None, FileCategory.LISTING_MEDIA)
