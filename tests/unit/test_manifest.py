"""
Unit tests for audit entries, manifest loading and migration results.

These tests verify validation rules without touching external services.
File-based tests use pytest's tmp_path.
"""

import json

import pytest
from pydantic import ValidationError

from asset_pipeline.core.migration.manifest import (
    ManifestError,
    load_manifest,
    parse_manifest,
)
from asset_pipeline.core.migration.models import (
    AssetSource,
    MediaType,
    MigrateEntry,
    MigrationResult,
    MigrationStatus,
    PendingEntry,
    RejectedEntry,
    SkipEntry,
    audit_entry_adapter,
    media_type_for_context,
)


def migrate_item(url="https://images.unsplash.com/photo-1", **overrides):
    item = {
        "url": url,
        "source": "unsplash",
        "hotel": "delhi",
        "context": "hero",
        "migrationStatus": "migrate",
        "newPath": "hotels/delhi/hero/1.jpg",
    }
    item.update(overrides)
    return item


# ---------------------------------------------------------------------------
# Audit entries
# ---------------------------------------------------------------------------

class TestAuditEntry:
    """Tests for the status-tagged entry union."""

    def test_migrate_entry_from_manifest_keys(self):
        entry = audit_entry_adapter.validate_python(migrate_item())

        assert isinstance(entry, MigrateEntry)
        assert entry.owning_entity == "delhi"
        assert entry.target_path == "hotels/delhi/hero/1.jpg"
        assert entry.source is AssetSource.UNSPLASH

    def test_status_selects_the_variant(self):
        skip = audit_entry_adapter.validate_python({
            "url": "https://x.supabase.co/storage/v1/object/public/hotel-images/a.jpg",
            "migrationStatus": "skip",
        })
        pending = audit_entry_adapter.validate_python({
            "url": "https://example.com/a.jpg",
            "migrationStatus": "pending",
        })
        assert isinstance(skip, SkipEntry)
        assert isinstance(pending, PendingEntry)

    def test_migrate_requires_target_path(self):
        """A migrate entry without a destination cannot be constructed."""
        with pytest.raises(ValidationError):
            audit_entry_adapter.validate_python(migrate_item(newPath=None))

    def test_blank_target_path_is_rejected(self):
        with pytest.raises(ValidationError):
            audit_entry_adapter.validate_python(migrate_item(newPath="   "))

    def test_url_must_be_absolute(self):
        with pytest.raises(ValidationError):
            audit_entry_adapter.validate_python(migrate_item(url="/images/a.jpg"))

    def test_unknown_source_becomes_other(self):
        entry = audit_entry_adapter.validate_python(migrate_item(source="flickr"))
        assert entry.source is AssetSource.OTHER

    def test_to_dict_uses_manifest_keys(self):
        entry = audit_entry_adapter.validate_python(migrate_item())
        data = entry.to_dict()

        assert data["owningEntity"] == "delhi"
        assert data["targetPath"] == "hotels/delhi/hero/1.jpg"
        assert data["migrationStatus"] == "migrate"

    def test_entries_are_immutable(self):
        entry = audit_entry_adapter.validate_python(migrate_item())
        with pytest.raises(ValidationError):
            entry.url = "https://elsewhere/a.jpg"


class TestMediaTypeForContext:
    """Tests for placement classification."""

    @pytest.mark.parametrize("context,expected", [
        ("hero", MediaType.HERO),
        ("gallery", MediaType.GALLERY),
        ("rooms/deluxe", MediaType.ROOM),
        ("rooms", MediaType.ROOM),
        ("dining/terrace", MediaType.DINING),
        ("lobby", MediaType.GALLERY),
        ("", MediaType.GALLERY),
    ])
    def test_classification(self, context, expected):
        assert media_type_for_context(context) is expected


# ---------------------------------------------------------------------------
# Manifest
# ---------------------------------------------------------------------------

class TestParseManifest:
    """Tests for manifest validation."""

    def test_invalid_items_are_kept_as_rejected(self):
        manifest = parse_manifest([
            migrate_item(),
            migrate_item(newPath=None),
            {"url": "https://example.com/a.jpg", "migrationStatus": "skip"},
        ])

        assert len(manifest) == 3
        rejected = manifest.items[1]
        assert isinstance(rejected, RejectedEntry)
        assert rejected.position == 1
        assert rejected.migration_status == "migrate"

    def test_groups_by_status_in_order(self):
        manifest = parse_manifest([
            {"url": "https://example.com/s1.jpg", "migrationStatus": "skip"},
            migrate_item(url="https://example.com/m1.jpg"),
            {"url": "https://example.com/p1.jpg", "migrationStatus": "pending"},
            migrate_item(url="https://example.com/m2.jpg"),
        ])

        assert [i.url for i in manifest.migrate_items] == [
            "https://example.com/m1.jpg",
            "https://example.com/m2.jpg",
        ]
        assert [i.url for i in manifest.skip_items] == ["https://example.com/s1.jpg"]
        assert [i.url for i in manifest.with_status(MigrationStatus.PENDING)] == [
            "https://example.com/p1.jpg",
        ]

    def test_unknown_status_is_in_no_group(self):
        manifest = parse_manifest([{"url": "https://example.com/a.jpg", "migrationStatus": "later"}])

        assert manifest.migrate_items == []
        assert manifest.skip_items == []
        assert len(manifest.rejected_items) == 1

    def test_non_list_is_an_error(self):
        with pytest.raises(ManifestError, match="JSON array"):
            parse_manifest({"entries": []})

    def test_non_object_item_is_an_error(self):
        with pytest.raises(ManifestError, match="must be an object"):
            parse_manifest(["https://example.com/a.jpg"])


class TestLoadManifest:
    """Tests for reading manifest files."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(ManifestError, match="not found"):
            load_manifest(tmp_path / "image-audit.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "image-audit.json"
        path.write_text("[{", encoding="utf-8")

        with pytest.raises(ManifestError, match="not valid JSON"):
            load_manifest(path)

    def test_loads_entries(self, tmp_path):
        path = tmp_path / "image-audit.json"
        path.write_text(json.dumps([migrate_item()]), encoding="utf-8")

        manifest = load_manifest(path)

        assert len(manifest.migrate_items) == 1
        assert manifest.source_path == str(path)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class TestMigrationResult:
    """Tests for result invariants."""

    @pytest.fixture
    def entry(self):
        return audit_entry_adapter.validate_python(migrate_item())

    def test_success_carries_new_url(self, entry):
        result = MigrationResult.succeeded(entry, new_url="https://new/a.jpg", storage_record_id="m1")
        assert result.to_dict()["newUrl"] == "https://new/a.jpg"
        assert result.to_dict()["storageRecordId"] == "m1"
        assert "error" not in result.to_dict()

    def test_failure_carries_error_only(self, entry):
        result = MigrationResult.failed(entry, "Failed to download image: 404 Not Found")
        data = result.to_dict()

        assert data["success"] is False
        assert data["error"] == "Failed to download image: 404 Not Found"
        assert "newUrl" not in data

    def test_empty_error_becomes_unknown(self, entry):
        assert MigrationResult.failed(entry, "").error == "Unknown error"

    def test_success_without_url_is_invalid(self, entry):
        with pytest.raises(ValueError, match="must carry new_url"):
            MigrationResult(original=entry, success=True)

    def test_failure_with_url_is_invalid(self, entry):
        with pytest.raises(ValueError, match="cannot carry new_url"):
            MigrationResult(original=entry, success=False, error="boom", new_url="https://new/a.jpg")

    def test_original_is_echoed(self, entry):
        result = MigrationResult.failed(entry, "boom")
        assert result.to_dict()["original"]["url"] == entry.url
        assert result.original_url == entry.url
