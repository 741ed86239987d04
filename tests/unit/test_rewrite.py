"""
Unit tests for the URL rewrite map.
"""

import json
import logging

import pytest

from asset_pipeline.core.migration.models import MigrationResult, audit_entry_adapter
from asset_pipeline.core.migration.rewrite import UrlRewriter, build_url_mapping


def entry(url):
    return audit_entry_adapter.validate_python({
        "url": url,
        "migrationStatus": "migrate",
        "targetPath": "hotels/x/gallery/1.jpg",
    })


class TestBuildUrlMapping:
    def test_only_successes_are_mapped(self):
        results = [
            MigrationResult.succeeded(entry("https://a/1"), new_url="https://new/1"),
            MigrationResult.failed(entry("https://a/2"), "boom"),
        ]
        assert build_url_mapping(results) == {"https://a/1": "https://new/1"}

    def test_last_result_wins_for_repeated_sources(self):
        results = [
            MigrationResult.succeeded(entry("https://a/1"), new_url="https://new/first"),
            MigrationResult.succeeded(entry("https://a/1"), new_url="https://new/second"),
        ]
        assert build_url_mapping(results) == {"https://a/1": "https://new/second"}


class TestUrlRewriter:
    """Tests for applying a rewrite map."""

    @pytest.fixture
    def rewriter(self):
        return UrlRewriter({
            "https://images.unsplash.com/photo-1": "https://new/hotels/delhi/hero/1.jpg",
            "https://images.unsplash.com/photo-10": "https://new/hotels/delhi/gallery/2.jpg",
        })

    def test_rewrites_known_urls(self, rewriter):
        assert rewriter.rewrite("https://images.unsplash.com/photo-1") == "https://new/hotels/delhi/hero/1.jpg"
        assert rewriter.is_migrated("https://images.unsplash.com/photo-1")

    def test_unknown_urls_pass_through(self, rewriter):
        assert rewriter.rewrite("https://elsewhere/a.jpg") == "https://elsewhere/a.jpg"
        assert rewriter.rewrite_many(["https://elsewhere/a.jpg"]) == ["https://elsewhere/a.jpg"]

    def test_text_rewrite_prefers_longest_match(self, rewriter):
        """photo-10 must not be rewritten as photo-1 followed by a stray 0."""
        text = 'hero: "https://images.unsplash.com/photo-1", gallery: "https://images.unsplash.com/photo-10"'

        assert rewriter.rewrite_text(text) == (
            'hero: "https://new/hotels/delhi/hero/1.jpg", gallery: "https://new/hotels/delhi/gallery/2.jpg"'
        )

    def test_empty_mapping_leaves_text_alone(self):
        assert UrlRewriter({}).rewrite_text("anything") == "anything"


class TestFromFile:
    def test_missing_mapping_means_no_rewrites(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING):
            rewriter = UrlRewriter.from_file(tmp_path / "image-url-mapping.json")

        assert len(rewriter) == 0
        assert "not available yet" in caplog.text

    def test_loads_mapping_artifact(self, tmp_path):
        path = tmp_path / "image-url-mapping.json"
        path.write_text(json.dumps({"https://a/1": "https://new/1"}), encoding="utf-8")

        assert UrlRewriter.from_file(path).mapping == {"https://a/1": "https://new/1"}

    def test_mapping_must_be_an_object(self, tmp_path):
        path = tmp_path / "image-url-mapping.json"
        path.write_text("[]", encoding="utf-8")

        with pytest.raises(ValueError, match="JSON object"):
            UrlRewriter.from_file(path)
