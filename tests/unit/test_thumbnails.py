"""
Unit tests for the thumbnail fallback cascade.

The cascade is a plain value, so the exhausted state is reached here by
calling on_load_error directly, with no rendering involved.
"""

import base64

import pytest

from asset_pipeline.core.thumbnails import (
    THUMBNAIL_TIERS,
    CascadeStatus,
    ThumbnailCascade,
    extract_video_id,
    placeholder_image,
    resolve_thumbnail,
    thumbnail_url,
)


VIDEO_ID = "dQw4w9WgXcQ"


class FakeProbe:
    def __init__(self, loadable=(), error=None):
        self.loadable = set(loadable)
        self.error = error
        self.calls = []

    async def exists(self, url):
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return url in self.loadable


# ---------------------------------------------------------------------------
# Video ID extraction
# ---------------------------------------------------------------------------

class TestExtractVideoId:
    """Tests for recognising provider URLs."""

    @pytest.mark.parametrize("url", [
        f"https://www.youtube.com/watch?v={VIDEO_ID}",
        f"https://www.youtube.com/watch?feature=share&v={VIDEO_ID}",
        f"https://youtu.be/{VIDEO_ID}",
        f"https://youtu.be/{VIDEO_ID}?t=42",
        f"https://www.youtube.com/embed/{VIDEO_ID}",
        f"https://www.youtube.com/shorts/{VIDEO_ID}",
        VIDEO_ID,
    ])
    def test_recognised_forms(self, url):
        assert extract_video_id(url) == VIDEO_ID

    @pytest.mark.parametrize("url", [
        "",
        None,
        "https://vimeo.com/12345",
        "not a url",
    ])
    def test_unrecognised_input_gives_none(self, url):
        assert extract_video_id(url) is None


# ---------------------------------------------------------------------------
# Cascade state machine
# ---------------------------------------------------------------------------

class TestThumbnailCascade:
    """Tests for the cascade transitions."""

    def test_starts_at_highest_tier(self):
        state = ThumbnailCascade.start(VIDEO_ID)
        assert state.status is CascadeStatus.ATTEMPTING
        assert state.tier == "maxresdefault"
        assert state.current_url == thumbnail_url(VIDEO_ID, "maxresdefault")

    def test_exhausted_after_exactly_five_failures(self):
        """Four failures still attempt a tier, the fifth exhausts."""
        state = ThumbnailCascade.start(VIDEO_ID)

        for _ in range(len(THUMBNAIL_TIERS) - 1):
            state = state.on_load_error()
            assert not state.is_exhausted

        state = state.on_load_error()
        assert state.is_exhausted
        assert state.current_url is None
        assert state.tier is None

    def test_no_tier_is_attempted_twice(self):
        state = ThumbnailCascade.start(VIDEO_ID)
        seen = []
        while not state.is_exhausted:
            seen.append(state.tier)
            state = state.on_load_error()

        assert seen == list(THUMBNAIL_TIERS)

    def test_exhausted_is_terminal(self):
        state = ThumbnailCascade.start(VIDEO_ID)
        for _ in range(10):
            state = state.on_load_error()

        assert state.is_exhausted
        assert state.on_load_error() == state

    def test_malformed_url_is_exhausted_immediately(self):
        state = ThumbnailCascade.start("https://example.com/not-a-video")
        assert state.is_exhausted
        assert state.current_url is None

    def test_transitions_return_new_values(self):
        """The cascade is immutable; each failure yields a new state."""
        first = ThumbnailCascade.start(VIDEO_ID)
        second = first.on_load_error()
        assert first.tier == "maxresdefault"
        assert second.tier == "sddefault"


# ---------------------------------------------------------------------------
# Placeholder and resolution
# ---------------------------------------------------------------------------

class TestPlaceholder:
    """Tests for the branded placeholder."""

    def test_is_svg_data_uri(self):
        assert placeholder_image("Lobby tour").startswith("data:image/svg+xml;base64,")

    def test_title_is_escaped(self):
        encoded = placeholder_image("<script>").split(",", 1)[1]
        svg = base64.b64decode(encoded).decode("utf-8")
        assert "&lt;script&gt;" in svg
        assert "<script>" not in svg


class TestResolveThumbnail:
    """Tests for driving the cascade with a probe."""

    @pytest.mark.asyncio
    async def test_returns_first_loadable_tier(self):
        hq = thumbnail_url(VIDEO_ID, "hqdefault")
        probe = FakeProbe(loadable=[hq, thumbnail_url(VIDEO_ID, "default")])

        resolution = await resolve_thumbnail(f"https://youtu.be/{VIDEO_ID}", probe)

        assert resolution.src == hq
        assert not resolution.is_placeholder
        assert probe.calls == [
            thumbnail_url(VIDEO_ID, "maxresdefault"),
            thumbnail_url(VIDEO_ID, "sddefault"),
            hq,
        ]

    @pytest.mark.asyncio
    async def test_placeholder_when_nothing_loads(self):
        probe = FakeProbe()
        resolution = await resolve_thumbnail(VIDEO_ID, probe, title="Spa")

        assert resolution.is_placeholder
        assert resolution.src.startswith("data:image/svg+xml;base64,")
        assert len(resolution.attempted_urls) == len(THUMBNAIL_TIERS)

    @pytest.mark.asyncio
    async def test_probe_errors_count_as_failures(self):
        probe = FakeProbe(error=ConnectionError("offline"))
        resolution = await resolve_thumbnail(VIDEO_ID, probe)

        assert resolution.is_placeholder
        assert len(probe.calls) == len(THUMBNAIL_TIERS)

    @pytest.mark.asyncio
    async def test_malformed_url_never_probes(self):
        probe = FakeProbe()
        resolution = await resolve_thumbnail("garbage", probe)

        assert resolution.is_placeholder
        assert probe.calls == []
