"""
Thumbnail fallback cascade for externally hosted videos.

The video provider serves stills at several quality tiers, but not every
tier exists for every video. Display code starts at the best tier and steps
down one tier per load failure until an image loads or the tiers run out,
at which point a branded placeholder is shown instead of a broken image.

The cascade is a plain immutable value (status + tier index) so the
exhausted state can be reached and tested without any rendering framework.
"""

import base64
import html
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .storage_urls import UrlProbe

logger = logging.getLogger(__name__)

THUMBNAIL_HOST = "https://img.youtube.com/vi"

# Highest quality first. Order is the cascade order.
THUMBNAIL_TIERS: tuple[str, ...] = (
    "maxresdefault",
    "sddefault",
    "hqdefault",
    "mqdefault",
    "default",
)

BRAND_GOLD = "#CD9F59"

_VIDEO_ID_PATTERN = re.compile(
    r"(?:youtu\.be/|youtube\.com/(?:watch\?(?:[^#]*&)?v=|embed/|shorts/))([^&\n?#/]+)"
)
_BARE_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{11}$")


class CascadeStatus(Enum):
    """Where a displayed thumbnail is in its cascade."""
    ATTEMPTING = "attempting"
    EXHAUSTED = "exhausted"


def extract_video_id(url: Optional[str]) -> Optional[str]:
    """
    Extract the provider's video ID from a watch, short, embed or share URL.

    A bare 11-character ID is accepted as-is. Returns None for anything else.
    """
    if not url or not isinstance(url, str):
        return None

    url = url.strip()
    if _BARE_ID_PATTERN.match(url):
        return url

    match = _VIDEO_ID_PATTERN.search(url)
    return match.group(1) if match else None


def thumbnail_url(video_id: str, tier: str) -> str:
    """Build the still-image URL for a video at one quality tier."""
    return f"{THUMBNAIL_HOST}/{video_id}/{tier}.jpg"


@dataclass(frozen=True)
class ThumbnailCascade:
    """
    State of one displayed thumbnail.

    Transitions only move forward: on_load_error advances to the next tier,
    and from the last tier to EXHAUSTED. Nothing moves a cascade backwards.
    """
    video_id: Optional[str]
    tier_index: int = 0
    status: CascadeStatus = CascadeStatus.ATTEMPTING

    @classmethod
    def start(cls, url: Optional[str]) -> "ThumbnailCascade":
        """Begin a cascade for a video URL. Malformed input is exhausted immediately."""
        video_id = extract_video_id(url)
        if video_id is None:
            return cls(video_id=None, tier_index=len(THUMBNAIL_TIERS), status=CascadeStatus.EXHAUSTED)
        return cls(video_id=video_id)

    @property
    def is_exhausted(self) -> bool:
        return self.status is CascadeStatus.EXHAUSTED

    @property
    def tier(self) -> Optional[str]:
        """Name of the tier being attempted, or None once exhausted."""
        if self.is_exhausted:
            return None
        return THUMBNAIL_TIERS[self.tier_index]

    @property
    def current_url(self) -> Optional[str]:
        """URL to load for the current tier, or None once exhausted."""
        if self.is_exhausted or self.video_id is None:
            return None
        return thumbnail_url(self.video_id, THUMBNAIL_TIERS[self.tier_index])

    def on_load_error(self) -> "ThumbnailCascade":
        """Next state after the current tier failed to load."""
        if self.is_exhausted:
            return self

        next_index = self.tier_index + 1
        if next_index >= len(THUMBNAIL_TIERS):
            return ThumbnailCascade(
                video_id=self.video_id,
                tier_index=len(THUMBNAIL_TIERS),
                status=CascadeStatus.EXHAUSTED,
            )
        return ThumbnailCascade(video_id=self.video_id, tier_index=next_index)


def placeholder_image(title: str = "") -> str:
    """
    Generate the branded placeholder shown once a cascade is exhausted.

    Returns an SVG as a data: URI so it renders without another request.
    """
    label = html.escape(title.strip()[:80]) if title else ""
    svg = (
        '<svg xmlns="http://www.w3.org/2000/svg" width="1280" height="720" viewBox="0 0 1280 720">'
        '<defs><linearGradient id="bg" x1="0" y1="0" x2="0" y2="1">'
        f'<stop offset="0" stop-color="{BRAND_GOLD}" stop-opacity="0.15"/>'
        '<stop offset="0.5" stop-color="#171717"/>'
        '<stop offset="1" stop-color="#000000"/>'
        '</linearGradient></defs>'
        '<rect width="1280" height="720" fill="url(#bg)"/>'
        f'<circle cx="640" cy="320" r="48" fill="{BRAND_GOLD}" fill-opacity="0.2"/>'
        f'<path d="M624 296 L664 320 L624 344 Z" fill="{BRAND_GOLD}"/>'
        f'<text x="640" y="420" fill="#ffffff" font-family="serif" font-size="32" '
        f'text-anchor="middle">{label}</text>'
        '</svg>'
    )
    encoded = base64.b64encode(svg.encode("utf-8")).decode("ascii")
    return f"data:image/svg+xml;base64,{encoded}"


@dataclass
class ThumbnailResolution:
    """Outcome of driving a cascade to completion."""
    src: str
    state: ThumbnailCascade
    attempted_urls: list[str] = field(default_factory=list)

    @property
    def is_placeholder(self) -> bool:
        return self.state.is_exhausted


async def resolve_thumbnail(
    url: Optional[str],
    probe: UrlProbe,
    title: str = "",
) -> ThumbnailResolution:
    """
    Walk the cascade server-side, one tier at a time.

    Each tier is probed once. A probe error counts as a load failure.
    Returns the first loadable tier URL, or the placeholder when exhausted.
    """
    state = ThumbnailCascade.start(url)
    attempted: list[str] = []

    while not state.is_exhausted:
        candidate = state.current_url
        attempted.append(candidate)
        try:
            loaded = await probe.exists(candidate)
        except Exception as e:
            logger.debug(
                "Thumbnail probe failed",
                extra={"url": candidate, "error": str(e)}
            )
            loaded = False

        if loaded:
            return ThumbnailResolution(src=candidate, state=state, attempted_urls=attempted)

        state = state.on_load_error()

    return ThumbnailResolution(
        src=placeholder_image(title),
        state=state,
        attempted_urls=attempted,
    )
