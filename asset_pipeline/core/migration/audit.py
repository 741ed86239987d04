"""
Image audit: build the migration manifest from the hotel catalog.

Walks every hotel's images, room images and dining images, tags each with
its origin and placement, and decides whether it needs migrating. Images
already in the storage project are skipped; everything else is migrated to
hotels/<slug>/<context>/<n>.jpg.
"""

import json
import logging
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from pydantic import ValidationError

from .models import (
    AssetSource,
    MigrateEntry,
    MigrationStatus,
    SkipEntry,
)

logger = logging.getLogger(__name__)

AuditedEntry = Union[SkipEntry, MigrateEntry]


def categorize_source(url: str) -> AssetSource:
    """Classify where an image is hosted today."""
    if "supabase.co" in url:
        return AssetSource.SUPABASE
    if "unsplash.com" in url:
        return AssetSource.UNSPLASH
    if "googleusercontent.com" in url:
        return AssetSource.GOOGLE
    return AssetSource.OTHER


def generate_target_path(hotel: str, image_index: int, context: str) -> str:
    """Destination path in owned storage. Indices are 1-based in the path."""
    return f"hotels/{hotel}/{context}/{image_index + 1}.jpg"


def _entry(url: str, hotel: str, context: str, target_path: str) -> AuditedEntry:
    source = categorize_source(url)
    if source is AssetSource.SUPABASE:
        return SkipEntry(
            url=url,
            source=source,
            owning_entity=hotel,
            context=context,
            target_path=target_path,
        )
    return MigrateEntry(
        url=url,
        source=source,
        owning_entity=hotel,
        context=context,
        target_path=target_path,
    )


def audit_hotel(hotel: dict[str, Any]) -> list[AuditedEntry]:
    """
    Audit one catalog hotel. The first hotel image is the hero.

    A hotel without a slug yields no entries. Images whose URL is not an
    absolute URI are logged and left out; the rest of the hotel is audited.
    """
    slug = hotel.get("slug") if isinstance(hotel, dict) else None
    if not slug or not isinstance(slug, str):
        logger.warning(
            "Skipping hotel without a slug",
            extra={"hotel_name": hotel.get("name") if isinstance(hotel, dict) else None}
        )
        return []

    entries: list[AuditedEntry] = []

    def add(url: Any, context: str, target_path: str) -> None:
        if not isinstance(url, str):
            logger.warning(
                "Skipping invalid image",
                extra={"hotel": slug, "context": context, "url": repr(url), "error": "URL is not a string"}
            )
            return
        try:
            entries.append(_entry(url, slug, context, target_path))
        except ValidationError as e:
            logger.warning(
                "Skipping invalid image",
                extra={"hotel": slug, "context": context, "url": url, "error": str(e)}
            )

    for index, url in enumerate(hotel.get("images") or []):
        context = "hero" if index == 0 else "gallery"
        add(url, context, generate_target_path(slug, index, context))

    for room_index, room in enumerate(hotel.get("rooms") or []):
        if not isinstance(room, dict):
            continue
        for image_index, url in enumerate(room.get("images") or []):
            add(
                url,
                f"rooms/{room.get('id', room_index)}",
                generate_target_path(slug, room_index * 10 + image_index, "rooms"),
            )

    for dining_index, dining in enumerate(hotel.get("dining") or []):
        if not isinstance(dining, dict):
            continue
        url = dining.get("image")
        if url:
            add(
                url,
                f"dining/{dining.get('id', dining_index)}",
                generate_target_path(slug, dining_index, "dining"),
            )

    return entries


def audit_catalog(hotels: Iterable[dict[str, Any]]) -> list[AuditedEntry]:
    """Audit every hotel in catalog order."""
    entries: list[AuditedEntry] = []
    for hotel in hotels:
        entries.extend(audit_hotel(hotel))

    logger.info(
        "Audited hotel catalog",
        extra={
            "total": len(entries),
            "to_migrate": sum(1 for e in entries if e.migration_status == MigrationStatus.MIGRATE.value),
            "to_skip": sum(1 for e in entries if e.migration_status == MigrationStatus.SKIP.value),
        }
    )
    return entries


def load_catalog(path: Union[str, Path]) -> list[dict[str, Any]]:
    """Read a hotel catalog: a JSON array, or an object with a "hotels" array."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        data = data.get("hotels", [])
    if not isinstance(data, list):
        raise ValueError(f"Hotel catalog must be a list of hotels: {path}")
    return data


def write_manifest(entries: Iterable[AuditedEntry], path: Union[str, Path]) -> None:
    """Write entries as the JSON manifest the migration run reads."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump([entry.to_dict() for entry in entries], f, indent=2)


def render_audit_report(
    entries: list[AuditedEntry],
    generated_at: Optional[datetime] = None,
) -> str:
    """Markdown summary of an audit."""
    generated_at = generated_at or datetime.now(timezone.utc)

    sources = Counter(entry.source.value for entry in entries)
    statuses = Counter(entry.migration_status for entry in entries)
    hotels = Counter(entry.owning_entity for entry in entries if entry.owning_entity)

    to_migrate = [e for e in entries if e.migration_status == MigrationStatus.MIGRATE.value]
    to_skip = [e for e in entries if e.migration_status == MigrationStatus.SKIP.value]

    lines = [
        "# Image Audit Report",
        f"Generated: {generated_at.isoformat()}",
        "",
        "## Summary",
        f"- **Total Images**: {len(entries)}",
        f"- **Images to Migrate**: {len(to_migrate)}",
        f"- **Images to Skip**: {len(to_skip)}",
        "",
        "## Source Breakdown",
        *[f"- **{source}**: {count}" for source, count in sources.items()],
        "",
        "## Migration Status",
        *[f"- **{status}**: {count}" for status, count in statuses.items()],
        "",
        "## Hotels with Images",
        *[f"- **{hotel}**: {count} images" for hotel, count in hotels.items()],
        "",
        "## Images to Migrate",
        *[f"- `{e.url}` -> `{e.target_path}` ({e.context})" for e in to_migrate],
        "",
        "## Images Already in Storage (Skip)",
        *[f"- `{e.url}` ({e.context})" for e in to_skip],
        "",
    ]
    return "\n".join(lines)
