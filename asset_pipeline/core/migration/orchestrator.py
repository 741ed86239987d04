"""
Image migration orchestrator.

Turns an audit manifest into owned, catalogued images:

1. Partition the manifest into migrate and skip groups (pending is excluded)
2. For each migrate entry, one at a time with a pause in between:
   resolve the hotel, download, upload, record provenance, link to the hotel
3. Pass skip entries through unchanged
4. Derive the URL rewrite map

A failure in one entry never stops the run - it becomes a failed result and
the next entry is processed. Every write is an upsert (objects by path,
media records by filename, links by media/hotel pair), so running the same
manifest again converges on the same state instead of duplicating it.

This module is framework-agnostic: storage, catalog and HTTP access come in
through the protocols below.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Protocol, Union

from ..storage_urls import StorageUrlResolver
from .manifest import Manifest
from .models import (
    ManifestItem,
    MediaLink,
    MediaRecord,
    MediaType,
    MigrateEntry,
    MigrationResult,
    RejectedEntry,
    media_type_for_context,
)
from .queue import SequentialTaskQueue
from .rewrite import build_url_mapping

logger = logging.getLogger(__name__)


class MigrationEntryError(Exception):
    """Raised when a manifest entry cannot be migrated as written."""
    pass


class EntityNotFoundError(MigrationEntryError):
    """Raised when an entry references a hotel that doesn't exist."""
    pass


# ---------------------------------------------------------------------------
# Protocols (interfaces)
# ---------------------------------------------------------------------------

class ImageDownloader(Protocol):
    """Retrieves source images over HTTP."""

    async def download(self, url: str) -> bytes:
        """Return the body of a successful response, raise otherwise."""
        ...


class ObjectStorage(Protocol):
    """Owned object storage."""

    async def upload_object(
        self,
        container: str,
        path: str,
        data: bytes,
        content_type: str,
        upsert: bool = True,
    ) -> str:
        """Store bytes at (container, path) and return the stored path."""
        ...


class HotelDirectory(Protocol):
    """Looks up hotels by slug."""

    async def get_hotel_id(self, slug: str) -> Optional[str]:
        """Internal identifier for the slug, or None if there is no such hotel."""
        ...


class MediaCatalog(Protocol):
    """Provenance and link records."""

    async def upsert_media(self, record: MediaRecord) -> str:
        """Create or update the record by filename and return its id."""
        ...

    async def link_media(self, link: MediaLink) -> None:
        """Create or update the media/hotel association."""
        ...


# ---------------------------------------------------------------------------
# Run Output
# ---------------------------------------------------------------------------

@dataclass
class MigrationRun:
    """Everything one run produced."""
    results: list[MigrationResult] = field(default_factory=list)
    url_mapping: dict[str, str] = field(default_factory=dict)
    migrate_count: int = 0
    skip_count: int = 0

    @property
    def succeeded(self) -> list[MigrationResult]:
        """Successful results of the migrate group."""
        return [r for r in self.results[:self.migrate_count] if r.success]

    @property
    def failed(self) -> list[MigrationResult]:
        """Failed results of the migrate group."""
        return [r for r in self.results[:self.migrate_count] if not r.success]

    @property
    def skipped(self) -> list[MigrationResult]:
        """Skip entries passed through unchanged."""
        return [r for r in self.results[self.migrate_count:] if r.success]

    @property
    def rejected_skips(self) -> list[MigrationResult]:
        """Skip-group entries that failed validation."""
        return [r for r in self.results[self.migrate_count:] if not r.success]

    @property
    def all_succeeded(self) -> bool:
        return all(r.success for r in self.results)

    def save(
        self,
        results_path: Union[str, Path],
        mapping_path: Union[str, Path],
    ) -> None:
        """Write the ordered results and the rewrite map as JSON artifacts."""
        with open(results_path, "w", encoding="utf-8") as f:
            json.dump([r.to_dict() for r in self.results], f, indent=2)

        with open(mapping_path, "w", encoding="utf-8") as f:
            json.dump(self.url_mapping, f, indent=2)

        logger.info(
            "Saved migration artifacts",
            extra={"results_path": str(results_path), "mapping_path": str(mapping_path)}
        )


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

class MigrationOrchestrator:
    """
    Runs a manifest through download, upload and cataloguing.

    Each run builds its own queue and accumulators; an orchestrator can run
    any number of manifests one after another.
    """

    def __init__(
        self,
        downloader: ImageDownloader,
        storage: ObjectStorage,
        hotels: HotelDirectory,
        media: MediaCatalog,
        resolver: StorageUrlResolver,
        container: str,
        content_type: str = "image/jpeg",
        pacing_seconds: float = 1.0,
        task_timeout_seconds: Optional[float] = None,
        sleep=asyncio.sleep,
    ) -> None:
        if container not in resolver.config.containers:
            raise ValueError(f"Migration container '{container}' is not a valid container")

        self._downloader = downloader
        self._storage = storage
        self._hotels = hotels
        self._media = media
        self._resolver = resolver
        self._container = container
        self._content_type = content_type
        self._pacing = pacing_seconds
        self._timeout = task_timeout_seconds
        self._sleep = sleep

    async def run(self, manifest: Manifest) -> MigrationRun:
        """
        Process a manifest and return results in output order.

        All migrate results come first in manifest order, then all skip
        results in manifest order.
        """
        to_migrate = manifest.migrate_items
        to_skip = manifest.skip_items

        logger.info(
            "Starting image migration",
            extra={
                "to_migrate": len(to_migrate),
                "to_skip": len(to_skip),
                "total": len(manifest),
            }
        )

        queue: SequentialTaskQueue = SequentialTaskQueue(
            pacing_seconds=self._pacing,
            task_timeout_seconds=self._timeout,
            sleep=self._sleep,
        )
        for position, item in enumerate(to_migrate):
            queue.add(self._task_for(item, position, len(to_migrate)))

        def on_error(position: int, error: Exception) -> MigrationResult:
            return self._failure(to_migrate[position], error)

        results: list[MigrationResult] = await queue.run(on_error=on_error)
        results.extend(self._passthrough(item) for item in to_skip)

        run = MigrationRun(
            results=results,
            url_mapping=build_url_mapping(results),
            migrate_count=len(to_migrate),
            skip_count=len(to_skip),
        )

        logger.info(
            "Image migration finished",
            extra={
                "succeeded": len(run.succeeded),
                "failed": len(run.failed),
                "skipped": len(run.skipped),
                "rejected_skips": len(run.rejected_skips),
                "total": len(run.results),
            }
        )

        return run

    async def migrate_entry(self, entry: MigrateEntry, sort_order: int = 0) -> MigrationResult:
        """
        Migrate one validated entry.

        Raises on any failure; run() converts those into failed results.
        """
        slug = entry.owning_entity

        hotel_id = None
        if slug:
            hotel_id = await self._hotels.get_hotel_id(slug)
            if not hotel_id:
                raise EntityNotFoundError(f"Hotel not found: {slug}")

        data = await self._downloader.download(entry.url)

        stored_path = await self._storage.upload_object(
            container=self._container,
            path=entry.target_path,
            data=data,
            content_type=self._content_type,
            upsert=True,
        )
        new_url = self._resolver.build_url(self._container, stored_path)

        record = MediaRecord(
            filename=stored_path,
            original_filename=stored_path.rsplit("/", 1)[-1],
            file_type=self._content_type,
            storage_path=stored_path,
            public_url=new_url,
            alt_text=f"Image for {stored_path}",
            tags=(slug,) if slug else (),
            file_size=len(data),
        )
        media_id = await self._media.upsert_media(record)

        if hotel_id and media_id:
            media_type = media_type_for_context(entry.context)
            await self._media.link_media(MediaLink(
                media_id=media_id,
                hotel_id=hotel_id,
                media_type=media_type,
                sort_order=sort_order,
                is_primary=media_type is MediaType.HERO,
            ))

        return MigrationResult.succeeded(entry, new_url=new_url, storage_record_id=media_id)

    def _task_for(self, item: ManifestItem, position: int, total: int):
        async def task() -> MigrationResult:
            logger.info(
                "Migrating image",
                extra={"position": position + 1, "total": total, "url": item.url}
            )
            if isinstance(item, RejectedEntry):
                raise MigrationEntryError(f"Invalid manifest entry: {item.reason}")

            result = await self.migrate_entry(item, sort_order=position)

            logger.info(
                "Migrated image",
                extra={"url": item.url, "new_url": result.new_url}
            )
            return result

        return task

    def _failure(self, item: ManifestItem, error: Exception) -> MigrationResult:
        if isinstance(error, asyncio.TimeoutError):
            message = f"Timed out after {self._timeout} seconds"
        else:
            message = str(error) or type(error).__name__

        logger.error(
            "Failed to migrate image",
            extra={"url": item.url, "error": message}
        )
        return MigrationResult.failed(item, message)

    def _passthrough(self, item: ManifestItem) -> MigrationResult:
        if isinstance(item, RejectedEntry):
            return MigrationResult.failed(item, f"Invalid manifest entry: {item.reason}")
        return MigrationResult.succeeded(item, new_url=item.url)
