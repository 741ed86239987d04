"""
Media repository: provenance records and hotel links.

Both writes are upserts so the migration can be re-run safely:
- media rows are keyed by filename (the full storage path)
- hotel_media rows are keyed by the (media_id, hotel_id) pair

Re-running a manifest updates the same rows rather than adding new ones.
"""

import logging

from asset_pipeline.core.migration.models import MediaLink, MediaRecord

from ..client import RecordStore, RecordStoreError

logger = logging.getLogger(__name__)

MEDIA_TABLE = "media"
HOTEL_MEDIA_TABLE = "hotel_media"

MEDIA_KEY = ("filename",)
HOTEL_MEDIA_KEY = ("media_id", "hotel_id")


class MediaRepository:
    """
    Repository for media provenance and placement.

    Translates domain records to table rows. Failures are re-raised as
    RecordStoreError with a message that says which write failed.
    """

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    async def upsert_media(self, record: MediaRecord) -> str:
        """Create or update the media row for a stored object; return its id."""
        row = {
            "filename": record.filename,
            "original_filename": record.original_filename,
            "file_type": record.file_type,
            "file_size": record.file_size,
            "supabase_path": record.storage_path,
            "public_url": record.public_url,
            "alt_text": record.alt_text,
            "tags": list(record.tags),
            "upload_source": record.upload_source,
        }

        try:
            stored = await self._store.upsert(MEDIA_TABLE, row, on_conflict=MEDIA_KEY)
        except RecordStoreError as e:
            raise RecordStoreError(f"Database insert failed: {e}")

        logger.debug(
            "Upserted media record",
            extra={"media_id": stored.get("id"), "media_filename": record.filename}
        )
        return str(stored["id"])

    async def link_media(self, link: MediaLink) -> None:
        """Create or update the hotel_media row for a media/hotel pair."""
        row = {
            "media_id": link.media_id,
            "hotel_id": link.hotel_id,
            "media_type": link.media_type.value,
            "sort_order": link.sort_order,
            "is_primary": link.is_primary,
        }

        try:
            await self._store.upsert(HOTEL_MEDIA_TABLE, row, on_conflict=HOTEL_MEDIA_KEY)
        except RecordStoreError as e:
            raise RecordStoreError(f"Failed to link media to hotel: {e}")

        logger.debug(
            "Linked media to hotel",
            extra={
                "media_id": link.media_id,
                "hotel_id": link.hotel_id,
                "media_type": link.media_type.value,
            }
        )
