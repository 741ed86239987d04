"""
Hotel lookups.

The migration only needs one thing from the hotels table: the internal id
behind a slug, so media can be linked to it.
"""

import logging
from typing import Optional

from ..client import RecordStore

logger = logging.getLogger(__name__)

HOTELS_TABLE = "hotels"


class HotelRepository:
    """Read access to hotels by slug."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    async def get_hotel_id(self, slug: str) -> Optional[str]:
        """
        Internal id for a hotel slug.

        Returns None when no hotel has the slug. Store failures propagate as
        RecordStoreError.
        """
        rows = await self._store.select(HOTELS_TABLE, {"slug": slug}, columns="id", limit=1)

        if not rows:
            logger.warning("Hotel not found", extra={"slug": slug})
            return None

        return str(rows[0]["id"])
