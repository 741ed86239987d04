"""
Repository implementations over the record store.

Repositories translate between domain records and table rows.
"""

from .hotels import HotelRepository
from .media import MediaRepository

__all__ = ["HotelRepository", "MediaRepository"]
