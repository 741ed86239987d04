"""
Hotel Asset Pipeline - image migration and URL resolution for the hotel sites.

This package contains the complete pipeline:
- core: Framework-agnostic URL resolution, thumbnail cascade and migration logic
- infrastructure: External service integrations (object storage, record store, HTTP)
- config: Application configuration
"""

__version__ = "0.1.0"
