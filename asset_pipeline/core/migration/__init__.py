"""
Image migration: audit, manifest, orchestration and URL rewriting.
"""

from .manifest import Manifest, ManifestError, load_manifest, parse_manifest
from .models import (
    AssetSource,
    AuditEntry,
    MediaLink,
    MediaRecord,
    MediaType,
    MigrateEntry,
    MigrationResult,
    MigrationStatus,
    PendingEntry,
    RejectedEntry,
    SkipEntry,
    media_type_for_context,
)
from .orchestrator import (
    EntityNotFoundError,
    MigrationEntryError,
    MigrationOrchestrator,
    MigrationRun,
)
from .queue import SequentialTaskQueue
from .rewrite import UrlRewriter, build_url_mapping

__all__ = [
    "AssetSource",
    "AuditEntry",
    "EntityNotFoundError",
    "Manifest",
    "ManifestError",
    "MediaLink",
    "MediaRecord",
    "MediaType",
    "MigrateEntry",
    "MigrationEntryError",
    "MigrationOrchestrator",
    "MigrationResult",
    "MigrationRun",
    "MigrationStatus",
    "PendingEntry",
    "RejectedEntry",
    "SequentialTaskQueue",
    "SkipEntry",
    "UrlRewriter",
    "build_url_mapping",
    "load_manifest",
    "media_type_for_context",
    "parse_manifest",
]
