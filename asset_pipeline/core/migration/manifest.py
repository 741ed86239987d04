"""
Audit manifest loading.

The manifest is a JSON array of audit entries. Only a manifest that cannot
be read or is not an array of objects stops a run. Individual items that
fail validation are kept as RejectedEntry values in their original position
so the run can report them alongside everything else.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import ValidationError

from .models import (
    ManifestItem,
    MigrationStatus,
    RejectedEntry,
    audit_entry_adapter,
)

logger = logging.getLogger(__name__)


class ManifestError(Exception):
    """Raised when the manifest is missing or cannot be parsed."""
    pass


@dataclass
class Manifest:
    """Ordered manifest items, validated or rejected."""
    items: list[ManifestItem] = field(default_factory=list)
    source_path: Optional[str] = None

    def with_status(self, status: MigrationStatus) -> list[ManifestItem]:
        """Items in manifest order whose status is `status`, rejected ones included."""
        return [item for item in self.items if item.migration_status == status.value]

    @property
    def migrate_items(self) -> list[ManifestItem]:
        return self.with_status(MigrationStatus.MIGRATE)

    @property
    def skip_items(self) -> list[ManifestItem]:
        return self.with_status(MigrationStatus.SKIP)

    @property
    def rejected_items(self) -> list[RejectedEntry]:
        return [item for item in self.items if isinstance(item, RejectedEntry)]

    def __len__(self) -> int:
        return len(self.items)


def _describe_validation_error(error: ValidationError) -> str:
    messages = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail.get("loc", ()) if part not in ("pending", "skip", "migrate"))
        messages.append(f"{location}: {detail['msg']}" if location else detail["msg"])
    return "; ".join(messages)


def parse_manifest(data: Any, source_path: Optional[str] = None) -> Manifest:
    """
    Validate decoded manifest data.

    Raises:
        ManifestError: If the data is not a list of objects
    """
    if not isinstance(data, list):
        raise ManifestError(
            f"Manifest must be a JSON array of entries, got {type(data).__name__}"
        )

    items: list[ManifestItem] = []
    for position, raw in enumerate(data):
        if not isinstance(raw, dict):
            raise ManifestError(
                f"Manifest entry {position} must be an object, got {type(raw).__name__}"
            )

        try:
            items.append(audit_entry_adapter.validate_python(raw))
        except ValidationError as e:
            reason = _describe_validation_error(e)
            logger.warning(
                "Rejected manifest entry",
                extra={"position": position, "url": raw.get("url"), "reason": reason}
            )
            items.append(RejectedEntry(position=position, raw=raw, reason=reason))

    return Manifest(items=items, source_path=source_path)


def load_manifest(path: Union[str, Path]) -> Manifest:
    """
    Read and validate the manifest file.

    Raises:
        ManifestError: If the file is missing, unreadable or not valid JSON
    """
    path = Path(path)

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ManifestError(f"Manifest not found: {path}")
    except json.JSONDecodeError as e:
        raise ManifestError(f"Manifest is not valid JSON: {path}: {e}")
    except OSError as e:
        raise ManifestError(f"Manifest could not be read: {path}: {e}")

    manifest = parse_manifest(data, source_path=str(path))

    logger.info(
        "Loaded manifest",
        extra={
            "path": str(path),
            "entries": len(manifest),
            "rejected": len(manifest.rejected_items),
        }
    )

    return manifest
