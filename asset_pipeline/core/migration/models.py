"""
Domain models for the image migration.

An audit manifest lists every externally discovered image. Each entry says
where the image lives today, which hotel shows it, where it is used on the
page and what the migration should do with it. The shape of an entry depends
on its status: only entries marked for migration carry a target path, and
for those it is mandatory. That is expressed as a tagged union so a
MigrateEntry without a target path cannot exist.

Manifest keys are camelCase (they come from the site's tooling); Python
attributes are snake_case.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union
from urllib.parse import urlsplit

from pydantic import (
    AfterValidator,
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Discriminator,
    Field,
    StringConstraints,
    Tag,
    TypeAdapter,
)


class AssetSource(str, Enum):
    """Known origins of site images."""
    SUPABASE = "supabase"
    UNSPLASH = "unsplash"
    GOOGLE = "google"
    OTHER = "other"


class MigrationStatus(str, Enum):
    """What the migration run does with an entry."""
    PENDING = "pending"  # not decided yet, excluded from runs
    SKIP = "skip"
    MIGRATE = "migrate"


class MediaType(str, Enum):
    """Placement of an image on a hotel page."""
    HERO = "hero"
    GALLERY = "gallery"
    ROOM = "room"
    DINING = "dining"


def media_type_for_context(context: str) -> MediaType:
    """
    Classify a placement context.

    "hero" and "gallery" match exactly; "rooms..." and "dining..." match by
    prefix. Everything else is shown in the gallery.
    """
    if context == "hero":
        return MediaType.HERO
    if context == "gallery":
        return MediaType.GALLERY
    if context.startswith("rooms"):
        return MediaType.ROOM
    if context.startswith("dining"):
        return MediaType.DINING
    return MediaType.GALLERY


# ---------------------------------------------------------------------------
# Field validation
# ---------------------------------------------------------------------------

def validate_absolute_uri(value: str) -> str:
    """Require a scheme and a host."""
    value = value.strip()
    parts = urlsplit(value)
    if not parts.scheme or not parts.netloc:
        raise ValueError(f"Not an absolute URI: '{value}'")
    return value


def coerce_source(value: Any) -> Any:
    """Unknown origin tags are treated as 'other'."""
    if isinstance(value, AssetSource):
        return value
    if isinstance(value, str) and value in AssetSource._value2member_map_:
        return value
    return AssetSource.OTHER


AbsoluteUri = Annotated[str, AfterValidator(validate_absolute_uri)]
SourceTag = Annotated[AssetSource, BeforeValidator(coerce_source)]
TargetPath = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


# ---------------------------------------------------------------------------
# Audit entries
# ---------------------------------------------------------------------------

class _AuditEntryBase(BaseModel):
    """Fields shared by every audit entry."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    url: AbsoluteUri
    source: SourceTag = AssetSource.OTHER
    owning_entity: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("owningEntity", "hotel", "owning_entity"),
        serialization_alias="owningEntity",
    )
    context: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Manifest-shaped dict (camelCase keys, nulls dropped)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class PendingEntry(_AuditEntryBase):
    migration_status: Literal["pending"] = Field(
        default="pending",
        validation_alias=AliasChoices("migrationStatus", "migration_status"),
        serialization_alias="migrationStatus",
    )
    target_path: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("targetPath", "newPath", "target_path"),
        serialization_alias="targetPath",
    )


class SkipEntry(_AuditEntryBase):
    migration_status: Literal["skip"] = Field(
        default="skip",
        validation_alias=AliasChoices("migrationStatus", "migration_status"),
        serialization_alias="migrationStatus",
    )
    target_path: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("targetPath", "newPath", "target_path"),
        serialization_alias="targetPath",
    )


class MigrateEntry(_AuditEntryBase):
    migration_status: Literal["migrate"] = Field(
        default="migrate",
        validation_alias=AliasChoices("migrationStatus", "migration_status"),
        serialization_alias="migrationStatus",
    )
    target_path: TargetPath = Field(
        validation_alias=AliasChoices("targetPath", "newPath", "target_path"),
        serialization_alias="targetPath",
    )


def _entry_status(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        status = value.get("migrationStatus", value.get("migration_status"))
    else:
        status = getattr(value, "migration_status", None)
    return status.value if isinstance(status, MigrationStatus) else status


AuditEntry = Annotated[
    Union[
        Annotated[PendingEntry, Tag("pending")],
        Annotated[SkipEntry, Tag("skip")],
        Annotated[MigrateEntry, Tag("migrate")],
    ],
    Discriminator(_entry_status),
]

audit_entry_adapter: TypeAdapter = TypeAdapter(AuditEntry)


@dataclass(frozen=True)
class RejectedEntry:
    """
    A manifest item that failed validation.

    Kept by value so the run can report it as a failed result in place.
    """
    position: int
    raw: dict[str, Any]
    reason: str

    @property
    def url(self) -> Optional[str]:
        url = self.raw.get("url")
        return url if isinstance(url, str) else None

    @property
    def migration_status(self) -> Optional[str]:
        return _entry_status(self.raw)

    def to_dict(self) -> dict[str, Any]:
        return dict(self.raw)


ManifestItem = Union[PendingEntry, SkipEntry, MigrateEntry, RejectedEntry]


# ---------------------------------------------------------------------------
# Catalog records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MediaRecord:
    """Provenance record for an image in owned storage."""
    filename: str  # unique key: full storage path
    original_filename: str
    file_type: str
    storage_path: str
    public_url: str
    alt_text: str
    tags: tuple[str, ...] = ()
    file_size: Optional[int] = None
    upload_source: str = "migration"


@dataclass(frozen=True)
class MediaLink:
    """Association between a provenance record and the hotel showing it."""
    media_id: str
    hotel_id: str
    media_type: MediaType
    sort_order: int
    is_primary: bool = False


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MigrationResult:
    """
    Outcome for one manifest entry in one run.

    new_url is present exactly when the entry succeeded; error exactly when
    it failed. storage_record_id is set when a provenance record was written.
    """
    original: ManifestItem
    success: bool
    new_url: Optional[str] = None
    storage_record_id: Optional[str] = None
    error: Optional[str] = None

    def __post_init__(self) -> None:
        if self.success and not self.new_url:
            raise ValueError("A successful result must carry new_url")
        if self.success and self.error is not None:
            raise ValueError("A successful result cannot carry an error")
        if not self.success and not self.error:
            raise ValueError("A failed result must carry an error")
        if not self.success and (self.new_url or self.storage_record_id):
            raise ValueError("A failed result cannot carry new_url or storage_record_id")

    @classmethod
    def succeeded(
        cls,
        original: ManifestItem,
        new_url: str,
        storage_record_id: Optional[str] = None,
    ) -> "MigrationResult":
        return cls(original=original, success=True, new_url=new_url, storage_record_id=storage_record_id)

    @classmethod
    def failed(cls, original: ManifestItem, error: str) -> "MigrationResult":
        return cls(original=original, success=False, error=error or "Unknown error")

    @property
    def original_url(self) -> Optional[str]:
        return self.original.url

    def to_dict(self) -> dict[str, Any]:
        """Serialisable form written to the results artifact."""
        payload: dict[str, Any] = {
            "original": self.original.to_dict(),
            "success": self.success,
        }
        if self.new_url is not None:
            payload["newUrl"] = self.new_url
        if self.storage_record_id is not None:
            payload["storageRecordId"] = self.storage_record_id
        if self.error is not None:
            payload["error"] = self.error
        return payload
