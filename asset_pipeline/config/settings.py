"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

Mock modes enable local runs without a storage project or database.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Pipeline settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For lists (like storage_containers), use comma-separated values in env.
    """

    # Storage service (Supabase project)
    supabase_url: str = Field(
        default="http://localhost:54321",
        description="Base address of the current storage/database project"
    )
    supabase_service_role_key: str = Field(
        default="",
        description="Service role key. Needed for writes to storage and tables."
    )
    supabase_anon_key: str = Field(
        default="",
        description="Anonymous key, used when no service role key is configured"
    )

    # Addressing
    storage_containers: str = Field(
        default="homepage_image,hotel-images,hotel-videos,hotel-media,dining-images",
        description="Comma-separated list of valid storage containers (buckets)"
    )
    storage_default_container: str = Field(
        default="homepage_image",
        description="Container substituted when an unknown container is requested"
    )
    storage_legacy_base_urls: str = Field(
        default="",
        description="Comma-separated base addresses of retired storage projects. First one is the fallback target."
    )

    # S3-compatible object storage
    storage_s3_access_key_id: str = Field(
        default="",
        description="Access key ID for the S3-compatible storage endpoint"
    )
    storage_s3_secret_access_key: str = Field(
        default="",
        description="Secret access key for the S3-compatible storage endpoint"
    )
    storage_s3_region: str = Field(
        default="us-east-1",
        description="Region reported by the storage project"
    )
    storage_s3_endpoint_url: Optional[str] = Field(
        default=None,
        description="S3 endpoint URL. Derived from supabase_url if not provided."
    )
    storage_mock_mode: bool = Field(
        default=False,
        description="Use in-memory object storage instead of the real endpoint"
    )
    records_mock_mode: bool = Field(
        default=False,
        description="Use in-memory tables instead of the REST API"
    )

    # Migration run
    migration_container: str = Field(
        default="hotel-media",
        description="Container that migrated images are uploaded into"
    )
    migration_content_type: str = Field(
        default="image/jpeg",
        description="Media type declared for every uploaded image"
    )
    migration_pacing_seconds: float = Field(
        default=1.0,
        description="Pause between manifest entries"
    )
    migration_task_timeout_seconds: Optional[float] = Field(
        default=None,
        description="Optional per-entry timeout. Unset means entries may take as long as they need."
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for downloads, probes and REST calls"
    )
    manifest_path: str = Field(
        default="image-audit.json",
        description="Audit manifest read by the migration run"
    )
    results_path: str = Field(
        default="migration-results.json",
        description="Where the ordered result list is written"
    )
    mapping_path: str = Field(
        default="image-url-mapping.json",
        description="Where the source-URL to new-URL map is written"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def storage_containers_list(self) -> list[str]:
        """Parse comma-separated container names into a list."""
        return [name.strip() for name in self.storage_containers.split(",") if name.strip()]

    @property
    def storage_legacy_base_urls_list(self) -> list[str]:
        """Parse comma-separated legacy base addresses into a list."""
        return [url.strip().rstrip("/") for url in self.storage_legacy_base_urls.split(",") if url.strip()]

    @property
    def service_key(self) -> str:
        """Key used for REST calls. Service role wins over the anon key."""
        return self.supabase_service_role_key or self.supabase_anon_key

    @property
    def storage_s3_endpoint(self) -> str:
        """
        Construct the S3 endpoint URL from the project base address.

        Supabase exposes its S3-compatible API under /storage/v1/s3.
        """
        if self.storage_s3_endpoint_url:
            return self.storage_s3_endpoint_url
        return f"{self.supabase_url.rstrip('/')}/storage/v1/s3"

    def validate_required_fields(self) -> list[str]:
        """
        Validate that required fields are set based on mock mode settings.

        Returns list of missing required fields.
        """
        missing = []

        if not self.records_mock_mode and not self.service_key:
            missing.append("SUPABASE_SERVICE_ROLE_KEY or SUPABASE_ANON_KEY")

        if not self.storage_mock_mode:
            if not self.storage_s3_access_key_id:
                missing.append("STORAGE_S3_ACCESS_KEY_ID")
            if not self.storage_s3_secret_access_key:
                missing.append("STORAGE_S3_SECRET_ACCESS_KEY")

        if self.storage_default_container not in self.storage_containers_list:
            missing.append("STORAGE_DEFAULT_CONTAINER (must be one of STORAGE_CONTAINERS)")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are loaded once per process.
    For tests, call get_settings.cache_clear() to reset.
    """
    return Settings()
