"""
Dependency wiring.

Builds resolvers, clients, repositories and the orchestrator from Settings.
Entry points never instantiate infrastructure themselves, which means:
- Mock modes are decided in one place
- Tests can build any piece from a hand-made Settings
- Client lifecycles (the shared HTTP client) are managed properly
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx

from .config.settings import Settings
from .core.migration.orchestrator import MigrationOrchestrator
from .core.storage_urls import ResolverConfig, StorageUrlResolver, UrlProbe
from .infrastructure.http.client import (
    HttpConfig,
    HttpImageDownloader,
    HttpUrlProbe,
    create_http_client,
)
from .infrastructure.records.client import (
    RecordStore,
    RecordStoreConfig,
    create_record_store,
)
from .infrastructure.records.repositories import HotelRepository, MediaRepository
from .infrastructure.storage.client import StorageClient, StorageConfig, create_storage_client

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Addressing
# ---------------------------------------------------------------------------

def get_resolver_config(settings: Settings) -> ResolverConfig:
    """Resolver configuration from settings."""
    return ResolverConfig(
        base_url=settings.supabase_url,
        containers=tuple(settings.storage_containers_list),
        default_container=settings.storage_default_container,
        legacy_base_urls=tuple(settings.storage_legacy_base_urls_list),
    )


def get_resolver(settings: Settings, probe: Optional[UrlProbe] = None) -> StorageUrlResolver:
    """Resolver for the configured project. `probe` enables resolve_with_fallback."""
    return StorageUrlResolver(get_resolver_config(settings), probe=probe)


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------

def get_http_config(settings: Settings) -> HttpConfig:
    return HttpConfig(timeout_seconds=settings.http_timeout_seconds)


def get_storage_client(settings: Settings) -> StorageClient:
    """Object storage client, in-memory when storage_mock_mode is set."""
    if settings.storage_mock_mode:
        return create_storage_client(mock_mode=True)

    config = StorageConfig(
        access_key_id=settings.storage_s3_access_key_id,
        secret_access_key=settings.storage_s3_secret_access_key,
        endpoint_url=settings.storage_s3_endpoint,
        region=settings.storage_s3_region,
    )
    return create_storage_client(config)


def get_record_store(
    settings: Settings,
    client: Optional[httpx.AsyncClient] = None,
) -> RecordStore:
    """Record store, in-memory when records_mock_mode is set."""
    if settings.records_mock_mode:
        return create_record_store(mock_mode=True)

    config = RecordStoreConfig(
        base_url=settings.supabase_url,
        api_key=settings.service_key,
        timeout_seconds=settings.http_timeout_seconds,
    )
    return create_record_store(config, client=client)


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

def build_orchestrator(
    settings: Settings,
    client: httpx.AsyncClient,
    storage: Optional[StorageClient] = None,
    store: Optional[RecordStore] = None,
) -> MigrationOrchestrator:
    """Assemble an orchestrator around an existing HTTP client."""
    storage = storage or get_storage_client(settings)
    store = store or get_record_store(settings, client=client)

    return MigrationOrchestrator(
        downloader=HttpImageDownloader(client),
        storage=storage,
        hotels=HotelRepository(store),
        media=MediaRepository(store),
        resolver=get_resolver(settings, probe=HttpUrlProbe(client)),
        container=settings.migration_container,
        content_type=settings.migration_content_type,
        pacing_seconds=settings.migration_pacing_seconds,
        task_timeout_seconds=settings.migration_task_timeout_seconds,
    )


@asynccontextmanager
async def http_client(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AsyncIterator[httpx.AsyncClient]:
    """Shared HTTP client, closed on exit."""
    client = create_http_client(get_http_config(settings), transport=transport)
    try:
        yield client
    finally:
        await client.aclose()
        logger.debug("Closed HTTP client")
