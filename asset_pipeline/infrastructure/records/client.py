"""
Record store access over the project's REST API.

The database is reached through PostgREST: tables are resources under
/rest/v1, filters are query parameters, and upserts are POSTs with
merge-duplicates resolution on a unique key. Only what the pipeline needs is
exposed: select-by-filter and upsert-by-key.

Includes mock mode with in-memory tables for local development.
Using the repository pattern means most code never touches this module
directly - it goes through the repositories, which translate between
domain records and table rows.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol, Sequence
from uuid import uuid4

import httpx

logger = logging.getLogger(__name__)

Row = dict[str, Any]


class RecordStoreError(Exception):
    """Raised when a record store request fails."""
    pass


@dataclass
class RecordStoreConfig:
    """Configuration for the REST record store."""
    base_url: str
    api_key: str
    timeout_seconds: float = 30.0

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ValueError("base_url is required")
        if not self.api_key:
            raise ValueError("API key is required")
        self.base_url = self.base_url.rstrip("/")

    @property
    def rest_url(self) -> str:
        return f"{self.base_url}/rest/v1"


class RecordStore(Protocol):
    """
    Protocol for record store operations.

    Repositories depend on this, not on httpx, so tests can hand them the
    in-memory store.
    """

    async def select(
        self,
        table: str,
        filters: dict[str, Any],
        columns: str = "*",
        limit: Optional[int] = None,
    ) -> list[Row]:
        """Rows whose columns equal every filter value."""
        ...

    async def upsert(self, table: str, row: Row, on_conflict: Sequence[str]) -> Row:
        """Insert or merge a row by the unique key columns; return the stored row."""
        ...


class RestRecordStore:
    """PostgREST-backed record store."""

    def __init__(
        self,
        config: RecordStoreConfig,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._config = config
        self._client = client or httpx.AsyncClient(timeout=config.timeout_seconds)
        self._headers = {
            "apikey": config.api_key,
            "Authorization": f"Bearer {config.api_key}",
            "Content-Type": "application/json",
        }

        logger.info(
            "Initialized REST record store",
            extra={"rest_url": config.rest_url}
        )

    async def select(
        self,
        table: str,
        filters: dict[str, Any],
        columns: str = "*",
        limit: Optional[int] = None,
    ) -> list[Row]:
        params = {"select": columns}
        for column, value in filters.items():
            params[column] = f"eq.{value}"
        if limit is not None:
            params["limit"] = str(limit)

        response = await self._request("GET", table, params=params)
        return response.json()

    async def upsert(self, table: str, row: Row, on_conflict: Sequence[str]) -> Row:
        """
        Upsert one row.

        PostgREST merges into the existing row when the on_conflict columns
        match, and returns the stored representation.
        """
        response = await self._request(
            "POST",
            table,
            params={"on_conflict": ",".join(on_conflict)},
            json=[row],
            headers={"Prefer": "resolution=merge-duplicates,return=representation"},
        )

        rows = response.json()
        if not rows:
            raise RecordStoreError(f"Upsert into {table} returned no rows")
        return rows[0]

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        table: str,
        params: Optional[dict[str, str]] = None,
        json: Optional[Any] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> httpx.Response:
        url = f"{self._config.rest_url}/{table}"

        try:
            response = await self._client.request(
                method,
                url,
                params=params,
                json=json,
                headers={**self._headers, **(headers or {})},
            )
        except httpx.HTTPError as e:
            logger.error(
                "Record store request failed",
                extra={"table": table, "method": method, "error": str(e)}
            )
            raise RecordStoreError(f"Request to {table} failed: {e}")

        if not response.is_success:
            message = _error_message(response)
            logger.error(
                "Record store request rejected",
                extra={
                    "table": table,
                    "method": method,
                    "status": response.status_code,
                    "error": message,
                }
            )
            raise RecordStoreError(message)

        return response


def _error_message(response: httpx.Response) -> str:
    """PostgREST errors carry a JSON body with a message field."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"{response.status_code} {response.reason_phrase}"


# ---------------------------------------------------------------------------
# Mock Record Store for Local Development
# ---------------------------------------------------------------------------

class MockRecordStore:
    """
    In-memory record store.

    Implements just enough of the REST semantics for the repositories:
    equality filters, and upserts that merge into the row whose key columns
    match. Rows get a generated string id like the real tables.
    """

    def __init__(self, tables: Optional[dict[str, list[Row]]] = None) -> None:
        self._tables: dict[str, list[Row]] = {
            name: [dict(row) for row in rows] for name, rows in (tables or {}).items()
        }
        logger.info("Initialized mock record store (in-memory)")

    def rows(self, table: str) -> list[Row]:
        """Copy of every row in a table."""
        return [dict(row) for row in self._tables.get(table, [])]

    async def select(
        self,
        table: str,
        filters: dict[str, Any],
        columns: str = "*",
        limit: Optional[int] = None,
    ) -> list[Row]:
        matches = [
            row for row in self._tables.get(table, [])
            if all(row.get(column) == value for column, value in filters.items())
        ]
        if limit is not None:
            matches = matches[:limit]

        if columns == "*":
            return [dict(row) for row in matches]

        wanted = [column.strip() for column in columns.split(",")]
        return [{column: row.get(column) for column in wanted} for row in matches]

    async def upsert(self, table: str, row: Row, on_conflict: Sequence[str]) -> Row:
        rows = self._tables.setdefault(table, [])

        for existing in rows:
            if all(existing.get(column) == row.get(column) for column in on_conflict):
                existing.update(row)
                return dict(existing)

        stored = {"id": str(uuid4()), **row}
        rows.append(stored)
        return dict(stored)


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_record_store(
    config: Optional[RecordStoreConfig] = None,
    mock_mode: bool = False,
    client: Optional[httpx.AsyncClient] = None,
) -> RecordStore:
    """
    Create record store based on configuration.

    Args:
        config: REST configuration (required if not mock_mode)
        mock_mode: If True, return the in-memory store
        client: Optional shared httpx client

    Returns:
        RecordStore implementation (REST or Mock)
    """
    if mock_mode:
        return MockRecordStore()

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return RestRecordStore(config, client=client)
