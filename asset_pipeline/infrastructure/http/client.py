"""
HTTP access for source images and existence probes.

Thin wrappers around a shared httpx.AsyncClient:
- HttpImageDownloader: GET an image, fail on any non-success status
- HttpUrlProbe: HEAD a URL and report whether it answered with success

Neither retries. The migration paces itself and re-runs are idempotent, so
a failed download is simply recorded and picked up on the next run.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


class DownloadError(Exception):
    """Raised when a source image can't be retrieved."""
    pass


@dataclass
class HttpConfig:
    """Configuration for outbound HTTP."""
    timeout_seconds: float = 30.0
    user_agent: str = "hotel-asset-pipeline/0.1"
    follow_redirects: bool = True

    def __post_init__(self) -> None:
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")


def create_http_client(
    config: Optional[HttpConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """
    Build the shared async client.

    `transport` is for tests (httpx.MockTransport).
    """
    config = config or HttpConfig()
    return httpx.AsyncClient(
        timeout=config.timeout_seconds,
        follow_redirects=config.follow_redirects,
        headers={"User-Agent": config.user_agent},
        transport=transport,
    )


class HttpImageDownloader:
    """Downloads source images."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def download(self, url: str) -> bytes:
        """
        Return the response body.

        Raises:
            DownloadError: On a non-success status or a transport error
        """
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as e:
            logger.error(
                "Failed to download image",
                extra={"url": url, "error": str(e)}
            )
            raise DownloadError(f"Failed to download image: {type(e).__name__}: {e}")

        if not response.is_success:
            logger.error(
                "Failed to download image",
                extra={"url": url, "status": response.status_code}
            )
            raise DownloadError(
                f"Failed to download image: {response.status_code} {response.reason_phrase}"
            )

        logger.debug(
            "Downloaded image",
            extra={"url": url, "size_bytes": len(response.content)}
        )
        return response.content


class HttpUrlProbe:
    """
    Existence probe using HEAD.

    Transport errors propagate; callers decide what a failed probe means.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def exists(self, url: str) -> bool:
        response = await self._client.head(url)
        return response.is_success
