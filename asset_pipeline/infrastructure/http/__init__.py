"""
Outbound HTTP: image downloads and HEAD probes.
"""

from .client import (
    DownloadError,
    HttpConfig,
    HttpImageDownloader,
    HttpUrlProbe,
    create_http_client,
)

__all__ = [
    "DownloadError",
    "HttpConfig",
    "HttpImageDownloader",
    "HttpUrlProbe",
    "create_http_client",
]
