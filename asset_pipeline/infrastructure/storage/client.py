"""
Object storage client for migrated images.

Talks to the storage project's S3-compatible endpoint. Using the S3 API
instead of a vendor SDK:
- put_object overwrites by key, which is upsert-by-path
- The same code works against S3, R2 or MinIO

Mock mode stores objects in memory, enabling full migration runs without
provisioning storage.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when storage operations fail."""
    pass


@dataclass
class StorageConfig:
    """
    Configuration for the S3-compatible storage endpoint.

    Kept as a dataclass so test configurations are trivial to build.
    """
    access_key_id: str
    secret_access_key: str
    endpoint_url: str
    region: str = "us-east-1"


class StorageClient(Protocol):
    """
    Protocol for object storage operations.

    Tests provide the in-memory client; the migration doesn't know which
    backend it is writing to.
    """

    async def upload_object(
        self,
        container: str,
        path: str,
        data: bytes,
        content_type: str,
        upsert: bool = True,
    ) -> str:
        """Upload bytes and return the stored path."""
        ...

    async def object_exists(self, container: str, path: str) -> bool:
        """Whether an object is stored at (container, path)."""
        ...


def _clean_path(path: str) -> str:
    """Object keys never start with a slash."""
    return path[1:] if path.startswith("/") else path


class S3StorageClient:
    """
    S3-compatible object storage client.

    All methods are async to match the Protocol even though boto3 is
    synchronous. This keeps the interface consistent with truly async
    clients.
    """

    def __init__(self, config: StorageConfig) -> None:
        """
        Initialize the client with boto3.

        boto3 is imported here (not at module level) so mock mode doesn't
        need it installed.
        """
        try:
            import boto3
            from botocore.config import Config
        except ImportError:
            raise ImportError(
                "boto3 is required for object storage. Install with: pip install boto3"
            )

        self._config = config

        # path-style addressing: buckets are path segments under the endpoint
        boto_config = Config(
            signature_version='s3v4',
            s3={'addressing_style': 'path'},
        )

        self._s3_client = boto3.client(
            's3',
            endpoint_url=config.endpoint_url,
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
            region_name=config.region,
            config=boto_config,
        )

        logger.info(
            "Initialized S3 storage client",
            extra={"endpoint": config.endpoint_url}
        )

    async def upload_object(
        self,
        container: str,
        path: str,
        data: bytes,
        content_type: str,
        upsert: bool = True,
    ) -> str:
        """
        Upload an object.

        With upsert, an existing object at the same path is overwritten.
        Without it, an existing object is an error.
        """
        storage_path = _clean_path(path)

        if not upsert and await self.object_exists(container, storage_path):
            raise StorageError(f"Upload failed: object already exists: {container}/{storage_path}")

        try:
            self._s3_client.put_object(
                Bucket=container,
                Key=storage_path,
                Body=data,
                ContentType=content_type,
                Metadata={'upload-source': 'migration'},
            )

            logger.debug(
                "Uploaded object",
                extra={
                    "container": container,
                    "storage_path": storage_path,
                    "size_bytes": len(data),
                }
            )

            return storage_path

        except Exception as e:
            logger.error(
                "Failed to upload object",
                extra={
                    "container": container,
                    "storage_path": storage_path,
                    "error": str(e),
                }
            )
            raise StorageError(f"Upload failed: {e}")

    async def object_exists(self, container: str, path: str) -> bool:
        """Check for an object with a HEAD request."""
        from botocore.exceptions import ClientError

        try:
            self._s3_client.head_object(Bucket=container, Key=_clean_path(path))
            return True
        except ClientError as e:
            code = e.response.get('Error', {}).get('Code', '')
            if code in ('404', 'NoSuchKey', 'NotFound'):
                return False
            logger.error(
                "Failed to check object",
                extra={"container": container, "storage_path": path, "error": str(e)}
            )
            raise StorageError(f"Existence check failed: {e}")


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

class MockStorageClient:
    """
    In-memory storage for local development and tests.

    Objects are kept in a dictionary keyed by (container, path), so
    re-uploading the same path replaces the object like the real endpoint.
    """

    def __init__(self) -> None:
        self._objects: dict[tuple[str, str], tuple[bytes, str]] = {}
        self.upload_count = 0
        logger.info("Initialized mock storage client (in-memory)")

    async def upload_object(
        self,
        container: str,
        path: str,
        data: bytes,
        content_type: str,
        upsert: bool = True,
    ) -> str:
        """Store object in memory."""
        storage_path = _clean_path(path)
        key = (container, storage_path)

        if not upsert and key in self._objects:
            raise StorageError(f"Upload failed: object already exists: {container}/{storage_path}")

        self._objects[key] = (data, content_type)
        self.upload_count += 1

        logger.debug(
            "Stored object in mock storage",
            extra={
                "container": container,
                "storage_path": storage_path,
                "size_bytes": len(data),
            }
        )

        return storage_path

    async def object_exists(self, container: str, path: str) -> bool:
        return (container, _clean_path(path)) in self._objects

    def get_object(self, container: str, path: str) -> bytes:
        """Retrieve stored bytes. Raises StorageError if missing."""
        key = (container, _clean_path(path))
        if key not in self._objects:
            raise StorageError(f"Object not found: {container}/{path}")
        return self._objects[key][0]

    @property
    def object_count(self) -> int:
        return len(self._objects)


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_storage_client(
    config: Optional[StorageConfig] = None,
    mock_mode: bool = False,
) -> StorageClient:
    """
    Create storage client based on configuration.

    Args:
        config: Storage configuration (required if not mock_mode)
        mock_mode: If True, return the in-memory client

    Returns:
        StorageClient implementation (S3 or Mock)
    """
    if mock_mode:
        return MockStorageClient()

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return S3StorageClient(config)
