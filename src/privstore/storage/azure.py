"""Azure blob storage key-value backend."""

import asyncio
import logging
from typing import Optional

from ..errors import BackendError

logger = logging.getLogger(__name__)


class AzureKeyValueStore:
    """
    Azure Blob Storage implementation.

    One blob per key, stored with sharding: prefix/ab/cd/<hex(key)>
    """

    def __init__(self, connection_string: str, container: str, prefix: str = "", client=None):
        """
        Initialize Azure key-value store.

        Args:
            connection_string: Azure Storage connection string
            container: Container name
            prefix: Optional key prefix
            client: Pre-built BlobServiceClient (connection_string is then ignored)
        """
        try:
            from azure.core.exceptions import AzureError, ResourceNotFoundError
            from azure.storage.blob import BlobServiceClient
        except ImportError:
            raise ImportError(
                "azure-storage-blob required for Azure blob storage. "
                "Install with: pip install 'privstore[azure]'"
            )

        self._not_found = ResourceNotFoundError
        self._azure_error = AzureError
        self.client = client or BlobServiceClient.from_connection_string(connection_string)
        self.container = container
        self.prefix = prefix.strip("/") if prefix else ""

        # Ensure container exists
        container_client = self.client.get_container_client(container)
        if not container_client.exists():
            container_client.create_container()

    def blob_name(self, key: bytes) -> str:
        """Blob name for a key."""
        name = bytes(key).hex()
        parts = []
        if self.prefix:
            parts.append(self.prefix)
        parts.extend([name[:2], name[2:4], name])
        return "/".join(parts)

    async def put(self, key: bytes, value: bytes) -> None:
        await self._run("put", key, self._upload, key, bytes(value))

    async def get(self, key: bytes) -> Optional[bytes]:
        return await self._run("get", key, self._download, key)

    async def close(self) -> None:
        await asyncio.get_running_loop().run_in_executor(None, self.client.close)

    async def _run(self, operation: str, key: bytes, fn, *args):
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, fn, *args)
        except self._azure_error as e:
            logger.warning("Azure %s failed in container %s: %s", operation, self.container, e)
            raise BackendError(operation, bytes(key), str(e)) from e

    def _upload(self, key: bytes, value: bytes) -> None:
        blob_client = self.client.get_blob_client(
            container=self.container,
            blob=self.blob_name(key)
        )
        blob_client.upload_blob(value, overwrite=True)

    def _download(self, key: bytes) -> Optional[bytes]:
        blob_client = self.client.get_blob_client(
            container=self.container,
            blob=self.blob_name(key)
        )
        try:
            return blob_client.download_blob().readall()
        except self._not_found:
            return None
