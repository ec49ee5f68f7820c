"""Files client combining the mobile backend and a blob storage provider.

The backend owns the list of files attached to each record and removes
them on request; blob content itself moves directly between this process
and storage through the configured :class:`StorageProvider`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, BinaryIO
from urllib.parse import quote

from .interfaces import (
    FilesClient,
    MobileServiceFile,
    StorageProvider,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from .interfaces import (
        FileDataSource,
        MobileServiceClient,
        MobileServiceFileMetadata,
        StoragePermissions,
    )

logger = logging.getLogger(__name__)


def record_path(table_name: str, record_id: str) -> str:
    """Return the backend route of one table record."""
    return "/".join(("tables", quote(table_name, safe=""), quote(record_id, safe="")))


def record_files_path(table_name: str, record_id: str) -> str:
    """Return the backend route listing the files of one record."""
    return f"{record_path(table_name, record_id)}/MobileServiceFiles"


class MobileServiceFilesClient(FilesClient):
    """Files client bound to one mobile backend connection."""

    def __init__(
        self,
        client: MobileServiceClient,
        storage_provider: StorageProvider,
    ) -> None:
        """Bind the client to a backend connection and a storage provider."""
        if not isinstance(storage_provider, StorageProvider):
            message = "storage_provider must be a StorageProvider"
            raise TypeError(message)
        self.client = client
        self.storage_provider = storage_provider

    async def get_files(
        self,
        table_name: str,
        record_id: str,
    ) -> list[MobileServiceFile]:
        """List the files the backend holds for a record."""
        response = await self.client.invoke_api(
            record_files_path(table_name, record_id),
            method="GET",
        )
        return [MobileServiceFile.from_dict(item) for item in _as_list(response)]

    async def upload_file(
        self,
        metadata: MobileServiceFileMetadata,
        data_source: FileDataSource,
    ) -> None:
        """Upload a data source's content and record the resulting blob state."""
        stream = await data_source.open()
        try:
            properties = await self.storage_provider.upload_file(metadata, stream)
        finally:
            data_source.release(stream)
        metadata.apply(properties)
        logger.debug(
            "Uploaded %s for %s/%s (%d bytes)",
            metadata.file_name,
            metadata.parent_data_item_type,
            metadata.parent_data_item_id,
            metadata.length,
        )

    async def download_to_stream(
        self,
        file: MobileServiceFile,
        stream: BinaryIO,
    ) -> None:
        """Write a file's content into ``stream``."""
        await self.storage_provider.download_file_to_stream(file, stream)

    async def iter_file(
        self,
        file: MobileServiceFile,
        *,
        chunk_size: int | None = None,
    ) -> AsyncIterator[bytes]:
        """Yield a file's content chunk by chunk."""
        async for chunk in self.storage_provider.iter_file(file, chunk_size=chunk_size):
            yield chunk

    async def delete_file(self, metadata: MobileServiceFileMetadata) -> None:
        """Ask the backend to remove a file from its record."""
        path = "/".join(
            (
                record_files_path(
                    metadata.parent_data_item_type,
                    metadata.parent_data_item_id,
                ),
                quote(metadata.file_name, safe=""),
            ),
        )
        await self.client.invoke_api(path, method="DELETE")
        logger.debug(
            "Deleted %s from %s/%s",
            metadata.file_name,
            metadata.parent_data_item_type,
            metadata.parent_data_item_id,
        )

    async def get_file_uri(
        self,
        file: MobileServiceFile,
        permissions: StoragePermissions,
    ) -> str:
        """Return a time-limited URI for a file."""
        return await self.storage_provider.get_file_uri(file, permissions)


def _as_list(response: Any) -> list[Any]:
    """Return the items of a list response, tolerating an empty body."""
    if response is None:
        return []
    if isinstance(response, list):
        return response
    message = f"Unexpected files listing payload: {type(response).__name__}"
    raise TypeError(message)
