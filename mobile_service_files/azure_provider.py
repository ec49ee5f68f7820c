"""Azure Blob Storage provider authorised by backend-issued SAS tokens.

The mobile backend never proxies blob content. For every transfer the
provider asks the backend for a storage token scoped to the record or file,
then talks to Azure Blob Storage directly with ``azure-storage-blob``.

Example:
    >>> provider = AzureBlobStorageProvider(mobile_client, {"max_concurrency": 4})
    >>> uri = await provider.get_file_uri(file, StoragePermissions.READ)

"""

from __future__ import annotations

import base64
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, BinaryIO, Callable
from urllib.parse import quote

from .files_client import record_path
from .interfaces import (
    DEFAULT_CHUNK_SIZE,
    BlobProperties,
    StoragePermissions,
    StorageProvider,
    StorageProviderError,
    StorageToken,
    StorageTokenScope,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from .interfaces import (
        MobileServiceClient,
        MobileServiceFile,
        MobileServiceFileMetadata,
    )

logger = logging.getLogger(__name__)


class AzureBlobStorageProvider(StorageProvider):
    """Storage provider uploading and downloading blobs in Azure Storage."""

    def __init__(
        self,
        client: MobileServiceClient,
        connection_info: Mapping[str, Any] | None = None,
        *,
        blob_client_factory: Callable[..., Any] | None = None,
    ) -> None:
        """Initialise the provider for one backend connection.

        Args:
            client: Backend client used to request storage tokens.
            connection_info: Optional transfer settings (``max_concurrency``,
                ``chunk_size``).
            blob_client_factory: Callable with the signature of
                ``BlobClient.from_blob_url`` returning an async blob client
                for a SAS URL. Defaults to ``BlobClient.from_blob_url``.

        """
        if connection_info is None:
            connection_info = {}
        if not isinstance(connection_info, Mapping):
            message = "connection_info must be a mapping"
            raise TypeError(message)

        self._client = client
        self._max_concurrency = int(connection_info.get("max_concurrency", 1))
        if self._max_concurrency < 1:
            message = "'max_concurrency' must be at least 1"
            raise ValueError(message)
        self._chunk_size = int(connection_info.get("chunk_size", DEFAULT_CHUNK_SIZE))
        if self._chunk_size <= 0:
            message = "'chunk_size' must be positive"
            raise ValueError(message)
        self._blob_client_factory = blob_client_factory

    async def request_storage_token(
        self,
        file: MobileServiceFile,
        permissions: StoragePermissions,
    ) -> StorageToken:
        """Ask the backend for a token granting ``permissions`` on ``file``."""
        body = {
            "Permissions": permissions.value,
            "TargetFile": file.as_dict(),
            "ScopedEntityId": file.name,
        }
        response = await self._client.invoke_api(
            f"{record_path(file.table_name, file.parent_id)}/StorageToken",
            method="POST",
            body=body,
        )
        if not isinstance(response, Mapping):
            raise StorageProviderError.token_request_failed(file.name)
        try:
            return StorageToken.from_dict(response)
        except (KeyError, TypeError, ValueError) as exc:
            raise StorageProviderError.token_request_failed(file.name) from exc

    async def upload_file(
        self,
        metadata: MobileServiceFileMetadata,
        stream: BinaryIO,
    ) -> BlobProperties:
        """Upload a stream as the blob for ``metadata``."""
        file = metadata.to_file()
        url = await self._blob_url(file, StoragePermissions.WRITE)
        async with self._blob_client(url) as blob:
            await blob.upload_blob(
                stream,
                overwrite=True,
                max_concurrency=self._max_concurrency,
            )
            properties = await blob.get_blob_properties()
        logger.debug("Uploaded blob for %s", file.name)
        return _to_blob_properties(properties)

    async def download_file_to_stream(
        self,
        file: MobileServiceFile,
        stream: BinaryIO,
    ) -> None:
        """Download the blob for ``file`` into ``stream``."""
        url = await self._blob_url(file, StoragePermissions.READ)
        async with self._blob_client(url) as blob:
            downloader = await blob.download_blob(
                max_concurrency=self._max_concurrency,
            )
            await downloader.readinto(stream)

    async def iter_file(
        self,
        file: MobileServiceFile,
        *,
        chunk_size: int | None = None,
    ) -> AsyncIterator[bytes]:
        """Yield the blob for ``file`` chunk by chunk."""
        url = await self._blob_url(file, StoragePermissions.READ)
        async with self._blob_client(url, chunk_size=chunk_size) as blob:
            downloader = await blob.download_blob()
            async for chunk in downloader.chunks():
                yield chunk

    async def get_file_uri(
        self,
        file: MobileServiceFile,
        permissions: StoragePermissions,
    ) -> str:
        """Return a SAS URI for ``file`` valid for the token lifetime."""
        return await self._blob_url(file, permissions)

    async def _blob_url(
        self,
        file: MobileServiceFile,
        permissions: StoragePermissions,
    ) -> str:
        """Return the SAS-authorised URL of the blob holding ``file``."""
        token = await self.request_storage_token(file, permissions)
        if token.scope is StorageTokenScope.FILE:
            return f"{token.resource_uri}{token.raw_token}"
        container = token.resource_uri.rstrip("/")
        return f"{container}/{quote(file.name)}{token.raw_token}"

    def _blob_client(self, url: str, *, chunk_size: int | None = None) -> Any:
        """Return an async blob client for a SAS URL.

        ``chunk_size`` bounds every ranged GET, the first one included.
        """
        size = chunk_size or self._chunk_size
        if self._blob_client_factory is not None:
            return self._blob_client_factory(
                url,
                max_single_get_size=size,
                max_chunk_get_size=size,
            )
        try:
            from azure.storage.blob.aio import (  # type: ignore[import-not-found]
                BlobClient,
            )
        except ImportError as exc:  # pragma: no cover
            raise StorageProviderError.missing_dependency() from exc
        return BlobClient.from_blob_url(
            url,
            max_single_get_size=size,
            max_chunk_get_size=size,
        )


def _to_blob_properties(properties: Any) -> BlobProperties:
    """Convert SDK blob properties to the library's snapshot type."""
    content_settings = getattr(properties, "content_settings", None)
    raw_md5 = getattr(content_settings, "content_md5", None)
    content_md5 = base64.b64encode(bytes(raw_md5)).decode("ascii") if raw_md5 else None
    return BlobProperties(
        content_md5=content_md5,
        length=int(getattr(properties, "size", 0) or 0),
        last_modified=getattr(properties, "last_modified", None),
    )
