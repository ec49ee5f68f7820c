"""Record-level file operations for backend tables.

Every operation resolves the files client of the table's connection through
a :class:`FilesClientRegistry` owned by the application and forwards to it.

Example:
    >>> registry = FilesClientRegistry()
    >>> files = MobileServiceTableFiles(todo_table, registry=registry)
    >>> with open("photo.jpg", "rb") as fh:
    ...     file = await files.add_file(item, "photo.jpg", fh)
    >>> [f.name for f in await files.get_files(item)]
    ['photo.jpg']

"""

from __future__ import annotations

import io
from typing import TYPE_CHECKING, Any, BinaryIO

from .data_sources import StreamFileDataSource
from .factory import default_files_client
from .interfaces import MobileServiceFile, MobileServiceFileMetadata
from .utils import resolve_record_id
from .validation import (
    validate_file,
    validate_file_name,
    validate_permissions,
    validate_stream,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from .interfaces import (
        FileDataSource,
        FilesClient,
        MobileServiceClient,
        MobileServiceTable,
        StoragePermissions,
    )
    from .registry import FilesClientFactory, FilesClientRegistry


def get_files_client(
    client: MobileServiceClient,
    *,
    registry: FilesClientRegistry,
    factory: FilesClientFactory | None = None,
) -> FilesClient:
    """Return the files client of a backend connection.

    Args:
        client: Backend connection handle.
        registry: Registry memoising one files client per connection.
        factory: Builds the files client on first use. Defaults to an
            Azure Blob Storage backed client.

    """
    return registry.get_or_create(client, factory or default_files_client)


async def upload(
    client: MobileServiceClient,
    file: MobileServiceFile,
    data_source: FileDataSource,
    *,
    registry: FilesClientRegistry,
    factory: FilesClientFactory | None = None,
) -> MobileServiceFileMetadata:
    """Upload a data source as the content of ``file``.

    Returns:
        The transfer metadata, refreshed with the state of the stored blob.

    """
    validate_file(file)
    metadata = MobileServiceFileMetadata.from_file(file)
    files_client = get_files_client(client, registry=registry, factory=factory)
    await files_client.upload_file(metadata, data_source)
    return metadata


class MobileServiceTableFiles:
    """File attachments for the records of one backend table.

    Record arguments accept either the record identifier as a string or a
    record value carrying a string ``id`` (or ``Id``) field.
    """

    def __init__(
        self,
        table: MobileServiceTable,
        *,
        registry: FilesClientRegistry,
        factory: FilesClientFactory | None = None,
    ) -> None:
        """Bind the table to the registry its files clients live in."""
        self.table = table
        self.registry = registry
        self._factory = factory

    @property
    def table_name(self) -> str:
        """Name of the bound table."""
        return self.table.table_name

    @property
    def files_client(self) -> FilesClient:
        """Files client of the table's connection."""
        return get_files_client(
            self.table.client,
            registry=self.registry,
            factory=self._factory,
        )

    async def get_files(self, record: Any) -> list[MobileServiceFile]:
        """List the files attached to a record."""
        record_id = resolve_record_id(record)
        return await self.files_client.get_files(self.table_name, record_id)

    def create_file(self, record: Any, file_name: str) -> MobileServiceFile:
        """Return a descriptor for a file of a record, without any I/O."""
        validate_file_name(file_name)
        return MobileServiceFile.create(
            file_name,
            self.table_name,
            resolve_record_id(record),
        )

    async def get_file_uri(
        self,
        file: MobileServiceFile,
        permissions: StoragePermissions,
    ) -> str:
        """Return a time-limited URI granting ``permissions`` on a file."""
        validate_file(file)
        validate_permissions(permissions)
        return await self.files_client.get_file_uri(file, permissions)

    async def add_file(
        self,
        record: Any,
        file_name: str,
        stream: bytes | str | BinaryIO,
    ) -> MobileServiceFile:
        """Upload ``stream`` as a new file of a record.

        Returns:
            The descriptor of the uploaded file.

        """
        file = self.create_file(record, file_name)
        await self.upload_from_stream(file, stream)
        return file

    async def upload_from_stream(
        self,
        file: MobileServiceFile,
        stream: bytes | str | BinaryIO,
    ) -> MobileServiceFileMetadata:
        """Upload a stream as the content of an existing descriptor.

        Raises:
            ValueError: If file or stream is None.

        """
        validate_file(file)
        validate_stream(stream, name="file_stream")
        return await self.upload_file(file, StreamFileDataSource(stream))

    async def upload_file(
        self,
        file: MobileServiceFile,
        data_source: FileDataSource,
    ) -> MobileServiceFileMetadata:
        """Upload a data source as the content of a file."""
        return await upload(
            self.table.client,
            file,
            data_source,
            registry=self.registry,
            factory=self._factory,
        )

    async def delete_file(self, record: Any, file_name: str) -> None:
        """Delete the named file of a record."""
        await self.delete(self.create_file(record, file_name))

    async def delete(self, file: MobileServiceFile) -> None:
        """Delete a file from its record."""
        validate_file(file)
        metadata = MobileServiceFileMetadata.from_file(file)
        await self.files_client.delete_file(metadata)

    async def download_to_stream(
        self,
        file: MobileServiceFile,
        stream: BinaryIO,
    ) -> None:
        """Download a file into a writable binary stream."""
        validate_file(file)
        validate_stream(stream)
        await self.files_client.download_to_stream(file, stream)

    async def get_file(self, record: Any, file_name: str) -> io.BytesIO:
        """Download the named file of a record into memory."""
        return await self.open_file(self.create_file(record, file_name))

    async def open_file(self, file: MobileServiceFile) -> io.BytesIO:
        """Download a file into memory and return it rewound for reading.

        The whole file is buffered; use :meth:`iter_file` for large files.
        """
        buffer = io.BytesIO()
        await self.download_to_stream(file, buffer)
        buffer.seek(0)
        return buffer

    async def iter_file(
        self,
        file: MobileServiceFile,
        *,
        chunk_size: int | None = None,
    ) -> AsyncIterator[bytes]:
        """Yield a file's content as it arrives from storage."""
        validate_file(file)
        async for chunk in self.files_client.iter_file(file, chunk_size=chunk_size):
            yield chunk
