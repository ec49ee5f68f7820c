"""File attachments for records of a mobile backend table.

This package lets an application attach binary files to table records. The
backend keeps track of which files belong to which record and issues storage
tokens; the blobs themselves live in cloud storage and are transferred
directly by a storage provider.

Core Components:
    - FilesClientRegistry: One memoised files client per backend connection
    - MobileServiceTableFiles: Record-level file operations for one table
    - MobileServiceFilesClient: Files client over a backend and a provider
    - AzureBlobStorageProvider: Blob transfer with azure-storage-blob

Quick Start:

    >>> from mobile_service_files import FilesClientRegistry, MobileServiceTableFiles
    >>> registry = FilesClientRegistry()
    >>> files = MobileServiceTableFiles(todo_table, registry=registry)
    >>> file = await files.add_file(item, "notes.txt", b"Hello, world!")
    >>> (await files.open_file(file)).read()
    b'Hello, world!'

Exception Handling:

    >>> from mobile_service_files import RecordIdError
    >>> try:
    ...     await files.get_files(object())
    ... except RecordIdError:
    ...     print("Record has no id")

Supported Operations:
    - get_files() - List the files of a record
    - create_file() - Build a file descriptor for a record
    - add_file() - Upload a new file for a record
    - upload_from_stream() / upload_file() - Upload content for a descriptor
    - delete_file() / delete() - Remove a file
    - get_file_uri() - Obtain a time-limited access URI
    - download_to_stream() - Download into a writable stream
    - get_file() / open_file() - Download into memory
    - iter_file() - Stream a download chunk by chunk

"""

from .azure_provider import AzureBlobStorageProvider
from .data_sources import PathFileDataSource, StreamFileDataSource
from .factory import (
    StorageProviderFactory,
    default_files_client,
    files_client_factory,
    register_storage_provider,
)
from .files_client import MobileServiceFilesClient
from .interfaces import (
    DEFAULT_CHUNK_SIZE,
    BlobProperties,
    FileDataSource,
    FileLocation,
    FilesClient,
    HasRecordId,
    MobileServiceClient,
    MobileServiceFile,
    MobileServiceFileMetadata,
    MobileServiceFilesError,
    MobileServiceTable,
    RecordIdError,
    StoragePermissions,
    StorageProvider,
    StorageProviderError,
    StorageToken,
    StorageTokenScope,
)
from .registry import FilesClientRegistry
from .tables import MobileServiceTableFiles, get_files_client, upload
from .utils import get_record_id, resolve_record_id

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "AzureBlobStorageProvider",
    "BlobProperties",
    "FileDataSource",
    "FileLocation",
    "FilesClient",
    "FilesClientRegistry",
    "HasRecordId",
    "MobileServiceClient",
    "MobileServiceFile",
    "MobileServiceFileMetadata",
    "MobileServiceFilesClient",
    "MobileServiceFilesError",
    "MobileServiceTable",
    "MobileServiceTableFiles",
    "PathFileDataSource",
    "RecordIdError",
    "StoragePermissions",
    "StorageProvider",
    "StorageProviderError",
    "StorageProviderFactory",
    "StorageToken",
    "StorageTokenScope",
    "StreamFileDataSource",
    "default_files_client",
    "files_client_factory",
    "get_files_client",
    "get_record_id",
    "register_storage_provider",
    "resolve_record_id",
    "upload",
]
