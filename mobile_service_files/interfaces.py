"""Core interfaces and data structures for record file attachments."""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, BinaryIO, Protocol

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Mapping

DEFAULT_CHUNK_SIZE = 4 * 1024 * 1024


class MobileServiceFilesError(RuntimeError):
    """Base exception for file attachment operations."""

    def __init__(
        self,
        message: str,
        *,
        file_name: str | None = None,
    ) -> None:
        """Initialise the base error with an optional file name context."""
        detail = message if file_name is None else ": ".join((message, file_name))
        super().__init__(detail)
        self.message = message
        self.file_name = file_name


class RecordIdError(MobileServiceFilesError, ValueError):
    """Raised when a record does not carry a usable identifier."""

    def __init__(self, record: Any) -> None:
        """Create an error describing the record that lacks an identifier."""
        super().__init__(
            f"Record of type {type(record).__name__} has no readable string 'id'",
        )
        self.record = record


class StorageProviderError(MobileServiceFilesError):
    """Raised when the storage provider cannot complete a request."""

    @classmethod
    def missing_dependency(cls) -> StorageProviderError:
        """Return an error indicating the azure-storage-blob package is absent."""
        return cls(
            "Install the 'azure-storage-blob' and 'aiohttp' packages "
            "to use AzureBlobStorageProvider",
        )

    @classmethod
    def token_request_failed(cls, file_name: str) -> StorageProviderError:
        """Return an error describing an unusable storage token response."""
        return cls("Backend returned an invalid storage token", file_name=file_name)

    @classmethod
    def unknown_provider(cls, name: str, supported: str) -> StorageProviderError:
        """Return an error for an unregistered provider name."""
        return cls(f"Unsupported storage provider: '{name}'. Supported: {supported}")


class StoragePermissions(enum.Flag):
    """Permissions requested for a storage token."""

    NONE = 0
    READ = 1
    ADD = 2
    WRITE = 4
    DELETE = 8
    READ_WRITE = READ | ADD | WRITE | DELETE


class StorageTokenScope(enum.Enum):
    """Breadth of the resource a storage token grants access to."""

    FILE = "File"
    RECORD = "Record"


class FileLocation(enum.Enum):
    """Where the authoritative copy of a file currently lives."""

    LOCAL = "Local"
    SERVER = "Server"


@dataclass(frozen=True)
class MobileServiceFile:
    """A named file attached to one record of a backend table."""

    id: str
    name: str
    table_name: str
    parent_id: str
    content_md5: str | None = None
    length: int = 0
    last_modified: datetime | None = None
    storage_uri: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        name: str,
        table_name: str,
        parent_id: str,
    ) -> MobileServiceFile:
        """Return a new descriptor whose identifier is its file name."""
        return cls(id=name, name=name, table_name=table_name, parent_id=parent_id)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> MobileServiceFile:
        """Build a file descriptor from the backend's JSON representation."""
        name = str(payload["name"])
        return cls(
            id=str(payload.get("id") or name),
            name=name,
            table_name=str(payload["tableName"]),
            parent_id=str(payload["parentId"]),
            content_md5=payload.get("contentMD5"),
            length=int(payload.get("length") or 0),
            last_modified=_parse_timestamp(payload.get("lastModified")),
            storage_uri=payload.get("storeUri"),
            metadata=dict(payload.get("metadata") or {}),
        )

    def as_dict(self) -> dict:
        """Return a JSON-serialisable representation."""
        return {
            "id": self.id,
            "name": self.name,
            "tableName": self.table_name,
            "parentId": self.parent_id,
            "contentMD5": self.content_md5,
            "length": self.length,
            "lastModified": self.last_modified.isoformat()
            if self.last_modified
            else None,
            "storeUri": self.storage_uri,
            "metadata": dict(self.metadata),
        }

    def with_properties(self, properties: BlobProperties) -> MobileServiceFile:
        """Return a copy refreshed with properties reported by storage."""
        return replace(
            self,
            content_md5=properties.content_md5,
            length=properties.length,
            last_modified=properties.last_modified,
        )


@dataclass
class MobileServiceFileMetadata:
    """Mutable transfer state for a file, derived from its descriptor."""

    file_id: str
    file_name: str
    parent_data_item_type: str
    parent_data_item_id: str
    content_md5: str | None = None
    length: int = 0
    last_modified: datetime | None = None
    location: FileLocation = FileLocation.LOCAL
    metadata: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_file(cls, file: MobileServiceFile) -> MobileServiceFileMetadata:
        """Derive transfer metadata from a file descriptor."""
        return cls(
            file_id=file.id,
            file_name=file.name,
            parent_data_item_type=file.table_name,
            parent_data_item_id=file.parent_id,
            content_md5=file.content_md5,
            length=file.length,
            last_modified=file.last_modified,
            metadata=dict(file.metadata),
        )

    def apply(self, properties: BlobProperties) -> None:
        """Record the state of a blob that has reached the server."""
        self.content_md5 = properties.content_md5
        self.length = properties.length
        self.last_modified = properties.last_modified
        self.location = FileLocation.SERVER

    def to_file(self) -> MobileServiceFile:
        """Return the file descriptor this metadata describes."""
        return MobileServiceFile(
            id=self.file_id,
            name=self.file_name,
            table_name=self.parent_data_item_type,
            parent_id=self.parent_data_item_id,
            content_md5=self.content_md5,
            length=self.length,
            last_modified=self.last_modified,
            metadata=dict(self.metadata),
        )


@dataclass(frozen=True)
class BlobProperties:
    """Snapshot of the properties storage reports for a blob."""

    content_md5: str | None
    length: int
    last_modified: datetime | None


@dataclass(frozen=True)
class StorageToken:
    """Shared access token issued by the backend for one record or file."""

    raw_token: str
    resource_uri: str
    permissions: StoragePermissions
    scope: StorageTokenScope
    entity_id: str | None = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> StorageToken:
        """Parse the backend's storage token response."""
        return cls(
            raw_token=str(payload["RawToken"]),
            resource_uri=str(payload["ResourceUri"]),
            permissions=StoragePermissions(int(payload.get("Permissions", 0))),
            scope=StorageTokenScope(payload.get("Scope", "Record")),
            entity_id=payload.get("EntityId"),
        )


class MobileServiceClient(Protocol):
    """Subset of a mobile-backend client used to reach the files endpoints."""

    async def invoke_api(
        self,
        path: str,
        *,
        method: str,
        body: Any | None = None,
        params: Mapping[str, str] | None = None,
    ) -> Any:
        """Invoke a backend route and return its decoded JSON body."""
        ...


class MobileServiceTable(Protocol):
    """A backend table bound to the client that owns it."""

    @property
    def table_name(self) -> str:
        """Name of the table on the backend."""
        ...

    @property
    def client(self) -> MobileServiceClient:
        """Client connection the table belongs to."""
        ...


class HasRecordId(Protocol):
    """Record types that expose their identifier explicitly."""

    @property
    def id(self) -> str | None:
        """Identifier of the record on the backend."""
        ...


class FileDataSource(ABC):
    """Source of the bytes uploaded for a file."""

    @abstractmethod
    async def open(self) -> BinaryIO:
        """Return a readable binary stream positioned at the content start."""

    def release(self, stream: BinaryIO) -> None:
        """Dispose of a stream returned by :meth:`open` once uploaded."""


class StorageProvider(ABC):
    """Blob storage backing the files attached to records."""

    @abstractmethod
    async def upload_file(
        self,
        metadata: MobileServiceFileMetadata,
        stream: BinaryIO,
    ) -> BlobProperties:
        """Upload the stream as the blob for ``metadata``."""

    @abstractmethod
    async def download_file_to_stream(
        self,
        file: MobileServiceFile,
        stream: BinaryIO,
    ) -> None:
        """Write the blob for ``file`` into ``stream``."""

    @abstractmethod
    def iter_file(
        self,
        file: MobileServiceFile,
        *,
        chunk_size: int | None = None,
    ) -> AsyncIterator[bytes]:
        """Yield the blob for ``file`` as it arrives."""

    @abstractmethod
    async def get_file_uri(
        self,
        file: MobileServiceFile,
        permissions: StoragePermissions,
    ) -> str:
        """Return a time-limited URI granting ``permissions`` on ``file``."""


class FilesClient(ABC):
    """File operations scoped to one backend connection."""

    @abstractmethod
    async def get_files(
        self,
        table_name: str,
        record_id: str,
    ) -> list[MobileServiceFile]:
        """List the files attached to a record."""

    @abstractmethod
    async def upload_file(
        self,
        metadata: MobileServiceFileMetadata,
        data_source: FileDataSource,
    ) -> None:
        """Upload content for a file and refresh ``metadata`` in place."""

    @abstractmethod
    async def download_to_stream(
        self,
        file: MobileServiceFile,
        stream: BinaryIO,
    ) -> None:
        """Download a file into a writable binary stream."""

    @abstractmethod
    def iter_file(
        self,
        file: MobileServiceFile,
        *,
        chunk_size: int | None = None,
    ) -> AsyncIterator[bytes]:
        """Stream a file's content in chunks."""

    @abstractmethod
    async def delete_file(self, metadata: MobileServiceFileMetadata) -> None:
        """Delete a file from its record."""

    @abstractmethod
    async def get_file_uri(
        self,
        file: MobileServiceFile,
        permissions: StoragePermissions,
    ) -> str:
        """Return a time-limited access URI for a file."""


def _parse_timestamp(value: Any) -> datetime | None:
    """Convert ISO strings or epoch numbers to timezone aware datetimes."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.astimezone(timezone.utc)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return None
    return datetime.fromtimestamp(numeric, tz=timezone.utc)
