"""Tests for file descriptors, transfer metadata and storage tokens."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from mobile_service_files import (
    BlobProperties,
    FileLocation,
    MobileServiceFile,
    MobileServiceFileMetadata,
    MobileServiceFilesError,
    StoragePermissions,
    StorageToken,
    StorageTokenScope,
)

MODIFIED = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)


class TestMobileServiceFile:
    """Tests for MobileServiceFile."""

    def test_create_uses_name_as_id(self) -> None:
        """Ensure new descriptors are identified by their file name."""
        file = MobileServiceFile.create("photo.jpg", "todoitem", "abc123")
        assert file.id == "photo.jpg"
        assert file.name == "photo.jpg"
        assert file.table_name == "todoitem"
        assert file.parent_id == "abc123"
        assert file.length == 0
        assert file.metadata == {}

    def test_from_dict_parses_backend_payload(self) -> None:
        """Ensure the backend's JSON maps onto descriptor fields."""
        file = MobileServiceFile.from_dict(
            {
                "id": "photo.jpg",
                "name": "photo.jpg",
                "tableName": "todoitem",
                "parentId": "abc123",
                "contentMD5": "XUFAKrxLKna5cZ2REBfFkg==",
                "length": 5,
                "lastModified": "2024-05-01T12:30:00Z",
                "storeUri": "https://account/container/photo.jpg",
                "metadata": {"kind": "image"},
            },
        )
        assert file.content_md5 == "XUFAKrxLKna5cZ2REBfFkg=="
        assert file.length == 5
        assert file.last_modified == MODIFIED
        assert file.storage_uri == "https://account/container/photo.jpg"
        assert file.metadata == {"kind": "image"}

    def test_from_dict_defaults(self) -> None:
        """Ensure optional fields default sensibly."""
        file = MobileServiceFile.from_dict(
            {"name": "a.txt", "tableName": "t", "parentId": "1"},
        )
        assert file.id == "a.txt"
        assert file.content_md5 is None
        assert file.last_modified is None

    def test_from_dict_epoch_timestamp(self) -> None:
        """Ensure numeric timestamps are read as UTC epoch seconds."""
        file = MobileServiceFile.from_dict(
            {
                "name": "a.txt",
                "tableName": "t",
                "parentId": "1",
                "lastModified": MODIFIED.timestamp(),
            },
        )
        assert file.last_modified == MODIFIED

    def test_as_dict_uses_backend_keys(self) -> None:
        """Ensure serialisation uses the backend's camelCase keys."""
        payload = MobileServiceFile.create("a.txt", "todo", "1").as_dict()
        assert payload["tableName"] == "todo"
        assert payload["parentId"] == "1"
        assert payload["lastModified"] is None

    def test_with_properties_returns_refreshed_copy(self) -> None:
        """Ensure blob properties produce an updated copy."""
        file = MobileServiceFile.create("a.txt", "todo", "1")
        refreshed = file.with_properties(BlobProperties("md5==", 10, MODIFIED))
        assert refreshed.length == 10
        assert refreshed.content_md5 == "md5=="
        assert file.length == 0


class TestMobileServiceFileMetadata:
    """Tests for MobileServiceFileMetadata."""

    def test_from_file(self) -> None:
        """Ensure metadata copies the descriptor's identity."""
        file = MobileServiceFile.create("a.txt", "todo", "1")
        metadata = MobileServiceFileMetadata.from_file(file)
        assert metadata.file_id == "a.txt"
        assert metadata.file_name == "a.txt"
        assert metadata.parent_data_item_type == "todo"
        assert metadata.parent_data_item_id == "1"
        assert metadata.location is FileLocation.LOCAL

    def test_apply_marks_server_copy(self) -> None:
        """Ensure applying blob properties records the server state."""
        metadata = MobileServiceFileMetadata.from_file(
            MobileServiceFile.create("a.txt", "todo", "1"),
        )
        metadata.apply(BlobProperties("md5==", 3, MODIFIED))
        assert metadata.location is FileLocation.SERVER
        assert metadata.length == 3
        assert metadata.last_modified == MODIFIED

    def test_to_file_round_trips_identity(self) -> None:
        """Ensure metadata converts back to an equivalent descriptor."""
        file = MobileServiceFile.create("a.txt", "todo", "1")
        assert MobileServiceFileMetadata.from_file(file).to_file() == file


class TestStorageToken:
    """Tests for StorageToken parsing."""

    def test_from_dict(self) -> None:
        """Ensure the backend's token response is parsed."""
        token = StorageToken.from_dict(
            {
                "RawToken": "?sig=abc",
                "ResourceUri": "https://account/container",
                "Permissions": 3,
                "Scope": "Record",
                "EntityId": "1",
            },
        )
        assert token.permissions == StoragePermissions.READ | StoragePermissions.ADD
        assert token.scope is StorageTokenScope.RECORD
        assert token.entity_id == "1"

    def test_missing_field_raises_key_error(self) -> None:
        """Ensure incomplete responses fail to parse."""
        with pytest.raises(KeyError):
            StorageToken.from_dict({"RawToken": "?sig=abc"})


def test_read_write_permission_includes_all_rights() -> None:
    """Ensure READ_WRITE combines every individual right."""
    for flag in (
        StoragePermissions.READ,
        StoragePermissions.ADD,
        StoragePermissions.WRITE,
        StoragePermissions.DELETE,
    ):
        assert flag in StoragePermissions.READ_WRITE


def test_error_includes_file_name() -> None:
    """Ensure error messages carry the file name context."""
    error = MobileServiceFilesError("Upload failed", file_name="a.txt")
    assert str(error) == "Upload failed: a.txt"
    assert error.message == "Upload failed"
    assert error.file_name == "a.txt"
