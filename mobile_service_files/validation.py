"""Validation helpers for record file operations.

These checks run before any request leaves the process so that invalid
arguments fail fast with ``ValueError``/``TypeError`` instead of surfacing
as backend errors.

Example:
    >>> validate_file_name("photo.jpg")
    'photo.jpg'
    >>> validate_file_name("")  # Raises ValueError

"""

from __future__ import annotations

from typing import Any

from .interfaces import MobileServiceFile, StoragePermissions


def validate_file(file: Any) -> MobileServiceFile:
    """Validate that a file descriptor was supplied.

    Raises:
        ValueError: If file is None.
        TypeError: If file is not a MobileServiceFile.

    """
    if file is None:
        msg = "file must not be None"
        raise ValueError(msg)
    if not isinstance(file, MobileServiceFile):
        msg = f"file must be a MobileServiceFile, not {type(file).__name__}"
        raise TypeError(msg)
    return file


def validate_stream(stream: Any, *, name: str = "stream") -> Any:
    """Validate that a binary stream was supplied.

    Raises:
        ValueError: If stream is None.

    """
    if stream is None:
        msg = f"{name} must not be None"
        raise ValueError(msg)
    return stream


def validate_file_name(file_name: Any) -> str:
    """Validate a file name before it is used to build a descriptor.

    Raises:
        TypeError: If file_name is not a string.
        ValueError: If file_name is empty or whitespace.

    """
    if not isinstance(file_name, str):
        msg = f"file_name must be a string, not {type(file_name).__name__}"
        raise TypeError(msg)
    if not file_name.strip():
        msg = "file_name must not be empty"
        raise ValueError(msg)
    return file_name


def validate_permissions(permissions: Any) -> StoragePermissions:
    """Validate that permissions grant at least one right.

    Raises:
        TypeError: If permissions is not a StoragePermissions flag.
        ValueError: If permissions is StoragePermissions.NONE.

    """
    if not isinstance(permissions, StoragePermissions):
        msg = "permissions must be a StoragePermissions flag"
        raise TypeError(msg)
    if permissions == StoragePermissions.NONE:
        msg = "permissions must grant at least one right"
        raise ValueError(msg)
    return permissions
