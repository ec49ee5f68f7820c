"""Shared helpers for the record file surface.

Key utilities:
- Record identifier extraction from explicit ids, mappings and objects
- Coercion of upload payloads (bytes, str, BinaryIO) to binary streams

Example usage:
    >>> from mobile_service_files.utils import get_record_id
    >>> get_record_id({"id": "abc123"})
    'abc123'
    >>> get_record_id(object()) is None
    True
"""

from __future__ import annotations

import io
from collections.abc import Mapping
from typing import Any, BinaryIO

from .interfaces import RecordIdError

# Checked in order: the explicit attribute first, then the backend's
# conventional column name.
RECORD_ID_FIELDS = ("id", "Id")


def get_record_id(record: Any) -> str | None:
    """Return the string identifier carried by a record, if any.

    Mappings are inspected by key and other objects by readable attribute.
    A missing field or a non-string value yields None rather than an error.

    Args:
        record: A record value (mapping, dataclass, plain object...).

    Returns:
        The identifier, or None when the record has no usable one.

    """
    if record is None:
        return None
    for name in RECORD_ID_FIELDS:
        if isinstance(record, Mapping):
            value = record.get(name)
        else:
            value = getattr(record, name, None)
        if isinstance(value, str):
            return value
    return None


def resolve_record_id(record: Any) -> str:
    """Return the identifier for an explicit id string or a record.

    Raises:
        RecordIdError: If no non-empty string identifier can be found.

    """
    record_id = record if isinstance(record, str) else get_record_id(record)
    if not record_id:
        raise RecordIdError(record)
    return record_id


def coerce_to_stream(data: bytes | bytearray | str | BinaryIO) -> BinaryIO:
    """Coerce supported payload types to a readable binary stream.

    Bytes and strings (UTF-8 encoded) are wrapped in ``io.BytesIO``;
    file-like objects are returned unchanged.

    Raises:
        TypeError: If data type is not supported.

    """
    if isinstance(data, (bytes, bytearray)):
        return io.BytesIO(bytes(data))
    if isinstance(data, str):
        return io.BytesIO(data.encode("utf-8"))
    if hasattr(data, "read"):
        return data
    message = f"Unsupported data type: {type(data).__name__}"
    raise TypeError(message)

