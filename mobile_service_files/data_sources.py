"""Upload data sources backed by open streams or filesystem paths."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import BinaryIO, Union

from .interfaces import FileDataSource
from .utils import coerce_to_stream

PathLike = Union[str, Path]


class StreamFileDataSource(FileDataSource):
    """Data source reading from a stream owned by the caller.

    The stream is uploaded from its current position and is left open
    afterwards.
    """

    def __init__(self, stream: bytes | str | BinaryIO) -> None:
        """Wrap a binary stream, or bytes/str payload, for upload."""
        self._stream = coerce_to_stream(stream)

    async def open(self) -> BinaryIO:
        """Return the wrapped stream."""
        return self._stream


class PathFileDataSource(FileDataSource):
    """Data source reading a local file, opened off the event loop."""

    def __init__(self, path: PathLike) -> None:
        """Remember the path of the file to upload."""
        self.path = Path(path)

    async def open(self) -> BinaryIO:
        """Open the file for binary reading in a worker thread."""
        return await asyncio.to_thread(self.path.open, "rb")

    def release(self, stream: BinaryIO) -> None:
        """Close the file opened by :meth:`open`."""
        stream.close()
