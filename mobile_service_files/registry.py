"""Per-connection registry of memoised files clients.

Each backend connection gets exactly one files client, built lazily the
first time it is requested and shared by every later caller, whichever
thread or task they run on.

Example:
    >>> from mobile_service_files import FilesClientRegistry
    >>> from mobile_service_files.factory import files_client_factory
    >>>
    >>> registry = FilesClientRegistry()
    >>> factory = files_client_factory("azure")
    >>> files = registry.get_or_create(mobile_client, factory)
    >>> files is registry.get_or_create(mobile_client, factory)
    True

"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from collections.abc import Hashable

    from .interfaces import FilesClient

    FilesClientFactory = Callable[[Any], FilesClient]

logger = logging.getLogger(__name__)


class _IdentityKey:
    """Lookup key for an unhashable handle, compared by identity.

    The key holds a reference to the handle, so its ``id`` cannot be reused
    by another object while the entry exists.
    """

    __slots__ = ("handle",)

    def __init__(self, handle: Any) -> None:
        self.handle = handle

    def __hash__(self) -> int:
        return id(self.handle)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, _IdentityKey) and other.handle is self.handle


def _key_for(handle: Any) -> Hashable:
    """Return the dict key for a handle.

    Hashable handles are keyed by equality, unhashable ones by identity.
    """
    try:
        hash(handle)
    except TypeError:
        return _IdentityKey(handle)
    return handle


class FilesClientRegistry:
    """Registry mapping connection handles to their files client.

    Handles are matched by equality when hashable and by identity otherwise,
    so any object can serve as a connection handle.

    All reads and writes of the mapping happen under a single lock. The lock
    is held while a factory runs, so factories must only construct objects
    and never perform network calls.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._clients: dict[Hashable, FilesClient] = {}
        self._lock = threading.Lock()

    def get_or_create(
        self,
        handle: Any,
        factory: FilesClientFactory,
    ) -> FilesClient:
        """Return the files client for ``handle``, building it on first use.

        Args:
            handle: Connection handle used as the lookup key.
            factory: Callable building a files client bound to ``handle``.
                Invoked only when no client is registered yet.

        Returns:
            The single files client registered for ``handle``.

        Raises:
            ValueError: If ``handle`` is None.
            Exception: Whatever ``factory`` raises; nothing is recorded and a
                later call retries construction.

        """
        if handle is None:
            msg = "Connection handle must not be None"
            raise ValueError(msg)
        key = _key_for(handle)
        with self._lock:
            if key not in self._clients:
                client = factory(handle)
                self._clients[key] = client
                logger.debug(
                    "Created %s for %r",
                    type(client).__name__,
                    handle,
                )
            return self._clients[key]

    def get(self, handle: Any) -> FilesClient:
        """Retrieve the files client already built for ``handle``.

        Raises:
            KeyError: If no client is registered for ``handle``.

        """
        key = _key_for(handle)
        with self._lock:
            if key not in self._clients:
                msg = f"No files client registered for {handle!r}"
                raise KeyError(msg)
            return self._clients[key]

    def exists(self, handle: Any) -> bool:
        """Check whether a files client is registered for ``handle``."""
        key = _key_for(handle)
        with self._lock:
            return key in self._clients

    def discard(self, handle: Any) -> bool:
        """Forget the files client for ``handle``.

        The next :meth:`get_or_create` for the same handle builds a new one.

        Returns:
            True if a client was removed, False if none was registered.

        """
        key = _key_for(handle)
        with self._lock:
            removed = key in self._clients
            if removed:
                del self._clients[key]
        if removed:
            logger.debug("Discarded files client for %r", handle)
        return removed

    def clear(self) -> None:
        """Forget every registered files client."""
        with self._lock:
            self._clients.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._clients)
