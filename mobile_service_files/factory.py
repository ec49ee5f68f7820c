"""Storage provider factory and default files client construction.

Storage providers are registered by name. A files client factory built
from a provider name is what :class:`FilesClientRegistry` invokes the first
time a backend connection needs a files client.

Supported Providers:
    - azure - AzureBlobStorageProvider (SAS tokens issued by the backend)

Example:
    >>> from mobile_service_files.factory import files_client_factory
    >>> factory = files_client_factory("azure", {"max_concurrency": 4})
    >>> files = registry.get_or_create(mobile_client, factory)
    >>>
    >>> # Plug in another blob store
    >>> register_storage_provider("memory", lambda client, info: MemoryProvider())

"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

from .files_client import MobileServiceFilesClient
from .interfaces import StorageProviderError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from typing import TypeAlias

    from .interfaces import FilesClient, MobileServiceClient, StorageProvider

    # Type alias for storage provider factory functions
    ProviderFactoryFunc: TypeAlias = Callable[
        [MobileServiceClient, Mapping[str, Any]],
        StorageProvider,
    ]

DEFAULT_PROVIDER = "azure"


class StorageProviderFactory:
    """Factory for creating storage providers by name."""

    def __init__(self) -> None:
        """Initialize the factory with built-in provider handlers."""
        self._factories: dict[str, ProviderFactoryFunc] = {
            "azure": self._create_azure_provider,
        }

    def resolve(
        self,
        name: str,
        client: MobileServiceClient,
        connection_info: Mapping[str, Any] | None = None,
    ) -> StorageProvider:
        """Create the named storage provider for a backend connection.

        Args:
            name: Registered provider name.
            client: Backend client the provider requests tokens from.
            connection_info: Provider-specific settings.

        Raises:
            StorageProviderError: If the provider name is not registered.

        """
        if name not in self._factories:
            supported = ", ".join(sorted(self._factories.keys()))
            raise StorageProviderError.unknown_provider(name, supported)
        return self._factories[name](client, connection_info or {})

    def register(
        self,
        name: str,
        factory_func: ProviderFactoryFunc,
    ) -> None:
        """Register a storage provider factory under a name.

        Args:
            name: Provider name to register (e.g., "s3", "memory")
            factory_func: Callable taking (client, connection_info) and
                returning a StorageProvider

        """
        if not callable(factory_func):
            msg = "factory_func must be callable"
            raise TypeError(msg)
        self._factories[name] = factory_func

    def names(self) -> list[str]:
        """List registered provider names."""
        return sorted(self._factories.keys())

    def _create_azure_provider(
        self,
        client: MobileServiceClient,
        connection_info: Mapping[str, Any],
    ) -> StorageProvider:
        """Create an AzureBlobStorageProvider for a backend connection."""
        from .azure_provider import AzureBlobStorageProvider

        return AzureBlobStorageProvider(client, connection_info)


# Global default factory instance
_default_factory = StorageProviderFactory()


def register_storage_provider(
    name: str,
    factory_func: ProviderFactoryFunc,
) -> None:
    """Register a storage provider with the default factory.

    Example:
        >>> register_storage_provider("memory", lambda client, info: MemoryProvider())

    """
    _default_factory.register(name, factory_func)


def files_client_factory(
    provider: str = DEFAULT_PROVIDER,
    connection_info: Mapping[str, Any] | None = None,
    *,
    provider_factory: StorageProviderFactory | None = None,
) -> Callable[[MobileServiceClient], FilesClient]:
    """Return a callable building a files client for a backend connection.

    The provider name is checked here, before any connection uses it.

    Args:
        provider: Registered storage provider name.
        connection_info: Settings passed to the provider.
        provider_factory: Factory to resolve ``provider`` with. Defaults to
            the module-level factory.

    Raises:
        StorageProviderError: If the provider name is not registered.

    """
    providers = provider_factory or _default_factory
    if provider not in providers.names():
        supported = ", ".join(providers.names())
        raise StorageProviderError.unknown_provider(provider, supported)
    settings = dict(connection_info or {})

    def build(client: MobileServiceClient) -> FilesClient:
        storage = providers.resolve(provider, client, settings)
        return MobileServiceFilesClient(client, storage)

    return build


def default_files_client(client: MobileServiceClient) -> FilesClient:
    """Build a files client backed by Azure Blob Storage."""
    return files_client_factory()(client)
