"""Service registry for collaborators shared by gateways.

One ServiceRegistry is created at process start and passed to every
RecordGateway. Factories are resolved once, on first lookup.
"""

from typing import Any, Callable

# Well-known service names
SCHEMA_CATALOG = "schema_catalog"
FILES = "files"
SETTINGS_PROVIDER = "settings_provider"
USER_DIRECTORY = "user_directory"
SETTINGS = "settings"


class ServiceNotFoundError(KeyError):
    """Raised when a service has not been registered."""


class ServiceRegistry:
    """Registry mapping service names to instances or lazy factories.

    Example:
        services = ServiceRegistry()
        services.register(SETTINGS, get_settings())
        services.register_factory(FILES, lambda s: LocalFileStorage(s.get(SETTINGS)))
        files = services.get(FILES)
    """

    def __init__(self) -> None:
        self._instances: dict[str, Any] = {}
        self._factories: dict[str, Callable[["ServiceRegistry"], Any]] = {}

    def register(self, name: str, instance: Any) -> None:
        """Register a ready-made service instance."""
        self._factories.pop(name, None)
        self._instances[name] = instance

    def register_factory(self, name: str, factory: Callable[["ServiceRegistry"], Any]) -> None:
        """Register a factory called with the registry on first lookup."""
        self._instances.pop(name, None)
        self._factories[name] = factory

    def has(self, name: str) -> bool:
        return name in self._instances or name in self._factories

    def get(self, name: str) -> Any:
        """Resolve a service by name.

        Raises:
            ServiceNotFoundError: If nothing is registered under the name.
        """
        if name in self._instances:
            return self._instances[name]

        factory = self._factories.pop(name, None)
        if factory is None:
            raise ServiceNotFoundError(name)

        instance = factory(self)
        self._instances[name] = instance
        return instance

    def get_optional(self, name: str, default: Any = None) -> Any:
        """Resolve a service, or return the default when it is not registered."""
        if not self.has(name):
            return default
        return self.get(name)
