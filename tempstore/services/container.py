"""Dependency injection container for temporary storage services."""

from dependency_injector import containers, providers

from tempstore.config import Settings, get_settings
from tempstore.temporary_directory import TemporaryDirectory


class ServiceContainer(containers.DeclarativeContainer):
    """Container wiring settings into temporary directories."""

    # Configuration providers
    config = providers.Dependency(instance_of=Settings)

    # Fresh directory per call, for callers that pass directories explicitly
    temporary_directory = providers.Factory(
        TemporaryDirectory.create,
        settings=config,
    )

    # Process-wide default directory, managed by services.default_directory
    default_directory = providers.ThreadSafeSingleton(
        TemporaryDirectory.create,
        settings=config,
    )


def create_container(settings: Settings | None = None) -> ServiceContainer:
    """Create a container bound to settings (the cached settings if omitted)."""
    settings = settings or get_settings()
    settings.validate_config()

    container = ServiceContainer()
    container.config.override(settings)
    return container
