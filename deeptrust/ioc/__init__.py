"""
Dependency injection container configuration using Dishka.
"""

from dishka import AsyncContainer, Provider, make_async_container

from deeptrust.core.config import Config
from deeptrust.ioc.http_provider import HttpClientProvider
from deeptrust.ioc.service_provider import ServiceProvider


def create_container(config: Config, http_provider: Provider | None = None) -> AsyncContainer:
    """Build the application container; ``http_provider`` swaps the outbound client."""
    return make_async_container(
        ServiceProvider(),
        http_provider or HttpClientProvider(),
        context={Config: config},
    )


__all__ = ["HttpClientProvider", "ServiceProvider", "create_container"]
