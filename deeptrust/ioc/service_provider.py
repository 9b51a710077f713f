"""
Service provider for dependency injection.

This module provides all service dependencies.
"""

import httpx
from dishka import Provider, Scope, from_context, provide

from deeptrust.core.config import Config
from deeptrust.services.analysis_service import AnalysisService
from deeptrust.services.image_loader import ImageLoader
from deeptrust.services.providers import InferenceProvider, create_provider


class ServiceProvider(Provider):
    """
    Provider for service dependencies.

    All services are provided at APP scope (singleton).
    """

    config = from_context(provides=Config, scope=Scope.APP)

    @provide(scope=Scope.APP)
    def provide_inference_provider(
        self,
        config: Config,
        client: httpx.AsyncClient,
    ) -> InferenceProvider:
        return create_provider(config, client)

    @provide(scope=Scope.APP)
    def provide_image_loader(self, config: Config, client: httpx.AsyncClient) -> ImageLoader:
        return ImageLoader(client, config)

    @provide(scope=Scope.APP)
    def provide_analysis_service(
        self,
        image_loader: ImageLoader,
        provider: InferenceProvider,
    ) -> AnalysisService:
        return AnalysisService(image_loader, provider)
