"""
HTTP client provider for dependency injection.

One pooled client is shared by the image loader and the inference provider.
"""

from collections.abc import AsyncIterable

import httpx
from dishka import Provider, Scope, provide

from deeptrust.core.config import Config


class HttpClientProvider(Provider):
    """Provides the outbound ``httpx.AsyncClient`` at APP scope."""

    @provide(scope=Scope.APP)
    async def provide_http_client(self, config: Config) -> AsyncIterable[httpx.AsyncClient]:
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(config.request_timeout_seconds),
            follow_redirects=True,
        ) as client:
            yield client
