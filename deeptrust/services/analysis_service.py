"""Image analysis: one request in, one upstream call out, one verdict back."""
import time

from deeptrust.core.exceptions import AnalysisError, MissingImageError, ProviderNotConfiguredError
from deeptrust.core.logging import get_logger
from deeptrust.dtos.analysis_dto import AnalysisInputDTO, AnalysisResultDTO
from deeptrust.services.image_loader import ImageLoader
from deeptrust.services.providers import InferenceProvider
from deeptrust.utils.verdict import build_result

logger = get_logger(__name__)


class AnalysisService:
    """Relays an image to the configured inference provider and maps the answer."""

    def __init__(self, image_loader: ImageLoader, provider: InferenceProvider) -> None:
        self._image_loader = image_loader
        self._provider = provider

    @property
    def provider(self) -> InferenceProvider:
        return self._provider

    async def analyze(self, dto: AnalysisInputDTO) -> AnalysisResultDTO:
        if not dto.image_base64 and not dto.image_url:
            raise MissingImageError()

        if not self._provider.is_configured:
            logger.error("provider_not_configured", provider=self._provider.name)
            raise ProviderNotConfiguredError(
                f"{self._provider.display_name} API key is not configured"
            )

        started = time.perf_counter()
        image = await self._image_loader.load(dto)
        logger.info(
            "analysis_started",
            provider=self._provider.name,
            source="url" if image.source_url else "base64",
            # Query strings may carry signed tokens
            source_url=image.source_url.split("?", 1)[0] if image.source_url else None,
            mime_type=image.mime_type,
            size_bytes=len(image.data),
        )

        try:
            outcome = await self._provider.classify(image)
        except AnalysisError as e:
            logger.warning(
                "analysis_failed",
                provider=self._provider.name,
                status_code=e.status_code,
                error=e.message,
            )
            raise

        result = build_result(outcome)
        logger.info(
            "analysis_completed",
            provider=self._provider.name,
            model=outcome.model_used,
            verdict=result.verdict.value,
            confidence=result.confidence,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return result
