"""Resolves the image referenced by an analysis request into raw bytes."""
from urllib.parse import urlparse

import httpx

from deeptrust.core.config import Config
from deeptrust.core.exceptions import InvalidImageError, MissingImageError
from deeptrust.core.logging import get_logger
from deeptrust.dtos.analysis_dto import AnalysisInputDTO, ImagePayload
from deeptrust.utils.image_payload import OCTET_STREAM, decode_base64_image, sniff_mime_type

logger = get_logger(__name__)

_ALLOWED_SCHEMES = ("http", "https")


class ImageLoader:
    """Decodes inline images and downloads remote ones."""

    def __init__(self, client: httpx.AsyncClient, config: Config) -> None:
        self._client = client
        self._max_bytes = config.max_image_bytes

    async def load(self, dto: AnalysisInputDTO) -> ImagePayload:
        """Return the request image. Inline base64 wins when both are given."""
        if dto.image_base64:
            payload = decode_base64_image(dto.image_base64)
        elif dto.image_url:
            payload = await self._fetch(dto.image_url)
        else:
            raise MissingImageError()

        self._check_size(payload)
        return payload

    async def _fetch(self, url: str) -> ImagePayload:
        url = url.strip()
        parsed = urlparse(url)
        if parsed.scheme.lower() not in _ALLOWED_SCHEMES or not parsed.netloc:
            raise InvalidImageError("imageUrl must be an http(s) URL")

        logger.debug("image_fetch_started", host=parsed.netloc)
        try:
            async with self._client.stream("GET", url) as response:
                if response.is_error:
                    logger.warning("image_fetch_rejected", host=parsed.netloc, status_code=response.status_code)
                    raise InvalidImageError(
                        f"Failed to fetch image from URL: {response.status_code} {response.reason_phrase}".rstrip()
                    )

                declared = response.headers.get("content-length", "")
                if declared.isdigit() and int(declared) > self._max_bytes:
                    logger.warning("image_fetch_too_large", host=parsed.netloc, content_length=int(declared))
                    raise self._too_large()

                data = await self._read_limited(response)
                content_type = response.headers.get("content-type", "")
        except httpx.HTTPError as e:
            logger.warning("image_fetch_failed", host=parsed.netloc, error_type=type(e).__name__)
            raise InvalidImageError(f"Failed to fetch image from URL: {type(e).__name__}") from e

        mime_type = sniff_mime_type(data)
        if mime_type == OCTET_STREAM:
            header = content_type.split(";")[0].strip().lower()
            if header.startswith("image/"):
                mime_type = header

        return ImagePayload(data=data, mime_type=mime_type, source_url=url)

    async def _read_limited(self, response: httpx.Response) -> bytes:
        """Read the body, giving up as soon as it outgrows the size limit."""
        chunks: list[bytes] = []
        received = 0
        async for chunk in response.aiter_bytes():
            received += len(chunk)
            if received > self._max_bytes:
                logger.warning("image_fetch_too_large", received_bytes=received)
                raise self._too_large()
            chunks.append(chunk)
        return b"".join(chunks)

    def _too_large(self) -> InvalidImageError:
        return InvalidImageError(f"Image exceeds the maximum size of {self._max_bytes} bytes")

    def _check_size(self, payload: ImagePayload) -> None:
        if not payload.data:
            raise InvalidImageError("Image is empty")
        if len(payload.data) > self._max_bytes:
            raise self._too_large()
