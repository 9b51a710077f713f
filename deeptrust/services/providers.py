"""Upstream inference backends: Hugging Face hosted classifiers and the Lovable AI gateway."""
import json
import math
import re
from abc import ABC, abstractmethod
from typing import Any

import httpx

from deeptrust.core.config import Config, HuggingFaceConfig, LovableConfig
from deeptrust.core.exceptions import (
    UpstreamError,
    UpstreamPaymentRequiredError,
    UpstreamRateLimitError,
    UpstreamResponseParseError,
)
from deeptrust.core.logging import get_logger
from deeptrust.dtos.analysis_dto import ImagePayload, ProviderVerdictDTO, Severity, SignalDTO
from deeptrust.utils.image_payload import to_base64, to_data_url

logger = get_logger(__name__)

_ERROR_EXCERPT_CHARS = 200

_AI_LABEL_TOKENS = {"ai", "fake", "generated", "artificial", "synthetic", "deepfake"}
_REAL_LABEL_TOKENS = {"real", "human", "authentic", "natural"}
_LABEL_SPLIT = re.compile(r"[^a-z0-9]+")

_CODE_FENCE = re.compile(r"^```[a-zA-Z]*\s*(?P<body>.*?)\s*```$", re.DOTALL)


class InferenceProvider(ABC):
    """Common interface for a remote image classifier."""

    name: str = "provider"
    display_name: str = "Inference provider"

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @property
    @abstractmethod
    def model(self) -> str:
        ...

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        ...

    @abstractmethod
    async def classify(self, image: ImagePayload) -> ProviderVerdictDTO:
        ...

    async def _post(self, url: str, **kwargs: Any) -> httpx.Response:
        """Issue the single upstream call and map failures to analysis errors."""
        try:
            response = await self._client.post(url, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("upstream_timeout", provider=self.name)
            raise UpstreamError(f"{self.display_name} API timed out") from e
        except httpx.HTTPError as e:
            logger.warning("upstream_unreachable", provider=self.name, error_type=type(e).__name__)
            raise UpstreamError(f"{self.display_name} API is unreachable") from e

        self._raise_for_status(response)
        return response

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.is_success:
            return

        logger.warning(
            "upstream_error_status",
            provider=self.name,
            status_code=response.status_code,
        )
        if response.status_code == 402:
            raise UpstreamPaymentRequiredError()
        if response.status_code == 429:
            raise UpstreamRateLimitError()

        message = f"{self.display_name} API error ({response.status_code})"
        excerpt = " ".join(response.text.split())[:_ERROR_EXCERPT_CHARS]
        if excerpt:
            message = f"{message}: {excerpt}"
        raise UpstreamError(message)

    def _json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            logger.warning("upstream_invalid_json", provider=self.name)
            raise UpstreamResponseParseError() from e


def _label_tokens(label: str) -> set[str]:
    return {token for token in _LABEL_SPLIT.split(label.lower()) if token}


def _probability(value: Any, upper: float = 1.0) -> float:
    """A finite number in [0, upper]; anything else is an unusable answer."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise UpstreamResponseParseError()
    value = float(value)
    if not math.isfinite(value) or not 0.0 <= value <= upper:
        raise UpstreamResponseParseError()
    return value


def extract_ai_score(predictions: Any) -> float:
    """Reduce a Hugging Face image-classification answer to an AI score.

    The answer is a list of ``{"label": str, "score": float}`` entries, or a
    batch list wrapping one such list.
    """
    if not isinstance(predictions, list):
        raise UpstreamResponseParseError()
    if predictions and isinstance(predictions[0], list):
        predictions = predictions[0]
    if not predictions:
        return 0.5

    entries: list[tuple[set[str], float]] = []
    for item in predictions:
        if not isinstance(item, dict):
            raise UpstreamResponseParseError()
        label = item.get("label")
        if not isinstance(label, str):
            raise UpstreamResponseParseError()
        entries.append((_label_tokens(label), _probability(item.get("score"))))

    for tokens, score in entries:
        if tokens & _AI_LABEL_TOKENS:
            return score
    for tokens, score in entries:
        if tokens & _REAL_LABEL_TOKENS:
            return 1.0 - score
    return entries[0][1]


class HuggingFaceProvider(InferenceProvider):
    """Hosted image-classification model on the Hugging Face Inference API."""

    name = "huggingface"
    display_name = "Hugging Face"

    def __init__(self, client: httpx.AsyncClient, settings: HuggingFaceConfig) -> None:
        super().__init__(client)
        self._settings = settings

    @property
    def model(self) -> str:
        return self._settings.model

    @property
    def is_configured(self) -> bool:
        return bool(self._settings.token)

    async def classify(self, image: ImagePayload) -> ProviderVerdictDTO:
        headers = {"Authorization": f"Bearer {self._settings.token}"}
        if self._settings.payload_mode == "json":
            request_kwargs: dict[str, Any] = {"json": {"inputs": to_base64(image)}}
        else:
            headers["Content-Type"] = image.mime_type
            request_kwargs = {"content": image.data}

        response = await self._post(self._settings.endpoint_url, headers=headers, **request_kwargs)
        predictions = self._json(response)

        if isinstance(predictions, dict) and "error" in predictions:
            logger.warning("huggingface_error_payload", error=str(predictions["error"])[:_ERROR_EXCERPT_CHARS])
            raise UpstreamResponseParseError()

        ai_score = extract_ai_score(predictions)
        logger.info("huggingface_classified", model=self.model, ai_score=round(ai_score, 4))
        return ProviderVerdictDTO(ai_score=ai_score, model_used=self.model)


SYSTEM_PROMPT = (
    "You are an expert forensic analyst who decides whether an image was generated "
    "by AI or captured by a camera. Inspect lighting, textures, anatomy, text, "
    "reflections and compression artifacts. Reply with JSON only, no prose, shaped as "
    '{"aiProbability": <number between 0 and 1>, '
    '"signals": [{"name": <string>, "detected": <boolean>, '
    '"severity": "low" | "medium" | "high", "description": <string>}], '
    '"summary": <one or two sentences>}'
)
USER_PROMPT = "Analyze this image and report how likely it is to be AI-generated."


def _message_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            part.get("text", "") for part in content
            if isinstance(part, dict) and part.get("type") == "text"
        )
    raise UpstreamResponseParseError()


def _load_json_object(text: str) -> dict:
    text = text.strip()
    fenced = _CODE_FENCE.match(text)
    if fenced:
        text = fenced.group("body")

    try:
        data = json.loads(text)
    except ValueError:
        # Models occasionally wrap the object in prose
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end <= start:
            raise UpstreamResponseParseError()
        try:
            data = json.loads(text[start:end + 1])
        except ValueError as e:
            raise UpstreamResponseParseError() from e

    if not isinstance(data, dict):
        raise UpstreamResponseParseError()
    return data


def _parse_signal(raw: Any) -> SignalDTO | None:
    if not isinstance(raw, dict):
        return None
    name, detected = raw.get("name"), raw.get("detected")
    if not isinstance(name, str) or not name.strip() or not isinstance(detected, bool):
        return None
    try:
        severity = Severity(str(raw.get("severity", "low")).lower())
    except ValueError:
        severity = Severity.LOW
    description = raw.get("description")
    return SignalDTO(
        name=name.strip(),
        detected=detected,
        severity=severity,
        description=description.strip() if isinstance(description, str) else "",
    )


def parse_gateway_reply(payload: Any) -> tuple[float, list[SignalDTO], str | None]:
    """Extract (ai score, signals, summary) from a chat-completions answer."""
    try:
        content = payload["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise UpstreamResponseParseError() from e

    report = _load_json_object(_message_text(content))

    score = _probability(report.get("aiProbability"), upper=100.0)
    # Tolerate percentages
    if 1.0 < score <= 100.0:
        score /= 100.0

    raw_signals = report.get("signals")
    signals = [
        signal for signal in map(_parse_signal, raw_signals if isinstance(raw_signals, list) else [])
        if signal is not None
    ]

    summary = report.get("summary")
    summary = summary.strip() if isinstance(summary, str) and summary.strip() else None
    return score, signals, summary


class LovableGatewayProvider(InferenceProvider):
    """Multimodal chat model behind the Lovable AI gateway."""

    name = "lovable"
    display_name = "AI gateway"

    def __init__(self, client: httpx.AsyncClient, settings: LovableConfig) -> None:
        super().__init__(client)
        self._settings = settings

    @property
    def model(self) -> str:
        return self._settings.model

    @property
    def is_configured(self) -> bool:
        return bool(self._settings.api_key)

    async def classify(self, image: ImagePayload) -> ProviderVerdictDTO:
        body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": USER_PROMPT},
                        {"type": "image_url", "image_url": {"url": to_data_url(image)}},
                    ],
                },
            ],
        }
        headers = {"Authorization": f"Bearer {self._settings.api_key}"}

        response = await self._post(self._settings.gateway_url, headers=headers, json=body)
        ai_score, signals, summary = parse_gateway_reply(self._json(response))

        logger.info(
            "gateway_classified",
            model=self.model,
            ai_score=round(ai_score, 4),
            signal_count=len(signals),
        )
        return ProviderVerdictDTO(
            ai_score=ai_score,
            model_used=self.model,
            signals=signals,
            summary=summary,
        )


def create_provider(config: Config, client: httpx.AsyncClient) -> InferenceProvider:
    """Build the provider selected by ``inference_provider``."""
    if config.inference_provider == "lovable":
        return LovableGatewayProvider(client, config.lovable)
    return HuggingFaceProvider(client, config.huggingface)
