from dataclasses import dataclass, field
from enum import Enum


class Verdict(str, Enum):
    AI_GENERATED = "AI_GENERATED"
    LIKELY_AI = "LIKELY_AI"
    UNCERTAIN = "UNCERTAIN"
    LIKELY_REAL = "LIKELY_REAL"
    REAL = "REAL"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class AnalysisInputDTO:
    image_url: str | None = None
    image_base64: str | None = None


@dataclass
class ImagePayload:
    data: bytes
    mime_type: str
    source_url: str | None = None


@dataclass
class SignalDTO:
    name: str
    detected: bool
    severity: Severity
    description: str


@dataclass
class ProviderVerdictDTO:
    """Raw outcome of one upstream call, before it is mapped to a verdict."""

    ai_score: float
    model_used: str
    signals: list[SignalDTO] = field(default_factory=list)
    summary: str | None = None


@dataclass
class AnalysisResultDTO:
    confidence: float
    verdict: Verdict
    signals: list[SignalDTO] = field(default_factory=list)
    summary: str = ""
