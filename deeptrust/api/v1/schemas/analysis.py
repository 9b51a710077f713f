from pydantic import BaseModel, ConfigDict, Field

from deeptrust.dtos.analysis_dto import Severity, Verdict


class AnalysisRequest(BaseModel):
    """Image reference sent by the browser. At least one field must be set."""

    model_config = ConfigDict(populate_by_name=True)

    image_url: str | None = Field(default=None, alias="imageUrl")
    image_base64: str | None = Field(default=None, alias="imageBase64")


class Signal(BaseModel):
    name: str
    detected: bool
    severity: Severity
    description: str


class AnalysisResponse(BaseModel):
    confidence: float = Field(ge=0, le=100)
    verdict: Verdict
    signals: list[Signal]
    summary: str


class ErrorResponse(BaseModel):
    status: str = "error"
    code: int
    error: str
