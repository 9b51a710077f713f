"""
Application errors raised while analysing an image.

Every error carries the HTTP status it is reported with and a message that is
safe to show to the end user.
"""

from fastapi import status


class AnalysisError(Exception):
    """Base class for all analysis failures."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Analysis failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class MissingImageError(AnalysisError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Please provide imageBase64 or imageUrl"


class InvalidImageError(AnalysisError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid image data"


class ProviderNotConfiguredError(AnalysisError):
    """The selected inference provider has no API credentials."""

    default_message = "Inference provider is not configured"


class UpstreamError(AnalysisError):
    """The inference provider failed or answered with an unexpected status."""

    default_message = "Inference provider request failed"


class UpstreamPaymentRequiredError(UpstreamError):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    default_message = "AI credits exhausted, please add funds to continue."


class UpstreamRateLimitError(UpstreamError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Rate limit exceeded, please try again later."


class UpstreamResponseParseError(UpstreamError):
    default_message = "Failed to parse analysis response"
