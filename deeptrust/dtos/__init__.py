"""
Data Transfer Objects (DTOs) package.

DTOs are simple dataclasses used to transfer data between layers.
"""

from deeptrust.dtos.analysis_dto import (
    AnalysisInputDTO,
    AnalysisResultDTO,
    ImagePayload,
    ProviderVerdictDTO,
    Severity,
    SignalDTO,
    Verdict,
)

__all__ = [
    "AnalysisInputDTO",
    "AnalysisResultDTO",
    "ImagePayload",
    "ProviderVerdictDTO",
    "Severity",
    "SignalDTO",
    "Verdict",
]
