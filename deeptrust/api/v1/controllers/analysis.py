from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter

from deeptrust.api.v1.schemas.analysis import AnalysisRequest, AnalysisResponse, ErrorResponse, Signal
from deeptrust.dtos.analysis_dto import AnalysisInputDTO
from deeptrust.services.analysis_service import AnalysisService

router = APIRouter(
    route_class=DishkaRoute,
    prefix="/api/v1",
    tags=["Analysis"],
)


@router.post(
    "/analyze-image",
    response_model=AnalysisResponse,
    responses={
        400: {"model": ErrorResponse},
        402: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def analyze_image(
    request: AnalysisRequest,
    service: FromDishka[AnalysisService],
) -> AnalysisResponse:
    """Ask the configured inference provider whether the image is AI-generated."""
    input_dto = AnalysisInputDTO(
        image_url=request.image_url,
        image_base64=request.image_base64,
    )
    result = await service.analyze(input_dto)
    return AnalysisResponse(
        confidence=result.confidence,
        verdict=result.verdict,
        signals=[
            Signal(
                name=s.name,
                detected=s.detected,
                severity=s.severity,
                description=s.description,
            )
            for s in result.signals
        ],
        summary=result.summary,
    )
