from fastapi import APIRouter, Depends

from apis.deps import get_pipeline
from schemas.visualize import ErrorEnvelope, ProblemSubmission, VisualizationPayload
from services.pipeline import VisualizationPipeline

router = APIRouter()


@router.post(
    "",
    response_model=VisualizationPayload,
    responses={
        400: {"model": ErrorEnvelope},
        422: {"model": ErrorEnvelope},
        500: {"model": ErrorEnvelope},
    },
)
async def visualize_problem(
    submission: ProblemSubmission,
    pipeline: VisualizationPipeline = Depends(get_pipeline),
) -> VisualizationPayload:
    return await pipeline.visualize(submission.problem_text)
