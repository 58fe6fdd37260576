from fastapi import APIRouter, Depends, File, Form, UploadFile

from apis.deps import get_pipeline
from core.errors import InvalidInput
from schemas.visualize import ErrorEnvelope, ExtractedText
from services.pipeline import VisualizationPipeline

router = APIRouter()


@router.post(
    "",
    response_model=ExtractedText,
    responses={400: {"model": ErrorEnvelope}, 500: {"model": ErrorEnvelope}},
)
async def extract_problem_text(
    file: UploadFile | None = File(None),
    language: str | None = Form(None),
    pipeline: VisualizationPipeline = Depends(get_pipeline),
) -> ExtractedText:
    if file is None:
        raise InvalidInput("No file provided.")

    content = await file.read()
    if not content:
        raise InvalidInput("Uploaded file is empty.")

    return await pipeline.extract_text(
        content,
        filename=file.filename or "image.png",
        content_type=file.content_type,
        language=language or None,
    )
