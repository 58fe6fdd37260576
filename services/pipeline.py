import logging
from enum import Enum
from typing import Awaitable, Callable
from uuid import uuid4

from core.config import Settings
from core.errors import EmptyGeneration, InvalidInput, StorageUnavailable, VisualizerError
from schemas.code import GeneratedCode
from schemas.visualize import ExtractedText, VisualizationPayload
from services.ocr import OcrClient
from services.payload import extract_payload
from services.sandbox import execute_code
from services.sanitizer import sanitize_code
from services.synthesis import CodeSynthesizer

log = logging.getLogger(__name__)

Executor = Callable[[str, Settings], Awaitable[str]]


class Stage(str, Enum):
    RECEIVED = "received"
    EXTRACTING_TEXT = "extracting_text"
    SYNTHESIZING_CODE = "synthesizing_code"
    SANITIZING = "sanitizing"
    EXECUTING = "executing"
    EXTRACTING_PAYLOAD = "extracting_payload"
    RESPONDING = "responding"
    FAILED = "failed"


class PipelineRun:
    """Tracks the stage of one request so every log line can be traced back to it."""

    def __init__(self, kind: str):
        self.request_id = uuid4().hex[:8]
        self.kind = kind
        self.stage = Stage.RECEIVED
        log.info(f"[{self.request_id}] {kind} request received")

    def advance(self, stage: Stage) -> None:
        log.info(f"[{self.request_id}] {self.stage.value} -> {stage.value}")
        self.stage = stage

    def fail(self, error: VisualizerError) -> None:
        log.warning(
            f"[{self.request_id}] failed during {self.stage.value}: "
            f"{error.error_kind}/{error.failure}: {error.message}"
        )
        self.stage = Stage.FAILED


class VisualizationPipeline:
    """Runs one problem through OCR, code synthesis, execution and payload extraction.

    Stages run strictly in order and nothing is retried: the first failing
    stage raises a `VisualizerError` which the HTTP layer turns into an error
    envelope.
    """

    def __init__(
        self,
        settings: Settings,
        ocr: OcrClient | None = None,
        synthesizer: CodeSynthesizer | None = None,
        executor: Executor | None = None,
    ):
        self.settings = settings
        self.ocr = ocr or OcrClient(settings)
        self.synthesizer = synthesizer or CodeSynthesizer(settings)
        self.executor = executor or execute_code

    def _require_storage(self) -> None:
        if not (self.settings.SUPABASE_URL and self.settings.SUPABASE_ANON_KEY):
            log.error("SUPABASE_URL or SUPABASE_ANON_KEY not set in environment variables")
            raise StorageUnavailable(
                "Storage service configuration error",
                details="Please set the SUPABASE_URL and SUPABASE_ANON_KEY environment variables",
            )

    async def extract_text(
        self,
        content: bytes,
        filename: str = "image.png",
        content_type: str | None = None,
        language: str | None = None,
    ) -> ExtractedText:
        run = PipelineRun("ocr")
        if not content:
            error = InvalidInput("No file provided.")
            run.fail(error)
            raise error

        try:
            run.advance(Stage.EXTRACTING_TEXT)
            text = await self.ocr.extract_text(
                content, filename=filename, content_type=content_type, language=language
            )
        except VisualizerError as e:
            run.fail(e)
            raise

        run.advance(Stage.RESPONDING)
        return ExtractedText(extracted_text=text)

    async def visualize(self, problem_text: str) -> VisualizationPayload:
        run = PipelineRun("visualize")
        if not isinstance(problem_text, str) or not problem_text.strip():
            error = InvalidInput("No problem text provided or text is invalid.")
            run.fail(error)
            raise error

        try:
            self._require_storage()

            run.advance(Stage.SYNTHESIZING_CODE)
            raw_text = await self.synthesizer.generate(problem_text)

            run.advance(Stage.SANITIZING)
            code = GeneratedCode(raw_text=raw_text, source_text=sanitize_code(raw_text))
            if not code.source_text:
                raise EmptyGeneration("Generated code was empty after cleanup")
            log.debug(f"[{run.request_id}] cleaned code: {code.source_text[:100]!r}")

            run.advance(Stage.EXECUTING)
            output = await self.executor(code.source_text, self.settings)

            run.advance(Stage.EXTRACTING_PAYLOAD)
            image_base64 = extract_payload(output)
        except VisualizerError as e:
            run.fail(e)
            raise

        run.advance(Stage.RESPONDING)
        return VisualizationPayload(image_base64=image_base64)
