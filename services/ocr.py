import logging
from typing import Any

import httpx

from core.config import Settings
from core.contract import NO_TEXT_FOUND
from core.errors import OcrProcessingFailed, OcrRequestFailed, OcrUnavailable

log = logging.getLogger(__name__)


def _join_messages(messages: Any) -> str:
    if isinstance(messages, list):
        return ", ".join(str(m) for m in messages if m)
    return str(messages) if messages else ""


def _json_or_empty(response: httpx.Response) -> dict:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


class OcrClient:
    """Thin async wrapper over the OCR.space parse endpoint."""

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings
        self._transport = transport

    async def extract_text(
        self,
        content: bytes,
        filename: str = "image.png",
        content_type: str | None = None,
        language: str | None = None,
    ) -> str:
        """Send an image to OCR.space and return the recognized text.

        An image without recognizable text is not an error: the caller gets
        the `NO_TEXT_FOUND` sentinel so the user can review and retype.
        """
        if not self.settings.OCR_SPACE_API_KEY:
            log.error("OCR_SPACE_API_KEY not set in environment variables")
            raise OcrUnavailable("OCR service configuration error.")

        data = {
            "apikey": self.settings.OCR_SPACE_API_KEY,
            "language": language or self.settings.OCR_DEFAULT_LANGUAGE,
            "isOverlayRequired": "false",
        }
        files = {"file": (filename, content, content_type or "application/octet-stream")}

        try:
            async with httpx.AsyncClient(
                timeout=self.settings.OCR_TIMEOUT_SECONDS, transport=self._transport
            ) as client:
                response = await client.post(self.settings.OCR_SPACE_URL, data=data, files=files)
        except httpx.HTTPError as e:
            log.error(f"OCR.space request error: {e}")
            raise OcrRequestFailed("OCR API request failed.", details=str(e)) from e

        if response.is_error:
            error_data = _json_or_empty(response)
            message = (
                _join_messages(error_data.get("ErrorMessage"))
                or _join_messages(error_data.get("ErrorDetails"))
                or "Unknown OCR API error"
            )
            log.error(f"OCR.space API Error ({response.status_code}): {message}")
            raise OcrRequestFailed(
                f"OCR API request failed with status {response.status_code}.",
                details={"status": response.status_code, "message": message},
            )

        try:
            ocr_data = response.json()
        except ValueError as e:
            log.error(f"OCR.space returned a non-JSON body: {response.text[:200]!r}")
            raise OcrRequestFailed(
                "OCR API returned a malformed response.", details=response.text
            ) from e
        if not isinstance(ocr_data, dict):
            log.error(f"OCR.space returned an unexpected body: {ocr_data!r}")
            raise OcrRequestFailed("OCR API returned a malformed response.", details=ocr_data)

        if ocr_data.get("IsErroredOnProcessing"):
            message = _join_messages(ocr_data.get("ErrorMessage"))
            log.error(f"OCR.space processing error: {message}")
            raise OcrProcessingFailed(
                "OCR processing failed.",
                details=message or "See OCR API logs for details.",
            )

        parsed_results = ocr_data.get("ParsedResults") or []
        if not parsed_results:
            return NO_TEXT_FOUND

        first = parsed_results[0] if isinstance(parsed_results[0], dict) else {}
        extracted = str(first.get("ParsedText") or "")
        if not extracted.strip():
            return NO_TEXT_FOUND
        return extracted
