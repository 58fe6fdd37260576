from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictStr


class ProblemSubmission(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    problem_text: StrictStr = Field(alias="problemText")


class VisualizationPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    image_base64: str = Field(alias="imageBase64")


class ExtractedText(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    extracted_text: str = Field(alias="extractedText")


class ErrorEnvelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    error_kind: str = Field(alias="errorKind")
    failure: str | None = None
    error: str
    details: Any = None


class ServiceStatus(BaseModel):
    name: str
    version: str
    services: dict[str, bool]
