from typing import Any

from fastapi import status


class VisualizerError(Exception):
    """Base class for every failure the pipeline reports to the caller."""

    error_kind: str = "InternalError"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details

    @property
    def failure(self) -> str:
        return type(self).__name__

    def to_envelope(self) -> dict[str, Any]:
        envelope: dict[str, Any] = {
            "errorKind": self.error_kind,
            "failure": self.failure,
            "error": self.message,
        }
        if self.details is not None:
            envelope["details"] = self.details
        return envelope


class InvalidInput(VisualizerError):
    error_kind = "InvalidInput"
    status_code = status.HTTP_400_BAD_REQUEST


# configuration


class ConfigurationError(VisualizerError):
    error_kind = "ConfigurationError"


class OcrUnavailable(ConfigurationError):
    pass


class ConfigMissing(ConfigurationError):
    pass


class StorageUnavailable(ConfigurationError):
    pass


# upstream services


class UpstreamServiceError(VisualizerError):
    error_kind = "UpstreamServiceError"


class OcrRequestFailed(UpstreamServiceError):
    pass


class OcrProcessingFailed(UpstreamServiceError):
    pass


class UpstreamCallFailed(UpstreamServiceError):
    pass


# generation outcomes


class ContentPolicyError(VisualizerError):
    error_kind = "ContentPolicyError"
    status_code = 422


class ContentBlocked(ContentPolicyError):
    pass


class ModelRefused(ContentPolicyError):
    pass


class GenerationEmptyError(VisualizerError):
    error_kind = "GenerationEmptyError"


class EmptyGeneration(GenerationEmptyError):
    pass


# sandbox


class ExecutionError(VisualizerError):
    error_kind = "ExecutionError"


class ExecutionFailed(ExecutionError):
    def __init__(self, exit_code: int, stderr: str):
        super().__init__(
            f"Visualization script exited with code {exit_code}",
            details={"exitCode": exit_code, "stderr": stderr},
        )
        self.exit_code = exit_code
        self.stderr = stderr


class ProcessSpawnFailed(ExecutionError):
    pass


class ExecutionTimeout(ExecutionError):
    pass


# output parsing


class PayloadFormatError(VisualizerError):
    error_kind = "PayloadFormatError"


class MarkerNotFound(PayloadFormatError):
    def __init__(self, output: str):
        super().__init__(
            "Could not find base64 image markers in the script output",
            details=output,
        )
        self.output = output
