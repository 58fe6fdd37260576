from pydantic import BaseModel


class GeneratedCode(BaseModel):
    raw_text: str
    source_text: str


class ExecutionResult(BaseModel):
    stdout: str = ""
    stderr: str = ""
    exit_code: int
    execution_time: float | None = None
