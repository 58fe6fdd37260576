import os
import sys
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

load_dotenv()


def _int_env(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _float_env(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    PROJECT_NAME: str = "Math Visualizer"
    PROJECT_VERSION: str = "1.0.0"

    # OCR.space settings
    OCR_SPACE_API_KEY: str | None = None
    OCR_SPACE_URL: str = "https://api.ocr.space/parse/image"
    OCR_DEFAULT_LANGUAGE: str = "eng"
    OCR_TIMEOUT_SECONDS: float = 30.0

    # Gemini settings
    GEMINI_API_KEY: str | None = None
    GEMINI_MODEL: str = "gemini-2.0-flash"
    GENERATION_TEMPERATURE: float = 0.3
    GENERATION_TOP_K: int = 1
    GENERATION_TOP_P: float = 1.0
    GENERATION_MAX_OUTPUT_TOKENS: int = 2048

    # Supabase settings
    SUPABASE_URL: str | None = None
    SUPABASE_ANON_KEY: str | None = None

    # sandbox settings
    PYTHON_EXECUTABLE: str = sys.executable or "python3"
    EXECUTION_TIMEOUT_SECONDS: float = 30.0
    EXECUTION_CPU_LIMIT_SECONDS: int = 60
    EXECUTION_MEMORY_LIMIT_MB: int = 1024

    # logging settings
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            OCR_SPACE_API_KEY=os.getenv("OCR_SPACE_API_KEY") or None,
            OCR_SPACE_URL=os.getenv("OCR_SPACE_URL", "https://api.ocr.space/parse/image"),
            OCR_DEFAULT_LANGUAGE=os.getenv("OCR_DEFAULT_LANGUAGE", "eng"),
            OCR_TIMEOUT_SECONDS=_float_env("OCR_TIMEOUT_SECONDS", 30.0),
            GEMINI_API_KEY=os.getenv("GEMINI_API_KEY") or None,
            GEMINI_MODEL=os.getenv("GEMINI_MODEL", "gemini-2.0-flash"),
            GENERATION_TEMPERATURE=_float_env("GENERATION_TEMPERATURE", 0.3),
            GENERATION_TOP_K=_int_env("GENERATION_TOP_K", 1),
            GENERATION_TOP_P=_float_env("GENERATION_TOP_P", 1.0),
            GENERATION_MAX_OUTPUT_TOKENS=_int_env("GENERATION_MAX_OUTPUT_TOKENS", 2048),
            SUPABASE_URL=os.getenv("SUPABASE_URL") or os.getenv("NEXT_PUBLIC_SUPABASE_URL") or None,
            SUPABASE_ANON_KEY=os.getenv("SUPABASE_ANON_KEY")
            or os.getenv("NEXT_PUBLIC_SUPABASE_ANON_KEY")
            or None,
            PYTHON_EXECUTABLE=os.getenv("PYTHON_EXECUTABLE", sys.executable or "python3"),
            EXECUTION_TIMEOUT_SECONDS=_float_env("EXECUTION_TIMEOUT_SECONDS", 30.0),
            EXECUTION_CPU_LIMIT_SECONDS=_int_env("EXECUTION_CPU_LIMIT_SECONDS", 60),
            EXECUTION_MEMORY_LIMIT_MB=_int_env("EXECUTION_MEMORY_LIMIT_MB", 1024),
            LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
            LOG_FILE=os.getenv("LOG_FILE") or None,
        )

    def configured_services(self) -> dict[str, bool]:
        return {
            "ocr": bool(self.OCR_SPACE_API_KEY),
            "generation": bool(self.GEMINI_API_KEY),
            "storage": bool(self.SUPABASE_URL and self.SUPABASE_ANON_KEY),
        }


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
