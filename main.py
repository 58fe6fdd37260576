import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from apis.base import api_router
from core.config import Settings, get_settings
from core.errors import InvalidInput, VisualizerError
from core.log_setup import setup_logging
from schemas.visualize import ServiceStatus
from services.synthesis import close_genai_client

settings = get_settings()
setup_logging(settings)

log = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await close_genai_client()


app = FastAPI(title=settings.PROJECT_NAME, version=settings.PROJECT_VERSION, lifespan=lifespan)
app.include_router(api_router)


@app.exception_handler(VisualizerError)
async def visualizer_error_handler(request: Request, exc: VisualizerError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_envelope())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    problems = [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    log.warning(f"Rejected request to {request.url.path}: {problems}")
    error = InvalidInput("Invalid request body", details=problems)
    return JSONResponse(status_code=error.status_code, content=error.to_envelope())


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception(f"Unexpected error in {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "errorKind": "InternalError",
            "failure": type(exc).__name__,
            "error": "Internal server error",
            "details": str(exc),
        },
    )


@app.get("/", response_model=ServiceStatus)
async def read_root(settings: Settings = Depends(get_settings)) -> ServiceStatus:
    return ServiceStatus(
        name=settings.PROJECT_NAME,
        version=settings.PROJECT_VERSION,
        services=settings.configured_services(),
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000)
