import logging
import sys

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from pillreminder.api.pill_regimens import router as pill_regimens_router
from pillreminder.core.config import settings
from pillreminder.core.exceptions import (
    DataIntegrityError,
    DuplicateExternalIdError,
    NotFoundError,
    ValidationError,
)

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


def _error_response(request: Request, status_code: int, message: str) -> JSONResponse:
    logger.error(f"HTTP {status_code}: {message} - {request.url}")
    return JSONResponse(
        status_code=status_code,
        content={
            "error": True,
            "message": message,
            "status_code": status_code,
        },
    )


def create_app() -> FastAPI:
    app = FastAPI(title=settings.PROJECT_NAME)
    app.include_router(
        pill_regimens_router,
        prefix=f"{settings.API_V1_STR}/pill-regimens",
        tags=["pill-regimens"],
    )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _error_response(request, 404, str(exc))

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return _error_response(request, 422, str(exc))

    @app.exception_handler(DuplicateExternalIdError)
    async def duplicate_external_id_handler(request: Request, exc: DuplicateExternalIdError):
        return _error_response(request, 409, str(exc))

    @app.exception_handler(DataIntegrityError)
    async def data_integrity_handler(request: Request, exc: DataIntegrityError):
        return _error_response(request, 500, str(exc))

    if settings.METRICS_ENABLED:
        Instrumentator().instrument(app).expose(app, endpoint="/metrics")
    return app


app = create_app()
