from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tracker.api.v1.api import api_router
from tracker.core.config import settings
from tracker.core.exceptions import (
    ProjectNotFoundError,
    ProjectValidationError,
    RequirementsNotMetError,
)
from tracker.core.logging import configure_logging
from tracker.db.session import init_db

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("startup_begin", app_name=settings.PROJECT_NAME, version=settings.VERSION)
    init_db()
    yield
    logger.info("shutdown_complete")


async def not_found_handler(request: Request, exc: ProjectNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": "Project not found"})


async def validation_handler(request: Request, exc: ProjectValidationError) -> JSONResponse:
    logger.info("project_write_rejected", path=request.url.path, reason=str(exc))
    return JSONResponse(
        status_code=422,
        content={"detail": str(exc)},
    )


async def requirements_handler(request: Request, exc: RequirementsNotMetError) -> JSONResponse:
    logger.info("transition_blocked", path=request.url.path, transition=exc.transition, missing=exc.missing)
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": {"message": str(exc), "missing": exc.missing}},
    )


def create_app() -> FastAPI:
    configure_logging(settings.LOG_LEVEL, json_logs=settings.JSON_LOGS)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        lifespan=lifespan,
    )

    # Set up CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ProjectNotFoundError, not_found_handler)
    app.add_exception_handler(ProjectValidationError, validation_handler)
    app.add_exception_handler(RequirementsNotMetError, requirements_handler)

    # Include API routes
    app.include_router(api_router, prefix=settings.API_V1_STR)
    return app


app = create_app()
