"""
FastAPI application for ReadingNook.

Mounts every router under /api, renders ReadingNookError subclasses as
``{"error": message}`` with their status code and reports request validation
failures as 400.

Usage:
    uvicorn readingnook.api.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import readingnook.models  # noqa: F401  (registers every mapper on Base)
from readingnook.api.routers import books, goals, library, quotes, reviews, stats
from readingnook.core.config import settings
from readingnook.core.errors import ReadingNookError
from readingnook.db.session import Base, engine

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info(f"ReadingNook API started ({settings.ENVIRONMENT}).")
    yield


async def handle_app_error(request: Request, exc: ReadingNookError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "잘못된 요청입니다."
    logger.info(f"Rejected {request.method} {request.url.path}: {message}")
    return JSONResponse(status_code=400, content={"error": message})


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    app = FastAPI(title="ReadingNook API", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.list_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ReadingNookError, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)

    for module in (books, library, reviews, quotes, goals, stats):
        app.include_router(module.router, prefix=API_PREFIX)

    @app.get("/")
    def root():
        return {"status": "ok"}

    return app


app = create_app()
