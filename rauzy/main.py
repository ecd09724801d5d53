"""FastAPI app factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rauzy import __version__
from rauzy.config import settings
from rauzy.dependencies import get_context
from rauzy.engine.errors import CapabilityUnavailableError, DecompositionError, ValidationError

load_dotenv()

logging.basicConfig(
    level=getattr(logging, settings.rauzy_log_level.upper(), logging.INFO),
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    ctx = get_context()
    ctx.start_sweeper()
    try:
        yield
    finally:
        ctx.stop_sweeper()


async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


async def _engine_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Engine failure on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": str(exc)})


def create_app() -> FastAPI:
    app = FastAPI(
        title="Rauzy Workbench",
        description="Rauzy fractal base points and Liu's theorem path analysis",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ValidationError, _validation_error)
    app.add_exception_handler(DecompositionError, _engine_error)
    app.add_exception_handler(CapabilityUnavailableError, _engine_error)

    from rauzy.api.router import api_router

    app.include_router(api_router)

    return app


app = create_app()
