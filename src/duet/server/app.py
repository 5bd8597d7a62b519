"""FastAPI application for the generation backend."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..errors import ConfigurationError, DuetError, InvalidRequestError
from ..llm import ProviderRegistry
from .routes import health_router, router
from .service import GenerationService


async def invalid_request_handler(request: Request, exc: InvalidRequestError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(exc)})


async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    """Missing credential or unroutable model; the message names the fix."""
    return JSONResponse(status_code=500, content={"error": str(exc)})


async def duet_error_handler(request: Request, exc: DuetError) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc) or "Internal server error"})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(InvalidRequestError, invalid_request_handler)
    app.add_exception_handler(ConfigurationError, configuration_error_handler)
    app.add_exception_handler(DuetError, duet_error_handler)


def create_app(
    registry: ProviderRegistry | None = None,
    service: GenerationService | None = None,
) -> FastAPI:
    """Create the backend app.

    Args:
        registry: Provider registry (defaults read credentials from the environment)
        service: Pre-built service; takes precedence over ``registry``
    """
    generation_service = service or GenerationService(registry)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await generation_service.close()

    app = FastAPI(
        title="Duet generation backend",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.service = generation_service

    # Browser clients call the backend cross-origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(router)
    app.include_router(health_router)
    return app
