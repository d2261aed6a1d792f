import logging
import random
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import settings
from .core.logging import setup_logging
from .middleware.request_context import RequestContextMiddleware
from .models.exceptions import (
    EXCEPTION_HANDLERS,
    InvalidInputException,
    QuoteCraftException,
    to_http_exception,
)
from .models.schemas import BackgroundSource
from .routers import ai, health
from .services.backgrounds import BackgroundService
from .services.fallback import FallbackGenerator
from .services.gemini import GeminiClient
from .services.orchestrator import enhance_orchestrator, image_ideas_orchestrator, sentiment_orchestrator
from .services.stock_photos import PexelsClient, UnsplashClient


setup_logging(settings.log_level, settings.log_format)
logger = logging.getLogger(__name__)


def build_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.gemini_timeout),
        limits=httpx.Limits(max_connections=settings.http_max_connections),
    )


def init_state(app: FastAPI, http_client: httpx.AsyncClient, rng: random.Random = None) -> None:
    """Attach the process-wide clients, generator and pipelines to `app.state`."""
    generator = FallbackGenerator(rng if rng is not None else random.SystemRandom())
    gemini = GeminiClient(settings.gemini_api_key, settings.gemini_model, http_client,
                          base_url=settings.gemini_base_url)
    unsplash = UnsplashClient(settings.unsplash_access_key, http_client, timeout=settings.stock_photo_timeout)
    pexels = PexelsClient(settings.pexels_api_key, http_client, timeout=settings.stock_photo_timeout)

    app.state.http_client = http_client
    app.state.fallback_generator = generator
    app.state.gemini_client = gemini
    app.state.unsplash_client = unsplash
    app.state.pexels_client = pexels
    app.state.sentiment_orchestrator = sentiment_orchestrator(gemini, generator)
    app.state.enhance_orchestrator = enhance_orchestrator(gemini, generator)
    app.state.image_ideas_orchestrator = image_ideas_orchestrator(gemini, generator)
    app.state.background_service = BackgroundService(
        generator, {BackgroundSource.UNSPLASH: unsplash, BackgroundSource.PEXELS: pexels}
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build shared clients on startup and close the HTTP pool on shutdown."""
    http_client = build_http_client()
    init_state(app, http_client)
    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY not set; AI features will use local fallbacks")
    logger.info(f"{settings.service_name} started ({settings.service_env})")

    yield

    await http_client.aclose()
    logger.info("Shutdown completed")


app = FastAPI(
    title=settings.service_name,
    description="QuoteCraft API - AI-assisted content for quote images",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(RequestContextMiddleware)

origins = [o.strip() for o in (settings.cors_allow_origins or "").split(",") if o.strip()]
if not origins:
    # Default: wildcard in dev; restrict in production
    origins = [] if settings.is_production else ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "X-Request-ID"],
)


@app.exception_handler(QuoteCraftException)
async def quotecraft_exception_handler(request: Request, exc: QuoteCraftException):
    """Handle custom QuoteCraft exceptions."""
    for exc_type, handler in EXCEPTION_HANDLERS.items():
        if isinstance(exc, exc_type):
            http_exc = handler(exc)
            return JSONResponse(status_code=http_exc.status_code, content=http_exc.detail)

    http_exc = to_http_exception(exc, status_code=500)
    return JSONResponse(status_code=http_exc.status_code, content=http_exc.detail)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies get the same 400 as a missing quote."""
    logger.info(f"Rejected request body on {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content={"error": InvalidInputException().message})


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    request_id = getattr(request.state, "request_id", "unknown")
    logger.error(
        f"Unhandled exception: {exc}" if not settings.is_production else "Unhandled exception occurred",
        extra={
            "request_id": request_id,
            "method": request.method,
            "url": str(request.url),
            "error_type": type(exc).__name__,
        },
        exc_info=True,
    )
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


app.include_router(ai.router)
app.include_router(health.router)
