from __future__ import annotations

import logging

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse

from ..models.schemas import (
    AIResult,
    BackgroundRequest,
    BackgroundSuggestionsResult,
    EnhanceQuoteRequest,
    EnhanceQuoteResult,
    ImageIdeasRequest,
    ImageIdeasResult,
    PaletteSuggestionsResult,
    QuoteRequest,
    SentimentAnalysis,
)
from ..services.backgrounds import BackgroundService
from ..services.fallback import FallbackGenerator
from ..services.orchestrator import FeatureOrchestrator, FeatureOutcome, validate_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["ai"])


# ---------- Dependencies ----------
# Handles are built once in the app lifespan; tests swap them through
# app.dependency_overrides.

def get_sentiment_orchestrator(request: Request) -> FeatureOrchestrator:
    return request.app.state.sentiment_orchestrator


def get_enhance_orchestrator(request: Request) -> FeatureOrchestrator:
    return request.app.state.enhance_orchestrator


def get_image_ideas_orchestrator(request: Request) -> FeatureOrchestrator:
    return request.app.state.image_ideas_orchestrator


def get_background_service(request: Request) -> BackgroundService:
    return request.app.state.background_service


def get_fallback_generator(request: Request) -> FallbackGenerator:
    return request.app.state.fallback_generator


def _render(result: AIResult, status_code: int = 200, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=result.model_dump(mode="json", by_alias=True, exclude_none=True),
        headers=headers,
    )


def _respond(outcome: FeatureOutcome) -> JSONResponse:
    """429 with the degraded payload when throttled, 200 otherwise."""
    if outcome.rate_limited:
        headers = {"Retry-After": str(outcome.retry_after)} if outcome.retry_after is not None else None
        return _render(outcome.result, status_code=429, headers=headers)
    return _render(outcome.result)


# ---------- Routes ----------

@router.post("/analyze-sentiment", response_model=SentimentAnalysis, response_model_exclude_none=True)
async def analyze_sentiment(request: QuoteRequest = Body(...),
                            orchestrator: FeatureOrchestrator = Depends(get_sentiment_orchestrator)):
    """Classify a quote as positive, negative or neutral with emotion scores."""
    outcome = await orchestrator.run(request.text)
    return _respond(outcome)


@router.post("/gemini-analyze-sentiment", response_model=SentimentAnalysis, include_in_schema=False)
async def gemini_analyze_sentiment(request: QuoteRequest = Body(...),
                                   orchestrator: FeatureOrchestrator = Depends(get_sentiment_orchestrator)):
    outcome = await orchestrator.run(request.text)
    return _respond(outcome)


@router.post("/enhance-quote", response_model=EnhanceQuoteResult, response_model_exclude_none=True)
async def enhance_quote(request: EnhanceQuoteRequest = Body(...),
                        orchestrator: FeatureOrchestrator = Depends(get_enhance_orchestrator)):
    """Polish a quote and propose up to three variations plus design insights."""
    outcome = await orchestrator.run(request.text, style=request.style)
    return _respond(outcome)


@router.post("/generate-image-ideas", response_model=ImageIdeasResult, response_model_exclude_none=True)
async def generate_image_ideas(request: ImageIdeasRequest = Body(...),
                               orchestrator: FeatureOrchestrator = Depends(get_image_ideas_orchestrator)):
    """Suggest up to four image concepts, each with a ready-to-use generation prompt."""
    outcome = await orchestrator.run(request.text, theme=request.theme, tone=request.tone)
    return _respond(outcome)


@router.post("/suggest-background", response_model=BackgroundSuggestionsResult, response_model_exclude_none=True)
async def suggest_background(request: BackgroundRequest = Body(...),
                             service: BackgroundService = Depends(get_background_service)):
    """
    Suggest backgrounds for a quote.

    `source` picks the provider (mock, unsplash, pexels); `variant` picks
    four sentiment-matched items or the eight-item general mix.
    """
    result = await service.suggest(
        request.text,
        sentiment=request.sentiment,
        source=request.source,
        variant=request.variant,
    )
    return _render(result)


@router.post("/suggest-palettes", response_model=PaletteSuggestionsResult, response_model_exclude_none=True)
async def suggest_palettes(request: QuoteRequest = Body(...),
                           generator: FallbackGenerator = Depends(get_fallback_generator)):
    validate_text(request.text)
    return _render(PaletteSuggestionsResult(palettes=generator.palettes()))
