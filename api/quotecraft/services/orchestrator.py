"""Generic build -> call -> parse -> validate pipeline shared by the AI features.

Every run ends in one of two states. ``DONE`` means the model answered and at
least part of the answer was usable. ``DEGRADED`` means the caller gets the
rule-based result instead, possibly annotated with an ``error`` string and,
for upstream throttling, the rate-limit flag.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from ..models.exceptions import GeminiException, GeminiRateLimitException, InvalidInputException
from ..models.schemas import AIResult, ImageIdeasResult
from .fallback import FallbackGenerator
from .gemini import ANALYTICAL_CONFIG, CREATIVE_CONFIG, GeminiClient, GenerationConfig
from .prompts import build_enhance_prompt, build_image_ideas_prompt, build_sentiment_prompt
from .response_parser import ParseOutcome, parse_enhance, parse_image_ideas, parse_sentiment

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "AI service rate limit reached. Please try again later."
PARSE_FAILURE_MESSAGE = "Failed to parse AI response"


class PipelineState(str, Enum):
    IDLE = "idle"
    BUILDING_PROMPT = "building_prompt"
    AWAITING_MODEL = "awaiting_model"
    PARSING = "parsing"
    VALIDATING = "validating"
    DONE = "done"
    DEGRADED = "degraded"


@dataclass(frozen=True)
class FeatureOutcome:
    result: AIResult
    state: PipelineState
    rate_limited: bool = False
    retry_after: Optional[int] = None
    error: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.state is PipelineState.DEGRADED


def validate_text(text: Any) -> str:
    """Return `text` if it is a non-blank string, else raise InvalidInputException."""
    if not isinstance(text, str) or not text.strip():
        raise InvalidInputException()
    return text


class FeatureOrchestrator:
    """Runs one AI feature end to end and never lets an upstream failure escape.

    Args:
        name: feature name used in logs
        build_prompt: ``(text, **context) -> str``
        parse: ``(raw, text, fallback_thunk) -> ParseOutcome``
        fallback: ``(text, **context) -> AIResult`` rule-based result
        rate_limited_result: ``(text, **context) -> AIResult`` payload served with a 429
        config: sampling parameters for the model call
        client: the generative model client
    """

    def __init__(self,
                 name: str,
                 build_prompt: Callable[..., str],
                 parse: Callable[[str, str, Callable[[], AIResult]], ParseOutcome],
                 fallback: Callable[..., AIResult],
                 rate_limited_result: Callable[..., AIResult],
                 config: GenerationConfig,
                 client: GeminiClient):
        self.name = name
        self.build_prompt = build_prompt
        self.parse = parse
        self.fallback = fallback
        self.rate_limited_result = rate_limited_result
        self.config = config
        self.client = client

    def _enter(self, state: PipelineState) -> PipelineState:
        logger.debug(f"{self.name}: {state.value}")
        return state

    async def run(self, text: Any, **context: Any) -> FeatureOutcome:
        self._enter(PipelineState.IDLE)
        text = validate_text(text)

        self._enter(PipelineState.BUILDING_PROMPT)
        prompt = self.build_prompt(text, **context)

        self._enter(PipelineState.AWAITING_MODEL)
        try:
            raw = await self.client.generate(prompt, self.config)
        except GeminiRateLimitException as e:
            logger.warning(f"{self.name}: Gemini rate limit reached (retry after {e.retry_after})")
            result = self.rate_limited_result(text, **context).model_copy(update={
                "error": RATE_LIMIT_MESSAGE,
                "rate_limited": True,
                "retry_after_seconds": e.retry_after,
            })
            return FeatureOutcome(result, self._enter(PipelineState.DEGRADED), rate_limited=True,
                                  retry_after=e.retry_after, error=RATE_LIMIT_MESSAGE)
        except GeminiException as e:
            logger.warning(f"{self.name}: Gemini call failed, using fallback: {e.message}")
            return FeatureOutcome(self.fallback(text, **context), self._enter(PipelineState.DEGRADED))
        except Exception as e:
            logger.warning(f"{self.name}: unexpected model client error, using fallback: {e}", exc_info=True)
            return FeatureOutcome(self.fallback(text, **context), self._enter(PipelineState.DEGRADED))

        self._enter(PipelineState.PARSING)
        outcome = self.parse(raw, text, lambda: self.fallback(text, **context))

        self._enter(PipelineState.VALIDATING)
        if outcome.structured:
            return FeatureOutcome(outcome.result, self._enter(PipelineState.DONE))
        if outcome.recovered_fields:
            logger.info(f"{self.name}: recovered {list(outcome.recovered_fields)} from unstructured response")
            return FeatureOutcome(outcome.result, self._enter(PipelineState.DONE))

        logger.warning(f"{self.name}: model response unusable, serving fallback")
        result = outcome.result.model_copy(update={"error": PARSE_FAILURE_MESSAGE})
        return FeatureOutcome(result, self._enter(PipelineState.DEGRADED), error=PARSE_FAILURE_MESSAGE)


# ---------- Feature wiring ----------

def sentiment_orchestrator(client: GeminiClient, generator: FallbackGenerator) -> FeatureOrchestrator:
    return FeatureOrchestrator(
        name="sentiment",
        build_prompt=lambda text: build_sentiment_prompt(text),
        parse=parse_sentiment,
        fallback=lambda text: generator.sentiment(text),
        rate_limited_result=lambda text: generator.rate_limited_sentiment(),
        config=ANALYTICAL_CONFIG,
        client=client,
    )


def enhance_orchestrator(client: GeminiClient, generator: FallbackGenerator) -> FeatureOrchestrator:
    return FeatureOrchestrator(
        name="enhance_quote",
        build_prompt=lambda text, style=None: build_enhance_prompt(text, style),
        parse=parse_enhance,
        fallback=lambda text, style=None: generator.enhance(text),
        rate_limited_result=lambda text, style=None: generator.rate_limited_enhance(text),
        config=CREATIVE_CONFIG,
        client=client,
    )


def image_ideas_orchestrator(client: GeminiClient, generator: FallbackGenerator) -> FeatureOrchestrator:
    def fallback(text, theme=None, tone=None):
        return ImageIdeasResult(ideas=generator.image_ideas(text, theme))

    return FeatureOrchestrator(
        name="image_ideas",
        build_prompt=lambda text, theme=None, tone=None: build_image_ideas_prompt(text, theme, tone),
        parse=parse_image_ideas,
        fallback=fallback,
        rate_limited_result=fallback,
        config=CREATIVE_CONFIG,
        client=client,
    )
