"""Unit tests for the feature pipeline."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from quotecraft.models.exceptions import GeminiException, GeminiRateLimitException, InvalidInputException
from quotecraft.services.gemini import ANALYTICAL_CONFIG, CREATIVE_CONFIG
from quotecraft.services.orchestrator import (
    PARSE_FAILURE_MESSAGE,
    RATE_LIMIT_MESSAGE,
    PipelineState,
    enhance_orchestrator,
    image_ideas_orchestrator,
    sentiment_orchestrator,
)

HAPPY = "I love this beautiful sunny day, what a wonderful success!"


@pytest.fixture
def model():
    client = MagicMock()
    client.generate = AsyncMock()
    return client


class TestInputValidation:
    @pytest.mark.parametrize("text", [None, "", "   ", 42, ["a"]])
    async def test_invalid_text_makes_no_call(self, model, generator, text):
        orchestrator = sentiment_orchestrator(model, generator)

        with pytest.raises(InvalidInputException):
            await orchestrator.run(text)
        model.generate.assert_not_called()


class TestSentimentPipeline:
    async def test_structured_response_is_done(self, model, generator):
        model.generate.return_value = 'Sure! {"sentiment": "positive", "score": 0.8, "emotions": {"joy": 0.9}}'

        outcome = await sentiment_orchestrator(model, generator).run(HAPPY)

        assert outcome.state is PipelineState.DONE
        assert outcome.result.score == 0.8
        assert outcome.result.error is None
        model.generate.assert_awaited_once()
        prompt, config = model.generate.await_args.args
        assert HAPPY in prompt
        assert config is ANALYTICAL_CONFIG

    async def test_rate_limit_degrades_with_flag(self, model, generator):
        model.generate.side_effect = GeminiRateLimitException(retry_after=12)

        outcome = await sentiment_orchestrator(model, generator).run(HAPPY)

        assert outcome.state is PipelineState.DEGRADED
        assert outcome.rate_limited
        assert outcome.retry_after == 12
        assert outcome.result.error == RATE_LIMIT_MESSAGE
        assert outcome.result.rate_limited is True
        assert outcome.result.retry_after_seconds == 12
        assert outcome.result.sentiment == "neutral"

    async def test_upstream_failure_is_silent_fallback(self, model, generator):
        model.generate.side_effect = GeminiException("boom", status_code=500)

        outcome = await sentiment_orchestrator(model, generator).run(HAPPY)

        assert outcome.state is PipelineState.DEGRADED
        assert not outcome.rate_limited
        assert outcome.result.error is None
        assert outcome.result.sentiment == "positive"

    async def test_unexpected_client_error_is_absorbed(self, model, generator):
        model.generate.side_effect = RuntimeError("socket closed")

        outcome = await sentiment_orchestrator(model, generator).run(HAPPY)

        assert outcome.state is PipelineState.DEGRADED
        assert outcome.result.sentiment == "positive"

    async def test_partial_recovery_is_done(self, model, generator):
        model.generate.return_value = "score: -0.7\nIt reads as quite bleak."

        outcome = await sentiment_orchestrator(model, generator).run(HAPPY)

        assert outcome.state is PipelineState.DONE
        assert outcome.result.sentiment == "negative"

    async def test_unparseable_response_is_degraded_with_error(self, model, generator):
        model.generate.return_value = "I'm sorry, I can't do that."

        outcome = await sentiment_orchestrator(model, generator).run(HAPPY)

        assert outcome.state is PipelineState.DEGRADED
        assert outcome.error == PARSE_FAILURE_MESSAGE
        assert outcome.result.error == PARSE_FAILURE_MESSAGE
        assert outcome.result.sentiment == "positive"


class TestEnhancePipeline:
    async def test_style_reaches_prompt(self, model, generator):
        model.generate.return_value = json.dumps({
            "enhancedQuote": "Better.",
            "variations": ["a"],
            "insights": {"theme": "t", "tone": "o", "styleAdvice": "s"},
        })

        outcome = await enhance_orchestrator(model, generator).run("Keep going", style="haiku")

        prompt, config = model.generate.await_args.args
        assert "haiku" in prompt
        assert config is CREATIVE_CONFIG
        assert outcome.result.enhanced_quote == "Better."

    async def test_rate_limited_payload(self, model, generator):
        model.generate.side_effect = GeminiRateLimitException()

        outcome = await enhance_orchestrator(model, generator).run("Keep going")

        assert outcome.result.enhanced_quote == "Keep going"
        assert outcome.result.variations == []
        assert outcome.result.retry_after_seconds is None


class TestImageIdeasPipeline:
    async def test_rate_limited_payload_has_ideas(self, model, generator):
        model.generate.side_effect = GeminiRateLimitException(retry_after=5)

        outcome = await image_ideas_orchestrator(model, generator).run("Courage grows", theme="Grit")

        assert outcome.rate_limited
        assert 1 <= len(outcome.result.ideas) <= 4

    async def test_theme_and_tone_reach_prompt(self, model, generator):
        model.generate.return_value = json.dumps({"ideas": [{"description": "d", "style": "s", "prompt": "p"}]})

        outcome = await image_ideas_orchestrator(model, generator).run("Courage", theme="Grit", tone="Calm")

        prompt, _ = model.generate.await_args.args
        assert "Theme: Grit" in prompt
        assert "Tone: Calm" in prompt
        assert len(outcome.result.ideas) == 1
