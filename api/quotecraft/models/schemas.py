"""Pydantic models for API request and response schemas.

Result models are value objects: they are built fresh for every request and
serialized with camelCase aliases, which is the shape the editor UI reads.
Invariants (score and emotion ranges, the sentiment label derived from the
score, background value syntax) are enforced on construction so that no code
path can hand an inconsistent object to the boundary.
"""

import re
from enum import Enum
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

POSITIVE_THRESHOLD = 0.3
NEGATIVE_THRESHOLD = -0.3
MAX_VARIATIONS = 3
MAX_IMAGE_IDEAS = 4

SentimentLabel = Literal["positive", "negative", "neutral"]

HEX_COLOR_RE = re.compile(r'^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$')
GRADIENT_RE = re.compile(r'^linear-gradient\(.+\)$', re.DOTALL)
IMAGE_URL_RE = re.compile(r'^https?://[^\s/]+\.[^\s/]+\S*$')


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def label_for_score(score: float) -> str:
    """Map a score in [-1, 1] to its sentiment label."""
    if score > POSITIVE_THRESHOLD:
        return "positive"
    if score < NEGATIVE_THRESHOLD:
        return "negative"
    return "neutral"


class BackgroundSource(str, Enum):
    """Where background suggestions come from. Callers always pick one."""
    MOCK = "mock"
    UNSPLASH = "unsplash"
    PEXELS = "pexels"


class BackgroundVariant(str, Enum):
    """Sentiment mode returns 4 items, general mode a fixed 8-item mix."""
    SENTIMENT = "sentiment"
    GENERAL = "general"


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class AIResult(CamelModel):
    """Fields shared by every feature result."""

    error: Optional[str] = Field(None, description="Diagnostic message when the result is degraded")
    rate_limited: Optional[bool] = Field(None, alias="rateLimited")
    retry_after_seconds: Optional[int] = Field(None, alias="retryAfterSeconds")


# ---------- Sentiment ----------

class Emotions(CamelModel):
    joy: float = 0.2
    sadness: float = 0.2
    anger: float = 0.2
    fear: float = 0.2
    surprise: float = 0.2

    @field_validator("joy", "sadness", "anger", "fear", "surprise")
    @classmethod
    def clamp_unit_interval(cls, v: float) -> float:
        return clamp(v)


class SentimentAnalysis(AIResult):
    sentiment: SentimentLabel = "neutral"
    score: float = 0.0
    emotions: Emotions = Field(default_factory=Emotions)

    @field_validator("score")
    @classmethod
    def clamp_score(cls, v: float) -> float:
        return clamp(v, -1.0, 1.0)

    @model_validator(mode="after")
    def derive_label(self):
        self.sentiment = label_for_score(self.score)
        return self


# ---------- Quote enhancement ----------

class QuoteInsights(CamelModel):
    theme: str
    tone: str
    style_advice: str = Field(..., alias="styleAdvice")


class EnhanceQuoteResult(AIResult):
    enhanced_quote: str = Field(..., alias="enhancedQuote")
    variations: List[str] = Field(default_factory=list)
    insights: QuoteInsights

    @field_validator("variations")
    @classmethod
    def limit_variations(cls, v: List[str]) -> List[str]:
        return [item for item in v if item.strip()][:MAX_VARIATIONS]


# ---------- Image ideas ----------

class ImageIdea(CamelModel):
    description: str
    style: str
    prompt: str


class ImageIdeasResult(AIResult):
    ideas: List[ImageIdea] = Field(..., min_length=1)

    @field_validator("ideas")
    @classmethod
    def limit_ideas(cls, v: List[ImageIdea]) -> List[ImageIdea]:
        return v[:MAX_IMAGE_IDEAS]


# ---------- Backgrounds & palettes ----------

class BackgroundSuggestion(CamelModel):
    type: Literal["color", "gradient", "image"]
    value: str
    description: str

    @model_validator(mode="after")
    def value_matches_type(self):
        patterns = {"color": HEX_COLOR_RE, "gradient": GRADIENT_RE, "image": IMAGE_URL_RE}
        if not patterns[self.type].match(self.value):
            raise ValueError(f"Background value {self.value!r} is not a valid {self.type}")
        return self


class BackgroundSuggestionsResult(AIResult):
    backgrounds: List[BackgroundSuggestion]


class ColorPalette(CamelModel):
    primary: str
    secondary: str
    accent: str
    background: str
    text: str

    @field_validator("primary", "secondary", "accent", "background", "text")
    @classmethod
    def validate_hex_color(cls, v: str) -> str:
        if not HEX_COLOR_RE.match(v):
            raise ValueError(f"Invalid hex color: {v}")
        return v


class PaletteSuggestionsResult(AIResult):
    palettes: List[ColorPalette]


# ---------- Requests ----------
# `text` is untyped: a missing, non-string or blank value is reported as
# InvalidInput (400) by the pipeline, not as a schema error (422).

class QuoteRequest(CamelModel):
    text: Optional[Any] = Field(None, description="Quote text", examples=["Stay hungry, stay foolish."])
    author: Optional[str] = None


class EnhanceQuoteRequest(QuoteRequest):
    style: Optional[str] = Field(None, description="Target style or tone for the enhancement")


class ImageIdeasRequest(QuoteRequest):
    theme: Optional[str] = None
    tone: Optional[str] = None


class BackgroundRequest(QuoteRequest):
    sentiment: Optional[str] = "neutral"
    source: str = BackgroundSource.MOCK.value
    variant: str = BackgroundVariant.SENTIMENT.value
