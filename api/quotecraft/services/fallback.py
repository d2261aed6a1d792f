"""Rule-based substitutes for every AI feature.

The generator never touches the network, so it can always answer when the
model is rate limited, down, or returns something unusable. All randomness
goes through the injected ``random.Random`` instance; production wiring
passes ``random.SystemRandom()``, tests pass a seeded ``random.Random``.
"""

from __future__ import annotations

import random
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..models.schemas import (
    BackgroundSuggestion,
    ColorPalette,
    Emotions,
    EnhanceQuoteResult,
    ImageIdea,
    QuoteInsights,
    SentimentAnalysis,
    clamp,
)
from .keywords import IDEA_STOP_WORDS, extract_keywords, tokenize


POSITIVE_WORDS = frozenset({
    "good", "great", "excellent", "amazing", "wonderful",
    "happy", "joy", "love", "beautiful", "success",
})
NEGATIVE_WORDS = frozenset({
    "bad", "terrible", "awful", "horrible", "sad",
    "angry", "hate", "failure", "ugly", "worst",
})
WORD_WEIGHT = 0.2

SENTIMENT_BACKGROUNDS_COUNT = 4
GENERAL_BACKGROUNDS_COUNT = 8

SHORT_QUOTE_CHARS = 50
LONG_QUOTE_CHARS = 150

# (keywords, theme, tone); first matching bucket wins
THEME_BUCKETS: Tuple[Tuple[Tuple[str, ...], str, str], ...] = (
    (("success", "achieve", "goal"), "Achievement", "Motivational"),
    (("love", "heart", "together"), "Relationships", "Emotional"),
    (("think", "know", "mind"), "Wisdom", "Philosophical"),
)
DEFAULT_THEME = ("Personal growth", "Inspirational")

VARIATION_TEMPLATES = (
    "In truth, {quote}",
    "{quote} Indeed, this is the way forward.",
    "Remember: {quote}",
)

DEFAULT_IMAGE_IDEAS: Tuple[Dict[str, str], ...] = (
    {
        "description": "Abstract geometric shapes with gradient colors",
        "style": "Minimalist, modern",
        "prompt": "Abstract minimalist composition with geometric shapes in gradient colors, "
                  "soft background, modern design, clean lines.",
    },
    {
        "description": "Silhouette of a person on a mountain at sunrise",
        "style": "Photographic, inspirational",
        "prompt": "Silhouette of a person standing on mountain peak at sunrise, golden light, "
                  "inspiring view, panoramic landscape, hope and achievement.",
    },
    {
        "description": "Close-up of a natural element like water ripples or leaves",
        "style": "Macro photography, serene",
        "prompt": "Macro photography of water ripples with soft blue tones, serenity, tranquility, "
                  "zen-like atmosphere, shallow depth of field.",
    },
    {
        "description": "Cosmic or galaxy background with stars and nebulae",
        "style": "Space art, dramatic",
        "prompt": "Deep space background with colorful nebula, distant stars, cosmic dust, deep purples "
                  "and blues, universe expansion, awe-inspiring astronomy art.",
    },
)

SENTIMENT_BACKGROUNDS: Dict[str, Tuple[Dict[str, str], ...]] = {
    "positive": (
        {"type": "gradient", "value": "linear-gradient(135deg, #4ade80 0%, #22d3ee 100%)",
         "description": "Vibrant green to blue gradient"},
        {"type": "gradient", "value": "linear-gradient(135deg, #fde68a 0%, #f59e0b 100%)",
         "description": "Warm sunny gradient"},
        {"type": "color", "value": "#0ea5e9", "description": "Bright sky blue"},
        {"type": "image", "value": "https://images.unsplash.com/photo-1470071459604-3b5ec3a7fe05",
         "description": "Scenic mountain landscape"},
    ),
    "negative": (
        {"type": "gradient", "value": "linear-gradient(135deg, #475569 0%, #0f172a 100%)",
         "description": "Deep blue to dark gradient"},
        {"type": "gradient", "value": "linear-gradient(135deg, #6b7280 0%, #1f2937 100%)",
         "description": "Subtle gray gradient"},
        {"type": "color", "value": "#334155", "description": "Slate gray"},
        {"type": "image", "value": "https://images.unsplash.com/photo-1542273917363-3b1817f69a2d",
         "description": "Misty forest"},
    ),
    "neutral": (
        {"type": "gradient", "value": "linear-gradient(135deg, #e2e8f0 0%, #cbd5e1 100%)",
         "description": "Soft neutral gradient"},
        {"type": "gradient", "value": "linear-gradient(135deg, #f8fafc 0%, #e2e8f0 100%)",
         "description": "Minimal light gradient"},
        {"type": "color", "value": "#f1f5f9", "description": "Clean white with subtle blue tint"},
        {"type": "image", "value": "https://images.unsplash.com/photo-1557683316-973673baf926",
         "description": "Calm water"},
    ),
}

# (trigger words, suggestion); matched as substrings of the lowercased quote
TOPIC_BACKGROUNDS: Tuple[Tuple[Tuple[str, ...], Dict[str, str]], ...] = (
    (("love", "heart"),
     {"type": "gradient", "value": "linear-gradient(135deg, #fb7185 0%, #e11d48 100%)",
      "description": "Romantic pink gradient"}),
    (("nature", "earth", "tree"),
     {"type": "image", "value": "https://images.unsplash.com/photo-1441974231531-c6227db76b6e",
      "description": "Lush green forest"}),
    (("sky", "heaven", "cloud"),
     {"type": "image", "value": "https://images.unsplash.com/photo-1544829728-d6a8e4da3d2e",
      "description": "Blue sky with clouds"}),
    (("ocean", "sea", "water"),
     {"type": "image", "value": "https://images.unsplash.com/photo-1505118380757-91f5f5632de0",
      "description": "Ocean waves"}),
)

# Extra images so the general mix can always fill its image quota
GENERAL_IMAGES: Tuple[Dict[str, str], ...] = (
    {"type": "image", "value": "https://images.unsplash.com/photo-1506905925346-21bda4d32df4",
     "description": "Mountains above the clouds"},
    {"type": "image", "value": "https://images.unsplash.com/photo-1507525428034-b723cf961d3e",
     "description": "Tropical beach at noon"},
    {"type": "image", "value": "https://images.unsplash.com/photo-1501785888041-af3ef285b470",
     "description": "Quiet lake at dusk"},
    {"type": "image", "value": "https://images.unsplash.com/photo-1519681393784-d120267933ba",
     "description": "Starry night over snowy peaks"},
    {"type": "image", "value": "https://images.unsplash.com/photo-1472214103451-9374bd1c798e",
     "description": "Rolling green meadow"},
)

PALETTES: Tuple[Dict[str, str], ...] = (
    {"primary": "#3B82F6", "secondary": "#8B5CF6", "accent": "#F59E0B",
     "background": "#1E293B", "text": "#FFFFFF"},
    {"primary": "#10B981", "secondary": "#0EA5E9", "accent": "#F97316",
     "background": "#FFFFFF", "text": "#1F2937"},
    {"primary": "#EC4899", "secondary": "#8B5CF6", "accent": "#6366F1",
     "background": "#0F172A", "text": "#F8FAFC"},
)

RATE_LIMITED_INSIGHT = "Unknown (AI service unavailable)"


class FallbackGenerator:
    """Deterministic (given its rng) generator for all four features."""

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng if rng is not None else random.SystemRandom()

    # ---------- Sentiment ----------

    def sentiment_score(self, text: str) -> float:
        words = tokenize(text)
        hits = sum(1 for w in words if w in POSITIVE_WORDS) - sum(1 for w in words if w in NEGATIVE_WORDS)
        # Rounded so 0.2 * 3 is 0.6 rather than 0.6000000000000001
        return round(clamp(WORD_WEIGHT * hits, -1.0, 1.0), 4)

    def sentiment(self, text: str) -> SentimentAnalysis:
        score = self.sentiment_score(text)
        emotions = Emotions(
            joy=0.5 + score * 0.5,
            sadness=0.5 - score * 0.5,
            anger=0.3 - score * 0.3,
            fear=0.2 - score * 0.2,
            surprise=self._rng.random() * 0.5 + 0.2,
        )
        return SentimentAnalysis(score=score, emotions=emotions)

    def rate_limited_sentiment(self) -> SentimentAnalysis:
        return SentimentAnalysis(score=0.0, emotions=Emotions())

    # ---------- Quote enhancement ----------

    @staticmethod
    def infer_theme(text: str) -> Tuple[str, str]:
        lower = text.lower()
        for words, theme, tone in THEME_BUCKETS:
            if any(w in lower for w in words):
                return theme, tone
        return DEFAULT_THEME

    @staticmethod
    def style_advice(text: str) -> str:
        if len(text) < SHORT_QUOTE_CHARS:
            return "Use larger typography with a bold, attention-grabbing background."
        if len(text) > LONG_QUOTE_CHARS:
            return "Use a more compact layout with a subtle background that doesn't distract from the text."
        return "Use a clean, minimalist design with ample white space."

    def enhance(self, text: str) -> EnhanceQuoteResult:
        enhanced = text if text.endswith((".", "!", "?")) else text + "."
        theme, tone = self.infer_theme(text)
        return EnhanceQuoteResult(
            enhanced_quote=enhanced,
            variations=[t.format(quote=text) for t in VARIATION_TEMPLATES],
            insights=QuoteInsights(theme=theme, tone=tone, style_advice=self.style_advice(text)),
        )

    def rate_limited_enhance(self, text: str) -> EnhanceQuoteResult:
        return EnhanceQuoteResult(
            enhanced_quote=text,
            variations=[],
            insights=QuoteInsights(
                theme=RATE_LIMITED_INSIGHT,
                tone=RATE_LIMITED_INSIGHT,
                style_advice="Try again later when the service is available.",
            ),
        )

    # ---------- Image ideas ----------

    def image_ideas(self, text: str, theme: Optional[str] = None) -> List[ImageIdea]:
        ideas = [ImageIdea(**idea) for idea in DEFAULT_IMAGE_IDEAS]

        words = extract_keywords(text, min_keywords=0, stop_words=IDEA_STOP_WORDS)
        if words:
            word = self._rng.choice(words)
            ideas[self._rng.randrange(len(ideas))] = ImageIdea(
                description=f'Visual metaphor related to "{word}"',
                style="Conceptual art",
                prompt=f"Conceptual artistic representation of {word}, symbolic imagery, "
                       f"thoughtful composition, meaningful visual metaphor.",
            )

        if theme and theme != "Unknown":
            ideas[self._rng.randrange(len(ideas))] = ImageIdea(
                description=f'Visual representation of the theme: "{theme}"',
                style="Thematic artwork",
                prompt=f"Artistic representation of {theme}, thematic visual elements, symbolic imagery, "
                       f"cohesive color palette, meaningful composition.",
            )
        return ideas

    # ---------- Backgrounds ----------

    @staticmethod
    def topic_backgrounds(text: str) -> List[Dict[str, str]]:
        lower = text.lower()
        return [dict(bg) for words, bg in TOPIC_BACKGROUNDS if any(w in lower for w in words)]

    @staticmethod
    def _sentiment_table(sentiment: Optional[str]) -> Tuple[Dict[str, str], ...]:
        return SENTIMENT_BACKGROUNDS.get(sentiment or "neutral", SENTIMENT_BACKGROUNDS["neutral"])

    def backgrounds(self, text: str, sentiment: Optional[str] = "neutral",
                    count: Optional[int] = SENTIMENT_BACKGROUNDS_COUNT) -> List[BackgroundSuggestion]:
        """Sentiment table plus topic extras, shuffled and cut to `count` (all when None)."""
        pool = [dict(bg) for bg in self._sentiment_table(sentiment)] + self.topic_backgrounds(text)
        self._rng.shuffle(pool)
        return [BackgroundSuggestion(**bg) for bg in pool[:count]]

    def general_backgrounds(self, text: str, sentiment: Optional[str] = "neutral",
                            images: Optional[Sequence[BackgroundSuggestion]] = None) -> List[BackgroundSuggestion]:
        """Exactly eight suggestions: 1-2 colors, 2-3 gradients, the rest images.

        Entries for the requested sentiment and the quote's topics are drawn
        first. `images` (e.g. stock photos) take precedence inside the image
        quota.
        """
        preferred = [dict(bg) for bg in self._sentiment_table(sentiment)] + self.topic_backgrounds(text)
        others = [dict(bg) for table in SENTIMENT_BACKGROUNDS.values() for bg in table]
        others += [dict(bg) for _, bg in TOPIC_BACKGROUNDS] + [dict(bg) for bg in GENERAL_IMAGES]

        n_colors = self._rng.randint(1, 2)
        n_gradients = self._rng.randint(2, 3)
        n_images = GENERAL_BACKGROUNDS_COUNT - n_colors - n_gradients

        picked = self._pick(preferred, others, "color", n_colors)
        picked += self._pick(preferred, others, "gradient", n_gradients)

        fetched = [bg.model_dump() for bg in (images or []) if bg.type == "image"][:n_images]
        picked += fetched + self._pick(preferred, others, "image", n_images - len(fetched),
                                       exclude={bg["value"] for bg in fetched})

        self._rng.shuffle(picked)
        return [BackgroundSuggestion(**bg) for bg in picked]

    def _pick(self, preferred: Iterable[Dict[str, str]], others: Iterable[Dict[str, str]],
              kind: str, count: int, exclude: Optional[set] = None) -> List[Dict[str, str]]:
        seen = set(exclude or ())
        first = self._unique(preferred, kind, seen)
        second = self._unique(others, kind, seen)
        self._rng.shuffle(first)
        self._rng.shuffle(second)
        return (first + second)[:count]

    @staticmethod
    def _unique(entries: Iterable[Dict[str, str]], kind: str, seen: set) -> List[Dict[str, str]]:
        out = []
        for bg in entries:
            if bg["type"] == kind and bg["value"] not in seen:
                seen.add(bg["value"])
                out.append(bg)
        return out

    # ---------- Palettes ----------

    def palettes(self) -> List[ColorPalette]:
        palettes = [ColorPalette(**p) for p in PALETTES]
        self._rng.shuffle(palettes)
        return palettes
