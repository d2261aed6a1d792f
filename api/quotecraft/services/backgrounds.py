"""Background suggestions from the local generator or a stock photo provider.

The caller names the source explicitly. A remote source searches one keyword
at a time; a failed or empty search only loses that slot, and whatever the
provider could not fill is completed from the local generator.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..models.exceptions import InvalidInputException, StockPhotoException
from ..models.schemas import (
    BackgroundSource,
    BackgroundSuggestion,
    BackgroundSuggestionsResult,
    BackgroundVariant,
)
from .fallback import SENTIMENT_BACKGROUNDS_COUNT, FallbackGenerator
from .keywords import extract_keywords, get_sentiment_keywords
from .orchestrator import validate_text
from .stock_photos import StockPhotoClient

logger = logging.getLogger(__name__)

MAX_REMOTE_IMAGES = 4
SENTIMENT_LABELS = ("positive", "negative", "neutral")


def _parse_choice(enum_cls, value: Any, field: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise InvalidInputException(field, f"Invalid request. {field} must be one of: {allowed}.")


class BackgroundService:
    def __init__(self, generator: FallbackGenerator, providers: Dict[BackgroundSource, StockPhotoClient]):
        self.generator = generator
        self.providers = providers

    async def suggest(self,
                      text: Any,
                      sentiment: Optional[str] = "neutral",
                      source: Any = BackgroundSource.MOCK.value,
                      variant: Any = BackgroundVariant.SENTIMENT.value) -> BackgroundSuggestionsResult:
        text = validate_text(text)
        source = _parse_choice(BackgroundSource, source, "source")
        variant = _parse_choice(BackgroundVariant, variant, "variant")
        if sentiment not in SENTIMENT_LABELS:
            sentiment = "neutral"

        images: List[BackgroundSuggestion] = []
        if source is not BackgroundSource.MOCK:
            client = self.providers.get(source)
            if client is None or not client.configured:
                logger.info(f"{source.value} credentials not configured; using local backgrounds")
            else:
                images = await self.fetch_images(client, text, sentiment)

        if variant is BackgroundVariant.GENERAL:
            backgrounds = self.generator.general_backgrounds(text, sentiment, images=images)
        else:
            backgrounds = self._fill(images, text, sentiment)
        return BackgroundSuggestionsResult(backgrounds=backgrounds)

    async def fetch_images(self, client: StockPhotoClient, text: str, sentiment: str) -> List[BackgroundSuggestion]:
        """Up to four photos: quote keywords first, then sentiment keywords."""
        images: List[BackgroundSuggestion] = []
        tried = set()

        keywords = extract_keywords(text, sentiment)[:MAX_REMOTE_IMAGES]
        for keyword in keywords + get_sentiment_keywords(sentiment):
            if len(images) >= MAX_REMOTE_IMAGES:
                break
            if keyword in tried:
                continue
            tried.add(keyword)
            image = await self._search(client, keyword)
            if image is not None and image.value not in {i.value for i in images}:
                images.append(image)
        return images

    async def _search(self, client: StockPhotoClient, keyword: str) -> Optional[BackgroundSuggestion]:
        try:
            photo = await client.search(keyword)
        except StockPhotoException as e:
            logger.warning(f"{e.message}; skipping", extra={"details": e.details})
            return None
        if photo is None:
            return None
        try:
            return BackgroundSuggestion(
                type="image",
                value=photo.url,
                description=f"{keyword} (via {client.provider} by {photo.attribution_name})",
            )
        except ValueError:
            logger.warning(f"{client.provider} returned an unusable url for '{keyword}': {photo.url}")
            return None

    def _fill(self, images: List[BackgroundSuggestion], text: str, sentiment: str) -> List[BackgroundSuggestion]:
        if len(images) >= SENTIMENT_BACKGROUNDS_COUNT:
            return images[:SENTIMENT_BACKGROUNDS_COUNT]
        if images:
            logger.info(f"Stock search returned {len(images)} images; filling with local backgrounds")
        taken = {i.value for i in images}
        extras = [bg for bg in self.generator.backgrounds(text, sentiment, count=None)
                  if bg.value not in taken]
        return images + extras[:SENTIMENT_BACKGROUNDS_COUNT - len(images)]
