from __future__ import annotations

import re
from typing import List

_SPLIT_RE = re.compile(r"\W+")

MIN_KEYWORD_LENGTH = 4

STOP_WORDS = frozenset({
    "that", "this", "with", "from", "they", "have", "what", "when", "were",
    "will", "would", "make", "like", "time", "just", "know", "take", "people",
    "year", "your", "good", "some", "could", "them", "about", "then", "than",
})

# Shorter list used when picking a concept for image ideas
IDEA_STOP_WORDS = frozenset({
    "this", "that", "these", "those", "with", "from", "have", "were", "they",
})

SENTIMENT_KEYWORDS = {
    "positive": ["happy", "sunshine", "success", "inspiration", "motivation", "achievement"],
    "negative": ["moody", "rain", "storm", "dark", "struggle", "challenge"],
    "neutral": ["calm", "balance", "minimal", "sky", "nature", "abstract"],
}


def tokenize(text: str) -> List[str]:
    """Lowercase and split on non-word characters, dropping empty tokens."""
    return [t for t in _SPLIT_RE.split(text.lower()) if t]


def get_sentiment_keywords(sentiment: str | None) -> List[str]:
    return list(SENTIMENT_KEYWORDS.get(sentiment or "neutral", SENTIMENT_KEYWORDS["neutral"]))


def extract_keywords(text: str, sentiment: str | None = None, min_keywords: int = 2,
                     stop_words: frozenset = STOP_WORDS) -> List[str]:
    """Return distinct content words of `text` in first-seen order.

    Words shorter than four characters and stop words are dropped. When fewer
    than `min_keywords` remain the list is padded with the first two
    sentiment keywords; pass `min_keywords=0` to disable padding.
    """
    keywords: List[str] = []
    for word in tokenize(text):
        if len(word) < MIN_KEYWORD_LENGTH or word in stop_words or word in keywords:
            continue
        keywords.append(word)

    if len(keywords) < min_keywords:
        for word in get_sentiment_keywords(sentiment)[:2]:
            if word not in keywords:
                keywords.append(word)
    return keywords
