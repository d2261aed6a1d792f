from __future__ import annotations

import re
from typing import Optional

MAX_CONTEXT_CHARS = 200

_WS_RE = re.compile(r"\s+")

SENTIMENT_TEMPLATE = """You are a JSON API that returns ONLY valid JSON. Analyze the sentiment and emotional tone of the following quote.

Quote: "{quote}"

Return a JSON object with:
1. sentiment: "positive", "negative", or "neutral"
2. score: a number between -1 and 1, where -1 is very negative, 0 is neutral, and 1 is very positive
3. emotions: an object with scores for joy, sadness, anger, fear, surprise (values between 0 and 1)

Return JSON in this EXACT format:
{{
  "sentiment": "positive|negative|neutral",
  "score": 0.75,
  "emotions": {{
    "joy": 0.8,
    "sadness": 0.1,
    "anger": 0.05,
    "fear": 0.1,
    "surprise": 0.3
  }}
}}

CRITICAL: Return ONLY the raw JSON object. No markdown, no code blocks, no explanation or additional text outside of the JSON."""

ENHANCE_TEMPLATE = """You are a JSON API that returns ONLY valid JSON. I have a quote that I'd like to enhance and get variations of. Here's the original quote:

"{quote}"
{style_line}
Provide:
1. An enhanced version of the quote that maintains its core message but makes it more impactful
2. Three alternative variations of the quote with different tones or styles
3. Insights about the quote's theme, tone, and advice on how to visually present it

Return JSON in this EXACT format:
{{
  "enhancedQuote": "Enhanced version here",
  "variations": ["Variation 1", "Variation 2", "Variation 3"],
  "insights": {{
    "theme": "Brief description of the quote's theme",
    "tone": "Description of the quote's tone",
    "styleAdvice": "Brief advice on visual presentation"
  }}
}}

CRITICAL: Return ONLY the raw JSON object. No markdown, no code blocks, no explanation."""

IMAGE_IDEAS_TEMPLATE = """You are a JSON API that returns ONLY valid JSON. I need creative image ideas for a quote design. Here's the information:

Quote: "{quote}"
{context_lines}
Suggest 4 different image ideas that would complement this quote. For each idea, provide:
1. A short description of the image concept
2. The visual style (e.g., minimalist, photographic, watercolor, etc.)
3. A detailed text prompt that could be used with an image generation AI to create this image

Return JSON in this EXACT format, with exactly 4 entries in "ideas":
{{
  "ideas": [
    {{
      "description": "Description of image idea 1",
      "style": "Style of image 1",
      "prompt": "Detailed prompt for image generation AI"
    }},
    {{
      "description": "Description of image idea 2",
      "style": "Style of image 2",
      "prompt": "Detailed prompt for image generation AI"
    }}
  ]
}}

CRITICAL: Return ONLY the raw JSON object. No markdown, no code blocks, no explanation."""


def clean_context(value: Optional[str], limit: int = MAX_CONTEXT_CHARS) -> str:
    """Collapse whitespace and cap an optional context field."""
    if not value or not isinstance(value, str):
        return ""
    collapsed = _WS_RE.sub(" ", value).strip()
    return collapsed[:limit].rstrip()


def build_sentiment_prompt(text: str) -> str:
    return SENTIMENT_TEMPLATE.format(quote=text)


def build_enhance_prompt(text: str, style: Optional[str] = None) -> str:
    style = clean_context(style)
    style_line = f"\nI'd like the enhancement to match this style/tone: {style}\n" if style else ""
    return ENHANCE_TEMPLATE.format(quote=text, style_line=style_line)


def build_image_ideas_prompt(text: str, theme: Optional[str] = None, tone: Optional[str] = None) -> str:
    lines = []
    theme = clean_context(theme)
    tone = clean_context(tone)
    if theme:
        lines.append(f"Theme: {theme}")
    if tone:
        lines.append(f"Tone: {tone}")
    context_lines = "".join(f"{line}\n" for line in lines)
    return IMAGE_IDEAS_TEMPLATE.format(quote=text, context_lines=context_lines)
