"""Turn untrusted model output into typed results.

Stage 1 (structured): take the span from the first ``{`` to the last ``}``,
decode it as JSON and check it against the feature's guardrail contract.

Stage 2 (tolerant scan), only when stage 1 fails. Grammar of one pair::

    pair  := quote? KEY quote? ws* ':' ws* value
    value := '"' text up to the next unescaped '"'
           | "'" text up to the next "'"
           | bare text up to the next ',', '}', ']' or newline

KEY must not be preceded by a word character, so ``tone`` never matches
inside ``undertone``. List values (``variations``) are the bracketed span
after ``KEY:``, split into quoted items, or on commas/newlines when the
items are unquoted. Image ideas are split at each ``description`` key and
their ``style``/``prompt`` are read only up to the next one.

Numbers must be finite: ``NaN`` and ``Infinity`` fail both stages.

Whatever neither stage recovers is taken from the fallback generator's
result for the same input. Parsers never raise.
"""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from ..models.schemas import (
    MAX_IMAGE_IDEAS,
    Emotions,
    EnhanceQuoteResult,
    ImageIdea,
    ImageIdeasResult,
    QuoteInsights,
    SentimentAnalysis,
    label_for_score,
)
from .guardrails import contract_errors

logger = logging.getLogger(__name__)

EMOTION_KEYS = ("joy", "sadness", "anger", "fear", "surprise")
BARE_VALUE_TERMINATORS = ",}]\n"

# Representative score for a label recovered without a usable score
LABEL_SCORES = {"positive": 0.5, "negative": -0.5, "neutral": 0.0}

_QUOTED_ITEM_RE = re.compile(r'"((?:[^"\\]|\\.)*)"')


@dataclass(frozen=True)
class ParseOutcome:
    result: Any
    structured: bool
    recovered_fields: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def recovered_anything(self) -> bool:
        return self.structured or bool(self.recovered_fields)


# ---------- Stage 1 ----------

def extract_json_span(raw: str) -> Optional[str]:
    """Substring from the first '{' to the last '}', or None."""
    if not isinstance(raw, str):
        return None
    start = raw.find("{")
    end = raw.rfind("}")
    if start == -1 or end <= start:
        return None
    return raw[start:end + 1]


def _reject_constant(name: str) -> None:
    raise ValueError(f"non-finite number {name}")


def load_structured(raw: str, contract: str) -> Optional[Dict[str, Any]]:
    """Decode the JSON span of `raw` and return it only if it meets `contract`."""
    span = extract_json_span(raw)
    if span is None:
        logger.debug("No JSON object found in model response")
        return None
    try:
        payload = json.loads(span, parse_constant=_reject_constant)
    except ValueError as e:
        logger.debug(f"Model response JSON did not decode: {e}")
        return None
    errors = contract_errors(contract, payload)
    if errors:
        logger.debug(f"Model response violates {contract}: {errors}")
        return None
    return payload


# ---------- Stage 2 ----------

def _key_pattern(key: str) -> re.Pattern:
    return re.compile(r'(?<![\w])["\']?' + re.escape(key) + r'["\']?\s*:\s*')


def _read_value(raw: str, pos: int) -> str:
    if pos >= len(raw):
        return ""
    opener = raw[pos]
    if opener == '"':
        out = []
        i = pos + 1
        while i < len(raw):
            ch = raw[i]
            if ch == "\\" and i + 1 < len(raw):
                out.append(raw[i + 1])
                i += 2
                continue
            if ch == '"':
                break
            out.append(ch)
            i += 1
        return "".join(out).strip()
    if opener == "'":
        end = raw.find("'", pos + 1)
        return (raw[pos + 1:] if end == -1 else raw[pos + 1:end]).strip()
    if opener in "{[":
        return ""
    end = pos
    while end < len(raw) and raw[end] not in BARE_VALUE_TERMINATORS:
        end += 1
    return raw[pos:end].strip()


def iter_values(raw: str, key: str) -> Iterator[str]:
    """Yield every non-empty scalar value of `key` in document order."""
    for match in _key_pattern(key).finditer(raw):
        value = _read_value(raw, match.end())
        if value:
            yield value


def scan_fields(raw: str, keys: Sequence[str]) -> Dict[str, str]:
    """First scalar value for each key that occurs in `raw`."""
    found: Dict[str, str] = {}
    if not isinstance(raw, str):
        return found
    for key in keys:
        value = next(iter_values(raw, key), None)
        if value is not None:
            found[key] = value
    return found


def _closing_bracket(raw: str, start: int) -> int:
    in_quote = False
    i = start
    while i < len(raw):
        ch = raw[i]
        if ch == "\\" and in_quote:
            i += 2
            continue
        if ch == '"':
            in_quote = not in_quote
        elif ch == "]" and not in_quote:
            return i
        i += 1
    return -1


def _unescape(item: str) -> str:
    try:
        return json.loads(f'"{item}"')
    except ValueError:
        return item


def scan_list(raw: str, key: str) -> List[str]:
    """Items of the first bracketed list following `key:`."""
    if not isinstance(raw, str):
        return []
    for match in _key_pattern(key).finditer(raw):
        start = match.end()
        if start >= len(raw) or raw[start] != "[":
            continue
        end = _closing_bracket(raw, start + 1)
        body = raw[start + 1:] if end == -1 else raw[start + 1:end]
        quoted = [_unescape(item).strip() for item in _QUOTED_ITEM_RE.findall(body)]
        items = quoted or [part.strip().strip("'\"-* ").strip() for part in re.split(r"[,\n]", body)]
        return [item for item in items if item]
    return []


def idea_segments(raw: str) -> List[Tuple[str, str]]:
    """Split `raw` at each ``description`` key.

    Each entry is the description value and the text after it up to the next
    ``description``, so sibling fields are only read from their own idea.
    """
    if not isinstance(raw, str):
        return []
    matches = list(_key_pattern("description").finditer(raw))
    segments = []
    for i, match in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(raw)
        description = _read_value(raw, match.end())
        if description:
            segments.append((description, raw[match.end():end]))
    return segments


def _to_float(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


# ---------- Feature parsers ----------

def parse_sentiment(raw: str, text: str, fallback: Callable[[], SentimentAnalysis]) -> ParseOutcome:
    payload = load_structured(raw, "sentiment.json")
    if payload is not None:
        try:
            backup = None
            emotions = {}
            for key in EMOTION_KEYS:
                value = payload["emotions"].get(key)
                if value is None:
                    backup = backup or fallback()
                    value = getattr(backup.emotions, key)
                emotions[key] = value
            result = SentimentAnalysis(score=payload["score"], emotions=Emotions(**emotions))
            if result.sentiment != payload["sentiment"]:
                logger.info(
                    f"Model labelled score {payload['score']} as {payload['sentiment']}; "
                    f"using {result.sentiment}"
                )
            return ParseOutcome(result, structured=True)
        except (ValidationError, TypeError, AttributeError) as e:
            logger.debug(f"Structured sentiment payload rejected: {e}")

    found = scan_fields(raw, ("sentiment", "score") + EMOTION_KEYS)
    base = fallback()
    recovered: List[str] = []

    score = _to_float(found.get("score"))
    label = found.get("sentiment", "").lower()
    if score is not None:
        recovered.append("score")
    elif label in LABEL_SCORES:
        recovered.append("sentiment")
        score = base.score if label_for_score(base.score) == label else LABEL_SCORES[label]
    else:
        score = base.score

    emotions = base.emotions.model_dump()
    for key in EMOTION_KEYS:
        value = _to_float(found.get(key))
        if value is not None:
            emotions[key] = value
            recovered.append(key)

    return ParseOutcome(
        SentimentAnalysis(score=score, emotions=Emotions(**emotions)),
        structured=False,
        recovered_fields=tuple(recovered),
    )


def parse_enhance(raw: str, text: str, fallback: Callable[[], EnhanceQuoteResult]) -> ParseOutcome:
    payload = load_structured(raw, "enhance.json")
    if payload is not None:
        try:
            insights = payload["insights"]
            result = EnhanceQuoteResult(
                enhanced_quote=payload["enhancedQuote"].strip() or text,
                variations=payload["variations"],
                insights=QuoteInsights(
                    theme=insights["theme"],
                    tone=insights["tone"],
                    style_advice=insights["styleAdvice"],
                ),
            )
            return ParseOutcome(result, structured=True)
        except (ValidationError, TypeError, KeyError, AttributeError) as e:
            logger.debug(f"Structured enhancement payload rejected: {e}")

    found = scan_fields(raw, ("enhancedQuote", "theme", "tone", "styleAdvice"))
    variations = scan_list(raw, "variations")
    base = fallback()
    recovered = list(found)
    if variations:
        recovered.append("variations")

    result = EnhanceQuoteResult(
        enhanced_quote=found.get("enhancedQuote", base.enhanced_quote),
        variations=variations or base.variations,
        insights=QuoteInsights(
            theme=found.get("theme", base.insights.theme),
            tone=found.get("tone", base.insights.tone),
            style_advice=found.get("styleAdvice", base.insights.style_advice),
        ),
    )
    return ParseOutcome(result, structured=False, recovered_fields=tuple(recovered))


def parse_image_ideas(raw: str, text: str, fallback: Callable[[], ImageIdeasResult]) -> ParseOutcome:
    payload = load_structured(raw, "image_ideas.json")
    if payload is not None:
        try:
            ideas = [
                ImageIdea(description=i["description"], style=i["style"], prompt=i["prompt"])
                for i in payload["ideas"]
            ]
            return ParseOutcome(ImageIdeasResult(ideas=ideas), structured=True)
        except (ValidationError, TypeError, KeyError) as e:
            logger.debug(f"Structured image ideas payload rejected: {e}")

    segments = idea_segments(raw)
    base = fallback()
    if not segments:
        return ParseOutcome(base, structured=False)

    ideas = []
    recovered = ["description"]
    for i, (description, segment) in enumerate(segments[:MAX_IMAGE_IDEAS]):
        backup = base.ideas[i % len(base.ideas)]
        found = scan_fields(segment, ("style", "prompt"))
        recovered.extend(key for key in found if key not in recovered)
        ideas.append(ImageIdea(
            description=description,
            style=found.get("style", backup.style),
            prompt=found.get("prompt", backup.prompt),
        ))

    return ParseOutcome(ImageIdeasResult(ideas=ideas), structured=False, recovered_fields=tuple(recovered))
