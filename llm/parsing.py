"""Readers for untrusted provider output.

Every reader returns ``Parsed`` or ``Unrecognized`` and never raises, so
the fallback chain can branch on the tag alone.
"""

import json
import math
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generic, TypeVar

from core.types import AIInsight, InsightType, Sentiment, SentimentResult

T = TypeVar("T")

_FENCE = re.compile(r"^```[a-zA-Z]*\s*(.*?)\s*```$", re.DOTALL)
_SENTIMENT_WORD = re.compile(r"(positive|negative|neutral)")


@dataclass(frozen=True)
class Parsed(Generic[T]):
    value: T


@dataclass(frozen=True)
class Unrecognized:
    raw: str
    reason: str


ParseOutcome = Parsed[Any] | Unrecognized
Parser = Callable[[str], ParseOutcome]


def decode_sentiment_json(raw: str) -> ParseOutcome:
    """Strict stage: a JSON object with a known sentiment and a numeric confidence."""
    text = raw.strip()
    fenced = _FENCE.match(text)
    if fenced:
        text = fenced.group(1)
    try:
        data = json.loads(text)
    except ValueError:
        return Unrecognized(raw, "not JSON")
    if not isinstance(data, dict):
        return Unrecognized(raw, "JSON is not an object")

    label = data.get("sentiment")
    confidence = data.get("confidence")
    if not isinstance(label, str) or label.strip().lower() not in {s.value for s in Sentiment}:
        return Unrecognized(raw, f"unknown sentiment {label!r}")
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)) or not math.isfinite(confidence):
        return Unrecognized(raw, "missing numeric confidence")

    reasoning = data.get("reasoning")
    return Parsed(
        SentimentResult(
            sentiment=Sentiment(label.strip().lower()),
            confidence=min(1.0, max(0.0, float(confidence))),
            reasoning=reasoning if isinstance(reasoning, str) else None,
        )
    )


def scan_sentiment_text(raw: str, confidence: float) -> ParseOutcome:
    """Best-effort stage: earliest sentiment word in the text, fixed confidence."""
    match = _SENTIMENT_WORD.search(raw.lower())
    if not match:
        return Unrecognized(raw, "no sentiment word found")
    return Parsed(
        SentimentResult(
            sentiment=Sentiment(match.group(1)),
            confidence=confidence,
            reasoning=raw.strip() or None,
        )
    )


def parse_sentiment(raw: str, fallback_confidence: float) -> ParseOutcome:
    outcome = decode_sentiment_json(raw)
    if isinstance(outcome, Parsed):
        return outcome
    return scan_sentiment_text(raw, fallback_confidence)


def sentiment_parser(fallback_confidence: float) -> Parser:
    return lambda raw: parse_sentiment(raw, fallback_confidence)


def parse_insight_lines(raw: str, now: datetime, confidence: float = 0.8) -> ParseOutcome:
    """One insight per non-empty line, alternating engagement/participation."""
    lines = [line.strip() for line in raw.splitlines() if line.strip()]
    if not lines:
        return Unrecognized(raw, "no insight lines")
    return Parsed(
        [
            AIInsight(
                type=InsightType.ENGAGEMENT if i % 2 == 0 else InsightType.PARTICIPATION,
                message=line,
                confidence=confidence,
                timestamp=now,
            )
            for i, line in enumerate(lines)
        ]
    )


def insight_parser(now: datetime, confidence: float = 0.8) -> Parser:
    return lambda raw: parse_insight_lines(raw, now, confidence)
