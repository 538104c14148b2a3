import json
from collections.abc import Mapping
from typing import Any

STRUCTURED_SENTIMENT_PROMPT = """Analyze the sentiment of this text and respond with only a JSON object containing "sentiment" (positive/neutral/negative), "confidence" (0-1), and "reasoning": "{text}\""""

SINGLE_WORD_SENTIMENT_PROMPT = """Analyze the sentiment of this text. Respond with only: "positive", "negative", or "neutral". Text: "{text}\""""

SESSION_INSIGHTS_PROMPT = """Based on this session data, generate 3-5 brief insights about engagement and participation. Session: {session}. Respond with insights separated by newlines."""


def build_sentiment_prompt(text: str, structured: bool = True) -> str:
    """The primary provider is asked for JSON, the secondary for a single word."""
    template = STRUCTURED_SENTIMENT_PROMPT if structured else SINGLE_WORD_SENTIMENT_PROMPT
    return template.format(text=text)


def build_insights_prompt(session: Mapping[str, Any]) -> str:
    return SESSION_INSIGHTS_PROMPT.format(session=json.dumps(dict(session), default=str))
