from collections.abc import Mapping
from datetime import datetime
from typing import Any

from core.types import AIInsight, QuestionAnalysis, SentimentResult
from heuristics.enrichment import enrich_session
from heuristics.questions import classify_question
from heuristics.sentiment import score_sentiment


class LocalHeuristicAnalyzer:
    """Provider-free analysis. Pure and deterministic; never fails."""

    def __init__(self, default_insight_confidence: float = 0.7):
        self.default_insight_confidence = default_insight_confidence

    def sentiment(self, text: str) -> SentimentResult:
        return score_sentiment(text)

    def classify(self, question: str, sentiment: SentimentResult) -> QuestionAnalysis:
        return classify_question(question, sentiment)

    def enrich(self, session: Mapping[str, Any], now: datetime) -> list[AIInsight]:
        return enrich_session(session, now, default_confidence=self.default_insight_confidence)
