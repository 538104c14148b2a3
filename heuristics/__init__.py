from heuristics.analyzer import LocalHeuristicAnalyzer
from heuristics.enrichment import enrich_session
from heuristics.questions import categorize, classify_question
from heuristics.sentiment import score_sentiment

__all__ = [
    "LocalHeuristicAnalyzer",
    "categorize",
    "classify_question",
    "enrich_session",
    "score_sentiment",
]
