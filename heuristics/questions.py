import re

from core.types import Priority, QuestionAnalysis, QuestionCategory, Sentiment, SentimentResult

# Evaluated top to bottom, first match wins. Order matters: a question
# mentioning both an error and an API is a troubleshooting question.
CATEGORY_RULES: list[tuple[QuestionCategory, list[str]]] = [
    (
        QuestionCategory.TROUBLESHOOTING,
        [
            r"\berror",
            r"\bbroken\b",
            r"\bbug",
            r"\bissue",
            r"\bproblem",
            r"\bnot working\b",
            r"\bdoesn'?t work",
            r"\bfail",
            r"\bcrash",
            r"\bexception",
            r"\bfix\b",
        ],
    ),
    (
        QuestionCategory.TECHNICAL,
        [
            r"\bimplement",
            r"\bhow do i\b",
            r"\bhow can i\b",
            r"\bhow to\b",
            r"\bcode\b",
            r"\bapi\b",
            r"\bconfigur",
            r"\binstall",
            r"\bdeploy",
            r"\bset ?up\b",
            r"\bintegrat",
            r"\barchitecture\b",
            r"\balgorithm",
            r"\bdatabase\b",
        ],
    ),
    (
        QuestionCategory.EXAMPLE,
        [r"\bexample", r"\bdemo", r"\bshow me\b", r"\bsample", r"\bwalk ?through\b"],
    ),
    (
        QuestionCategory.BEST_PRACTICES,
        [
            r"\bbest practice",
            r"\brecommend",
            r"\bshould (i|we)\b",
            r"\bbetter way\b",
            r"\bbest way\b",
            r"\bpitfall",
        ],
    ),
    (
        QuestionCategory.FORWARD_LOOKING,
        [
            r"\bfuture\b",
            r"\broadmap\b",
            r"\bnext version\b",
            r"\bupcoming\b",
            r"\bplans? (to|for)\b",
            r"\bwill (it|this|there)\b",
        ],
    ),
    (
        QuestionCategory.CLARIFICATION,
        [
            r"\bdifference between\b",
            r"\bwhat is\b",
            r"\bwhat's\b",
            r"\bwhat does\b",
            r"\bmean\b",
            r"\bclarify",
            r"\bversus\b",
            r"\bvs\b",
            r"\bwhat\b",
            r"\bwhich\b",
        ],
    ),
    (
        QuestionCategory.EXPLANATION,
        [r"\bwhy\b", r"\bexplain", r"\bhow does\b", r"\bhow come\b", r"\bhow\b"],
    ),
]

_COMPILED_RULES = [
    (category, [re.compile(p) for p in patterns]) for category, patterns in CATEGORY_RULES
]

HIGH_PRIORITY_CATEGORIES = {QuestionCategory.TECHNICAL, QuestionCategory.TROUBLESHOOTING}

SUGGESTED_RESPONSES: dict[QuestionCategory, str] = {
    QuestionCategory.TECHNICAL: "Walk through the implementation steps and share relevant code or docs.",
    QuestionCategory.TROUBLESHOOTING: "Ask for the exact error message and the steps that reproduce it.",
    QuestionCategory.EXAMPLE: "Share a concrete example or a short live demo.",
    QuestionCategory.CLARIFICATION: "Restate the concept in simpler terms before moving on.",
    QuestionCategory.EXPLANATION: "Explain the reasoning behind the approach.",
    QuestionCategory.BEST_PRACTICES: "Point to the recommended practice and common pitfalls.",
    QuestionCategory.FORWARD_LOOKING: "Outline what is planned and what is still undecided.",
    QuestionCategory.GENERAL: "This question requires immediate attention.",
}


def categorize(question: str) -> QuestionCategory:
    text = question.lower()
    for category, patterns in _COMPILED_RULES:
        if any(p.search(text) for p in patterns):
            return category
    return QuestionCategory.GENERAL


def classify_question(question: str, sentiment: SentimentResult) -> QuestionAnalysis:
    """Assign category, priority and an optional suggested response."""
    category = categorize(question)

    # Every category defaults to medium; strongly positive sentiment keeps it there.
    priority = Priority.MEDIUM
    if category in HIGH_PRIORITY_CATEGORIES or sentiment.sentiment == Sentiment.NEGATIVE:
        priority = Priority.HIGH

    suggested = None
    if priority == Priority.HIGH or category in (QuestionCategory.TECHNICAL, QuestionCategory.EXAMPLE):
        suggested = SUGGESTED_RESPONSES[category]

    return QuestionAnalysis(
        sentiment=sentiment,
        category=category,
        priority=priority,
        suggested_response=suggested,
    )
