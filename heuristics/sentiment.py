from core.types import Sentiment, SentimentResult

POSITIVE_WORDS: frozenset[str] = frozenset(
    {
        "good",
        "great",
        "excellent",
        "amazing",
        "love",
        "like",
        "awesome",
        "fantastic",
        "wonderful",
        "helpful",
        "clear",
        "understand",
        "useful",
        "interesting",
        "thanks",
    }
)

NEGATIVE_WORDS: frozenset[str] = frozenset(
    {
        "bad",
        "terrible",
        "awful",
        "hate",
        "dislike",
        "confused",
        "unclear",
        "difficult",
        "hard",
        "boring",
        "slow",
        "broken",
        "frustrating",
        "useless",
    }
)


def score_sentiment(text: str) -> SentimentResult:
    """Lexicon sentiment: whitespace tokens, exact word matches only."""
    tokens = text.lower().split()
    positive = sum(1 for t in tokens if t in POSITIVE_WORDS)
    negative = sum(1 for t in tokens if t in NEGATIVE_WORDS)
    total = positive + negative

    if total == 0:
        return SentimentResult(sentiment=Sentiment.NEUTRAL, confidence=0.5)

    positive_ratio = positive / total
    if positive_ratio > 0.6:
        return SentimentResult(sentiment=Sentiment.POSITIVE, confidence=min(0.9, 0.5 + positive_ratio))
    if positive_ratio < 0.4:
        return SentimentResult(sentiment=Sentiment.NEGATIVE, confidence=min(0.9, 0.5 + (1 - positive_ratio)))
    return SentimentResult(sentiment=Sentiment.NEUTRAL, confidence=0.6)
