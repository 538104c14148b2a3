from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

PRIMARY_MODEL = "PrimaryProvider"
SECONDARY_MODEL = "SecondaryProvider"
LOCAL_MODEL = "LocalFallback"


class Sentiment(StrEnum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class InsightType(StrEnum):
    ENGAGEMENT = "engagement"
    CONTENT = "content"
    PARTICIPATION = "participation"
    RECOMMENDATION = "recommendation"


class QuestionCategory(StrEnum):
    TECHNICAL = "technical"
    CLARIFICATION = "clarification"
    EXPLANATION = "explanation"
    EXAMPLE = "example"
    TROUBLESHOOTING = "troubleshooting"
    BEST_PRACTICES = "best_practices"
    FORWARD_LOOKING = "forward_looking"
    GENERAL = "general"


class Priority(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Stage(StrEnum):
    RESOLVING_CREDENTIALS = "resolving_credentials"
    TRYING_PRIMARY = "trying_primary"
    TRYING_SECONDARY = "trying_secondary"
    LOCAL_FALLBACK = "local_fallback"
    DONE = "done"


def _check_confidence(confidence: float) -> None:
    if not 0.0 <= confidence <= 1.0:
        raise ValueError(f"confidence must be within [0, 1], got {confidence}")


@dataclass(frozen=True)
class ProviderSetting:
    enabled: bool = False
    api_key: str | None = None

    @property
    def usable(self) -> bool:
        return self.enabled and bool(self.api_key and self.api_key.strip())


@dataclass(frozen=True)
class ProviderCredentials:
    user_id: str
    providers: dict[str, ProviderSetting] = field(default_factory=dict)

    def get(self, provider_name: str) -> ProviderSetting:
        return self.providers.get(provider_name, ProviderSetting())

    @property
    def any_usable(self) -> bool:
        return any(s.usable for s in self.providers.values())


@dataclass(frozen=True)
class SentimentResult:
    sentiment: Sentiment
    confidence: float
    reasoning: str | None = None

    def __post_init__(self) -> None:
        _check_confidence(self.confidence)


@dataclass(frozen=True)
class AIInsight:
    type: InsightType
    message: str
    confidence: float
    timestamp: datetime

    def __post_init__(self) -> None:
        _check_confidence(self.confidence)


@dataclass(frozen=True)
class QuestionAnalysis:
    sentiment: SentimentResult
    category: QuestionCategory
    priority: Priority
    suggested_response: str | None = None


@dataclass(frozen=True)
class ModelPerformanceRecord:
    """Running statistics for one model name.

    ``avg_response_time_ms`` is the cumulative mean over every recorded
    attempt, successful or not.
    """

    model_name: str
    request_count: int
    success_count: int
    error_count: int
    avg_response_time_ms: float
    uptime_percentage: float
    last_used: datetime


@dataclass(frozen=True)
class InsightLogEntry:
    session_id: str | None
    user_id: str
    insight: AIInsight
    model_used: str
    processing_time_ms: float
    created_at: datetime
