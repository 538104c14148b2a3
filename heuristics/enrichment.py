"""Rule-based session insights used when no provider produced any."""

from collections.abc import Mapping
from datetime import date, datetime
from typing import Any

from core.types import AIInsight, InsightType


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _session_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


def enrich_session(
    session: Mapping[str, Any],
    now: datetime,
    default_confidence: float = 0.7,
) -> list[AIInsight]:
    insights: list[AIInsight] = []

    def add(kind: InsightType, message: str, confidence: float) -> None:
        insights.append(AIInsight(type=kind, message=message, confidence=confidence, timestamp=now))

    attendees = _number(session.get("attendees"))
    capacity = _number(session.get("max_attendees"))
    if attendees is not None and capacity:
        ratio = attendees / capacity
        if ratio > 0.8:
            add(
                InsightType.ENGAGEMENT,
                f"High attendance rate of {ratio:.0%} - strong interest in this topic",
                0.85,
            )
        elif ratio < 0.5:
            add(
                InsightType.RECOMMENDATION,
                f"Attendance is at {ratio:.0%} of capacity - consider promoting the session further",
                0.75,
            )

    engagement = _number(session.get("engagement_score"))
    if engagement is not None:
        if engagement > 80:
            add(InsightType.PARTICIPATION, f"Excellent engagement score of {engagement:.0f}", 0.9)
        elif engagement < 50:
            add(
                InsightType.RECOMMENDATION,
                "Consider more interactive elements such as polls or Q&A to boost engagement",
                0.8,
            )

    if session.get("type") == "virtual" and session.get("meeting_url"):
        add(InsightType.CONTENT, "Virtual session with a meeting link ready for remote participants", 0.7)

    held_on = _session_date(session.get("date"))
    if held_on is not None and held_on.weekday() >= 5:
        add(
            InsightType.RECOMMENDATION,
            "Weekend session - expect different attendance patterns than weekdays",
            0.6,
        )

    if not insights:
        add(InsightType.CONTENT, "Session content appears well-structured and informative", default_confidence)
    return insights
