import logging
import time
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any

import httpx

from core.config import Config, load_config
from core.credentials import CredentialResolver
from core.errors import PersistenceWriteError, ProviderError
from core.types import (
    LOCAL_MODEL,
    AIInsight,
    ModelPerformanceRecord,
    QuestionAnalysis,
    SentimentResult,
    Stage,
)
from heuristics import LocalHeuristicAnalyzer
from llm.client import PrimaryProviderClient, ProviderClient, SecondaryProviderClient
from llm.parsing import Parser, insight_parser, sentiment_parser
from llm.prompts import build_insights_prompt, build_sentiment_prompt
from store import create_store
from store.ports import InsightStore
from telemetry import create_telemetry

logger = logging.getLogger(__name__)

_PROVIDER_STAGES = (Stage.TRYING_PRIMARY, Stage.TRYING_SECONDARY)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FallbackOrchestrator:
    """Public entry point: Primary -> Secondary -> local heuristic.

    None of the public operations raise. Provider and parse failures only
    move the call to the next stage, and the local stage cannot fail.
    """

    def __init__(
        self,
        config: Config,
        store: InsightStore | None = None,
        http_client: httpx.AsyncClient | None = None,
        clock: Callable[[], datetime] = _utcnow,
        on_error: Callable[[PersistenceWriteError], None] | None = None,
        owns_store: bool = False,
    ):
        self.config = config
        self.store = store
        self.clock = clock
        self.owns_store = owns_store
        self.writer, self.tracker, self.insight_logger = create_telemetry(config, store, clock, on_error=on_error)
        self.credentials = CredentialResolver(store)
        self.analyzer = LocalHeuristicAnalyzer(config.insights.default_confidence)
        self.providers: list[ProviderClient] = [
            PrimaryProviderClient(config.providers.primary, self.tracker, http_client),
            SecondaryProviderClient(config.providers.secondary, self.tracker, http_client),
        ]

    async def _run_chain(
        self,
        user_id: str,
        request: Callable[[ProviderClient], tuple[str, Parser]],
    ) -> tuple[Any, str] | None:
        """Try each usable provider in order. Returns (value, model name) or None."""
        logger.debug("%s: %s", user_id, Stage.RESOLVING_CREDENTIALS)
        credentials = await self.credentials.resolve(user_id)
        if credentials is None:
            logger.info("No provider credentials for %s, using local analysis", user_id)
            return None
        if not credentials.any_usable:
            logger.info("No enabled provider with a key for %s, using local analysis", user_id)
            return None

        for stage, client in zip(_PROVIDER_STAGES, self.providers):
            setting = credentials.get(client.name)
            if not setting.usable:
                logger.debug("%s: skipping %s, disabled or missing key", user_id, client.name)
                continue
            logger.debug("%s: %s", user_id, stage)
            prompt, parse = request(client)
            try:
                value = await client.call(prompt, setting.api_key or "", parse=parse)
            except ProviderError as e:
                logger.warning("%s failed, falling back: %s", client.name, e)
                continue
            logger.debug("%s: %s via %s", user_id, Stage.DONE, client.name)
            return value, client.name
        return None

    def _local_sentiment(self, text: str) -> SentimentResult:
        start = time.perf_counter()
        result = self.analyzer.sentiment(text)
        self.tracker.record(LOCAL_MODEL, True, (time.perf_counter() - start) * 1000)
        return result

    async def analyze_sentiment(self, text: str, user_id: str) -> SentimentResult:
        try:
            outcome = await self._run_chain(
                user_id,
                lambda client: (
                    build_sentiment_prompt(text, structured=client.structured_output),
                    sentiment_parser(client.fallback_confidence),
                ),
            )
        except Exception:
            logger.exception("Sentiment chain failed unexpectedly, using local analysis")
            outcome = None

        if outcome is not None:
            result, model = outcome
            logger.debug("Sentiment for %s from %s", user_id, model)
            return result
        logger.debug("%s: %s", user_id, Stage.LOCAL_FALLBACK)
        return self._local_sentiment(text)

    async def generate_session_insights(
        self,
        session_data: Mapping[str, Any],
        user_id: str,
        session_id: str | None = None,
    ) -> list[AIInsight]:
        start = time.perf_counter()
        now = self.clock()
        try:
            outcome = await self._run_chain(
                user_id,
                lambda client: (
                    build_insights_prompt(session_data),
                    insight_parser(now, self.config.insights.provider_confidence),
                ),
            )
        except Exception:
            logger.exception("Insight chain failed unexpectedly, using rule-based insights")
            outcome = None

        if outcome is not None:
            insights, model = outcome
        else:
            logger.debug("%s: %s", user_id, Stage.LOCAL_FALLBACK)
            local_start = time.perf_counter()
            insights = self.analyzer.enrich(session_data, now)
            self.tracker.record(LOCAL_MODEL, True, (time.perf_counter() - local_start) * 1000)
            model = LOCAL_MODEL

        processing_ms = (time.perf_counter() - start) * 1000
        for insight in insights:
            self.insight_logger.log(session_id, user_id, insight, model, processing_ms)
        return insights

    async def analyze_question(self, question: str, user_id: str) -> QuestionAnalysis:
        sentiment = await self.analyze_sentiment(question, user_id)
        return self.analyzer.classify(question, sentiment)

    def performance(self) -> dict[str, ModelPerformanceRecord]:
        return self.tracker.snapshot()

    async def flush(self) -> None:
        """Wait for queued telemetry and insight-log writes."""
        await self.writer.flush()

    async def aclose(self) -> None:
        """Drain pending writes, then release provider clients and an owned store."""
        await self.writer.aclose()
        for client in self.providers:
            await client.aclose()
        if self.owns_store and self.store is not None:
            self.store.close()


def create_orchestrator(
    config: Config | None = None,
    http_client: httpx.AsyncClient | None = None,
    on_error: Callable[[PersistenceWriteError], None] | None = None,
) -> FallbackOrchestrator:
    """Build an orchestrator backed by the configured SQLite store.

    The store is closed by ``aclose()``.
    """
    config = config or load_config()
    return FallbackOrchestrator(
        config,
        store=create_store(config),
        http_client=http_client,
        on_error=on_error,
        owns_store=True,
    )
