import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any

import httpx
import openai
from openai import AsyncOpenAI

from core.config import PrimaryProviderConfig, SecondaryProviderConfig
from core.errors import ParseError, ProviderError
from llm.parsing import Parser, Unrecognized
from telemetry.performance import PerformanceTracker

logger = logging.getLogger(__name__)


class ProviderClient(ABC):
    """One inference request to one provider, timed and reported to the tracker.

    Each call is attempted once, bounded by ``timeout_seconds``, and recorded
    exactly once as success or failure. All failures surface as
    ``ProviderError`` (``ParseError`` when the answer is unreadable).
    """

    def __init__(
        self,
        name: str,
        timeout_seconds: float,
        fallback_confidence: float,
        tracker: PerformanceTracker | None = None,
    ):
        self.name = name
        self.timeout_seconds = timeout_seconds
        self.fallback_confidence = fallback_confidence
        self.tracker = tracker

    @property
    @abstractmethod
    def structured_output(self) -> bool:
        """Whether prompts should ask this provider for JSON."""

    @abstractmethod
    async def _request(self, prompt: str, api_key: str) -> str:
        """Send the prompt and return the response text. Raise ProviderError on failure."""

    async def call(self, prompt: str, api_key: str, parse: Parser | None = None) -> Any:
        """Return the raw text, or the parsed value when ``parse`` is given."""
        start = time.perf_counter()
        try:
            async with asyncio.timeout(self.timeout_seconds):
                text = await self._request(prompt, api_key)
        except asyncio.CancelledError:
            self._record(False, start)
            raise
        except TimeoutError as e:
            self._record(False, start)
            raise ProviderError(self.name, f"timed out after {self.timeout_seconds}s") from e
        except ProviderError:
            self._record(False, start)
            raise
        except Exception as e:
            self._record(False, start)
            raise ProviderError(self.name, f"{type(e).__name__}: {e}") from e

        if not isinstance(text, str) or not text.strip():
            self._record(False, start)
            raise ProviderError(self.name, "empty response")

        if parse is None:
            self._record(True, start)
            return text

        outcome = parse(text)
        if isinstance(outcome, Unrecognized):
            self._record(False, start)
            raise ParseError(self.name, f"unrecognized response: {outcome.reason}")
        self._record(True, start)
        return outcome.value

    async def aclose(self) -> None:
        """Release clients this provider created for itself."""

    def _record(self, success: bool, start: float) -> None:
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.debug("%s attempt %s in %.1fms", self.name, "succeeded" if success else "failed", elapsed_ms)
        if self.tracker is not None:
            self.tracker.record(self.name, success, elapsed_ms)


class PrimaryProviderClient(ProviderClient):
    """Generative-content endpoint: key in the query string, text under candidates."""

    structured_output = True

    def __init__(
        self,
        config: PrimaryProviderConfig,
        tracker: PerformanceTracker | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        super().__init__(config.name, config.timeout_seconds, config.fallback_confidence, tracker)
        self.endpoint = config.endpoint
        self.http_client = http_client

    async def _request(self, prompt: str, api_key: str) -> str:
        body = {"contents": [{"parts": [{"text": prompt}]}]}
        try:
            if self.http_client is not None:
                resp = await self.http_client.post(
                    self.endpoint, params={"key": api_key}, json=body, timeout=self.timeout_seconds
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                    resp = await client.post(self.endpoint, params={"key": api_key}, json=body)
        except httpx.HTTPError as e:
            raise ProviderError(self.name, f"transport error: {e}") from e

        if not resp.is_success:
            raise ProviderError(self.name, "request rejected", status=resp.status_code)

        try:
            text = resp.json()["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ProviderError(self.name, "unexpected response shape", status=resp.status_code) from e
        if not isinstance(text, str):
            raise ProviderError(self.name, "response text is not a string", status=resp.status_code)
        return text


class SecondaryProviderClient(ProviderClient):
    """Chat-completions endpoint reached through the OpenAI SDK."""

    structured_output = False

    def __init__(
        self,
        config: SecondaryProviderConfig,
        tracker: PerformanceTracker | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        super().__init__(config.name, config.timeout_seconds, config.fallback_confidence, tracker)
        self.model = config.model
        self.max_tokens = config.max_tokens
        self.temperature = config.temperature
        # Keys are per user and supplied per call.
        self.client = AsyncOpenAI(
            base_url=config.base_url,
            api_key="not-needed",
            max_retries=0,
            timeout=config.timeout_seconds,
            http_client=http_client,
        )
        self._owns_http = http_client is None

    async def aclose(self) -> None:
        # An injected httpx client belongs to the caller.
        if self._owns_http:
            await self.client.close()

    async def _request(self, prompt: str, api_key: str) -> str:
        try:
            response = await self.client.with_options(api_key=api_key).chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except openai.APIStatusError as e:
            raise ProviderError(self.name, "request rejected", status=e.status_code) from e
        except openai.OpenAIError as e:
            raise ProviderError(self.name, f"transport error: {e}") from e

        try:
            return response.choices[0].message.content or ""
        except (IndexError, AttributeError, TypeError) as e:
            raise ProviderError(self.name, "unexpected response shape") from e
