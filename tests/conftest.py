import json
from collections.abc import Callable
from datetime import datetime, timezone

import httpx
import pytest

from core.config import Config, load_config
from core.types import PRIMARY_MODEL, SECONDARY_MODEL
from store.sqlite import SQLiteInsightStore

FIXED_NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def config() -> Config:
    """Load default config for tests."""
    return load_config()


@pytest.fixture
def temp_config(tmp_path):
    """Create a temp config TOML for isolated tests."""
    toml_content = f"""
[providers.primary]
endpoint = "https://primary.test/v1/generate"
timeout_seconds = 2.0
[providers.secondary]
base_url = "https://secondary.test/v1"
model = "test-model"
timeout_seconds = 2.0
[insights]
provider_confidence = 0.8
default_confidence = 0.7
[store]
db_path = "{tmp_path / 'insights.db'}"
[telemetry]
enabled = true
writer_queue_size = 50
"""
    config_path = tmp_path / "test.toml"
    config_path.write_text(toml_content)
    return load_config(str(config_path))


@pytest.fixture
def store(tmp_path):
    s = SQLiteInsightStore(str(tmp_path / "test_insights.db"))
    yield s
    s.close()


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


def primary_body(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def secondary_body(text: str) -> dict:
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "test-model",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": text},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 10, "completion_tokens": 2, "total_tokens": 12},
    }


class ProviderStub:
    """httpx transport handler that answers both provider wire formats.

    ``primary`` / ``secondary`` are either a text reply, an int status code,
    or an exception instance to raise.
    """

    def __init__(self, primary=None, secondary=None):
        self.primary = primary
        self.secondary = secondary
        self.requests: list[httpx.Request] = []

    def _answer(self, reply, body_fn) -> httpx.Response:
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, int):
            return httpx.Response(reply, json={"error": {"message": "stub failure"}})
        return httpx.Response(200, json=body_fn(reply))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "primary.test":
            return self._answer(self.primary, primary_body)
        if request.url.host == "secondary.test":
            return self._answer(self.secondary, secondary_body)
        return httpx.Response(404)

    def hits(self, host: str) -> int:
        return sum(1 for r in self.requests if r.url.host == host)

    def payload(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)


def enable_providers(store: SQLiteInsightStore, user_id: str, primary: str | None, secondary: str | None) -> None:
    store.save_provider_setting(user_id, PRIMARY_MODEL, primary is not None, primary)
    store.save_provider_setting(user_id, SECONDARY_MODEL, secondary is not None, secondary)
