import pytest
from pydantic import ValidationError

from core.config import Config, PrimaryProviderConfig, load_config
from core.types import (
    PRIMARY_MODEL,
    SECONDARY_MODEL,
    InsightType,
    ProviderCredentials,
    ProviderSetting,
    QuestionCategory,
    Sentiment,
    SentimentResult,
)


def test_load_default_config():
    config = load_config()
    assert isinstance(config, Config)
    assert config.providers.primary.name == "PrimaryProvider"
    assert config.providers.secondary.name == "SecondaryProvider"


def test_config_defaults():
    config = Config()
    assert config.providers.primary.fallback_confidence == 0.8
    assert config.providers.secondary.fallback_confidence == 0.75
    assert config.providers.secondary.max_tokens == 1000
    assert config.providers.secondary.temperature == 0.7
    assert config.insights.provider_confidence == 0.8
    assert config.insights.default_confidence == 0.7
    assert config.telemetry.enabled is True


def test_config_secondary_model():
    config = load_config()
    assert config.providers.secondary.model == "mixtral-8x7b-32768"
    assert config.providers.secondary.base_url == "https://api.groq.com/openai/v1"


def test_config_timeouts_are_bounded():
    config = load_config()
    assert config.providers.primary.timeout_seconds > 0
    assert config.providers.secondary.timeout_seconds > 0
    with pytest.raises(ValidationError):
        PrimaryProviderConfig(timeout_seconds=0)


def test_temp_config(temp_config):
    assert temp_config.providers.primary.endpoint == "https://primary.test/v1/generate"
    assert temp_config.providers.secondary.model == "test-model"
    assert temp_config.telemetry.writer_queue_size == 50
    assert temp_config.store.db_path.endswith("insights.db")


def test_types_enums():
    assert Sentiment.POSITIVE.value == "positive"
    assert InsightType.PARTICIPATION.value == "participation"
    assert QuestionCategory.BEST_PRACTICES.value == "best_practices"


def test_sentiment_result_rejects_bad_confidence():
    with pytest.raises(ValueError):
        SentimentResult(sentiment=Sentiment.NEUTRAL, confidence=1.5)


def test_provider_setting_usable():
    assert ProviderSetting(enabled=True, api_key="k").usable
    assert not ProviderSetting(enabled=True, api_key="").usable
    assert not ProviderSetting(enabled=True, api_key="   ").usable
    assert not ProviderSetting(enabled=False, api_key="k").usable


def test_credentials_missing_provider_is_disabled():
    creds = ProviderCredentials(user_id="u1", providers={"PrimaryProvider": ProviderSetting(True, "k")})
    assert creds.get("SecondaryProvider").usable is False
    assert creds.any_usable


def test_provider_names_default_to_model_names():
    config = Config()
    assert config.providers.primary.name == PRIMARY_MODEL
    assert config.providers.secondary.name == SECONDARY_MODEL
    assert config.store.busy_timeout_seconds == 5.0
