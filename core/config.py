from pathlib import Path

import tomli
from pydantic import BaseModel, Field

from core.types import PRIMARY_MODEL, SECONDARY_MODEL

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "default.toml"


class PrimaryProviderConfig(BaseModel):
    name: str = PRIMARY_MODEL
    endpoint: str = "https://generativelanguage.googleapis.com/v1beta/models/gemini-pro:generateContent"
    timeout_seconds: float = Field(default=15.0, gt=0)
    fallback_confidence: float = Field(default=0.8, ge=0, le=1)


class SecondaryProviderConfig(BaseModel):
    name: str = SECONDARY_MODEL
    base_url: str = "https://api.groq.com/openai/v1"
    model: str = "mixtral-8x7b-32768"
    max_tokens: int = 1000
    temperature: float = 0.7
    timeout_seconds: float = Field(default=15.0, gt=0)
    fallback_confidence: float = Field(default=0.75, ge=0, le=1)


class ProvidersConfig(BaseModel):
    primary: PrimaryProviderConfig = PrimaryProviderConfig()
    secondary: SecondaryProviderConfig = SecondaryProviderConfig()


class InsightsConfig(BaseModel):
    provider_confidence: float = Field(default=0.8, ge=0, le=1)
    default_confidence: float = Field(default=0.7, ge=0, le=1)


class StoreConfig(BaseModel):
    db_path: str = "~/.insight-engine/insights.db"
    busy_timeout_seconds: float = Field(default=5.0, gt=0)


class TelemetryConfig(BaseModel):
    enabled: bool = True
    writer_queue_size: int = 1000


class Config(BaseModel):
    providers: ProvidersConfig = ProvidersConfig()
    insights: InsightsConfig = InsightsConfig()
    store: StoreConfig = StoreConfig()
    telemetry: TelemetryConfig = TelemetryConfig()


def load_config(path: str | Path = DEFAULT_CONFIG_PATH) -> Config:
    """Load config from TOML file, validate with Pydantic."""
    with open(path, "rb") as f:
        data = tomli.load(f)
    return Config(**data)
