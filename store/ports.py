"""Persistence interface the engine talks to.

The surrounding application owns the real store; anything implementing
these methods can be passed to the engine.
"""

from datetime import datetime
from typing import Protocol

from core.types import InsightLogEntry, ProviderCredentials


class InsightStore(Protocol):
    async def fetch_provider_credentials(self, user_id: str) -> ProviderCredentials | None:
        """Return the user's provider flags and keys, or None when the user has no record."""

    async def record_model_attempt(
        self,
        model_name: str,
        success: bool,
        elapsed_ms: float,
        at: datetime,
    ) -> None:
        """Fold one attempt into the model's performance row as a single atomic update."""

    async def append_insight(self, entry: InsightLogEntry) -> None:
        """Append one insight log row."""
