import logging

from core.types import ProviderCredentials
from store.ports import InsightStore

logger = logging.getLogger(__name__)


class CredentialResolver:
    def __init__(self, store: InsightStore | None):
        self.store = store

    async def resolve(self, user_id: str) -> ProviderCredentials | None:
        """Fetch the user's provider flags and keys.

        Returns None when the user never configured providers or when the
        store could not be read; either way the caller falls back locally.
        """
        if self.store is None:
            return None
        try:
            return await self.store.fetch_provider_credentials(user_id)
        except Exception as e:
            logger.warning("Could not read provider credentials for %s: %s", user_id, e)
            return None
