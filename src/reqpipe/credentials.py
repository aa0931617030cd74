from .config import TOKEN_KEY
from .log_config import logger
from .storage import KeyValueStore


class CredentialStore:
    """Reads and writes the bearer token in an external key/value store.

    Nothing is cached: every ``get`` goes to the store, so a login or logout
    performed elsewhere is picked up by the very next request. Storage failures
    never reach the request pipeline; reads degrade to "no token" and writes
    are logged and dropped.

    Attributes:
        _storage: The backing KeyValueStore.
        _key: The fixed key the token lives under.
    """

    def __init__(self, storage: KeyValueStore, key: str = TOKEN_KEY):
        self._storage = storage
        self._key = key
        logger.debug(f"CredentialStore initialized for key '{key}'.")

    @property
    def key(self) -> str:
        return self._key

    async def get(self) -> str | None:
        """Returns the stored token, or None if absent or unreadable."""
        try:
            return await self._storage.get_item(self._key)
        except Exception as e:
            logger.warning(f"Failed to get token: {e}")
            return None

    async def set(self, token: str) -> None:
        """Persists ``token``; failures are logged and swallowed."""
        try:
            await self._storage.set_item(self._key, token)
            logger.debug("Token saved.")
        except Exception as e:
            logger.error(f"Failed to save token: {e}")

    async def remove(self) -> None:
        """Deletes the stored token; failures are logged and swallowed."""
        try:
            await self._storage.remove_item(self._key)
            logger.debug("Token removed.")
        except Exception as e:
            logger.error(f"Failed to clear token: {e}")
