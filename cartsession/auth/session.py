"""Session token holder, persisted under the ``token`` key."""
from typing import Coroutine, Optional

from cartsession.errors import StorageError
from cartsession.events import EventEmitter
from cartsession.logging import get_logger, sanitize_id_for_logging
from cartsession.storage import KeyValueStore, StorageKeys

logger = get_logger(__name__)


class SessionProvider:
    """
    Holds the current authentication token.

    The token is opaque here; whether it is valid is decided by the
    backend when the profile is fetched. ``token_changed`` fires with the
    new value (None on logout) whenever it changes.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store
        self._token: Optional[str] = None
        # Bumped on every set_token call; a load requested earlier is stale
        self._generation = 0
        self.token_changed = EventEmitter("token_changed")

    @property
    def token(self) -> Optional[str]:
        return self._token

    def get_token(self) -> Optional[str]:
        return self._token

    async def set_token(self, token: Optional[str]) -> None:
        """Replace the in-memory token and notify subscribers."""
        token = token or None
        self._generation += 1
        if token == self._token:
            return
        self._token = token
        logger.debug(f"Session token set to {sanitize_id_for_logging(token)}")
        await self.token_changed.emit(token)

    def load(self) -> Coroutine[None, None, Optional[str]]:
        """
        Restore the persisted token, if any.

        A token set after this call, even before the returned coroutine
        starts running, wins over the stored one.
        """
        return self._load(self._generation)

    async def _load(self, generation: int) -> Optional[str]:
        stored = await self.store.get(StorageKeys.TOKEN)
        if generation != self._generation:
            logger.debug("Token changed during load, ignoring stored token")
            return self._token
        await self.set_token(stored)
        return self._token

    async def save_token(self, token: str) -> None:
        """Persist a freshly issued token and make it current."""
        try:
            await self.store.set(StorageKeys.TOKEN, token)
        except StorageError as e:
            logger.error(f"Failed to persist session token: {e}")
        await self.set_token(token)

    async def remove_persisted_token(self) -> None:
        """Delete the stored token; the in-memory token is left as is."""
        await self.store.delete(StorageKeys.TOKEN)

    async def clear(self) -> None:
        await self.remove_persisted_token()
        await self.set_token(None)
