"""Per-user engine registry for the HTTP layer."""

import asyncio
import logging
from collections import OrderedDict

from learnpath.catalog.protocols import CatalogStore
from learnpath.config.settings import Settings, get_settings
from learnpath.progress.service import ProgressEngine


logger = logging.getLogger(__name__)


class EngineRegistry:
    """Hands out one ``ProgressEngine`` per user, loading it on first use.

    An engine is only handed out once its initial refresh has finished, so
    concurrent first requests for a user all wait on the same load. At most
    ``MAX_ACTIVE_USERS`` engines are kept; the least recently used one is
    signed out to make room.
    """

    def __init__(self, store: CatalogStore, settings: Settings | None = None) -> None:
        self.store = store
        self.settings = settings or get_settings()
        self.max_engines = self.settings.MAX_ACTIVE_USERS
        self._engines: OrderedDict[str, ProgressEngine] = OrderedDict()
        self._loading: dict[str, asyncio.Task[ProgressEngine]] = {}
        self._lock = asyncio.Lock()

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._engines

    def __len__(self) -> int:
        return len(self._engines)

    async def get(self, user_id: str) -> ProgressEngine:
        """Get the user's engine, signing them in (initial refresh) if needed."""
        async with self._lock:
            engine = self._engines.get(user_id)
            if engine is not None:
                self._engines.move_to_end(user_id)
                return engine

            task = self._loading.get(user_id)
            if task is None:
                task = asyncio.create_task(self._sign_in(user_id))
                self._loading[user_id] = task

        # A cancelled request must not cancel the load other requests wait on
        return await asyncio.shield(task)

    async def _sign_in(self, user_id: str) -> ProgressEngine:
        engine = ProgressEngine(user_id, self.store, self.settings)
        try:
            await engine.refresh()
        finally:
            self._loading.pop(user_id, None)

        # No await between dropping the load and publishing the engine
        self._engines[user_id] = engine
        self._evict_overflow()

        logger.info(f"Signed in user {user_id}")
        return engine

    def _evict_overflow(self) -> None:
        while len(self._engines) > self.max_engines:
            user_id, engine = self._engines.popitem(last=False)
            engine.sign_out()
            logger.info(f"Evicted idle session of user {user_id}")

    def sign_out(self, user_id: str) -> bool:
        """Drop the user's engine. Returns False if none was active."""
        engine = self._engines.pop(user_id, None)
        if engine is None:
            return False
        engine.sign_out()
        logger.info(f"Signed out user {user_id}")
        return True
