import asyncio
import json
import logging
from typing import Any, Self

from databases import Database


logger = logging.getLogger(__name__)


CREATE_KEY_VALUE_TABLE = """
CREATE TABLE IF NOT EXISTS KeyValue (key VARCHAR(256) PRIMARY KEY, value TEXT)
"""


GET_VALUE = "SELECT value FROM KeyValue WHERE key = :key"


SET_VALUE = """
INSERT INTO KeyValue(key, value) VALUES (:key, :value)
ON CONFLICT(key) DO UPDATE SET value = excluded.value
"""


class StorageUnavailable(Exception):
    pass


class PersistentStore:
    """Durable key-value store with JSON encoded values.

    Every `get` and `set` waits for `init` first, so nothing can reach the
    database before it is connected and the table exists. Concurrent callers
    share one initialisation.
    """

    def __init__(self, db: Database) -> None:
        self.db = db
        self._init_task: asyncio.Task[None] | None = None
        self._locks: dict[str, asyncio.Lock] = {}

    @classmethod
    def from_url(cls, url: str) -> Self:
        return cls(Database(url))

    @property
    def ready(self) -> bool:
        task = self._init_task
        return (
            task is not None
            and task.done()
            and not task.cancelled()
            and task.exception() is None
        )

    async def _initialise(self) -> None:
        try:
            if not self.db.is_connected:
                await self.db.connect()
            await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
                query=CREATE_KEY_VALUE_TABLE
            )
        except Exception as e:
            logger.warning("Could not open store %s: %r", self.db.url, e)
            raise StorageUnavailable(str(self.db.url)) from e
        logger.debug("Store %s ready.", self.db.url)

    async def init(self) -> None:
        if self._init_task is None:
            self._init_task = asyncio.ensure_future(self._initialise())
        task = self._init_task
        try:
            await asyncio.shield(task)
        except StorageUnavailable:
            # Forget the failure so a later call may try again.
            if self._init_task is task:
                self._init_task = None
            raise

    def lock(self, key: str) -> asyncio.Lock:
        """Lock for read-modify-write cycles on `key`, shared by all callers."""
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        return self._locks[key]

    async def get(self, key: str) -> Any | None:
        await self.init()
        try:
            result = await self.db.fetch_one(  # pyright: ignore[reportUnknownMemberType]
                GET_VALUE, values={"key": key}
            )
        except Exception as e:
            raise StorageUnavailable(key) from e

        if result is None:
            return None

        try:
            return json.loads(result["value"])
        except (TypeError, ValueError):
            logger.warning("Ignoring malformed value stored under %r.", key)
            return None

    async def set(self, key: str, value: Any) -> None:
        await self.init()
        try:
            await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
                SET_VALUE, values={"key": key, "value": json.dumps(value)}
            )
        except Exception as e:
            raise StorageUnavailable(key) from e

    async def close(self) -> None:
        task = self._init_task
        self._init_task = None
        if task is not None and not task.done():
            await asyncio.gather(task, return_exceptions=True)
        if self.db.is_connected:
            await self.db.disconnect()
