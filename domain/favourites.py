import logging

from pydantic import ValidationError

from domain.models import RecipeSummary
from domain.store import PersistentStore, StorageUnavailable


logger = logging.getLogger(__name__)


FAVOURITES_KEY = "favourites"


class FavouritesRepository:
    """Saved recipe summaries, in the order they were added, unique by id.

    `add` and `remove` read, modify and write the whole list. The cycles are
    serialised by the store's lock on the favourites key, so concurrent
    toggles cannot overwrite each other, whichever repository issues them.
    If the store becomes unavailable the list lives in memory from then on.
    """

    def __init__(self, store: PersistentStore) -> None:
        self.store = store
        self.degraded = False
        self._memory: tuple[RecipeSummary, ...] = ()

    async def list(self) -> tuple[RecipeSummary, ...]:
        if self.degraded:
            return self._memory

        try:
            stored = await self.store.get(FAVOURITES_KEY)
        except StorageUnavailable:
            self._degrade(())
            return self._memory

        return _decode(stored)

    async def contains(self, id: int) -> bool:
        return any(f.id == id for f in await self.list())

    async def add(self, summary: RecipeSummary) -> bool:
        async with self.store.lock(FAVOURITES_KEY):
            favourites = await self.list()
            if any(f.id == summary.id for f in favourites):
                return not self.degraded
            return await self._save(favourites + (summary,))

    async def remove(self, id: int) -> bool:
        async with self.store.lock(FAVOURITES_KEY):
            favourites = await self.list()
            return await self._save(tuple(f for f in favourites if f.id != id))

    async def _save(self, favourites: tuple[RecipeSummary, ...]) -> bool:
        if self.degraded:
            self._memory = favourites
            return False

        try:
            await self.store.set(FAVOURITES_KEY, [f.to_dict() for f in favourites])
        except StorageUnavailable:
            self._degrade(favourites)
            return False
        return True

    def _degrade(self, favourites: tuple[RecipeSummary, ...]) -> None:
        logger.warning("Favourites unavailable, keeping them in memory.")
        self.degraded = True
        self._memory = favourites


def _decode(stored: object) -> tuple[RecipeSummary, ...]:
    if not isinstance(stored, list):
        if stored is not None:
            logger.warning("Ignoring malformed favourites: %r", stored)
        return ()

    favourites: list[RecipeSummary] = []
    seen: set[int] = set()
    for entry in stored:
        try:
            summary = RecipeSummary.model_validate(entry)
        except ValidationError:
            logger.warning("Skipping malformed favourite: %r", entry)
            continue
        if summary.id not in seen:
            seen.add(summary.id)
            favourites.append(summary)
    return tuple(favourites)
