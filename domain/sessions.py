"""State behind the search, detail, favourites and settings screens.

Each session owns the state a screen renders and nothing else. Repositories and
the catalog client are passed in, so tests build fresh ones per case.
"""

import asyncio
from enum import Enum
import logging
from typing import Self

from domain.catalog import CatalogUnavailable, InvalidId, RecipeCatalogClient
from domain.favourites import FavouritesRepository
from domain.models import (
    Ingredient,
    MeasurementUnit,
    RecipeDetail,
    RecipeSummary,
)
from domain.preferences import (
    InvalidPreference,
    PreferenceRepository,
    parse_measurement_unit,
)


logger = logging.getLogger(__name__)


SEARCH_FAILED = "Could not fetch recipes. Please try again."
DETAIL_FAILED = "Could not load this recipe. Please try again."
INVALID_RECIPE = "This recipe could not be found."
STORAGE_WARNING = "Your changes could not be saved and will be lost on exit."


class SearchState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    FAILED = "failed"


class SearchSession:
    def __init__(self, catalog: RecipeCatalogClient) -> None:
        self.catalog = catalog
        self.state = SearchState.IDLE
        self.query = ""
        self.results: tuple[RecipeSummary, ...] = ()
        self.error_message: str | None = None
        self._generation = 0

    @property
    def count(self) -> int:
        return len(self.results)

    @property
    def found_message(self) -> str:
        return f"Found {self.count} recipe(s)"

    async def submit(self, query: str) -> SearchState:
        self._generation += 1
        generation = self._generation
        self.query = query
        self.results = ()
        self.error_message = None

        if not query.strip():
            self.state = SearchState.IDLE
            return self.state

        self.state = SearchState.LOADING
        try:
            results = await self.catalog.search(query)
        except CatalogUnavailable:
            if generation == self._generation:
                self.state = SearchState.FAILED
                self.error_message = SEARCH_FAILED
            return self.state

        if generation != self._generation:
            logger.debug("Discarding results for superseded query %r.", query)
            return self.state

        self.results = tuple(results)
        self.state = SearchState.SUCCESS
        return self.state


class DetailSession:
    """One recipe's detail merged with favourite status and measurement unit."""

    def __init__(
        self,
        *,
        id: int,
        title: str,
        image_url: str,
        catalog: RecipeCatalogClient,
        favourites: FavouritesRepository,
        preferences: PreferenceRepository,
    ) -> None:
        self.id = id
        self.title = title
        self.image_url = image_url
        self.catalog = catalog
        self.favourites = favourites
        self.preferences = preferences

        self.loading = False
        self.saving = False
        self.detail: RecipeDetail | None = None
        self.is_favourite = False
        self.measurement_unit = MeasurementUnit.default()
        self.error_message: str | None = None
        self.warning: str | None = None
        self._toggle_lock = asyncio.Lock()
        self.preferences.add_listener(self._on_unit_changed)

    @classmethod
    def from_summary(
        cls,
        summary: RecipeSummary,
        *,
        catalog: RecipeCatalogClient,
        favourites: FavouritesRepository,
        preferences: PreferenceRepository,
    ) -> Self:
        return cls(
            id=summary.id,
            title=summary.title,
            image_url=summary.image_url,
            catalog=catalog,
            favourites=favourites,
            preferences=preferences,
        )

    def _on_unit_changed(self, unit: MeasurementUnit) -> None:
        self.measurement_unit = unit

    async def _load_unit(self) -> None:
        self.measurement_unit = await self.preferences.get_measurement_unit()

    async def _load_favourite(self) -> None:
        self.is_favourite = await self.favourites.contains(self.id)

    async def _load_detail(self) -> None:
        try:
            self.detail = await self.catalog.get_details(self.id)
        except InvalidId:
            self.error_message = INVALID_RECIPE
        except CatalogUnavailable:
            self.error_message = DETAIL_FAILED

    async def load(self) -> None:
        self.loading = True
        self.detail = None
        self.error_message = None
        try:
            await asyncio.gather(
                self._load_unit(),
                self._load_favourite(),
                self._load_detail(),
            )
        finally:
            self.loading = False
        self._check_storage()

    def format_measurement(self, ingredient: Ingredient) -> str:
        measure = ingredient.measures.for_unit(self.measurement_unit)
        return f"{measure.amount} {measure.unit_long}"

    def seed_summary(self) -> RecipeSummary:
        return RecipeSummary(id=self.id, title=self.title, image_url=self.image_url)

    async def toggle_favourite(self) -> bool:
        async with self._toggle_lock:
            self.saving = True
            try:
                if self.is_favourite:
                    await self.favourites.remove(self.id)
                    self.is_favourite = False
                else:
                    await self.favourites.add(self.seed_summary())
                    self.is_favourite = True
            finally:
                self.saving = False
        self._check_storage()
        return self.is_favourite

    async def set_measurement_unit(self, unit: MeasurementUnit | str) -> None:
        self.warning = None
        try:
            await self.preferences.set_measurement_unit(unit)
        except InvalidPreference as e:
            self.warning = str(e)
            return
        self._check_storage()

    def _check_storage(self) -> None:
        if self.favourites.degraded or self.preferences.degraded:
            self.warning = STORAGE_WARNING

    def close(self) -> None:
        self.preferences.remove_listener(self._on_unit_changed)


class FavouritesSession:
    def __init__(self, favourites: FavouritesRepository) -> None:
        self.repository = favourites
        self.favourites: tuple[RecipeSummary, ...] = ()
        self.warning: str | None = None

    @property
    def count(self) -> int:
        return len(self.favourites)

    async def load(self) -> tuple[RecipeSummary, ...]:
        self.favourites = await self.repository.list()
        self.warning = STORAGE_WARNING if self.repository.degraded else None
        return self.favourites


class SettingsSession:
    def __init__(self, preferences: PreferenceRepository) -> None:
        self.preferences = preferences
        self.measurement_unit = MeasurementUnit.default()
        self.warning: str | None = None

    async def load(self) -> MeasurementUnit:
        self.measurement_unit = await self.preferences.get_measurement_unit()
        return self.measurement_unit

    async def change(self, unit: MeasurementUnit | str) -> MeasurementUnit:
        self.warning = None
        try:
            unit = parse_measurement_unit(unit)
        except InvalidPreference as e:
            self.warning = str(e)
            return self.measurement_unit

        persisted = await self.preferences.set_measurement_unit(unit)
        self.measurement_unit = unit
        if not persisted:
            self.warning = STORAGE_WARNING
        return self.measurement_unit
