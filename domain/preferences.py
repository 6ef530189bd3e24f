import logging
from typing import Callable, TypeAlias

from domain.models import MeasurementUnit
from domain.store import PersistentStore, StorageUnavailable


logger = logging.getLogger(__name__)


MEASUREMENT_UNIT_KEY = "measurementUnit"


UnitListener: TypeAlias = Callable[[MeasurementUnit], None]


class InvalidPreference(ValueError):
    pass


def parse_measurement_unit(value: object) -> MeasurementUnit:
    if isinstance(value, MeasurementUnit):
        return value
    if isinstance(value, str):
        try:
            return MeasurementUnit(value.strip().lower())
        except ValueError:
            pass
    raise InvalidPreference(f"Unknown measurement unit: {value!r}")


class PreferenceRepository:
    """The measurement unit preference. Metric unless told otherwise."""

    def __init__(self, store: PersistentStore) -> None:
        self.store = store
        self.degraded = False
        self._unit = MeasurementUnit.default()
        self._listeners: list[UnitListener] = []

    def add_listener(self, listener: UnitListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: UnitListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def get_measurement_unit(self) -> MeasurementUnit:
        if self.degraded:
            return self._unit

        try:
            stored = await self.store.get(MEASUREMENT_UNIT_KEY)
        except StorageUnavailable:
            self._degrade()
            return self._unit

        if stored is None:
            return MeasurementUnit.default()

        try:
            self._unit = parse_measurement_unit(stored)
        except InvalidPreference:
            logger.warning("Stored measurement unit %r is not valid.", stored)
            return MeasurementUnit.default()
        return self._unit

    async def set_measurement_unit(self, unit: MeasurementUnit | str) -> bool:
        """Persist `unit`. False means it is only held in memory."""
        unit = parse_measurement_unit(unit)
        self._unit = unit
        persisted = False

        if not self.degraded:
            try:
                await self.store.set(MEASUREMENT_UNIT_KEY, unit.value)
            except StorageUnavailable:
                self._degrade()
            else:
                persisted = True

        for listener in list(self._listeners):
            listener(unit)
        return persisted

    def _degrade(self) -> None:
        logger.warning("Preferences unavailable, keeping them in memory.")
        self.degraded = True
