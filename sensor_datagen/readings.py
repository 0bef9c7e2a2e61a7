"""Per-sensor-kind component descriptors and reading payload synthesis.

Readings are filler, not simulated signal: the generic sensor gets long
random strings and uniformly distributed magnitudes, the movement sensor
gets no payload at all.
"""

from __future__ import annotations

import math
import random
import string
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from sensor_datagen.models import (
    GenericSensorReading,
    MovementSensorReading,
    Reading,
    SensorKind,
)

__all__ = [
    "COMPONENTS",
    "DEFAULT_STRING_LENGTH",
    "ComponentSpec",
    "ReadingFactory",
    "get_component",
]

DEFAULT_STRING_LENGTH = 10_000
CHARSET = string.ascii_letters + string.digits

TEMP_MAX = 500.0
COOK_TIME_MAX = 200.0


class ComponentSpec(BaseModel):
    """Fixed component descriptors stamped on every record of one sensor kind."""

    model_config = ConfigDict(frozen=True)

    component_name: str
    component_type: str
    method_name: str


COMPONENTS: dict[SensorKind, ComponentSpec] = {
    SensorKind.GENERIC: ComponentSpec(
        component_name="sensy-1",
        component_type="rdk:component:sensor",
        method_name="Readings",
    ),
    SensorKind.MOVEMENT: ComponentSpec(
        component_name="movie-1",
        component_type="rdk:component:movement_sensor",
        method_name="",
    ),
}


def get_component(kind: SensorKind) -> ComponentSpec:
    return COMPONENTS[kind]


class ReadingFactory:
    """Builds the reading payload for one tick.

    Parameters:
        rng: Random source.  Pass a seeded ``random.Random`` for
             reproducible payloads.
        string_length: Length of the free-text ``time`` / ``type`` fields.
    """

    def __init__(self, rng: random.Random | None = None, string_length: int = DEFAULT_STRING_LENGTH) -> None:
        if string_length < 0:
            raise ValueError(f"string_length must be >= 0, got {string_length}")
        self._rng = rng or random.Random()
        self.string_length = string_length

    def build(self, kind: SensorKind, tick: datetime) -> Reading:
        if kind == SensorKind.GENERIC:
            return self._generic(tick)
        if kind == SensorKind.MOVEMENT:
            return MovementSensorReading()
        raise ValueError(f"Unsupported sensor kind: {kind!r}")

    def random_string(self, length: int) -> str:
        return "".join(self._rng.choices(CHARSET, k=length))

    def _generic(self, tick: datetime) -> GenericSensorReading:
        return GenericSensorReading(
            viam_uploaded=False,
            time=self.random_string(self.string_length),
            type=self.random_string(self.string_length),
            temp=self._rng.random() * TEMP_MAX,
            cook_time=self._rng.random() * COOK_TIME_MAX,
            begin_time=float(math.floor(tick.timestamp())),
        )
