"""Tests for sensor_datagen.readings – component descriptors and payload factory."""

from __future__ import annotations

import random
from datetime import datetime, timezone

import pytest

from sensor_datagen.models import GenericSensorReading, MovementSensorReading, SensorKind
from sensor_datagen.readings import CHARSET, COMPONENTS, ReadingFactory, get_component


class TestComponents:
    """Fixed descriptors per sensor kind."""

    def test_every_kind_has_a_component(self) -> None:
        assert set(COMPONENTS) == set(SensorKind)

    def test_generic_component(self) -> None:
        spec = get_component(SensorKind.GENERIC)
        assert spec.component_name == "sensy-1"
        assert spec.method_name == "Readings"

    def test_movement_component_has_no_method(self) -> None:
        assert get_component(SensorKind.MOVEMENT).method_name == ""


class TestReadingFactory:
    """ReadingFactory payload synthesis."""

    def test_random_string_uses_charset(self) -> None:
        value = ReadingFactory(random.Random(3)).random_string(500)
        assert len(value) == 500
        assert set(value) <= set(CHARSET)

    def test_generic_payload(self) -> None:
        tick = datetime(2024, 9, 17, 20, 55, 44, 500000, tzinfo=timezone.utc)
        reading = ReadingFactory(random.Random(3), string_length=12).build(SensorKind.GENERIC, tick)
        assert isinstance(reading, GenericSensorReading)
        assert len(reading.time) == len(reading.type) == 12
        assert reading.begin_time == 1726606544.0

    def test_movement_payload_is_empty(self) -> None:
        tick = datetime(2024, 1, 1, tzinfo=timezone.utc)
        reading = ReadingFactory(random.Random(3)).build(SensorKind.MOVEMENT, tick)
        assert isinstance(reading, MovementSensorReading)

    def test_accepts_kind_string(self) -> None:
        tick = datetime(2024, 1, 1, tzinfo=timezone.utc)
        reading = ReadingFactory(random.Random(3)).build("movement-sensor", tick)  # type: ignore[arg-type]
        assert isinstance(reading, MovementSensorReading)

    def test_negative_length_rejected(self) -> None:
        with pytest.raises(ValueError, match="string_length"):
            ReadingFactory(random.Random(3), string_length=-1)

    def test_magnitudes_within_bounds(self) -> None:
        factory = ReadingFactory(random.Random(11), string_length=0)
        tick = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for _ in range(200):
            reading = factory.build(SensorKind.GENERIC, tick)
            assert 0.0 <= reading.temp < 500.0
            assert 0.0 <= reading.cook_time < 200.0
