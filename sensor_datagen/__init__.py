"""Sensor Datagen - generate a deterministic window of synthetic sensor
datapoints and bulk-insert them into a pluggable sink.

Quick start::

    import random

    from sensor_datagen import Datagen, resolve
    from sensor_datagen.sinks import ConsoleSink

    request = resolve(
        start_time="2024-01-01 00:00:00",
        end_time="2024-01-01 00:00:10",
        frequency_hz=2,
        rng=random.Random(42),
    )
    Datagen(request, sink=ConsoleSink(), string_length=16).run()
"""

from __future__ import annotations

from sensor_datagen.config import resolve
from sensor_datagen.datagen import Datagen
from sensor_datagen.errors import GenerationError, InvalidConfigError, SinkError
from sensor_datagen.generator import DatapointGenerator
from sensor_datagen.models import Datapoint, GenerationRequest, GenerationResult, SensorKind

__all__ = [
    "Datagen",
    "Datapoint",
    "DatapointGenerator",
    "GenerationError",
    "GenerationRequest",
    "GenerationResult",
    "InvalidConfigError",
    "SensorKind",
    "SinkError",
    "resolve",
]

__version__ = "0.1.0"
