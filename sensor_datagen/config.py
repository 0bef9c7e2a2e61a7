"""Configuration resolver and YAML configuration loader.

:func:`resolve` turns raw user input (CLI flags or YAML values) into a
validated :class:`GenerationRequest`.  :func:`load_yaml_config` parses a
YAML file with the following top-level sections::

    generation:   # identity, time window, sensor kind, frequency, seed
    sink:         # sink config dict passed to the sink factory

Example:

.. code-block:: yaml

    generation:
      org_id: my-org
      start_time: "2024-01-01 00:00:00"
      end_time: "2024-01-01 01:00:00"
      sensor_kind: generic-sensor
      frequency_hz: 1

    sink:
      type: mongo
      uri: mongodb://localhost:27017/
      database: sensorData
      batch_size: 2000
"""

from __future__ import annotations

import logging
import random
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from sensor_datagen.errors import InvalidConfigError
from sensor_datagen.models import GenerationRequest, SensorKind
from sensor_datagen.readings import DEFAULT_STRING_LENGTH

__all__ = [
    "DATETIME_FORMAT",
    "DatagenYAMLConfig",
    "load_yaml_config",
    "parse_time",
    "random_identifier",
    "resolve",
]

logger = logging.getLogger("sensor_datagen.config")

DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
_FORMAT_HINT = "YYYY-MM-DD HH:MM:SS"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


def random_identifier(rng: random.Random) -> str:
    """Return a UUID4 string whose bits come from *rng*."""
    return str(uuid.UUID(int=rng.getrandbits(128), version=4))


def parse_time(value: str, field: str) -> datetime:
    """Parse ``YYYY-MM-DD HH:MM:SS`` as a UTC instant."""
    try:
        parsed = datetime.strptime(value.strip(), DATETIME_FORMAT)
    except (TypeError, ValueError, AttributeError) as exc:
        raise InvalidConfigError(
            f"failed to parse {field} {value!r}, please use format {_FORMAT_HINT}",
            field=field,
            value=value,
        ) from exc
    return parsed.replace(tzinfo=timezone.utc)


def resolve(
    *,
    start_time: str | None,
    frequency_hz: Any,
    end_time: str | None = None,
    org_id: str | None = "",
    loc_id: str | None = "",
    machine_id: str | None = "",
    part_id: str | None = "",
    sensor_kind: SensorKind | str = SensorKind.GENERIC,
    rng: random.Random | None = None,
    now: Callable[[], datetime] | None = None,
) -> GenerationRequest:
    """Validate raw input and build a :class:`GenerationRequest`.

    Parameters:
        start_time: Required, ``YYYY-MM-DD HH:MM:SS`` in UTC.
        frequency_hz: Positive integer sampling frequency.
        end_time: Optional, same format; defaults to *now()*.
        org_id / loc_id / machine_id / part_id:
            Used verbatim when non-empty, otherwise replaced by a random
            UUID drawn from *rng*.
        sensor_kind: ``"generic-sensor"`` or ``"movement-sensor"``.
        rng: Random source for generated identifiers.
        now: Clock used when *end_time* is omitted.

    Raises:
        InvalidConfigError: on unparseable times, end before start, an
            unknown sensor kind or a non-positive frequency.
    """
    rng = rng or random.Random()
    now = now or _utc_now

    if not start_time:
        raise InvalidConfigError(
            f"start_time is required, please use format {_FORMAT_HINT}",
            field="start_time",
            value=start_time,
        )
    start = parse_time(start_time, "start_time")

    if end_time:
        end = parse_time(end_time, "end_time")
    else:
        end = now()
        if end.tzinfo is None:
            end = end.replace(tzinfo=timezone.utc)
        end = end.astimezone(timezone.utc)

    if end < start:
        raise InvalidConfigError(
            f"end_time {end.strftime(DATETIME_FORMAT)} is before start_time {start.strftime(DATETIME_FORMAT)}",
            field="end_time",
            value=end_time,
        )

    if isinstance(frequency_hz, bool) or not isinstance(frequency_hz, int) or frequency_hz <= 0:
        raise InvalidConfigError(
            f"frequency must be a positive integer (Hz), got {frequency_hz!r}",
            field="frequency_hz",
            value=frequency_hz,
        )

    try:
        kind = SensorKind(sensor_kind)
    except ValueError as exc:
        valid = ", ".join(k.value for k in SensorKind)
        raise InvalidConfigError(
            f"unknown sensor kind {sensor_kind!r}, expected one of: {valid}",
            field="sensor_kind",
            value=sensor_kind,
        ) from exc

    request = GenerationRequest(
        org_id=org_id or random_identifier(rng),
        loc_id=loc_id or random_identifier(rng),
        machine_id=machine_id or random_identifier(rng),
        part_id=part_id or random_identifier(rng),
        start_time=start,
        end_time=end,
        sensor_kind=kind,
        frequency_hz=frequency_hz,
    )

    logger.info(
        "Will generate ~%d datapoints between %s and %s (org=%s, machine=%s)",
        request.expected_count,
        request.start_time,
        request.end_time,
        request.org_id,
        request.machine_id,
    )
    return request


# ---------------------------------------------------------------------------
# YAML configuration
# ---------------------------------------------------------------------------


class DatagenYAMLConfig(BaseModel):
    """Parsed representation of the full YAML configuration.

    Attributes:
        org_id / loc_id / machine_id / part_id: Identity (empty = generate).
        start_time / end_time: Raw ``YYYY-MM-DD HH:MM:SS`` strings.
        sensor_kind: ``generic-sensor`` or ``movement-sensor``.
        frequency_hz: Sampling frequency.
        seed: Seed for the random source (``None`` = non-reproducible).
        string_length: Length of the generated free-text reading fields.
        log_level: Logging level string.
        sink_config: Raw dict passed to the sink factory.
    """

    org_id: str = ""
    loc_id: str = ""
    machine_id: str = ""
    part_id: str = ""
    start_time: str | None = None
    end_time: str | None = None
    sensor_kind: str = SensorKind.GENERIC.value
    frequency_hz: int | None = None
    seed: int | None = None
    string_length: int = Field(default=DEFAULT_STRING_LENGTH, ge=0)
    log_level: str = "INFO"
    sink_config: dict[str, Any] = Field(default_factory=dict)


def _as_time_string(value: Any) -> str | None:
    # YAML turns an unquoted "2024-01-01 00:00:00" into a datetime
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.strftime(DATETIME_FORMAT)
    return str(value)


def load_yaml_config(path: str | Path) -> DatagenYAMLConfig:
    """Load and validate a YAML configuration file.

    Raises:
        FileNotFoundError: if *path* does not exist.
        InvalidConfigError: if a value has the wrong type.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with path.open("r") as fh:
        raw: dict[str, Any] = yaml.safe_load(fh) or {}

    gen_section = raw.get("generation", {}) or {}
    sink_section = raw.get("sink", {}) or {}

    values: dict[str, Any] = {
        key: gen_section[key]
        for key in (
            "org_id",
            "loc_id",
            "machine_id",
            "part_id",
            "sensor_kind",
            "frequency_hz",
            "seed",
            "string_length",
            "log_level",
        )
        if gen_section.get(key) is not None
    }
    for key in ("org_id", "loc_id", "machine_id", "part_id"):
        if key in values:
            values[key] = str(values[key])
    values["start_time"] = _as_time_string(gen_section.get("start_time"))
    values["end_time"] = _as_time_string(gen_section.get("end_time"))

    try:
        config = DatagenYAMLConfig(**values, sink_config=dict(sink_section))
    except ValidationError as exc:
        raise InvalidConfigError(f"invalid config file {path}: {exc}") from exc

    logger.info(
        "Loaded config: sensor_kind=%s, frequency=%s Hz, sink=%s",
        config.sensor_kind,
        config.frequency_hz,
        config.sink_config.get("type", "(default)"),
    )
    return config
