"""Common data models for the datapoint generator.

Defines the ``GenerationRequest`` (what to generate), the ``Datapoint``
(the record every sink receives) and the per-sensor-kind reading payloads.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import StrEnum
from typing import Annotated, Any, Literal, Union

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, TypeAdapter

__all__ = [
    "Datapoint",
    "GenerationRequest",
    "GenerationResult",
    "GenericSensorReading",
    "MovementSensorReading",
    "Reading",
    "SensorKind",
    "capture_day",
    "expected_datapoint_count",
]

_DOCUMENT_ADAPTER: TypeAdapter[dict[str, Any]] = TypeAdapter(dict[str, Any])


class SensorKind(StrEnum):
    """Kinds of component the generator can impersonate."""

    GENERIC = "generic-sensor"
    MOVEMENT = "movement-sensor"


def expected_datapoint_count(start: datetime, end: datetime, frequency_hz: int) -> int:
    """Approximate number of datapoints in ``[start, end]``, for sizing progress output.

    Whole minutes only: a 90 s window at 1 Hz reports 60, while the loop
    produces 91 datapoints.
    """
    whole_minutes = int((end - start).total_seconds() / 60)
    return whole_minutes * frequency_hz * 60


def capture_day(ts: datetime) -> datetime:
    """Truncate *ts* to midnight UTC of its calendar day."""
    ts = ts.astimezone(timezone.utc)
    return datetime(ts.year, ts.month, ts.day, tzinfo=timezone.utc)


class GenerationRequest(BaseModel):
    """Validated, immutable description of one generation run.

    Built by :func:`sensor_datagen.config.resolve`; never mutated afterwards.

    Attributes:
        org_id / loc_id / machine_id / part_id: Identity copied onto every record.
        start_time: First tick (UTC).
        end_time: Last admissible tick, inclusive (UTC).
        sensor_kind: Selects component descriptors and payload shape.
        frequency_hz: Ticks per second.
    """

    model_config = ConfigDict(frozen=True)

    org_id: str = Field(min_length=1)
    loc_id: str = Field(min_length=1)
    machine_id: str = Field(min_length=1)
    part_id: str = Field(min_length=1)
    start_time: AwareDatetime
    end_time: AwareDatetime
    sensor_kind: SensorKind = SensorKind.GENERIC
    frequency_hz: int = Field(gt=0)

    @property
    def period_seconds(self) -> float:
        """Tick spacing in seconds."""
        return 1.0 / self.frequency_hz

    @property
    def expected_count(self) -> int:
        return expected_datapoint_count(self.start_time, self.end_time, self.frequency_hz)


# ---------------------------------------------------------------------------
# Reading payloads (tagged on ``kind``)
# ---------------------------------------------------------------------------


class GenericSensorReading(BaseModel):
    """Filler payload of a ``generic-sensor`` component.

    Attributes:
        viam_uploaded: Upload flag, always ``False`` for generated data.
        time: Free-text label.
        type: Free-text type tag.
        temp: Uniform in ``[0, 500)``.
        cook_time: Uniform in ``[0, 200)``.
        begin_time: Integer Unix timestamp of the tick, as a float.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal[SensorKind.GENERIC] = SensorKind.GENERIC
    viam_uploaded: bool = False
    time: str
    type: str
    temp: float
    cook_time: float
    begin_time: float

    def to_data(self) -> dict[str, Any]:
        return {"readings": self.model_dump(exclude={"kind"})}


class MovementSensorReading(BaseModel):
    """Payload of a ``movement-sensor`` component (no fields are generated)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[SensorKind.MOVEMENT] = SensorKind.MOVEMENT

    def to_data(self) -> dict[str, Any]:
        return {}


Reading = Annotated[Union[GenericSensorReading, MovementSensorReading], Field(discriminator="kind")]


# ---------------------------------------------------------------------------
# Datapoint
# ---------------------------------------------------------------------------


class Datapoint(BaseModel):
    """A single generated sample.

    Every sink receives batches of ``Datapoint`` objects.  The record is
    frozen once built; sinks serialise it with :meth:`to_document`.

    Attributes:
        org_id / loc_id / machine_id / part_id: Identity, verbatim from the request.
        component_name / component_type / method_name: Fixed per sensor kind.
        reading: Kind-specific payload.
        capture_day: Midnight UTC of the tick.
        time_requested / time_received: Both equal to the tick.
        tags: Always ``None``.
        additional_parameters: Always empty.
    """

    model_config = ConfigDict(frozen=True)

    org_id: str
    loc_id: str
    machine_id: str
    part_id: str
    component_name: str
    component_type: str
    method_name: str
    reading: Reading
    capture_day: datetime
    time_requested: datetime
    time_received: datetime
    tags: None = None
    additional_parameters: dict[str, Any] = Field(default_factory=dict)

    @property
    def timestamp(self) -> datetime:
        """The tick that produced this record."""
        return self.time_requested

    @property
    def sensor_kind(self) -> SensorKind:
        return self.reading.kind

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def to_document(self) -> dict[str, Any]:
        """Return the flat storage document (``datetime`` values kept as-is).

        A fresh ``dict`` is built on every call, so a driver that adds keys
        (e.g. Mongo's ``_id``) never touches the record itself.
        """
        return {
            "organization_id": self.org_id,
            "location_id": self.loc_id,
            "robot_id": self.machine_id,
            "part_id": self.part_id,
            "component_name": self.component_name,
            "component_type": self.component_type,
            "method_name": self.method_name,
            "tags": None,
            "additional_parameters": {},
            "data": self.reading.to_data(),
            "capture_day": self.capture_day,
            "time_requested": self.time_requested,
            "time_received": self.time_received,
        }

    def to_json(self) -> str:
        """Return the storage document as compact JSON (ISO-8601 UTC timestamps)."""
        return _DOCUMENT_ADAPTER.dump_json(self.to_document()).decode()


class GenerationResult(BaseModel):
    """Outcome of a completed (or cancelled) generation run."""

    records_written: int = 0
    batches_written: int = 0
    first_time: datetime | None = None
    last_time: datetime | None = None
    cancelled: bool = False
