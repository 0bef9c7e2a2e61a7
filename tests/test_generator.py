"""Tests for sensor_datagen.generator – tick walk, field derivation and batching."""

from __future__ import annotations

import asyncio
import math
import random
from datetime import datetime, timedelta, timezone

import pytest

from sensor_datagen.config import resolve
from sensor_datagen.errors import GenerationError, SinkError
from sensor_datagen.generator import DatapointGenerator
from sensor_datagen.models import (
    Datapoint,
    GenerationRequest,
    GenericSensorReading,
    MovementSensorReading,
    SensorKind,
)
from sensor_datagen.sinks.base import Sink, SinkRunner

UTC = timezone.utc


# -----------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------


def _request(start: str, end: str, frequency: int = 1, kind: str = "generic-sensor") -> GenerationRequest:
    return resolve(
        org_id="org",
        loc_id="loc",
        machine_id="machine",
        part_id="part",
        start_time=start,
        end_time=end,
        frequency_hz=frequency,
        sensor_kind=kind,
    )


def _generator(**kwargs) -> DatapointGenerator:
    kwargs.setdefault("string_length", 8)
    return DatapointGenerator(rng=random.Random(0), **kwargs)


class _RecordingSink(Sink):
    """In-memory sink that records every batch and can fail on demand."""

    def __init__(self, *, fail_on_call: int | None = None, **kwargs) -> None:
        kwargs.setdefault("retry_count", 1)
        kwargs.setdefault("retry_delay_s", 0.0)
        super().__init__(**kwargs)
        self.batches: list[list[Datapoint]] = []
        self.calls = 0
        self._fail_on_call = fail_on_call

    async def connect(self) -> None:
        pass

    async def write(self, records: list[Datapoint]) -> None:
        self.calls += 1
        if self.calls == self._fail_on_call:
            raise ConnectionError("datastore unavailable")
        self.batches.append(records)

    async def flush(self) -> None:
        pass

    async def close(self) -> None:
        pass

    @property
    def records(self) -> list[Datapoint]:
        return [rec for batch in self.batches for rec in batch]


# -----------------------------------------------------------------------
# Tick walk
# -----------------------------------------------------------------------


class TestTickWalk:
    """iter_datapoints() walks [start, end] inclusively."""

    def test_three_second_window_at_1hz(self) -> None:
        req = _request("2024-01-01 00:00:00", "2024-01-01 00:00:02")
        points = list(_generator().iter_datapoints(req))
        assert [p.timestamp for p in points] == [
            datetime(2024, 1, 1, 0, 0, 0, tzinfo=UTC),
            datetime(2024, 1, 1, 0, 0, 1, tzinfo=UTC),
            datetime(2024, 1, 1, 0, 0, 2, tzinfo=UTC),
        ]
        assert all(p.capture_day == datetime(2024, 1, 1, tzinfo=UTC) for p in points)

    def test_start_equals_end_yields_one(self) -> None:
        req = _request("2024-01-01 00:00:00", "2024-01-01 00:00:00", frequency=50)
        assert len(list(_generator().iter_datapoints(req))) == 1

    @pytest.mark.parametrize(
        ("end", "frequency"),
        [
            ("2024-01-01 00:00:02", 1),
            ("2024-01-01 00:00:02", 3),
            ("2024-01-01 00:00:05", 4),
            ("2024-01-01 00:01:30", 7),
            ("2024-01-01 00:00:01", 3000),
        ],
    )
    def test_count_matches_tick_formula(self, end: str, frequency: int) -> None:
        req = _request("2024-01-01 00:00:00", end, frequency=frequency)
        window_s = (req.end_time - req.start_time).total_seconds()
        expected = math.floor(window_s * frequency) + 1
        points = list(_generator(string_length=0).iter_datapoints(req))
        assert len(points) == expected
        assert DatapointGenerator.tick_count(req) == expected

    @pytest.mark.parametrize(
        ("end", "frequency", "expected"),
        [
            ("2024-01-01 00:01:00", 3000, 180_001),
            ("2024-01-01 01:00:00", 7, 25_201),
            ("2024-01-01 00:00:01", 1_500_000, 1_500_001),
        ],
    )
    def test_tick_walk_count_over_long_windows(self, end: str, frequency: int, expected: int) -> None:
        req = _request("2024-01-01 00:00:00", end, frequency=frequency)
        ticks = list(_generator().iter_ticks(req))
        assert len(ticks) == DatapointGenerator.tick_count(req) == expected
        assert ticks[-1] == req.end_time
        assert all(a <= b for a, b in zip(ticks, ticks[1:]))

    def test_time_requested_equals_time_received(self) -> None:
        req = _request("2024-01-01 00:00:00", "2024-01-01 00:00:03", frequency=2)
        for p in _generator().iter_datapoints(req):
            assert p.time_requested == p.time_received == p.timestamp

    def test_capture_day_across_midnight(self) -> None:
        req = _request("2024-01-01 23:59:59", "2024-01-02 00:00:01")
        days = [p.capture_day for p in _generator().iter_datapoints(req)]
        assert days == [
            datetime(2024, 1, 1, tzinfo=UTC),
            datetime(2024, 1, 2, tzinfo=UTC),
            datetime(2024, 1, 2, tzinfo=UTC),
        ]

    def test_period_accumulates_by_float_addition(self) -> None:
        # 1/3 + 1/3 + 1/3 is exactly 1.0 in floating point
        req = _request("2024-01-01 00:00:00", "2024-01-01 00:00:01", frequency=3)
        points = list(_generator().iter_datapoints(req))
        assert [p.timestamp - req.start_time for p in points] == [
            timedelta(0),
            timedelta(microseconds=333_333),
            timedelta(microseconds=666_667),
            timedelta(seconds=1),
        ]

    def test_offset_is_a_running_sum(self) -> None:
        req = _request("2024-01-01 00:00:00", "2024-01-01 00:00:02", frequency=10)
        offset = 0.0
        expected = []
        while offset <= 2.0 + 1e-9:
            expected.append(req.start_time + timedelta(seconds=offset))
            offset += 0.1
        assert list(_generator().iter_ticks(req)) == expected

    def test_zero_period_raises(self) -> None:
        req = _request("2024-01-01 00:00:00", "2024-01-01 00:00:01", frequency=3_000_000)
        with pytest.raises(GenerationError, match="period rounds to zero"):
            next(_generator().iter_datapoints(req))

    def test_end_before_start_yields_nothing(self) -> None:
        req = GenerationRequest(
            org_id="o",
            loc_id="l",
            machine_id="m",
            part_id="p",
            start_time=datetime(2024, 1, 2, tzinfo=UTC),
            end_time=datetime(2024, 1, 1, tzinfo=UTC),
            frequency_hz=1,
        )
        assert list(_generator().iter_datapoints(req)) == []
        assert DatapointGenerator.tick_count(req) == 0


# -----------------------------------------------------------------------
# Field derivation
# -----------------------------------------------------------------------


class TestFieldDerivation:
    """Component descriptors and payloads per sensor kind."""

    def test_generic_sensor_fields(self) -> None:
        req = _request("2024-01-01 00:00:00", "2024-01-01 00:00:00")
        (point,) = _generator(string_length=32).iter_datapoints(req)
        assert (point.org_id, point.loc_id, point.machine_id, point.part_id) == ("org", "loc", "machine", "part")
        assert point.component_name == "sensy-1"
        assert point.component_type == "rdk:component:sensor"
        assert point.method_name == "Readings"
        assert isinstance(point.reading, GenericSensorReading)
        assert len(point.reading.time) == 32
        assert len(point.reading.type) == 32
        assert 0.0 <= point.reading.temp < 500.0
        assert 0.0 <= point.reading.cook_time < 200.0
        assert point.reading.begin_time == float(int(req.start_time.timestamp()))
        assert point.reading.viam_uploaded is False

    def test_movement_sensor_fields(self) -> None:
        req = _request("2024-01-01 00:00:00", "2024-01-01 00:00:01", kind="movement-sensor")
        points = list(_generator().iter_datapoints(req))
        assert len(points) == 2
        for point in points:
            assert point.component_name == "movie-1"
            assert point.component_type == "rdk:component:movement_sensor"
            assert point.method_name == ""
            assert isinstance(point.reading, MovementSensorReading)
            assert point.to_document()["data"] == {}
            assert point.sensor_kind is SensorKind.MOVEMENT

    def test_default_string_length(self) -> None:
        req = _request("2024-01-01 00:00:00", "2024-01-01 00:00:00")
        (point,) = DatapointGenerator(rng=random.Random(1)).iter_datapoints(req)
        assert len(point.reading.time) == 10_000

    def test_seeded_rng_is_reproducible(self) -> None:
        req = _request("2024-01-01 00:00:00", "2024-01-01 00:00:04")
        a = [p.to_document() for p in DatapointGenerator(rng=random.Random(5), string_length=16).iter_datapoints(req)]
        b = [p.to_document() for p in DatapointGenerator(rng=random.Random(5), string_length=16).iter_datapoints(req)]
        assert a == b


# -----------------------------------------------------------------------
# Batching
# -----------------------------------------------------------------------


class TestBatching:
    """iter_batches() and generate() batching policy."""

    def test_iter_batches_sizes(self) -> None:
        req = _request("2024-01-01 00:00:00", "2024-01-01 00:00:06")
        sizes = [len(b) for b in _generator().iter_batches(req, 3)]
        assert sizes == [3, 3, 1]

    def test_invalid_batch_size(self) -> None:
        with pytest.raises(ValueError, match="batch_size"):
            DatapointGenerator(batch_size=0)

    @pytest.mark.asyncio
    async def test_generate_writes_all_in_order(self) -> None:
        req = _request("2024-01-01 00:00:00", "2024-01-01 00:00:09", frequency=2)
        sink = _RecordingSink(batch_size=4)
        result = await _generator().generate(req, sink)

        assert [len(b) for b in sink.batches] == [4, 4, 4, 4, 3]
        stamps = [p.timestamp for p in sink.records]
        assert stamps == sorted(stamps)
        assert len(stamps) == DatapointGenerator.tick_count(req) == 19
        assert result.records_written == 19
        assert result.batches_written == 5
        assert result.first_time == req.start_time
        assert result.last_time == req.end_time
        assert result.cancelled is False

    @pytest.mark.asyncio
    async def test_generator_batch_size_overrides_sink(self) -> None:
        req = _request("2024-01-01 00:00:00", "2024-01-01 00:00:04")
        sink = _RecordingSink(batch_size=100)
        await _generator(batch_size=2).generate(req, sink)
        assert [len(b) for b in sink.batches] == [2, 2, 1]

    @pytest.mark.asyncio
    async def test_generate_accepts_runner(self) -> None:
        req = _request("2024-01-01 00:00:00", "2024-01-01 00:00:04")
        sink = _RecordingSink(batch_size=2)
        runner = SinkRunner(sink)
        await _generator().generate(req, runner)
        assert runner.records_written == 5
        assert runner.batches_written == 3

    @pytest.mark.asyncio
    async def test_progress_called_per_record(self) -> None:
        req = _request("2024-01-01 00:00:00", "2024-01-01 00:00:04")
        increments: list[int] = []
        await _generator().generate(req, _RecordingSink(batch_size=2), progress=increments.append)
        assert increments == [1] * 5

    @pytest.mark.asyncio
    async def test_zero_period_fails_before_sink_call(self) -> None:
        req = _request("2024-01-01 00:00:00", "2024-01-01 00:00:01", frequency=3_000_000)
        sink = _RecordingSink()
        with pytest.raises(GenerationError):
            await _generator().generate(req, sink)
        assert sink.calls == 0

    @pytest.mark.asyncio
    async def test_end_before_start_makes_no_sink_calls(self) -> None:
        req = GenerationRequest(
            org_id="o",
            loc_id="l",
            machine_id="m",
            part_id="p",
            start_time=datetime(2024, 1, 2, tzinfo=UTC),
            end_time=datetime(2024, 1, 1, tzinfo=UTC),
            frequency_hz=1,
        )
        sink = _RecordingSink()
        result = await _generator().generate(req, sink)
        assert result.records_written == 0
        assert sink.calls == 0


# -----------------------------------------------------------------------
# Failure and cancellation
# -----------------------------------------------------------------------


class TestFailureAndCancellation:
    """Sink failures propagate; stop events end the run early."""

    @pytest.mark.asyncio
    async def test_failure_on_second_batch(self) -> None:
        req = _request("2024-01-01 00:00:00", "2024-01-01 00:00:05")
        sink = _RecordingSink(batch_size=2, fail_on_call=2)

        with pytest.raises(SinkError) as exc_info:
            await _generator().generate(req, sink)

        assert sink.calls == 2
        assert len(sink.batches) == 1
        assert [p.timestamp.second for p in sink.batches[0]] == [0, 1]
        err = exc_info.value
        assert isinstance(err, GenerationError)
        assert err.batch_size == 2
        assert err.first_time == datetime(2024, 1, 1, 0, 0, 2, tzinfo=UTC)
        assert err.last_time == datetime(2024, 1, 1, 0, 0, 3, tzinfo=UTC)
        assert isinstance(err.__cause__, ConnectionError)

    @pytest.mark.asyncio
    async def test_stop_event_cancels_after_current_batch(self) -> None:
        req = _request("2024-01-01 00:00:00", "2024-01-01 00:10:00")
        stop = asyncio.Event()

        class _StoppingSink(_RecordingSink):
            async def write(self, records: list[Datapoint]) -> None:
                await super().write(records)
                stop.set()

        sink = _StoppingSink(batch_size=10)
        result = await _generator().generate(req, sink, stop_event=stop)

        assert result.cancelled is True
        assert result.records_written == 10
        assert len(sink.batches) == 1
