"""Datapoint generator - walks a time window and produces Datapoint batches.

The cursor is a float offset from ``start_time`` advanced by repeatedly
adding ``1 / frequency_hz``, so fractional periods drift exactly as a
running float sum would.  Records are grouped into batches of
``batch_size`` and handed to a :class:`~sensor_datagen.sinks.base.SinkRunner`;
only one batch is held in memory at a time.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Callable, Iterator
from datetime import datetime, timedelta

from sensor_datagen.errors import GenerationError
from sensor_datagen.models import (
    Datapoint,
    GenerationRequest,
    GenerationResult,
    capture_day,
)
from sensor_datagen.readings import DEFAULT_STRING_LENGTH, ReadingFactory, get_component
from sensor_datagen.sinks.base import Sink, SinkRunner

__all__ = ["DatapointGenerator", "ProgressCallback"]

logger = logging.getLogger("sensor_datagen.generator")

ProgressCallback = Callable[[int], None]


class DatapointGenerator:
    """Produces :class:`Datapoint` records for a :class:`GenerationRequest`.

    Parameters:
        rng:
            Random source for reading payloads.  Pass a seeded
            ``random.Random`` to make runs reproducible.
        string_length:
            Length of the free-text ``time`` / ``type`` reading fields.
        batch_size:
            Records per batch.  ``None`` uses the sink's
            ``SinkConfig.batch_size``.
    """

    def __init__(
        self,
        *,
        rng: random.Random | None = None,
        string_length: int = DEFAULT_STRING_LENGTH,
        batch_size: int | None = None,
    ) -> None:
        if batch_size is not None and batch_size <= 0:
            raise ValueError(f"batch_size must be > 0, got {batch_size}")
        self._readings = ReadingFactory(rng or random.Random(), string_length=string_length)
        self.batch_size = batch_size

    # ------------------------------------------------------------------
    # Pure generation
    # ------------------------------------------------------------------

    @staticmethod
    def period_seconds(request: GenerationRequest) -> float:
        """Return the tick spacing in seconds, failing if it is below timestamp resolution.

        Ticks are stored as microsecond datetimes, so a period that rounds
        to zero microseconds cannot produce distinct, advancing ticks.
        """
        period_s = request.period_seconds
        if timedelta(seconds=period_s) <= timedelta(0):
            raise GenerationError(
                f"frequency {request.frequency_hz} Hz is too high: the period rounds to zero "
                "at microsecond resolution and the cursor would never advance"
            )
        return period_s

    @classmethod
    def tick_count(cls, request: GenerationRequest) -> int:
        """Exact number of datapoints the window produces (0 when end < start).

        ``floor((end - start) / period) + 1`` in integer arithmetic, so no
        rounding of the period leaks into the count.
        """
        if request.end_time < request.start_time:
            return 0
        cls.period_seconds(request)
        window_us = (request.end_time - request.start_time) // timedelta(microseconds=1)
        return window_us * request.frequency_hz // 1_000_000 + 1

    def build_datapoint(self, request: GenerationRequest, tick: datetime) -> Datapoint:
        component = get_component(request.sensor_kind)
        return Datapoint(
            org_id=request.org_id,
            loc_id=request.loc_id,
            machine_id=request.machine_id,
            part_id=request.part_id,
            component_name=component.component_name,
            component_type=component.component_type,
            method_name=component.method_name,
            reading=self._readings.build(request.sensor_kind, tick),
            capture_day=capture_day(tick),
            time_requested=tick,
            time_received=tick,
        )

    def iter_ticks(self, request: GenerationRequest) -> Iterator[datetime]:
        """Yield every tick in ``[start_time, end_time]``.

        The offset from ``start_time`` is a float sum of the period, so
        fractional periods drift exactly as repeated float addition does.
        Each tick is that offset rounded to the microsecond, and the loop
        ends at the first tick past ``end_time``.
        """
        period_s = self.period_seconds(request)
        start = request.start_time
        offset = 0.0
        tick = start
        while tick <= request.end_time:
            yield tick
            offset += period_s
            tick = start + timedelta(seconds=offset)

    def iter_datapoints(self, request: GenerationRequest) -> Iterator[Datapoint]:
        """Yield one datapoint per tick in ``[start_time, end_time]``."""
        for tick in self.iter_ticks(request):
            yield self.build_datapoint(request, tick)

    def iter_batches(
        self,
        request: GenerationRequest,
        batch_size: int,
        progress: ProgressCallback | None = None,
    ) -> Iterator[list[Datapoint]]:
        """Yield lists of at most *batch_size* datapoints, in tick order."""
        batch: list[Datapoint] = []
        for datapoint in self.iter_datapoints(request):
            batch.append(datapoint)
            if progress is not None:
                progress(1)
            if len(batch) >= batch_size:
                yield batch
                batch = []
        if batch:
            yield batch

    # ------------------------------------------------------------------
    # Generation into a sink
    # ------------------------------------------------------------------

    async def generate(
        self,
        request: GenerationRequest,
        sink: Sink | SinkRunner,
        *,
        progress: ProgressCallback | None = None,
        stop_event: asyncio.Event | None = None,
    ) -> GenerationResult:
        """Generate every datapoint of *request* and write them to *sink* in batches.

        The sink must already be connected.  *progress* is called with ``1``
        for every record produced.  *stop_event* is checked after every
        batch; when set, generation stops early and the result is marked
        ``cancelled``.

        Raises:
            GenerationError: if the period cannot advance the cursor.
            SinkError: if the sink rejects a batch.
        """
        runner = sink if isinstance(sink, SinkRunner) else SinkRunner(sink)
        batch_size = self.batch_size or runner.cfg.batch_size
        self.period_seconds(request)

        if request.end_time < request.start_time:
            logger.warning(
                "end_time %s precedes start_time %s - nothing to generate",
                request.end_time,
                request.start_time,
            )
            return GenerationResult()

        logger.info(
            "Generating %s datapoints at %d Hz into %s (batch_size=%d)",
            request.sensor_kind.value,
            request.frequency_hz,
            runner.name,
            batch_size,
        )

        result = GenerationResult()
        for batch in self.iter_batches(request, batch_size, progress):
            await runner.submit(batch)

            result.batches_written += 1
            result.records_written += len(batch)
            if result.first_time is None:
                result.first_time = batch[0].timestamp
            result.last_time = batch[-1].timestamp
            logger.debug(
                "Batch %d written: %d records up to %s",
                result.batches_written,
                len(batch),
                result.last_time,
            )

            # let signal handlers run between batches
            await asyncio.sleep(0)
            if stop_event is not None and stop_event.is_set():
                logger.info(
                    "Stop signal received - stopping after %d records (last tick %s)",
                    result.records_written,
                    result.last_time,
                )
                result.cancelled = True
                break

        logger.info(
            "Generation finished: %d records in %d batches%s",
            result.records_written,
            result.batches_written,
            " (cancelled)" if result.cancelled else "",
        )
        return result
