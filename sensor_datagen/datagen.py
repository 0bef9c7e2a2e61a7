"""Datagen - top-level orchestrator that wires a resolved request, the
datapoint generator and a sink together.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import random
import signal
import threading
from collections.abc import Callable
from typing import Any

from sensor_datagen.generator import DatapointGenerator
from sensor_datagen.models import Datapoint, GenerationRequest, GenerationResult
from sensor_datagen.progress import LogProgress
from sensor_datagen.readings import DEFAULT_STRING_LENGTH
from sensor_datagen.sinks.base import Sink, SinkRunner
from sensor_datagen.sinks.callback import CallbackSink

__all__ = ["Datagen"]

logger = logging.getLogger("sensor_datagen")


class Datagen:
    """High-level API for generating a window of datapoints into a sink.

    Example::

        from sensor_datagen import Datagen, resolve
        from sensor_datagen.sinks import ConsoleSink

        request = resolve(start_time="2024-01-01 00:00:00",
                          end_time="2024-01-01 00:01:00", frequency_hz=1)
        Datagen(request, sink=ConsoleSink()).run()

    Parameters:
        request:
            The resolved :class:`GenerationRequest`.
        sink:
            A :class:`Sink` instance **or** any callable that accepts
            ``list[Datapoint]``.  Can also be set later with :meth:`set_sink`.
        rng:
            Random source for reading payloads.
        string_length:
            Length of the free-text reading fields.
        batch_size:
            Records per batch, overriding the sink's ``batch_size``.  The
            sink itself is left unchanged.
        report_progress:
            Log progress milestones sized by ``request.expected_count``.
    """

    def __init__(
        self,
        request: GenerationRequest,
        *,
        sink: Sink | Callable[[list[Datapoint]], Any] | None = None,
        rng: random.Random | None = None,
        string_length: int = DEFAULT_STRING_LENGTH,
        batch_size: int | None = None,
        report_progress: bool = True,
    ) -> None:
        self.request = request
        self._generator = DatapointGenerator(rng=rng, string_length=string_length, batch_size=batch_size)
        self._report_progress = report_progress
        self._runner: SinkRunner | None = None
        if sink is not None:
            self.set_sink(sink)

    # ------------------------------------------------------------------
    # Sink management
    # ------------------------------------------------------------------

    def set_sink(
        self,
        sink: Sink | Callable[[list[Datapoint]], Any],
        *,
        batch_size: int | None = None,
    ) -> None:
        """Register the sink (or callable) that receives generated batches.

        Parameters:
            sink:
                A :class:`Sink` instance **or** any callable that accepts
                ``list[Datapoint]``.
            batch_size:
                Records per batch for this run; ``None`` keeps the current
                setting (the constructor's, else the sink's ``batch_size``).
        """
        if not isinstance(sink, Sink):
            # Wrap bare callable in a CallbackSink
            sink = CallbackSink(sink)
        if batch_size is not None:
            if batch_size <= 0:
                raise ValueError(f"batch_size must be > 0, got {batch_size}")
            self._generator.batch_size = batch_size
        self._runner = SinkRunner(sink)

    @property
    def sink(self) -> Sink | None:
        return self._runner.sink if self._runner else None

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self) -> GenerationResult:
        """Blocking entry point - starts the event loop.

        Works transparently inside environments that already have a running
        event loop (Jupyter, IPython) by spawning a dedicated background
        thread with its own loop.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None and loop.is_running():
            outcome: list[Any] = [None, None]

            def _target() -> None:
                try:
                    outcome[0] = asyncio.run(self.run_async())
                except BaseException as e:
                    outcome[1] = e

            t = threading.Thread(target=_target, daemon=True)
            t.start()
            t.join()
            if outcome[1] is not None:
                raise outcome[1]
            return outcome[0]

        return asyncio.run(self.run_async())

    async def run_async(self, stop_event: asyncio.Event | None = None) -> GenerationResult:
        """Async entry point - connect, generate, then flush and close the sink.

        SIGINT / SIGTERM set *stop_event*, which the generator checks after
        every batch.
        """
        if self._runner is None:
            raise RuntimeError("No sink registered - call set_sink() first.")

        runner = self._runner
        request = self.request
        logger.info(
            "Starting generation: %s, %d Hz, %s .. %s, sink=%s",
            request.sensor_kind.value,
            request.frequency_hz,
            request.start_time,
            request.end_time,
            runner.name,
        )

        # NotImplementedError: raised on Windows where signal handlers are unsupported.
        # RuntimeError: raised when running in a non-main thread (e.g. notebook env).
        loop = asyncio.get_running_loop()
        stop_event = stop_event or asyncio.Event()
        installed: list[signal.Signals] = []
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError, RuntimeError):
                loop.add_signal_handler(sig, stop_event.set)
                installed.append(sig)

        progress = LogProgress(request.expected_count) if self._report_progress else None
        try:
            await runner.start()
            result = await self._generator.generate(request, runner, progress=progress, stop_event=stop_event)
        finally:
            for sig in installed:
                with contextlib.suppress(NotImplementedError, RuntimeError):
                    loop.remove_signal_handler(sig)
            await runner.stop()
            if progress is not None:
                progress.close()

        return result
