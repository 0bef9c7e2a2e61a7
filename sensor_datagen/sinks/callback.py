"""Callback sink - hands each batch of datapoints to a Python callable.

``Datagen`` wraps any plain callable it is given in this sink::

    Datagen(request, sink=lambda batch: print(len(batch))).run()
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable

from sensor_datagen.models import Datapoint
from sensor_datagen.sinks.base import DEFAULT_BATCH_SIZE, Sink

__all__ = ["CallbackSink"]


class CallbackSink(Sink):
    """Deliver batches to *callback*, a sync or ``async`` function.

    Sync callables run in the default executor so a slow consumer does
    not stall the event loop.  Whatever the callable raises is treated
    as a rejected batch and retried by the runner.
    """

    def __init__(
        self,
        callback: Callable[[list[Datapoint]], Any],
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        **kwargs,
    ) -> None:
        if not callable(callback):
            raise TypeError(f"callback must be callable, got {type(callback).__name__}")
        super().__init__(batch_size=batch_size, **kwargs)
        self._callback = callback
        self._awaitable = inspect.iscoroutinefunction(callback)
        self.batches_delivered = 0

    async def connect(self) -> None:
        pass

    async def write(self, records: list[Datapoint]) -> None:
        if self._awaitable:
            await self._callback(records)
        else:
            await asyncio.get_running_loop().run_in_executor(None, self._callback, records)
        self.batches_delivered += 1

    async def flush(self) -> None:
        pass

    async def close(self) -> None:
        pass
