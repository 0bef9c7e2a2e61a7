"""Sink abstraction layer with per-sink batching and retry control.

Provides:
- ``Sink``       - abstract base class that every concrete sink implements.
- ``SinkConfig`` - per-sink batching / retry knobs.
- ``SinkRunner`` - internal helper that submits batches to the sink,
                   retries failed writes and wraps the final failure in
                   :class:`~sensor_datagen.errors.SinkError`.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

from sensor_datagen.errors import SinkError
from sensor_datagen.models import Datapoint

__all__ = ["DEFAULT_BATCH_SIZE", "Sink", "SinkConfig", "SinkRunner"]

logger = logging.getLogger("sensor_datagen.sinks")

DEFAULT_BATCH_SIZE = 2_000


# -----------------------------------------------------------------------
# Batching configuration
# -----------------------------------------------------------------------


class SinkConfig(BaseModel):
    """Per-sink batching knobs.

    Attributes:
        batch_size:
            Number of records the generator accumulates before handing a
            batch to ``write()``.  Bounds peak memory to one batch.
        retry_count:
            How many times a failed ``write()`` is attempted before the
            run is aborted with ``SinkError``.  ``1`` means no retry.
        retry_delay_s:
            Seconds to wait between attempts.
    """

    batch_size: int = Field(default=DEFAULT_BATCH_SIZE, gt=0)
    retry_count: int = Field(default=3, ge=1)
    retry_delay_s: float = Field(default=1.0, ge=0.0)


# -----------------------------------------------------------------------
# Sink ABC
# -----------------------------------------------------------------------


class Sink(ABC):
    """Abstract base class for all sinks.

    Concrete sinks must implement ``connect``, ``write``, ``flush`` and
    ``close``.  Batching parameters are accepted in ``__init__`` and
    stored in ``self.sink_config``.
    """

    def __init__(
        self,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        retry_count: int = 3,
        retry_delay_s: float = 1.0,
    ) -> None:
        self.sink_config = SinkConfig(
            batch_size=batch_size,
            retry_count=retry_count,
            retry_delay_s=retry_delay_s,
        )

    @abstractmethod
    async def connect(self) -> None:
        """Establish connection / open resources."""

    @abstractmethod
    async def write(self, records: list[Datapoint]) -> None:
        """Bulk-insert one batch of records.

        Raising any exception marks the batch as rejected.
        """

    @abstractmethod
    async def flush(self) -> None:
        """Flush any internal buffers the sink may hold."""

    @abstractmethod
    async def close(self) -> None:
        """Release resources / close connections."""


# -----------------------------------------------------------------------
# SinkRunner - batch submission with retries (one per run)
# -----------------------------------------------------------------------


class SinkRunner:
    """Submits batches to a ``Sink`` according to its ``SinkConfig``.

    A batch is either accepted (possibly after retries) or the runner
    raises ``SinkError``; accepted batches are never submitted again.
    """

    def __init__(self, sink: Sink) -> None:
        self.sink = sink
        self.cfg = sink.sink_config
        self.batches_written = 0
        self.records_written = 0
        self._started = False

    @property
    def name(self) -> str:
        return type(self.sink).__name__

    async def start(self) -> None:
        """Connect the sink."""
        await self.sink.connect()
        self._started = True
        logger.debug("%s connected", self.name)

    async def submit(self, batch: list[Datapoint]) -> None:
        """Write *batch*, retrying up to ``retry_count`` attempts.

        Raises:
            SinkError: once every attempt has failed.
        """
        if not batch:
            return

        for attempt in range(1, self.cfg.retry_count + 1):
            try:
                await self.sink.write(batch)
                break
            except Exception as exc:
                if attempt < self.cfg.retry_count:
                    logger.warning(
                        "%s write failed (attempt %d/%d): %s - retrying in %.1fs",
                        self.name,
                        attempt,
                        self.cfg.retry_count,
                        exc,
                        self.cfg.retry_delay_s,
                    )
                    await asyncio.sleep(self.cfg.retry_delay_s)
                else:
                    logger.error(
                        "%s write failed after %d attempts: %s",
                        self.name,
                        self.cfg.retry_count,
                        exc,
                    )
                    raise SinkError(
                        self.name,
                        len(batch),
                        batch[0].timestamp,
                        batch[-1].timestamp,
                        reason=str(exc),
                    ) from exc

        self.batches_written += 1
        self.records_written += len(batch)

    async def stop(self) -> None:
        """Flush and close the sink (only if it was started)."""
        if not self._started:
            return
        self._started = False
        try:
            await self.sink.flush()
        finally:
            await self.sink.close()
        logger.debug(
            "%s closed after %d batches / %d records",
            self.name,
            self.batches_written,
            self.records_written,
        )
