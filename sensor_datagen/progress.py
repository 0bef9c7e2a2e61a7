"""Log-based progress reporting for long generation runs."""

from __future__ import annotations

import logging
import time

__all__ = ["LogProgress"]

logger = logging.getLogger("sensor_datagen.progress")


class LogProgress:
    """Counts per-record increments and logs every *step_percent* of *total*.

    *total* is the approximate ``expected_count`` of the request, so the
    final count may exceed it; percentages are capped at 100.  With a total
    of zero, a line is logged every *fallback_every* records instead.
    """

    def __init__(
        self,
        total: int,
        *,
        step_percent: int = 10,
        fallback_every: int = 10_000,
        log: logging.Logger | None = None,
    ) -> None:
        self.total = max(0, total)
        self.count = 0
        self._step = max(1, step_percent)
        self._fallback_every = max(1, fallback_every)
        self._next_percent = self._step
        self._log = log or logger
        self._started = time.monotonic()

    def __call__(self, n: int = 1) -> None:
        self.count += n
        if self.total == 0:
            if self.count % self._fallback_every == 0:
                self._log.info("Generated %d datapoints", self.count)
            return
        percent = min(100, self.count * 100 // self.total)
        if percent >= self._next_percent:
            self._log.info(
                "Generated %d/%d datapoints (%d%%, %.1fs elapsed)",
                self.count,
                self.total,
                percent,
                time.monotonic() - self._started,
            )
            self._next_percent = (percent // self._step + 1) * self._step

    def close(self) -> None:
        self._log.info(
            "Progress: %d datapoints generated in %.1fs (estimated %d)",
            self.count,
            time.monotonic() - self._started,
            self.total,
        )
