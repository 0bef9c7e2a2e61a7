"""Console sink - prints datapoints to stdout.

Useful for debugging, demos, and verifying the pipeline is working.
"""

from __future__ import annotations

import sys
from typing import IO

from sensor_datagen.models import Datapoint
from sensor_datagen.sinks.base import DEFAULT_BATCH_SIZE, Sink

__all__ = ["ConsoleSink"]


class ConsoleSink(Sink):
    """Writes datapoints to the console (stdout by default).

    Parameters:
        fmt: Output format - ``"text"`` (one summary line per record) or
             ``"json"`` (the full storage document, one per line).
        stream: Writable file-like object (defaults to ``sys.stdout``).
        batch_size / **kwargs: Forwarded to :class:`Sink`.
    """

    def __init__(
        self,
        *,
        fmt: str = "text",
        stream: IO[str] | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        **kwargs,
    ) -> None:
        super().__init__(batch_size=batch_size, **kwargs)
        if fmt not in ("text", "json"):
            raise ValueError(f"Unknown console format '{fmt}' (expected 'text' or 'json')")
        self._fmt = fmt
        self._stream = stream or sys.stdout

    async def connect(self) -> None:
        """No-op - stdout is always available."""

    async def write(self, records: list[Datapoint]) -> None:
        if self._fmt == "json":
            for rec in records:
                self._stream.write(rec.to_json() + "\n")
        else:
            for rec in records:
                self._stream.write(
                    f"[{rec.org_id}/{rec.machine_id}] "
                    f"{rec.timestamp.isoformat()} "
                    f"{rec.component_name} ({rec.component_type}"
                    f"{', ' + rec.method_name if rec.method_name else ''})\n"
                )
        self._stream.flush()

    async def flush(self) -> None:
        self._stream.flush()

    async def close(self) -> None:
        """No-op - we do not own stdout."""
