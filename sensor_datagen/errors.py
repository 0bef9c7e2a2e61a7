"""Exception hierarchy for the datapoint generator.

``InvalidConfigError`` is raised before any generation work starts,
``GenerationError`` aborts a run in progress and ``SinkError`` wraps a
persistence failure reported by a sink.
"""

from __future__ import annotations

from datetime import datetime

__all__ = ["DatagenError", "GenerationError", "InvalidConfigError", "SinkError"]


class DatagenError(Exception):
    """Base class for every error raised by ``sensor_datagen``."""


class InvalidConfigError(DatagenError, ValueError):
    """Malformed or inconsistent generation input.

    Attributes:
        field: Name of the offending input (``"start_time"``, ``"frequency_hz"``, …).
        value: The raw value that was rejected.
    """

    def __init__(self, message: str, *, field: str | None = None, value: object = None) -> None:
        super().__init__(message)
        self.field = field
        self.value = value


class GenerationError(DatagenError):
    """Internal generation fault, e.g. a cursor that would never advance."""


class SinkError(GenerationError):
    """A sink rejected a batch.

    The original exception is chained as ``__cause__``.

    Attributes:
        sink_name: Class name of the failing sink.
        batch_size: Number of records in the rejected batch.
        first_time / last_time: Tick range covered by the rejected batch.
    """

    def __init__(
        self,
        sink_name: str,
        batch_size: int,
        first_time: datetime | None = None,
        last_time: datetime | None = None,
        reason: str = "",
    ) -> None:
        span = ""
        if first_time is not None and last_time is not None:
            span = f" covering {first_time.isoformat()} .. {last_time.isoformat()}"
        message = f"{sink_name} rejected a batch of {batch_size} records{span}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.sink_name = sink_name
        self.batch_size = batch_size
        self.first_time = first_time
        self.last_time = last_time
