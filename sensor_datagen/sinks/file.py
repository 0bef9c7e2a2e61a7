"""File sink - writes datapoints to JSON Lines or Parquet files, one file
per capture day.

Parquet support requires the ``file`` extra::

    pip install sensor-datagen[file]
"""

from __future__ import annotations

import io
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from sensor_datagen.models import Datapoint
from sensor_datagen.sinks.base import DEFAULT_BATCH_SIZE, Sink

__all__ = ["FileSink"]

logger = logging.getLogger("sensor_datagen.sinks.file")

_EXTENSIONS = {"json": "jsonl", "parquet": "parquet"}


class FileSink(Sink):
    """Write datapoints to local files, partitioned by ``capture_day``.

    Records arrive in tick order, so a new file is opened whenever the
    capture day changes: ``<prefix>_<YYYYMMDD>.<ext>``.

    Parameters:
        path: Output directory (created automatically).
        format: ``"json"`` (JSON Lines) or ``"parquet"``.
        prefix: File name prefix.
        batch_size / **kwargs: Forwarded to :class:`Sink`.
    """

    def __init__(
        self,
        *,
        path: str = "./output",
        format: str = "json",
        prefix: str = "datapoints",
        batch_size: int = DEFAULT_BATCH_SIZE,
        **kwargs: Any,
    ) -> None:
        super().__init__(batch_size=batch_size, **kwargs)
        self._format = format.lower()
        if self._format not in _EXTENSIONS:
            raise ValueError(f"Unknown file format: {format} (expected one of {sorted(_EXTENSIONS)})")
        self._dir = Path(path)
        self._prefix = prefix
        self._current_day: datetime | None = None
        self._current_file: io.TextIOWrapper | None = None
        self._parquet_writer: Any = None
        self.files_written: list[Path] = []

    async def connect(self) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        logger.info("FileSink writing %s to %s", self._format, self._dir)

    async def write(self, records: list[Datapoint]) -> None:
        # split the batch into runs of equal capture_day
        run: list[Datapoint] = []
        for rec in records:
            if run and rec.capture_day != run[0].capture_day:
                self._write_run(run)
                run = []
            run.append(rec)
        if run:
            self._write_run(run)

    async def flush(self) -> None:
        if self._current_file and not self._current_file.closed:
            self._current_file.flush()

    async def close(self) -> None:
        await self.flush()
        self._close_current_file()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _path_for(self, day: datetime) -> Path:
        return self._dir / f"{self._prefix}_{day:%Y%m%d}.{_EXTENSIONS[self._format]}"

    def _write_run(self, records: list[Datapoint]) -> None:
        day = records[0].capture_day
        if day != self._current_day:
            self._close_current_file()
            self._open_new_file(day)
        if self._format == "json":
            self._write_json(records)
        else:
            self._write_parquet(records)

    def _open_new_file(self, day: datetime) -> None:
        filepath = self._path_for(day)
        if self._format == "json":
            self._current_file = open(filepath, "a", encoding="utf-8")  # noqa: SIM115
        self._current_day = day
        self.files_written.append(filepath)
        logger.debug("Opened file: %s", filepath)

    def _close_current_file(self) -> None:
        if self._current_file and not self._current_file.closed:
            self._current_file.close()
        if self._parquet_writer is not None:
            self._parquet_writer.close()
        self._current_file = None
        self._parquet_writer = None
        self._current_day = None

    # --- JSON Lines ---

    def _write_json(self, records: list[Datapoint]) -> None:
        if self._current_file is None:
            return
        for rec in records:
            self._current_file.write(rec.to_json() + "\n")
        self._current_file.flush()

    # --- Parquet ---

    @staticmethod
    def _parquet_row(rec: Datapoint) -> dict[str, Any]:
        # nested payloads are stored as JSON text: Parquet has no empty struct type
        doc = rec.to_document()
        doc["data"] = json.dumps(doc["data"])
        doc["additional_parameters"] = json.dumps(doc["additional_parameters"])
        return doc

    def _write_parquet(self, records: list[Datapoint]) -> None:
        try:
            import pyarrow as pa
            import pyarrow.parquet as pq
        except ImportError as err:
            raise ImportError(
                "pyarrow is required for Parquet output.  Install with: pip install sensor-datagen[file]"
            ) from err

        table = pa.Table.from_pylist([self._parquet_row(rec) for rec in records])
        if self._parquet_writer is None:
            assert self._current_day is not None
            self._parquet_writer = pq.ParquetWriter(str(self._path_for(self._current_day)), table.schema)
        self._parquet_writer.write_table(table)
        logger.debug("Wrote %d records to %s", len(records), self._path_for(self._current_day))
