#!/usr/bin/env python3
"""FileSink examples -- JSON Lines and Parquet output, one file per capture day.

Directly runnable (no external services required).  Parquet needs the
file extra::

    pip install sensor-datagen[file]

Usage::

    python examples/sinks/file_sink_example.py           # Case 1 (JSON Lines)
    python examples/sinks/file_sink_example.py --case 2   # Parquet
"""

from __future__ import annotations

import argparse
import logging
import random


def run_case_1() -> None:
    """Two minutes across midnight as JSON Lines (two files)."""
    from sensor_datagen import Datagen, resolve
    from sensor_datagen.sinks.file import FileSink

    print("=== Case 1: JSON Lines ===\n")

    request = resolve(
        start_time="2024-01-01 23:59:00",
        end_time="2024-01-02 00:01:00",
        frequency_hz=1,
        rng=random.Random(7),
    )
    sink = FileSink(path="output/jsonl", format="json")
    Datagen(request, sink=sink, rng=random.Random(7), string_length=32, batch_size=50).run()
    for path in sink.files_written:
        print(f"  wrote {path}")


def run_case_2() -> None:
    """Ten minutes at 10 Hz as Parquet."""
    from sensor_datagen import Datagen, resolve
    from sensor_datagen.sinks.file import FileSink

    print("=== Case 2: Parquet ===\n")

    request = resolve(
        start_time="2024-01-01 00:00:00",
        end_time="2024-01-01 00:10:00",
        frequency_hz=10,
    )
    sink = FileSink(path="output/parquet", format="parquet")
    result = Datagen(request, sink=sink, string_length=16).run()
    print(f"  wrote {result.records_written} rows to {sink.files_written[0]}")


CASES = {1: run_case_1, 2: run_case_2}

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="FileSink examples")
    parser.add_argument("--case", type=int, default=1, choices=sorted(CASES), help="Case number to run")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)-30s %(levelname)-7s %(message)s")
    CASES[args.case]()
