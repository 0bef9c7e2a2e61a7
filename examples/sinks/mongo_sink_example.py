#!/usr/bin/env python3
"""MongoSink examples -- 3 cases demonstrating a day of generic-sensor data,
movement-sensor metadata into a fixed collection, and post-run verification.

Needs a MongoDB server on localhost:27017 (e.g. ``docker run -p 27017:27017 mongo``).

Requires the mongo extra::

    pip install sensor-datagen[mongo]

Usage::

    python examples/sinks/mongo_sink_example.py           # Case 1 (default)
    python examples/sinks/mongo_sink_example.py --case 2   # Movement sensor, fixed collection
    python examples/sinks/mongo_sink_example.py --case 3   # Count documents after run
"""

from __future__ import annotations

import argparse
import logging
import random


def _check_pymongo() -> bool:
    try:
        from sensor_datagen.sinks.mongo import MongoSink  # noqa: F401

        MongoSink(ping=False)
        return True
    except ImportError:
        print("MongoSink requires pymongo. Install with:")
        print("  pip install sensor-datagen[mongo]")
        return False


# ---------------------------------------------------------------------------
# Case 1: one hour at 1 Hz
# ---------------------------------------------------------------------------

def run_case_1() -> None:
    """One hour of generic-sensor data for a fixed identity.

    Knobs demonstrated:
      - org_id / machine_id -> fixed identity, other ids are random UUIDs
      - batch_size=1000     -> 1000 documents per insert_many
    """
    if not _check_pymongo():
        return

    from sensor_datagen import Datagen, resolve
    from sensor_datagen.sinks.mongo import MongoSink

    print("=== Case 1: one hour at 1 Hz ===\n")

    request = resolve(
        org_id="example-org",
        machine_id="example-robot",
        start_time="2024-01-01 00:00:00",
        end_time="2024-01-01 01:00:00",
        frequency_hz=1,
    )
    result = Datagen(request, sink=MongoSink(batch_size=1000), string_length=100).run()
    print(f"\n  Inserted {result.records_written} documents into sensorData.{request.org_id}")


# ---------------------------------------------------------------------------
# Case 2: movement sensor into a fixed collection
# ---------------------------------------------------------------------------

def run_case_2() -> None:
    """Movement-sensor records (metadata only) into ``sensorData.readings``.

    Knobs demonstrated:
      - sensor_kind="movement-sensor" -> empty reading payload
      - collection="readings"         -> one collection for every org
      - ordered=False                 -> server keeps inserting past a bad document
    """
    if not _check_pymongo():
        return

    from sensor_datagen import Datagen, resolve
    from sensor_datagen.sinks.mongo import MongoSink

    print("=== Case 2: movement sensor, fixed collection ===\n")

    request = resolve(
        start_time="2024-01-01 00:00:00",
        end_time="2024-01-01 00:10:00",
        frequency_hz=5,
        sensor_kind="movement-sensor",
        rng=random.Random(42),
    )
    result = Datagen(request, sink=MongoSink(collection="readings", ordered=False)).run()
    print(f"\n  Inserted {result.records_written} documents for org {request.org_id}")


# ---------------------------------------------------------------------------
# Case 3: verify after run
# ---------------------------------------------------------------------------

def run_case_3() -> None:
    """Generate a minute of data, then count it per capture day."""
    if not _check_pymongo():
        return

    from pymongo import MongoClient

    from sensor_datagen import Datagen, resolve
    from sensor_datagen.sinks.mongo import DEFAULT_DATABASE, DEFAULT_URI, MongoSink

    print("=== Case 3: count after run ===\n")

    request = resolve(
        start_time="2024-01-01 23:59:30",
        end_time="2024-01-02 00:00:30",
        frequency_hz=2,
    )
    Datagen(request, sink=MongoSink(), string_length=10).run()

    client = MongoClient(DEFAULT_URI)
    try:
        coll = client[DEFAULT_DATABASE][request.org_id]
        for row in coll.aggregate([{"$group": {"_id": "$capture_day", "n": {"$sum": 1}}}, {"$sort": {"_id": 1}}]):
            print(f"  {row['_id']:%Y-%m-%d}: {row['n']} documents")
    finally:
        client.close()


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

CASES = {1: run_case_1, 2: run_case_2, 3: run_case_3}

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="MongoSink examples")
    parser.add_argument("--case", type=int, default=1, choices=sorted(CASES), help="Case number to run")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)-30s %(levelname)-7s %(message)s")
    CASES[args.case]()
