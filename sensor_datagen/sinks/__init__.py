"""Destinations for generated datapoint batches.

``ConsoleSink`` and ``CallbackSink`` have no extra dependencies.
``FileSink`` (Parquet needs pyarrow) and ``MongoSink`` (needs pymongo)
are resolved on first attribute access, so ``import sensor_datagen.sinks``
never pulls in an optional extra.
"""

from __future__ import annotations

import importlib
from typing import Any

from sensor_datagen.sinks.base import Sink, SinkConfig, SinkRunner
from sensor_datagen.sinks.callback import CallbackSink
from sensor_datagen.sinks.console import ConsoleSink

__all__ = [
    "CallbackSink",
    "ConsoleSink",
    "Sink",
    "SinkConfig",
    "SinkRunner",
]

_OPTIONAL_SINKS = {
    "FileSink": "sensor_datagen.sinks.file",
    "MongoSink": "sensor_datagen.sinks.mongo",
}


def __getattr__(name: str) -> Any:
    module_path = _OPTIONAL_SINKS.get(name)
    if module_path is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    return getattr(importlib.import_module(module_path), name)
