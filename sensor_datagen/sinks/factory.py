"""Build sinks from the ``sink:`` section of a YAML config.

Each registered type maps to a sink class and the pip extra it needs::

    sink:
      type: mongo          # or mongodb
      uri: mongodb://localhost:27017/
      batch_size: 2000

A few aliases preselect options, e.g. ``type: parquet`` is a file sink
with ``format: parquet``.  Batching keys are validated before the sink
is constructed so a bad ``batch_size`` is reported as a config error.
"""

from __future__ import annotations

import importlib
import logging
from typing import Any, NamedTuple

from pydantic import ValidationError

from sensor_datagen.errors import InvalidConfigError
from sensor_datagen.sinks.base import Sink, SinkConfig

__all__ = ["SinkType", "available_sinks", "create_sink", "register_sink"]

logger = logging.getLogger("sensor_datagen.sinks.factory")


class SinkType(NamedTuple):
    module_path: str
    class_name: str
    extra: str | None = None


_SINK_REGISTRY: dict[str, SinkType] = {
    "console": SinkType("sensor_datagen.sinks.console", "ConsoleSink"),
    "callback": SinkType("sensor_datagen.sinks.callback", "CallbackSink"),
    "file": SinkType("sensor_datagen.sinks.file", "FileSink", "file"),
    "mongo": SinkType("sensor_datagen.sinks.mongo", "MongoSink", "mongo"),
}

# alias -> (registered type, preset options)
_ALIASES: dict[str, tuple[str, dict[str, Any]]] = {
    "mongodb": ("mongo", {}),
    "stdout": ("console", {}),
    "jsonl": ("file", {"format": "json"}),
    "parquet": ("file", {"format": "parquet"}),
}

_BATCHING_KEYS = tuple(SinkConfig.model_fields)


def _normalise(name: str) -> str:
    return name.lower().strip().replace("-", "_")


def available_sinks() -> list[tuple[str, SinkType]]:
    """Registered sink types in registration order."""
    return list(_SINK_REGISTRY.items())


def create_sink(config: dict[str, Any]) -> Sink:
    """Construct (but do not connect) the sink described by *config*.

    *config* is not modified.  Every key except ``type`` is passed to the
    sink constructor.

    Raises:
        InvalidConfigError: for a missing or unknown ``type``, invalid
            batching values or an option the sink does not accept.
        ImportError: if the sink's optional extra is not installed.
    """
    options = dict(config)
    raw_type = options.pop("type", None)
    if not raw_type:
        raise InvalidConfigError("sink config must include a 'type' key", field="sink.type")

    sink_type = _normalise(str(raw_type))
    if sink_type in _ALIASES:
        sink_type, preset = _ALIASES[sink_type]
        options = {**preset, **options}
    if sink_type not in _SINK_REGISTRY:
        known = sorted([*_SINK_REGISTRY, *_ALIASES])
        raise InvalidConfigError(
            f"Unknown sink type {raw_type!r}, available: {', '.join(known)}",
            field="sink.type",
            value=raw_type,
        )

    batching = {key: options[key] for key in _BATCHING_KEYS if key in options}
    try:
        SinkConfig(**batching)
    except ValidationError as exc:
        raise InvalidConfigError(f"invalid {sink_type} sink batching options: {exc}", field="sink") from exc

    entry = _SINK_REGISTRY[sink_type]
    cls = getattr(importlib.import_module(entry.module_path), entry.class_name)
    try:
        sink = cls(**options)
    except (TypeError, ValueError) as exc:
        raise InvalidConfigError(f"invalid options for {entry.class_name}: {exc}", field="sink") from exc

    logger.debug("Created %s from config keys %s", entry.class_name, sorted(options))
    return sink


def register_sink(name: str, module_path: str, class_name: str, extra: str | None = None) -> None:
    """Make a custom :class:`Sink` subclass available as ``type: <name>``."""
    _SINK_REGISTRY[_normalise(name)] = SinkType(module_path, class_name, extra)
