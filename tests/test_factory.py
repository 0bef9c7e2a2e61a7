"""Tests for sensor_datagen.sinks.factory - building sinks from YAML sink sections."""

from __future__ import annotations

from pathlib import Path

import pytest

from sensor_datagen.errors import InvalidConfigError
from sensor_datagen.sinks.console import ConsoleSink
from sensor_datagen.sinks.factory import _SINK_REGISTRY, available_sinks, create_sink, register_sink
from sensor_datagen.sinks.file import FileSink

# -----------------------------------------------------------------------
# create_sink
# -----------------------------------------------------------------------


class TestCreateSink:
    def test_console_with_batching(self) -> None:
        sink = create_sink({"type": "console", "fmt": "json", "batch_size": 10})
        assert isinstance(sink, ConsoleSink)
        assert sink.sink_config.batch_size == 10

    def test_file_with_retry_count(self, tmp_path: Path) -> None:
        sink = create_sink({"type": "file", "path": str(tmp_path), "retry_count": 1})
        assert isinstance(sink, FileSink)
        assert sink.sink_config.retry_count == 1

    def test_caller_dict_left_untouched(self) -> None:
        section = {"type": "parquet", "path": "./out"}
        create_sink(section)
        assert section == {"type": "parquet", "path": "./out"}

    def test_type_is_normalised(self) -> None:
        assert isinstance(create_sink({"type": "  Console "}), ConsoleSink)

    def test_missing_type(self) -> None:
        with pytest.raises(InvalidConfigError, match="'type'") as exc_info:
            create_sink({"batch_size": 10})
        assert exc_info.value.field == "sink.type"

    def test_unknown_type_lists_choices(self) -> None:
        with pytest.raises(InvalidConfigError, match="mongodb"):
            create_sink({"type": "kafka"})

    def test_bad_batch_size_is_config_error(self) -> None:
        with pytest.raises(InvalidConfigError, match="batching"):
            create_sink({"type": "console", "batch_size": 0})

    def test_unexpected_option_is_config_error(self) -> None:
        with pytest.raises(InvalidConfigError, match="ConsoleSink"):
            create_sink({"type": "console", "topic": "readings"})

    def test_invalid_option_value_is_config_error(self) -> None:
        with pytest.raises(InvalidConfigError, match="FileSink"):
            create_sink({"type": "file", "format": "csv"})

    def test_config_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            create_sink({"type": "nope"})


# -----------------------------------------------------------------------
# Aliases
# -----------------------------------------------------------------------


class TestAliases:
    def test_parquet_alias_presets_format(self, tmp_path: Path) -> None:
        sink = create_sink({"type": "parquet", "path": str(tmp_path)})
        assert isinstance(sink, FileSink)
        assert sink._format == "parquet"

    def test_explicit_option_beats_preset(self, tmp_path: Path) -> None:
        sink = create_sink({"type": "parquet", "path": str(tmp_path), "format": "json"})
        assert sink._format == "json"

    def test_stdout_alias(self) -> None:
        assert isinstance(create_sink({"type": "stdout"}), ConsoleSink)


# -----------------------------------------------------------------------
# Registry
# -----------------------------------------------------------------------


class TestRegistry:
    def test_builtin_types_with_extras(self) -> None:
        extras = {name: entry.extra for name, entry in available_sinks()}
        assert extras == {"console": None, "callback": None, "file": "file", "mongo": "mongo"}

    def test_register_custom_type(self) -> None:
        register_sink("Audit-Log", "sensor_datagen.sinks.console", "ConsoleSink")
        try:
            assert "audit_log" in _SINK_REGISTRY
            assert isinstance(create_sink({"type": "audit-log"}), ConsoleSink)
        finally:
            del _SINK_REGISTRY["audit_log"]
