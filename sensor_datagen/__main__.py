"""CLI entry point for the sensor datapoint generator.

Usage::

    sensor-datagen generate --start-time "2024-01-01 00:00:00" -f 1
    sensor-datagen generate --start-time "2024-01-01 00:00:00" --end-time "2024-01-02 00:00:00" -f 10 --org-id my-org
    sensor-datagen generate --config datagen.yaml
    sensor-datagen list-sinks
    sensor-datagen init-config --output datagen.yaml
"""

from __future__ import annotations

import argparse
import logging
import sys
import textwrap

# ---------------------------------------------------------------------------
# Sample YAML config template for init-config
# ---------------------------------------------------------------------------
_SAMPLE_CONFIG = """\
# Sensor datagen configuration

generation:
  # Identity - leave empty to generate a random UUID
  org_id: ""
  loc_id: ""
  machine_id: ""
  part_id: ""
  start_time: "2024-01-01 00:00:00"   # required, UTC, YYYY-MM-DD HH:MM:SS
  # end_time: "2024-01-02 00:00:00"   # optional, defaults to now
  sensor_kind: generic-sensor         # generic-sensor or movement-sensor
  frequency_hz: 1                     # datapoints per second
  # seed: 42                          # fix the random source for reproducible data
  # string_length: 10000              # length of the free-text reading fields
  # log_level: INFO                   # DEBUG, INFO, WARNING, ERROR

# Where datapoints are written, with batching control.
sink:
  type: mongo
  uri: mongodb://localhost:27017/
  database: sensorData
  # collection: readings              # default: one collection per org_id
  batch_size: 2000
  retry_count: 3
  retry_delay_s: 1.0

  # type: file
  # path: ./output
  # format: json                      # json (JSON Lines) or parquet

  # type: console
  # fmt: text                         # text or json
"""

_KNOWN_COMMANDS = {"generate", "list-sinks", "init-config"}


# ======================================================================
# Main entry point
# ======================================================================


def main(argv: list[str] | None = None) -> None:
    epilog = textwrap.dedent("""\
        examples:
          sensor-datagen generate --start-time "2024-01-01 00:00:00" -f 1
          sensor-datagen generate --start-time "2024-01-01 00:00:00" -f 10 --sink file -o ./data
          sensor-datagen generate --config datagen.yaml
          sensor-datagen list-sinks
          sensor-datagen init-config --output datagen.yaml
    """)

    parser = argparse.ArgumentParser(
        prog="sensor-datagen",
        description="Generate synthetic sensor datapoints over a time window and bulk-insert them into a sink.",
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", title="commands")

    # -- generate ----------------------------------------------------------
    gen_parser = subparsers.add_parser(
        "generate",
        help="Generate datapoints for a time window and write them to a sink.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              sensor-datagen generate --start-time "2024-01-01 00:00:00" -f 1
              sensor-datagen generate --config datagen.yaml --end-time "2024-01-01 06:00:00"
        """),
    )
    gen_parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to YAML config file. Flags given on the command line override its values.",
    )
    gen_parser.add_argument("--org-id", "--org_id", dest="org_id", default=None, help="Organization id (default: random UUID).")
    gen_parser.add_argument("--loc-id", "--loc_id", dest="loc_id", default=None, help="Location id (default: random UUID).")
    gen_parser.add_argument(
        "--machine-id", "--machine_id", dest="machine_id", default=None, help="Machine id (default: random UUID)."
    )
    gen_parser.add_argument("--part-id", "--part_id", dest="part_id", default=None, help="Part id (default: random UUID).")
    gen_parser.add_argument(
        "--start-time",
        "--start_time",
        dest="start_time",
        default=None,
        help="Start of the window, format YYYY-MM-DD HH:MM:SS (UTC). Required.",
    )
    gen_parser.add_argument(
        "--end-time",
        "--end_time",
        dest="end_time",
        default=None,
        help="End of the window (inclusive), same format (default: now).",
    )
    gen_parser.add_argument(
        "--is-mov",
        "--is_mov",
        dest="is_mov",
        action="store_true",
        help="Generate movement-sensor records (metadata only, no reading payload).",
    )
    gen_parser.add_argument(
        "--frequency",
        "-f",
        dest="frequency_hz",
        type=int,
        default=None,
        help="Sampling frequency in Hz (positive integer). Required.",
    )
    gen_parser.add_argument("--seed", type=int, default=None, help="Seed for the random source.")
    gen_parser.add_argument(
        "--string-length",
        type=int,
        default=None,
        help="Length of the free-text reading fields (default: 10000).",
    )
    gen_parser.add_argument(
        "--batch-size",
        "-b",
        type=int,
        default=None,
        help="Records per batch handed to the sink (default: 2000).",
    )
    gen_parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO).",
    )
    # Sink selection (overrides the config file's sink section)
    gen_parser.add_argument(
        "--sink",
        "-s",
        choices=["mongo", "console", "file"],
        default=None,
        help="Sink to write to (default: mongo).",
    )
    gen_parser.add_argument("--mongo-uri", default=None, help="MongoDB URI (default: mongodb://localhost:27017/).")
    gen_parser.add_argument("--database", default=None, help="MongoDB database (default: sensorData).")
    gen_parser.add_argument("--collection", default=None, help="MongoDB collection (default: the org id).")
    gen_parser.add_argument(
        "--format",
        type=str,
        default="text",
        choices=["text", "json"],
        help="Console sink output format (default: text).",
    )
    gen_parser.add_argument(
        "--output-dir",
        "-o",
        type=str,
        default="./output",
        help="Output directory for the file sink (default: ./output).",
    )
    gen_parser.add_argument(
        "--output-format",
        type=str,
        default="json",
        choices=["json", "parquet"],
        help="File sink format (default: json).",
    )

    # -- list-sinks --------------------------------------------------------
    subparsers.add_parser(
        "list-sinks",
        help="List all available sink types and install instructions.",
    )

    # -- init-config -------------------------------------------------------
    init_parser = subparsers.add_parser(
        "init-config",
        help="Generate a sample YAML configuration file.",
    )
    init_parser.add_argument(
        "--output",
        "-o",
        type=str,
        default=None,
        help="Write config to this file instead of stdout.",
    )

    # A leading flag (e.g. --start-time) means the "generate" subcommand
    raw_args = argv if argv is not None else sys.argv[1:]
    if raw_args and raw_args[0] not in _KNOWN_COMMANDS and raw_args[0] not in ("-h", "--help"):
        raw_args = ["generate", *list(raw_args)]

    args = parser.parse_args(raw_args)

    if args.command is None:
        parser.print_help()
        return

    # -- Dispatch ----------------------------------------------------------
    if args.command == "generate":
        _cmd_generate(args)
    elif args.command == "list-sinks":
        _cmd_list_sinks()
    elif args.command == "init-config":
        _cmd_init_config(args.output)
    else:
        parser.print_help()


# ======================================================================
# Command implementations
# ======================================================================


def _cmd_generate(args: argparse.Namespace) -> None:
    """Resolve the request, build the sink and run the generator."""
    from sensor_datagen.errors import GenerationError, InvalidConfigError

    logging.basicConfig(
        level=getattr(logging, args.log_level or "INFO"),
        format="%(asctime)s %(name)-30s %(levelname)-7s %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        _run_generate(args)
    except (InvalidConfigError, FileNotFoundError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)
    except GenerationError as exc:
        print(f"Error: generation failed: {exc}", file=sys.stderr)
        sys.exit(1)
    except ImportError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


def _run_generate(args: argparse.Namespace) -> None:
    import random

    from sensor_datagen.config import DatagenYAMLConfig, load_yaml_config, resolve
    from sensor_datagen.datagen import Datagen
    from sensor_datagen.errors import InvalidConfigError
    from sensor_datagen.models import SensorKind

    cfg = load_yaml_config(args.config) if args.config else DatagenYAMLConfig()
    if args.log_level is None:
        logging.getLogger().setLevel(getattr(logging, cfg.log_level.upper(), logging.INFO))

    overrides = {
        key: getattr(args, key)
        for key in (
            "org_id",
            "loc_id",
            "machine_id",
            "part_id",
            "start_time",
            "end_time",
            "frequency_hz",
            "seed",
            "string_length",
        )
        if getattr(args, key) is not None
    }
    if args.is_mov:
        overrides["sensor_kind"] = SensorKind.MOVEMENT.value
    cfg = cfg.model_copy(update=overrides)

    if args.batch_size is not None and args.batch_size <= 0:
        raise InvalidConfigError(
            f"batch size must be a positive integer, got {args.batch_size}",
            field="batch_size",
            value=args.batch_size,
        )
    if cfg.string_length < 0:
        raise InvalidConfigError(
            f"string length must not be negative, got {cfg.string_length}",
            field="string_length",
            value=cfg.string_length,
        )

    rng = random.Random(cfg.seed)
    request = resolve(
        org_id=cfg.org_id,
        loc_id=cfg.loc_id,
        machine_id=cfg.machine_id,
        part_id=cfg.part_id,
        start_time=cfg.start_time,
        end_time=cfg.end_time,
        sensor_kind=cfg.sensor_kind,
        frequency_hz=cfg.frequency_hz,
        rng=rng,
    )

    sink = _build_sink(args, cfg.sink_config)
    datagen = Datagen(
        request,
        sink=sink,
        rng=rng,
        string_length=cfg.string_length,
        batch_size=args.batch_size,
    )
    result = datagen.run()
    print(
        f"Wrote {result.records_written} datapoints in {result.batches_written} batches"
        f"{' (cancelled)' if result.cancelled else ''} "
        f"for org={request.org_id} loc={request.loc_id} machine={request.machine_id} part={request.part_id}"
    )


def _build_sink(args: argparse.Namespace, sink_config: dict):
    """Build the sink from CLI flags, falling back to the config file's sink section."""
    if args.sink is None and sink_config:
        from sensor_datagen.sinks.factory import create_sink

        return create_sink(sink_config)

    sink_type = args.sink or "mongo"
    if sink_type == "console":
        from sensor_datagen.sinks.console import ConsoleSink

        return ConsoleSink(fmt=args.format)

    if sink_type == "file":
        from sensor_datagen.sinks.file import FileSink

        return FileSink(path=args.output_dir, format=args.output_format)

    from sensor_datagen.sinks.mongo import DEFAULT_DATABASE, DEFAULT_URI, MongoSink

    return MongoSink(
        uri=args.mongo_uri or DEFAULT_URI,
        database=args.database or DEFAULT_DATABASE,
        collection=args.collection,
    )


# -- list-sinks ------------------------------------------------------------


def _cmd_list_sinks() -> None:
    from sensor_datagen.sinks.factory import available_sinks

    print(f"\n{'Sink Type':<14} {'Class':<20} {'Install Extra'}")
    print("-" * 62)
    for name, entry in available_sinks():
        extra_str = "(built-in)" if entry.extra is None else f"pip install sensor-datagen[{entry.extra}]"
        print(f"{name:<14} {entry.class_name:<20} {extra_str}")
    print()


# -- init-config ------------------------------------------------------------


def _cmd_init_config(output_path: str | None) -> None:
    if output_path:
        from pathlib import Path

        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        Path(output_path).write_text(_SAMPLE_CONFIG)
        print(f"Sample config written to {output_path}")
    else:
        print(_SAMPLE_CONFIG)


# ======================================================================
if __name__ == "__main__":
    main()
