"""CLI entry point for peat.

One-shot subcommands print a result and exit; `tui` (the default when no
command is given) opens the interactive client.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timedelta, timezone
from typing import Any, Sequence

import yaml
from rich.console import Console

from peat import __version__, charts, tables
from peat.durations import duration_arg
from peat.io import logging_setup, settings
from peat.prometheus import Client, PrometheusError, Sample, SampleStream, new_client
from peat.promql import format_query
from peat.tui import app
from peat.tui.controller import Controller

logger = logging.getLogger(__name__)


# ─── Output formatting ───────────────────────────────────────────────────────


def vector_data(vector: Sequence[Sample]) -> list[dict[str, Any]]:
    return [
        {"metric": dict(s.metric), "value": s.value, "timestamp": int(s.timestamp)}
        for s in vector
    ]


def matrix_data(matrix: Sequence[SampleStream]) -> list[dict[str, Any]]:
    return [
        {
            "metric": dict(stream.metric),
            "values": [{"timestamp": int(p.timestamp), "value": p.value} for p in stream.values],
        }
        for stream in matrix
    ]


def envelope(data: list, warnings: Sequence[str], error: str | None) -> dict[str, Any]:
    return {"data": data, "warnings": list(warnings), "error": error}


def dump(payload: Any, output: str) -> str:
    if output == "yaml":
        return yaml.safe_dump(payload, sort_keys=False, default_flow_style=False).rstrip("\n")
    return json.dumps(payload, indent=2)


def _print_warnings(warnings: Sequence[str]) -> None:
    if warnings:
        print("Warnings: " + ", ".join(warnings), file=sys.stderr)


def _window(range_value: timedelta) -> tuple[datetime, datetime]:
    end = datetime.now(timezone.utc)
    return end - range_value, end


# ─── Commands ────────────────────────────────────────────────────────────────


def cmd_query(client: Client, args, console: Console) -> int:
    if args.output in ("json", "yaml"):
        try:
            warnings, vector = client.query(args.query, args.timeout)
        except PrometheusError as exc:
            print(dump(envelope([], [], str(exc)), args.output))
            return 1
        print(dump(envelope(vector_data(vector), warnings, None), args.output))
        return 0

    warnings, vector = client.query(args.query, args.timeout)
    _print_warnings(warnings)
    if not vector:
        print("No Data")
        return 0
    if args.output == "table":
        console.print(tables.vector_table(vector).render(paged=False))
    else:
        console.print(charts.barchart(vector, console.width))
    return 0


def cmd_query_range(client: Client, args, console: Console) -> int:
    start, end = _window(args.range)
    if args.output in ("json", "yaml"):
        try:
            matrix, warnings = client.query_range(args.query, start, end, args.step, args.timeout)
        except PrometheusError as exc:
            print(dump(envelope([], [], str(exc)), args.output))
            return 1
        print(dump(envelope(matrix_data(matrix), warnings, None), args.output))
        return 0

    matrix, warnings = client.query_range(args.query, start, end, args.step, args.timeout)
    _print_warnings(warnings)
    if not matrix:
        print("No Data")
        return 0
    chart, entries = charts.timeseries(matrix, console.width)
    console.print(chart)
    console.print(tables.legend_table(entries, set()).render(paged=False))
    return 0


def cmd_series(client: Client, args, console: Console) -> int:
    start, end = _window(args.range)
    series, warnings = client.series(args.match, start, end, args.limit, args.timeout)
    _print_warnings(warnings)
    if not series:
        print("No Data")
        return 0
    print(dump(series, args.output))
    return 0


def cmd_labels(client: Client, args, console: Console) -> int:
    start, end = _window(args.range)
    if args.name:
        values, warnings = client.label_values(args.name, start, end, args.timeout)
    else:
        values, warnings = client.label_names(start, end, args.timeout)
    _print_warnings(warnings)
    if not values:
        print("No Data")
        return 0
    print(dump(values, args.output))
    return 0


def cmd_tui(client: Client, args, console: Console) -> int:
    controller = Controller(
        client,
        range_value=args.range,
        step=args.step,
        limit=args.limit,
        timeout=args.timeout,
    )
    # The full-screen app owns the terminal; logs go to the file only.
    logging_setup.detach_stream_handler()
    try:
        app.run(controller)
    finally:
        logging_setup.attach_stream_handler()
    return 0


COMMANDS = {
    "query": cmd_query,
    "query-range": cmd_query_range,
    "series": cmd_series,
    "labels": cmd_labels,
    "tui": cmd_tui,
}


# ─── Parser ──────────────────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="peat",
        description="Query Prometheus from the terminal",
    )
    parser.add_argument("--version", action="version", version=f"peat {__version__}")
    parser.add_argument(
        "--timeout",
        type=duration_arg,
        default=None,
        help="Timeout for Prometheus queries (default: 60s)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: $PEAT_LOG_LEVEL or WARNING)",
    )

    # Shared by every command that talks to Prometheus.
    backend = argparse.ArgumentParser(add_help=False)
    backend.add_argument(
        "-p",
        "--prometheus-url",
        default=None,
        help=f"URL of the Prometheus endpoint (default: ${settings.URL_ENV})",
    )

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    tui = sub.add_parser("tui", parents=[backend], help="Interactive query client (default)")
    tui.add_argument("-r", "--range", type=duration_arg, default=None, help="Range for range/series/labels queries (default: 1h)")
    tui.add_argument("-s", "--step", type=duration_arg, default=None, help="Step for range queries (default: 1m)")
    tui.add_argument("--limit", type=int, default=None, help="Series limit (default: 100)")

    query = sub.add_parser("query", parents=[backend], help="Instant query")
    query.add_argument("query", help="PromQL expression")
    query.add_argument("-o", "--output", choices=["graph", "table", "json", "yaml"], default="graph")

    query_range = sub.add_parser("query-range", parents=[backend], help="Range query")
    query_range.add_argument("query", help="PromQL expression")
    query_range.add_argument("--range", type=duration_arg, default=None, help="Range to query (default: 1h)")
    query_range.add_argument("--step", type=duration_arg, default=None, help="Query resolution step (default: 1m)")
    query_range.add_argument("-o", "--output", choices=["graph", "json", "yaml"], default="graph")

    series = sub.add_parser("series", parents=[backend], help="Series matching a selector")
    series.add_argument("match", help="Series selector, e.g. up{job=\"node\"}")
    series.add_argument("--range", type=duration_arg, default=None, help="Range to query (default: 1h)")
    series.add_argument("--limit", type=int, default=None, help="Maximum number of series (default: 100)")
    series.add_argument("-o", "--output", choices=["json", "yaml"], default="json")

    labels = sub.add_parser("labels", parents=[backend], help="Label names, or the values of one label")
    labels.add_argument("name", nargs="?", default=None, help="Label whose values to list")
    labels.add_argument("--range", type=duration_arg, default=None, help="Range to query (default: 1h)")
    labels.add_argument("-o", "--output", choices=["json", "yaml"], default="json")

    fmt = sub.add_parser("format-query", help="Pretty-print a PromQL expression")
    fmt.add_argument("query", help="PromQL expression")

    return parser


def _resolve_args(args) -> None:
    """Fill unset flags from the environment, settings file and defaults."""
    resolved = settings.resolve(
        prometheus_url=getattr(args, "prometheus_url", None),
        timeout=args.timeout,
        range_value=getattr(args, "range", None),
        step=getattr(args, "step", None),
        limit=getattr(args, "limit", None),
    )
    args.prometheus_url = resolved.prometheus_url
    args.timeout = resolved.timeout
    args.range = resolved.range
    args.step = resolved.step
    args.limit = resolved.limit


_GLOBAL_VALUE_FLAGS = ("--timeout", "--log-level")


def with_default_command(argv: Sequence[str]) -> list[str]:
    """Insert `tui` where the command word belongs when none is given."""
    argv = list(argv)
    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg in _GLOBAL_VALUE_FLAGS:
            i += 2
        elif arg.startswith(tuple(f + "=" for f in _GLOBAL_VALUE_FLAGS)) or arg in ("-h", "--help", "--version"):
            i += 1
        else:
            break
    if i >= len(argv) or argv[i] not in (*COMMANDS, "format-query"):
        if not any(a in ("-h", "--help", "--version") for a in argv[:i]):
            argv.insert(i, "tui")
    return argv


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(with_default_command(sys.argv[1:] if argv is None else argv))

    logging_setup.configure(command=args.command, level=args.log_level)

    if args.command == "format-query":
        print(format_query(args.query))
        return 0

    _resolve_args(args)
    try:
        client = new_client(args.prometheus_url)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    logger.debug("running %s against %r", args.command, client)
    try:
        return COMMANDS[args.command](client, args, Console())
    except PrometheusError as exc:
        logger.error("%s failed: %s", args.command, exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
