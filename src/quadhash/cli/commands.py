"""CLI command registration and handlers for quadhash."""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from quadhash.analysis import format_trace_lines, trace_get, trace_insert
from quadhash.contracts.error import BadInputError, Exit, IOErrorEnvelope
from quadhash.core.table import QuadraticHashTable


@dataclass(frozen=True)
class CLIContext:
    """Runtime hooks supplied by the top-level CLI entrypoint."""

    emit_success: Callable[..., None]
    build_table: Callable[[], QuadraticHashTable]
    run_demo: Callable[[], Dict[str, Any]]
    generate_csv: Callable[..., int]
    run_csv: Callable[..., Dict[str, Any]]
    validate_stats_file: Callable[[str], List[str]]
    logger: logging.Logger
    guard: Callable[[Callable[[argparse.Namespace], int]], Callable[[argparse.Namespace], int]]


def register_subcommands(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    ctx: CLIContext,
) -> Dict[str, Callable[[argparse.Namespace], int]]:
    """Define CLI subcommands and return their handlers."""

    handlers: Dict[str, Callable[[argparse.Namespace], int]] = {}

    def _register(
        name: str,
        help_text: Optional[str],
        configure: Callable[[argparse.ArgumentParser], Callable[[argparse.Namespace], int]],
    ) -> None:
        parser = subparsers.add_parser(name, help=help_text)
        handler = configure(parser)
        handlers[name] = ctx.guard(handler)

    _register(
        "demo",
        "Run the fruit walkthrough and print the table and its statistics.",
        lambda parser: _configure_demo(parser, ctx),
    )
    _register(
        "generate-csv",
        "Generate an insert/remove churn workload CSV.",
        lambda parser: _configure_generate(parser, ctx),
    )
    _register(
        "run-csv",
        "Replay a CSV workload against a fresh table and report statistics.",
        lambda parser: _configure_run_csv(parser, ctx),
    )
    _register(
        "probe-visualize",
        "Trace the probe path of a GET or INSERT (text/JSON).",
        lambda parser: _configure_probe_visualize(parser, ctx),
    )
    _register(
        "validate-stats",
        "Validate a statistics JSON file against the table.stats.v1 schema.",
        lambda parser: _configure_validate_stats(parser, ctx),
    )
    return handlers


def _configure_demo(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    del parser

    def handler(args: argparse.Namespace) -> int:
        del args
        result = ctx.run_demo()
        text = "\n".join(
            [
                f"Table: {result['dump']}",
                f"Size: {result['size']} | Capacity: {result['capacity']}",
                f"Collision rate: {result['collision_rate']:.4f}",
            ]
        )
        ctx.emit_success("demo", text=text, data=result)
        return int(Exit.OK)

    return handler


def _configure_generate(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument("--outfile", required=True)
    parser.add_argument("--ops", type=int, default=100_000)
    parser.add_argument("--key-space", type=int, default=3_000)
    parser.add_argument("--read-ratio", type=float, default=0.0)
    parser.add_argument("--seed", type=int, default=1337)

    def handler(args: argparse.Namespace) -> int:
        if args.ops < 0:
            raise BadInputError("--ops must be >= 0")
        if args.key_space <= 0:
            raise BadInputError("--key-space must be > 0")
        if not 0.0 <= args.read_ratio <= 1.0:
            raise BadInputError("--read-ratio must be within [0, 1]")
        try:
            live = ctx.generate_csv(
                args.outfile,
                args.ops,
                key_space=args.key_space,
                read_ratio=args.read_ratio,
                seed=args.seed,
            )
        except OSError as exc:
            raise IOErrorEnvelope(str(exc)) from exc
        ctx.logger.info("Wrote workload CSV: %s", args.outfile)
        ctx.emit_success(
            "generate-csv",
            data={
                "outfile": args.outfile,
                "ops": args.ops,
                "key_space": args.key_space,
                "read_ratio": args.read_ratio,
                "seed": args.seed,
                "live_keys": live,
            },
        )
        return int(Exit.OK)

    return handler


def _configure_run_csv(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument("--csv", required=True)
    parser.add_argument(
        "--json-summary-out", type=str, default=None, help="Write final statistics to JSON"
    )
    parser.add_argument(
        "--dump", action="store_true", help="Include the final table listing in the output"
    )
    parser.add_argument(
        "--skip-violations",
        action="store_true",
        help="Count duplicate inserts and missing-key operations instead of aborting",
    )
    parser.add_argument(
        "--csv-max-rows",
        type=int,
        default=5_000_000,
        help="Abort if CSV rows exceed this count (0 disables check)",
    )

    def handler(args: argparse.Namespace) -> int:
        result = ctx.run_csv(
            args.csv,
            json_summary_out=args.json_summary_out,
            dump=args.dump,
            skip_violations=args.skip_violations,
            csv_max_rows=args.csv_max_rows,
        )
        text = (
            f"Replayed {sum(result['ops'].values())} ops: size={result['size']} "
            f"capacity={result['capacity']} collision_rate={result['collision_rate']}"
        )
        if args.dump:
            text += "\n" + result["dump"]
        ctx.emit_success("run-csv", text=text, data=result)
        return int(Exit.OK)

    return handler


def _configure_probe_visualize(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument(
        "--operation",
        choices=["get", "insert"],
        required=True,
        help="Operation to trace",
    )
    parser.add_argument("--key", required=True, help="Key to probe")
    parser.add_argument("--value", help="Value for INSERT operations")
    parser.add_argument(
        "--seed",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Seed the table with entries before tracing (repeatable)",
    )
    parser.add_argument(
        "--export-json",
        help="Write the trace payload to a JSON file (indent=2)",
    )

    def handler(args: argparse.Namespace) -> int:
        if args.operation == "insert" and args.value is None:
            raise BadInputError("INSERT operation requires --value")

        table = ctx.build_table()
        _seed_table(table, args.seed)

        if args.operation == "get":
            trace = trace_get(table, args.key)
        else:
            trace = trace_insert(table, args.key, args.value)

        export_path: Optional[Path] = None
        if args.export_json:
            export_path = Path(args.export_json).expanduser().resolve()
            try:
                export_path.parent.mkdir(parents=True, exist_ok=True)
                export_path.write_text(json.dumps(trace, indent=2), encoding="utf-8")
            except OSError as exc:
                raise IOErrorEnvelope(str(exc)) from exc

        text_output = "\n".join(
            format_trace_lines(trace, seeds=args.seed, export_path=export_path)
        )
        payload: Dict[str, Any] = {"trace": trace}
        if args.seed:
            payload["seed_entries"] = list(args.seed)
        if export_path is not None:
            payload["export_json"] = str(export_path)
        ctx.emit_success("probe-visualize", text=text_output, data=payload)
        return int(Exit.OK)

    return handler


def _configure_validate_stats(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument("path", help="Statistics JSON written by run-csv --json-summary-out")

    def handler(args: argparse.Namespace) -> int:
        problems = ctx.validate_stats_file(args.path)
        if problems:
            raise BadInputError(
                f"{args.path}: {len(problems)} schema violation(s): " + "; ".join(problems)
            )
        ctx.emit_success(
            "validate-stats", text=f"{args.path}: valid", data={"path": args.path, "valid": True}
        )
        return int(Exit.OK)

    return handler


def _seed_table(table: QuadraticHashTable, seeds: List[str]) -> None:
    for entry in seeds:
        if "=" not in entry:
            raise BadInputError(f"Seed entry '{entry}' must be KEY=VALUE")
        key, value = entry.split("=", 1)
        table.insert(key, value)


__all__ = ["CLIContext", "register_subcommands"]
