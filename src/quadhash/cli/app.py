"""
app.py

Command-line front end for the quadratic-probing hash table:
- demo walkthrough (insert, lookup, remove, re-insert)
- churn workload generator and CSV replay with collision statistics
- probe-path visualisation for GET/INSERT
- schema validation for statistics JSON written by run-csv
"""

from __future__ import annotations

import argparse
import contextlib
import csv
import json
import logging
import os
import random
import sys
from collections.abc import Iterator
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from quadhash.analysis import collect_probe_histogram
from quadhash.cli.commands import CLIContext, register_subcommands
from quadhash.config import CONFIG_ENV_VAR, AppConfig, build_table as build_policy_table
from quadhash.config import load_app_config
from quadhash.contracts.error import (
    BadInputError,
    IOErrorEnvelope,
    PolicyError,
    TableContractError,
    guard_cli,
)
from quadhash.core.table import QuadraticHashTable
from quadhash.metrics import collect_stats, stats_payload, validate_stats_payload

# --------------------------------------------------------------------
# Logging
# --------------------------------------------------------------------
logger = logging.getLogger("quadhash")
logger.setLevel(logging.INFO)
logger.propagate = False

DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"
DEFAULT_LOG_MAX_BYTES = 5_000_000
DEFAULT_LOG_BACKUP_COUNT = 5
DEFAULT_CSV_MAX_ROWS = 5_000_000

CSV_OPS = ("insert", "get", "remove", "contains", "clear")
CSV_HINT = "Expected header 'op,key,value' with op in: " + ", ".join(CSV_OPS)


class JsonFormatter(logging.Formatter):
    """Render log records as JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record, DEFAULT_LOG_DATEFMT),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = self.formatStack(record.stack_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(
    use_json: bool = False,
    log_file: str | None = None,
    *,
    max_bytes: int = DEFAULT_LOG_MAX_BYTES,
    backup_count: int = DEFAULT_LOG_BACKUP_COUNT,
) -> None:
    """Configure console (and optional rotating file) logging."""

    formatter: logging.Formatter
    if use_json:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(DEFAULT_LOG_FORMAT, DEFAULT_LOG_DATEFMT)

    for handler in list(logger.handlers):
        with contextlib.suppress(Exception):
            handler.close()
        logger.removeHandler(handler)

    stream = logging.StreamHandler()
    stream.setFormatter(formatter)
    logger.addHandler(stream)

    if log_file:
        handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count)
        handler.setFormatter(formatter)
        logger.addHandler(handler)


configure_logging()

APP_CONFIG: AppConfig = AppConfig()
OUTPUT_JSON: bool = False


def set_app_config(cfg: AppConfig) -> None:
    global APP_CONFIG
    APP_CONFIG = cfg


def emit_success(
    command: str, *, text: str | None = None, data: dict[str, Any] | None = None
) -> None:
    if OUTPUT_JSON:
        payload: dict[str, Any] = {"ok": True, "command": command}
        if data:
            payload.update(data)
        if text is not None and "result" not in payload:
            payload["result"] = text
        print(json.dumps(payload, ensure_ascii=False))
    else:
        if text is not None:
            print(text)


def build_table() -> QuadraticHashTable:
    table = build_policy_table(APP_CONFIG.table)
    logger.debug(
        "Built table (capacity=%d, hasher=%s)", table.capacity, APP_CONFIG.table.hasher
    )
    return table


# --------------------------------------------------------------------
# Ops runner / generator / replay
# --------------------------------------------------------------------
def run_op(table: QuadraticHashTable, op: str, key: str | None, value: str | None) -> str | None:
    if op == "insert":
        if key is None or value is None:
            raise ValueError("INSERT operations require both key and value")
        table.insert(key, value)
    elif op == "get":
        if key is None:
            raise ValueError("GET operations require a key")
        return str(table.get(key))
    elif op == "remove":
        if key is None:
            raise ValueError("REMOVE operations require a key")
        table.remove(key)
    elif op == "contains":
        if key is None:
            raise ValueError("CONTAINS operations require a key")
        return "1" if table.contains(key) else "0"
    elif op == "clear":
        table.clear()
    else:
        raise ValueError(f"unknown op: {op}")
    return "OK"


def run_demo() -> dict[str, Any]:
    table = build_table()
    fruits = [("pomme", 15.3), ("orange", 12.4), ("fraise", 16.4), ("banane", 7.23)]
    for key, value in fruits:
        table.insert(key, value)
    steps: list[dict[str, Any]] = [{"step": "insert", "size": len(table)}]
    table.remove("pomme")
    steps.append({"step": "remove pomme", "size": len(table), "contains": table.contains("pomme")})
    table.insert("pomme", 1.0)
    steps.append({"step": "re-insert pomme", "size": len(table), "value": table.get("pomme")})
    return {
        "dump": table.dump(),
        "size": len(table),
        "capacity": table.capacity,
        "collision_rate": table.collision_rate(),
        "steps": steps,
    }


def generate_csv(
    out_path: str,
    ops: int,
    *,
    key_space: int = 3_000,
    read_ratio: float = 0.0,
    seed: int = 1337,
) -> int:
    """Write a churn workload that toggles key presence; returns the live key count.

    Every row is valid against a fresh table: inserts only target absent keys
    and removes only present ones.
    """

    rng = random.Random(seed)
    live: set[str] = set()
    with open(out_path, "w", newline="", encoding="utf-8") as fh:
        writer = csv.writer(fh)
        writer.writerow(["op", "key", "value"])
        for _ in range(ops):
            key = f"k{rng.randrange(key_space)}"
            if read_ratio and rng.random() < read_ratio:
                writer.writerow(["get" if key in live else "contains", key, ""])
            elif key in live:
                writer.writerow(["remove", key, ""])
                live.discard(key)
            else:
                writer.writerow(["insert", key, rng.randrange(25)])
                live.add(key)
    return len(live)


def _load_ops(path: str, csv_max_rows: int) -> Iterator[tuple[int, str, str | None, str | None]]:
    row_counter = 0
    try:
        fh = open(path, newline="", encoding="utf-8")
    except FileNotFoundError as exc:
        raise IOErrorEnvelope(str(exc)) from exc
    with fh:
        reader = csv.DictReader(fh)
        header = {fn.strip() for fn in reader.fieldnames or []}
        missing = {"op", "key", "value"} - header
        if missing:
            raise BadInputError(
                f"Missing header columns: {', '.join(sorted(missing))}", hint=CSV_HINT
            )
        for row in reader:
            row_counter += 1
            if csv_max_rows and csv_max_rows > 0 and row_counter > csv_max_rows:
                raise BadInputError(
                    f"CSV row limit exceeded ({row_counter} > {csv_max_rows})", hint=CSV_HINT
                )
            line_no = reader.line_num
            op = (row.get("op") or "").strip().lower()
            key = (row.get("key") or "").strip() or None
            value = row.get("value")
            if op not in CSV_OPS:
                raise BadInputError(f"Unknown op '{op}' at line {line_no}", hint=CSV_HINT)
            if op != "clear" and key is None:
                raise BadInputError(f"Missing key at line {line_no}", hint=CSV_HINT)
            if op == "insert":
                if value is None or value.strip() == "":
                    raise BadInputError(f"INSERT missing value at line {line_no}", hint=CSV_HINT)
            else:
                value = None
            yield line_no, op, key, value


def run_csv(
    path: str,
    *,
    json_summary_out: str | None = None,
    dump: bool = False,
    skip_violations: bool = False,
    csv_max_rows: int = DEFAULT_CSV_MAX_ROWS,
) -> dict[str, Any]:
    """Replay a CSV workload against a fresh table and return its statistics payload."""

    table = build_table()
    ops = {op: 0 for op in CSV_OPS}
    violations = 0
    for line_no, op, key, value in _load_ops(path, csv_max_rows):
        try:
            run_op(table, op, key, value)
        except TableContractError as exc:
            if not skip_violations:
                raise type(exc)(
                    f"line {line_no}: {exc}",
                    hint="Pass --skip-violations to count contract violations instead",
                ) from exc
            violations += 1
            logger.warning("Skipping %s at line %d: %s", op, line_no, exc)
            continue
        ops[op] += 1

    histogram = collect_probe_histogram(table)
    summary = stats_payload(
        collect_stats(table, histogram), probe_histogram=histogram, ops=ops
    )
    summary["csv"] = path
    summary["violations"] = violations
    if dump:
        summary["dump"] = table.dump()
    logger.info(
        "Replay finished: size=%d capacity=%d rehashes=%d compactions=%d",
        summary["size"],
        summary["capacity"],
        summary["rehashes"],
        summary["compactions"],
    )

    if json_summary_out:
        out_path = Path(json_summary_out)
        try:
            out_path.parent.mkdir(parents=True, exist_ok=True)
            out_path.write_text(json.dumps(summary, indent=2), encoding="utf-8")
        except OSError as exc:
            raise IOErrorEnvelope(str(exc)) from exc
        logger.info("Wrote JSON summary: %s", out_path)
    return summary


def validate_stats_file(path: str) -> list[str]:
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise IOErrorEnvelope(str(exc)) from exc
    except json.JSONDecodeError as exc:
        raise BadInputError(f"{path} is not valid JSON: {exc}") from exc
    return validate_stats_payload(payload)


def main(argv: list[str]) -> int:
    p = argparse.ArgumentParser(
        description=(
            "Quadratic-probing hash table toolkit: demo, workload generator, CSV replay "
            "with collision statistics, probe visualisation and stats validation."
        )
    )
    p.add_argument("--log-json", action="store_true", help="Emit logs in JSON format")
    p.add_argument(
        "--log-file",
        default=None,
        help="Optional log file path (rotates at 5MB, keeps 5 backups by default)",
    )
    p.add_argument(
        "--log-max-bytes",
        type=int,
        default=DEFAULT_LOG_MAX_BYTES,
        help="Max bytes per log file before rotation (default: %(default)s)",
    )
    p.add_argument(
        "--log-backup-count",
        type=int,
        default=DEFAULT_LOG_BACKUP_COUNT,
        help="Number of rotated log files to keep (default: %(default)s)",
    )
    p.add_argument(
        "--json", action="store_true", help="Emit machine-readable success output to stdout"
    )
    p.add_argument(
        "--config",
        default=None,
        help=f"Path to TOML config file (env: {CONFIG_ENV_VAR})",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    ctx = CLIContext(
        emit_success=emit_success,
        build_table=build_table,
        run_demo=run_demo,
        generate_csv=generate_csv,
        run_csv=run_csv,
        validate_stats_file=validate_stats_file,
        logger=logger,
        guard=guard_cli,
    )

    handlers = register_subcommands(sub, ctx)

    args = p.parse_args(argv)

    global OUTPUT_JSON
    OUTPUT_JSON = bool(args.json)

    configure_logging(
        args.log_json,
        args.log_file,
        max_bytes=args.log_max_bytes,
        backup_count=args.log_backup_count,
    )

    cfg_path = args.config or os.getenv(CONFIG_ENV_VAR)
    load_config = guard_cli(load_app_config)
    set_app_config(load_config(cfg_path))
    if cfg_path:
        logger.info("Loaded config from %s", cfg_path)

    handler = handlers.get(args.cmd)
    if handler is None:
        raise PolicyError(f"Unknown command {args.cmd}")
    return handler(args)


def console_main() -> None:
    """Entry point for console_scripts."""

    try:
        raise SystemExit(main(sys.argv[1:]))
    except SystemExit:
        raise
    except Exception as e:  # noqa: BLE001
        logger.exception("Fatal error: %s", e)
        raise SystemExit(2) from e


if __name__ == "__main__":
    console_main()
