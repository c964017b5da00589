"""Typed configuration loader for quadhash tables and the CLI."""

from __future__ import annotations

import os
import tomllib
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .contracts.error import BadInputError
from .core.hashers import PRIMARY_HASHES, resolve_primary_hash
from .core.table import (
    DEFAULT_INITIAL_CAPACITY,
    LOAD_FACTOR_MAX,
    MAX_PROBE_ATTEMPTS,
    MAX_TOMBSTONE_RATIO,
    QuadraticHashTable,
    TableConfig,
)

CONFIG_ENV_VAR = "QUADHASH_CONFIG"
# Hashers that only accept int keys; CLI keys are always text.
INT_ONLY_HASHERS = frozenset({"identity", "mix-int"})


@dataclass
class TablePolicy:
    initial_capacity: int = DEFAULT_INITIAL_CAPACITY
    load_factor_max: int = LOAD_FACTOR_MAX
    max_probe_attempts: int = MAX_PROBE_ATTEMPTS
    max_tombstone_ratio: float = MAX_TOMBSTONE_RATIO
    hasher: str = "poly-string"

    def validate(self) -> None:
        if self.initial_capacity < 1:
            raise BadInputError("table.initial_capacity must be >= 1")
        if not 1 <= self.load_factor_max <= 100:
            raise BadInputError("table.load_factor_max must be within [1, 100]")
        if self.max_probe_attempts < 1:
            raise BadInputError("table.max_probe_attempts must be >= 1")
        if not 0.0 <= self.max_tombstone_ratio <= 1.0:
            raise BadInputError("table.max_tombstone_ratio must be within [0, 1]")
        if self.hasher not in PRIMARY_HASHES:
            choices = ", ".join(sorted(PRIMARY_HASHES))
            raise BadInputError(f"table.hasher must be one of: {choices}")
        if self.hasher in INT_ONLY_HASHERS:
            raise BadInputError(
                f"table.hasher '{self.hasher}' only hashes int keys",
                hint="CSV, seed and demo keys are text; use poly-string, djb2 or builtin",
            )

    def table_config(self) -> TableConfig:
        return TableConfig(
            load_factor_max=self.load_factor_max,
            max_probe_attempts=self.max_probe_attempts,
            max_tombstone_ratio=self.max_tombstone_ratio,
        )


def build_table(policy: TablePolicy) -> QuadraticHashTable:
    return QuadraticHashTable(
        policy.initial_capacity,
        resolve_primary_hash(policy.hasher),
        policy.table_config(),
    )


@dataclass
class AppConfig:
    table: TablePolicy = field(default_factory=TablePolicy)

    @classmethod
    def load(cls, path: Path | None) -> AppConfig:
        if path is None:
            cfg = cls()
        else:
            try:
                data = tomllib.loads(path.read_text(encoding="utf-8"))
            except FileNotFoundError as exc:
                raise BadInputError(f"Config file not found: {path}") from exc
            except tomllib.TOMLDecodeError as exc:
                raise BadInputError(f"Invalid TOML: {exc}") from exc
            cfg = cls.from_dict(data)
        cfg.apply_env_overrides(os.environ)
        cfg.validate()
        return cfg

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AppConfig:
        table_data = data.get("table", {})
        if not isinstance(table_data, dict):
            raise BadInputError("[table] section must be a table")
        try:
            table = TablePolicy(**table_data)
        except TypeError as exc:
            raise BadInputError(f"Unknown key in [table]: {exc}") from exc
        return cls(table=table)

    def apply_env_overrides(self, env: Mapping[str, str]) -> None:
        mapping: dict[str, tuple[str, Callable[[str], Any]]] = {
            "QUADHASH_INITIAL_CAPACITY": ("initial_capacity", int),
            "QUADHASH_LOAD_FACTOR_MAX": ("load_factor_max", int),
            "QUADHASH_MAX_PROBE_ATTEMPTS": ("max_probe_attempts", int),
            "QUADHASH_MAX_TOMBSTONE_RATIO": ("max_tombstone_ratio", float),
            "QUADHASH_HASHER": ("hasher", str),
        }
        for key, (attr, caster) in mapping.items():
            raw_value = env.get(key)
            if raw_value is None:
                continue
            try:
                value = caster(raw_value)
            except ValueError as exc:
                raise BadInputError(f"Invalid env override {key}={raw_value!r}") from exc
            setattr(self.table, attr, value)

    def validate(self) -> None:
        self.table.validate()


DEFAULT_CONFIG = AppConfig()


def load_app_config(path: str | None) -> AppConfig:
    config_path = Path(path) if path else None
    return AppConfig.load(config_path)


__all__ = [
    "AppConfig",
    "CONFIG_ENV_VAR",
    "INT_ONLY_HASHERS",
    "DEFAULT_CONFIG",
    "TablePolicy",
    "build_table",
    "load_app_config",
]
