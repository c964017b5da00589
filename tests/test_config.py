from __future__ import annotations

from pathlib import Path

import pytest

from quadhash.config import AppConfig, TablePolicy, build_table, load_app_config
from quadhash.contracts.error import BadInputError
from quadhash.core.hashers import djb2_string_hash, poly_string_hash


def test_default_config_validates() -> None:
    cfg = load_app_config(None)
    assert cfg.table.initial_capacity == 100
    assert cfg.table.load_factor_max == 50
    assert cfg.table.max_probe_attempts == 10_000
    assert cfg.table.max_tombstone_ratio == pytest.approx(0.25)
    assert cfg.table.hasher == "poly-string"


def test_build_table_applies_policy() -> None:
    table = build_table(TablePolicy())
    assert table.capacity == 101
    assert table.strategy.primary_hash is poly_string_hash
    assert table.cfg.load_factor_max == 50


def test_load_from_toml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    cfg_path = tmp_path / "config.toml"
    cfg_path.write_text(
        """
[table]
initial_capacity = 20
load_factor_max = 40
max_probe_attempts = 500
max_tombstone_ratio = 0.2
hasher = "djb2"
""",
        encoding="utf-8",
    )
    cfg = load_app_config(str(cfg_path))
    policy = cfg.table
    assert policy.initial_capacity == 20
    assert policy.load_factor_max == 40
    assert policy.max_probe_attempts == 500
    assert policy.max_tombstone_ratio == pytest.approx(0.2)
    table = build_table(policy)
    assert table.capacity == 23
    assert table.strategy.primary_hash is djb2_string_hash

    # env override takes precedence
    monkeypatch.setenv("QUADHASH_INITIAL_CAPACITY", "50")
    monkeypatch.setenv("QUADHASH_MAX_TOMBSTONE_RATIO", "0.1")
    monkeypatch.setenv("QUADHASH_HASHER", "builtin")
    cfg_env = AppConfig.load(cfg_path)
    assert cfg_env.table.initial_capacity == 50
    assert cfg_env.table.max_tombstone_ratio == pytest.approx(0.1)
    assert cfg_env.table.hasher == "builtin"
    assert cfg_env.table.load_factor_max == 40


@pytest.mark.parametrize(
    "body",
    [
        "[table]\ninitial_capacity = 0\n",
        "[table]\nload_factor_max = 150\n",
        "[table]\nmax_probe_attempts = 0\n",
        "[table]\nmax_tombstone_ratio = 1.5\n",
        "[table]\nhasher = \"sha256\"\n",
        "[table]\nhasher = \"identity\"\n",
        "[table]\nhasher = \"mix-int\"\n",
        "[table]\nbuckets = 4\n",
        "table = 3\n",
        "[table\n",
    ],
)
def test_invalid_files_raise(tmp_path: Path, body: str) -> None:
    bad_path = tmp_path / "bad.toml"
    bad_path.write_text(body, encoding="utf-8")
    with pytest.raises(BadInputError):
        load_app_config(str(bad_path))


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(BadInputError, match="not found"):
        load_app_config(str(tmp_path / "absent.toml"))


def test_malformed_env_override_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("QUADHASH_LOAD_FACTOR_MAX", "half")
    with pytest.raises(BadInputError, match="QUADHASH_LOAD_FACTOR_MAX"):
        load_app_config(None)


def test_env_override_is_validated(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("QUADHASH_MAX_PROBE_ATTEMPTS", "-1")
    with pytest.raises(BadInputError):
        load_app_config(None)


def test_int_only_hasher_override_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("QUADHASH_HASHER", "identity")
    with pytest.raises(BadInputError, match="int keys") as info:
        load_app_config(None)
    assert info.value.hint is not None and "poly-string" in info.value.hint
