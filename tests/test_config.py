from __future__ import annotations

import json
from pathlib import Path

import pytest

from file_sync.config import (
    DEFAULT_BASE_NAME,
    DEFAULT_LOG_NAME,
    MODE_APPEND,
    MODE_WHOLE,
    build_effective_config,
    parse_args,
    validate_paths,
)
from file_sync.errors import ConfigError


@pytest.fixture
def dirs(tmp_path: Path) -> tuple[Path, Path]:
    src = tmp_path / "src"
    dst = tmp_path / "dst"
    src.mkdir()
    dst.mkdir()
    return src, dst


def test_defaults(dirs) -> None:
    src, dst = dirs
    cfg = build_effective_config(parse_args(["--source_dir", str(src), "--target_dir", str(dst)]))

    assert cfg.sync.source_dir == src.resolve()
    assert cfg.sync.target_dir == dst.resolve()
    assert cfg.sync.key_prefixes == ()
    assert cfg.sync.base_name == DEFAULT_BASE_NAME
    assert cfg.sync.copy_expire == 3600
    assert cfg.sync.delete_expire == 3 * 3600
    assert cfg.sync.mode == MODE_APPEND
    assert cfg.log_name == DEFAULT_LOG_NAME
    assert cfg.interval == 1.0
    assert cfg.once is False


def test_prefixes_are_split(dirs) -> None:
    src, dst = dirs
    cfg = build_effective_config(
        parse_args(["--source_dir", str(src), "--target_dir", str(dst), "--file_key_pats", "app,web"])
    )

    assert cfg.sync.key_prefixes == ("app", "web")


def test_cli_overrides_config_file(dirs, tmp_path: Path) -> None:
    src, dst = dirs
    cfg_file = tmp_path / "file_sync.json"
    cfg_file.write_text(
        json.dumps(
            {
                "source_dir": str(src),
                "target_dir": str(dst),
                "mode": "whole",
                "interval": 5,
                "file_key_pats": ["svc"],
                "exclude": ["tmp/"],
            }
        )
    )

    cfg = build_effective_config(parse_args(["--config", str(cfg_file), "--interval", "2"]))

    assert cfg.sync.mode == MODE_WHOLE
    assert cfg.interval == 2.0
    assert cfg.sync.key_prefixes == ("svc",)
    assert cfg.sync.exclude == ("tmp/",)


@pytest.mark.parametrize(
    "argv",
    [
        [],
        ["--source_dir", "/definitely/not/here", "--target_dir", "/tmp"],
    ],
)
def test_invalid_dirs_raise(argv) -> None:
    with pytest.raises(ConfigError):
        build_effective_config(parse_args(argv))


def test_target_inside_source_rejected(dirs) -> None:
    src, _ = dirs
    nested = src / "mirror"
    nested.mkdir()

    with pytest.raises(ConfigError):
        validate_paths(str(src), str(nested))


def test_same_dir_rejected(dirs) -> None:
    src, _ = dirs
    with pytest.raises(ConfigError):
        validate_paths(str(src), str(src))


def test_negative_seconds_rejected(dirs) -> None:
    src, dst = dirs
    with pytest.raises(ConfigError):
        build_effective_config(
            parse_args(["--source_dir", str(src), "--target_dir", str(dst), "--delete_expire", "-1"])
        )


def test_unreadable_config_file(tmp_path: Path) -> None:
    bad = tmp_path / "bad.json"
    bad.write_text("{not json")

    with pytest.raises(ConfigError):
        build_effective_config(parse_args(["--config", str(bad)]))


def test_exclude_string_in_config_file_is_one_pattern(dirs, tmp_path: Path) -> None:
    src, dst = dirs
    cfg_file = tmp_path / "file_sync.json"
    cfg_file.write_text(json.dumps({"source_dir": str(src), "target_dir": str(dst), "exclude": "archive/"}))

    cfg = build_effective_config(parse_args(["--config", str(cfg_file)]))

    assert cfg.sync.exclude == ("archive/",)


def test_exclude_flags_are_collected(dirs) -> None:
    src, dst = dirs
    cfg = build_effective_config(
        parse_args(["--source_dir", str(src), "--target_dir", str(dst), "--exclude", "tmp/", "--exclude", "*.gz"])
    )

    assert cfg.sync.exclude == ("tmp/", "*.gz")
