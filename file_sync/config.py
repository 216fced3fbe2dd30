from __future__ import annotations

import argparse
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from . import __version__
from .errors import ConfigError
from .keys import KEY_STYLE_INODE, KEY_STYLES, parse_prefixes

MODE_APPEND = "append"
MODE_WHOLE = "whole"
MODES = (MODE_APPEND, MODE_WHOLE)

DEFAULT_LOG_NAME = "run.log"
DEFAULT_LOG_DIR = "logs"
DEFAULT_BASE_NAME = "application.log"
DEFAULT_COPY_EXPIRE = 60 * 60.0
DEFAULT_DELETE_EXPIRE = 3 * 60 * 60.0
DEFAULT_INTERVAL = 1.0


@dataclass(frozen=True)
class SyncOptions:
    source_dir: Path
    target_dir: Path
    key_prefixes: tuple[str, ...] = ()
    base_name: str = DEFAULT_BASE_NAME
    copy_expire: float = DEFAULT_COPY_EXPIRE
    delete_expire: float = DEFAULT_DELETE_EXPIRE
    refresh_interval: float = 0.0
    mode: str = MODE_APPEND
    key_style: str = KEY_STYLE_INODE
    exclude: tuple[str, ...] = ()


@dataclass(frozen=True)
class AppConfig:
    sync: SyncOptions
    log_dir: Path
    log_name: str
    interval: float
    verbose: bool = False
    once: bool = False


# -------------------------
# CLI
# -------------------------

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="file-sync",
        description="Mirror growing log files from a source tree into a flat target directory.",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("--config", type=str, default=None, help="JSON file with default settings.")
    p.add_argument("--source_dir", type=str, default=None, help="Directory tree to scan (source).")
    p.add_argument("--target_dir", type=str, default=None, help="Flat directory receiving copies.")
    p.add_argument("--file_key_pats", type=str, default=None, help="Comma-separated identity key prefixes to sync.")
    p.add_argument("--log_name", type=str, default=None, help=f"Log file name (default {DEFAULT_LOG_NAME}).")
    p.add_argument("--log_dir", type=str, default=None, help=f"Directory for log files (default {DEFAULT_LOG_DIR}).")
    p.add_argument("--base_name", type=str, default=None, help=f"Target file name (default {DEFAULT_BASE_NAME}).")
    p.add_argument("--copy_expire", type=float, default=None, help="Max age in seconds of a first-seen file to copy.")
    p.add_argument("--delete_expire", type=float, default=None, help="Age in seconds after which copies are deleted.")
    p.add_argument("--interval", type=float, default=None, help="Seconds between cycles.")
    p.add_argument("--refresh_interval", type=float, default=None, help="Seconds between target surveys (0 = every cycle).")
    p.add_argument("--mode", choices=MODES, default=None, help="append: resume at recorded offset; whole: rewrite.")
    p.add_argument("--key_style", choices=KEY_STYLES, default=None, help="inode: parent@inode@name; name: plain name.")
    p.add_argument("--exclude", action="append", default=None, help="gitignore-style pattern to skip in the source tree.")
    p.add_argument("--verbose", action="store_true", default=None, help="Debug logging.")
    p.add_argument("--once", action="store_true", default=False, help="Run a single cycle and exit.")
    return p


def parse_args(argv: list[str]) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def load_config_file(path: Optional[Path]) -> dict:
    if path is None:
        return {}
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ConfigError(f"Could not read config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must hold a JSON object")
    return data


def _pick(args: argparse.Namespace, saved: dict, name: str, default: Any) -> Any:
    value = getattr(args, name, None)
    if value is not None:
        return value
    return saved.get(name, default)


def _prefixes(raw: Any) -> tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, str):
        return parse_prefixes(raw)
    return tuple(str(p) for p in raw if str(p))


def _patterns(raw: Any) -> tuple[str, ...]:
    if not raw:
        return ()
    if isinstance(raw, str):
        return (raw,)
    return tuple(str(p) for p in raw if str(p))


def _seconds(name: str, raw: Any) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be a number of seconds, got {raw!r}") from e
    if value < 0:
        raise ConfigError(f"{name} must not be negative, got {value:g}")
    return value


def _is_subpath(child: Path, parent: Path) -> bool:
    try:
        child.relative_to(parent)
        return True
    except ValueError:
        return False


def validate_paths(source: Optional[str], target: Optional[str]) -> tuple[Path, Path]:
    if not source or not target:
        raise ConfigError("Please set valid dir: --source_dir and --target_dir are required")

    source_dir = Path(source).expanduser().resolve()
    target_dir = Path(target).expanduser().resolve()

    for path in (source_dir, target_dir):
        if not path.exists():
            raise ConfigError(f"Path not exist, {path}")
        if not path.is_dir():
            raise ConfigError(f"Path is not a directory, {path}")
    if source_dir == target_dir:
        raise ConfigError("Source and target directories must be different.")
    if _is_subpath(target_dir, source_dir):
        raise ConfigError("Target directory must NOT be inside source directory (copies would be rescanned).")
    if _is_subpath(source_dir, target_dir):
        raise ConfigError("Source directory must NOT be inside target directory (expiry would delete sources).")

    return source_dir, target_dir


def build_effective_config(args: argparse.Namespace) -> AppConfig:
    """Merge CLI flags over the optional config file over built-in defaults."""
    saved = load_config_file(Path(args.config) if args.config else None)

    source_dir, target_dir = validate_paths(
        _pick(args, saved, "source_dir", None), _pick(args, saved, "target_dir", None)
    )

    mode = _pick(args, saved, "mode", MODE_APPEND)
    if mode not in MODES:
        raise ConfigError(f"mode must be one of {MODES}, got {mode!r}")
    key_style = _pick(args, saved, "key_style", KEY_STYLE_INODE)
    if key_style not in KEY_STYLES:
        raise ConfigError(f"key_style must be one of {KEY_STYLES}, got {key_style!r}")

    base_name = _pick(args, saved, "base_name", DEFAULT_BASE_NAME)
    if not base_name:
        raise ConfigError("base_name must not be empty")

    sync = SyncOptions(
        source_dir=source_dir,
        target_dir=target_dir,
        key_prefixes=_prefixes(_pick(args, saved, "file_key_pats", None)),
        base_name=base_name,
        copy_expire=_seconds("copy_expire", _pick(args, saved, "copy_expire", DEFAULT_COPY_EXPIRE)),
        delete_expire=_seconds("delete_expire", _pick(args, saved, "delete_expire", DEFAULT_DELETE_EXPIRE)),
        refresh_interval=_seconds("refresh_interval", _pick(args, saved, "refresh_interval", 0.0)),
        mode=mode,
        key_style=key_style,
        exclude=_patterns(_pick(args, saved, "exclude", ())),
    )

    return AppConfig(
        sync=sync,
        log_dir=Path(_pick(args, saved, "log_dir", DEFAULT_LOG_DIR)).expanduser(),
        log_name=_pick(args, saved, "log_name", None) or DEFAULT_LOG_NAME,
        interval=_seconds("interval", _pick(args, saved, "interval", DEFAULT_INTERVAL)),
        verbose=bool(_pick(args, saved, "verbose", False)),
        once=bool(args.once),
    )
