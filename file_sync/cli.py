from __future__ import annotations

import signal
import sys
import threading
from datetime import datetime
from typing import Optional

from . import __version__
from .config import AppConfig, build_effective_config, build_parser
from .engine import SyncEngine, run_loop
from .errors import ConfigError
from .logs import setup_logger


def print_banner(cfg: AppConfig) -> None:
    s = cfg.sync
    print(f"================ Parse args(Version:{__version__}) {datetime.now():%Y-%m-%d %H:%M:%S} ================")
    print("source_dir =", s.source_dir)
    print("target_dir =", s.target_dir)
    print("file_key_pats =", list(s.key_prefixes))
    print("log_name =", cfg.log_name)
    print(f"base_name = {s.base_name}, mode = {s.mode}, key_style = {s.key_style}")
    print(f"copy_expire = {s.copy_expire:g}s, delete_expire = {s.delete_expire:g}s, interval = {cfg.interval:g}s")


def install_signal_handlers(stop_event: threading.Event, logger) -> None:
    def _handle(signum, frame):
        logger.info("Shutdown by %s, finishing current cycle", signal.Signals(signum).name)
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, _handle)


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    try:
        cfg = build_effective_config(args)
    except ConfigError as e:
        print(e, file=sys.stderr)
        parser.print_usage(sys.stderr)
        return 1

    print_banner(cfg)
    print("File-Sync start...")

    logger = setup_logger(cfg.log_dir, cfg.log_name, verbose=cfg.verbose)
    logger.info("File-Sync start... (version %s)", __version__)
    logger.info("Source: %s", cfg.sync.source_dir)
    logger.info("Target: %s", cfg.sync.target_dir)

    stop_event = threading.Event()
    install_signal_handlers(stop_event, logger)

    engine = SyncEngine(cfg.sync)
    run_loop(engine, stop_event, cfg.interval, once=cfg.once)

    logger.info("File-Sync end")
    return 0
