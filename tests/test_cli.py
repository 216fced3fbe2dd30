from __future__ import annotations

import logging
import signal
import threading
from pathlib import Path

import pytest

from file_sync import cli
from file_sync.engine import CycleReport, run_loop


def test_invalid_args_print_usage_and_fail(capsys) -> None:
    assert cli.main(["--source_dir", "/definitely/not/here", "--target_dir", "/tmp"]) == 1

    err = capsys.readouterr().err
    assert "Path not exist" in err
    assert "usage:" in err


def test_once_runs_a_single_cycle(tmp_path: Path, monkeypatch) -> None:
    src = tmp_path / "src"
    dst = tmp_path / "dst"
    (src / "app").mkdir(parents=True)
    dst.mkdir()
    (src / "app" / "application.log").write_bytes(b"x" * 10)
    monkeypatch.setattr(cli, "install_signal_handlers", lambda *a: None)

    rc = cli.main(
        [
            "--source_dir", str(src),
            "--target_dir", str(dst),
            "--log_dir", str(tmp_path / "logs"),
            "--log_name", "test.log",
            "--once",
        ]
    )

    assert rc == 0
    assert [p.name.split("@")[0] for p in dst.iterdir()] == ["app"]
    assert (tmp_path / "logs" / "test.log").exists()


def test_signal_handler_sets_stop_event() -> None:
    stop = threading.Event()
    saved = {sig: signal.getsignal(sig) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        cli.install_signal_handlers(stop, logging.getLogger("file_sync"))
        handler = signal.getsignal(signal.SIGTERM)
        handler(signal.SIGTERM, None)
    finally:
        for sig, h in saved.items():
            signal.signal(sig, h)

    assert stop.is_set()


class _ScriptedEngine:
    def __init__(self, stop: threading.Event, stop_after: int, fail_first: bool = False):
        self.stop = stop
        self.stop_after = stop_after
        self.fail_first = fail_first
        self.calls = 0

    def run_cycle(self) -> CycleReport:
        self.calls += 1
        if self.calls >= self.stop_after:
            self.stop.set()
        if self.fail_first and self.calls == 1:
            raise RuntimeError("boom")
        return CycleReport()


def test_loop_stops_only_between_cycles() -> None:
    stop = threading.Event()
    engine = _ScriptedEngine(stop, stop_after=3)

    assert run_loop(engine, stop, interval=0) == 3
    assert engine.calls == 3


def test_loop_survives_crashing_cycle() -> None:
    stop = threading.Event()
    engine = _ScriptedEngine(stop, stop_after=2, fail_first=True)

    assert run_loop(engine, stop, interval=0) == 2


def test_preset_stop_runs_nothing() -> None:
    stop = threading.Event()
    stop.set()
    engine = _ScriptedEngine(stop, stop_after=1)

    assert run_loop(engine, stop, interval=0) == 0
    assert engine.calls == 0


@pytest.mark.parametrize("once", [True])
def test_once_flag(once: bool) -> None:
    stop = threading.Event()
    engine = _ScriptedEngine(stop, stop_after=99)

    assert run_loop(engine, stop, interval=0, once=once) == 1
