"""Shared test fixtures for file_sync."""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path

import pytest

from file_sync.config import SyncOptions
from file_sync.engine import SyncEngine


class FakeClock:
    def __init__(self, now: float):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def _reset_file_sync_logger():
    yield
    logger = logging.getLogger("file_sync")
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    d = tmp_path / "source"
    d.mkdir()
    return d


@pytest.fixture
def target_dir(tmp_path: Path) -> Path:
    d = tmp_path / "target"
    d.mkdir()
    return d


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(time.time())


@pytest.fixture
def make_file():
    """Write a file of the given size, optionally back-dating its mtime by age seconds."""

    def _make(path: Path, size: int, age: float = 0.0, fill: bytes = b"a") -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes((fill * size)[:size])
        if age:
            set_age(path, age)
        return path

    return _make


def set_age(path: Path, age: float, now: float | None = None) -> None:
    ts = (time.time() if now is None else now) - age
    os.utime(path, (ts, ts))


@pytest.fixture
def make_engine(source_dir: Path, target_dir: Path, clock: FakeClock):
    def _make(**overrides) -> SyncEngine:
        opts = SyncOptions(source_dir=source_dir, target_dir=target_dir, **overrides)
        return SyncEngine(opts, clock=clock)

    return _make


@pytest.fixture
def age_file():
    return set_age
