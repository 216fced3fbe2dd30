"""
Sync engine: one cycle is survey -> copy -> delete.

    survey  rebuild the state map from what is actually in the target dir
    copy    walk the source dir, copy new or grown files under their identity key
    delete  walk the target dir, remove copies older than the delete window

Cycles run back to back on one thread; a stop event is only looked at
between cycles, so a cycle that has started always finishes.
"""

from __future__ import annotations

import enum
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Iterator, Optional

from .config import MODE_APPEND, SyncOptions
from .copier import copy_file
from .errors import DeleteError, ScanError
from .keys import key_for, matches_prefixes
from .logs import get_logger, log_action
from .scanner import Entry, IgnoreMatcher, walk
from .state import StateMap

logger = get_logger("engine")


class Decision(enum.Enum):
    NEW = "new"
    GROWN = "grown"
    UNCHANGED = "unchanged"
    ANOMALY = "anomaly"
    EXPIRED = "expired"
    IGNORED = "ignored"
    FILTERED = "filtered"


@dataclass
class CycleReport:
    refreshed: bool = False
    copied: int = 0
    copy_failed: int = 0
    deleted: int = 0
    anomalies: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors and not self.copy_failed


class SyncEngine:
    def __init__(
        self,
        options: SyncOptions,
        state: Optional[StateMap] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.options = options
        self.state = state if state is not None else StateMap(options.refresh_interval)
        self.clock = clock
        self.ignore = IgnoreMatcher(options.source_dir, options.exclude) if options.exclude else None

    # -------------------------
    # State
    # -------------------------

    def survey(self) -> Iterator[tuple[str, int]]:
        """(file name, size) for every target file carrying the target base name."""
        for entry in walk(self.options.target_dir):
            if entry.name.endswith(self.options.base_name):
                yield entry.name, entry.size

    def refresh_state(self, force: bool = False) -> bool:
        """
        Rebuild the state map from the target dir when a refresh is due.

        Returns True if the map was rebuilt. A failed survey clears the map
        and re-raises, so no decision is ever taken on a half-built view.
        """
        now = self.clock()
        if not force and not self.state.refresh_due(now):
            return False
        try:
            count = self.state.rebuild(self.survey(), now)
        except ScanError:
            self.state.clear()
            raise
        log_action(logger, "SURVEY", f"loaded {count} target file key(s) from {self.options.target_dir}")
        if logger.isEnabledFor(logging.DEBUG):
            for key, size in sorted(self.state.snapshot().items()):
                logger.debug("Load target file key, %s:%d", key, size)
        return True

    def reset_state(self) -> None:
        self.state.clear()

    # -------------------------
    # Copy
    # -------------------------

    def key_of(self, entry: Entry) -> str:
        return key_for(self.options.key_style, entry.parent_name, entry.inode, self.options.base_name)

    def decide_copy(self, entry: Entry, key: str, now: float) -> Decision:
        opts = self.options
        if not matches_prefixes(key, opts.key_prefixes):
            return Decision.FILTERED

        recorded = self.state.get(key)
        if recorded is not None:
            if entry.size > recorded:
                return Decision.GROWN
            if entry.size < recorded:
                return Decision.ANOMALY
            return Decision.UNCHANGED

        if entry.name != opts.base_name:
            return Decision.IGNORED
        if entry.mtime < now - opts.copy_expire:
            return Decision.EXPIRED
        return Decision.NEW

    def sync_entry(self, entry: Entry, now: float, report: CycleReport) -> Decision:
        key = self.key_of(entry)
        decision = self.decide_copy(entry, key, now)
        recorded = self.state.get(key)
        msg = f"source file({key}:{entry.size})"

        if decision is Decision.ANOMALY:
            report.anomalies += 1
            log_action(
                logger,
                "ANOMALY",
                f"Exists target file({key}:{recorded}), {msg}, size anormal",
                path=entry.path,
                level=logging.WARNING,
            )
            return decision

        if decision is Decision.GROWN:
            logger.info("Exists target file(%s:%d), %s, size changed", key, recorded, msg)
        elif decision is Decision.NEW:
            logger.info("New %s", msg)
        else:
            if decision is Decision.EXPIRED:
                report.skipped += 1
                logger.debug("Skip expired %s, mtime %s", msg, time.ctime(entry.mtime))
            return decision

        offset = 0
        if decision is Decision.GROWN and self.options.mode == MODE_APPEND:
            offset = recorded

        target = self.options.target_dir / key
        if copy_file(entry.path, target, offset=offset, length=entry.size - offset, append=offset > 0):
            self.state.record(key, entry.size)
            report.copied += 1
        else:
            report.copy_failed += 1
        return decision

    def copy_phase(self, report: CycleReport) -> None:
        now = self.clock()
        for entry in walk(self.options.source_dir, ignore=self.ignore):
            self.sync_entry(entry, now, report)

    # -------------------------
    # Delete
    # -------------------------

    def expire_entry(self, entry: Entry, now: float, report: CycleReport) -> bool:
        if not entry.mtime < now - self.options.delete_expire:
            return False
        if not entry.name.endswith(self.options.base_name):
            return False

        try:
            entry.path.unlink()
        except OSError as e:
            raise DeleteError(entry.path, e) from e
        self.state.evict(entry.name)
        report.deleted += 1
        log_action(
            logger,
            "DELETE",
            f"file({entry.name}): {entry.path}, {time.ctime(entry.mtime)}({self.options.delete_expire:g}s)",
            path=entry.path,
        )
        return True

    def delete_phase(self, report: CycleReport) -> None:
        now = self.clock()
        for entry in walk(self.options.target_dir, strict=True):
            self.expire_entry(entry, now, report)

    # -------------------------
    # Cycle
    # -------------------------

    def run_cycle(self) -> CycleReport:
        report = CycleReport()
        logger.info("Run sync...")

        try:
            report.refreshed = self.refresh_state()
        except ScanError as e:
            return self._abort(report, "Get target file failed", e)

        try:
            self.copy_phase(report)
        except ScanError as e:
            return self._abort(report, "Copy source file failed", e)

        try:
            self.delete_phase(report)
        except (ScanError, DeleteError) as e:
            return self._abort(report, "Delete target file failed", e)

        logger.info(
            "Run end, copied=%d deleted=%d anomalies=%d", report.copied, report.deleted, report.anomalies
        )
        return report

    def _abort(self, report: CycleReport, what: str, error: Exception) -> CycleReport:
        text = f"{what}, {error}"
        report.errors.append(text)
        log_action(logger, "CYCLE_FAIL", text, level=logging.ERROR)
        return report


def run_loop(engine: SyncEngine, stop_event: threading.Event, interval: float, once: bool = False) -> int:
    """
    Run cycles until stop_event is set. The event is checked at the top of
    each iteration only; the sleep between cycles wakes early on stop.
    Returns the number of cycles run.
    """
    cycles = 0
    while not stop_event.is_set():
        try:
            engine.run_cycle()
        except Exception:
            logger.exception("Cycle crashed, continuing")
        cycles += 1
        if once:
            break
        stop_event.wait(max(0.0, interval))
    logger.info("Shutdown ...")
    return cycles
