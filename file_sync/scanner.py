from __future__ import annotations

import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Optional

from pathspec import PathSpec

from .errors import ScanError
from .logs import get_logger, log_action

logger = get_logger("scanner")


@dataclass(frozen=True)
class Entry:
    path: Path
    name: str
    parent_name: str
    inode: int
    size: int
    mtime: float
    is_dir: bool = False

    @classmethod
    def from_stat(cls, path: Path, st: os.stat_result) -> "Entry":
        return cls(
            path=path,
            name=path.name,
            parent_name=path.parent.name,
            inode=st.st_ino,
            size=st.st_size,
            mtime=st.st_mtime,
            is_dir=stat.S_ISDIR(st.st_mode),
        )


class IgnoreMatcher:
    """gitignore-style exclusion relative to a scan root."""

    def __init__(self, root: Path, patterns: Iterable[str]):
        self.root = Path(root)
        self.patterns = tuple(patterns)
        self.spec = PathSpec.from_lines("gitwildmatch", self.patterns)

    def __bool__(self) -> bool:
        return bool(self.patterns)

    def is_ignored(self, path: Path, is_dir: bool = False) -> bool:
        try:
            rel = Path(path).relative_to(self.root)
        except ValueError:
            return True
        rel_posix = rel.as_posix()
        if is_dir and not rel_posix.endswith("/"):
            rel_posix += "/"
        return self.spec.match_file(rel_posix)


def walk(root: Path, strict: bool = False, ignore: Optional[IgnoreMatcher] = None) -> Iterator[Entry]:
    """
    Yield every non-directory entry under root, depth-first and pre-order,
    siblings in name order. Symlinks are reported, never followed.

    A root that cannot be stat'ed or a directory that cannot be listed
    raises ScanError. A single entry whose stat fails is skipped with a
    warning, unless strict is set, in which case it raises too.

    The sequence is lazy and cannot be restarted part way through.
    """
    root = Path(root)
    try:
        st = root.lstat()
    except OSError as e:
        raise ScanError(root, e) from e

    if not stat.S_ISDIR(st.st_mode):
        yield Entry.from_stat(root, st)
        return

    yield from _walk_dir(root, strict, ignore)


def _walk_dir(directory: Path, strict: bool, ignore: Optional[IgnoreMatcher]) -> Iterator[Entry]:
    try:
        with os.scandir(directory) as it:
            children = sorted(it, key=lambda d: d.name)
    except OSError as e:
        raise ScanError(directory, e) from e

    for child in children:
        path = Path(child.path)
        try:
            st = child.stat(follow_symlinks=False)
        except OSError as e:
            if strict:
                raise ScanError(path, e) from e
            log_action(logger, "SKIP", f"stat failed {path} | {e}", path=path, level=logging.WARNING)
            continue

        is_dir = stat.S_ISDIR(st.st_mode)
        if ignore and ignore.is_ignored(path, is_dir=is_dir):
            continue

        if is_dir:
            yield from _walk_dir(path, strict, ignore)
        else:
            yield Entry.from_stat(path, st)
