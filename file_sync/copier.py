from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, Optional

from .logs import get_logger, log_action

logger = get_logger("copier")

CHUNK_SIZE = 1024 * 1024


def _transfer(src: BinaryIO, dst: BinaryIO, length: Optional[int], chunk_size: Optional[int] = None) -> int:
    chunk_size = chunk_size or CHUNK_SIZE
    copied = 0
    while length is None or copied < length:
        want = chunk_size if length is None else min(chunk_size, length - copied)
        b = src.read(want)
        if not b:
            break
        dst.write(b)
        copied += len(b)
    return copied


def copy_file(
    source: Path,
    target: Path,
    offset: int = 0,
    length: Optional[int] = None,
    append: bool = True,
) -> bool:
    """
    Copy source into target starting at byte offset of the source.

    With append the target is opened for appending (created if absent),
    otherwise it is truncated first. length is the exact number of bytes to
    move; None means everything up to EOF. A short transfer counts as a
    failure and the bytes this call wrote are truncated away. Returns False
    on any failure, after logging it; the caller must not advance its
    recorded size in that case.
    """
    log_action(logger, "COPY", f"{source} -> {target} (offset={offset})", path=target)

    mode = "ab" if append else "wb"
    stage = "open source"
    try:
        with open(source, "rb") as src:
            stage = "open target"
            with open(target, mode) as dst:
                start = dst.tell()
                stage = f"seek({offset})"
                src.seek(offset)
                stage = "transfer"
                n = _transfer(src, dst, length)
                if length is not None and n != length:
                    # Source shrank since it was scanned; drop what this call wrote.
                    dst.truncate(start)
                    log_action(
                        logger,
                        "COPY_FAIL",
                        f"short transfer {source} -> {target} ({n} of {length} bytes)",
                        path=target,
                        level=logging.ERROR,
                    )
                    return False
    except (OSError, ValueError) as e:
        log_action(logger, "COPY_FAIL", f"{stage} failed {source} -> {target} | {e}", path=target, level=logging.ERROR)
        return False

    logger.info("Copy stats, offset: %d, n: %d", offset, n)
    return True
