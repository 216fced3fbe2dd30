from __future__ import annotations

from typing import Iterable

KEY_SEP = "@"

KEY_STYLE_INODE = "inode"
KEY_STYLE_NAME = "name"
KEY_STYLES = (KEY_STYLE_INODE, KEY_STYLE_NAME)


def identity_key(parent_dir_name: str, inode: int, base_name: str) -> str:
    """
    Stable key for one logical source file: ``<parent>@<inode>@<base_name>``.

    Parent directory and inode survive a local rename but not a copy, so a
    rotated-then-recreated file gets a fresh key. Inode reuse after deletion
    can collide; nothing here defends against that.
    """
    return f"{parent_dir_name}{KEY_SEP}{inode}{KEY_SEP}{base_name}"


def key_for(style: str, parent_dir_name: str, inode: int, base_name: str) -> str:
    if style == KEY_STYLE_NAME:
        return base_name
    return identity_key(parent_dir_name, inode, base_name)


def matches_prefixes(key: str, prefixes: Iterable[str]) -> bool:
    # Empty filter (or only "") accepts everything.
    prefixes = tuple(prefixes)
    if not prefixes:
        return True
    return any(key.startswith(p) for p in prefixes)


def parse_prefixes(raw: str) -> tuple[str, ...]:
    return tuple(p.strip() for p in raw.split(",") if p.strip())
