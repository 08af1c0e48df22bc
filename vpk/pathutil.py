from __future__ import annotations

import os
from typing import Union

from .constants import ARCHIVE_INDEX_WIDTH, DIR_SUFFIX, DIRECTORY_FILE_SUFFIX, VPK_SUFFIX


PathLike = Union[str, "os.PathLike[str]"]


def _cut_at(s: str, marker: str) -> str:
    pos = s.find(marker)
    return s[:pos] if pos >= 0 else s


def normalize_base_path(path: PathLike) -> str:
    """Reduce any VPK path to the base shared by the directory and archives.

    ``.vpk`` is cut first, then ``_dir``; each at its first occurrence and at
    most once, so ``pak01_dir.vpk``, ``pak01.vpk`` and ``pak01`` all map to
    ``pak01``.
    """
    p = os.fspath(path)
    p = _cut_at(p, VPK_SUFFIX)
    p = _cut_at(p, DIR_SUFFIX)
    return p


def directory_path(base: str) -> str:
    return base + DIRECTORY_FILE_SUFFIX


def archive_path(base: str, index: int) -> str:
    return f"{base}_{index:0{ARCHIVE_INDEX_WIDTH}d}{VPK_SUFFIX}"


def safe_relpath(p: str) -> str:
    """Turn a logical VPK path into a relative filesystem path.

    Rules:
    - Convert backslashes to slashes
    - Remove empty, '.' and whitespace-only segments (root files live under " ")
    - Reject '..' segments
    """
    parts = [q for q in p.replace("\\", "/").split("/") if q.strip() not in ("", ".")]
    for q in parts:
        if q.strip() == "..":
            raise ValueError("Path may not contain '..'")
    if not parts:
        raise ValueError(f"Path has no usable segments: {p!r}")
    return "/".join(parts)
