"""Builders for synthetic VPK sets used by the test suites."""
from __future__ import annotations

import zlib
from itertools import groupby
from pathlib import Path
from typing import Dict, Iterable, Optional, Sequence, Tuple

from vpk.constants import (
    DIR_ARCHIVE_INDEX,
    FILE_RECORD_STRUCT,
    HEADER_V1_STRUCT,
    HEADER_V2_STRUCT,
    RECORD_TERMINATOR,
    VPK_SIGNATURE,
)
from vpk.pathutil import archive_path, directory_path


# (extension, directory, name, preload bytes, archive index, body bytes)
FileSpec = Tuple[str, str, str, bytes, int, bytes]


def _cstr(s: str) -> bytes:
    return s.encode("utf-8", "surrogateescape") + b"\x00"


def build_tree(files: Iterable[FileSpec], bodies: Dict[int, bytearray], terminator: int = RECORD_TERMINATOR) -> bytes:
    # Consecutive specs sharing an extension/directory share a group
    tree = bytearray()
    for ext, by_ext in groupby(files, key=lambda f: f[0]):
        tree += _cstr(ext)
        for directory, by_dir in groupby(by_ext, key=lambda f: f[1]):
            tree += _cstr(directory)
            for _ext, _dir, name, preload, index, body in by_dir:
                blob = bodies.setdefault(index, bytearray())
                offset = len(blob)
                blob += body
                tree += _cstr(name)
                tree += FILE_RECORD_STRUCT.pack(
                    zlib.crc32(preload + body), len(preload), index, offset, len(body), terminator
                )
                tree += preload
            tree += b"\x00"
        tree += b"\x00"
    tree += b"\x00"
    return bytes(tree)


def build_vpk(
    root: Path,
    files: Sequence[FileSpec],
    *,
    name: str = "pak01",
    version: int = 1,
    v2_sections: Optional[Tuple[int, int, int, int]] = None,
    missing: Iterable[int] = (),
) -> Path:
    """Write ``<name>_dir.vpk`` plus its numbered archives under ``root``.

    Archives listed in ``missing`` are not written. Returns the directory
    file path.
    """
    base = str(root / name)
    bodies: Dict[int, bytearray] = {}
    tree = build_tree(files, bodies)
    embedded = bytes(bodies.pop(DIR_ARCHIVE_INDEX, b""))
    if version == 2:
        sections = v2_sections or (len(embedded), 0, 0, 0)
        header = HEADER_V2_STRUCT.pack(VPK_SIGNATURE, 2, len(tree), *sections)
    else:
        header = HEADER_V1_STRUCT.pack(VPK_SIGNATURE, version, len(tree))
    dir_path = Path(directory_path(base))
    dir_path.write_bytes(header + tree + embedded)
    skip = set(missing)
    for index, blob in bodies.items():
        if index not in skip:
            Path(archive_path(base, index)).write_bytes(bytes(blob))
    return dir_path
