from __future__ import annotations

import os
from typing import BinaryIO

from .constants import DIR_ARCHIVE_INDEX
from .errors import VPKOpenError
from .pathutil import archive_path, directory_path


class ArchiveHandle:
    """One bound data archive of a VPK set.

    Holds the directory file path (source of preload bytes) and the archive
    file path (source of body bytes). Handles are immutable and shared by
    every entry with the same archive index; they cannot be copied.
    """

    __slots__ = ("index", "directory_path", "archive_path", "data_offset")

    def __init__(self, index: int, directory_path: str, archive_path: str, data_offset: int = 0):
        object.__setattr__(self, "index", index)
        object.__setattr__(self, "directory_path", directory_path)
        object.__setattr__(self, "archive_path", archive_path)
        object.__setattr__(self, "data_offset", data_offset)

    @classmethod
    def bind(cls, base: str, index: int) -> "ArchiveHandle":
        path = archive_path(base, index)
        if not os.path.isfile(path):
            raise VPKOpenError(f"VPK archive doesn't exist: {path}")
        return cls(index, directory_path(base), path)

    @classmethod
    def embedded(cls, base: str, data_offset: int) -> "ArchiveHandle":
        """Handle for bodies stored in the directory file past the tree."""
        dir_path = directory_path(base)
        return cls(DIR_ARCHIVE_INDEX, dir_path, dir_path, data_offset)

    @property
    def is_embedded(self) -> bool:
        return self.archive_path == self.directory_path

    def open_preload(self) -> BinaryIO:
        return open(self.directory_path, "rb")

    def open_body(self) -> BinaryIO:
        return open(self.archive_path, "rb")

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __copy__(self):
        raise TypeError(f"{type(self).__name__} cannot be copied; share it through its VPKSet")

    def __deepcopy__(self, memo):
        raise TypeError(f"{type(self).__name__} cannot be copied; share it through its VPKSet")

    def __reduce_ex__(self, protocol):
        raise TypeError(f"{type(self).__name__} cannot be copied; share it through its VPKSet")

    def __repr__(self) -> str:
        return f"ArchiveHandle(index={self.index}, archive_path={self.archive_path!r})"
