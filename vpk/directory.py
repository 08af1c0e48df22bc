from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from .archive import ArchiveHandle
from .constants import DIR_ARCHIVE_INDEX, FILE_RECORD_STRUCT
from .cursor import BinaryCursor
from .errors import VPKOpenError
from .header import Header, read_header
from .pathutil import PathLike, directory_path, normalize_base_path
from .stream import VPKFileStream


@dataclass(frozen=True)
class FileDescriptor:
    crc: int
    preload_offset: int  # absolute, in the directory file
    preload_length: int
    archive_index: int
    file_offset: int     # as stored; relative to the archive's data_offset
    file_length: int


@dataclass(frozen=True)
class FileEntry:
    path: str
    archive: ArchiveHandle
    desc: FileDescriptor

    @property
    def crc(self) -> int:
        return self.desc.crc

    @property
    def length(self) -> int:
        return self.desc.preload_length + self.desc.file_length

    def open(self) -> VPKFileStream:
        return VPKFileStream(self)

    def read_bytes(self) -> bytes:
        with self.open() as s:
            return s.read()


class VPKSet:
    """Parsed VPK directory with lazily bound archives.

    ``path`` may name the directory file (``pak01_dir.vpk``), ``pak01.vpk``
    or the bare base ``pak01``. The directory is parsed completely on
    construction; any failure aborts it and no partial set is returned.
    """

    def __init__(self, path: PathLike):
        self.base_path = normalize_base_path(path)
        self.directory_path = directory_path(self.base_path)
        self._header: Optional[Header] = None
        self._archives: List[Optional[ArchiveHandle]] = []
        self._embedded: Optional[ArchiveHandle] = None
        self._files: Dict[str, FileEntry] = {}

        try:
            f = open(self.directory_path, "rb")
        except OSError as exc:
            raise VPKOpenError(f"Couldn't find/open VPK directory: {self.directory_path}") from exc
        with f:
            cursor = BinaryCursor(f)
            self._header = read_header(cursor)
            self._parse_tree(cursor)

    def header(self) -> Header:
        return self._header

    def file(self, path: str) -> Optional[FileEntry]:
        return self._files.get(path)

    def files(self) -> Mapping[str, FileEntry]:
        return MappingProxyType(self._files)

    def archives(self) -> Tuple[ArchiveHandle, ...]:
        bound = [a for a in self._archives if a is not None]
        if self._embedded is not None:
            bound.append(self._embedded)
        return tuple(bound)

    def open(self, path: str) -> VPKFileStream:
        entry = self._files.get(path)
        if entry is None:
            raise KeyError(path)
        return entry.open()

    def __len__(self) -> int:
        return len(self._files)

    def __contains__(self, path) -> bool:
        return path in self._files

    def __iter__(self) -> Iterator[str]:
        return iter(self._files)

    def __copy__(self):
        raise TypeError("VPKSet cannot be copied")

    def __deepcopy__(self, memo):
        raise TypeError("VPKSet cannot be copied")

    def __reduce_ex__(self, protocol):
        raise TypeError("VPKSet cannot be copied")

    def __repr__(self) -> str:
        return f"VPKSet({self.base_path!r}, files={len(self._files)})"

    # internals
    def _parse_tree(self, cursor: BinaryCursor) -> None:
        """Walk the extension -> path -> name tree.

        Each level is a run of NUL-terminated tokens closed by an empty token.
        Every name token is followed by a file record and its preload bytes.
        """
        while True:
            extension = cursor.read_cstring()
            if not extension:
                break
            while True:
                directory = cursor.read_cstring()
                if not directory:
                    break
                while True:
                    name = cursor.read_cstring()
                    if not name:
                        break
                    self._parse_file(cursor, f"{directory}/{name}.{extension}")

    def _parse_file(self, cursor: BinaryCursor, path: str) -> None:
        crc, preload_bytes, archive_index, offset, length, _terminator = cursor.read_fixed(FILE_RECORD_STRUCT)
        archive = self._bind_archive(archive_index)
        desc = FileDescriptor(
            crc=crc,
            preload_offset=cursor.tell(),
            preload_length=preload_bytes,
            archive_index=archive_index,
            file_offset=offset,
            file_length=length,
        )
        cursor.skip(preload_bytes)
        # Later records with the same path win
        self._files[path] = FileEntry(path=path, archive=archive, desc=desc)

    def _bind_archive(self, index: int) -> ArchiveHandle:
        if index == DIR_ARCHIVE_INDEX:
            if self._embedded is None:
                self._embedded = ArchiveHandle.embedded(self.base_path, self._header.tree_end)
            return self._embedded
        if index >= len(self._archives):
            self._archives.extend([None] * (index + 1 - len(self._archives)))
        archive = self._archives[index]
        if archive is None:
            archive = ArchiveHandle.bind(self.base_path, index)
            self._archives[index] = archive
        return archive
