from __future__ import annotations

import os
from typing import TYPE_CHECKING, BinaryIO, Optional

from .errors import VPKOpenError

if TYPE_CHECKING:
    from .directory import FileEntry


class VPKFileStream:
    """Seekable read-only view over one packed file.

    A packed file's contents are its preload bytes (inline in the directory
    file) followed by its body bytes (in the bound archive). The stream keeps
    one handle on each and maps a single logical position onto both:

        logical [0, preload_length)                   -> directory file
        logical [preload_length, preload + file_len)  -> archive file

    Nothing is buffered; each handle is moved by the change of its own
    per-region position.
    """

    def __init__(self, entry: "FileEntry"):
        desc = entry.desc
        archive = entry.archive
        self.path = entry.path
        self.preload_length = desc.preload_length
        self.file_length = desc.file_length
        self.pos = 0
        self._preload: Optional[BinaryIO] = None
        self._body: Optional[BinaryIO] = None
        try:
            self._preload = archive.open_preload()
            self._preload.seek(desc.preload_offset)
            self._body = archive.open_body()
            self._body.seek(archive.data_offset + desc.file_offset)
        except OSError as exc:
            self.close()
            raise VPKOpenError(f"Cannot open data for {entry.path}: {exc}") from exc

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def __del__(self):
        self.close()

    def close(self) -> None:
        for name in ("_preload", "_body"):
            fh = getattr(self, name, None)
            if fh is not None:
                fh.close()
                setattr(self, name, None)

    @property
    def closed(self) -> bool:
        return self._preload is None

    @property
    def length(self) -> int:
        return self.preload_length + self.file_length

    def tell(self) -> int:
        return self.pos

    def _preload_pos(self) -> int:
        return min(self.pos, self.preload_length)

    def _file_pos(self) -> int:
        return min(max(self.pos - self.preload_length, 0), self.file_length)

    def readinto(self, buffer, count: Optional[int] = None) -> int:
        """Copy up to ``count`` bytes (default ``len(buffer)``) into ``buffer``.

        Returns the number of bytes copied, which is short only at the
        logical end. A read may cross from the preload region into the body.
        """
        if self._preload is None:
            raise ValueError("I/O operation on closed VPK file stream")
        view = memoryview(buffer).cast("B")
        if count is None or count > len(view):
            count = len(view)
        end = min(self.pos + count, self.length)
        if count <= 0 or self.pos >= end:
            return 0

        done = 0
        preload_count = min(end, self.preload_length) - self.pos
        if preload_count > 0:
            done += _fill(self._preload, view[:preload_count])
            if done < preload_count:
                self.pos += done
                return done
        file_count = end - max(self.pos, self.preload_length)
        if file_count > 0:
            done += _fill(self._body, view[done : done + file_count])
        self.pos += done
        return done

    def read(self, size: int = -1) -> bytes:
        remaining = max(self.length - self.pos, 0)
        if size is None or size < 0 or size > remaining:
            size = remaining
        buf = bytearray(size)
        n = self.readinto(buf)
        return bytes(buf[:n])

    def seek(self, position: int, whence: int = os.SEEK_SET) -> int:
        """Move the logical position; out-of-range targets are clamped."""
        if self._preload is None:
            raise ValueError("I/O operation on closed VPK file stream")
        if whence == os.SEEK_CUR:
            position += self.pos
        elif whence == os.SEEK_END:
            position += self.length
        elif whence != os.SEEK_SET:
            raise ValueError(f"Invalid whence ({whence})")

        old_preload = self._preload_pos()
        old_file = self._file_pos()
        self.pos = min(max(position, 0), self.length)

        preload_off = self._preload_pos() - old_preload
        file_off = self._file_pos() - old_file
        if preload_off:
            self._preload.seek(preload_off, os.SEEK_CUR)
        if file_off:
            self._body.seek(file_off, os.SEEK_CUR)
        return self.pos

    def seekable(self) -> bool:
        return True

    def readable(self) -> bool:
        return True


def _fill(f: BinaryIO, view: memoryview) -> int:
    # readinto may return short counts; stop only at EOF
    got = 0
    while got < len(view):
        n = f.readinto(view[got:])
        if not n:
            break
        got += n
    return got
