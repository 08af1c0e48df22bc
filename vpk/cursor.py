from __future__ import annotations

import struct
from typing import BinaryIO, Tuple

from .errors import VPKFormatError


# Tree tokens are short; read ahead this much when scanning for NUL
_CSTRING_CHUNK = 64


class BinaryCursor:
    """Sequential little-endian reader over a seekable binary stream.

    Fixed-width values and NUL-terminated strings are read through two
    separate calls (``read_fixed`` and ``read_cstring``) so every call site
    states the layout it expects.
    """

    def __init__(self, f: BinaryIO):
        self.f = f

    def tell(self) -> int:
        return self.f.tell()

    def seek(self, pos: int) -> None:
        self.f.seek(pos)

    def skip(self, n: int) -> None:
        if n:
            self.f.seek(n, 1)

    def read_exact(self, n: int) -> bytes:
        b = self.f.read(n)
        if len(b) != n:
            raise VPKFormatError("Unexpected EOF")
        return b

    def read_fixed(self, layout: struct.Struct) -> Tuple:
        return layout.unpack(self.read_exact(layout.size))

    def read_cstring(self) -> str:
        """Read bytes up to and including the next NUL; return them decoded.

        The cursor is left just past the terminator. An immediate NUL yields
        an empty string, which the directory tree uses as its group end marker.
        """
        start = self.f.tell()
        buf = bytearray()
        while True:
            chunk = self.f.read(_CSTRING_CHUNK)
            if not chunk:
                raise VPKFormatError(f"Unterminated string at offset {start}")
            nul = chunk.find(b"\x00")
            if nul >= 0:
                buf += chunk[:nul]
                break
            buf += chunk
        self.f.seek(start + len(buf) + 1)
        return buf.decode("utf-8", errors="surrogateescape")
