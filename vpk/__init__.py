"""
vpk — read-only access to Valve split VPK containers.

A VPK set is a directory file (``<base>_dir.vpk``) holding the header, the
extension/path/name tree and small inline "preload" payloads, plus numbered
archive files (``<base>_NNN.vpk``) holding the file bodies.

- ``VPKSet`` parses the directory (v1 and v2 headers) and binds archives lazily.
- ``VPKFileStream`` reads one packed file as a single seekable stream across
  its preload and body regions.
- ``vpk.cli`` lists, inspects and extracts sets from the command line.

Writing archives, CRC verification and MD5/signature sections are not handled.
"""

__version__ = "0.1"

from .archive import ArchiveHandle
from .directory import FileDescriptor, FileEntry, VPKSet
from .errors import VPKError, VPKFormatError, VPKOpenError
from .header import Header
from .stream import VPKFileStream

__all__ = [
    "ArchiveHandle",
    "FileDescriptor",
    "FileEntry",
    "Header",
    "VPKSet",
    "VPKFileStream",
    "VPKError",
    "VPKFormatError",
    "VPKOpenError",
]
