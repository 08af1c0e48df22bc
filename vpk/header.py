from __future__ import annotations

from dataclasses import dataclass

from .constants import HEADER_V1_STRUCT, HEADER_V2_STRUCT, VPK_SIGNATURE, VPK_VERSION_1, VPK_VERSION_2
from .cursor import BinaryCursor
from .errors import VPKFormatError


@dataclass(frozen=True)
class Header:
    signature: int
    version: int
    tree_size: int
    # v2 only; section contents are never interpreted
    file_data_section_size: int = 0
    archive_md5_section_size: int = 0
    other_md5_section_size: int = 0
    signature_section_size: int = 0

    @property
    def size(self) -> int:
        return HEADER_V2_STRUCT.size if self.version == VPK_VERSION_2 else HEADER_V1_STRUCT.size

    @property
    def tree_end(self) -> int:
        return self.size + self.tree_size


def read_header(cursor: BinaryCursor) -> Header:
    """Decode the directory header and leave the cursor at the tree start.

    Only signature, version and tree size are guaranteed present, so the
    short v1 layout is read first. A v2 header is then re-read in full from
    offset 0 rather than continuing, because the bytes following the v1
    fields belong to the tree in a v1 file.
    """
    cursor.seek(0)
    signature, version, tree_size = cursor.read_fixed(HEADER_V1_STRUCT)
    if signature & 0xFFFFFFFF != VPK_SIGNATURE:
        raise VPKFormatError(f"Bad VPK directory signature 0x{signature & 0xFFFFFFFF:08x}")
    if version == VPK_VERSION_1:
        return Header(signature=VPK_SIGNATURE, version=version, tree_size=tree_size)
    if version != VPK_VERSION_2:
        raise VPKFormatError(f"Unsupported VPK version {version}")
    cursor.seek(0)
    (_sig, version, tree_size, file_data, archive_md5, other_md5, sig_section) = cursor.read_fixed(HEADER_V2_STRUCT)
    return Header(
        signature=VPK_SIGNATURE,
        version=version,
        tree_size=tree_size,
        file_data_section_size=file_data,
        archive_md5_section_size=archive_md5,
        other_md5_section_size=other_md5,
        signature_section_size=sig_section,
    )
