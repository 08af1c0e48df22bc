import struct


# Magic and versions
VPK_SIGNATURE = 0x55AA1234
VPK_VERSION_1 = 1
VPK_VERSION_2 = 2

# File naming
VPK_SUFFIX = ".vpk"
DIR_SUFFIX = "_dir"
DIRECTORY_FILE_SUFFIX = DIR_SUFFIX + VPK_SUFFIX  # "<base>_dir.vpk"
ARCHIVE_INDEX_WIDTH = 3                          # "<base>_007.vpk"

# Header layouts
# v1: signature, version, tree_size
# v2: v1 + file_data, archive_md5, other_md5, signature section sizes
HEADER_V1_STRUCT = struct.Struct("<iii")
HEADER_V2_STRUCT = struct.Struct("<iiiiiii")

# File record (18 bytes):
#  - crc u32
#  - preload_bytes u16
#  - archive_index u16
#  - file_offset u32
#  - file_length u32
#  - terminator u16 (conventionally 0xFFFF, not validated)
FILE_RECORD_STRUCT = struct.Struct("<IHHIIH")
RECORD_TERMINATOR = 0xFFFF

# Archive index meaning "body stored in the directory file after the tree"
DIR_ARCHIVE_INDEX = 0x7FFF

# Extraction
DEFAULT_COPY_BLOCK = 1_048_576  # 1 MiB
