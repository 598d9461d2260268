"""Binary format constants for NTSP packages and NTSI info sidecars.

All multi-byte integers are little-endian. Signatures are 32-bit values
whose on-disk byte sequence is the reverse of their ASCII mnemonic.
"""

from __future__ import annotations

import struct

# 'NTSP' packed big-endian into a u32, stored little-endian: b"PSTN"
PACKAGE_SIGNATURE = 0x4E545350
PACKAGE_VERSION = 1

# 'ISTN' packed big-endian into a u32, stored little-endian: b"NTSI"
INFO_SIGNATURE = 0x4953544E
INFO_VERSION = 1

# signature, version, entry_count, blob_count, header_size
PACKAGE_HEADER_FORMAT = "<IIIIQ"
# name_hash, blob_index, blob_count, width, height, name_offset
ENTRY_FORMAT = "<IIIHHQ"
# data_offset, data_size
BLOB_FORMAT = "<QQ"
# signature, version, reserved, package_name_size, mip4x4_size, mip4x4_index
INFO_HEADER_FORMAT = "<IIIIII"

PACKAGE_HEADER_SIZE = struct.calcsize(PACKAGE_HEADER_FORMAT)
ENTRY_SIZE = struct.calcsize(ENTRY_FORMAT)
BLOB_SIZE = struct.calcsize(BLOB_FORMAT)
INFO_HEADER_SIZE = struct.calcsize(INFO_HEADER_FORMAT)

# DDS magic + DDS_HEADER + DDS_HEADER_DXT10
FORMAT_DESCRIPTOR_SIZE = 0x94

NAME_HASH_MULTIPLIER = 31
NAME_HASH_MASK = 0x7FFFFFFF

THUMBNAIL_MAX_DIMENSION = 4

MAX_DIMENSION = 0xFFFF
MAX_COUNT = 0xFFFFFFFF

PACKAGE_EXTENSION = ".ntsp"
TEXTURE_EXTENSION = ".dds"

__all__ = [
    "PACKAGE_SIGNATURE",
    "PACKAGE_VERSION",
    "INFO_SIGNATURE",
    "INFO_VERSION",
    "PACKAGE_HEADER_FORMAT",
    "ENTRY_FORMAT",
    "BLOB_FORMAT",
    "INFO_HEADER_FORMAT",
    "PACKAGE_HEADER_SIZE",
    "ENTRY_SIZE",
    "BLOB_SIZE",
    "INFO_HEADER_SIZE",
    "FORMAT_DESCRIPTOR_SIZE",
    "NAME_HASH_MULTIPLIER",
    "NAME_HASH_MASK",
    "THUMBNAIL_MAX_DIMENSION",
    "MAX_DIMENSION",
    "MAX_COUNT",
    "PACKAGE_EXTENSION",
    "TEXTURE_EXTENSION",
]
