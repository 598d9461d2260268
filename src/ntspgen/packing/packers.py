"""Pure binary packing functions for NTSP / NTSI records.

All functions are side-effect free and validate sizes.
"""

from __future__ import annotations

import struct

from .constants import (
    BLOB_FORMAT,
    BLOB_SIZE,
    ENTRY_FORMAT,
    ENTRY_SIZE,
    INFO_HEADER_FORMAT,
    INFO_HEADER_SIZE,
    INFO_SIGNATURE,
    INFO_VERSION,
    PACKAGE_HEADER_FORMAT,
    PACKAGE_HEADER_SIZE,
    PACKAGE_SIGNATURE,
)
from .planner import BlobPlan, EntryPlan, PackagePlan

__all__ = [
    "pack_package_header",
    "pack_entry",
    "pack_blob",
    "pack_info_header",
]


def pack_package_header(plan: PackagePlan) -> bytes:
    data = struct.pack(
        PACKAGE_HEADER_FORMAT,
        PACKAGE_SIGNATURE,
        plan.version,
        plan.entry_count,
        plan.blob_count,
        plan.header_size,
    )
    if len(data) != PACKAGE_HEADER_SIZE:  # pragma: no cover
        raise RuntimeError("Package header size mismatch")
    return data


def pack_entry(entry: EntryPlan) -> bytes:
    data = struct.pack(
        ENTRY_FORMAT,
        entry.name_hash,
        entry.blob_index,
        entry.blob_count,
        entry.width,
        entry.height,
        entry.name_offset,
    )
    if len(data) != ENTRY_SIZE:  # pragma: no cover
        raise RuntimeError("Entry size mismatch")
    return data


def pack_blob(blob: BlobPlan) -> bytes:
    data = struct.pack(BLOB_FORMAT, blob.data_offset, blob.data_size)
    if len(data) != BLOB_SIZE:  # pragma: no cover
        raise RuntimeError("Blob size mismatch")
    return data


def pack_info_header(
    package_name_size: int, mip4x4_size: int, mip4x4_index: int
) -> bytes:
    data = struct.pack(
        INFO_HEADER_FORMAT,
        INFO_SIGNATURE,
        INFO_VERSION,
        0,  # reserved
        package_name_size,
        mip4x4_size,
        mip4x4_index,
    )
    if len(data) != INFO_HEADER_SIZE:  # pragma: no cover
        raise RuntimeError("Info header size mismatch")
    return data
