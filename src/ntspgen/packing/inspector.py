"""Binary NTSP / NTSI inspection utilities.

Public functions:
- inspect_package(path) -> dict
- validate_package(info) -> list[str]
- find_entry(info, name) -> dict | None
- inspect_info(path) -> dict

Readers locate textures by binary search over the hash-sorted entry table;
this relies on hashes being unique within a package, which the builder
enforces.
"""

from __future__ import annotations

from bisect import bisect_left
from pathlib import Path
from typing import Any, Dict, List, Optional
import struct

from .constants import (
    BLOB_FORMAT,
    BLOB_SIZE,
    ENTRY_FORMAT,
    ENTRY_SIZE,
    FORMAT_DESCRIPTOR_SIZE,
    INFO_HEADER_FORMAT,
    INFO_HEADER_SIZE,
    INFO_SIGNATURE,
    INFO_VERSION,
    PACKAGE_HEADER_FORMAT,
    PACKAGE_HEADER_SIZE,
    PACKAGE_SIGNATURE,
    PACKAGE_VERSION,
)
from .hashing import compute_name_hash

__all__ = [
    "parse_package_header",
    "inspect_package",
    "validate_package",
    "find_entry",
    "inspect_info",
    "read_cstring",
]


def _read_exact(data: bytes, offset: int, size: int, label: str) -> bytes:
    end = offset + size
    if end > len(data):
        raise ValueError(
            f"Out of range read for {label}: {offset}+{size}>{len(data)}"
        )
    return data[offset:end]


def read_cstring(data: bytes, offset: int, limit: int) -> Optional[str]:
    """Decode the null-terminated string at ``offset`` (before ``limit``)."""
    if not 0 <= offset < limit:
        return None
    end = data.find(b"\x00", offset, limit)
    if end < 0:
        return None
    return data[offset:end].decode("utf-8", errors="surrogateescape")


def parse_package_header(data: bytes) -> Dict[str, Any]:
    raw = _read_exact(data, 0, PACKAGE_HEADER_SIZE, "package header")
    signature, version, entry_count, blob_count, header_size = (
        struct.unpack(PACKAGE_HEADER_FORMAT, raw)
    )
    return {
        "signature": signature,
        "signature_ok": signature == PACKAGE_SIGNATURE,
        "version": version,
        "entry_count": entry_count,
        "blob_count": blob_count,
        "header_size": header_size,
    }


def inspect_package(path: str | Path) -> Dict[str, Any]:
    data = Path(path).read_bytes()
    header = parse_package_header(data)
    header_size = header["header_size"]
    entries: List[Dict[str, Any]] = []
    off = PACKAGE_HEADER_SIZE
    for i in range(header["entry_count"]):
        raw = _read_exact(data, off, ENTRY_SIZE, f"entry[{i}]")
        name_hash, blob_index, blob_count, width, height, name_offset = (
            struct.unpack(ENTRY_FORMAT, raw)
        )
        entries.append(
            {
                "hash": name_hash,
                "blob_index": blob_index,
                "blob_count": blob_count,
                "width": width,
                "height": height,
                "name_offset": name_offset,
                "name": read_cstring(
                    data, name_offset, min(header_size, len(data))
                ),
            }
        )
        off += ENTRY_SIZE
    blobs: List[Dict[str, int]] = []
    for i in range(header["blob_count"]):
        raw = _read_exact(data, off, BLOB_SIZE, f"blob[{i}]")
        data_offset, data_size = struct.unpack(BLOB_FORMAT, raw)
        blobs.append({"offset": data_offset, "size": data_size})
        off += BLOB_SIZE
    return {
        "file_size": len(data),
        "header": header,
        "names_offset": off,
        "entries": entries,
        "blobs": blobs,
    }


def validate_package(info: Dict[str, Any]) -> List[str]:
    issues: List[str] = []
    header = info["header"]
    entries = info["entries"]
    blobs = info["blobs"]
    file_size = info["file_size"]
    header_size = header["header_size"]
    if not header["signature_ok"]:
        issues.append("Package signature mismatch")
    if header["version"] != PACKAGE_VERSION:
        issues.append(f"Unsupported package version {header['version']}")
    if header_size > file_size:
        issues.append("Header size exceeds file size")
    for prev, cur in zip(entries, entries[1:]):
        if prev["hash"] >= cur["hash"]:
            issues.append(
                f"Entry table not strictly ascending at '{cur['name']}'"
            )
    if sum(e["blob_count"] for e in entries) != header["blob_count"]:
        issues.append("Entry blob counts do not sum to package blob count")
    if sum(b["size"] for b in blobs) != file_size - header_size:
        issues.append("Blob sizes do not sum to data section size")
    running = 0
    for e in entries:
        label = e["name"] if e["name"] is not None else f"#{e['hash']:08x}"
        if e["blob_index"] != running:
            issues.append(f"Entry {label} blob index {e['blob_index']} != {running}")
        running += e["blob_count"]
        own = blobs[e["blob_index"] : e["blob_index"] + e["blob_count"]]
        for prev, cur in zip(own, own[1:]):
            if cur["offset"] != prev["offset"] + prev["size"]:
                issues.append(f"Entry {label} blobs not contiguous")
                break
        if not info["names_offset"] <= e["name_offset"] < header_size:
            issues.append(f"Entry {label} name offset outside name table")
        elif e["name"] is None:
            issues.append(f"Entry {label} name not null-terminated")
        elif compute_name_hash(e["name"]) != e["hash"]:
            issues.append(f"Entry {label} hash does not match its name")
    for i, b in enumerate(blobs):
        if b["offset"] < header_size or b["offset"] + b["size"] > file_size:
            issues.append(f"Blob {i} outside data section")
    return issues


def find_entry(info: Dict[str, Any], name: str) -> Optional[Dict[str, Any]]:
    """Binary search the entry table for ``name``."""
    hashes = [e["hash"] for e in info["entries"]]
    target = compute_name_hash(name)
    idx = bisect_left(hashes, target)
    if idx < len(hashes) and hashes[idx] == target:
        return info["entries"][idx]
    return None


def inspect_info(path: str | Path) -> Dict[str, Any]:
    data = Path(path).read_bytes()
    raw = _read_exact(data, 0, INFO_HEADER_SIZE, "info header")
    signature, version, reserved, name_size, mip_size, mip_index = (
        struct.unpack(INFO_HEADER_FORMAT, raw)
    )
    name_raw = _read_exact(data, INFO_HEADER_SIZE, name_size, "package name")
    thumb_offset = INFO_HEADER_SIZE + name_size
    descriptor_offset = thumb_offset + mip_size
    descriptor = _read_exact(
        data, descriptor_offset, FORMAT_DESCRIPTOR_SIZE, "format descriptor"
    )
    return {
        "file_size": len(data),
        "signature_ok": signature == INFO_SIGNATURE,
        "version_ok": version == INFO_VERSION,
        "reserved": reserved,
        "package_name_size": name_size,
        "package_name": name_raw.rstrip(b"\x00").decode(
            "utf-8", errors="surrogateescape"
        ),
        "mip4x4_size": mip_size,
        "mip4x4_index": mip_index,
        "mip4x4_offset": thumb_offset,
        "descriptor_offset": descriptor_offset,
        "descriptor": descriptor,
        "trailing_bytes": len(data) - descriptor_offset - FORMAT_DESCRIPTOR_SIZE,
    }
