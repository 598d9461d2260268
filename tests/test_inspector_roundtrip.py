from __future__ import annotations

"""Inspector lookups and corruption detection."""

import struct
from pathlib import Path

from dds_helper import write_dds
from ntspgen.api import BuildOptions, build_package, inspect_package, validate_package
from ntspgen.packing.constants import ENTRY_SIZE, PACKAGE_HEADER_SIZE
from ntspgen.packing.inspector import find_entry, validate_package as validate_info

NAMES = ["alpha", "bravo", "charlie", "delta", "echo", "foxtrot"]


def _build(tmp_path: Path) -> Path:
    src = tmp_path / "src"
    src.mkdir()
    paths = [write_dds(src / f"{n}.dds", 8, 8, seed=i) for i, n in enumerate(NAMES)]
    out = tmp_path / "pack.ntsp"
    build_package(
        BuildOptions(texture_paths=paths, package_path=out, info_dir=tmp_path / "info")
    )
    return out


def test_find_entry_binary_search(tmp_path: Path):
    info = inspect_package(_build(tmp_path))
    for name in NAMES:
        entry = find_entry(info, name)
        assert entry is not None
        assert entry["name"] == name
    assert find_entry(info, "zulu") is None


def test_validate_detects_swapped_entries(tmp_path: Path):
    path = _build(tmp_path)
    data = bytearray(path.read_bytes())
    first = PACKAGE_HEADER_SIZE
    second = first + ENTRY_SIZE
    a = bytes(data[first:second])
    b = bytes(data[second : second + ENTRY_SIZE])
    data[first:second] = b
    data[second : second + ENTRY_SIZE] = a
    path.write_bytes(bytes(data))
    issues = validate_package(path)
    assert any("ascending" in i for i in issues)


def test_validate_detects_truncated_data(tmp_path: Path):
    path = _build(tmp_path)
    path.write_bytes(path.read_bytes()[:-1])
    issues = validate_package(path)
    assert any("data section" in i for i in issues)


def test_validate_detects_bad_signature(tmp_path: Path):
    path = _build(tmp_path)
    data = bytearray(path.read_bytes())
    struct.pack_into("<I", data, 0, 0x12345678)
    path.write_bytes(bytes(data))
    info = inspect_package(path)
    assert "Package signature mismatch" in validate_info(info)
