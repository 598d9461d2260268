from __future__ import annotations

"""End-to-end package builds through the API.

Checks the on-disk invariants of a package produced from real DDS files:
- entry table strictly ascending by hash
- blob counts and data section sizes add up
- names readable at their stored offsets
- per-texture blob contiguity and raw mip bytes in the data section
"""

import os
import random
import struct
import sys
from pathlib import Path

import pytest

from dds_helper import mip_payloads, write_dds
from ntspgen.api import (
    BuildOptions,
    build_package,
    inspect_info,
    inspect_package,
    validate_package,
)
from ntspgen.packing.constants import PACKAGE_HEADER_SIZE
from ntspgen.packing.errors import NtspError, E_NO_TEXTURES, E_WRITE_IO
from ntspgen.packing.hashing import compute_name_hash
from ntspgen.packing.inspector import find_entry, read_cstring

TEXTURES = {
    # name: (width, height, mips, seed)
    "rock": (32, 32, None, 1),
    "grass_albedo": (16, 64, None, 2),
    "sky": (64, 64, 3, 3),  # truncated chain
    "decal": (8, 4, None, 4),
}


def _sources(tmp_path: Path) -> list[Path]:
    src = tmp_path / "src"
    src.mkdir(exist_ok=True)
    return [
        write_dds(src / f"{name}.dds", w, h, mips=m, seed=s)
        for name, (w, h, m, s) in TEXTURES.items()
    ]


def _build(tmp_path: Path, paths, package: str = "world.ntsp"):
    return build_package(
        BuildOptions(
            texture_paths=list(paths),
            package_path=tmp_path / package,
            info_dir=tmp_path / "info",
        )
    )


def test_package_invariants(tmp_path: Path):
    result = _build(tmp_path, _sources(tmp_path))
    data = result.package_path.read_bytes()
    assert result.bytes_written == len(data)
    assert data[:4] == b"PSTN"

    info = inspect_package(result.package_path)
    header = info["header"]
    entries = info["entries"]
    blobs = info["blobs"]
    assert header["signature_ok"] and header["version"] == 1
    assert header["entry_count"] == len(TEXTURES)

    hashes = [e["hash"] for e in entries]
    assert all(a < b for a, b in zip(hashes, hashes[1:]))
    assert sum(e["blob_count"] for e in entries) == header["blob_count"]
    assert sum(b["size"] for b in blobs) == len(data) - header["header_size"]
    assert blobs[0]["offset"] == header["header_size"]

    for e in entries:
        name = read_cstring(data, e["name_offset"], header["header_size"])
        assert name == e["name"]
        assert compute_name_hash(name) == e["hash"]
        w, h, mips, seed = TEXTURES[name]
        assert (e["width"], e["height"]) == (w, h)
        own = blobs[e["blob_index"] : e["blob_index"] + e["blob_count"]]
        expected = mip_payloads(w, h, e["blob_count"], seed=seed)
        assert [b["size"] for b in own] == [len(p) for p in expected]
        assert own[0]["offset"] == min(b["offset"] for b in own)
        for prev, cur in zip(own, own[1:]):
            assert cur["offset"] == prev["offset"] + prev["size"]
        for b, payload in zip(own, expected):
            assert data[b["offset"] : b["offset"] + b["size"]] == payload

    assert validate_package(result.package_path) == []
    assert result.textures == [e["name"] for e in entries]


def test_header_fields_are_little_endian(tmp_path: Path):
    result = _build(tmp_path, _sources(tmp_path))
    data = result.package_path.read_bytes()
    sig, version, entries, blobs, header_size = struct.unpack_from("<IIIIQ", data, 0)
    assert sig == 0x4E545350
    assert entries == 4
    assert header_size > PACKAGE_HEADER_SIZE


def test_sidecars_per_texture(tmp_path: Path):
    result = _build(tmp_path, _sources(tmp_path))
    assert sorted(p.name for p in result.sidecars_written) == sorted(
        f"{n}.dds" for n in TEXTURES
    )
    assert result.skipped_sidecars == []
    sky = inspect_info(tmp_path / "info" / "sky.dds")
    assert sky["package_name"] == "world"
    assert sky["package_name_size"] == len("world") + 1
    # 64 -> 32 -> 16 -> 8 -> 4, blank level synthesized
    assert sky["mip4x4_index"] == 4
    assert sky["mip4x4_size"] == 4 * 4 * 4
    raw = (tmp_path / "info" / "sky.dds").read_bytes()
    off = sky["mip4x4_offset"]
    assert raw[off : off + 64] == bytes(64)
    decal = inspect_info(tmp_path / "info" / "decal.dds")
    # 8x4 already has a side <= 4
    assert decal["mip4x4_index"] == 0
    assert decal["mip4x4_size"] == 8 * 4 * 4


def test_rebuild_is_byte_identical_regardless_of_order(tmp_path: Path):
    paths = _sources(tmp_path)
    first = _build(tmp_path, paths, "a.ntsp").package_path.read_bytes()
    shuffled = list(paths)
    random.Random(7).shuffle(shuffled)
    shuffled.reverse()
    second = _build(tmp_path, shuffled, "b.ntsp").package_path.read_bytes()
    assert first == second


def test_undecodable_input_is_skipped(tmp_path: Path):
    paths = _sources(tmp_path)
    bad = tmp_path / "src" / "broken.dds"
    bad.write_bytes(b"not a dds file")
    result = _build(tmp_path, paths + [bad])
    assert result.skipped_inputs == [bad]
    assert len(result.sidecars_written) == len(TEXTURES)
    assert not (tmp_path / "info" / "broken.dds").exists()
    assert validate_package(result.package_path) == []
    assert inspect_package(result.package_path)["header"]["entry_count"] == len(
        TEXTURES
    )


def test_no_valid_textures_aborts_before_output(tmp_path: Path):
    bad = tmp_path / "broken.dds"
    bad.write_bytes(b"garbage")
    with pytest.raises(NtspError) as ei:
        _build(tmp_path, [bad])
    assert ei.value.code == E_NO_TEXTURES
    assert not (tmp_path / "world.ntsp").exists()
    assert not (tmp_path / "info").exists()


def test_package_write_failure_is_fatal(tmp_path: Path):
    paths = _sources(tmp_path)
    with pytest.raises(NtspError) as ei:
        build_package(
            BuildOptions(
                texture_paths=paths,
                package_path=tmp_path / "missing_dir" / "world.ntsp",
                info_dir=tmp_path / "info",
            )
        )
    assert ei.value.code == E_WRITE_IO
    assert not (tmp_path / "info").exists()


def test_existing_package_is_overwritten(tmp_path: Path):
    (tmp_path / "world.ntsp").write_bytes(b"x" * 100000)
    result = _build(tmp_path, _sources(tmp_path))
    assert result.package_path.stat().st_size == result.bytes_written
    assert validate_package(result.package_path) == []


@pytest.mark.skipif(
    sys.platform in ("win32", "darwin"),
    reason="needs a filesystem that stores arbitrary name bytes",
)
def test_non_utf8_file_name_is_packed_raw(tmp_path: Path):
    paths = _sources(tmp_path)
    odd = write_dds(tmp_path / "src" / os.fsdecode(b"caf\xe9.dds"), 8, 8, seed=9)
    result = _build(tmp_path, paths + [odd])
    stem = odd.stem
    assert result.skipped_inputs == []
    assert stem in result.textures
    assert b"caf\xe9\x00" in result.package_path.read_bytes()
    assert validate_package(result.package_path) == []
    entry = find_entry(inspect_package(result.package_path), stem)
    assert entry is not None
    assert entry["name"] == stem
    assert entry["hash"] == 3045665
    assert (tmp_path / "info" / odd.name).exists()
