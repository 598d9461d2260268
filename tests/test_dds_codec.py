import struct
from pathlib import Path

import pytest

from dds_helper import (
    DDSCAPS2_CUBEMAP,
    DXGI_BC1_UNORM,
    DXGI_BC7_UNORM,
    DXGI_R8G8B8A8_UNORM,
    dds_bytes,
    mip_payloads,
    write_dds,
)
from ntspgen.codec.dds import (
    DdsCodec,
    DdsError,
    compute_pitch,
    decode_dds,
    encode_dds_header,
)
from ntspgen.models import TextureMetadata
from ntspgen.packing.constants import FORMAT_DESCRIPTOR_SIZE


def test_decode_rgba8_full_chain(tmp_path: Path):
    path = write_dds(tmp_path / "rock.dds", 16, 8, seed=3)
    image = DdsCodec().load(path)
    assert image.metadata == TextureMetadata(16, 8, 5, DXGI_R8G8B8A8_UNORM)
    assert [(m.width, m.height) for m in image.mips] == [
        (16, 8),
        (8, 4),
        (4, 2),
        (2, 1),
        (1, 1),
    ]
    assert [m.pixels for m in image.mips] == mip_payloads(16, 8, 5, seed=3)


def test_decode_dxt1_small_levels_use_whole_blocks():
    image = decode_dds(dds_bytes(8, 8, kind="dxt1"))
    assert image.metadata.format == DXGI_BC1_UNORM
    assert [m.size for m in image.mips] == [32, 8, 8, 8]


def test_decode_dx10_extension():
    image = decode_dds(dds_bytes(16, 16, mips=2, kind="bc7"))
    assert image.metadata.format == DXGI_BC7_UNORM
    assert [m.size for m in image.mips] == [256, 64]


def test_truncated_payload_rejected():
    data = dds_bytes(16, 16)
    with pytest.raises(DdsError):
        decode_dds(data[:-1])


def test_bad_magic_and_cubemap_rejected():
    with pytest.raises(DdsError):
        decode_dds(b"XXXX" + bytes(200))
    with pytest.raises(DdsError):
        decode_dds(dds_bytes(4, 4, caps2=DDSCAPS2_CUBEMAP))


def test_compute_pitch():
    assert compute_pitch(DXGI_R8G8B8A8_UNORM, 4, 4) == (16, 64)
    assert compute_pitch(DXGI_BC1_UNORM, 1, 1) == (8, 8)
    assert compute_pitch(DXGI_BC7_UNORM, 8, 4) == (32, 32)
    assert compute_pitch(107, 3, 2) == (8, 16)  # YUY2
    with pytest.raises(DdsError):
        compute_pitch(9999, 4, 4)


def test_encode_legacy_header_round_trips():
    meta = TextureMetadata(64, 32, 7, DXGI_BC1_UNORM)
    header = encode_dds_header(meta)
    assert len(header) == FORMAT_DESCRIPTOR_SIZE
    assert header[:4] == b"DDS "
    assert header[84:88] == b"DXT1"
    assert header[128:] == bytes(FORMAT_DESCRIPTOR_SIZE - 128)
    # linear size of the top level for block formats
    assert struct.unpack_from("<I", header, 20)[0] == 16 * 8 * 8
    payload = b"".join(
        bytes(compute_pitch(DXGI_BC1_UNORM, max(1, 64 >> i), max(1, 32 >> i))[1])
        for i in range(7)
    )
    assert decode_dds(header[:128] + payload).metadata == meta


def test_encode_dx10_header_for_formats_without_legacy_form():
    meta = TextureMetadata(16, 16, 1, DXGI_BC7_UNORM)
    header = encode_dds_header(meta)
    assert len(header) == FORMAT_DESCRIPTOR_SIZE
    assert header[84:88] == b"DX10"
    assert struct.unpack_from("<5I", header, 128) == (DXGI_BC7_UNORM, 3, 0, 1, 0)
