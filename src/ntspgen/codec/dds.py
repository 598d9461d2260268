"""DirectDraw Surface (DDS) codec for 2D mip-mapped textures.

Reads the classic 124-byte header and the optional DX10 extension, maps
legacy pixel formats onto DXGI format codes and slices the payload into
its mip chain. Cube maps, volumes and texture arrays are not supported.
"""

from __future__ import annotations
from pathlib import Path
import struct
from typing import List, Optional, Tuple

from ..models import DecodedImage, MipLevel, TextureMetadata
from ..packing.constants import FORMAT_DESCRIPTOR_SIZE
from . import CodecError

__all__ = [
    "DdsError",
    "DdsCodec",
    "decode_dds",
    "compute_pitch",
    "encode_dds_header",
    "DDS_MAGIC",
]

DDS_MAGIC = 0x20534444  # "DDS "
DDS_HEADER_SIZE = 124
DDS_PIXELFORMAT_SIZE = 32
DX10_HEADER_SIZE = 20

# Header flags
DDSD_CAPS = 0x1
DDSD_HEIGHT = 0x2
DDSD_WIDTH = 0x4
DDSD_PITCH = 0x8
DDSD_PIXELFORMAT = 0x1000
DDSD_MIPMAPCOUNT = 0x20000
DDSD_LINEARSIZE = 0x80000

# Pixel format flags
DDPF_ALPHAPIXELS = 0x1
DDPF_ALPHA = 0x2
DDPF_FOURCC = 0x4
DDPF_RGB = 0x40
DDPF_LUMINANCE = 0x20000

DDSCAPS_COMPLEX = 0x8
DDSCAPS_TEXTURE = 0x1000
DDSCAPS_MIPMAP = 0x400000
DDSCAPS2_CUBEMAP = 0x200
DDSCAPS2_VOLUME = 0x200000

D3D10_RESOURCE_DIMENSION_TEXTURE2D = 3
D3D10_RESOURCE_MISC_TEXTURECUBE = 0x4


def _fourcc(s: str) -> int:
    return struct.unpack("<I", s.encode("ascii"))[0]


FOURCC_DX10 = _fourcc("DX10")

# DXGI_FORMAT codes used below
DXGI_R32G32B32A32_FLOAT = 2
DXGI_R16G16B16A16_FLOAT = 10
DXGI_R16G16B16A16_UNORM = 11
DXGI_R16G16B16A16_SNORM = 13
DXGI_R32G32_FLOAT = 16
DXGI_R10G10B10A2_UNORM = 24
DXGI_R8G8B8A8_UNORM = 28
DXGI_R16G16_FLOAT = 34
DXGI_R16G16_UNORM = 35
DXGI_R32_FLOAT = 41
DXGI_R8G8_UNORM = 49
DXGI_R16_FLOAT = 54
DXGI_R16_UNORM = 56
DXGI_R8_UNORM = 61
DXGI_A8_UNORM = 65
DXGI_R8G8_B8G8_UNORM = 68
DXGI_G8R8_G8B8_UNORM = 69
DXGI_BC1_UNORM = 71
DXGI_BC2_UNORM = 74
DXGI_BC3_UNORM = 77
DXGI_BC4_UNORM = 80
DXGI_BC4_SNORM = 81
DXGI_BC5_UNORM = 83
DXGI_BC5_SNORM = 84
DXGI_B5G6R5_UNORM = 85
DXGI_B5G5R5A1_UNORM = 86
DXGI_B8G8R8A8_UNORM = 87
DXGI_B8G8R8X8_UNORM = 88
DXGI_YUY2 = 107
DXGI_B4G4R4A4_UNORM = 115

_BITS_PER_PIXEL = {
    1: 128, 2: 128, 3: 128, 4: 128,
    5: 96, 6: 96, 7: 96, 8: 96,
    9: 64, 10: 64, 11: 64, 12: 64, 13: 64, 14: 64,
    15: 64, 16: 64, 17: 64, 18: 64,
    23: 32, 24: 32, 25: 32, 26: 32, 27: 32, 28: 32, 29: 32, 30: 32,
    31: 32, 32: 32, 33: 32, 34: 32, 35: 32, 36: 32, 37: 32, 38: 32,
    39: 32, 40: 32, 41: 32, 42: 32, 43: 32,
    48: 16, 49: 16, 50: 16, 51: 16, 52: 16, 53: 16, 54: 16, 55: 16,
    56: 16, 57: 16, 58: 16, 59: 16,
    60: 8, 61: 8, 62: 8, 63: 8, 64: 8, 65: 8,
    85: 16, 86: 16, 87: 32, 88: 32, 89: 32, 90: 32, 91: 32, 92: 32,
    93: 32, 115: 16,
}

# Bytes per 4x4 block
_BLOCK_BYTES = {
    70: 8, 71: 8, 72: 8, 79: 8, 80: 8, 81: 8,
    73: 16, 74: 16, 75: 16, 76: 16, 77: 16, 78: 16,
    82: 16, 83: 16, 84: 16, 94: 16, 95: 16, 96: 16,
    97: 16, 98: 16, 99: 16,
}

# Two pixels share four bytes
_PACKED = {DXGI_R8G8_B8G8_UNORM, DXGI_G8R8_G8B8_UNORM, DXGI_YUY2}

# (dxgi, pf_flags, fourcc, bit_count, r_mask, g_mask, b_mask, a_mask)
# The first row for a DXGI code is the one used when encoding.
_LEGACY_FORMATS: List[Tuple[int, int, int, int, int, int, int, int]] = [
    (DXGI_BC1_UNORM, DDPF_FOURCC, _fourcc("DXT1"), 0, 0, 0, 0, 0),
    (DXGI_BC2_UNORM, DDPF_FOURCC, _fourcc("DXT3"), 0, 0, 0, 0, 0),
    (DXGI_BC3_UNORM, DDPF_FOURCC, _fourcc("DXT5"), 0, 0, 0, 0, 0),
    (DXGI_BC4_UNORM, DDPF_FOURCC, _fourcc("BC4U"), 0, 0, 0, 0, 0),
    (DXGI_BC4_SNORM, DDPF_FOURCC, _fourcc("BC4S"), 0, 0, 0, 0, 0),
    (DXGI_BC5_UNORM, DDPF_FOURCC, _fourcc("BC5U"), 0, 0, 0, 0, 0),
    (DXGI_BC5_SNORM, DDPF_FOURCC, _fourcc("BC5S"), 0, 0, 0, 0, 0),
    (DXGI_R8G8_B8G8_UNORM, DDPF_FOURCC, _fourcc("RGBG"), 0, 0, 0, 0, 0),
    (DXGI_G8R8_G8B8_UNORM, DDPF_FOURCC, _fourcc("GRGB"), 0, 0, 0, 0, 0),
    (DXGI_YUY2, DDPF_FOURCC, _fourcc("YUY2"), 0, 0, 0, 0, 0),
    (DXGI_R16G16B16A16_UNORM, DDPF_FOURCC, 36, 0, 0, 0, 0, 0),
    (DXGI_R16G16B16A16_SNORM, DDPF_FOURCC, 110, 0, 0, 0, 0, 0),
    (DXGI_R16_FLOAT, DDPF_FOURCC, 111, 0, 0, 0, 0, 0),
    (DXGI_R16G16_FLOAT, DDPF_FOURCC, 112, 0, 0, 0, 0, 0),
    (DXGI_R16G16B16A16_FLOAT, DDPF_FOURCC, 113, 0, 0, 0, 0, 0),
    (DXGI_R32_FLOAT, DDPF_FOURCC, 114, 0, 0, 0, 0, 0),
    (DXGI_R32G32_FLOAT, DDPF_FOURCC, 115, 0, 0, 0, 0, 0),
    (DXGI_R32G32B32A32_FLOAT, DDPF_FOURCC, 116, 0, 0, 0, 0, 0),
    # decode-only aliases
    (DXGI_BC2_UNORM, DDPF_FOURCC, _fourcc("DXT2"), 0, 0, 0, 0, 0),
    (DXGI_BC3_UNORM, DDPF_FOURCC, _fourcc("DXT4"), 0, 0, 0, 0, 0),
    (DXGI_BC4_UNORM, DDPF_FOURCC, _fourcc("ATI1"), 0, 0, 0, 0, 0),
    (DXGI_BC5_UNORM, DDPF_FOURCC, _fourcc("ATI2"), 0, 0, 0, 0, 0),
    # bit-mask formats
    (DXGI_R8G8B8A8_UNORM, DDPF_RGB | DDPF_ALPHAPIXELS, 0, 32,
     0x000000FF, 0x0000FF00, 0x00FF0000, 0xFF000000),
    (DXGI_B8G8R8A8_UNORM, DDPF_RGB | DDPF_ALPHAPIXELS, 0, 32,
     0x00FF0000, 0x0000FF00, 0x000000FF, 0xFF000000),
    (DXGI_B8G8R8X8_UNORM, DDPF_RGB, 0, 32,
     0x00FF0000, 0x0000FF00, 0x000000FF, 0),
    (DXGI_R10G10B10A2_UNORM, DDPF_RGB | DDPF_ALPHAPIXELS, 0, 32,
     0x000003FF, 0x000FFC00, 0x3FF00000, 0xC0000000),
    (DXGI_R16G16_UNORM, DDPF_RGB, 0, 32, 0x0000FFFF, 0xFFFF0000, 0, 0),
    (DXGI_B5G6R5_UNORM, DDPF_RGB, 0, 16, 0xF800, 0x07E0, 0x001F, 0),
    (DXGI_B5G5R5A1_UNORM, DDPF_RGB | DDPF_ALPHAPIXELS, 0, 16,
     0x7C00, 0x03E0, 0x001F, 0x8000),
    (DXGI_B4G4R4A4_UNORM, DDPF_RGB | DDPF_ALPHAPIXELS, 0, 16,
     0x0F00, 0x00F0, 0x000F, 0xF000),
    (DXGI_R8_UNORM, DDPF_LUMINANCE, 0, 8, 0xFF, 0, 0, 0),
    (DXGI_R16_UNORM, DDPF_LUMINANCE, 0, 16, 0xFFFF, 0, 0, 0),
    (DXGI_R8G8_UNORM, DDPF_LUMINANCE | DDPF_ALPHAPIXELS, 0, 16,
     0x00FF, 0, 0, 0xFF00),
    (DXGI_A8_UNORM, DDPF_ALPHA, 0, 8, 0, 0, 0, 0xFF),
]

_KIND_MASK = DDPF_FOURCC | DDPF_RGB | DDPF_LUMINANCE | DDPF_ALPHA


class DdsError(CodecError):
    pass


def compute_pitch(fmt: int, width: int, height: int) -> Tuple[int, int]:
    """Return ``(row_pitch, slice_pitch)`` of one ``width`` x ``height`` level."""
    if fmt in _BLOCK_BYTES:
        blocks_wide = max(1, (width + 3) // 4)
        blocks_high = max(1, (height + 3) // 4)
        row = blocks_wide * _BLOCK_BYTES[fmt]
        return row, row * blocks_high
    if fmt in _PACKED:
        row = ((width + 1) >> 1) * 4
        return row, row * height
    bpp = _BITS_PER_PIXEL.get(fmt)
    if bpp is None:
        raise DdsError(f"Unsupported DXGI format {fmt}")
    row = (width * bpp + 7) // 8
    return row, row * height


def _is_block_compressed(fmt: int) -> bool:
    return fmt in _BLOCK_BYTES


def _legacy_to_dxgi(
    pf_flags: int, fourcc: int, bits: int, masks: Tuple[int, int, int, int]
) -> Optional[int]:
    if pf_flags & DDPF_FOURCC:
        for dxgi, flags, cc, *_ in _LEGACY_FORMATS:
            if flags & DDPF_FOURCC and cc == fourcc:
                return dxgi
        return None
    kind = pf_flags & _KIND_MASK
    for dxgi, flags, _cc, fbits, r, g, b, a in _LEGACY_FORMATS:
        if flags & _KIND_MASK != kind or fbits != bits:
            continue
        if (r, g, b) != masks[:3]:
            continue
        # alpha mask only matters when the file declares alpha
        if flags & (DDPF_ALPHAPIXELS | DDPF_ALPHA) and a != masks[3]:
            continue
        return dxgi
    return None


def decode_dds(data: bytes, label: str = "<memory>") -> DecodedImage:
    if len(data) < 4 + DDS_HEADER_SIZE:
        raise DdsError(f"{label}: file too small for a DDS header")
    (magic,) = struct.unpack_from("<I", data, 0)
    if magic != DDS_MAGIC:
        raise DdsError(f"{label}: bad DDS magic 0x{magic:08x}")
    size, flags, height, width, _pitch, _depth, mip_count = struct.unpack_from(
        "<7I", data, 4
    )
    if size != DDS_HEADER_SIZE:
        raise DdsError(f"{label}: bad DDS header size {size}")
    _pf_size, pf_flags, fourcc, bits, rm, gm, bm, am = struct.unpack_from(
        "<8I", data, 76
    )
    _caps, caps2 = struct.unpack_from("<II", data, 108)
    if caps2 & DDSCAPS2_CUBEMAP:
        raise DdsError(f"{label}: cube maps are not supported")
    if caps2 & DDSCAPS2_VOLUME:
        raise DdsError(f"{label}: volume textures are not supported")

    offset = 4 + DDS_HEADER_SIZE
    if pf_flags & DDPF_FOURCC and fourcc == FOURCC_DX10:
        if len(data) < offset + DX10_HEADER_SIZE:
            raise DdsError(f"{label}: truncated DX10 header")
        fmt, dimension, misc, array_size, _misc2 = struct.unpack_from(
            "<5I", data, offset
        )
        offset += DX10_HEADER_SIZE
        if dimension != D3D10_RESOURCE_DIMENSION_TEXTURE2D:
            raise DdsError(f"{label}: resource dimension {dimension} not 2D")
        if misc & D3D10_RESOURCE_MISC_TEXTURECUBE:
            raise DdsError(f"{label}: cube maps are not supported")
        if array_size != 1:
            raise DdsError(f"{label}: texture arrays are not supported")
    else:
        legacy = _legacy_to_dxgi(pf_flags, fourcc, bits, (rm, gm, bm, am))
        if legacy is None:
            raise DdsError(f"{label}: unsupported legacy pixel format")
        fmt = legacy
    if width == 0 or height == 0:
        raise DdsError(f"{label}: zero-sized image")
    if not flags & DDSD_MIPMAPCOUNT or mip_count == 0:
        mip_count = 1

    mips: List[MipLevel] = []
    for level in range(mip_count):
        w = max(1, width >> level)
        h = max(1, height >> level)
        _, slice_pitch = compute_pitch(fmt, w, h)
        end = offset + slice_pitch
        if end > len(data):
            raise DdsError(
                f"{label}: mip {level} ({w}x{h}) truncated: "
                f"needs {end} bytes, file has {len(data)}"
            )
        mips.append(MipLevel(w, h, bytes(data[offset:end])))
        offset = end
    metadata = TextureMetadata(
        width=width, height=height, mip_levels=mip_count, format=fmt
    )
    return DecodedImage(metadata=metadata, mips=tuple(mips))


def encode_dds_header(metadata: TextureMetadata) -> bytes:
    """Encode magic, header and (if needed) DX10 extension for ``metadata``.

    The result is zero padded to the fixed descriptor block size.
    """
    fmt = metadata.format
    row_pitch, slice_pitch = compute_pitch(fmt, metadata.width, metadata.height)
    flags = DDSD_CAPS | DDSD_HEIGHT | DDSD_WIDTH | DDSD_PIXELFORMAT
    if metadata.mip_levels > 0:
        flags |= DDSD_MIPMAPCOUNT
    if _is_block_compressed(fmt):
        flags |= DDSD_LINEARSIZE
        pitch = slice_pitch
    else:
        flags |= DDSD_PITCH
        pitch = row_pitch
    caps = DDSCAPS_TEXTURE
    if metadata.mip_levels > 1:
        caps |= DDSCAPS_MIPMAP | DDSCAPS_COMPLEX

    legacy = next((row for row in _LEGACY_FORMATS if row[0] == fmt), None)
    if legacy is not None:
        pixel_format = struct.pack(
            "<8I", DDS_PIXELFORMAT_SIZE, *legacy[1:]
        )
        extension = b""
    else:
        pixel_format = struct.pack(
            "<8I", DDS_PIXELFORMAT_SIZE, DDPF_FOURCC, FOURCC_DX10, 0, 0, 0, 0, 0
        )
        extension = struct.pack(
            "<5I", fmt, D3D10_RESOURCE_DIMENSION_TEXTURE2D, 0, 1, 0
        )

    out = (
        struct.pack("<I", DDS_MAGIC)
        + struct.pack(
            "<7I",
            DDS_HEADER_SIZE,
            flags,
            metadata.height,
            metadata.width,
            pitch,
            0,
            metadata.mip_levels,
        )
        + b"\x00" * 44
        + pixel_format
        + struct.pack("<5I", caps, 0, 0, 0, 0)
        + extension
    )
    if len(out) > FORMAT_DESCRIPTOR_SIZE:  # pragma: no cover
        raise RuntimeError("DDS header exceeds descriptor block")
    return out + b"\x00" * (FORMAT_DESCRIPTOR_SIZE - len(out))


class DdsCodec:
    """:class:`~ntspgen.codec.ImageCodec` implementation for ``.dds`` files."""

    def load(self, path: Path) -> DecodedImage:
        return decode_dds(Path(path).read_bytes(), label=str(path))

    def pitch_for(self, fmt: int, width: int, height: int) -> int:
        return compute_pitch(fmt, width, height)[1]

    def encode_format_header(self, metadata: TextureMetadata) -> bytes:
        return encode_dds_header(metadata)
