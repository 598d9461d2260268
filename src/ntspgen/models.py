"""In-memory texture models shared by the packing pipeline."""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple


@dataclass(slots=True, frozen=True)
class MipLevel:
    width: int
    height: int
    pixels: bytes

    @property
    def size(self) -> int:
        return len(self.pixels)


@dataclass(slots=True, frozen=True)
class TextureMetadata:
    width: int
    height: int
    mip_levels: int
    format: int  # DXGI_FORMAT code


@dataclass(slots=True, frozen=True)
class DecodedImage:
    """Codec output: format metadata plus the mip chain, largest first."""

    metadata: TextureMetadata
    mips: Tuple[MipLevel, ...]


@dataclass(slots=True, frozen=True)
class Texture:
    name: str
    name_hash: int
    source_path: Path
    metadata: TextureMetadata
    mips: Tuple[MipLevel, ...]

    @property
    def data_size(self) -> int:
        return sum(m.size for m in self.mips)


__all__ = ["MipLevel", "TextureMetadata", "DecodedImage", "Texture"]
