"""Selection of the small mip embedded in each info sidecar."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable

from ..models import Texture
from .constants import THUMBNAIL_MAX_DIMENSION

__all__ = ["Thumbnail", "select_thumbnail"]

PitchFunction = Callable[[int, int, int], int]


@dataclass(slots=True, frozen=True)
class Thumbnail:
    index: int
    width: int
    height: int
    pixels: bytes
    synthesized: bool = False

    @property
    def size(self) -> int:
        return len(self.pixels)


def select_thumbnail(
    texture: Texture,
    pitch_for: PitchFunction,
    max_dimension: int = THUMBNAIL_MAX_DIMENSION,
) -> Thumbnail:
    """Pick the first mip with either side ``<= max_dimension``.

    A level that is small on one axis only (e.g. 4x64) qualifies. When the
    loaded chain stops before reaching that size, a zero-filled level is
    synthesized at the dimensions and chain index it would have had, sized
    with ``pitch_for(format, width, height)``.
    """
    for index, mip in enumerate(texture.mips):
        if mip.width <= max_dimension or mip.height <= max_dimension:
            return Thumbnail(index, mip.width, mip.height, mip.pixels)

    width = texture.metadata.width
    height = texture.metadata.height
    index = 0
    while width > max_dimension and height > max_dimension:
        width >>= 1
        height >>= 1
        index += 1
    size = pitch_for(texture.metadata.format, width, height)
    return Thumbnail(index, width, height, bytes(size), synthesized=True)
