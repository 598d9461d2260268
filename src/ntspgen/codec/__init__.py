"""Image codec boundary.

The packer only needs three things from an image format: the decoded mip
chain of a file, the byte size of a level at given dimensions, and an
encoded format descriptor for the sidecar trailer.
"""

from __future__ import annotations
from pathlib import Path
from typing import Protocol

from ..models import DecodedImage, TextureMetadata


class CodecError(ValueError):
    """Raised when a source image cannot be decoded."""


class ImageCodec(Protocol):
    def load(self, path: Path) -> DecodedImage: ...

    def pitch_for(self, fmt: int, width: int, height: int) -> int: ...

    def encode_format_header(self, metadata: TextureMetadata) -> bytes: ...


def default_codec() -> ImageCodec:
    from .dds import DdsCodec  # local import to avoid cycle

    return DdsCodec()


__all__ = ["CodecError", "ImageCodec", "default_codec"]
