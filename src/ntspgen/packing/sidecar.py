"""NTSI info sidecar emission (one file per texture).

Sidecar layout::

    [info header 24][package name\\0][thumbnail bytes][format descriptor 0x94]
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from ..codec import ImageCodec
from ..logging import get_logger, section
from ..models import Texture
from ..reporting import get_reporter
from .constants import FORMAT_DESCRIPTOR_SIZE
from .errors import internal_error
from .layout import ByteWriter, pack_name_string
from .packers import pack_info_header
from .thumbnail import Thumbnail, select_thumbnail
from .writer import discard_partial

__all__ = [
    "SidecarReport",
    "build_info_bytes",
    "sidecar_path",
    "write_sidecars",
]


@dataclass(slots=True)
class SidecarReport:
    written: List[Path] = field(default_factory=list)
    skipped: List[Path] = field(default_factory=list)


def build_info_bytes(
    package_name: str, thumbnail: Thumbnail, format_header: bytes
) -> bytes:
    if len(format_header) != FORMAT_DESCRIPTOR_SIZE:
        raise internal_error(
            f"Format descriptor is {len(format_header)} bytes, "
            f"expected {FORMAT_DESCRIPTOR_SIZE}"
        )
    name_bytes = pack_name_string(package_name)
    header = pack_info_header(len(name_bytes), thumbnail.size, thumbnail.index)
    w = ByteWriter(
        len(header) + len(name_bytes) + thumbnail.size + len(format_header)
    )
    w.write(header)
    w.write(name_bytes)
    w.write(thumbnail.pixels)
    w.write(format_header)
    return w.getvalue()


def sidecar_path(texture: Texture, info_dir: Optional[Path] = None) -> Path:
    """Sidecars replace the source image unless ``info_dir`` is given."""
    if info_dir is None:
        return texture.source_path
    return info_dir / texture.source_path.name


def write_sidecars(
    textures: Sequence[Texture],
    package_name: str,
    codec: ImageCodec,
    info_dir: Optional[Path] = None,
) -> SidecarReport:
    """Write one sidecar per texture; a failed file does not stop the rest."""
    logger = get_logger()
    rep = get_reporter()
    report = SidecarReport()
    with section("Write info sidecars"):
        rep.start_task("write.sidecars", "Info sidecars", total=len(textures))
        for tex in textures:
            thumb = select_thumbnail(tex, codec.pitch_for)
            if thumb.synthesized:
                rep.verbose(
                    f"{tex.name}: chain has {len(tex.mips)} levels, "
                    f"synthesized blank mip {thumb.index} "
                    f"({thumb.width}x{thumb.height}, {thumb.size} bytes)"
                )
            data = build_info_bytes(
                package_name, thumb, codec.encode_format_header(tex.metadata)
            )
            path = sidecar_path(tex, info_dir)
            opened = False
            try:
                with path.open("wb") as f:
                    opened = True
                    f.write(data)
            except OSError as exc:
                logger.error("Failed to save %s: %s", path, exc)
                if opened:
                    discard_partial(path)
                report.skipped.append(path)
            else:
                report.written.append(path)
            rep.advance("write.sidecars", current_item=tex.name)
        rep.end_task(
            "write.sidecars",
            entries=len(report.written),
            planned=len(textures),
        )
    return report
