"""Layout planning: compute every offset of an NTSP package before writing.

The planner is the single source of truth for the package layout. The
writer consumes the immutable :class:`PackagePlan` and verifies each byte
it emits lands where the plan says.

Layout::

    [package header][entry table][blob table][name table][data section]
    0               24           +24*E       +16*B       header_size
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple

from ..logging import get_logger
from ..models import Texture
from .constants import (
    BLOB_SIZE,
    ENTRY_SIZE,
    MAX_COUNT,
    MAX_DIMENSION,
    PACKAGE_HEADER_SIZE,
    PACKAGE_VERSION,
)
from .errors import NtspError, E_SPEC_VALUE_RANGE, internal_error
from .layout import pack_name_string

__all__ = [
    "EntryPlan",
    "BlobPlan",
    "PackagePlan",
    "compute_package_plan",
    "to_plan_dict",
]


@dataclass(slots=True, frozen=True)
class EntryPlan:
    name: str
    name_hash: int
    name_offset: int
    blob_index: int
    blob_count: int
    width: int
    height: int


@dataclass(slots=True, frozen=True)
class BlobPlan:
    data_offset: int
    data_size: int
    texture: str
    mip: int


@dataclass(slots=True, frozen=True)
class PackagePlan:
    entries: Tuple[EntryPlan, ...]
    blobs: Tuple[BlobPlan, ...]
    entries_offset: int
    blobs_offset: int
    names_offset: int
    names_size: int
    header_size: int
    data_size: int
    version: int = PACKAGE_VERSION

    @property
    def file_size(self) -> int:
        return self.header_size + self.data_size

    @property
    def entry_count(self) -> int:
        return len(self.entries)

    @property
    def blob_count(self) -> int:
        return len(self.blobs)


def _check_range(texture: Texture) -> None:
    w, h = texture.metadata.width, texture.metadata.height
    if not (0 < w <= MAX_DIMENSION and 0 < h <= MAX_DIMENSION):
        raise NtspError(
            E_SPEC_VALUE_RANGE,
            f"Texture '{texture.name}' is {w}x{h}; entry dimensions are "
            f"limited to {MAX_DIMENSION}",
            {"name": texture.name, "width": w, "height": h},
        )


def compute_package_plan(textures: Sequence[Texture]) -> PackagePlan:
    """Compute the package layout for ``textures`` (already hash-sorted)."""
    logger = get_logger()
    for prev, cur in zip(textures, textures[1:]):
        if prev.name_hash >= cur.name_hash:
            raise internal_error(
                "Textures must be strictly ascending by hash",
                {"previous": prev.name, "current": cur.name},
            )
    for tex in textures:
        _check_range(tex)

    blob_count = sum(len(t.mips) for t in textures)
    if len(textures) > MAX_COUNT or blob_count > MAX_COUNT:
        raise NtspError(
            E_SPEC_VALUE_RANGE,
            "Entry or blob count exceeds 32 bits",
            {"entries": len(textures), "blobs": blob_count},
        )
    names_size = sum(len(pack_name_string(t.name)) for t in textures)

    entries_offset = PACKAGE_HEADER_SIZE
    blobs_offset = entries_offset + ENTRY_SIZE * len(textures)
    names_offset = blobs_offset + BLOB_SIZE * blob_count
    header_size = names_offset + names_size

    entries: List[EntryPlan] = []
    blobs: List[BlobPlan] = []
    blob_index = 0
    data_offset = header_size
    name_offset = names_offset
    for tex in textures:
        entries.append(
            EntryPlan(
                name=tex.name,
                name_hash=tex.name_hash,
                name_offset=name_offset,
                blob_index=blob_index,
                blob_count=len(tex.mips),
                width=tex.metadata.width,
                height=tex.metadata.height,
            )
        )
        for mip_index, mip in enumerate(tex.mips):
            blobs.append(
                BlobPlan(
                    data_offset=data_offset,
                    data_size=mip.size,
                    texture=tex.name,
                    mip=mip_index,
                )
            )
            blob_index += 1
            data_offset += mip.size
        name_offset += len(pack_name_string(tex.name))

    if name_offset != header_size:  # pragma: no cover
        raise internal_error(
            f"Name table ends at {name_offset}, header size {header_size}"
        )
    plan = PackagePlan(
        entries=tuple(entries),
        blobs=tuple(blobs),
        entries_offset=entries_offset,
        blobs_offset=blobs_offset,
        names_offset=names_offset,
        names_size=names_size,
        header_size=header_size,
        data_size=data_offset - header_size,
    )
    logger.debug(
        "Planned package: entries=%d blobs=%d header=%d data=%d",
        plan.entry_count,
        plan.blob_count,
        plan.header_size,
        plan.data_size,
    )
    return plan


def to_plan_dict(plan: PackagePlan) -> Dict[str, Any]:  # lightweight serializer
    def entry(e: EntryPlan):
        return {
            "name": e.name,
            "hash": e.name_hash,
            "name_offset": e.name_offset,
            "blob_index": e.blob_index,
            "blob_count": e.blob_count,
            "width": e.width,
            "height": e.height,
        }

    def blob(b: BlobPlan):
        return {
            "texture": b.texture,
            "mip": b.mip,
            "offset": b.data_offset,
            "size": b.data_size,
        }

    return {
        "version": plan.version,
        "file_size": plan.file_size,
        "header_size": plan.header_size,
        "data_size": plan.data_size,
        "sections": {
            "entries": {
                "offset": plan.entries_offset,
                "count": plan.entry_count,
                "entry_size": ENTRY_SIZE,
            },
            "blobs": {
                "offset": plan.blobs_offset,
                "count": plan.blob_count,
                "entry_size": BLOB_SIZE,
            },
            "names": {"offset": plan.names_offset, "size": plan.names_size},
        },
        "entries": [entry(e) for e in plan.entries],
        "blobs": [blob(b) for b in plan.blobs],
    }
