"""Binary writer emitting an NTSP package from a :class:`PackagePlan`.

The header (package record, entry table, blob table, name table) is built
in memory through a bounded :class:`ByteWriter`; mip pixel data is then
streamed to the file straight from each level's source buffer. Any
divergence between emitted byte positions and the plan raises, so the plan
stays authoritative for offsets.
"""

from __future__ import annotations
from pathlib import Path
from typing import BinaryIO, Sequence

from ..logging import get_logger, section
from ..models import Texture
from ..reporting import get_reporter
from .errors import NtspError, E_WRITE_IO, layout_error
from .layout import ByteWriter, pack_name_string
from .packers import pack_blob, pack_entry, pack_package_header
from .planner import PackagePlan

__all__ = ["build_package_header", "discard_partial", "write_package"]


def build_package_header(plan: PackagePlan) -> bytes:
    """Materialise every header section of ``plan`` into one buffer."""
    w = ByteWriter(plan.header_size)
    w.write(pack_package_header(plan))
    w.expect_offset(plan.entries_offset, "Entry table")
    for entry in plan.entries:
        w.write(pack_entry(entry))
    w.expect_offset(plan.blobs_offset, "Blob table")
    for blob in plan.blobs:
        w.write(pack_blob(blob))
    w.expect_offset(plan.names_offset, "Name table")
    for entry in plan.entries:
        w.expect_offset(entry.name_offset, f"Name '{entry.name}'")
        w.write(pack_name_string(entry.name))
    return w.getvalue()


def _write_data_section(
    f: BinaryIO, textures: Sequence[Texture], plan: PackagePlan
) -> None:
    rep = get_reporter()
    rep.start_task("write.data", "Mip data", total=len(textures))
    blob_iter = iter(plan.blobs)
    written = 0
    for tex in textures:
        for mip_index, mip in enumerate(tex.mips):
            blob = next(blob_iter, None)
            if blob is None or blob.texture != tex.name or blob.mip != mip_index:
                raise layout_error(
                    f"Blob table out of step at {tex.name} mip {mip_index}"
                )
            pos = f.tell()
            if pos != blob.data_offset or mip.size != blob.data_size:
                raise layout_error(
                    f"{tex.name} mip {mip_index}: at {pos}+{mip.size}, "
                    f"plan expects {blob.data_offset}+{blob.data_size}"
                )
            f.write(mip.pixels)
            written += mip.size
        rep.advance("write.data", current_item=tex.name)
    if next(blob_iter, None) is not None:
        raise layout_error("Plan has more blobs than the texture set")
    rep.end_task("write.data", blobs=plan.blob_count, bytes=written)


def discard_partial(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:  # pragma: no cover
        get_logger().warning("Could not remove partial %s: %s", path, exc)


def write_package(
    textures: Sequence[Texture], plan: PackagePlan, output_path: Path
) -> int:
    """Write the package for ``textures`` strictly following ``plan``.

    The file is overwritten if present. On failure a partially written file
    is removed and :class:`NtspError` is raised. Returns bytes written.
    """
    logger = get_logger()
    header = build_package_header(plan)
    opened = False
    with section(f"Write package {output_path.name}"):
        try:
            with output_path.open("wb") as f:
                opened = True
                f.write(header)
                _write_data_section(f, textures, plan)
            size = output_path.stat().st_size
        except OSError as exc:
            if opened:
                discard_partial(output_path)
            raise NtspError(
                E_WRITE_IO,
                f"Failed to write package {output_path}: {exc}",
                {"path": str(output_path)},
            ) from exc
        except NtspError:
            discard_partial(output_path)
            raise
    if size != plan.file_size:
        discard_partial(output_path)
        raise layout_error(
            f"File size mismatch vs plan: plan={plan.file_size} actual={size}"
        )
    logger.info(
        "Wrote package size=%d bytes entries=%d blobs=%d header=%d",
        size,
        plan.entry_count,
        plan.blob_count,
        plan.header_size,
    )
    return size
