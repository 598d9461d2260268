"""High-level API for ntspgen."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, List, Optional, Tuple

from .codec import CodecError, ImageCodec, default_codec
from .logging import get_logger
from .models import Texture
from .reporting import get_reporter, task
from .packing.errors import NtspError, E_NO_TEXTURES
from .packing.hashing import compute_name_hash, sort_by_hash
from .packing.inspector import (
    inspect_info as _inspect_info_impl,
    inspect_package as _inspect_package_impl,
    validate_package as _validate_package_impl,
)
from .packing.planner import PackagePlan, compute_package_plan, to_plan_dict
from .packing.sidecar import write_sidecars
from .packing.writer import write_package

__all__ = [
    "BuildOptions",
    "BuildResult",
    "load_textures",
    "build_package",
    "plan_dry_run",
    "inspect_package",
    "validate_package",
    "inspect_info",
    "PackagePlan",
]


@dataclass(slots=True)
class BuildOptions:
    texture_paths: List[Path]
    package_path: Path
    # None writes each sidecar over its own source image
    info_dir: Optional[Path] = None
    codec: Optional[ImageCodec] = None


@dataclass(slots=True)
class BuildResult:
    package_path: Path
    bytes_written: int
    textures: List[str] = field(default_factory=list)
    skipped_inputs: List[Path] = field(default_factory=list)
    sidecars_written: List[Path] = field(default_factory=list)
    skipped_sidecars: List[Path] = field(default_factory=list)


def load_textures(
    paths: Iterable[Path], codec: ImageCodec
) -> Tuple[List[Texture], List[Path]]:
    """Decode every path; undecodable files are reported and skipped."""
    logger = get_logger()
    rep = get_reporter()
    path_list = [Path(p) for p in paths]
    textures: List[Texture] = []
    skipped: List[Path] = []
    rep.start_task("load.textures", "Load textures", total=len(path_list))
    for path in path_list:
        try:
            image = codec.load(path)
        except (CodecError, OSError) as exc:
            logger.warning("Failed to load %s: %s", path, exc)
            skipped.append(path)
            rep.advance("load.textures", current_item=f"{path.name} (skipped)")
            continue
        name = path.stem
        textures.append(
            Texture(
                name=name,
                name_hash=compute_name_hash(name),
                source_path=path,
                metadata=image.metadata,
                mips=image.mips,
            )
        )
        rep.advance("load.textures", current_item=name)
    rep.end_task("load.textures", entries=len(textures), planned=len(path_list))
    return textures, skipped


def _load_sorted(
    paths: Iterable[Path], codec: ImageCodec
) -> Tuple[List[Texture], List[Path]]:
    textures, skipped = load_textures(paths, codec)
    if not textures:
        raise NtspError(
            E_NO_TEXTURES,
            "No valid textures to pack",
            {"skipped": [str(p) for p in skipped]},
        )
    return sort_by_hash(textures), skipped


def build_package(options: BuildOptions) -> BuildResult:
    logger = get_logger()
    rep = get_reporter()
    codec = options.codec or default_codec()
    textures, skipped = _load_sorted(options.texture_paths, codec)
    rep.status(
        "Textures summary: "
        + f"loaded={len(textures)} skipped={len(skipped)} "
        + f"mips={sum(len(t.mips) for t in textures)}"
    )
    with task("plan.layout", "Compute layout plan"):
        plan = compute_package_plan(textures)
    rep.status(
        "Plan summary: "
        + f"entries={plan.entry_count} blobs={plan.blob_count} "
        + f"header_size={plan.header_size} file_size={plan.file_size}"
    )
    bytes_written = write_package(textures, plan, options.package_path)

    if options.info_dir is not None:
        try:
            options.info_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.error("Cannot create info directory %s: %s", options.info_dir, exc)
    sidecars = write_sidecars(
        textures, options.package_path.stem, codec, options.info_dir
    )
    if sidecars.skipped:
        rep.warning(f"{len(sidecars.skipped)} info sidecar(s) not written")
    rep.status(
        "Build summary: "
        + f"file={options.package_path.name} bytes={bytes_written} "
        + f"textures={len(textures)} sidecars={len(sidecars.written)} "
        + f"skipped_inputs={len(skipped)} skipped_sidecars={len(sidecars.skipped)}"
    )
    return BuildResult(
        package_path=options.package_path,
        bytes_written=bytes_written,
        textures=[t.name for t in textures],
        skipped_inputs=skipped,
        sidecars_written=sidecars.written,
        skipped_sidecars=sidecars.skipped,
    )


def plan_dry_run(
    texture_paths: Iterable[Path], codec: Optional[ImageCodec] = None
) -> tuple[PackagePlan, dict]:
    """Compute a PackagePlan for the given textures without writing output.

    Returns (PackagePlan, plan_dict) where plan_dict is JSON-serialisable.
    """
    textures, _skipped = _load_sorted(texture_paths, codec or default_codec())
    plan = compute_package_plan(textures)
    return plan, to_plan_dict(plan)


def inspect_package(path: str | Path) -> dict:
    return _inspect_package_impl(path)


def validate_package(path: str | Path) -> list[str]:
    info = _inspect_package_impl(path)
    return _validate_package_impl(info)


def inspect_info(path: str | Path) -> dict[str, Any]:
    return _inspect_info_impl(path)
