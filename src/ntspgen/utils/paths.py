"""Input discovery: texture files and the package destination."""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from ..packing.constants import PACKAGE_EXTENSION, TEXTURE_EXTENSION

__all__ = ["InputSet", "collect_inputs"]


@dataclass(slots=True)
class InputSet:
    textures: List[Path] = field(default_factory=list)
    package: Optional[Path] = None
    ignored: List[Path] = field(default_factory=list)


def _has_suffix(path: Path, suffix: str) -> bool:
    return path.suffix.lower() == suffix


def collect_inputs(paths: Iterable[str | Path]) -> InputSet:
    """Sort command line paths into texture sources and the package path.

    Directories contribute their regular ``.dds`` files (not recursive).
    The last ``.ntsp`` path names the package. Anything else is ignored.
    """
    result = InputSet()
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            result.textures.extend(
                sorted(
                    p
                    for p in path.iterdir()
                    if p.is_file() and _has_suffix(p, TEXTURE_EXTENSION)
                )
            )
        elif _has_suffix(path, TEXTURE_EXTENSION):
            result.textures.append(path)
        elif _has_suffix(path, PACKAGE_EXTENSION):
            result.package = path
        else:
            result.ignored.append(path)
    return result
