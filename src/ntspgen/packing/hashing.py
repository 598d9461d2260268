"""Texture name hashing and hash-ordered indexing."""

from __future__ import annotations
from typing import Dict, Iterable, List

from ..models import Texture
from .constants import NAME_HASH_MASK, NAME_HASH_MULTIPLIER
from .errors import NtspError, E_DUP_TEXTURE_NAME, E_HASH_COLLISION
from .layout import encode_name

__all__ = ["compute_name_hash", "sort_by_hash", "check_unique_hashes"]


def compute_name_hash(name: str) -> int:
    """Return the 31-bit polynomial hash of ``name``.

    Bytes of the encoded name are accumulated as signed chars with 32-bit
    wraparound; only the final value is masked.
    """
    h = 0
    for b in encode_name(name):
        c = b - 256 if b >= 0x80 else b
        h = (h * NAME_HASH_MULTIPLIER + c) & 0xFFFFFFFF
    return h & NAME_HASH_MASK


def check_unique_hashes(textures: Iterable[Texture]) -> None:
    """Reject duplicate names and distinct names sharing a hash."""
    seen: Dict[int, Texture] = {}
    for tex in textures:
        other = seen.get(tex.name_hash)
        if other is None:
            seen[tex.name_hash] = tex
            continue
        if other.name == tex.name:
            raise NtspError(
                E_DUP_TEXTURE_NAME,
                f"Texture name '{tex.name}' provided more than once",
                {
                    "name": tex.name,
                    "paths": [str(other.source_path), str(tex.source_path)],
                },
            )
        raise NtspError(
            E_HASH_COLLISION,
            f"Texture names '{other.name}' and '{tex.name}' share hash "
            f"0x{tex.name_hash:08x}",
            {"hash": tex.name_hash, "names": [other.name, tex.name]},
        )


def sort_by_hash(textures: Iterable[Texture]) -> List[Texture]:
    """Return ``textures`` ascending by name hash.

    Hashes are required to be unique, so the order is total and does not
    depend on the input order.
    """
    items = list(textures)
    check_unique_hashes(items)
    return sorted(items, key=lambda t: t.name_hash)
