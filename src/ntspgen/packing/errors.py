"""Error definitions for ntspgen."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional

E_NO_TEXTURES = "E_NO_TEXTURES"
E_DUP_TEXTURE_NAME = "E_DUP_TEXTURE_NAME"
E_HASH_COLLISION = "E_HASH_COLLISION"
E_SPEC_VALUE_RANGE = "E_SPEC_VALUE_RANGE"
E_LAYOUT = "E_LAYOUT"
E_WRITE_IO = "E_WRITE_IO"
E_INTERNAL = "E_INTERNAL"


@dataclass
class NtspError(Exception):
    code: str
    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.code}: {self.message}" + (
            f" | ctx={self.context}" if self.context else ""
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context or {},
        }


def layout_error(
    message: str, context: Optional[Dict[str, Any]] = None
) -> NtspError:
    return NtspError(code=E_LAYOUT, message=message, context=context)


def internal_error(
    message: str, context: Optional[Dict[str, Any]] = None
) -> NtspError:
    return NtspError(code=E_INTERNAL, message=message, context=context)


__all__ = [
    "NtspError",
    "layout_error",
    "internal_error",
    "E_NO_TEXTURES",
    "E_DUP_TEXTURE_NAME",
    "E_HASH_COLLISION",
    "E_SPEC_VALUE_RANGE",
    "E_LAYOUT",
    "E_WRITE_IO",
    "E_INTERNAL",
]
