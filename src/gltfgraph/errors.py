"""Error definitions for gltfgraph.

Public entry points report an :class:`Error` value. Internally failures are
raised as :class:`GltfError` and converted back into the value at the
boundary (``Parser.load_gltf``, ``Gltf.parse``, ``Gltf.validate``).
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class Error(Enum):
    NONE = "E_NONE"
    INVALID_PATH = "E_INVALID_PATH"
    MISSING_EXTENSIONS = "E_MISSING_EXTENSIONS"
    INVALID_OR_MISSING_ASSET_FIELD = "E_INVALID_OR_MISSING_ASSET_FIELD"
    INVALID_JSON = "E_INVALID_JSON"
    INVALID_GLTF = "E_INVALID_GLTF"
    INVALID_GLB = "E_INVALID_GLB"
    INVALID_OR_MISSING_REQUIRED_FIELD = "E_INVALID_OR_MISSING_REQUIRED_FIELD"
    INDEX_OUT_OF_RANGE = "E_INDEX_OUT_OF_RANGE"
    MISSING_DATA = "E_MISSING_DATA"
    UNSUPPORTED_MIME_TYPE = "E_UNSUPPORTED_MIME_TYPE"
    FILE_NOT_FOUND = "E_FILE_NOT_FOUND"
    FILE_READ_ERROR = "E_FILE_READ_ERROR"
    NOT_PARSED = "E_NOT_PARSED"


@dataclass
class GltfError(Exception):
    code: Error
    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.code.value}: {self.message}" + (
            f" | ctx={self.context}" if self.context else ""
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "context": self.context or {},
        }


def missing_field(path: str, expected: str = "") -> GltfError:
    message = f"Missing or invalid required field '{path}'"
    if expected:
        message += f" (expected {expected})"
    return GltfError(
        Error.INVALID_OR_MISSING_REQUIRED_FIELD, message, {"path": path}
    )


def invalid_gltf(message: str, path: str = "") -> GltfError:
    return GltfError(
        Error.INVALID_GLTF, message, {"path": path} if path else None
    )


def index_out_of_range(path: str, index: int, size: int) -> GltfError:
    return GltfError(
        Error.INDEX_OUT_OF_RANGE,
        f"Index {index} at '{path}' is out of range (size={size})",
        {"path": path, "index": index, "size": size},
    )


__all__ = [
    "Error",
    "GltfError",
    "missing_field",
    "invalid_gltf",
    "index_out_of_range",
]
