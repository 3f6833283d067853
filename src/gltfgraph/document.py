"""Document handles: JSON glTF text and binary GLB containers.

GLB layout (all little endian):
  header: magic 'glTF', version (2), total length      -> 12 bytes
  chunk:  length, type ('JSON' | 'BIN\\0'), payload     -> 8 + length bytes
The first chunk must be JSON; an optional BIN chunk follows.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional
import json
import struct

from .errors import Error, GltfError

__all__ = [
    "JsonData",
    "GlbData",
    "is_glb",
    "GLB_MAGIC",
    "GLB_HEADER_SIZE",
    "GLB_CHUNK_HEADER_SIZE",
    "CHUNK_TYPE_JSON",
    "CHUNK_TYPE_BIN",
]

GLB_MAGIC = 0x46546C67  # b"glTF"
GLB_VERSION = 2
GLB_HEADER_SIZE = 12
GLB_CHUNK_HEADER_SIZE = 8
CHUNK_TYPE_JSON = 0x4E4F534A  # b"JSON"
CHUNK_TYPE_BIN = 0x004E4942  # b"BIN\0"


class JsonData:
    """Read-only parsed JSON document."""

    def __init__(self, root: Any, path: Optional[Path] = None) -> None:
        self._root = root
        self.path = path

    @property
    def root(self) -> Any:
        return self._root

    @classmethod
    def from_string(cls, text: str, path: Optional[Path] = None) -> "JsonData":
        try:
            root = json.loads(text)
        except json.JSONDecodeError as e:
            raise GltfError(
                Error.INVALID_JSON,
                f"Malformed JSON: {e.msg} (line {e.lineno} col {e.colno})",
                {"path": str(path) if path else ""},
            ) from e
        return cls(root, path)

    @classmethod
    def from_bytes(cls, data: bytes, path: Optional[Path] = None) -> "JsonData":
        try:
            text = bytes(data).decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise GltfError(
                Error.INVALID_JSON, f"Document is not UTF-8: {e}"
            ) from e
        return cls.from_string(text, path)

    @classmethod
    def from_path(cls, path: str | Path) -> "JsonData":
        p = Path(path)
        if not p.is_file():
            raise GltfError(
                Error.FILE_NOT_FOUND, f"File not found: {p}", {"path": str(p)}
            )
        return cls.from_bytes(p.read_bytes(), p)


def is_glb(data: bytes) -> bool:
    return (
        len(data) >= 4 and struct.unpack_from("<I", data, 0)[0] == GLB_MAGIC
    )


def _glb_error(message: str) -> GltfError:
    return GltfError(Error.INVALID_GLB, message)


@dataclass
class GlbData:
    """Parsed binary glTF container.

    ``bin_offset`` is the absolute offset of the BIN chunk payload inside the
    container so a file-backed GLB can be read lazily by byte range.
    """

    json: JsonData
    bin_chunk: Optional[bytes] = None
    bin_offset: int = 0
    path: Optional[Path] = None

    @property
    def bin_length(self) -> int:
        return len(self.bin_chunk) if self.bin_chunk is not None else 0

    @classmethod
    def from_bytes(cls, data: bytes, path: Optional[Path] = None) -> "GlbData":
        if len(data) < GLB_HEADER_SIZE:
            raise _glb_error("File too small for a GLB header")
        magic, version, length = struct.unpack_from("<III", data, 0)
        if magic != GLB_MAGIC:
            raise _glb_error("Bad GLB magic")
        if version != GLB_VERSION:
            raise _glb_error(f"Unsupported GLB version {version}")
        if length > len(data):
            raise _glb_error(
                f"Declared length {length} exceeds data size {len(data)}"
            )

        off = GLB_HEADER_SIZE
        if off + GLB_CHUNK_HEADER_SIZE > length:
            raise _glb_error("Missing JSON chunk")
        chunk_length, chunk_type = struct.unpack_from("<II", data, off)
        off += GLB_CHUNK_HEADER_SIZE
        if chunk_type != CHUNK_TYPE_JSON:
            raise _glb_error("First chunk is not JSON")
        if off + chunk_length > length:
            raise _glb_error("JSON chunk exceeds container length")
        json_data = JsonData.from_bytes(data[off : off + chunk_length], path)
        off += chunk_length

        bin_chunk: Optional[bytes] = None
        bin_offset = 0
        if off + GLB_CHUNK_HEADER_SIZE <= length:
            chunk_length, chunk_type = struct.unpack_from("<II", data, off)
            off += GLB_CHUNK_HEADER_SIZE
            if chunk_type == CHUNK_TYPE_BIN:
                if off + chunk_length > length:
                    raise _glb_error("BIN chunk exceeds container length")
                bin_chunk = bytes(data[off : off + chunk_length])
                bin_offset = off
        return cls(
            json=json_data, bin_chunk=bin_chunk, bin_offset=bin_offset, path=path
        )

    @classmethod
    def from_path(cls, path: str | Path) -> "GlbData":
        p = Path(path)
        if not p.is_file():
            raise GltfError(
                Error.FILE_NOT_FOUND, f"File not found: {p}", {"path": str(p)}
            )
        return cls.from_bytes(p.read_bytes(), p)
