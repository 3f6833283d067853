"""IO helpers for reading resolved buffer and image bytes."""

from __future__ import annotations
from pathlib import Path
from typing import Optional

from ..errors import Error, GltfError

__all__ = ["read_file_range", "MAX_FILE_SIZE"]

MAX_FILE_SIZE = 2 * 1024 * 1024 * 1024


def read_file_range(
    path: Path,
    offset: int = 0,
    length: Optional[int] = None,
    max_size: int = MAX_FILE_SIZE,
) -> bytes:
    """Read ``length`` bytes at ``offset`` (up to EOF when length is None)."""
    if not path.is_file():
        raise GltfError(
            Error.FILE_NOT_FOUND, f"File not found: {path}", {"path": str(path)}
        )
    size = path.stat().st_size
    if size > max_size:
        raise GltfError(
            Error.FILE_READ_ERROR,
            f"File too large: {size}>{max_size}",
            {"path": str(path)},
        )
    if length is None:
        length = size - offset
    if offset < 0 or length < 0 or offset + length > size:
        raise GltfError(
            Error.FILE_READ_ERROR,
            f"Byte range {offset}+{length} exceeds file size {size}",
            {"path": str(path), "offset": offset, "length": length},
        )
    try:
        with path.open("rb") as f:
            f.seek(offset)
            data = f.read(length)
    except OSError as e:
        raise GltfError(
            Error.FILE_READ_ERROR,
            f"Failed to read {path}: {e}",
            {"path": str(path)},
        ) from e
    if len(data) != length:
        raise GltfError(
            Error.FILE_READ_ERROR,
            f"Short read from {path}: {len(data)}<{length}",
            {"path": str(path)},
        )
    return data
