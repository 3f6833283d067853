"""Data locator: where the bytes of a buffer or image live.

Each buffer/image resolves to exactly one data source variant:

- FilePathWithByteRange: external file (or the BIN chunk of a file-backed
  GLB); never read at locate time.
- VectorWithMimeType: base64 data URI (or eagerly loaded bytes).
- BufferViewSource: image stored inside a buffer view.
- CustomBufferWithId: buffer copied into caller-allocated memory obtained
  from the registered allocation callback.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import unquote_to_bytes

from .document import GlbData
from .errors import Error, GltfError, index_out_of_range, missing_field
from .fields import get_optional_index, get_string, get_uint
from .logging import get_logger
from .models import (
    Asset,
    BufferViewSource,
    CustomBufferWithId,
    DataSource,
    FilePathWithByteRange,
    VectorWithMimeType,
)
from .options import Options
from .types import (
    IMAGE_MIME_TYPES,
    MimeType,
    mime_type_from_bytes,
    mime_type_from_path,
    mime_type_from_string,
)
from .utils.io import read_file_range
from .utils.paths import compose_path, uri_scheme

__all__ = [
    "BufferInfo",
    "BufferAllocationCallback",
    "BufferFreeCallback",
    "DataLocator",
    "decode_data_uri",
    "read_source",
]


@dataclass(slots=True)
class BufferInfo:
    """Allocation returned by a buffer allocation callback.

    ``mapped_memory`` is any writable buffer-protocol object (``bytearray``,
    ``mmap``, numpy array, ...) of at least the requested size, or None when
    the caller only wants the id. It stays owned by the caller.
    """

    mapped_memory: Any
    custom_id: Any


BufferAllocationCallback = Callable[[int, Any], BufferInfo]
BufferFreeCallback = Callable[[BufferInfo, Any], None]


def decode_data_uri(uri: str, path: str = "") -> Tuple[bytes, MimeType]:
    """Decode ``data:[<mime>][;base64],<payload>``."""
    header, sep, payload = uri[5:].partition(",")
    if not sep:
        raise GltfError(
            Error.INVALID_GLTF, "Malformed data URI (no ',')", {"path": path}
        )
    params = header.split(";")
    mime_text = params[0]
    if "base64" in params[1:]:
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise GltfError(
                Error.INVALID_GLTF, f"Malformed base64 payload: {e}", {"path": path}
            ) from e
    else:
        data = unquote_to_bytes(payload)
    mime = mime_type_from_string(mime_text) if mime_text else MimeType.NONE
    if mime_text and mime is MimeType.NONE:
        raise GltfError(
            Error.UNSUPPORTED_MIME_TYPE,
            f"Unsupported data URI MIME type '{mime_text}'",
            {"path": path},
        )
    return data, mime


def _write_into(info: BufferInfo, payload: bytes, path: str) -> None:
    if info.mapped_memory is None:
        return
    try:
        view = memoryview(info.mapped_memory)
        if view.format != "B" or view.ndim != 1:
            view = view.cast("B")
    except (TypeError, ValueError) as e:
        raise GltfError(
            Error.INVALID_GLTF,
            f"Allocated memory is not a writable buffer: {e}",
            {"path": path, "id": info.custom_id},
        ) from e
    if view.readonly or len(view) < len(payload):
        raise GltfError(
            Error.INVALID_GLTF,
            f"Allocated memory cannot hold {len(payload)} bytes",
            {"path": path},
        )
    view[: len(payload)] = payload


@dataclass
class DataLocator:
    base_dir: Path
    options: Options = Options.NONE
    allocate: Optional[BufferAllocationCallback] = None
    user_pointer: Any = None
    glb: Optional[GlbData] = None
    # Allocations made by locate_buffer() since the last take_allocations().
    allocations: List[BufferInfo] = field(default_factory=list)

    def take_allocations(self) -> List[BufferInfo]:
        taken, self.allocations = self.allocations, []
        return taken

    # Buffers ---------------------------------------------------------------
    def locate_buffer(
        self, entry: Dict[str, Any], index: int, path: str
    ) -> DataSource:
        byte_length = get_uint(entry, "byteLength", path)
        uri = get_string(entry, "uri", path)

        if uri is None:
            if index == 0 and self.glb is not None and self.glb.bin_chunk is not None:
                return self._locate_glb_chunk(byte_length, path)
            if self.allocate is not None:
                return self._custom(byte_length, None, MimeType.NONE, path)
            raise GltfError(
                Error.MISSING_DATA,
                f"Buffer {index} has no uri and no GLB binary chunk",
                {"path": path},
            )

        if uri.startswith("data:"):
            data, mime = decode_data_uri(uri, f"{path}.uri")
            if len(data) < byte_length:
                raise GltfError(
                    Error.INVALID_GLTF,
                    f"Embedded data ({len(data)} bytes) shorter than byteLength {byte_length}",
                    {"path": path},
                )
            if self.allocate is not None:
                return self._custom(byte_length, data[:byte_length], mime, path)
            return VectorWithMimeType(bytes=data, mime_type=mime)

        file_path = self._file_path(uri, f"{path}.uri")
        mime = mime_type_from_path(uri)
        if self.allocate is not None:
            data = read_file_range(file_path)
            return self._custom(byte_length, data[:byte_length], mime, path)
        if self.options & Options.LOAD_EXTERNAL_BUFFERS:
            return VectorWithMimeType(
                bytes=read_file_range(file_path), mime_type=mime
            )
        return FilePathWithByteRange(path=file_path, mime_type=mime)

    def _locate_glb_chunk(self, byte_length: int, path: str) -> DataSource:
        glb = self.glb
        assert glb is not None and glb.bin_chunk is not None
        if glb.bin_length < byte_length:
            raise GltfError(
                Error.INVALID_GLB,
                f"BIN chunk ({glb.bin_length} bytes) shorter than byteLength {byte_length}",
                {"path": path},
            )
        if self.allocate is not None:
            return self._custom(
                byte_length, glb.bin_chunk[:byte_length], MimeType.GLTF_BUFFER, path
            )
        if glb.path is None or self.options & Options.LOAD_GLB_BUFFERS:
            return VectorWithMimeType(
                bytes=glb.bin_chunk, mime_type=MimeType.GLTF_BUFFER
            )
        return FilePathWithByteRange(
            path=glb.path,
            offset=glb.bin_offset,
            length=glb.bin_length,
            mime_type=MimeType.GLTF_BUFFER,
        )

    def _custom(
        self,
        byte_length: int,
        payload: Optional[bytes],
        mime: MimeType,
        path: str,
    ) -> CustomBufferWithId:
        assert self.allocate is not None
        info = self.allocate(byte_length, self.user_pointer)
        self.allocations.append(info)
        if payload is not None:
            _write_into(info, payload, path)
        get_logger().debug(
            "Allocated custom buffer id=%r (%d bytes) for %s",
            info.custom_id,
            byte_length,
            path,
        )
        return CustomBufferWithId(id=info.custom_id, mime_type=mime)

    # Images ----------------------------------------------------------------
    def locate_image(self, entry: Dict[str, Any], path: str) -> DataSource:
        declared = get_string(entry, "mimeType", path)
        mime = MimeType.NONE
        if declared is not None:
            mime = mime_type_from_string(declared)
            if mime is MimeType.NONE:
                raise GltfError(
                    Error.UNSUPPORTED_MIME_TYPE,
                    f"Unsupported image MIME type '{declared}'",
                    {"path": f"{path}.mimeType"},
                )

        buffer_view = get_optional_index(entry, "bufferView", path)
        if buffer_view is not None:
            if declared is None:
                raise missing_field(f"{path}.mimeType", "string with bufferView")
            return BufferViewSource(buffer_view=buffer_view, mime_type=mime)

        uri = get_string(entry, "uri", path)
        if uri is None:
            raise GltfError(
                Error.MISSING_DATA,
                "Image has neither uri nor bufferView",
                {"path": path},
            )
        if uri.startswith("data:"):
            data, uri_mime = decode_data_uri(uri, f"{path}.uri")
            # Sniff only when neither mimeType nor the header names an image.
            if mime not in IMAGE_MIME_TYPES:
                if uri_mime in IMAGE_MIME_TYPES:
                    mime = uri_mime
                else:
                    sniffed = mime_type_from_bytes(data)
                    if sniffed is not MimeType.NONE:
                        mime = sniffed
                    elif mime is MimeType.NONE:
                        mime = uri_mime
            return VectorWithMimeType(bytes=data, mime_type=mime)
        if mime is MimeType.NONE:
            mime = mime_type_from_path(uri)
        return FilePathWithByteRange(
            path=self._file_path(uri, f"{path}.uri"), mime_type=mime
        )

    def _file_path(self, uri: str, path: str) -> Path:
        scheme = uri_scheme(uri)
        if scheme not in ("", "file"):
            raise GltfError(
                Error.INVALID_PATH,
                f"Unsupported URI scheme '{scheme}'",
                {"path": path, "uri": uri},
            )
        return compose_path(self.base_dir, uri)


def read_source(source: DataSource, asset: Asset) -> bytes:
    """Return the bytes behind a data source, reading files on demand."""
    if isinstance(source, VectorWithMimeType):
        return source.bytes
    if isinstance(source, FilePathWithByteRange):
        return read_file_range(source.path, source.offset, source.length)
    if isinstance(source, BufferViewSource):
        views = asset.buffer_views
        if source.buffer_view >= len(views):
            raise index_out_of_range("bufferView", source.buffer_view, len(views))
        view = views[source.buffer_view]
        if view.buffer_index >= len(asset.buffers):
            raise index_out_of_range(
                "buffer", view.buffer_index, len(asset.buffers)
            )
        data = read_source(asset.buffers[view.buffer_index].data, asset)
        end = view.byte_offset + view.byte_length
        if end > len(data):
            raise GltfError(
                Error.INVALID_GLTF,
                f"Buffer view range {view.byte_offset}+{view.byte_length} exceeds buffer",
                {"buffer_view": source.buffer_view},
            )
        return data[view.byte_offset : end]
    if isinstance(source, CustomBufferWithId):
        raise GltfError(
            Error.MISSING_DATA,
            "Custom buffer memory is owned by the caller",
            {"id": source.id},
        )
    raise TypeError(f"Unknown data source: {source!r}")
