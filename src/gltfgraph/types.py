"""Format-level enumerations and the size tables derived from them.

Nothing in here raises: unknown inputs map to an ``INVALID`` (or ``NONE``)
member that callers must check for explicitly.
"""

from __future__ import annotations

from enum import Enum, IntEnum
from pathlib import PurePosixPath

__all__ = [
    "AccessorType",
    "ComponentType",
    "PrimitiveType",
    "BufferTarget",
    "AnimationPath",
    "AnimationInterpolation",
    "CameraType",
    "LightType",
    "AlphaMode",
    "Filter",
    "Wrap",
    "MimeType",
    "DataLocation",
    "element_count",
    "component_bit_size",
    "element_byte_size",
    "component_type_from_code",
    "accessor_type_from_string",
    "mime_type_from_string",
    "mime_type_from_path",
    "mime_type_from_bytes",
    "IMAGE_MIME_TYPES",
]


class AccessorType(Enum):
    INVALID = "INVALID"
    SCALAR = "SCALAR"
    VEC2 = "VEC2"
    VEC3 = "VEC3"
    VEC4 = "VEC4"
    MAT2 = "MAT2"
    MAT3 = "MAT3"
    MAT4 = "MAT4"


class ComponentType(IntEnum):
    INVALID = 0
    BYTE = 5120
    UNSIGNED_BYTE = 5121
    SHORT = 5122
    UNSIGNED_SHORT = 5123
    UNSIGNED_INT = 5125
    FLOAT = 5126
    # Not part of glTF 2.0; only accepted with Options.ALLOW_DOUBLE.
    DOUBLE = 5130


class PrimitiveType(IntEnum):
    POINTS = 0
    LINES = 1
    LINE_LOOP = 2
    LINE_STRIP = 3
    TRIANGLES = 4
    TRIANGLE_STRIP = 5
    TRIANGLE_FAN = 6


class BufferTarget(IntEnum):
    ARRAY_BUFFER = 34962
    ELEMENT_ARRAY_BUFFER = 34963


class AnimationPath(Enum):
    TRANSLATION = "translation"
    ROTATION = "rotation"
    SCALE = "scale"
    WEIGHTS = "weights"


class AnimationInterpolation(Enum):
    LINEAR = "LINEAR"
    STEP = "STEP"
    CUBIC_SPLINE = "CUBICSPLINE"


class CameraType(Enum):
    PERSPECTIVE = "perspective"
    ORTHOGRAPHIC = "orthographic"


class LightType(Enum):
    DIRECTIONAL = "directional"
    SPOT = "spot"
    POINT = "point"


class AlphaMode(Enum):
    OPAQUE = "OPAQUE"
    MASK = "MASK"
    BLEND = "BLEND"


class Filter(IntEnum):
    NEAREST = 9728
    LINEAR = 9729
    NEAREST_MIPMAP_NEAREST = 9984
    LINEAR_MIPMAP_NEAREST = 9985
    NEAREST_MIPMAP_LINEAR = 9986
    LINEAR_MIPMAP_LINEAR = 9987


class Wrap(IntEnum):
    CLAMP_TO_EDGE = 33071
    MIRRORED_REPEAT = 33648
    REPEAT = 10497


class MimeType(Enum):
    NONE = ""
    JPEG = "image/jpeg"
    PNG = "image/png"
    KTX2 = "image/ktx2"
    DDS = "image/vnd-ms.dds"
    GLTF_BUFFER = "application/gltf-buffer"
    OCTET_STREAM = "application/octet-stream"


class DataLocation(Enum):
    FILE_PATH_WITH_BYTE_RANGE = "FilePathWithByteRange"
    VECTOR_WITH_MIME_TYPE = "VectorWithMimeType"
    BUFFER_VIEW = "BufferView"
    CUSTOM_BUFFER_WITH_ID = "CustomBufferWithId"


_ELEMENT_COUNTS = {
    AccessorType.SCALAR: 1,
    AccessorType.VEC2: 2,
    AccessorType.VEC3: 3,
    AccessorType.VEC4: 4,
    AccessorType.MAT2: 4,
    AccessorType.MAT3: 9,
    AccessorType.MAT4: 16,
}

_COMPONENT_BITS = {
    ComponentType.BYTE: 8,
    ComponentType.UNSIGNED_BYTE: 8,
    ComponentType.SHORT: 16,
    ComponentType.UNSIGNED_SHORT: 16,
    ComponentType.UNSIGNED_INT: 32,
    ComponentType.FLOAT: 32,
    ComponentType.DOUBLE: 64,
}

_MIME_SUFFIXES = {
    ".jpg": MimeType.JPEG,
    ".jpeg": MimeType.JPEG,
    ".png": MimeType.PNG,
    ".ktx2": MimeType.KTX2,
    ".dds": MimeType.DDS,
    ".bin": MimeType.OCTET_STREAM,
    ".glbin": MimeType.GLTF_BUFFER,
}

IMAGE_MIME_TYPES = frozenset(
    {MimeType.JPEG, MimeType.PNG, MimeType.KTX2, MimeType.DDS}
)

# Leading bytes of each image container.
_MIME_MAGIC = (
    (b"\x89PNG", MimeType.PNG),
    (b"\xff\xd8\xff", MimeType.JPEG),
    (b"\xabKTX 20", MimeType.KTX2),
    (b"DDS ", MimeType.DDS),
)


def element_count(shape: AccessorType) -> int:
    return _ELEMENT_COUNTS.get(shape, 0)


def component_bit_size(component_type: ComponentType) -> int:
    return _COMPONENT_BITS.get(component_type, 0)


def element_byte_size(
    shape: AccessorType, component_type: ComponentType
) -> int:
    """Size in bytes of one accessor element (0 for invalid combinations)."""
    return element_count(shape) * component_bit_size(component_type) // 8


def component_type_from_code(code: int) -> ComponentType:
    """Map a glTF ``componentType`` code; unknown codes yield INVALID."""
    try:
        return ComponentType(code)
    except ValueError:
        return ComponentType.INVALID


def accessor_type_from_string(name: str) -> AccessorType:
    try:
        shape = AccessorType(name)
    except ValueError:
        return AccessorType.INVALID
    return shape


def mime_type_from_string(text: str) -> MimeType:
    try:
        return MimeType(text.strip().lower())
    except ValueError:
        return MimeType.NONE


def mime_type_from_path(path: str) -> MimeType:
    suffix = PurePosixPath(path).suffix.lower()
    return _MIME_SUFFIXES.get(suffix, MimeType.NONE)


def mime_type_from_bytes(data: bytes) -> MimeType:
    """Guess an image MIME type from its magic bytes."""
    for magic, mime in _MIME_MAGIC:
        if data.startswith(magic):
            return mime
    return MimeType.NONE
