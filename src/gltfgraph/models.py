"""Dataclass models for the parsed glTF asset graph.

Cross references between entities are plain integer indices into the
corresponding list of :class:`Asset`; nothing holds a reference to another
entity object.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .types import (
    AccessorType,
    AlphaMode,
    AnimationInterpolation,
    AnimationPath,
    BufferTarget,
    CameraType,
    ComponentType,
    DataLocation,
    Filter,
    LightType,
    MimeType,
    PrimitiveType,
    Wrap,
)


def _identity_matrix() -> List[float]:
    return [
        1.0, 0.0, 0.0, 0.0,
        0.0, 1.0, 0.0, 0.0,
        0.0, 0.0, 1.0, 0.0,
        0.0, 0.0, 0.0, 1.0,
    ]  # fmt: skip


# ---------------------------------------------------------------------------
# Data sources (tagged union)
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class FilePathWithByteRange:
    path: Path
    offset: int = 0
    # None reads up to the end of the file.
    length: Optional[int] = None
    mime_type: MimeType = MimeType.NONE


@dataclass(slots=True)
class VectorWithMimeType:
    bytes: bytes
    mime_type: MimeType = MimeType.NONE


@dataclass(slots=True)
class BufferViewSource:
    buffer_view: int
    mime_type: MimeType = MimeType.NONE


@dataclass(slots=True)
class CustomBufferWithId:
    id: Any
    mime_type: MimeType = MimeType.NONE


DataSource = Union[
    FilePathWithByteRange, VectorWithMimeType, BufferViewSource, CustomBufferWithId
]


def location_of(source: DataSource) -> DataLocation:
    if isinstance(source, FilePathWithByteRange):
        return DataLocation.FILE_PATH_WITH_BYTE_RANGE
    if isinstance(source, VectorWithMimeType):
        return DataLocation.VECTOR_WITH_MIME_TYPE
    if isinstance(source, BufferViewSource):
        return DataLocation.BUFFER_VIEW
    if isinstance(source, CustomBufferWithId):
        return DataLocation.CUSTOM_BUFFER_WITH_ID
    raise TypeError(f"Unknown data source: {source!r}")


# ---------------------------------------------------------------------------
# Node transforms (tagged union)
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class TRS:
    translation: List[float] = field(default_factory=lambda: [0.0, 0.0, 0.0])
    # Quaternion in (x, y, z, w) order.
    rotation: List[float] = field(
        default_factory=lambda: [0.0, 0.0, 0.0, 1.0]
    )
    scale: List[float] = field(default_factory=lambda: [1.0, 1.0, 1.0])


@dataclass(slots=True)
class Matrix:
    # Column-major.
    values: List[float] = field(default_factory=_identity_matrix)


Transform = Union[TRS, Matrix]


# ---------------------------------------------------------------------------
# Buffers & accessors
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class Buffer:
    byte_length: int
    data: DataSource
    name: Optional[str] = None

    @property
    def location(self) -> DataLocation:
        return location_of(self.data)


@dataclass(slots=True)
class BufferView:
    buffer_index: int
    byte_length: int
    byte_offset: int = 0
    byte_stride: Optional[int] = None
    target: Optional[BufferTarget] = None
    name: Optional[str] = None


@dataclass(slots=True)
class SparseAccessor:
    count: int
    indices_buffer_view: int
    indices_component_type: ComponentType
    values_buffer_view: int
    indices_byte_offset: int = 0
    values_byte_offset: int = 0


@dataclass(slots=True)
class Accessor:
    type: AccessorType
    component_type: ComponentType
    count: int
    buffer_view_index: Optional[int] = None
    byte_offset: int = 0
    normalized: bool = False
    min: Optional[List[float]] = None
    max: Optional[List[float]] = None
    sparse: Optional[SparseAccessor] = None
    name: Optional[str] = None


# ---------------------------------------------------------------------------
# Images, samplers, textures, materials
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class Image:
    data: DataSource
    name: Optional[str] = None

    @property
    def location(self) -> DataLocation:
        return location_of(self.data)


@dataclass(slots=True)
class Sampler:
    mag_filter: Optional[Filter] = None
    min_filter: Optional[Filter] = None
    wrap_s: Wrap = Wrap.REPEAT
    wrap_t: Wrap = Wrap.REPEAT
    name: Optional[str] = None


@dataclass(slots=True)
class Texture:
    image_index: Optional[int] = None
    # Plain ``source`` image when an extension supplied image_index.
    fallback_image_index: Optional[int] = None
    sampler_index: Optional[int] = None
    name: Optional[str] = None


@dataclass(slots=True)
class TextureInfo:
    texture_index: int
    tex_coord: int = 0
    # normalTexture.scale or occlusionTexture.strength
    scale: float = 1.0
    # KHR_texture_transform
    rotation: float = 0.0
    uv_offset: List[float] = field(default_factory=lambda: [0.0, 0.0])
    uv_scale: List[float] = field(default_factory=lambda: [1.0, 1.0])
    tex_coord_override: Optional[int] = None


@dataclass(slots=True)
class PBRData:
    base_color_factor: List[float] = field(
        default_factory=lambda: [1.0, 1.0, 1.0, 1.0]
    )
    metallic_factor: float = 1.0
    roughness_factor: float = 1.0
    base_color_texture: Optional[TextureInfo] = None
    metallic_roughness_texture: Optional[TextureInfo] = None


@dataclass(slots=True)
class Material:
    name: Optional[str] = None
    pbr_data: Optional[PBRData] = None
    normal_texture: Optional[TextureInfo] = None
    occlusion_texture: Optional[TextureInfo] = None
    emissive_texture: Optional[TextureInfo] = None
    emissive_factor: List[float] = field(
        default_factory=lambda: [0.0, 0.0, 0.0]
    )
    alpha_mode: AlphaMode = AlphaMode.OPAQUE
    alpha_cutoff: float = 0.5
    double_sided: bool = False
    # KHR_materials_emissive_strength
    emissive_strength: float = 1.0


# ---------------------------------------------------------------------------
# Meshes, skins, cameras, lights
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class Primitive:
    attributes: Dict[str, int] = field(default_factory=dict)
    type: PrimitiveType = PrimitiveType.TRIANGLES
    indices_accessor: Optional[int] = None
    material_index: Optional[int] = None
    targets: List[Dict[str, int]] = field(default_factory=list)


@dataclass(slots=True)
class Mesh:
    primitives: List[Primitive] = field(default_factory=list)
    weights: List[float] = field(default_factory=list)
    name: Optional[str] = None


@dataclass(slots=True)
class Skin:
    joints: List[int] = field(default_factory=list)
    skeleton: Optional[int] = None
    inverse_bind_matrices: Optional[int] = None
    name: Optional[str] = None


@dataclass(slots=True)
class Perspective:
    yfov: float
    znear: float
    aspect_ratio: Optional[float] = None
    zfar: Optional[float] = None


@dataclass(slots=True)
class Orthographic:
    xmag: float
    ymag: float
    zfar: float
    znear: float


@dataclass(slots=True)
class Camera:
    camera: Union[Perspective, Orthographic]
    name: Optional[str] = None

    @property
    def type(self) -> CameraType:
        if isinstance(self.camera, Perspective):
            return CameraType.PERSPECTIVE
        return CameraType.ORTHOGRAPHIC


@dataclass(slots=True)
class Light:
    type: LightType
    color: List[float] = field(default_factory=lambda: [1.0, 1.0, 1.0])
    intensity: float = 1.0
    range: Optional[float] = None
    inner_cone_angle: Optional[float] = None
    outer_cone_angle: Optional[float] = None
    name: Optional[str] = None


# ---------------------------------------------------------------------------
# Nodes, scenes, animations
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class Node:
    name: Optional[str] = None
    mesh_index: Optional[int] = None
    skin_index: Optional[int] = None
    camera_index: Optional[int] = None
    light_index: Optional[int] = None
    children: List[int] = field(default_factory=list)
    weights: List[float] = field(default_factory=list)
    transform: Transform = field(default_factory=TRS)

    @property
    def has_matrix(self) -> bool:
        return isinstance(self.transform, Matrix)


@dataclass(slots=True)
class Scene:
    node_indices: List[int] = field(default_factory=list)
    name: Optional[str] = None


@dataclass(slots=True)
class AnimationChannel:
    sampler_index: int
    path: AnimationPath
    node_index: Optional[int] = None


@dataclass(slots=True)
class AnimationSampler:
    input_accessor: int
    output_accessor: int
    interpolation: AnimationInterpolation = AnimationInterpolation.LINEAR


@dataclass(slots=True)
class Animation:
    channels: List[AnimationChannel] = field(default_factory=list)
    samplers: List[AnimationSampler] = field(default_factory=list)
    name: Optional[str] = None


@dataclass(slots=True)
class AssetInfo:
    version: str
    generator: Optional[str] = None
    copyright: Optional[str] = None
    min_version: Optional[str] = None


@dataclass(slots=True)
class Asset:
    asset_info: Optional[AssetInfo] = None
    default_scene: Optional[int] = None
    extensions_used: List[str] = field(default_factory=list)
    extensions_required: List[str] = field(default_factory=list)
    accessors: List[Accessor] = field(default_factory=list)
    animations: List[Animation] = field(default_factory=list)
    buffers: List[Buffer] = field(default_factory=list)
    buffer_views: List[BufferView] = field(default_factory=list)
    cameras: List[Camera] = field(default_factory=list)
    images: List[Image] = field(default_factory=list)
    lights: List[Light] = field(default_factory=list)
    materials: List[Material] = field(default_factory=list)
    meshes: List[Mesh] = field(default_factory=list)
    nodes: List[Node] = field(default_factory=list)
    samplers: List[Sampler] = field(default_factory=list)
    scenes: List[Scene] = field(default_factory=list)
    skins: List[Skin] = field(default_factory=list)
    textures: List[Texture] = field(default_factory=list)


__all__ = [
    "FilePathWithByteRange",
    "VectorWithMimeType",
    "BufferViewSource",
    "CustomBufferWithId",
    "DataSource",
    "location_of",
    "TRS",
    "Matrix",
    "Transform",
    "Buffer",
    "BufferView",
    "SparseAccessor",
    "Accessor",
    "Image",
    "Sampler",
    "Texture",
    "TextureInfo",
    "PBRData",
    "Material",
    "Primitive",
    "Mesh",
    "Skin",
    "Perspective",
    "Orthographic",
    "Camera",
    "Light",
    "Node",
    "Scene",
    "AnimationChannel",
    "AnimationSampler",
    "Animation",
    "AssetInfo",
    "Asset",
]
