"""Referential and value validation of a parsed asset graph.

Checks run category by category and stop at the first violation, which is
raised as :class:`~gltfgraph.errors.GltfError`:

- ``INDEX_OUT_OF_RANGE`` for a reference past the end of its list
- ``INVALID_GLTF`` for a value constraint (counts, strides, camera planes)

References into categories that were not parsed are skipped, so a partially
parsed asset validates against what it holds.
"""

from __future__ import annotations

import math
from typing import Dict, List, Optional

from .errors import index_out_of_range, invalid_gltf
from .models import (
    Asset,
    BufferViewSource,
    Matrix,
    Orthographic,
    Perspective,
    TRS,
    TextureInfo,
)
from .options import Category
from .types import (
    AccessorType,
    ComponentType,
    LightType,
    element_byte_size,
)

__all__ = ["validate_asset"]

_SPARSE_INDEX_TYPES = (
    ComponentType.UNSIGNED_BYTE,
    ComponentType.UNSIGNED_SHORT,
    ComponentType.UNSIGNED_INT,
)


class _Refs:
    """Index checks against the list sizes of the parsed categories."""

    def __init__(self, asset: Asset, parsed: Category) -> None:
        self._sizes: Dict[Category, int] = {
            Category.ACCESSORS: len(asset.accessors),
            Category.BUFFERS: len(asset.buffers),
            Category.BUFFER_VIEWS: len(asset.buffer_views),
            Category.CAMERAS: len(asset.cameras),
            Category.IMAGES: len(asset.images),
            Category.LIGHTS: len(asset.lights),
            Category.MATERIALS: len(asset.materials),
            Category.MESHES: len(asset.meshes),
            Category.NODES: len(asset.nodes),
            Category.SAMPLERS: len(asset.samplers),
            Category.SCENES: len(asset.scenes),
            Category.SKINS: len(asset.skins),
            Category.TEXTURES: len(asset.textures),
        }
        self._parsed = parsed

    def check(self, category: Category, index: Optional[int], path: str) -> None:
        if index is None or not self._parsed & category:
            return
        size = self._sizes[category]
        if index >= size:
            raise index_out_of_range(path, index, size)

    def check_all(self, category: Category, indices: List[int], path: str) -> None:
        for i, index in enumerate(indices):
            self.check(category, index, f"{path}[{i}]")


def _validate_buffers(asset: Asset, refs: _Refs) -> None:
    for i, buffer in enumerate(asset.buffers):
        if buffer.byte_length < 1:
            raise invalid_gltf(
                "Buffer byteLength must be at least 1", f"buffers[{i}].byteLength"
            )


def _validate_buffer_views(asset: Asset, refs: _Refs, parsed: Category) -> None:
    for i, view in enumerate(asset.buffer_views):
        path = f"bufferViews[{i}]"
        refs.check(Category.BUFFERS, view.buffer_index, path + ".buffer")
        if view.byte_length < 1:
            raise invalid_gltf(
                "Buffer view byteLength must be at least 1", path + ".byteLength"
            )
        stride = view.byte_stride
        if stride is not None and (stride < 4 or stride > 252 or stride % 4):
            raise invalid_gltf(
                f"byteStride {stride} must be a multiple of 4 in [4, 252]",
                path + ".byteStride",
            )
        if parsed & Category.BUFFERS:
            buffer = asset.buffers[view.buffer_index]
            if view.byte_offset + view.byte_length > buffer.byte_length:
                raise invalid_gltf(
                    "Buffer view range exceeds its buffer", path + ".byteLength"
                )


def _validate_accessors(asset: Asset, refs: _Refs) -> None:
    for i, accessor in enumerate(asset.accessors):
        path = f"accessors[{i}]"
        if accessor.type is AccessorType.INVALID:
            raise invalid_gltf("Invalid accessor type", path + ".type")
        if accessor.component_type is ComponentType.INVALID:
            raise invalid_gltf("Invalid componentType", path + ".componentType")
        if accessor.count < 1:
            raise invalid_gltf("Accessor count must be at least 1", path + ".count")
        if element_byte_size(accessor.type, accessor.component_type) == 0:
            raise invalid_gltf("Accessor element size is zero", path)
        refs.check(
            Category.BUFFER_VIEWS, accessor.buffer_view_index, path + ".bufferView"
        )
        sparse = accessor.sparse
        if sparse is None:
            continue
        sparse_path = path + ".sparse"
        if sparse.indices_component_type not in _SPARSE_INDEX_TYPES:
            raise invalid_gltf(
                "Sparse indices must use an unsigned integer component type",
                sparse_path + ".indices.componentType",
            )
        refs.check(
            Category.BUFFER_VIEWS,
            sparse.indices_buffer_view,
            sparse_path + ".indices.bufferView",
        )
        refs.check(
            Category.BUFFER_VIEWS,
            sparse.values_buffer_view,
            sparse_path + ".values.bufferView",
        )


def _validate_images(asset: Asset, refs: _Refs) -> None:
    for i, image in enumerate(asset.images):
        if isinstance(image.data, BufferViewSource):
            refs.check(
                Category.BUFFER_VIEWS,
                image.data.buffer_view,
                f"images[{i}].bufferView",
            )


def _validate_textures(asset: Asset, refs: _Refs) -> None:
    for i, texture in enumerate(asset.textures):
        path = f"textures[{i}]"
        refs.check(Category.IMAGES, texture.image_index, path + ".source")
        refs.check(
            Category.IMAGES, texture.fallback_image_index, path + ".fallbackSource"
        )
        refs.check(Category.SAMPLERS, texture.sampler_index, path + ".sampler")


def _check_texture_info(
    refs: _Refs, info: Optional[TextureInfo], path: str
) -> None:
    if info is not None:
        refs.check(Category.TEXTURES, info.texture_index, path + ".index")


def _validate_materials(asset: Asset, refs: _Refs) -> None:
    for i, material in enumerate(asset.materials):
        path = f"materials[{i}]"
        if material.alpha_cutoff < 0:
            raise invalid_gltf("alphaCutoff must be >= 0", path + ".alphaCutoff")
        _check_texture_info(refs, material.normal_texture, path + ".normalTexture")
        _check_texture_info(
            refs, material.occlusion_texture, path + ".occlusionTexture"
        )
        _check_texture_info(
            refs, material.emissive_texture, path + ".emissiveTexture"
        )
        pbr = material.pbr_data
        if pbr is not None:
            pbr_path = path + ".pbrMetallicRoughness"
            _check_texture_info(
                refs, pbr.base_color_texture, pbr_path + ".baseColorTexture"
            )
            _check_texture_info(
                refs,
                pbr.metallic_roughness_texture,
                pbr_path + ".metallicRoughnessTexture",
            )


def _validate_meshes(asset: Asset, refs: _Refs) -> None:
    for i, mesh in enumerate(asset.meshes):
        path = f"meshes[{i}]"
        if not mesh.primitives:
            raise invalid_gltf("Mesh has no primitives", path + ".primitives")
        for p, primitive in enumerate(mesh.primitives):
            prim_path = f"{path}.primitives[{p}]"
            for name, index in primitive.attributes.items():
                refs.check(
                    Category.ACCESSORS, index, f"{prim_path}.attributes.{name}"
                )
            refs.check(
                Category.ACCESSORS, primitive.indices_accessor, prim_path + ".indices"
            )
            refs.check(
                Category.MATERIALS, primitive.material_index, prim_path + ".material"
            )
            for t, target in enumerate(primitive.targets):
                for name, index in target.items():
                    refs.check(
                        Category.ACCESSORS,
                        index,
                        f"{prim_path}.targets[{t}].{name}",
                    )


def _validate_cameras(asset: Asset) -> None:
    for i, camera in enumerate(asset.cameras):
        path = f"cameras[{i}]"
        projection = camera.camera
        if isinstance(projection, Perspective):
            sub = path + ".perspective"
            if projection.yfov <= 0:
                raise invalid_gltf("yfov must be > 0", sub + ".yfov")
            if projection.znear <= 0:
                raise invalid_gltf("znear must be > 0", sub + ".znear")
            if projection.aspect_ratio is not None and projection.aspect_ratio <= 0:
                raise invalid_gltf("aspectRatio must be > 0", sub + ".aspectRatio")
            if projection.zfar is not None and projection.zfar <= projection.znear:
                raise invalid_gltf("zfar must be greater than znear", sub + ".zfar")
        elif isinstance(projection, Orthographic):
            sub = path + ".orthographic"
            if projection.xmag == 0 or projection.ymag == 0:
                raise invalid_gltf("xmag and ymag must be non-zero", sub)
            if projection.znear < 0:
                raise invalid_gltf("znear must be >= 0", sub + ".znear")
            if projection.zfar <= 0 or projection.zfar <= projection.znear:
                raise invalid_gltf("zfar must be greater than znear", sub + ".zfar")


def _validate_lights(asset: Asset) -> None:
    for i, light in enumerate(asset.lights):
        path = f"extensions.KHR_lights_punctual.lights[{i}]"
        if light.range is not None and light.range <= 0:
            raise invalid_gltf("Light range must be > 0", path + ".range")
        if light.type is not LightType.SPOT:
            continue
        inner = light.inner_cone_angle or 0.0
        outer = (
            light.outer_cone_angle
            if light.outer_cone_angle is not None
            else math.pi / 4
        )
        if inner < 0 or inner >= outer or outer > math.pi / 2:
            raise invalid_gltf(
                "Spot cone angles must satisfy 0 <= inner < outer <= pi/2",
                path + ".spot",
            )


def _validate_skins(asset: Asset, refs: _Refs) -> None:
    for i, skin in enumerate(asset.skins):
        path = f"skins[{i}]"
        if not skin.joints:
            raise invalid_gltf("Skin has no joints", path + ".joints")
        refs.check_all(Category.NODES, skin.joints, path + ".joints")
        refs.check(Category.NODES, skin.skeleton, path + ".skeleton")
        refs.check(
            Category.ACCESSORS,
            skin.inverse_bind_matrices,
            path + ".inverseBindMatrices",
        )


def _validate_nodes(asset: Asset, refs: _Refs) -> None:
    for i, node in enumerate(asset.nodes):
        path = f"nodes[{i}]"
        refs.check(Category.MESHES, node.mesh_index, path + ".mesh")
        refs.check(Category.SKINS, node.skin_index, path + ".skin")
        refs.check(Category.CAMERAS, node.camera_index, path + ".camera")
        refs.check(
            Category.LIGHTS,
            node.light_index,
            path + ".extensions.KHR_lights_punctual.light",
        )
        refs.check_all(Category.NODES, node.children, path + ".children")
        if i in node.children:
            raise invalid_gltf("Node lists itself as a child", path + ".children")
        transform = node.transform
        if isinstance(transform, Matrix):
            if len(transform.values) != 16:
                raise invalid_gltf("Matrix must have 16 values", path + ".matrix")
        elif isinstance(transform, TRS):
            if (
                len(transform.translation) != 3
                or len(transform.rotation) != 4
                or len(transform.scale) != 3
            ):
                raise invalid_gltf("Malformed TRS transform", path)
        else:
            raise invalid_gltf("Node has no transform", path)


def _validate_scenes(asset: Asset, refs: _Refs) -> None:
    for i, scene in enumerate(asset.scenes):
        refs.check_all(Category.NODES, scene.node_indices, f"scenes[{i}].nodes")
    refs.check(Category.SCENES, asset.default_scene, "scene")


def _validate_animations(asset: Asset, refs: _Refs) -> None:
    for i, animation in enumerate(asset.animations):
        path = f"animations[{i}]"
        if not animation.channels:
            raise invalid_gltf("Animation has no channels", path + ".channels")
        if not animation.samplers:
            raise invalid_gltf("Animation has no samplers", path + ".samplers")
        for c, channel in enumerate(animation.channels):
            ch_path = f"{path}.channels[{c}]"
            if channel.sampler_index >= len(animation.samplers):
                raise index_out_of_range(
                    ch_path + ".sampler",
                    channel.sampler_index,
                    len(animation.samplers),
                )
            refs.check(Category.NODES, channel.node_index, ch_path + ".target.node")
        for s, sampler in enumerate(animation.samplers):
            s_path = f"{path}.samplers[{s}]"
            refs.check(Category.ACCESSORS, sampler.input_accessor, s_path + ".input")
            refs.check(
                Category.ACCESSORS, sampler.output_accessor, s_path + ".output"
            )


def validate_asset(asset: Asset, parsed: Category = Category.ALL) -> None:
    """Raise GltfError for the first violation found in ``asset``."""
    refs = _Refs(asset, parsed)
    if parsed & Category.BUFFERS:
        _validate_buffers(asset, refs)
    if parsed & Category.BUFFER_VIEWS:
        _validate_buffer_views(asset, refs, parsed)
    if parsed & Category.ACCESSORS:
        _validate_accessors(asset, refs)
    if parsed & Category.IMAGES:
        _validate_images(asset, refs)
    if parsed & Category.TEXTURES:
        _validate_textures(asset, refs)
    if parsed & Category.MATERIALS:
        _validate_materials(asset, refs)
    if parsed & Category.MESHES:
        _validate_meshes(asset, refs)
    if parsed & Category.CAMERAS:
        _validate_cameras(asset)
    if parsed & Category.LIGHTS:
        _validate_lights(asset)
    if parsed & Category.SKINS:
        _validate_skins(asset, refs)
    if parsed & Category.NODES:
        _validate_nodes(asset, refs)
    if parsed & Category.SCENES:
        _validate_scenes(asset, refs)
    if parsed & Category.ANIMATIONS:
        _validate_animations(asset, refs)
