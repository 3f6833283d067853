"""Category-based lazy glTF parser.

:class:`Parser` holds configuration (enabled extensions, options, buffer
allocation callbacks) and creates one :class:`Gltf` handle per document.
``Gltf.parse(mask)`` extracts the requested categories (plus their
dependencies) from the JSON tree into an :class:`~gltfgraph.models.Asset`;
``Gltf.validate()`` checks the cross references of what has been parsed.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .document import GlbData, JsonData
from .errors import Error, GltfError, invalid_gltf, missing_field
from .extensions import (
    Extensions,
    apply_texture_image_extensions,
    apply_texture_transform,
    check_required_extensions,
    ignored_extensions,
    material_emissive_strength,
    node_light_index,
    parse_lights,
)
from .fields import (
    get_array,
    get_bool,
    get_float,
    get_float_list,
    get_index,
    get_index_list,
    get_object,
    get_optional_index,
    get_string,
    get_uint,
    join,
)
from .locator import (
    BufferAllocationCallback,
    BufferFreeCallback,
    BufferInfo,
    DataLocator,
)
from .logging import get_logger
from .models import (
    Accessor,
    Animation,
    AnimationChannel,
    AnimationSampler,
    Asset,
    AssetInfo,
    Buffer,
    BufferView,
    Camera,
    Image,
    Material,
    Matrix,
    Mesh,
    Node,
    Orthographic,
    PBRData,
    Perspective,
    Primitive,
    Sampler,
    Scene,
    Skin,
    SparseAccessor,
    Texture,
    TextureInfo,
    TRS,
)
from .options import CATEGORY_ORDER, Category, Options, resolve_categories
from .reporting import task
from .transform import resolve_transform
from .types import (
    AccessorType,
    AlphaMode,
    AnimationInterpolation,
    AnimationPath,
    BufferTarget,
    ComponentType,
    Filter,
    PrimitiveType,
    Wrap,
    accessor_type_from_string,
    component_type_from_code,
)
from .validator import validate_asset

__all__ = ["Parser", "Gltf"]


def _enum_value(enum_cls, value: Any, path: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise invalid_gltf(
            f"Invalid {enum_cls.__name__} value {value!r}", path
        ) from None


def _entries(root: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    entries = get_array(root, key, "")
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise missing_field(f"{key}[{i}]", "object")
    return entries


class Gltf:
    """Per-document parse handle created by :meth:`Parser.load_gltf`."""

    def __init__(
        self,
        data: JsonData,
        directory: Path,
        *,
        extensions: Extensions,
        options: Options,
        locator: DataLocator,
        free_callback: Optional[BufferFreeCallback] = None,
    ) -> None:
        self._root: Dict[str, Any] = data.root
        self.directory = directory
        self.extensions = extensions
        self.options = options
        self._locator = locator
        self._free_callback = free_callback
        self._asset = Asset()
        self._parsed = Category.NONE
        self._document_checked = False
        self._allocations: List[BufferInfo] = []
        self.ignored_extensions: List[str] = []
        self.last_error: Optional[GltfError] = None

    # Public API ------------------------------------------------------------
    @property
    def parsed_categories(self) -> Category:
        return self._parsed

    def get_parsed_asset(self) -> Asset:
        return self._asset

    def parse(self, categories: Category = Category.ALL) -> Error:
        """Parse ``categories`` and their dependencies.

        Categories parsed by earlier calls are kept and never re-parsed. On
        failure the failing category stays empty and the error is returned.
        """
        logger = get_logger()
        try:
            self._check_document()
            wanted = resolve_categories(categories)
            for category, name in CATEGORY_ORDER:
                if not category & wanted or category & self._parsed:
                    continue
                with task(
                    f"parse.{name}", f"Parse {name}", category=name
                ) as stats:
                    stats["entries"] = self._parse_category(category)
                self._parsed |= category
                logger.debug(
                    "Parsed %s (%d entries)", name, stats["entries"]
                )
        except GltfError as e:
            self.last_error = e
            logger.error("Parse failed: %s", e)
            return e.code
        return Error.NONE

    def validate(self) -> Error:
        if self._parsed == Category.NONE:
            self.last_error = GltfError(
                Error.NOT_PARSED, "validate() called before a successful parse()"
            )
            return Error.NOT_PARSED
        try:
            validate_asset(self._asset, self._parsed)
        except GltfError as e:
            self.last_error = e
            get_logger().error("Validation failed: %s", e)
            return e.code
        return Error.NONE

    def release(self) -> None:
        """Hand every custom buffer back to the free callback (once)."""
        allocations, self._allocations = self._allocations, []
        self._free(allocations)

    def __enter__(self) -> "Gltf":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.release()

    # Document level checks -------------------------------------------------
    def _check_document(self) -> None:
        if self._document_checked:
            return
        root = self._root
        info = self._parse_asset_info(root.get("asset"))
        if info is None and not (
            self.options & Options.DONT_REQUIRE_VALID_ASSET_MEMBER
        ):
            raise GltfError(
                Error.INVALID_OR_MISSING_ASSET_FIELD,
                "Document has no valid 'asset' object with a 'version'",
            )
        check_required_extensions(root, self.extensions)
        self.ignored_extensions = ignored_extensions(root, self.extensions)
        self._asset.asset_info = info
        self._asset.extensions_used = get_array(root, "extensionsUsed", "")
        self._asset.extensions_required = get_array(
            root, "extensionsRequired", ""
        )
        self._document_checked = True

    @staticmethod
    def _parse_asset_info(value: Any) -> Optional[AssetInfo]:
        if not isinstance(value, dict):
            return None
        version = value.get("version")
        if not isinstance(version, str):
            return None
        optional = {
            key: value.get(key) if isinstance(value.get(key), str) else None
            for key in ("generator", "copyright", "minVersion")
        }
        return AssetInfo(
            version=version,
            generator=optional["generator"],
            copyright=optional["copyright"],
            min_version=optional["minVersion"],
        )

    # Categories ------------------------------------------------------------
    def _parse_category(self, category: Category) -> int:
        parser: Callable[[], int] = {
            Category.BUFFERS: self._parse_buffers,
            Category.BUFFER_VIEWS: self._parse_buffer_views,
            Category.ACCESSORS: self._parse_accessors,
            Category.IMAGES: self._parse_images,
            Category.SAMPLERS: self._parse_samplers,
            Category.TEXTURES: self._parse_textures,
            Category.MATERIALS: self._parse_materials,
            Category.MESHES: self._parse_meshes,
            Category.CAMERAS: self._parse_cameras,
            Category.LIGHTS: self._parse_lights,
            Category.SKINS: self._parse_skins,
            Category.NODES: self._parse_nodes,
            Category.SCENES: self._parse_scenes,
            Category.ANIMATIONS: self._parse_animations,
        }[category]
        return parser()

    def _parse_buffers(self) -> int:
        buffers: List[Buffer] = []
        try:
            for i, entry in enumerate(_entries(self._root, "buffers")):
                path = f"buffers[{i}]"
                source = self._locator.locate_buffer(entry, i, path)
                buffers.append(
                    Buffer(
                        byte_length=get_uint(entry, "byteLength", path),
                        data=source,
                        name=get_string(entry, "name", path),
                    )
                )
        except Exception:
            self._free(self._locator.take_allocations())
            raise
        self._allocations.extend(self._locator.take_allocations())
        self._asset.buffers = buffers
        return len(buffers)

    def _parse_buffer_views(self) -> int:
        views: List[BufferView] = []
        for i, entry in enumerate(_entries(self._root, "bufferViews")):
            path = f"bufferViews[{i}]"
            target = entry.get("target")
            views.append(
                BufferView(
                    buffer_index=get_index(entry, "buffer", path),
                    byte_length=get_uint(entry, "byteLength", path),
                    byte_offset=get_uint(entry, "byteOffset", path, 0),
                    byte_stride=get_optional_index(entry, "byteStride", path),
                    target=(
                        _enum_value(BufferTarget, target, path + ".target")
                        if target is not None
                        else None
                    ),
                    name=get_string(entry, "name", path),
                )
            )
        self._asset.buffer_views = views
        return len(views)

    def _component_type(self, obj: Dict[str, Any], path: str) -> ComponentType:
        code = get_uint(obj, "componentType", path)
        component_type = component_type_from_code(code)
        if component_type is ComponentType.INVALID:
            raise invalid_gltf(
                f"Unknown componentType {code}", join(path, "componentType")
            )
        if component_type is ComponentType.DOUBLE and not (
            self.options & Options.ALLOW_DOUBLE
        ):
            raise invalid_gltf(
                "Double components require Options.ALLOW_DOUBLE",
                join(path, "componentType"),
            )
        return component_type

    def _parse_accessors(self) -> int:
        accessors: List[Accessor] = []
        for i, entry in enumerate(_entries(self._root, "accessors")):
            path = f"accessors[{i}]"
            type_name = get_string(entry, "type", path, required=True)
            shape = accessor_type_from_string(type_name)
            if shape is AccessorType.INVALID:
                raise invalid_gltf(
                    f"Unknown accessor type '{type_name}'", path + ".type"
                )
            accessor = Accessor(
                type=shape,
                component_type=self._component_type(entry, path),
                count=get_uint(entry, "count", path),
                buffer_view_index=get_optional_index(entry, "bufferView", path),
                byte_offset=get_uint(entry, "byteOffset", path, 0),
                normalized=get_bool(entry, "normalized", path, False),
                min=get_float_list(entry, "min", path),
                max=get_float_list(entry, "max", path),
                name=get_string(entry, "name", path),
            )
            sparse = get_object(entry, "sparse", path)
            if sparse is not None:
                accessor.sparse = self._parse_sparse(sparse, path + ".sparse")
            accessors.append(accessor)
        self._asset.accessors = accessors
        return len(accessors)

    def _parse_sparse(self, sparse: Dict[str, Any], path: str) -> SparseAccessor:
        indices = get_object(sparse, "indices", path, required=True)
        values = get_object(sparse, "values", path, required=True)
        return SparseAccessor(
            count=get_uint(sparse, "count", path),
            indices_buffer_view=get_index(indices, "bufferView", path + ".indices"),
            indices_byte_offset=get_uint(indices, "byteOffset", path + ".indices", 0),
            indices_component_type=self._component_type(indices, path + ".indices"),
            values_buffer_view=get_index(values, "bufferView", path + ".values"),
            values_byte_offset=get_uint(values, "byteOffset", path + ".values", 0),
        )

    def _parse_images(self) -> int:
        images: List[Image] = []
        for i, entry in enumerate(_entries(self._root, "images")):
            path = f"images[{i}]"
            images.append(
                Image(
                    data=self._locator.locate_image(entry, path),
                    name=get_string(entry, "name", path),
                )
            )
        self._asset.images = images
        return len(images)

    def _parse_samplers(self) -> int:
        samplers: List[Sampler] = []
        for i, entry in enumerate(_entries(self._root, "samplers")):
            path = f"samplers[{i}]"
            sampler = Sampler(name=get_string(entry, "name", path))
            if "magFilter" in entry:
                sampler.mag_filter = _enum_value(
                    Filter, entry["magFilter"], path + ".magFilter"
                )
            if "minFilter" in entry:
                sampler.min_filter = _enum_value(
                    Filter, entry["minFilter"], path + ".minFilter"
                )
            if "wrapS" in entry:
                sampler.wrap_s = _enum_value(Wrap, entry["wrapS"], path + ".wrapS")
            if "wrapT" in entry:
                sampler.wrap_t = _enum_value(Wrap, entry["wrapT"], path + ".wrapT")
            samplers.append(sampler)
        self._asset.samplers = samplers
        return len(samplers)

    def _parse_textures(self) -> int:
        textures: List[Texture] = []
        for i, entry in enumerate(_entries(self._root, "textures")):
            path = f"textures[{i}]"
            texture = Texture(
                image_index=get_optional_index(entry, "source", path),
                sampler_index=get_optional_index(entry, "sampler", path),
                name=get_string(entry, "name", path),
            )
            apply_texture_image_extensions(texture, entry, self.extensions, path)
            if texture.image_index is None:
                raise missing_field(path + ".source", "image index")
            textures.append(texture)
        self._asset.textures = textures
        return len(textures)

    def _texture_info(
        self, obj: Dict[str, Any], key: str, path: str, scale_key: str = ""
    ) -> Optional[TextureInfo]:
        info_obj = get_object(obj, key, path)
        if info_obj is None:
            return None
        info_path = join(path, key)
        info = TextureInfo(
            texture_index=get_index(info_obj, "index", info_path),
            tex_coord=get_uint(info_obj, "texCoord", info_path, 0),
        )
        if scale_key:
            info.scale = get_float(info_obj, scale_key, info_path, 1.0)
        apply_texture_transform(info, info_obj, self.extensions, info_path)
        return info

    def _parse_materials(self) -> int:
        materials: List[Material] = []
        for i, entry in enumerate(_entries(self._root, "materials")):
            path = f"materials[{i}]"
            material = Material(
                name=get_string(entry, "name", path),
                normal_texture=self._texture_info(
                    entry, "normalTexture", path, "scale"
                ),
                occlusion_texture=self._texture_info(
                    entry, "occlusionTexture", path, "strength"
                ),
                emissive_texture=self._texture_info(entry, "emissiveTexture", path),
                emissive_factor=get_float_list(
                    entry, "emissiveFactor", path, 3, default=[0.0, 0.0, 0.0]
                ),
                alpha_cutoff=get_float(entry, "alphaCutoff", path, 0.5),
                double_sided=get_bool(entry, "doubleSided", path, False),
                emissive_strength=material_emissive_strength(
                    entry, self.extensions, path
                ),
            )
            if "alphaMode" in entry:
                material.alpha_mode = _enum_value(
                    AlphaMode, entry["alphaMode"], path + ".alphaMode"
                )
            pbr = get_object(entry, "pbrMetallicRoughness", path)
            if pbr is not None:
                pbr_path = path + ".pbrMetallicRoughness"
                material.pbr_data = PBRData(
                    base_color_factor=get_float_list(
                        pbr, "baseColorFactor", pbr_path, 4, default=[1.0, 1.0, 1.0, 1.0]
                    ),
                    metallic_factor=get_float(pbr, "metallicFactor", pbr_path, 1.0),
                    roughness_factor=get_float(pbr, "roughnessFactor", pbr_path, 1.0),
                    base_color_texture=self._texture_info(
                        pbr, "baseColorTexture", pbr_path
                    ),
                    metallic_roughness_texture=self._texture_info(
                        pbr, "metallicRoughnessTexture", pbr_path
                    ),
                )
            materials.append(material)
        self._asset.materials = materials
        return len(materials)

    @staticmethod
    def _attribute_map(obj: Any, path: str) -> Dict[str, int]:
        if not isinstance(obj, dict):
            raise missing_field(path, "object")
        for name in obj:
            get_index(obj, name, path)
        return dict(obj)

    def _parse_meshes(self) -> int:
        meshes: List[Mesh] = []
        for i, entry in enumerate(_entries(self._root, "meshes")):
            path = f"meshes[{i}]"
            mesh = Mesh(
                weights=get_float_list(entry, "weights", path, default=[]),
                name=get_string(entry, "name", path),
            )
            for p, prim in enumerate(get_array(entry, "primitives", path, True)):
                prim_path = f"{path}.primitives[{p}]"
                if not isinstance(prim, dict):
                    raise missing_field(prim_path, "object")
                primitive = Primitive(
                    attributes=self._attribute_map(
                        prim.get("attributes"), prim_path + ".attributes"
                    ),
                    indices_accessor=get_optional_index(prim, "indices", prim_path),
                    material_index=get_optional_index(prim, "material", prim_path),
                )
                if "mode" in prim:
                    primitive.type = _enum_value(
                        PrimitiveType, prim["mode"], prim_path + ".mode"
                    )
                for t, target in enumerate(get_array(prim, "targets", prim_path)):
                    primitive.targets.append(
                        self._attribute_map(target, f"{prim_path}.targets[{t}]")
                    )
                mesh.primitives.append(primitive)
            meshes.append(mesh)
        self._asset.meshes = meshes
        return len(meshes)

    def _parse_cameras(self) -> int:
        cameras: List[Camera] = []
        for i, entry in enumerate(_entries(self._root, "cameras")):
            path = f"cameras[{i}]"
            kind = get_string(entry, "type", path, required=True)
            if kind == "perspective":
                obj = get_object(entry, "perspective", path, required=True)
                sub = path + ".perspective"
                projection: Any = Perspective(
                    yfov=get_float(obj, "yfov", sub),
                    znear=get_float(obj, "znear", sub),
                    aspect_ratio=(
                        get_float(obj, "aspectRatio", sub)
                        if "aspectRatio" in obj
                        else None
                    ),
                    zfar=get_float(obj, "zfar", sub) if "zfar" in obj else None,
                )
            elif kind == "orthographic":
                obj = get_object(entry, "orthographic", path, required=True)
                sub = path + ".orthographic"
                projection = Orthographic(
                    xmag=get_float(obj, "xmag", sub),
                    ymag=get_float(obj, "ymag", sub),
                    zfar=get_float(obj, "zfar", sub),
                    znear=get_float(obj, "znear", sub),
                )
            else:
                raise invalid_gltf(f"Unknown camera type '{kind}'", path + ".type")
            cameras.append(
                Camera(camera=projection, name=get_string(entry, "name", path))
            )
        self._asset.cameras = cameras
        return len(cameras)

    def _parse_lights(self) -> int:
        self._asset.lights = parse_lights(self._root, self.extensions)
        return len(self._asset.lights)

    def _parse_skins(self) -> int:
        skins: List[Skin] = []
        for i, entry in enumerate(_entries(self._root, "skins")):
            path = f"skins[{i}]"
            skins.append(
                Skin(
                    joints=get_index_list(entry, "joints", path, required=True),
                    skeleton=get_optional_index(entry, "skeleton", path),
                    inverse_bind_matrices=get_optional_index(
                        entry, "inverseBindMatrices", path
                    ),
                    name=get_string(entry, "name", path),
                )
            )
        self._asset.skins = skins
        return len(skins)

    def _parse_nodes(self) -> int:
        decompose = bool(self.options & Options.DECOMPOSE_NODE_MATRICES)
        nodes: List[Node] = []
        for i, entry in enumerate(_entries(self._root, "nodes")):
            path = f"nodes[{i}]"
            if "matrix" in entry:
                values = get_float_list(entry, "matrix", path)
                if len(values) != 16:
                    raise invalid_gltf(
                        f"Node matrix has {len(values)} values, expected 16",
                        path + ".matrix",
                    )
                transform: Any = Matrix(values=values)
            else:
                transform = TRS(
                    translation=get_float_list(
                        entry, "translation", path, 3, default=[0.0, 0.0, 0.0]
                    ),
                    rotation=get_float_list(
                        entry, "rotation", path, 4, default=[0.0, 0.0, 0.0, 1.0]
                    ),
                    scale=get_float_list(
                        entry, "scale", path, 3, default=[1.0, 1.0, 1.0]
                    ),
                )
            nodes.append(
                Node(
                    name=get_string(entry, "name", path),
                    mesh_index=get_optional_index(entry, "mesh", path),
                    skin_index=get_optional_index(entry, "skin", path),
                    camera_index=get_optional_index(entry, "camera", path),
                    light_index=node_light_index(entry, self.extensions, path),
                    children=get_index_list(entry, "children", path),
                    weights=get_float_list(entry, "weights", path, default=[]),
                    transform=resolve_transform(transform, decompose),
                )
            )
        self._asset.nodes = nodes
        return len(nodes)

    def _parse_scenes(self) -> int:
        scenes: List[Scene] = []
        for i, entry in enumerate(_entries(self._root, "scenes")):
            path = f"scenes[{i}]"
            scenes.append(
                Scene(
                    node_indices=get_index_list(entry, "nodes", path),
                    name=get_string(entry, "name", path),
                )
            )
        default_scene = get_optional_index(self._root, "scene", "")
        self._asset.scenes = scenes
        self._asset.default_scene = default_scene
        return len(scenes)

    def _parse_animations(self) -> int:
        animations: List[Animation] = []
        for i, entry in enumerate(_entries(self._root, "animations")):
            path = f"animations[{i}]"
            animation = Animation(name=get_string(entry, "name", path))
            for c, channel in enumerate(get_array(entry, "channels", path, True)):
                ch_path = f"{path}.channels[{c}]"
                if not isinstance(channel, dict):
                    raise missing_field(ch_path, "object")
                target = get_object(channel, "target", ch_path, required=True)
                target_path = ch_path + ".target"
                animation.channels.append(
                    AnimationChannel(
                        sampler_index=get_index(channel, "sampler", ch_path),
                        path=_enum_value(
                            AnimationPath,
                            get_string(target, "path", target_path, required=True),
                            target_path + ".path",
                        ),
                        node_index=get_optional_index(target, "node", target_path),
                    )
                )
            for s, sampler in enumerate(get_array(entry, "samplers", path, True)):
                s_path = f"{path}.samplers[{s}]"
                if not isinstance(sampler, dict):
                    raise missing_field(s_path, "object")
                anim_sampler = AnimationSampler(
                    input_accessor=get_index(sampler, "input", s_path),
                    output_accessor=get_index(sampler, "output", s_path),
                )
                if "interpolation" in sampler:
                    anim_sampler.interpolation = _enum_value(
                        AnimationInterpolation,
                        sampler["interpolation"],
                        s_path + ".interpolation",
                    )
                animation.samplers.append(anim_sampler)
            animations.append(animation)
        self._asset.animations = animations
        return len(animations)

    # Allocations -----------------------------------------------------------
    def _free(self, allocations: List[BufferInfo]) -> None:
        if self._free_callback is None:
            return
        for info in allocations:
            self._free_callback(info, self._locator.user_pointer)


class Parser:
    """Reusable parser configuration.

    Holds no per-document state; every ``load_*`` call returns an
    independent :class:`Gltf` handle.
    """

    def __init__(
        self,
        extensions: Extensions = Extensions.NONE,
        options: Options = Options.NONE,
    ) -> None:
        self._extensions = Extensions(extensions)
        self._options = Options(options)
        self._allocate: Optional[BufferAllocationCallback] = None
        self._free: Optional[BufferFreeCallback] = None
        self._user_pointer: Any = None
        self._error = Error.NONE

    @property
    def extensions(self) -> Extensions:
        return self._extensions

    def get_error(self) -> Error:
        return self._error

    def set_buffer_allocation_callback(
        self,
        callback: Optional[BufferAllocationCallback],
        free_callback: Optional[BufferFreeCallback] = None,
    ) -> None:
        self._allocate = callback
        self._free = free_callback

    def set_user_pointer(self, pointer: Any) -> None:
        self._user_pointer = pointer

    def load_gltf(
        self,
        data: JsonData,
        directory: str | Path,
        options: Optional[Options] = None,
    ) -> Optional[Gltf]:
        return self._load(data, Path(directory), options, None)

    def load_binary_gltf(
        self,
        data: GlbData,
        directory: str | Path,
        options: Optional[Options] = None,
    ) -> Optional[Gltf]:
        return self._load(data.json, Path(directory), options, data)

    def _load(
        self,
        data: JsonData,
        directory: Path,
        options: Optional[Options],
        glb: Optional[GlbData],
    ) -> Optional[Gltf]:
        logger = get_logger()
        self._error = Error.NONE
        if not directory.is_dir():
            self._error = Error.INVALID_PATH
            logger.error("Base directory does not exist: %s", directory)
            return None
        if not isinstance(data.root, dict):
            self._error = Error.INVALID_JSON
            logger.error("Document root is not a JSON object")
            return None
        effective = self._options if options is None else Options(options)
        locator = DataLocator(
            base_dir=directory,
            options=effective,
            allocate=self._allocate,
            user_pointer=self._user_pointer,
            glb=glb,
        )
        return Gltf(
            data,
            directory,
            extensions=self._extensions,
            options=effective,
            locator=locator,
            free_callback=self._free,
        )
