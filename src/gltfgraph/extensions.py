"""Extension registry: capability bits, requirement checks, per-field parsing.

The set of extensions is closed; each one contributes optional members on
the entity that owns it rather than a derived type.
"""

from __future__ import annotations

from enum import IntFlag
from typing import Any, Dict, Iterable, List, Optional

from .errors import Error, GltfError, invalid_gltf, missing_field
from .fields import (
    get_array,
    get_float,
    get_float_list,
    get_index,
    get_object,
    get_optional_index,
    get_string,
    join,
)
from .logging import get_logger
from .models import Light, Texture, TextureInfo
from .types import LightType

__all__ = [
    "Extensions",
    "EXTENSION_NAMES",
    "extension_flag",
    "extension_names",
    "flags_from_names",
    "check_required_extensions",
    "ignored_extensions",
    "apply_texture_transform",
    "apply_texture_image_extensions",
    "parse_lights",
    "node_light_index",
    "material_emissive_strength",
]


class Extensions(IntFlag):
    NONE = 0
    KHR_TEXTURE_TRANSFORM = 1 << 1
    KHR_TEXTURE_BASISU = 1 << 2
    MSFT_TEXTURE_DDS = 1 << 3
    KHR_MESH_QUANTIZATION = 1 << 4
    KHR_LIGHTS_PUNCTUAL = 1 << 5
    KHR_MATERIALS_EMISSIVE_STRENGTH = 1 << 6


EXTENSION_NAMES: Dict[str, Extensions] = {
    "KHR_texture_transform": Extensions.KHR_TEXTURE_TRANSFORM,
    "KHR_texture_basisu": Extensions.KHR_TEXTURE_BASISU,
    "MSFT_texture_dds": Extensions.MSFT_TEXTURE_DDS,
    "KHR_mesh_quantization": Extensions.KHR_MESH_QUANTIZATION,
    "KHR_lights_punctual": Extensions.KHR_LIGHTS_PUNCTUAL,
    "KHR_materials_emissive_strength": Extensions.KHR_MATERIALS_EMISSIVE_STRENGTH,
}

# Texture extensions that substitute the image, in priority order.
_IMAGE_EXTENSIONS = (
    ("KHR_texture_basisu", Extensions.KHR_TEXTURE_BASISU),
    ("MSFT_texture_dds", Extensions.MSFT_TEXTURE_DDS),
)

_DEFAULT_OUTER_CONE_ANGLE = 0.7853981633974483  # pi / 4


def extension_flag(name: str) -> Extensions:
    return EXTENSION_NAMES.get(name, Extensions.NONE)


def extension_names(flags: Extensions) -> List[str]:
    return [name for name, bit in EXTENSION_NAMES.items() if bit & flags]


def flags_from_names(names: Iterable[str]) -> Extensions:
    flags = Extensions.NONE
    for name in names:
        bit = extension_flag(name)
        if not bit:
            raise ValueError(f"Unknown extension '{name}'")
        flags |= bit
    return flags


def _name_list(root: Dict[str, Any], key: str) -> List[str]:
    names = get_array(root, key, "")
    for i, name in enumerate(names):
        if not isinstance(name, str):
            raise missing_field(f"{key}[{i}]", "string")
    return list(names)


def check_required_extensions(
    root: Dict[str, Any], enabled: Extensions
) -> None:
    """Fail when ``extensionsRequired`` names anything not enabled."""
    required = _name_list(root, "extensionsRequired")
    missing = [name for name in required if not extension_flag(name) & enabled]
    if missing:
        raise GltfError(
            Error.MISSING_EXTENSIONS,
            "Required extensions not supported: " + ", ".join(missing),
            {"missing": missing},
        )


def ignored_extensions(
    root: Dict[str, Any], enabled: Extensions
) -> List[str]:
    """Names listed in ``extensionsUsed`` whose sub-trees will be skipped."""
    used = _name_list(root, "extensionsUsed")
    ignored = [name for name in used if not extension_flag(name) & enabled]
    logger = get_logger()
    for name in ignored:
        logger.warning("Ignoring unsupported extension '%s'", name)
    return ignored


def _extension_object(
    obj: Dict[str, Any], name: str, path: str
) -> Optional[Dict[str, Any]]:
    exts = get_object(obj, "extensions", path)
    if exts is None:
        return None
    return get_object(exts, name, join(path, "extensions"))


def apply_texture_transform(
    info: TextureInfo, obj: Dict[str, Any], enabled: Extensions, path: str
) -> None:
    """KHR_texture_transform on a texture info object."""
    if not enabled & Extensions.KHR_TEXTURE_TRANSFORM:
        return
    ext = _extension_object(obj, "KHR_texture_transform", path)
    if ext is None:
        return
    ext_path = join(path, "extensions.KHR_texture_transform")
    info.uv_offset = get_float_list(
        ext, "offset", ext_path, 2, default=info.uv_offset
    )
    info.uv_scale = get_float_list(
        ext, "scale", ext_path, 2, default=info.uv_scale
    )
    # Radians, stored as declared.
    info.rotation = get_float(ext, "rotation", ext_path, info.rotation)
    info.tex_coord_override = get_optional_index(ext, "texCoord", ext_path)


def apply_texture_image_extensions(
    texture: Texture, obj: Dict[str, Any], enabled: Extensions, path: str
) -> None:
    """KHR_texture_basisu / MSFT_texture_dds alternate image sources.

    The extension image becomes ``image_index``; the plain ``source`` (if
    any) is kept as ``fallback_image_index`` for clients without support.
    """
    for name, bit in _IMAGE_EXTENSIONS:
        if not enabled & bit:
            continue
        ext = _extension_object(obj, name, path)
        if ext is None:
            continue
        source = get_optional_index(ext, "source", join(path, f"extensions.{name}"))
        if source is None:
            continue
        texture.fallback_image_index = texture.image_index
        texture.image_index = source
        return


def parse_lights(root: Dict[str, Any], enabled: Extensions) -> List[Light]:
    """Top-level KHR_lights_punctual light definitions."""
    if not enabled & Extensions.KHR_LIGHTS_PUNCTUAL:
        return []
    ext = _extension_object(root, "KHR_lights_punctual", "")
    if ext is None:
        return []
    base = "extensions.KHR_lights_punctual"
    lights: List[Light] = []
    for i, entry in enumerate(get_array(ext, "lights", base)):
        path = f"{base}.lights[{i}]"
        if not isinstance(entry, dict):
            raise missing_field(path, "object")
        try:
            light_type = LightType(entry.get("type"))
        except ValueError:
            raise invalid_gltf(
                f"Unknown light type {entry.get('type')!r}", path + ".type"
            ) from None
        light = Light(
            type=light_type,
            color=get_float_list(entry, "color", path, 3, default=[1.0, 1.0, 1.0]),
            intensity=get_float(entry, "intensity", path, 1.0),
            name=get_string(entry, "name", path),
        )
        if "range" in entry:
            light.range = get_float(entry, "range", path)
        if light_type is LightType.SPOT:
            spot = get_object(entry, "spot", path, required=True)
            spot_path = path + ".spot"
            light.inner_cone_angle = get_float(
                spot, "innerConeAngle", spot_path, 0.0
            )
            light.outer_cone_angle = get_float(
                spot, "outerConeAngle", spot_path, _DEFAULT_OUTER_CONE_ANGLE
            )
        lights.append(light)
    return lights


def node_light_index(
    obj: Dict[str, Any], enabled: Extensions, path: str
) -> Optional[int]:
    if not enabled & Extensions.KHR_LIGHTS_PUNCTUAL:
        return None
    ext = _extension_object(obj, "KHR_lights_punctual", path)
    if ext is None:
        return None
    return get_index(ext, "light", join(path, "extensions.KHR_lights_punctual"))


def material_emissive_strength(
    obj: Dict[str, Any], enabled: Extensions, path: str
) -> float:
    if not enabled & Extensions.KHR_MATERIALS_EMISSIVE_STRENGTH:
        return 1.0
    ext = _extension_object(obj, "KHR_materials_emissive_strength", path)
    if ext is None:
        return 1.0
    return get_float(
        ext,
        "emissiveStrength",
        join(path, "extensions.KHR_materials_emissive_strength"),
        1.0,
    )
