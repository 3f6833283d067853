"""Parse categories, behaviour options and the category dependency table."""

from __future__ import annotations

from enum import IntFlag
from typing import Dict, Iterable, List, Tuple

__all__ = [
    "Category",
    "Options",
    "CATEGORY_ORDER",
    "resolve_categories",
    "category_from_name",
    "option_from_name",
    "combine",
    "category_names",
]


class Category(IntFlag):
    NONE = 0
    BUFFERS = 1 << 0
    BUFFER_VIEWS = 1 << 1
    ACCESSORS = 1 << 2
    IMAGES = 1 << 3
    SAMPLERS = 1 << 4
    TEXTURES = 1 << 5
    ANIMATIONS = 1 << 6
    CAMERAS = 1 << 7
    MATERIALS = 1 << 8
    MESHES = 1 << 9
    SKINS = 1 << 10
    NODES = 1 << 11
    SCENES = 1 << 12
    LIGHTS = 1 << 13
    ALL = (1 << 14) - 1


class Options(IntFlag):
    NONE = 0
    DONT_REQUIRE_VALID_ASSET_MEMBER = 1 << 0
    DECOMPOSE_NODE_MATRICES = 1 << 1
    ALLOW_DOUBLE = 1 << 2
    LOAD_GLB_BUFFERS = 1 << 3
    LOAD_EXTERNAL_BUFFERS = 1 << 4


# Direct dependencies; resolve_categories() computes the closure.
_DEPENDENCIES: Dict[Category, Category] = {
    Category.BUFFER_VIEWS: Category.BUFFERS,
    Category.ACCESSORS: Category.BUFFER_VIEWS,
    Category.IMAGES: Category.BUFFER_VIEWS,
    Category.TEXTURES: Category.IMAGES | Category.SAMPLERS,
    Category.MATERIALS: Category.TEXTURES,
    Category.MESHES: Category.ACCESSORS | Category.MATERIALS,
    Category.SKINS: Category.ACCESSORS,
    Category.NODES: Category.CAMERAS
    | Category.MESHES
    | Category.SKINS
    | Category.LIGHTS,
    Category.SCENES: Category.NODES,
    Category.ANIMATIONS: Category.ACCESSORS,
}

# Extraction order (dependencies first) with the document key of each.
CATEGORY_ORDER: Tuple[Tuple[Category, str], ...] = (
    (Category.BUFFERS, "buffers"),
    (Category.BUFFER_VIEWS, "bufferViews"),
    (Category.ACCESSORS, "accessors"),
    (Category.IMAGES, "images"),
    (Category.SAMPLERS, "samplers"),
    (Category.TEXTURES, "textures"),
    (Category.MATERIALS, "materials"),
    (Category.MESHES, "meshes"),
    (Category.CAMERAS, "cameras"),
    (Category.LIGHTS, "lights"),
    (Category.SKINS, "skins"),
    (Category.NODES, "nodes"),
    (Category.SCENES, "scenes"),
    (Category.ANIMATIONS, "animations"),
)


def resolve_categories(mask: Category) -> Category:
    """Return ``mask`` plus everything it transitively depends on."""
    resolved = Category(mask) & Category.ALL
    while True:
        expanded = resolved
        for category, deps in _DEPENDENCIES.items():
            if category & resolved:
                expanded |= deps
        if expanded == resolved:
            return resolved
        resolved = expanded


def _from_name(enum_cls, name: str):
    key = name.strip().upper().replace("-", "_")
    try:
        return enum_cls[key]
    except KeyError:
        raise ValueError(f"Unknown {enum_cls.__name__.lower()} '{name}'") from None


def category_from_name(name: str) -> Category:
    return _from_name(Category, name)


def option_from_name(name: str) -> Options:
    return _from_name(Options, name)


def combine(flags: Iterable[IntFlag], empty: IntFlag) -> IntFlag:
    result = empty
    for flag in flags:
        result |= flag
    return result


def category_names(mask: Category) -> List[str]:
    return [key for category, key in CATEGORY_ORDER if category & mask]

