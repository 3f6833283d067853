"""High level convenience API for gltfgraph.

Thin wrapper over :class:`~gltfgraph.parser.Parser` for callers that want an
asset or an exception rather than error values.
"""

from __future__ import annotations
from pathlib import Path
from typing import Any, Dict

from .document import GlbData, JsonData, is_glb
from .errors import Error, GltfError
from .extensions import Extensions
from .logging import get_logger
from .models import Asset, location_of
from .options import Category, Options, category_names
from .parser import Parser
from .reporting import get_reporter, task

__all__ = [
    "load_asset",
    "summarize_asset",
]


def load_asset(
    path: str | Path,
    *,
    extensions: Extensions = Extensions.NONE,
    options: Options = Options.NONE,
    categories: Category = Category.ALL,
    validate: bool = False,
) -> Asset:
    """Load a ``.gltf`` or ``.glb`` file and return the parsed asset.

    The container format is picked from the file content (GLB magic), not
    from the suffix. Raises :class:`GltfError` on any failure.
    """
    p = Path(path)
    if not p.is_file():
        raise GltfError(
            Error.FILE_NOT_FOUND, f"File not found: {p}", {"path": str(p)}
        )
    logger = get_logger()
    parser = Parser(extensions, options)
    with task("load.read", f"Read {p.name}", bytes=p.stat().st_size):
        data = p.read_bytes()
        if is_glb(data):
            logger.debug("Loading %s as GLB", p)
            gltf = parser.load_binary_gltf(GlbData.from_bytes(data, p), p.parent)
        else:
            gltf = parser.load_gltf(JsonData.from_bytes(data, p), p.parent)
    if gltf is None:
        raise GltfError(
            parser.get_error(), f"Could not load {p}", {"path": str(p)}
        )

    if gltf.parse(categories) is not Error.NONE:
        assert gltf.last_error is not None
        raise gltf.last_error
    if validate:
        with task("load.validate", "Validate asset"):
            if gltf.validate() is not Error.NONE:
                assert gltf.last_error is not None
                raise gltf.last_error
        get_reporter().status(
            f"Validation summary: categories={len(category_names(gltf.parsed_categories))} result=ok"
        )

    asset = gltf.get_parsed_asset()
    summary = summarize_asset(asset)
    get_reporter().status(
        "Asset summary: "
        + " ".join(f"{k}={v}" for k, v in summary["counts"].items())
    )
    return asset


def summarize_asset(asset: Asset) -> Dict[str, Any]:
    """Return JSON-serializable counts and data locations of ``asset``."""
    counts = {
        "scenes": len(asset.scenes),
        "nodes": len(asset.nodes),
        "meshes": len(asset.meshes),
        "materials": len(asset.materials),
        "textures": len(asset.textures),
        "images": len(asset.images),
        "samplers": len(asset.samplers),
        "buffers": len(asset.buffers),
        "buffer_views": len(asset.buffer_views),
        "accessors": len(asset.accessors),
        "animations": len(asset.animations),
        "skins": len(asset.skins),
        "cameras": len(asset.cameras),
        "lights": len(asset.lights),
    }
    info = asset.asset_info
    return {
        "asset": {
            "version": info.version if info else None,
            "generator": info.generator if info else None,
        },
        "default_scene": asset.default_scene,
        "counts": counts,
        "extensions_used": list(asset.extensions_used),
        "extensions_required": list(asset.extensions_required),
        "buffers": [
            {
                "byte_length": b.byte_length,
                "location": location_of(b.data).name.lower(),
                "mime_type": b.data.mime_type.value,
            }
            for b in asset.buffers
        ],
        "images": [
            {
                "location": location_of(i.data).name.lower(),
                "mime_type": i.data.mime_type.value,
            }
            for i in asset.images
        ],
    }
