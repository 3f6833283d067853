"""gltfgraph package

Category-based lazy loader and validator for glTF 2.0 documents (``.gltf``
JSON and ``.glb`` binary containers). Use :class:`Parser` for fine grained
control (incremental category parsing, custom buffer allocation) or
:func:`load_asset` to get a parsed :class:`Asset` in one call.
"""

from ._version import __version__  # noqa: F401
from .api import load_asset, summarize_asset
from .document import GlbData, JsonData
from .errors import Error, GltfError
from .extensions import Extensions
from .locator import BufferInfo
from .models import Asset
from .options import Category, Options
from .parser import Gltf, Parser

__all__ = [
    "__version__",
    "Asset",
    "BufferInfo",
    "Category",
    "Error",
    "Extensions",
    "GlbData",
    "Gltf",
    "GltfError",
    "JsonData",
    "Options",
    "Parser",
    "load_asset",
    "summarize_asset",
]
