"""Builders for glTF test documents.

Documents are plain dicts written next to their ``.bin`` payloads; GLB
containers are assembled with ``struct``.

Usage:
    from gltf_helper import box_document, write_document
    path = write_document(tmp_path, "Box.gltf", box_document(), {"Box0.bin": box_bin()})
"""

from __future__ import annotations
import base64
import copy
import json
import struct
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from gltfgraph import JsonData

BOX_BIN_LENGTH = 648
CUBE_BIN_LENGTH = 1800

# Column-major; rotates the Box's Z-up geometry to Y-up.
BOX_MATRIX = [
    1.0, 0.0, 0.0, 0.0,
    0.0, 0.0, -1.0, 0.0,
    0.0, 1.0, 0.0, 0.0,
    0.0, 0.0, 0.0, 1.0,
]  # fmt: skip


def box_bin() -> bytes:
    return bytes(i % 251 for i in range(BOX_BIN_LENGTH))


def data_uri(payload: bytes, mime: str = "application/octet-stream") -> str:
    return f"data:{mime};base64," + base64.b64encode(payload).decode("ascii")


def minimal_document(**members: Any) -> Dict[str, Any]:
    doc: Dict[str, Any] = {"asset": {"version": "2.0"}}
    doc.update(members)
    return doc


def box_document(buffer_uri: Optional[str] = "Box0.bin") -> Dict[str, Any]:
    """Single red box: one matrix node parenting one mesh node."""
    buffer: Dict[str, Any] = {"byteLength": BOX_BIN_LENGTH}
    if buffer_uri is not None:
        buffer["uri"] = buffer_uri
    return {
        "asset": {"generator": "COLLADA2GLTF", "version": "2.0"},
        "scene": 0,
        "scenes": [{"nodes": [0]}],
        "nodes": [
            {"children": [1], "matrix": list(BOX_MATRIX)},
            {"mesh": 0},
        ],
        "meshes": [
            {
                "primitives": [
                    {
                        "attributes": {"NORMAL": 1, "POSITION": 2},
                        "indices": 0,
                        "mode": 4,
                        "material": 0,
                    }
                ],
                "name": "Mesh",
            }
        ],
        "accessors": [
            {
                "bufferView": 0,
                "byteOffset": 0,
                "componentType": 5123,
                "count": 36,
                "max": [23],
                "min": [0],
                "type": "SCALAR",
            },
            {
                "bufferView": 1,
                "byteOffset": 0,
                "componentType": 5126,
                "count": 24,
                "max": [1.0, 1.0, 1.0],
                "min": [-1.0, -1.0, -1.0],
                "type": "VEC3",
            },
            {
                "bufferView": 1,
                "byteOffset": 288,
                "componentType": 5126,
                "count": 24,
                "max": [0.5, 0.5, 0.5],
                "min": [-0.5, -0.5, -0.5],
                "type": "VEC3",
            },
        ],
        "materials": [
            {
                "pbrMetallicRoughness": {
                    "baseColorFactor": [0.8, 0.0, 0.0, 1.0],
                    "metallicFactor": 0.0,
                },
                "name": "Red",
            }
        ],
        "bufferViews": [
            {
                "buffer": 0,
                "byteOffset": 576,
                "byteLength": 72,
                "target": 34963,
            },
            {
                "buffer": 0,
                "byteOffset": 0,
                "byteLength": 576,
                "byteStride": 12,
                "target": 34962,
            },
        ],
        "buffers": [buffer],
    }


def embedded_box_document() -> Dict[str, Any]:
    return box_document(buffer_uri=data_uri(box_bin()))


def cube_document() -> Dict[str, Any]:
    """Textured cube: five accessors, two textures sharing one sampler."""
    views = []
    offset = 0
    for length in (72, 432, 432, 576, 288):
        views.append({"buffer": 0, "byteOffset": offset, "byteLength": length})
        offset += length
    return {
        "asset": {"version": "2.0"},
        "scene": 0,
        "scenes": [{"nodes": [0]}],
        "nodes": [
            {
                "mesh": 0,
                "name": "Cube",
                "rotation": [0.0, 0.0, 0.0, 1.0],
                "scale": [1.0, 1.0, 1.0],
                "translation": [0.0, 0.0, 0.0],
            }
        ],
        "meshes": [
            {
                "name": "Cube",
                "primitives": [
                    {
                        "attributes": {
                            "NORMAL": 2,
                            "POSITION": 1,
                            "TANGENT": 3,
                            "TEXCOORD_0": 4,
                        },
                        "indices": 0,
                        "material": 0,
                    }
                ],
            }
        ],
        "accessors": [
            {"bufferView": 0, "componentType": 5123, "count": 36, "type": "SCALAR"},
            {"bufferView": 1, "componentType": 5126, "count": 36, "type": "VEC3"},
            {"bufferView": 2, "componentType": 5126, "count": 36, "type": "VEC3"},
            {"bufferView": 3, "componentType": 5126, "count": 36, "type": "VEC4"},
            {"bufferView": 4, "componentType": 5126, "count": 36, "type": "VEC2"},
        ],
        "materials": [
            {
                "name": "Cube",
                "pbrMetallicRoughness": {
                    "baseColorTexture": {"index": 0},
                    "metallicRoughnessTexture": {"index": 1},
                },
            }
        ],
        "textures": [{"sampler": 0, "source": 0}, {"sampler": 0, "source": 1}],
        "images": [
            {"uri": "Cube_BaseColor.png"},
            {"uri": "Cube_MetallicRoughness.png"},
        ],
        "samplers": [{}],
        "bufferViews": views,
        "buffers": [{"byteLength": CUBE_BIN_LENGTH, "uri": "Cube.bin"}],
    }


def write_document(
    directory: Path,
    name: str,
    doc: Mapping[str, Any],
    payloads: Optional[Mapping[str, bytes]] = None,
) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text(json.dumps(doc, indent=2), encoding="utf-8")
    for file_name, data in (payloads or {}).items():
        (directory / file_name).write_bytes(data)
    return path


def build_glb(doc: Mapping[str, Any], bin_chunk: Optional[bytes] = None) -> bytes:
    json_bytes = json.dumps(doc).encode("utf-8")
    json_bytes += b" " * (-len(json_bytes) % 4)
    body = struct.pack("<II", len(json_bytes), 0x4E4F534A) + json_bytes
    if bin_chunk is not None:
        padded = bin_chunk + b"\x00" * (-len(bin_chunk) % 4)
        body += struct.pack("<II", len(padded), 0x004E4942) + padded
    return struct.pack("<III", 0x46546C67, 2, 12 + len(body)) + body


def json_data(doc: Mapping[str, Any]) -> JsonData:
    return JsonData(copy.deepcopy(dict(doc)))
