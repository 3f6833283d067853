"""Post-parse validation of references and value constraints."""

from __future__ import annotations

import copy
from pathlib import Path

import pytest

from gltfgraph import Category, Error, Extensions, Parser
from gltfgraph.errors import GltfError
from gltfgraph.models import Asset, Node, Scene
from gltfgraph.validator import validate_asset

from gltf_helper import box_document, cube_document, json_data, minimal_document


def _full_document():
    doc = cube_document()
    doc["nodes"].append({"children": [0], "camera": 0, "skin": 0})
    doc["cameras"] = [{"type": "perspective", "perspective": {"yfov": 0.7, "znear": 0.1, "zfar": 50}}]
    doc["skins"] = [{"joints": [0], "inverseBindMatrices": 3}]
    doc["images"].append({"bufferView": 4, "mimeType": "image/png"})
    doc["animations"] = [
        {
            "channels": [{"sampler": 0, "target": {"node": 0, "path": "translation"}}],
            "samplers": [{"input": 0, "output": 1}],
        }
    ]
    return doc


def _validate(tmp_path: Path, doc, extensions=Extensions.NONE):
    gltf = Parser(extensions).load_gltf(json_data(doc), tmp_path)
    assert gltf.parse() is Error.NONE
    return gltf.validate(), gltf


def test_valid_document(tmp_path: Path):
    code, _ = _validate(tmp_path, _full_document())
    assert code is Error.NONE


def _set(path, value):
    def mutate(doc):
        target = doc
        for key in path[:-1]:
            target = target[key]
        target[path[-1]] = value

    return mutate


@pytest.mark.parametrize(
    "mutate,error_path",
    [
        (_set(["accessors", 0, "bufferView"], 9), "accessors[0].bufferView"),
        (_set(["bufferViews", 1, "buffer"], 1), "bufferViews[1].buffer"),
        (_set(["images", 2, "bufferView"], 5), "images[2].bufferView"),
        (_set(["textures", 0, "source"], 3), "textures[0].source"),
        (_set(["textures", 1, "sampler"], 1), "textures[1].sampler"),
        (
            _set(["materials", 0, "pbrMetallicRoughness", "baseColorTexture", "index"], 2),
            "materials[0].pbrMetallicRoughness.baseColorTexture.index",
        ),
        (
            _set(["meshes", 0, "primitives", 0, "attributes", "POSITION"], 5),
            "meshes[0].primitives[0].attributes.POSITION",
        ),
        (_set(["meshes", 0, "primitives", 0, "indices"], 7), "meshes[0].primitives[0].indices"),
        (_set(["meshes", 0, "primitives", 0, "material"], 1), "meshes[0].primitives[0].material"),
        (_set(["nodes", 0, "mesh"], 1), "nodes[0].mesh"),
        (_set(["nodes", 1, "camera"], 1), "nodes[1].camera"),
        (_set(["nodes", 1, "skin"], 4), "nodes[1].skin"),
        (_set(["nodes", 1, "children"], [0, 3]), "nodes[1].children[1]"),
        (_set(["scenes", 0, "nodes"], [2]), "scenes[0].nodes[0]"),
        (_set(["scene"], 1), "scene"),
        (_set(["skins", 0, "joints"], [0, 2]), "skins[0].joints[1]"),
        (_set(["skins", 0, "inverseBindMatrices"], 5), "skins[0].inverseBindMatrices"),
        (
            _set(["animations", 0, "channels", 0, "sampler"], 1),
            "animations[0].channels[0].sampler",
        ),
        (
            _set(["animations", 0, "channels", 0, "target", "node"], 2),
            "animations[0].channels[0].target.node",
        ),
        (_set(["animations", 0, "samplers", 0, "output"], 5), "animations[0].samplers[0].output"),
    ],
)
def test_index_out_of_range(tmp_path: Path, mutate, error_path):
    doc = _full_document()
    mutate(doc)
    code, gltf = _validate(tmp_path, doc)
    assert code is Error.INDEX_OUT_OF_RANGE
    assert gltf.last_error.context["path"] == error_path


@pytest.mark.parametrize(
    "mutate",
    [
        _set(["accessors", 0, "count"], 0),
        _set(["bufferViews", 0, "byteStride"], 6),
        _set(["bufferViews", 0, "byteStride"], 256),
        _set(["bufferViews", 4, "byteLength"], 400),
        _set(["buffers", 0, "byteLength"], 0),
        _set(["materials", 0, "alphaCutoff"], -0.5),
        _set(["meshes", 0, "primitives"], []),
        _set(["skins", 0, "joints"], []),
        _set(["nodes", 1, "children"], [1]),
        _set(["cameras", 0, "perspective", "zfar"], 0.05),
        _set(["cameras", 0, "perspective", "yfov"], 0),
        _set(["animations", 0, "channels"], []),
        _set(
            ["accessors", 1, "sparse"],
            {
                "count": 1,
                "indices": {"bufferView": 0, "componentType": 5122},
                "values": {"bufferView": 1},
            },
        ),
    ],
    ids=[
        "zero-count",
        "stride-not-multiple-of-4",
        "stride-too-large",
        "view-past-buffer-end",
        "empty-buffer",
        "negative-alpha-cutoff",
        "mesh-without-primitives",
        "skin-without-joints",
        "self-parenting",
        "zfar-before-znear",
        "zero-yfov",
        "animation-without-channels",
        "signed-sparse-indices",
    ],
)
def test_value_constraints(tmp_path: Path, mutate):
    doc = _full_document()
    mutate(doc)
    code, _ = _validate(tmp_path, doc)
    assert code is Error.INVALID_GLTF


def test_orthographic_and_lights(tmp_path: Path):
    doc = minimal_document(
        cameras=[{"type": "orthographic", "orthographic": {"xmag": 0, "ymag": 1, "zfar": 10, "znear": 0}}]
    )
    code, _ = _validate(tmp_path, doc)
    assert code is Error.INVALID_GLTF

    spot = {"type": "spot", "spot": {"innerConeAngle": 0.9, "outerConeAngle": 0.5}}
    doc = minimal_document(extensions={"KHR_lights_punctual": {"lights": [spot]}})
    code, _ = _validate(tmp_path, doc, Extensions.KHR_LIGHTS_PUNCTUAL)
    assert code is Error.INVALID_GLTF

    point = {"type": "point", "range": 0}
    doc = minimal_document(extensions={"KHR_lights_punctual": {"lights": [point]}})
    code, _ = _validate(tmp_path, doc, Extensions.KHR_LIGHTS_PUNCTUAL)
    assert code is Error.INVALID_GLTF


def test_node_light_out_of_range(tmp_path: Path):
    doc = minimal_document(
        extensions={"KHR_lights_punctual": {"lights": [{"type": "directional"}]}},
        nodes=[{"extensions": {"KHR_lights_punctual": {"light": 1}}}],
    )
    code, gltf = _validate(tmp_path, doc, Extensions.KHR_LIGHTS_PUNCTUAL)
    assert code is Error.INDEX_OUT_OF_RANGE
    assert gltf.last_error.context["path"] == "nodes[0].extensions.KHR_lights_punctual.light"


def test_partial_parse_skips_unparsed_references(tmp_path: Path):
    doc = box_document()
    doc["nodes"][1]["mesh"] = 7
    gltf = Parser().load_gltf(json_data(doc), tmp_path)
    assert gltf.parse(Category.ACCESSORS) is Error.NONE
    assert gltf.validate() is Error.NONE
    assert gltf.parse(Category.NODES) is Error.NONE
    assert gltf.validate() is Error.INDEX_OUT_OF_RANGE


def test_validate_asset_directly():
    asset = Asset(nodes=[Node(children=[3])], scenes=[Scene(node_indices=[0])])
    with pytest.raises(GltfError) as exc:
        validate_asset(asset)
    assert exc.value.code is Error.INDEX_OUT_OF_RANGE
    assert exc.value.context == {"path": "nodes[0].children[0]", "index": 3, "size": 1}
    # Restricting to scenes only leaves the node table unchecked.
    validate_asset(asset, Category.SCENES)


def test_validate_does_not_mutate(tmp_path: Path):
    _, gltf = _validate(tmp_path, _full_document())
    before = copy.deepcopy(gltf.get_parsed_asset())
    assert gltf.validate() is Error.NONE
    assert gltf.get_parsed_asset() == before
