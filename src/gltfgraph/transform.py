"""Node transform resolution: matrix <-> translation/rotation/scale.

Matrices are 16 floats in column-major order, quaternions are (x, y, z, w).
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from .models import TRS, Matrix, Transform

__all__ = [
    "matrix_to_array",
    "quaternion_to_matrix",
    "decompose_transform_matrix",
    "compose_transform_matrix",
    "resolve_transform",
]


def matrix_to_array(values: Sequence[float]) -> np.ndarray:
    """Return the 4x4 (row, column) array for a column-major value list."""
    return np.asarray(values, dtype=np.float64).reshape(4, 4).T


def quaternion_to_matrix(rotation: Sequence[float]) -> np.ndarray:
    x, y, z, w = (float(c) for c in rotation)
    return np.array(
        [
            [1 - 2 * (y * y + z * z), 2 * (x * y - z * w), 2 * (x * z + y * w)],
            [2 * (x * y + z * w), 1 - 2 * (x * x + z * z), 2 * (y * z - x * w)],
            [2 * (x * z - y * w), 2 * (y * z + x * w), 1 - 2 * (x * x + y * y)],
        ],
        dtype=np.float64,
    )


def _quaternion_from_basis(r: np.ndarray) -> list[float]:
    trace = r[0, 0] + r[1, 1] + r[2, 2]
    if trace > 0.0:
        s = 0.5 / np.sqrt(trace + 1.0)
        w = 0.25 / s
        x = (r[2, 1] - r[1, 2]) * s
        y = (r[0, 2] - r[2, 0]) * s
        z = (r[1, 0] - r[0, 1]) * s
    elif r[0, 0] > r[1, 1] and r[0, 0] > r[2, 2]:
        s = 2.0 * np.sqrt(1.0 + r[0, 0] - r[1, 1] - r[2, 2])
        w = (r[2, 1] - r[1, 2]) / s
        x = 0.25 * s
        y = (r[0, 1] + r[1, 0]) / s
        z = (r[0, 2] + r[2, 0]) / s
    elif r[1, 1] > r[2, 2]:
        s = 2.0 * np.sqrt(1.0 + r[1, 1] - r[0, 0] - r[2, 2])
        w = (r[0, 2] - r[2, 0]) / s
        x = (r[0, 1] + r[1, 0]) / s
        y = 0.25 * s
        z = (r[1, 2] + r[2, 1]) / s
    else:
        s = 2.0 * np.sqrt(1.0 + r[2, 2] - r[0, 0] - r[1, 1])
        w = (r[1, 0] - r[0, 1]) / s
        x = (r[0, 2] + r[2, 0]) / s
        y = (r[1, 2] + r[2, 1]) / s
        z = 0.25 * s
    q = np.array([x, y, z, w], dtype=np.float64)
    q /= np.linalg.norm(q)
    return [float(c) for c in q]


def decompose_transform_matrix(values: Sequence[float]) -> TRS:
    """Split a column-major affine matrix into translation, rotation, scale.

    Mirrored matrices (negative determinant) yield a negative x scale.
    Degenerate (zero length) basis columns keep a zero scale and an identity
    basis vector for that axis.
    """
    m = matrix_to_array(values)
    translation = m[:3, 3].copy()
    basis = m[:3, :3].copy()

    scale = np.linalg.norm(basis, axis=0)
    for axis in range(3):
        if scale[axis] > 0.0:
            basis[:, axis] /= scale[axis]
        else:
            basis[:, axis] = np.eye(3)[:, axis]

    if np.linalg.det(basis) < 0.0:
        scale[0] = -scale[0]
        basis[:, 0] = -basis[:, 0]

    rotation = _quaternion_from_basis(basis)
    return TRS(
        translation=[float(c) for c in translation],
        rotation=rotation,
        scale=[float(c) for c in scale],
    )


def compose_transform_matrix(trs: TRS) -> list[float]:
    """Build T * R * S and return it as a column-major list of 16 floats."""
    m = np.eye(4, dtype=np.float64)
    m[:3, :3] = quaternion_to_matrix(trs.rotation) * np.asarray(
        trs.scale, dtype=np.float64
    )
    m[:3, 3] = np.asarray(trs.translation, dtype=np.float64)
    return [float(c) for c in m.T.reshape(16)]


def resolve_transform(transform: Transform, decompose: bool) -> Transform:
    """Return the node transform, decomposing matrices when requested."""
    if isinstance(transform, Matrix):
        if decompose:
            return decompose_transform_matrix(transform.values)
        return transform
    if isinstance(transform, TRS):
        return transform
    raise TypeError(f"Unknown transform: {transform!r}")
