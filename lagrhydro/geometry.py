"""Geometric quantities of the mesh: corner normals, volumes, lengths and face normals."""

from __future__ import annotations

import numpy as np

_ORIENTATION_TOLERANCE = 1.0e-10

# Node quadruples of the six faces of a hexahedron, used for the face centres.
_HEX_FACES = (
    (0, 3, 2, 1),
    (0, 4, 7, 3),
    (0, 1, 5, 4),
    (4, 5, 6, 7),
    (1, 2, 6, 5),
    (2, 3, 7, 6),
)

# Triangle half-normals of each face: name -> (face index, first node, second node).
_HEX_TRIANGLES = {
    "n1a04": (0, 0, 3), "n1a03": (0, 3, 2), "n1a02": (0, 2, 1), "n1a01": (0, 1, 0),
    "n2a05": (1, 0, 4), "n2a12": (1, 4, 7), "n2a08": (1, 7, 3), "n2a04": (1, 3, 0),
    "n3a01": (2, 0, 1), "n3a06": (2, 1, 5), "n3a09": (2, 5, 4), "n3a05": (2, 4, 0),
    "n4a09": (3, 4, 5), "n4a10": (3, 5, 6), "n4a11": (3, 6, 7), "n4a12": (3, 7, 4),
    "n5a02": (4, 1, 2), "n5a07": (4, 2, 6), "n5a10": (4, 6, 5), "n5a06": (4, 5, 1),
    "n6a03": (5, 2, 3), "n6a08": (5, 3, 7), "n6a11": (5, 7, 6), "n6a07": (5, 6, 2),
}

# For each corner: the six triangles weighted by 5 and the six weighted by 1.
_HEX_CORNERS = (
    (("n1a01", "n1a04", "n2a04", "n2a05", "n3a05", "n3a01"),
     ("n1a02", "n1a03", "n2a08", "n2a12", "n3a06", "n3a09")),
    (("n1a01", "n1a02", "n3a01", "n3a06", "n5a06", "n5a02"),
     ("n1a04", "n1a03", "n3a09", "n3a05", "n5a10", "n5a07")),
    (("n1a02", "n1a03", "n5a07", "n5a02", "n6a07", "n6a03"),
     ("n1a01", "n1a04", "n5a06", "n5a10", "n6a11", "n6a08")),
    (("n1a03", "n1a04", "n2a08", "n2a04", "n6a08", "n6a03"),
     ("n1a01", "n1a02", "n2a05", "n2a12", "n6a07", "n6a11")),
    (("n2a05", "n2a12", "n3a05", "n3a09", "n4a09", "n4a12"),
     ("n2a08", "n2a04", "n3a01", "n3a06", "n4a10", "n4a11")),
    (("n3a06", "n3a09", "n4a09", "n4a10", "n5a10", "n5a06"),
     ("n3a01", "n3a05", "n4a12", "n4a11", "n5a07", "n5a02")),
    (("n4a11", "n4a10", "n5a10", "n5a07", "n6a07", "n6a11"),
     ("n4a12", "n4a09", "n5a06", "n5a02", "n6a03", "n6a08")),
    (("n2a08", "n2a12", "n4a12", "n4a11", "n6a11", "n6a08"),
     ("n2a04", "n2a05", "n4a09", "n4a10", "n6a07", "n6a03")),
)

LENGTH_METHODS = (
    "faces-opposees",
    "racine-cubique-volume",
    "monodimX",
    "monodimY",
    "monodimZ",
)


class NegativeVolumeError(ValueError):
    """A cell has a negative volume."""

    def __init__(self, cell, volume):
        super().__init__(f"negative volume {volume} in cell {cell}")
        self.cell = cell
        self.volume = volume


def produit(a, b, c, d):
    """Return ``a * b - c * d``."""
    return a * b - c * d


def _hex_face_centres(x):
    return [0.25 * x[:, list(face)].sum(axis=1) for face in _HEX_FACES]


def _cqs_3d(x):
    centres = _hex_face_centres(x)
    half_normals = {
        name: 0.5 * np.cross(x[:, a] - centres[face], x[:, b] - centres[face])
        for name, (face, a, b) in _HEX_TRIANGLES.items()
    }
    corners = [
        (5.0 * sum(half_normals[n] for n in strong) + sum(half_normals[n] for n in weak)) / 12.0
        for strong, weak in _HEX_CORNERS
    ]
    return np.stack(corners, axis=1)


def _cqs_2d(x):
    following = np.roll(x, -1, axis=1)
    # Half normal of the edge ending at node i+1, stored at index i.
    edge = np.zeros_like(x)
    edge[..., 0] = 0.5 * (following[..., 1] - x[..., 1])
    edge[..., 1] = 0.5 * (x[..., 0] - following[..., 0])
    # Node i gathers the edge ending at it and the edge starting from it.
    return edge + np.roll(edge, 1, axis=1)


def compute_cqs(mesh):
    """Corner normals of every cell, shape (n_cells, nodes_per_cell, 3)."""
    x = mesh.coords[mesh.cell_nodes]
    if mesh.dimension == 3:
        return _cqs_3d(x)
    return _cqs_2d(x)


def cell_volumes(mesh, cqs):
    """Cell volumes from the corner normals; raises on a negative volume."""
    x = mesh.coords[mesh.cell_nodes]
    volumes = np.einsum("cnk,cnk->c", x, np.asarray(cqs, dtype=float)) / mesh.dimension
    negative = np.flatnonzero(volumes < 0.0)
    if negative.size:
        cell = int(negative[0])
        raise NegativeVolumeError(cell, float(volumes[cell]))
    return volumes


def characteristic_length(mesh, volumes, method):
    """Characteristic length of every cell by the named method."""
    coords = mesh.coords
    nodes = mesh.cell_nodes
    if method == "faces-opposees":
        if mesh.dimension != 3:
            raise ValueError("the opposite faces length needs hexahedral cells")
        centres = _hex_face_centres(coords[nodes])
        d1 = np.linalg.norm(centres[0] - centres[3], axis=1)
        d2 = np.linalg.norm(centres[2] - centres[5], axis=1)
        d3 = np.linalg.norm(centres[1] - centres[4], axis=1)
        return d1 * d2 * d3 / (d1 * d2 + d1 * d3 + d2 * d3)
    if method == "racine-cubique-volume":
        exponent = 0.5 if mesh.dimension == 2 else 1.0 / 3.0
        return np.power(np.asarray(volumes, dtype=float), exponent)
    axis = {"monodimX": 0, "monodimY": 1, "monodimZ": 2}.get(method)
    if axis is None:
        raise ValueError(f"unknown characteristic length method {method!r}")
    return np.abs(coords[nodes[:, 2], axis] - coords[nodes[:, 0], axis])


def face_normals(mesh):
    """Unit normal of every face."""
    coords = mesh.coords
    nodes = mesh.face_nodes
    normals = np.zeros((len(nodes), 3))
    if mesh.dimension == 3:
        v1 = coords[nodes[:, 2]] - coords[nodes[:, 0]]
        v2 = coords[nodes[:, 3]] - coords[nodes[:, 1]]
        normals[:, 0] = produit(v1[:, 1], v2[:, 2], v1[:, 2], v2[:, 1])
        normals[:, 1] = -produit(v2[:, 0], v1[:, 2], v2[:, 2], v1[:, 0])
        normals[:, 2] = produit(v1[:, 0], v2[:, 1], v1[:, 1], v2[:, 0])
    else:
        edge = coords[nodes[:, 1]] - coords[nodes[:, 0]]
        normals[:, 0] = edge[:, 1]
        normals[:, 1] = edge[:, 0]
    return normals / np.linalg.norm(normals, axis=1)[:, None]


def face_orientations(normals):
    """Index of the first axis the normal is not orthogonal to; 0 if none."""
    normals = np.asarray(normals, dtype=float)
    significant = np.abs(normals) >= _ORIENTATION_TOLERANCE
    return np.where(significant.any(axis=1), significant.argmax(axis=1), 0)


def outer_face_normals(mesh):
    """Unit vectors from each cell centre to the centres of its faces."""
    offsets = mesh.face_centers()[mesh.cell_faces] - mesh.cell_centers()[:, None, :]
    return offsets / np.linalg.norm(offsets, axis=2)[..., None]