"""Structured cartesian meshes, boundary face groups and pressure tables."""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from pathlib import Path

import numpy as np

# Node offsets of a cell, in local node order (counter-clockwise, bottom then top).
_CELL_OFFSETS = {
    2: ((0, 0), (1, 0), (1, 1), (0, 1)),
    3: (
        (0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0),
        (0, 0, 1), (1, 0, 1), (1, 1, 1), (0, 1, 1),
    ),
}

# Node offsets of a face, by face normal direction, in perimeter order.
_FACE_OFFSETS = {
    2: {0: ((0, 0), (0, 1)), 1: ((0, 0), (1, 0))},
    3: {
        0: ((0, 0, 0), (0, 1, 0), (0, 1, 1), (0, 0, 1)),
        1: ((0, 0, 0), (1, 0, 0), (1, 0, 1), (0, 0, 1)),
        2: ((0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0)),
    },
}

# (direction, offset) of each face of a cell, in local face order.
_CELL_FACES = {
    2: ((1, (0, 0)), (0, (1, 0)), (1, (0, 1)), (0, (0, 0))),
    3: (
        (2, (0, 0, 0)), (0, (0, 0, 0)), (1, (0, 0, 0)),
        (2, (0, 0, 1)), (0, (1, 0, 0)), (1, (0, 1, 0)),
    ),
}


def _flat(index, dims):
    """Flat index of a grid position, first axis varying fastest."""
    flat = 0
    for i, n in zip(reversed(index), reversed(dims)):
        flat = flat * n + i
    return flat


def _grid(dims):
    """Grid positions in flat order, first axis varying fastest."""
    for idx in itertools.product(*(range(n) for n in reversed(dims))):
        yield tuple(reversed(idx))


def _shift(position, offset):
    return tuple(p + o for p, o in zip(position, offset))


@dataclass
class Mesh:
    """A structured mesh of quadrangles (2D) or hexahedra (3D)."""

    dimension: int
    shape: tuple
    coords: np.ndarray
    cell_nodes: np.ndarray
    face_nodes: np.ndarray
    face_cells: np.ndarray
    face_directions: np.ndarray
    cell_faces: np.ndarray

    def _node_dims(self):
        return tuple(n + 1 for n in self.shape)

    def cell_centers(self):
        """Barycentre of the nodes of each cell."""
        factor = 0.25 if self.dimension == 2 else 0.125
        return factor * self.coords[self.cell_nodes].sum(axis=1)

    def face_centers(self):
        """Barycentre of the nodes of each face."""
        factor = 0.5 if self.dimension == 2 else 0.25
        return factor * self.coords[self.face_nodes].sum(axis=1)

    def node_cell_counts(self):
        """Number of cells around each node."""
        return np.bincount(self.cell_nodes.ravel(), minlength=len(self.coords))

    def directional_neighbours(self, idir):
        """Previous and next node of every node along a direction, -1 if none."""
        if not 0 <= idir < self.dimension:
            raise ValueError(f"direction {idir} out of range for a {self.dimension}D mesh")
        dims = self._node_dims()
        ids = np.arange(len(self.coords))
        stride = int(np.prod(dims[:idir], dtype=np.int64))
        pos = (ids // stride) % dims[idir]
        previous = np.where(pos > 0, ids - stride, -1)
        following = np.where(pos < dims[idir] - 1, ids + stride, -1)
        return previous, following

    def inner_nodes(self, idir):
        """Nodes having a neighbour on both sides along a direction."""
        previous, following = self.directional_neighbours(idir)
        return np.flatnonzero((previous >= 0) & (following >= 0))


def cartesian_mesh(shape, lengths, origin=None):
    """Build a regular cartesian mesh with ``shape`` cells spanning ``lengths``."""
    shape = tuple(int(n) for n in shape)
    dim = len(shape)
    if dim not in (2, 3):
        raise ValueError("only 2D and 3D meshes are supported")
    if any(n < 1 for n in shape):
        raise ValueError("every direction needs at least one cell")
    lengths = tuple(float(length) for length in lengths)
    if len(lengths) != dim or any(length <= 0.0 for length in lengths):
        raise ValueError("lengths must be positive, one per direction")
    origin = (0.0,) * dim if origin is None else tuple(float(o) for o in origin)
    if len(origin) != dim:
        raise ValueError("origin must have one value per direction")

    node_dims = tuple(n + 1 for n in shape)
    axes = [np.linspace(o, o + length, n + 1) for o, length, n in zip(origin, lengths, shape)]
    grids = np.meshgrid(*axes, indexing="ij")
    coords = np.zeros((int(np.prod(node_dims)), 3))
    for d, grid in enumerate(grids):
        coords[:, d] = grid.ravel(order="F")

    cell_nodes = np.array(
        [[_flat(_shift(cell, off), node_dims) for off in _CELL_OFFSETS[dim]] for cell in _grid(shape)],
        dtype=np.int64,
    )

    lookup = {}
    face_nodes, face_cells, face_directions = [], [], []
    for d in range(dim):
        face_dims = tuple(node_dims[a] if a == d else shape[a] for a in range(dim))
        for pos in _grid(face_dims):
            lookup[(d, pos)] = len(face_nodes)
            face_nodes.append([_flat(_shift(pos, off), node_dims) for off in _FACE_OFFSETS[dim][d]])
            before = tuple(p - 1 if a == d else p for a, p in enumerate(pos))
            prev_cell = _flat(before, shape) if pos[d] > 0 else -1
            next_cell = _flat(pos, shape) if pos[d] < shape[d] else -1
            face_cells.append((prev_cell, next_cell))
            face_directions.append(d)

    cell_faces = np.array(
        [[lookup[(d, _shift(cell, off))] for d, off in _CELL_FACES[dim]] for cell in _grid(shape)],
        dtype=np.int64,
    )

    return Mesh(
        dimension=dim,
        shape=shape,
        coords=coords,
        cell_nodes=cell_nodes,
        face_nodes=np.array(face_nodes, dtype=np.int64),
        face_cells=np.array(face_cells, dtype=np.int64),
        face_directions=np.array(face_directions, dtype=np.int64),
        cell_faces=cell_faces,
    )


def build_face_groups(mesh, threshold):
    """Faces lying on the bounding planes of the mesh, keyed XMIN ... ZMAX."""
    coords = mesh.coords
    max_coord = np.maximum(coords.max(axis=0), 0.0)
    min_coord = np.minimum(coords.min(axis=0), 100.0)
    face_coords = coords[mesh.face_nodes]
    groups = {}
    for bound, reference in (("MIN", min_coord), ("MAX", max_coord)):
        for axis, letter in enumerate("XYZ"):
            on_plane = np.abs(face_coords[..., axis] - reference[axis]) <= threshold
            groups[f"{letter}{bound}"] = np.flatnonzero(on_plane.all(axis=1))
    return {name: groups[name] for name in ("XMIN", "YMIN", "ZMIN", "XMAX", "YMAX", "ZMAX")}


def _materials_for(value):
    for k in range(4):
        if value == k:
            return (k,)
        if k < 3 and k < value < k + 1:
            return (k, k + 1)
    return (0, 1, 2, 3)


def sort_cells_by_material(materiau, nb_env):
    """Cell indices of each environment from a material indicator per cell."""
    buckets = [[] for _ in range(nb_env)]
    for cell, value in enumerate(np.asarray(materiau, dtype=float)):
        envs = _materials_for(value)
        if max(envs) >= nb_env:
            raise ValueError(f"cell {cell} with indicator {value} needs more than {nb_env} environments")
        for env in envs:
            buckets[env].append(cell)
    return [np.array(bucket, dtype=np.int64) for bucket in buckets]


@dataclass(frozen=True)
class PressureTable:
    """Pressure as a piecewise linear function of time."""

    times: tuple
    pressures: tuple

    def __post_init__(self):
        if len(self.times) != len(self.pressures):
            raise ValueError("times and pressures must have the same length")

    def value_at(self, time):
        """Interpolated pressure; zero before the second entry and after the last."""
        it = next((i for i, t in enumerate(self.times) if time < t), -1)
        if it <= 0:
            return 0.0
        t0, t1 = self.times[it - 1], self.times[it]
        alpha = min(max((time - t0) / (t1 - t0), 0.0), 1.0)
        p0, p1 = self.pressures[it - 1], self.pressures[it]
        return p0 + alpha * (p1 - p0)


def read_pressure_table(path):
    """Read whitespace separated (time, pressure) pairs until the first bad value."""
    values = []
    for token in Path(path).read_text().split():
        try:
            values.append(float(token))
        except ValueError:
            break
    count = len(values) // 2
    return PressureTable(
        times=tuple(values[0:2 * count:2]),
        pressures=tuple(values[1:2 * count:2]),
    )