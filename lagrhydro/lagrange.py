"""Lagrangian phase: masses, pseudo-viscosity, forces, velocity, position and density."""

from __future__ import annotations

import numpy as np

# Hourglass modes of a hexahedron: one row of node signs per mode.
_HEX_MODES = np.array(
    [
        [1, 1, -1, -1, -1, -1, 1, 1],
        [1, -1, -1, 1, -1, 1, 1, -1],
        [1, -1, 1, -1, 1, -1, 1, -1],
        [-1, 1, -1, 1, 1, -1, 1, -1],
    ],
    dtype=float,
)

# How each node of a hexahedron takes its share of the four modes.
_HEX_SHARES = np.array(
    [
        [1, 1, 1, -1],
        [1, -1, -1, 1],
        [-1, -1, 1, -1],
        [-1, 1, -1, 1],
        [-1, -1, 1, 1],
        [-1, 1, -1, -1],
        [1, 1, 1, 1],
        [1, -1, -1, -1],
    ],
    dtype=float,
)

_QUAD_MODES = np.array([[1, -1, 1, -1]], dtype=float)
_QUAD_SHARES = np.array([[1], [-1], [1], [-1]], dtype=float)


def _cell_field(values, n_cells):
    return np.broadcast_to(np.asarray(values, dtype=float), (n_cells,))


def cell_mass(density, volume):
    """Mass of every cell (or environment cell) from density and volume."""
    return np.asarray(density, dtype=float) * np.asarray(volume, dtype=float)


def node_mass(mesh, cell_masses):
    """Nodal masses: each cell gives an equal share of its mass to its nodes."""
    cell_masses = _cell_field(cell_masses, len(mesh.cell_nodes))
    share = 0.25 if mesh.dimension == 2 else 0.125
    masses = np.zeros(len(mesh.coords))
    nodes_per_cell = mesh.cell_nodes.shape[1]
    np.add.at(masses, mesh.cell_nodes.ravel(), np.repeat(share * cell_masses, nodes_per_cell))
    return masses


def mixed_average(cell_values, env_values, env_cells, weights):
    """Replace the value of every cell not holding exactly one environment by a weighted sum.

    ``env_values`` and ``weights`` have shape (nb_env, n_cells); ``env_cells``
    lists the cells of each environment.
    """
    result = np.array(cell_values, dtype=float, copy=True)
    env_values = np.asarray(env_values, dtype=float)
    weights = np.asarray(weights, dtype=float)
    counts = np.zeros(len(result), dtype=np.int64)
    weighted = np.zeros(len(result))
    for env, cells in enumerate(env_cells):
        cells = np.asarray(cells, dtype=np.intp)
        np.add.at(counts, cells, 1)
        np.add.at(weighted, cells, env_values[env, cells] * weights[env, cells])
    mixed = counts != 1
    result[mixed] = weighted[mixed]
    return result


def artificial_viscosity(div_u, tau_density, length, sound_speed, a1, a2):
    """Linear plus quadratic pseudo-viscosity, non-zero only in compression."""
    div_u = np.asarray(div_u, dtype=float)
    tau_density = np.asarray(tau_density, dtype=float)
    length = np.asarray(length, dtype=float)
    sound_speed = np.asarray(sound_speed, dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        q = (-a1 * length * sound_speed * div_u + a2 * length * length * div_u * div_u) / tau_density
    return np.where(div_u < 0.0, q, 0.0)


def nodal_forces(mesh, pressure, pseudo, cqs, stress=None):
    """Pressure, pseudo-viscosity and deviatoric stress forces gathered at the nodes.

    ``stress`` is the deviatoric tensor per cell, shape (n_cells, 3, 3), or None.
    """
    n_cells = len(mesh.cell_nodes)
    cqs = np.asarray(cqs, dtype=float)
    total = _cell_field(pressure, n_cells) + _cell_field(pseudo, n_cells)
    corner = total[:, None, None] * cqs
    if stress is not None:
        stress = np.broadcast_to(np.asarray(stress, dtype=float), (n_cells, 3, 3))
        corner = corner - np.einsum("cij,cnj->cni", stress, cqs)
    forces = np.zeros((len(mesh.coords), 3))
    np.add.at(forces, mesh.cell_nodes.ravel(), corner.reshape(-1, 3))
    return forces


def update_velocity(velocity, forces, node_mass, dt, gravity=(0.0, 0.0, 0.0)):
    """Advance nodal velocities by ``dt`` under the nodal forces and gravity."""
    velocity = np.asarray(velocity, dtype=float)
    forces = np.asarray(forces, dtype=float)
    masses = np.asarray(node_mass, dtype=float)
    return velocity + (dt / masses)[:, None] * forces + dt * np.asarray(gravity, dtype=float)


def advection_velocity(velocity_n, reverse, factor, time):
    """Prescribed velocity of pure advection, optionally reversed periodically in time."""
    velocity_n = np.asarray(velocity_n, dtype=float)
    option = 1.0 if reverse else 0.0
    return velocity_n * (1.0 - option) + option * velocity_n * np.cos(np.pi * time * factor)


def hourglass_correction(mesh, velocity, coeff):
    """Anti-hourglass velocity correction per node, to be subtracted from the velocity."""
    velocity = np.asarray(velocity, dtype=float)
    if mesh.dimension == 2:
        modes, shares = _QUAD_MODES, _QUAD_SHARES
    else:
        modes, shares = _HEX_MODES, _HEX_SHARES
    cell_velocity = velocity[mesh.cell_nodes]
    psi = coeff * np.einsum("mn,cnk->cmk", modes, cell_velocity)
    contributions = np.einsum("nm,cmk->cnk", shares, psi)
    counts = mesh.node_cell_counts().astype(float)
    contributions = contributions / counts[mesh.cell_nodes][..., None]
    correction = np.zeros((len(mesh.coords), 3))
    np.add.at(correction, mesh.cell_nodes.ravel(), contributions.reshape(-1, 3))
    return correction


def update_position(coord, velocity, dt):
    """Node coordinates moved by ``dt`` at the given velocity."""
    return np.asarray(coord, dtype=float) + dt * np.asarray(velocity, dtype=float)


def update_density(cell_mass, volume, density_n, density0=None, threshold=None):
    """New density and specific volume at n+1/2.

    When ``threshold`` is given, the density is kept from falling below
    ``threshold * density0``.
    """
    with np.errstate(divide="ignore", invalid="ignore"):
        density = np.asarray(cell_mass, dtype=float) / np.asarray(volume, dtype=float)
        if threshold is not None:
            if density0 is None:
                raise ValueError("a reference density is needed with a threshold")
            density0 = np.broadcast_to(np.asarray(density0, dtype=float), density.shape)
            floor = threshold * density0
            density = np.where(density / density0 < threshold, floor, density)
        tau = 0.5 * (1.0 / np.asarray(density_n, dtype=float) + 1.0 / density)
    return density, tau


def velocity_divergence(density, density_n, tau_density, dt):
    """Velocity divergence from the change of specific volume over ``dt``."""
    density = np.asarray(density, dtype=float)
    density_n = np.asarray(density_n, dtype=float)
    return (1.0 / dt) * (1.0 / density - 1.0 / density_n) / np.asarray(tau_density, dtype=float)