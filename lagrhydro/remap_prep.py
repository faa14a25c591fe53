"""Preparation of the quantities handed to the remap phase."""

from __future__ import annotations

import numpy as np

_VARS_PER_ENV = 18
_PSEUDO_SLOT = 7


def face_quantities_for_remap(mesh, velocity, velocity_n, face_normal, csts):
    """Face lengths per direction, face centres and normal face velocity."""
    coords = mesh.coords
    nodes = mesh.face_nodes
    velocity = np.asarray(velocity, dtype=float)
    if mesh.dimension == 3:
        vec1 = coords[nodes[:, 2]] - coords[nodes[:, 0]]
        vec2 = coords[nodes[:, 3]] - coords[nodes[:, 1]]
        lengths = 0.5 * np.abs(np.cross(vec1, vec2))
        factor = 0.25
    else:
        edge = coords[nodes[:, 1]] - coords[nodes[:, 0]]
        lengths = np.column_stack((np.abs(edge[:, 1]), np.abs(edge[:, 0]), np.zeros(len(edge))))
        factor = 0.5
    centers = factor * coords[nodes].sum(axis=1)
    if csts:
        node_velocity = 0.5 * (velocity[nodes] + np.asarray(velocity_n, dtype=float)[nodes])
    else:
        node_velocity = velocity[nodes]
    mean_velocity = factor * node_velocity.sum(axis=1)
    normal_velocity = np.einsum("ij,ij->i", mean_velocity, np.asarray(face_normal, dtype=float))
    return lengths, centers, normal_velocity


def variables_for_remap(nb_env, env_cells, fields, cell_volume, pseudo, slope_limited, nb_vars):
    """Conservative (u) and primitive (phi) cell variables for the remap.

    ``fields`` maps names to per-environment arrays of shape (nb_env, n_cells):
    ``volume``, ``density`` and ``internal_energy`` are required; ``fracvol``,
    ``frac_phase1`` .. ``frac_phase4``, ``plastic_deformation_velocity``,
    ``plastic_deformation``, ``internal_energy_n``, ``temperature`` and
    ``temperature_n`` default to zero (``fracvol`` to one), and
    ``strain_tensor`` of shape (nb_env, n_cells, 3, 3) defaults to zero.
    """
    if len(env_cells) != nb_env:
        raise ValueError("one cell list is needed per environment")
    if nb_vars < _VARS_PER_ENV * nb_env:
        raise ValueError(f"at least {_VARS_PER_ENV * nb_env} remap variables are needed")
    cell_volume = np.asarray(cell_volume, dtype=float)
    pseudo = np.asarray(pseudo, dtype=float)
    n_cells = len(cell_volume)

    def env_field(name, default=0.0):
        values = fields.get(name)
        if values is None:
            return np.full((nb_env, n_cells), default)
        return np.asarray(values, dtype=float)

    volume = np.asarray(fields["volume"], dtype=float)
    density = np.asarray(fields["density"], dtype=float)
    energy = np.asarray(fields["internal_energy"], dtype=float)
    fracvol = env_field("fracvol", 1.0)
    phases = [env_field(f"frac_phase{k}") for k in range(1, 5)]
    plastic_velocity = env_field("plastic_deformation_velocity")
    plastic = env_field("plastic_deformation")
    energy_n = env_field("internal_energy_n")
    temperature = env_field("temperature")
    temperature_n = env_field("temperature_n")
    strain = fields.get("strain_tensor")
    strain = np.zeros((nb_env, n_cells, 3, 3)) if strain is None else np.asarray(strain, dtype=float)

    u = np.zeros((n_cells, nb_vars))
    phi = np.zeros((n_cells, nb_vars))
    present = np.zeros(n_cells, dtype=bool)

    for env, cells in enumerate(env_cells):
        cells = np.asarray(cells, dtype=np.intp)
        vol = volume[env, cells]
        rho = density[env, cells]
        mass = vol * rho
        stress = strain[env, cells]
        deviators = (stress[:, 0, 0], stress[:, 1, 1], stress[:, 0, 1], stress[:, 1, 2], stress[:, 2, 0])
        per_mass = [energy[env, cells]] + [phase[env, cells] for phase in phases]
        tail = [plastic_velocity, plastic, energy_n, temperature, temperature_n]
        tail_values = [field[env, cells] for field in tail]

        primitives = [fracvol[env, cells], rho, *per_mass, None, *deviators, *tail_values]
        conserved = (
            [vol, mass]
            + [mass * value for value in per_mass]
            + [None]
            + [vol * value for value in deviators]
            + [mass * value for value in tail_values]
        )
        for slot, (u_value, phi_value) in enumerate(zip(conserved, primitives)):
            if slot == _PSEUDO_SLOT:
                u[cells, slot * nb_env] = cell_volume[cells] * pseudo[cells]
                if slope_limited:
                    phi[cells, slot * nb_env] = pseudo[cells]
                continue
            u[cells, slot * nb_env + env] = u_value
            if slope_limited:
                phi[cells, slot * nb_env + env] = phi_value
        present[cells] = True

    if not slope_limited:
        phi[present] = u[present] / cell_volume[present, None]
    return u, phi


def dual_variables_for_remap(node_mass, velocity):
    """Nodal conservative and primitive variables: momentum/velocity, mass, kinetic energy."""
    mass = np.asarray(node_mass, dtype=float)
    velocity = np.asarray(velocity, dtype=float)
    kinetic = 0.5 * np.einsum("ij,ij->i", velocity, velocity)
    u_dual = np.column_stack((mass[:, None] * velocity, mass, mass * kinetic))
    phi_dual = np.column_stack((velocity, mass, kinetic))
    return u_dual, phi_dual


def material_indicator(nb_env, env_cells, fracvol, nb_cells):
    """Per-cell indicator: sum of environment index weighted by volume fraction."""
    if len(env_cells) != nb_env:
        raise ValueError("one cell list is needed per environment")
    fracvol = np.asarray(fracvol, dtype=float)
    materiau = np.zeros(nb_cells)
    for env, cells in enumerate(env_cells):
        cells = np.asarray(cells, dtype=np.intp)
        np.add.at(materiau, cells, env * fracvol[env, cells])
    return materiau