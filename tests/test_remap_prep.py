import numpy as np
import pytest

from lagrhydro.mesh import cartesian_mesh
from lagrhydro.remap_prep import (
    dual_variables_for_remap,
    face_quantities_for_remap,
    material_indicator,
    variables_for_remap,
)


def _normals(mesh):
    return np.eye(3)[mesh.face_directions]


def test_face_quantities_2d_uniform_velocity():
    mesh = cartesian_mesh((2, 3), (1.0, 3.0))
    n_nodes = len(mesh.coords)
    v = np.tile([2.0, -1.0, 0.0], (n_nodes, 1))
    lengths, centers, normal_velocity = face_quantities_for_remap(mesh, v, None, _normals(mesh), False)
    assert np.allclose(centers, mesh.face_centers())
    x_faces = mesh.face_directions == 0
    assert np.allclose(lengths[x_faces, 0], 1.0)
    assert np.allclose(lengths[x_faces, 1], 0.0)
    assert np.allclose(lengths[~x_faces, 1], 0.5)
    assert np.allclose(lengths[:, 2], 0.0)
    assert np.allclose(normal_velocity[x_faces], 2.0)
    assert np.allclose(normal_velocity[~x_faces], -1.0)


def test_face_quantities_3d_areas():
    sizes = (1.0, 2.0, 3.0)
    mesh = cartesian_mesh((1, 1, 1), sizes)
    v = np.zeros((len(mesh.coords), 3))
    lengths, _, normal_velocity = face_quantities_for_remap(mesh, v, v, _normals(mesh), True)
    z_faces = mesh.face_directions == 2
    x_faces = mesh.face_directions == 0
    assert np.allclose(lengths[z_faces, 2], sizes[0] * sizes[1])
    assert np.allclose(lengths[z_faces, :2], 0.0)
    assert np.allclose(lengths[x_faces, 0], sizes[1] * sizes[2])
    assert np.allclose(normal_velocity, 0.0)


def test_face_quantities_csts_averages_velocities():
    mesh = cartesian_mesh((2, 2), (1.0, 1.0))
    n_nodes = len(mesh.coords)
    v = np.tile([4.0, 0.0, 0.0], (n_nodes, 1))
    vn = np.tile([2.0, 0.0, 0.0], (n_nodes, 1))
    _, _, explicit = face_quantities_for_remap(mesh, v, vn, _normals(mesh), False)
    _, _, averaged = face_quantities_for_remap(mesh, v, vn, _normals(mesh), True)
    x_faces = mesh.face_directions == 0
    assert np.allclose(explicit[x_faces], 4.0)
    assert np.allclose(averaged[x_faces], 0.5 * (4.0 + 2.0))


def _single_env_fields(volume):
    return {
        "volume": volume[None, :],
        "density": np.array([[2.0, 3.0]]),
        "internal_energy": np.array([[5.0, 7.0]]),
        "temperature": np.array([[300.0, 400.0]]),
    }


def test_variables_single_env_conservative():
    volume = np.array([0.5, 0.25])
    fields = _single_env_fields(volume)
    pseudo = np.array([1.0, 2.0])
    u, phi = variables_for_remap(1, [np.array([0, 1])], fields, volume, pseudo, False, 18)
    assert np.allclose(u[:, 0], volume)
    assert np.allclose(u[:, 1], volume * fields["density"][0])
    assert np.allclose(u[:, 2], volume * fields["density"][0] * fields["internal_energy"][0])
    assert np.allclose(u[:, 7], volume * pseudo)
    assert np.allclose(u[:, 16], volume * fields["density"][0] * fields["temperature"][0])
    assert np.allclose(phi * volume[:, None], u)
    assert np.allclose(phi[:, 1], fields["density"][0])


def test_variables_slope_limited_two_envs():
    volume = np.array([1.0, 1.0])
    fields = {
        "volume": np.array([[0.4, 1.0], [0.6, 0.0]]),
        "density": np.array([[2.0, 3.0], [8.0, 0.0]]),
        "internal_energy": np.array([[1.0, 1.0], [9.0, 0.0]]),
        "fracvol": np.array([[0.4, 1.0], [0.6, 0.0]]),
    }
    env_cells = [np.array([0, 1]), np.array([0])]
    pseudo = np.array([0.1, 0.2])
    u, phi = variables_for_remap(2, env_cells, fields, volume, pseudo, True, 36)
    assert np.allclose(phi[:, 0], fields["fracvol"][0])
    assert phi[0, 1] == pytest.approx(0.6)
    assert phi[1, 1] == 0.0
    assert phi[0, 2 + 1] == pytest.approx(8.0)
    assert np.allclose(phi[:, 14], pseudo)
    assert u[0, 2 + 1] == pytest.approx(0.6 * 8.0)


def test_variables_need_enough_slots():
    volume = np.array([1.0, 1.0])
    with pytest.raises(ValueError):
        variables_for_remap(1, [np.array([0, 1])], _single_env_fields(volume), volume, volume, False, 10)


def test_dual_variables():
    mass = np.array([1.0, 2.0])
    velocity = np.array([[1.0, 2.0, 0.0], [0.0, 0.0, 3.0]])
    u, phi = dual_variables_for_remap(mass, velocity)
    assert np.allclose(u[:, 3], mass)
    assert np.allclose(u[:, :3], mass[:, None] * velocity)
    assert np.allclose(phi[:, :3], velocity)
    assert np.allclose(u[:, 4], phi[:, 4] * mass)
    assert phi[1, 4] == pytest.approx(4.5)


def test_material_indicator():
    fracvol = np.array([[0.3, 1.0, 0.0], [0.7, 0.0, 1.0]])
    env_cells = [np.array([0, 1]), np.array([0, 2])]
    materiau = material_indicator(2, env_cells, fracvol, 3)
    assert materiau[0] == pytest.approx(0.7)
    assert materiau[1] == 0.0
    assert materiau[2] == pytest.approx(1.0)


def test_material_indicator_env_mismatch():
    with pytest.raises(ValueError):
        material_indicator(3, [np.array([0])], np.ones((3, 1)), 1)