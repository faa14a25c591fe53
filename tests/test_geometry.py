import numpy as np
import pytest

from lagrhydro.geometry import (
    NegativeVolumeError,
    cell_volumes,
    characteristic_length,
    compute_cqs,
    face_normals,
    face_orientations,
    outer_face_normals,
    produit,
)
from lagrhydro.mesh import cartesian_mesh


def _perturbed(mesh, node, shift):
    mesh.coords[node] += np.asarray(shift, dtype=float)
    return mesh


def test_produit_value():
    assert produit(3.0, 4.0, 2.0, 5.0) == 2.0


def test_produit_antisymmetric():
    assert produit(1.5, -2.0, 0.25, 7.0) == -produit(0.25, 7.0, 1.5, -2.0)


@pytest.mark.parametrize("shape,lengths", [((1, 1), (1.0, 1.0)), ((1, 1, 1), (1.0, 1.0, 1.0))])
def test_unit_cell_volume(shape, lengths):
    mesh = cartesian_mesh(shape, lengths)
    volumes = cell_volumes(mesh, compute_cqs(mesh))
    assert volumes == pytest.approx([1.0])


@pytest.mark.parametrize("shape,lengths", [((3, 2), (1.5, 0.8)), ((2, 3, 2), (1.0, 2.0, 0.5))])
def test_total_volume_matches_domain(shape, lengths):
    mesh = cartesian_mesh(shape, lengths)
    volumes = cell_volumes(mesh, compute_cqs(mesh))
    assert volumes.sum() == pytest.approx(float(np.prod(lengths)))
    assert np.allclose(volumes, volumes[0])


@pytest.mark.parametrize("shape", [(2, 2), (2, 2, 2)])
def test_cqs_sum_to_zero(shape):
    mesh = cartesian_mesh(shape, (1.0,) * len(shape))
    _perturbed(mesh, len(mesh.coords) // 2, (0.1, -0.05, 0.03 if len(shape) == 3 else 0.0))
    cqs = compute_cqs(mesh)
    assert np.allclose(cqs.sum(axis=1), 0.0)


@pytest.mark.parametrize("shape", [(2, 2), (2, 2, 2)])
def test_volume_conserved_by_interior_perturbation(shape):
    mesh = cartesian_mesh(shape, (1.0,) * len(shape))
    centre = len(mesh.coords) // 2
    _perturbed(mesh, centre, (0.1, -0.05, 0.07 if len(shape) == 3 else 0.0))
    volumes = cell_volumes(mesh, compute_cqs(mesh))
    assert volumes.sum() == pytest.approx(1.0)
    assert not np.allclose(volumes, volumes[0])


def test_volume_translation_invariant():
    mesh = cartesian_mesh((2, 2, 1), (1.0, 1.0, 1.0))
    moved = cartesian_mesh((2, 2, 1), (1.0, 1.0, 1.0), origin=(3.0, -2.0, 5.0))
    v1 = cell_volumes(mesh, compute_cqs(mesh))
    v2 = cell_volumes(moved, compute_cqs(moved))
    assert np.allclose(v1, v2)


@pytest.mark.parametrize("shape", [(2, 1), (1, 1, 1)])
def test_mirrored_mesh_raises_negative_volume(shape):
    mesh = cartesian_mesh(shape, (1.0,) * len(shape))
    mesh.coords[:, 0] *= -1.0
    with pytest.raises(NegativeVolumeError) as info:
        cell_volumes(mesh, compute_cqs(mesh))
    assert info.value.cell == 0
    assert info.value.volume < 0.0


def test_monodim_lengths_match_cell_widths():
    mesh = cartesian_mesh((4, 2, 5), (2.0, 1.0, 1.0))
    volumes = cell_volumes(mesh, compute_cqs(mesh))
    assert np.allclose(characteristic_length(mesh, volumes, "monodimX"), 2.0 / 4)
    assert np.allclose(characteristic_length(mesh, volumes, "monodimY"), 1.0 / 2)
    assert np.allclose(characteristic_length(mesh, volumes, "monodimZ"), 1.0 / 5)


def test_root_volume_length_2d():
    mesh = cartesian_mesh((2, 2), (1.0, 1.0))
    volumes = cell_volumes(mesh, compute_cqs(mesh))
    lengths = characteristic_length(mesh, volumes, "racine-cubique-volume")
    assert np.allclose(lengths ** 2, volumes)


def test_root_volume_length_3d():
    mesh = cartesian_mesh((2, 2, 2), (1.0, 1.0, 1.0))
    volumes = cell_volumes(mesh, compute_cqs(mesh))
    lengths = characteristic_length(mesh, volumes, "racine-cubique-volume")
    assert np.allclose(lengths ** 3, volumes)


def test_opposite_faces_length_scales_with_cell():
    small = cartesian_mesh((1, 1, 1), (1.0, 1.0, 1.0))
    large = cartesian_mesh((1, 1, 1), (2.0, 2.0, 2.0))
    l_small = characteristic_length(small, cell_volumes(small, compute_cqs(small)), "faces-opposees")
    l_large = characteristic_length(large, cell_volumes(large, compute_cqs(large)), "faces-opposees")
    assert l_large == pytest.approx(2.0 * l_small)
    assert l_small[0] < 1.0


def test_opposite_faces_rejects_2d():
    mesh = cartesian_mesh((1, 1), (1.0, 1.0))
    with pytest.raises(ValueError):
        characteristic_length(mesh, np.ones(1), "faces-opposees")


def test_unknown_length_method():
    mesh = cartesian_mesh((1, 1), (1.0, 1.0))
    with pytest.raises(ValueError):
        characteristic_length(mesh, np.ones(1), "median")


@pytest.mark.parametrize("shape", [(3, 2), (2, 2, 2)])
def test_face_normals_are_unit_and_aligned(shape):
    mesh = cartesian_mesh(shape, (1.0,) * len(shape))
    normals = face_normals(mesh)
    assert np.allclose(np.linalg.norm(normals, axis=1), 1.0)
    aligned = np.abs(normals[np.arange(len(normals)), mesh.face_directions])
    assert np.allclose(aligned, 1.0)


@pytest.mark.parametrize("shape", [(3, 2), (2, 2, 2)])
def test_face_orientations_match_directions(shape):
    mesh = cartesian_mesh(shape, (1.0,) * len(shape))
    orientations = face_orientations(face_normals(mesh))
    assert np.array_equal(orientations, mesh.face_directions)


def test_face_orientations_first_significant_axis():
    normals = np.array([[0.0, 0.0, 1.0], [0.0, 0.6, 0.8], [0.0, 0.0, 0.0]])
    assert list(face_orientations(normals)) == [2, 1, 0]


@pytest.mark.parametrize("shape", [(2, 2), (2, 1, 2)])
def test_outer_face_normals_point_outwards(shape):
    mesh = cartesian_mesh(shape, (1.0,) * len(shape))
    normals = outer_face_normals(mesh)
    assert normals.shape == mesh.cell_faces.shape + (3,)
    assert np.allclose(np.linalg.norm(normals, axis=2), 1.0)
    offsets = mesh.face_centers()[mesh.cell_faces] - mesh.cell_centers()[:, None, :]
    assert np.all(np.einsum("cfk,cfk->cf", normals, offsets) > 0.0)
    assert np.allclose(normals.sum(axis=1), 0.0)