# lagrhydro

Building blocks for a multi-material Lagrangian hydrodynamics scheme on
structured 2D and 3D meshes. It covers corner vectors and cell geometry,
masses, pseudo-viscosity, nodal forces and velocity updates. It also
provides internal-energy updates (perfect gas, explicit or Newton), mean
pressure, energy deposits, CFL time stepping, and the preparation of the
variables handed to a remap phase.

All quantities are NumPy arrays indexed by cell, face or node, so you can
run, inspect and test each stage on its own.

## Installation

```
pip install .
```

For the tests:

```
pip install ".[test]"
pytest
```

## Modules

### `lagrhydro.mesh`

- `cartesian_mesh(shape, lengths, origin=None)` builds a regular `Mesh` of
  quadrangles (2D) or hexahedra (3D). Node coordinates always have three
  components.
- `Mesh` offers `cell_centers()`, `face_centers()` and `node_cell_counts()`.
  `directional_neighbours(idir)` gives the previous and next node along a
  direction, with -1 where there is none. `inner_nodes(idir)` lists the
  nodes that have a neighbour on both sides.
- `build_face_groups(mesh, threshold)` returns a dict of face indices named
  `XMIN`, `YMIN`, `ZMIN`, `XMAX`, `YMAX` and `ZMAX`, for the faces lying on
  the bounding planes.
- `sort_cells_by_material(materiau, nb_env)` gives the cells of each
  environment from a per-cell material indicator. It raises `ValueError`
  when a cell would need more environments than given.
- `read_pressure_table(path)` reads whitespace-separated time/pressure pairs
  into a `PressureTable`. `PressureTable.value_at(time)` interpolates
  linearly and is zero before the second entry and after the last.

### `lagrhydro.geometry`

- `compute_cqs(mesh)` returns the corner vectors of every cell.
- `cell_volumes(mesh, cqs)` computes cell volumes and raises
  `NegativeVolumeError` on a negative volume.
- `characteristic_length(mesh, volumes, method)` computes a length per cell.
  The methods are `"faces-opposees"` (3D only), `"racine-cubique-volume"`,
  `"monodimX"`, `"monodimY"` and `"monodimZ"`.
- `face_normals(mesh)`, `face_orientations(normals)` and
  `outer_face_normals(mesh)` give unit face normals, face axes and
  cell-to-face unit vectors.
- `produit(a, b, c, d)` returns `a * b - c * d`.

### `lagrhydro.lagrange`

- Masses: `cell_mass` and `node_mass`.
- Mixed cells: `mixed_average` replaces the value of every cell that does
  not hold exactly one environment by a weighted sum.
- Pseudo-viscosity: `artificial_viscosity`.
- Forces and motion: `nodal_forces` (pressure, pseudo-viscosity and
  deviatoric stress), `update_velocity` (including gravity),
  `advection_velocity`, `hourglass_correction` and `update_position`.
- Density: `update_density` (with an optional floor relative to a reference
  density) and `velocity_divergence`.

### `lagrhydro.energy`

- Energy equation residuals and their derivatives: `fvnr`,
  `fvnr_derivative`, `fcsts` and `fcsts_derivative`.
- Energy updates: `energy_perfect_gas`, `energy_explicit` and
  `newton_energy`. `newton_energy` takes a user-supplied
  equation-of-state callable returning pressure, sound speed and dp/de.
- `mean_pressure` gives the cell pressure and sound speed from
  per-environment values.
- Energy sources: `EnergyDeposit` with a `DepositType` (`CONSTANT`,
  `LINEAR` or `SUPER_GAUSSIAN`), applied by `deposit_energy`.
- `compute_delta_t` returns a `TimeStep` with the new step, whether to stop
  at the final time, and the limiting cell. It raises `TimeStepTooSmall`
  below the minimum step.

### `lagrhydro.remap_prep`

- `face_quantities_for_remap` gives face lengths per direction, face centres
  and normal face velocities.
- `variables_for_remap` gives the conserved (`u`) and primitive (`phi`) cell
  variables, 18 slots per environment.
- `dual_variables_for_remap` gives the nodal momentum or velocity, mass and
  kinetic energy.
- `material_indicator` gives the per-cell sum of environment index weighted
  by volume fraction.

## Example

```python
import numpy as np
from lagrhydro.mesh import cartesian_mesh
from lagrhydro.geometry import compute_cqs, cell_volumes, characteristic_length
from lagrhydro.lagrange import cell_mass, node_mass

mesh = cartesian_mesh((4, 4), (1.0, 1.0), (0.0, 0.0))
cqs = compute_cqs(mesh)
volumes = cell_volumes(mesh, cqs)
lengths = characteristic_length(mesh, volumes, "racine-cubique-volume")
masses = cell_mass(np.ones(len(volumes)), volumes)
nodal = node_mass(mesh, masses)
```

## What the package does not do

- It has no time loop, driver, input-deck reader or command-line tool. You
  call the stages yourself and keep the arrays between them.
- It has no equation-of-state or elasto-plastic models. `newton_energy`
  expects the equation of state as a callable.
- It does not apply boundary conditions. `build_face_groups` and
  `PressureTable` only supply the face groups and time tables they would use.
- It prepares remap variables but does not carry out the remap itself,
  neither on cells nor on nodes.
- It runs on a single process, with no parallel synchronisation.