"""Internal energy, mean pressure, energy deposits and time step control."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field

import numpy as np

_GROWTH_LIMIT = 1.05


def fvnr(e, p, en, qnn1, pn, rn1, rn):
    """Residual of the energy equation of the staggered (VNR) scheme."""
    return e - en + 0.5 * (p + pn + 2.0 * qnn1) * (1.0 / rn1 - 1.0 / rn)


def fvnr_derivative(dpde, rn1, rn):
    """Derivative of :func:`fvnr` with respect to the energy."""
    return 1.0 + 0.5 * dpde * (1.0 / rn1 - 1.0 / rn)


def fcsts(e, p, en, qn, pn, cn1, cn, m, qn1, cdn, cdon, qnm1):
    """Residual of the energy equation of the time-centred (CSTS) scheme."""
    return (
        e
        - en
        + 0.5 * (p + qn1) * cn1 / m
        + 0.5 * (pn + qn) * cn / m
        - 0.25 * (pn + qn) * cdn / m
        + 0.5 * (qn1 - qnm1) * cdon / m
    )


def fcsts_derivative(dpde, cn1, m):
    """Derivative of :func:`fcsts` with respect to the energy."""
    return 1.0 + 0.5 * dpde * cn1 / m


def energy_perfect_gas(energy_n, pressure, pseudo, density, density_n, gamma):
    """Internal energy at n+1 for a perfect gas, solved directly.

    ``pseudo`` is the pseudo-viscosity to use (already centred if wanted); it is
    only taken into account where it opposes the change of specific volume.
    """
    density = np.asarray(density, dtype=float)
    dtau = 1.0 / density - 1.0 / np.asarray(density_n, dtype=float)
    pseudo = np.asarray(pseudo, dtype=float)
    pseudo = np.where(pseudo * dtau < 0.0, pseudo, 0.0)
    denominator = 1.0 + 0.5 * (gamma - 1.0) * density * dtau
    numerator = np.asarray(energy_n, dtype=float) - (0.5 * np.asarray(pressure, dtype=float) + pseudo) * dtau
    return numerator / denominator


def energy_explicit(energy, pressure_n, pseudo, density, density_n):
    """First order explicit update of the internal energy."""
    dtau = 1.0 / np.asarray(density, dtype=float) - 1.0 / np.asarray(density_n, dtype=float)
    work = (np.asarray(pressure_n, dtype=float) + np.asarray(pseudo, dtype=float)) * dtau
    return np.asarray(energy, dtype=float) - work


def newton_energy(residual, derivative, eos, e0, epsilon, itermax=50):
    """Solve ``residual(e, p) == 0`` for the energy by Newton iterations.

    ``eos(e)`` returns ``(pressure, sound_speed, dpde)``; ``derivative(e, dpde)``
    is the derivative of the residual. The convergence test uses the pressure of
    the last equation of state call. Returns ``(energy, pressure, sound_speed)``.
    """
    e = e0
    p, c, dpde = eos(e)
    iteration = 0
    while iteration < itermax and abs(residual(e, p)) >= epsilon:
        p, c, dpde = eos(e)
        e = e - residual(e, p) / derivative(e, dpde)
        iteration += 1
    return e, p, c


def mean_pressure(fracvol, env_pressure, env_sound_speed, use_max_sound_speed=False):
    """Cell pressure and sound speed from per-environment values.

    Arrays have shape (nb_env, n_cells); absent environments have a zero volume
    fraction. The pressure is the volume-fraction weighted sum; the sound speed
    is either the maximum over present environments or the weighted sum.
    """
    fracvol = np.asarray(fracvol, dtype=float)
    pressure = (fracvol * np.asarray(env_pressure, dtype=float)).sum(axis=0)
    speeds = np.asarray(env_sound_speed, dtype=float)
    if use_max_sound_speed:
        sound_speed = np.maximum(np.where(fracvol > 0.0, speeds, 0.0).max(axis=0), 0.0)
    else:
        sound_speed = (fracvol * speeds).sum(axis=0)
    return pressure, sound_speed


class DepositType(enum.Enum):
    """Spatial shape of an energy source."""

    CONSTANT = "constant"
    LINEAR = "linear"
    SUPER_GAUSSIAN = "super-gaussian"


@dataclass(frozen=True)
class EnergyDeposit:
    """An energy source acting on the cells of one environment."""

    kind: DepositType
    value: float
    t_start: float = 0.0
    t_end: float = math.inf
    origin: tuple = (0.0, 0.0, 0.0)
    cutoff_x: float = math.inf
    cutoff_y: float = math.inf
    dependance_x: float = 0.0
    dependance_y: float = 0.0
    dependance_z: float = 0.0
    dependance_t: float = 0.0
    power: float = 4.0


def deposit_energy(deposit, cell_coord, energy, time, dt):
    """Internal energy after the deposit over ``dt`` at the cell centres."""
    coord = np.atleast_2d(np.asarray(cell_coord, dtype=float))
    energy = np.asarray(energy, dtype=float)
    active = deposit.t_start <= time <= deposit.t_end
    value = np.full(len(coord), deposit.value if active else 0.0)
    x, y, z = coord[:, 0], coord[:, 1], coord[:, 2]
    if deposit.kind is DepositType.LINEAR:
        value = (
            value
            + deposit.dependance_x * x
            + deposit.dependance_y * y
            + deposit.dependance_z * z
            + deposit.dependance_t * time
        )
    elif deposit.kind is DepositType.SUPER_GAUSSIAN:
        with np.errstate(invalid="ignore"):
            value = value * np.exp(-np.power(y * deposit.dependance_y, deposit.power))
            value = value * np.exp(-np.power(x * deposit.dependance_x, deposit.power))
    origin = np.asarray(deposit.origin, dtype=float)
    outside = (np.abs(x - origin[0]) > deposit.cutoff_x) | (np.abs(y - origin[1]) > deposit.cutoff_y)
    value = np.where(outside, 0.0, value)
    return energy + value * dt


class TimeStepTooSmall(RuntimeError):
    """The stable time step fell below the allowed minimum."""

    def __init__(self, dt, cell):
        super().__init__(f"time step {dt} below the minimum, limited by cell {cell}")
        self.dt = dt
        self.cell = cell


@dataclass(frozen=True)
class TimeStep:
    """Result of the time step computation."""

    dt: float
    old_dt: float
    stop: bool
    cell: int
    cell_dt: np.ndarray = field(repr=False)


def compute_delta_t(length, sound_speed, cfl, old_dt, dt_max, dt_min, time, final_time, node_speed=None):
    """Next time step from the CFL condition, growth limit and bounds.

    ``node_speed`` is the largest node speed of each cell, added to the sound
    speed when given. Raises :class:`TimeStepTooSmall` below ``dt_min``.
    """
    length = np.asarray(length, dtype=float)
    speed = np.asarray(sound_speed, dtype=float)
    if node_speed is not None:
        speed = speed + np.asarray(node_speed, dtype=float)
    if length.size == 0:
        raise ValueError("at least one cell is needed")
    dx_sound = length / speed
    cell_dt = cfl * dx_sound
    # The last cell reaching the minimum is reported.
    cell = int(len(dx_sound) - 1 - np.argmin(dx_sound[::-1]))
    new_dt = cfl * float(dx_sound[cell])
    new_dt = min(new_dt, _GROWTH_LIMIT * old_dt)
    new_dt = min(new_dt, dt_max)
    if new_dt < dt_min:
        raise TimeStepTooSmall(new_dt, cell)
    not_yet_finished = time < final_time
    finished = time > final_time
    too_much = time + new_dt > final_time
    stop = (not_yet_finished and too_much) or finished
    return TimeStep(dt=new_dt, old_dt=old_dt, stop=stop, cell=cell, cell_dt=cell_dt)