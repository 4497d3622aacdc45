"""
Per-point flow state and primitive-variable reconstruction.

The conservative solution is what the nonlinear solver evolves; every other
stage reads the primitive vector derived here. Reconstruction enforces
realizability: when the updated solution at a point yields a non-physical
state (non-positive density, pressure or temperature, or imaginary speed of
sound), that point's solution is rolled back to ``solution_old`` and the
primitives are recomputed from it.

    Tentative ──checks pass──▶ Accepted
        │
        └──any check fails──▶ solution ← solution_old, recompute ──▶ RolledBack

Rolled-back points are reported, not raised: the caller counts them per
iteration as a robustness diagnostic.

Layouts are defined in ``fvturb.constants.get_primitive_layout``.
"""

from typing import NamedTuple, Optional

import numpy as np
from numba import njit, prange
from loguru import logger

from ..constants import FlowRegime
from ..physics.gas import (
    density_checked,
    pressure_checked,
    sound_speed_checked,
    temperature_checked,
    enthalpy,
    sutherland_viscosity,
    smoothed_heaviside,
)
from ..numerics.gradients import compute_vorticity, compute_strain_magnitude


class ReconstructionResult(NamedTuple):
    """Outcome of one reconstruction pass."""
    accepted: np.ndarray   # (n_points,) bool, False where the point was rolled back
    n_rolled_back: int


# =============================================================================
# Compressible kernels
# =============================================================================

@njit(cache=True, error_model='numpy')
def _thermo_compressible(solution, prim, n_dim, gamma, gas_constant, turb_ke):
    """
    Steps (1)-(5) of reconstruction into ``prim``; True if any check failed.
    """
    rho = solution[0]
    velocity2 = 0.0
    for i in range(n_dim):
        v = solution[i + 1] / rho
        prim[i + 1] = v
        velocity2 += v * v

    rho, bad_dens = density_checked(rho)
    prim[n_dim + 2] = rho

    p, bad_press = pressure_checked(gamma, rho, solution[n_dim + 1], velocity2, turb_ke)
    prim[n_dim + 1] = p

    c, bad_sos = sound_speed_checked(gamma, p, rho)
    prim[n_dim + 4] = c

    t, bad_temp = temperature_checked(gas_constant, p, rho)
    prim[0] = t

    return bad_dens or bad_press or bad_sos or bad_temp


@njit(cache=True, error_model='numpy')
def set_prim_var_compressible_point(solution, solution_old, primitive, work,
                                    gamma, gas_constant, turb_ke, eddy_visc,
                                    viscous, temperature_ref, viscosity_ref):
    """
    Reconstruct one point's compressible primitives.

    ``work`` is a scratch row of the primitive size; ``primitive`` is only
    written once the final state is known.

    Returns
    -------
    accepted : bool
        False if ``solution`` was replaced by ``solution_old``.
    """
    n_var = solution.shape[0]
    n_dim = n_var - 2
    accepted = True

    if _thermo_compressible(solution, work, n_dim, gamma, gas_constant, turb_ke):
        for k in range(n_var):
            solution[k] = solution_old[k]
        _thermo_compressible(solution, work, n_dim, gamma, gas_constant, turb_ke)
        accepted = False

    work[n_dim + 3] = enthalpy(solution[n_dim + 1], work[n_dim + 1], work[n_dim + 2])
    if viscous:
        work[n_dim + 5] = sutherland_viscosity(work[0], temperature_ref, viscosity_ref)
        work[n_dim + 6] = eddy_visc
    else:
        work[n_dim + 5] = 0.0
        work[n_dim + 6] = 0.0

    for k in range(primitive.shape[0]):
        primitive[k] = work[k]
    return accepted


@njit(cache=True, parallel=True, error_model='numpy')
def _set_prim_var_compressible_kernel(solution, solution_old, primitive, turb_ke, eddy_visc,
                                      gamma, gas_constant, viscous,
                                      temperature_ref, viscosity_ref, accepted):
    n_points, n_prim = primitive.shape
    for p in prange(n_points):
        work = np.empty(n_prim)
        accepted[p] = set_prim_var_compressible_point(
            solution[p], solution_old[p], primitive[p], work,
            gamma, gas_constant, turb_ke[p], eddy_visc[p],
            viscous, temperature_ref, viscosity_ref,
        )


# =============================================================================
# Incompressible / free-surface kernels
# =============================================================================

@njit(cache=True, parallel=True)
def _set_prim_var_incompressible_kernel(solution, primitive, eddy_visc, density_inf,
                                        beta2, viscosity_inf, viscous):
    n_points = primitive.shape[0]
    n_dim = solution.shape[1] - 1
    for p in prange(n_points):
        primitive[p, 0] = solution[p, 0]
        for i in range(n_dim):
            primitive[p, i + 1] = solution[p, i + 1] / density_inf
        primitive[p, n_dim + 1] = density_inf
        primitive[p, n_dim + 2] = beta2
        primitive[p, n_dim + 3] = viscosity_inf if viscous else 0.0
        primitive[p, n_dim + 4] = eddy_visc[p] if viscous else 0.0


@njit(cache=True, parallel=True)
def _set_prim_var_freesurface_kernel(solution, primitive, eddy_visc, density_inf, beta2,
                                     viscosity_inf, viscous, thickness,
                                     ratio_density, ratio_viscosity):
    n_points = primitive.shape[0]
    n_dim = solution.shape[1] - 2
    for p in prange(n_points):
        level_set = solution[p, n_dim + 1]
        liquid = smoothed_heaviside(level_set, thickness)
        rho = density_inf * (ratio_density + (1.0 - ratio_density) * liquid)
        mu = viscosity_inf * (ratio_viscosity + (1.0 - ratio_viscosity) * liquid)

        primitive[p, 0] = solution[p, 0]
        for i in range(n_dim):
            primitive[p, i + 1] = solution[p, i + 1] / rho
        primitive[p, n_dim + 1] = rho
        primitive[p, n_dim + 2] = beta2
        primitive[p, n_dim + 3] = mu if viscous else 0.0
        primitive[p, n_dim + 4] = eddy_visc[p] if viscous else 0.0
        primitive[p, n_dim + 5] = level_set
        primitive[p, n_dim + 6] = abs(level_set)


# =============================================================================
# FlowState
# =============================================================================

class FlowState:
    """
    Flow state of every mesh point, stored as row-per-point arrays.

    Attributes
    ----------
    solution, solution_old : ndarray (n_points, n_var)
        Current and last validated conservative solution.
    primitive : ndarray (n_points, n_prim)
        Primitive vector, laid out by ``layout``.
    gradient_primitive : ndarray (n_points, n_prim_grad, n_dim)
        Filled by the external gradient pass.
    strain_mag : ndarray (n_points,)
    vorticity : ndarray (n_points, 3)
    limiter_primitive, solution_max, solution_min : ndarray (n_points, n_prim_grad)
        Slope-limiter workspace of the reconstruction scheme.
    res_trunc_error : ndarray (n_points, n_var)
        Truncation-error residual (multigrid forcing), zero on the fine grid.
    solution_time_n, solution_time_n1 : ndarray or None
        Dual-time history, allocated when ``time.dual_time``.
    ts_source : ndarray or None
        Time-spectral source, allocated when ``time.time_spectral``.
    wind_gust, wind_gust_der : ndarray or None
        Gust velocity (n_dim) and its derivative (n_dim + 1), when ``time.wind_gust``.
    grad_aux_var : ndarray or None
        Auxiliary gradient of the free-surface source term.
    """

    def __init__(self, solution, config):
        self.config = config
        self.layout = config.flow.layout()
        layout = self.layout

        solution = np.array(solution, dtype=np.float64, copy=True)
        if solution.ndim != 2 or solution.shape[1] != layout.n_var:
            raise ValueError(
                f"{layout.regime.value} solution must have shape (n_points, {layout.n_var}), "
                f"got {solution.shape}"
            )
        n_points = solution.shape[0]
        n_dim = layout.n_dim

        self.solution = solution
        self.solution_old = solution.copy()

        self.primitive = np.zeros((n_points, layout.n_prim))
        self.gradient_primitive = np.zeros((n_points, layout.n_prim_grad, n_dim))
        self.limiter_primitive = np.zeros((n_points, layout.n_prim_grad))
        self.solution_max = np.zeros((n_points, layout.n_prim_grad))
        self.solution_min = np.zeros((n_points, layout.n_prim_grad))
        self.res_trunc_error = np.zeros((n_points, layout.n_var))

        self.strain_mag = np.zeros(n_points)
        self.vorticity = np.zeros((n_points, 3))

        time = config.time
        self.solution_time_n = solution.copy() if time.dual_time else None
        self.solution_time_n1 = solution.copy() if time.dual_time else None
        self.ts_source = np.zeros((n_points, layout.n_var)) if time.time_spectral else None
        self.wind_gust = np.zeros((n_points, n_dim)) if time.wind_gust else None
        self.wind_gust_der = np.zeros((n_points, n_dim + 1)) if time.wind_gust else None
        self.grad_aux_var = (np.zeros((n_points, n_dim))
                             if layout.regime is FlowRegime.FREESURFACE else None)

    @classmethod
    def from_freestream(cls, n_points: int, config, density: float, velocity,
                        energy: float = 0.0, level_set: float = 0.0) -> "FlowState":
        """
        Uniform state from free-stream values.

        Compressible: [ρ, ρv, ρE]. Incompressible: [P∞, ρ∞v].
        Free surface: [P∞, ρ∞v, φ]. ``density``/``energy`` are ignored by the
        incompressible regimes, which use the configured reference values.
        """
        layout = config.flow.layout()
        velocity = np.asarray(velocity, dtype=np.float64)
        if velocity.shape != (layout.n_dim,):
            raise ValueError(f"velocity must have {layout.n_dim} components, got {velocity.shape}")

        row = np.zeros(layout.n_var)
        if layout.regime is FlowRegime.COMPRESSIBLE:
            row[0] = density
            row[1:layout.n_dim + 1] = density * velocity
            row[-1] = density * energy
        else:
            row[0] = config.flow.pressure_inf
            row[1:layout.n_dim + 1] = config.flow.density_inf * velocity
            if layout.regime is FlowRegime.FREESURFACE:
                row[-1] = level_set
        return cls(np.tile(row, (n_points, 1)), config)

    @property
    def n_points(self) -> int:
        return self.solution.shape[0]

    @property
    def n_dim(self) -> int:
        return self.layout.n_dim

    # -------------------------------------------------------------------------
    # Primitive views
    # -------------------------------------------------------------------------

    @property
    def velocity(self) -> np.ndarray:
        return self.primitive[:, self.layout.velocity]

    @property
    def density(self) -> np.ndarray:
        return self.primitive[:, self.layout.density]

    @property
    def pressure(self) -> np.ndarray:
        return self.primitive[:, self.layout.pressure]

    @property
    def laminar_viscosity(self) -> np.ndarray:
        return self.primitive[:, self.layout.laminar_viscosity]

    @property
    def eddy_viscosity(self) -> np.ndarray:
        return self.primitive[:, self.layout.eddy_viscosity]

    def projected_velocity(self, vector) -> np.ndarray:
        """
        v · S per point; ``vector`` is one (n_dim,) vector or one per point.
        """
        vector = np.asarray(vector, dtype=np.float64)
        return np.sum(self.velocity * vector, axis=-1)

    # -------------------------------------------------------------------------
    # Solution bookkeeping
    # -------------------------------------------------------------------------

    def set_solution_old(self) -> None:
        """Mark the current solution as the last validated state."""
        self.solution_old[:] = self.solution

    def set_solution_time_n(self) -> None:
        """Shift the dual-time history: n → n-1, current → n."""
        if self.solution_time_n is None:
            raise ValueError("Dual-time history is not allocated (time.dual_time is False)")
        self.solution_time_n1[:] = self.solution_time_n
        self.solution_time_n[:] = self.solution

    def gradient_primitive_zero(self, n_prim_var: Optional[int] = None) -> None:
        """Zero the gradients of the first ``n_prim_var`` primitives (all by default)."""
        if n_prim_var is None:
            n_prim_var = self.layout.n_prim_grad
        self.gradient_primitive[:, :n_prim_var, :] = 0.0

    # -------------------------------------------------------------------------
    # Reconstruction
    # -------------------------------------------------------------------------

    def set_primitive_variables(self, eddy_visc=None, turb_ke=None) -> ReconstructionResult:
        """
        Derive the primitive vector of every point from ``solution``.

        Parameters
        ----------
        eddy_visc : array_like, optional
            Eddy viscosity per point from the turbulence closure (zero if None).
        turb_ke : array_like, optional
            Turbulent kinetic energy per point; subtracted in the compressible
            equation of state (zero if None).

        Returns
        -------
        ReconstructionResult
            ``accepted[p]`` is False where point p was rolled back to
            ``solution_old``. Incompressible regimes never roll back.
        """
        n_points = self.n_points
        eddy_visc = self._per_point(eddy_visc, 'eddy_visc')
        turb_ke = self._per_point(turb_ke, 'turb_ke')

        flow = self.config.flow
        gas = self.config.gas
        accepted = np.ones(n_points, dtype=np.bool_)
        regime = self.layout.regime

        if regime is FlowRegime.COMPRESSIBLE:
            _set_prim_var_compressible_kernel(
                self.solution, self.solution_old, self.primitive, turb_ke, eddy_visc,
                gas.gamma, gas.gas_constant, flow.viscous,
                gas.temperature_ref, gas.viscosity_ref, accepted,
            )
        elif regime is FlowRegime.INCOMPRESSIBLE:
            _set_prim_var_incompressible_kernel(
                self.solution, self.primitive, eddy_visc, flow.density_inf,
                self.config.free_surface.art_comp_factor, flow.viscosity_inf, flow.viscous,
            )
        else:
            fs = self.config.free_surface
            _set_prim_var_freesurface_kernel(
                self.solution, self.primitive, eddy_visc, flow.density_inf,
                fs.art_comp_factor, flow.viscosity_inf, flow.viscous,
                fs.thickness, fs.ratio_density, fs.ratio_viscosity,
            )

        n_rolled_back = int(n_points - np.count_nonzero(accepted))
        if n_rolled_back > 0:
            logger.warning(
                f"Non-physical state at {n_rolled_back}/{n_points} points "
                f"({regime.value}); rolled back to previous solution"
            )
        else:
            logger.debug(f"Reconstructed primitives at {n_points} points")
        return ReconstructionResult(accepted, n_rolled_back)

    def set_vorticity(self) -> None:
        self.vorticity[:] = compute_vorticity(self.gradient_primitive)

    def set_strain_mag(self) -> None:
        self.strain_mag[:] = compute_strain_magnitude(self.gradient_primitive)

    def _per_point(self, values, name: str) -> np.ndarray:
        if values is None:
            return np.zeros(self.n_points)
        values = np.ascontiguousarray(values, dtype=np.float64)
        if values.shape != (self.n_points,):
            raise ValueError(f"{name} must have shape ({self.n_points},), got {values.shape}")
        return values
