"""
Turbulence transport operators.

Each operator is built once from the configuration (model, layout, implicit
flag and its own options) and then applied to a whole edge or point set. The
model tag selects the SA or SST kernel; the kernels themselves are free Numba
functions in ``convective``, ``viscous`` and ``sources``.

Edge operators return the residual of every edge and the two Jacobian blocks
∂Res/∂φ_i, ∂Res/∂φ_j. The source operator returns one residual and one
diagonal block per point. With an explicit scheme the Jacobians are neither
computed nor allocated and come back as None.

Assembly
--------
``TurbulenceNumerics.assemble`` accumulates everything into points for the
semi-discrete system V dφ/dt + R(φ) = 0:

    R = Σ_edges (±convective) - Σ_edges (±viscous) - source

where ± means +Res at i and -Res at j.
"""

from typing import NamedTuple, Optional

import numpy as np
from loguru import logger

from ..constants import TurbulenceModel
from ..physics.sst import sst_constants_array
from .convective import upwind_sa_kernel, upwind_sst_kernel
from .viscous import avg_grad_sa_kernel, avg_grad_sst_kernel
from .sources import sa_source_kernel, sst_source_kernel


class EdgeContribution(NamedTuple):
    residual: np.ndarray             # (n_edges, n_var)
    jac_i: Optional[np.ndarray]      # (n_edges, n_var, n_var)
    jac_j: Optional[np.ndarray]


class PointContribution(NamedTuple):
    residual: np.ndarray             # (n_points, n_var)
    jacobian: Optional[np.ndarray]   # (n_points, n_var, n_var)


class AssembledSystem(NamedTuple):
    residual: np.ndarray             # (n_points, n_var)
    jacobian_diagonal: Optional[np.ndarray]


# =============================================================================
# Scatter helpers
# =============================================================================

def scatter_edge_residuals(residual: np.ndarray, edges: np.ndarray, n_points: int,
                           sign: float = 1.0) -> np.ndarray:
    """
    Accumulate edge residuals into points: +Res at i, -Res at j.

    ``np.add.at`` is unbuffered, so edges sharing a point all contribute.
    """
    out = np.zeros((n_points, residual.shape[1]))
    np.add.at(out, edges[:, 0], sign * residual)
    np.add.at(out, edges[:, 1], -sign * residual)
    return out


def scatter_edge_jacobian_diagonal(jac_i: np.ndarray, jac_j: np.ndarray, edges: np.ndarray,
                                   n_points: int, sign: float = 1.0) -> np.ndarray:
    """
    Accumulate the diagonal Jacobian blocks: +J_i at (i, i), -J_j at (j, j).

    The off-diagonal blocks +J_j at (i, j) and -J_i at (j, i) depend on the
    caller's sparse structure and are not formed here.
    """
    n_var = jac_i.shape[1]
    out = np.zeros((n_points, n_var, n_var))
    np.add.at(out, edges[:, 0], sign * jac_i)
    np.add.at(out, edges[:, 1], -sign * jac_j)
    return out


# =============================================================================
# Operators
# =============================================================================

class _TurbulenceOperator:
    """Shared construction and input checks."""

    def __init__(self, model, layout, implicit: bool = True, sst_constants=None):
        self.model = TurbulenceModel(model)
        self.layout = layout
        self.implicit = bool(implicit)
        self.n_var = self.model.n_var
        if self.model is TurbulenceModel.SST:
            if sst_constants is None:
                raise ValueError("SST operators need the SST closure constants")
            self.constants = sst_constants_array(sst_constants)
        else:
            self.constants = None

    def _allocate(self, n_rows: int):
        residual = np.zeros((n_rows, self.n_var))
        if self.implicit:
            jac = (np.zeros((n_rows, self.n_var, self.n_var)),
                   np.zeros((n_rows, self.n_var, self.n_var)))
        else:
            jac = (None, None)
        return residual, jac

    def _dummy_jacobian(self) -> np.ndarray:
        return np.zeros((1, self.n_var, self.n_var))

    def _check_inputs(self, flow, turb, geometry=None) -> None:
        if flow.layout != self.layout:
            raise ValueError(
                f"Flow state layout ({flow.layout.regime.value}, {flow.layout.n_dim}D) does not "
                f"match the operator ({self.layout.regime.value}, {self.layout.n_dim}D)"
            )
        if turb.model is not self.model:
            raise ValueError(
                f"Turbulence state is {turb.model.value.upper()}, operator is {self.model.value.upper()}"
            )
        if turb.n_points != flow.n_points:
            raise ValueError(f"Point count mismatch: flow {flow.n_points}, turbulence {turb.n_points}")
        n_dim = self.layout.n_dim
        if flow.gradient_primitive.shape[-1] != n_dim:
            raise ValueError(f"Primitive gradients are {flow.gradient_primitive.shape[-1]}D, "
                             f"flow is {n_dim}D")
        if turb.turb_var_grad.shape[-1] != n_dim:
            raise ValueError(f"Turbulence gradients are {turb.turb_var_grad.shape[-1]}D, "
                             f"flow is {n_dim}D")
        if geometry is not None:
            if geometry.n_dim != self.layout.n_dim:
                raise ValueError(f"Edge geometry is {geometry.n_dim}D, flow is {self.layout.n_dim}D")
            if geometry.n_edges and geometry.edges.max() >= flow.n_points:
                raise ValueError("edge endpoint index out of range")

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(model={self.model.value}, "
                f"regime={self.layout.regime.value}, implicit={self.implicit})")


class ConvectiveScalarOperator(_TurbulenceOperator):
    """First-order upwind convection of the turbulence unknowns."""

    def __init__(self, model, layout, implicit: bool = True, grid_movement: bool = False,
                 sst_constants=None):
        super().__init__(model, layout, implicit, sst_constants)
        self.grid_movement = bool(grid_movement)
        logger.debug(f"Convective operator: {self.model.value.upper()} upwind, "
                     f"implicit={self.implicit}, grid_movement={self.grid_movement}")

    def compute(self, flow, turb, geometry) -> EdgeContribution:
        self._check_inputs(flow, turb, geometry)
        if self.grid_movement and not geometry.moving:
            raise ValueError("grid_movement is enabled but the edge geometry has no grid velocities")

        residual, (jac_i, jac_j) = self._allocate(geometry.n_edges)
        dummy = self._dummy_jacobian()
        if self.grid_movement:
            gv_i, gv_j = geometry.grid_vel_i, geometry.grid_vel_j
        else:
            gv_i = gv_j = np.zeros((1, self.layout.n_dim))

        args = (geometry.edges, flow.primitive, turb.turb_var, geometry.normal, gv_i, gv_j,
                self.grid_movement, self.implicit)
        outputs = (residual,
                   jac_i if self.implicit else dummy,
                   jac_j if self.implicit else dummy)

        if self.model is TurbulenceModel.SA:
            upwind_sa_kernel(*args, *outputs)
        else:
            upwind_sst_kernel(*args, self.layout.density, *outputs)
        return EdgeContribution(residual, jac_i, jac_j)


class ViscousEdgeOperator(_TurbulenceOperator):
    """Averaged-gradient diffusion, plain or edge-corrected."""

    def __init__(self, model, layout, implicit: bool = True, corrected: bool = True,
                 sst_constants=None):
        super().__init__(model, layout, implicit, sst_constants)
        self.corrected = bool(corrected)
        logger.debug(f"Viscous operator: {self.model.value.upper()} "
                     f"{'corrected' if self.corrected else 'plain'} average gradient, "
                     f"implicit={self.implicit}")

    def compute(self, flow, turb, geometry) -> EdgeContribution:
        self._check_inputs(flow, turb, geometry)

        residual, (jac_i, jac_j) = self._allocate(geometry.n_edges)
        dummy = self._dummy_jacobian()
        outputs = (residual,
                   jac_i if self.implicit else dummy,
                   jac_j if self.implicit else dummy)
        layout = self.layout

        if self.model is TurbulenceModel.SA:
            avg_grad_sa_kernel(
                geometry.edges, flow.primitive, turb.turb_var, turb.turb_var_grad,
                geometry.coord_i, geometry.coord_j, geometry.normal,
                self.corrected, self.implicit, layout.density, layout.laminar_viscosity,
                *outputs,
            )
        else:
            avg_grad_sst_kernel(
                geometry.edges, flow.primitive, turb.turb_var, turb.turb_var_grad, turb.f1,
                geometry.coord_i, geometry.coord_j, geometry.normal,
                self.corrected, self.implicit, layout.density, layout.laminar_viscosity,
                layout.eddy_viscosity, self.constants,
                *outputs,
            )
        return EdgeContribution(residual, jac_i, jac_j)


class SourceClosureOperator(_TurbulenceOperator):
    """Production, destruction and cross-diffusion at every point."""

    def __init__(self, model, layout, implicit: bool = True, transition: bool = False,
                 intermittency: float = 1.0, sst_constants=None):
        super().__init__(model, layout, implicit, sst_constants)
        self.transition = bool(transition)
        self.intermittency = float(intermittency)
        logger.debug(f"Source operator: {self.model.value.upper()}, implicit={self.implicit}, "
                     f"transition={self.transition}")

    def compute(self, flow, turb, volume) -> PointContribution:
        self._check_inputs(flow, turb)
        volume = np.ascontiguousarray(volume, dtype=np.float64)
        if volume.shape != (flow.n_points,):
            raise ValueError(f"volume must have shape ({flow.n_points},), got {volume.shape}")

        residual, (jac, _) = self._allocate(flow.n_points)
        jac_out = jac if self.implicit else self._dummy_jacobian()
        layout = self.layout

        if self.model is TurbulenceModel.SA:
            sa_source_kernel(
                flow.primitive, flow.gradient_primitive, turb.turb_var, turb.turb_var_grad,
                turb.wall_dist, volume, layout.density, layout.laminar_viscosity,
                self.transition, self.intermittency, self.implicit, residual, jac_out,
            )
        else:
            sst_source_kernel(
                flow.primitive, flow.gradient_primitive, turb.turb_var, flow.strain_mag,
                turb.f1, turb.f2, turb.cd_kw, turb.wall_dist, volume,
                layout.density, layout.eddy_viscosity, self.constants, self.implicit,
                residual, jac_out,
            )
        return PointContribution(residual, jac)


# =============================================================================
# Operator set
# =============================================================================

class TurbulenceNumerics:
    """
    The three turbulence operators of one configuration.

    Examples
    --------
    >>> numerics = TurbulenceNumerics.from_config(sa_compressible_preset())
    >>> system = numerics.assemble(flow, turb, geometry, volume)
    """

    def __init__(self, convective: ConvectiveScalarOperator, viscous: ViscousEdgeOperator,
                 source: SourceClosureOperator):
        self.convective = convective
        self.viscous = viscous
        self.source = source

    @classmethod
    def from_config(cls, config) -> "TurbulenceNumerics":
        layout = config.flow.layout()
        model = config.turbulence.kind()
        implicit = config.numerics.implicit
        sst = config.turbulence.sst if model is TurbulenceModel.SST else None

        return cls(
            ConvectiveScalarOperator(model, layout, implicit,
                                     grid_movement=config.numerics.grid_movement,
                                     sst_constants=sst),
            ViscousEdgeOperator(model, layout, implicit,
                                corrected=config.numerics.viscous_correction,
                                sst_constants=sst),
            SourceClosureOperator(model, layout, implicit,
                                  transition=config.turbulence.transition,
                                  intermittency=config.turbulence.intermittency,
                                  sst_constants=sst),
        )

    @property
    def implicit(self) -> bool:
        return self.convective.implicit

    def assemble(self, flow, turb, geometry, volume) -> AssembledSystem:
        """
        Point residual R and, when implicit, the diagonal blocks ∂R_p/∂φ_p.
        """
        n_points = flow.n_points
        conv = self.convective.compute(flow, turb, geometry)
        visc = self.viscous.compute(flow, turb, geometry)
        src = self.source.compute(flow, turb, volume)

        edges = geometry.edges
        residual = (scatter_edge_residuals(conv.residual, edges, n_points)
                    + scatter_edge_residuals(visc.residual, edges, n_points, sign=-1.0)
                    - src.residual)

        if not self.implicit:
            return AssembledSystem(residual, None)

        jacobian = (scatter_edge_jacobian_diagonal(conv.jac_i, conv.jac_j, edges, n_points)
                    + scatter_edge_jacobian_diagonal(visc.jac_i, visc.jac_j, edges, n_points,
                                                     sign=-1.0)
                    - src.jacobian)
        return AssembledSystem(residual, jacobian)
