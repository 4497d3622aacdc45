"""
Per-point turbulence unknowns and closure fields.

SA carries one unknown (nuHat); SST carries two (k, ω). The SST operators also
read the blending functions F1/F2 and the cross-diffusion CDkw, refreshed here
from the current unknowns and their gradients.
"""

from typing import Optional

import numpy as np
from loguru import logger

from ..constants import TurbulenceModel
from ..physics.jax_config import jnp
from ..physics.spalart_allmaras import sa_eddy_viscosity
from ..physics.sst import compute_sst_blending_jax, compute_sst_eddy_viscosity_jax


class TurbulenceState:
    """
    Turbulence fields of every mesh point.

    Attributes
    ----------
    model : TurbulenceModel
    turb_var : ndarray (n_points, n_turb_var)
    turb_var_grad : ndarray (n_points, n_turb_var, n_dim)
        Filled by the external gradient pass.
    f1, f2 : ndarray (n_points,)
        SST blending functions; 1 until ``set_blending_functions`` is called.
    cd_kw : ndarray (n_points,)
        SST cross-diffusion.
    wall_dist : ndarray (n_points,)
    """

    def __init__(self, turb_var, wall_dist, model="sa", n_dim: int = 2):
        self.model = TurbulenceModel(model)
        n_var = self.model.n_var

        turb_var = np.array(turb_var, dtype=np.float64, copy=True)
        if turb_var.ndim == 1 and n_var == 1:
            turb_var = turb_var[:, None]
        if turb_var.ndim != 2 or turb_var.shape[1] != n_var:
            raise ValueError(
                f"{self.model.value.upper()} needs turb_var of shape (n_points, {n_var}), "
                f"got {turb_var.shape}"
            )
        n_points = turb_var.shape[0]

        wall_dist = np.array(wall_dist, dtype=np.float64, copy=True)
        if wall_dist.shape != (n_points,):
            raise ValueError(f"wall_dist must have shape ({n_points},), got {wall_dist.shape}")

        self.turb_var = turb_var
        self.turb_var_grad = np.zeros((n_points, n_var, n_dim))
        self.wall_dist = wall_dist
        self.f1 = np.ones(n_points)
        self.f2 = np.ones(n_points)
        self.cd_kw = np.zeros(n_points)

    @classmethod
    def from_freestream(cls, n_points: int, wall_dist, values, model="sa",
                        n_dim: int = 2) -> "TurbulenceState":
        """Uniform state; ``values`` is nuHat∞ (SA) or (k∞, ω∞) (SST)."""
        row = np.atleast_1d(np.asarray(values, dtype=np.float64))
        return cls(np.tile(row, (n_points, 1)), wall_dist, model=model, n_dim=n_dim)

    @property
    def n_points(self) -> int:
        return self.turb_var.shape[0]

    @property
    def n_var(self) -> int:
        return self.turb_var.shape[1]

    @property
    def turb_ke(self) -> Optional[np.ndarray]:
        """Turbulent kinetic energy for the equation of state (None for SA)."""
        if self.model is TurbulenceModel.SST:
            return self.turb_var[:, 0]
        return None

    def set_blending_functions(self, flow_state, constants) -> None:
        """
        Refresh F1, F2 and CDkw from the current k, ω and their gradients.

        No-op for SA.
        """
        if self.model is not TurbulenceModel.SST:
            return
        F1, F2, CDkw = compute_sst_blending_jax(
            jnp.asarray(self.turb_var),
            jnp.asarray(self.turb_var_grad),
            jnp.asarray(flow_state.density),
            jnp.asarray(flow_state.laminar_viscosity),
            jnp.asarray(self.wall_dist),
            constants.sigma_om2,
            constants.beta_star,
        )
        self.f1[:] = np.asarray(F1)
        self.f2[:] = np.asarray(F2)
        self.cd_kw[:] = np.asarray(CDkw)

    def eddy_viscosity(self, flow_state, constants=None) -> np.ndarray:
        """
        Eddy viscosity μ_t per point from the closure.

        Reads density and laminar viscosity from the current primitives of
        ``flow_state``; SST also reads its strain magnitude and F2.
        """
        density = flow_state.density
        if self.model is TurbulenceModel.SA:
            nu = flow_state.laminar_viscosity / density
            return np.asarray(sa_eddy_viscosity(density, self.turb_var[:, 0], nu))

        if constants is None:
            raise ValueError("SST eddy viscosity needs the SST closure constants")
        mu_t = compute_sst_eddy_viscosity_jax(
            jnp.asarray(self.turb_var),
            jnp.asarray(density),
            jnp.asarray(flow_state.strain_mag),
            jnp.asarray(self.f2),
            constants.a1,
        )
        mu_t = np.asarray(mu_t)
        logger.debug(f"SST eddy viscosity range [{mu_t.min():.3e}, {mu_t.max():.3e}]")
        return mu_t
