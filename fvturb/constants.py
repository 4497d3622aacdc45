"""
Global constants for the turbulence discretization core.

This module defines the primitive-vector layouts of each flow regime and the
numerical guards shared by the kernels, so that every module indexes the
per-point arrays the same way.
"""

from enum import Enum
from typing import NamedTuple


# Wall distance at or below which SA/SST source physics is skipped
WALL_DIST_MIN = 1e-10

# Floor of the SA modified vorticity when it is inverted
SHAT_MIN = 1e-10

# Upper clip of the SA destruction ratio r
R_MAX = 10.0


class FlowRegime(str, Enum):
    """Flow regime; selects the conservative and primitive layouts."""
    COMPRESSIBLE = "compressible"
    INCOMPRESSIBLE = "incompressible"
    FREESURFACE = "freesurface"


class TurbulenceModel(str, Enum):
    """Turbulence closure; selects the operator kernels and nTurbVar."""
    SA = "sa"
    SST = "sst"

    @property
    def n_var(self) -> int:
        return 1 if self is TurbulenceModel.SA else 2


class PrimitiveLayout(NamedTuple):
    """
    Index map of the primitive vector for one regime and dimension.

    Velocity components always occupy ``1 .. n_dim``. Fields absent from a
    regime are -1.

    Compressible:   (T, v[n_dim], P, rho, h, c, mu_lam, mu_t)
    Incompressible: (P, v[n_dim], rho, beta2, mu_lam, mu_t)
    Free surface:   (P, v[n_dim], rho, beta2, mu_lam, mu_t, level_set, dist)
    """
    regime: FlowRegime
    n_dim: int
    n_var: int
    n_prim: int
    n_prim_grad: int
    temperature: int
    pressure: int
    density: int
    enthalpy: int
    sound_speed: int
    beta2: int
    laminar_viscosity: int
    eddy_viscosity: int
    level_set: int
    free_surface_dist: int

    @property
    def velocity(self) -> slice:
        return slice(1, self.n_dim + 1)


def get_primitive_layout(regime, n_dim: int) -> PrimitiveLayout:
    """
    Return the primitive layout for ``regime`` in ``n_dim`` dimensions.

    Parameters
    ----------
    regime : FlowRegime or str
        Flow regime.
    n_dim : int
        Spatial dimension, 2 or 3.

    Returns
    -------
    PrimitiveLayout
    """
    regime = FlowRegime(regime)
    if n_dim not in (2, 3):
        raise ValueError(f"n_dim must be 2 or 3, got {n_dim}")

    if regime is FlowRegime.COMPRESSIBLE:
        return PrimitiveLayout(
            regime=regime, n_dim=n_dim,
            n_var=n_dim + 2, n_prim=n_dim + 7, n_prim_grad=n_dim + 4,
            temperature=0, pressure=n_dim + 1, density=n_dim + 2,
            enthalpy=n_dim + 3, sound_speed=n_dim + 4, beta2=-1,
            laminar_viscosity=n_dim + 5, eddy_viscosity=n_dim + 6,
            level_set=-1, free_surface_dist=-1,
        )
    if regime is FlowRegime.INCOMPRESSIBLE:
        return PrimitiveLayout(
            regime=regime, n_dim=n_dim,
            n_var=n_dim + 1, n_prim=n_dim + 5, n_prim_grad=n_dim + 3,
            temperature=-1, pressure=0, density=n_dim + 1,
            enthalpy=-1, sound_speed=-1, beta2=n_dim + 2,
            laminar_viscosity=n_dim + 3, eddy_viscosity=n_dim + 4,
            level_set=-1, free_surface_dist=-1,
        )
    return PrimitiveLayout(
        regime=regime, n_dim=n_dim,
        n_var=n_dim + 2, n_prim=n_dim + 7, n_prim_grad=n_dim + 6,
        temperature=-1, pressure=0, density=n_dim + 1,
        enthalpy=-1, sound_speed=-1, beta2=n_dim + 2,
        laminar_viscosity=n_dim + 3, eddy_viscosity=n_dim + 4,
        level_set=n_dim + 5, free_surface_dist=n_dim + 6,
    )
