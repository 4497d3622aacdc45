"""
Ideal-gas equation of state and transport laws.

Scalar Numba functions called from the per-point reconstruction kernels.
Each ``*_checked`` function returns ``(value, invalid)`` where ``invalid`` is
True when the derived quantity is non-physical.
"""

import math
from numba import njit


# Sutherland's law for air (dimensional)
SUTHERLAND_MU_REF = 1.853e-5   # Pa·s at T_REF
SUTHERLAND_T_REF = 300.0       # K
SUTHERLAND_S = 110.3           # K


@njit(cache=True, error_model='numpy')
def density_checked(rho):
    return rho, not (rho > 0.0)


@njit(cache=True, error_model='numpy')
def pressure_checked(gamma, rho, rho_E, velocity2, turb_ke):
    """
    Pressure from total energy, P = (γ-1)(ρE - ½ρ|v|²) - ⅔ρk.

    ``turb_ke`` is zero for models without a turbulent kinetic energy.
    """
    p = (gamma - 1.0) * (rho_E - 0.5 * rho * velocity2) - 2.0 / 3.0 * rho * turb_ke
    return p, not (p > 0.0)


@njit(cache=True, error_model='numpy')
def sound_speed_checked(gamma, p, rho):
    radicand = gamma * p / rho
    if not (radicand > 0.0):
        return 0.0, True
    return math.sqrt(radicand), False


@njit(cache=True, error_model='numpy')
def temperature_checked(gas_constant, p, rho):
    t = p / (gas_constant * rho)
    return t, not (t > 0.0)


@njit(cache=True, error_model='numpy')
def enthalpy(rho_E, p, rho):
    return (rho_E + p) / rho


@njit(cache=True, error_model='numpy')
def sutherland_viscosity(temperature, temperature_ref, viscosity_ref):
    """
    Non-dimensional laminar viscosity from Sutherland's law.

    Parameters
    ----------
    temperature : float
        Non-dimensional temperature; T_dim = temperature * temperature_ref.
    temperature_ref : float
        Reference temperature [K].
    viscosity_ref : float
        Reference viscosity [Pa·s].
    """
    t_dim = temperature * temperature_ref
    mu = SUTHERLAND_MU_REF * (t_dim / SUTHERLAND_T_REF) ** 1.5 \
        * (SUTHERLAND_T_REF + SUTHERLAND_S) / (t_dim + SUTHERLAND_S)
    return mu / viscosity_ref


@njit(cache=True, error_model='numpy')
def smoothed_heaviside(level_set, thickness):
    """
    Liquid indicator H(φ): 1 for φ < -ε, 0 for φ > ε, smooth in between.
    """
    if level_set < -thickness:
        return 1.0
    if level_set > thickness:
        return 0.0
    return 1.0 - 0.5 * (1.0 + level_set / thickness
                        + math.sin(math.pi * level_set / thickness) / math.pi)
