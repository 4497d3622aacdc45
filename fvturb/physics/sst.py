"""
Menter SST k-ω closure helpers.

Field-level functions (all points at once) that supply what the SST transport
operators read as inputs: the blending functions F1/F2, the cross-diffusion
CDkw and the eddy viscosity that is fed back into primitive reconstruction.

References:
    [1] Menter, F. R. (1994). "Two-equation eddy-viscosity turbulence models
        for engineering applications." AIAA Journal 32(8).
"""

import numpy as np

from .jax_config import jax, jnp


def sst_constants_array(constants) -> np.ndarray:
    """
    Pack SST closure constants for the Numba kernels.

    Order: sigma_k1, sigma_k2, sigma_om1, sigma_om2, beta_1, beta_2,
    beta_star, a1, alfa_1, alfa_2.
    """
    return np.array([
        constants.sigma_k1, constants.sigma_k2,
        constants.sigma_om1, constants.sigma_om2,
        constants.beta_1, constants.beta_2,
        constants.beta_star, constants.a1,
        constants.alfa_1, constants.alfa_2,
    ], dtype=np.float64)


@jax.jit
def compute_sst_blending_jax(turb, turb_grad, density, mu_lam, wall_dist, sigma_om2, beta_star):
    """
    Compute SST blending functions and cross-diffusion.

    Parameters
    ----------
    turb : jnp.ndarray (n_points, 2)
        [k, ω] per point.
    turb_grad : jnp.ndarray (n_points, 2, n_dim)
        Gradients of k and ω.
    density, mu_lam, wall_dist : jnp.ndarray (n_points,)
        Density, laminar dynamic viscosity, wall distance.
    sigma_om2, beta_star : float
        Closure constants.

    Returns
    -------
    F1 : jnp.ndarray (n_points,)
        Inner/outer blending function in [0, 1].
    F2 : jnp.ndarray (n_points,)
        Eddy-viscosity limiter blending function in [0, 1].
    CDkw : jnp.ndarray (n_points,)
        Positive part of the cross-diffusion 2ρσω2/ω ∇k·∇ω, floored at 1e-20.
    """
    k = turb[:, 0]
    omega = turb[:, 1]
    d2 = wall_dist ** 2

    grad_dot = jnp.sum(turb_grad[:, 0, :] * turb_grad[:, 1, :], axis=-1)
    CDkw = jnp.maximum(2.0 * density * sigma_om2 * grad_dot / omega, 1e-20)

    sqrt_k = jnp.sqrt(jnp.maximum(k, 0.0))
    viscous_arg = 500.0 * mu_lam / (density * d2 * omega)

    arg1 = jnp.minimum(
        jnp.maximum(sqrt_k / (beta_star * omega * wall_dist), viscous_arg),
        4.0 * density * sigma_om2 * k / (CDkw * d2),
    )
    F1 = jnp.tanh(arg1 ** 4)

    arg2 = jnp.maximum(2.0 * sqrt_k / (beta_star * omega * wall_dist), viscous_arg)
    F2 = jnp.tanh(arg2 ** 2)

    return F1, F2, CDkw


@jax.jit
def compute_sst_eddy_viscosity_jax(turb, density, strain_mag, F2, a1):
    """
    SST eddy viscosity μ_t = a1 ρ k / max(a1 ω, S F2), clipped at zero.
    """
    k = turb[:, 0]
    omega = turb[:, 1]
    mu_t = a1 * density * k / jnp.maximum(a1 * omega, strain_mag * F2)
    return jnp.maximum(mu_t, 0.0)
