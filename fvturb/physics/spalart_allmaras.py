"""
Spalart-Allmaras Turbulence Model Functions.

This module implements the closure functions of the Spalart-Allmaras
one-equation model together with their analytical derivatives with respect
to the working variable nuHat, for use in implicit solvers.

Backend Agnostic:
    All functions accept NumPy arrays, JAX arrays or PyTorch tensors of any
    shape and return the same type. PyTorch inputs let the hand-coded
    derivatives be checked against autograd; JAX inputs are used by the
    jit-compiled field helpers.

Notation:
    chi = nuHat / nu, where nu is the laminar kinematic viscosity.
    Every function returns ``(value, d(value)/d(nuHat))``.
"""

import numpy as np
import torch

from ..constants import SHAT_MIN, R_MAX


# SA model constants
CB1 = 0.1355
CB2 = 0.622
SIGMA = 2.0 / 3.0
KAPPA = 0.41
K2 = KAPPA ** 2
CW1 = CB1 / K2 + (1.0 + CB2) / SIGMA
CW2 = 0.3
CW3 = 2.0
CV1 = 7.1
CB2_SIGMA = CB2 / SIGMA


def _get_backend(x):
    """Get the array namespace (numpy, jax.numpy or torch) for input x."""
    if isinstance(x, torch.Tensor):
        return torch
    module = type(x).__module__
    if module.startswith('jax') or module.startswith('jaxlib'):
        import jax.numpy as jnp
        return jnp
    return np


def _floor(x, lo):
    if isinstance(x, torch.Tensor):
        return torch.clamp(x, min=lo)
    return _get_backend(x).maximum(x, lo)


def _ceil(x, hi):
    if isinstance(x, torch.Tensor):
        return torch.clamp(x, max=hi)
    return _get_backend(x).minimum(x, hi)


def _zero_where(cond, x):
    backend = _get_backend(x)
    return backend.where(cond, backend.zeros_like(x), x)


def fv1(nu_hat, nu):
    """
    Viscous damping function fv1 = chi³ / (chi³ + cv1³).

    Parameters
    ----------
    nu_hat : array_like
        SA working variable (any shape).
    nu : array_like or float
        Laminar kinematic viscosity.

    Returns
    -------
    val : array_like
        fv1 value.
    grad : array_like
        d(fv1)/d(nuHat) = 3 chi² cv1³ / (nu (chi³ + cv1³)²).
    """
    chi = nu_hat / nu
    chi3 = chi ** 3
    denom = chi3 + CV1 ** 3

    val = chi3 / denom
    grad = 3.0 * chi ** 2 * CV1 ** 3 / (nu * denom ** 2)
    return val, grad


def fv2(nu_hat, nu):
    """
    Returns (fv2, d(fv2)/d(nuHat)) with fv2 = 1 - chi / (1 + chi fv1).
    """
    chi = nu_hat / nu
    fv1_val, fv1_grad = fv1(nu_hat, nu)

    denom = 1.0 + chi * fv1_val
    val = 1.0 - chi / denom

    # d(chi/denom)/dnuHat = (1/nu - chi² fv1') / denom²
    grad = -(1.0 / nu - chi ** 2 * fv1_grad) / denom ** 2
    return val, grad


def s_tilde(omega, nu_hat, nu, d):
    """
    Modified vorticity S̃ = Ω + nuHat fv2 / (κ² d²), floored at SHAT_MIN.

    Parameters
    ----------
    omega : array_like
        Vorticity magnitude |ω|.
    nu_hat : array_like
        SA working variable.
    nu : array_like or float
        Laminar kinematic viscosity.
    d : array_like
        Wall distance.

    Returns
    -------
    val : array_like
        S̃ (floored).
    grad : array_like
        d(S̃)/d(nuHat), zero where the floor is active.
    """
    fv2_val, fv2_grad = fv2(nu_hat, nu)
    inv_k2_d2 = 1.0 / (K2 * d ** 2)

    raw = omega + nu_hat * fv2_val * inv_k2_d2
    grad_raw = (fv2_val + nu_hat * fv2_grad) * inv_k2_d2

    val = _floor(raw, SHAT_MIN)
    grad = _zero_where(raw <= SHAT_MIN, grad_raw)
    return val, grad


def r(omega, nu_hat, nu, d):
    """
    Returns (r, d(r)/d(nuHat)) with r = min(nuHat / (S̃ κ² d²), R_MAX).
    """
    S_t, S_t_grad = s_tilde(omega, nu_hat, nu, d)
    k2_d2 = K2 * d ** 2

    raw = nu_hat / (S_t * k2_d2)
    grad_raw = (S_t - nu_hat * S_t_grad) / (k2_d2 * S_t ** 2)

    val = _ceil(raw, R_MAX)
    grad = _zero_where(raw >= R_MAX, grad_raw)
    return val, grad


def g(omega, nu_hat, nu, d):
    """
    Returns (g, d(g)/d(nuHat)) with g = r + cw2 (r⁶ - r).
    """
    r_val, r_grad = r(omega, nu_hat, nu, d)
    val = r_val + CW2 * (r_val ** 6 - r_val)
    grad = (1.0 + CW2 * (6.0 * r_val ** 5 - 1.0)) * r_grad
    return val, grad


def fw(omega, nu_hat, nu, d):
    """
    Returns (fw, d(fw)/d(nuHat)) with fw = g ((1 + cw3⁶) / (g⁶ + cw3⁶))^(1/6).
    """
    g_val, g_grad = g(omega, nu_hat, nu, d)
    c6 = CW3 ** 6
    g6 = g_val ** 6

    glim = ((1.0 + c6) / (g6 + c6)) ** (1.0 / 6.0)
    val = g_val * glim

    # dfw/dg = glim (1 - g⁶ / (g⁶ + c6))
    grad = g_grad * glim * (1.0 - g6 / (g6 + c6))
    return val, grad


def spalart_allmaras_source(omega, nu_hat, nu, d, intermittency=None):
    """
    SA production and destruction per unit volume with analytical gradients.

    Production:  P = cb1 · S̃ · nuHat            (· γ with transition)
    Destruction: D = cw1 · fw · (nuHat / d)²     (· clip(γ, 0.1, 1) with transition)

    Parameters
    ----------
    omega, nu_hat, nu, d : array_like
        Vorticity magnitude, working variable, laminar kinematic viscosity,
        wall distance. Wall distance must be positive.
    intermittency : array_like, optional
        Transition intermittency γ; None disables the transition scaling.

    Returns
    -------
    (prod_val, prod_grad) : tuple
        Production and d(Production)/d(nuHat).
    (dest_val, dest_grad) : tuple
        Destruction and d(Destruction)/d(nuHat).
    """
    S_t, S_t_grad = s_tilde(omega, nu_hat, nu, d)
    prod_val = CB1 * S_t * nu_hat
    prod_grad = CB1 * (S_t_grad * nu_hat + S_t)

    fw_val, fw_grad = fw(omega, nu_hat, nu, d)
    inv_d2 = 1.0 / d ** 2
    dest_val = CW1 * fw_val * nu_hat ** 2 * inv_d2
    dest_grad = CW1 * (fw_grad * nu_hat + 2.0 * fw_val) * nu_hat * inv_d2

    if intermittency is not None:
        dest_scale = _ceil(_floor(intermittency, 0.1), 1.0)
        prod_val, prod_grad = prod_val * intermittency, prod_grad * intermittency
        dest_val, dest_grad = dest_val * dest_scale, dest_grad * dest_scale

    return (prod_val, prod_grad), (dest_val, dest_grad)


def cross_production(grad_nu_hat):
    """
    cb2 gradient term (cb2/σ)|∇nuHat|² per unit volume.

    Parameters
    ----------
    grad_nu_hat : array_like, shape (..., n_dim)
        Gradient of the working variable.
    """
    return CB2_SIGMA * (grad_nu_hat ** 2).sum(-1)


def sa_eddy_viscosity(density, nu_hat, nu):
    """
    Eddy viscosity μ_t = ρ · nuHat · fv1(chi).

    Negative nuHat (numerical undershoot) gives μ_t = 0.
    """
    nu_hat_safe = _floor(nu_hat, 0.0)
    fv1_val, _ = fv1(nu_hat_safe, nu)
    return density * nu_hat_safe * fv1_val
