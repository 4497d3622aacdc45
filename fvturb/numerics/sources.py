"""
Point-wise source terms of the turbulence closures.

Spalart-Allmaras (per control volume V):
    Res = P - D + CP
    P  = cb1 Ŝ ν̃ V                       (× γ with transition)
    D  = cw1 fw (ν̃/d)² V                  (× clip(γ, 0.1, 1) with transition)
    CP = (cb2/σ)|∇ν̃|² V
    J  = ∂P/∂ν̃ - ∂D/∂ν̃

Menter SST:
    P_k  = clip(μ_t S² - ⅔ρk ∇·v, 0, 20β*ρωk)
    P_ω  = max(S² - ⅔ζ ∇·v, 0),  ζ = max(ω, S F2/a1)
    Res_k = P_k V - β*ρωk V
    Res_ω = α ρ P_ω V - β ρω² V + (1 - F1) CDkw V
    J     = diag(-β* ω V, -2β ω V)

α and β are blended with F1. Outputs are zeroed first and left at zero at
points on the wall (d ≤ WALL_DIST_MIN).

The SA closure algebra mirrors ``fvturb.physics.spalart_allmaras``, which is
the backend-agnostic reference used to check these kernels.
"""

import numpy as np
from numba import njit, prange

from ..constants import WALL_DIST_MIN, SHAT_MIN, R_MAX
from ..physics.spalart_allmaras import CB1, CW1, CW2, CW3, CV1, K2, CB2_SIGMA
from .gradients import vorticity_magnitude_point, velocity_divergence_point


CV1_3 = CV1 ** 3
CW3_6 = CW3 ** 6


@njit(cache=True, error_model='numpy')
def sa_source_point(prim, grad_prim, turb, turb_grad, dist, volume, n_dim,
                    i_density, i_lam_visc, transition, intermittency, implicit,
                    residual, jac):
    residual[0] = 0.0
    if implicit:
        jac[0, 0] = 0.0

    if dist <= WALL_DIST_MIN:
        return

    nu_hat = turb[0]
    omega = vorticity_magnitude_point(grad_prim, n_dim)

    nu = prim[i_lam_visc] / prim[i_density]
    dist2 = dist * dist
    inv_k2_d2 = 1.0 / (K2 * dist2)

    chi = nu_hat / nu
    chi2 = chi * chi
    chi3 = chi2 * chi
    fv1 = chi3 / (chi3 + CV1_3)
    fv2 = 1.0 - chi / (1.0 + chi * fv1)

    shat_raw = omega + nu_hat * fv2 * inv_k2_d2
    shat = max(shat_raw, SHAT_MIN)

    r_raw = nu_hat / (shat * K2 * dist2)
    r = min(r_raw, R_MAX)
    g = r + CW2 * (r ** 6 - r)
    g6 = g ** 6
    glim = ((1.0 + CW3_6) / (g6 + CW3_6)) ** (1.0 / 6.0)
    fw = g * glim

    prod_scale = 1.0
    dest_scale = 1.0
    if transition:
        prod_scale = intermittency
        dest_scale = min(max(intermittency, 0.1), 1.0)

    production = CB1 * shat * nu_hat * volume * prod_scale
    destruction = CW1 * fw * nu_hat * nu_hat / dist2 * volume * dest_scale

    norm2_grad = 0.0
    for d in range(n_dim):
        norm2_grad += turb_grad[0, d] * turb_grad[0, d]
    cross_production = CB2_SIGMA * norm2_grad * volume

    residual[0] = production - destruction + cross_production

    if implicit:
        dfv1 = 3.0 * chi2 * CV1_3 / (nu * (chi3 + CV1_3) ** 2)
        dfv2 = -(1.0 / nu - chi2 * dfv1) / (1.0 + chi * fv1) ** 2
        if shat_raw <= SHAT_MIN:
            dshat = 0.0
        else:
            dshat = (fv2 + nu_hat * dfv2) * inv_k2_d2
        jac[0, 0] += CB1 * (nu_hat * dshat + shat) * volume * prod_scale

        if r_raw >= R_MAX:
            dr = 0.0
        else:
            dr = (shat - nu_hat * dshat) / (shat * shat) * inv_k2_d2
        dg = dr * (1.0 + CW2 * (6.0 * r ** 5 - 1.0))
        dfw = dg * glim * (1.0 - g6 / (g6 + CW3_6))
        jac[0, 0] -= CW1 * (dfw * nu_hat + 2.0 * fw) * nu_hat / dist2 * volume * dest_scale


@njit(cache=True, error_model='numpy')
def sst_source_point(prim, grad_prim, turb, strain_mag, f1, f2, cd_kw, dist, volume,
                     n_dim, i_density, i_eddy_visc, constants, implicit, residual, jac):
    residual[0] = 0.0
    residual[1] = 0.0
    if implicit:
        jac[0, 0] = 0.0
        jac[0, 1] = 0.0
        jac[1, 0] = 0.0
        jac[1, 1] = 0.0

    if dist <= WALL_DIST_MIN:
        return

    beta_1 = constants[4]
    beta_2 = constants[5]
    beta_star = constants[6]
    a1 = constants[7]
    alfa_1 = constants[8]
    alfa_2 = constants[9]

    alfa_blended = f1 * alfa_1 + (1.0 - f1) * alfa_2
    beta_blended = f1 * beta_1 + (1.0 - f1) * beta_2

    rho = prim[i_density]
    mu_t = prim[i_eddy_visc]
    k = turb[0]
    om = turb[1]
    s2 = strain_mag * strain_mag

    diverg = velocity_divergence_point(grad_prim, n_dim)

    pk = mu_t * s2 - 2.0 / 3.0 * rho * k * diverg
    pk = min(pk, 20.0 * beta_star * rho * om * k)
    pk = max(pk, 0.0)

    zeta = max(om, strain_mag * f2 / a1)
    pw = max(s2 - 2.0 / 3.0 * zeta * diverg, 0.0)

    residual[0] = pk * volume - beta_star * rho * om * k * volume
    residual[1] = (alfa_blended * rho * pw * volume
                   - beta_blended * rho * om * om * volume
                   + (1.0 - f1) * cd_kw * volume)

    if implicit:
        jac[0, 0] = -beta_star * om * volume
        jac[1, 1] = -2.0 * beta_blended * om * volume


# =============================================================================
# Point-loop drivers
# =============================================================================

@njit(cache=True, parallel=True)
def sa_source_kernel(primitive, grad_primitive, turb_var, turb_grad, wall_dist, volume,
                     i_density, i_lam_visc, transition, intermittency, implicit,
                     residual, jac):
    n_dim = grad_primitive.shape[2]
    for p in prange(primitive.shape[0]):
        jp = np.int64(p) if implicit else np.int64(0)
        sa_source_point(
            primitive[p], grad_primitive[p], turb_var[p], turb_grad[p],
            wall_dist[p], volume[p], n_dim, i_density, i_lam_visc,
            transition, intermittency, implicit, residual[p], jac[jp],
        )


@njit(cache=True, parallel=True)
def sst_source_kernel(primitive, grad_primitive, turb_var, strain_mag, f1, f2, cd_kw,
                      wall_dist, volume, i_density, i_eddy_visc, constants, implicit,
                      residual, jac):
    n_dim = grad_primitive.shape[2]
    for p in prange(primitive.shape[0]):
        jp = np.int64(p) if implicit else np.int64(0)
        sst_source_point(
            primitive[p], grad_primitive[p], turb_var[p], strain_mag[p],
            f1[p], f2[p], cd_kw[p], wall_dist[p], volume[p], n_dim,
            i_density, i_eddy_visc, constants, implicit, residual[p], jac[jp],
        )
