"""
Averaged-gradient diffusion of the turbulence unknowns.

The face gradient is the arithmetic mean of the endpoint gradients projected
on the edge normal. The corrected variant replaces its component along the
edge vector e = x_j - x_i with the finite difference of the endpoint values,
which restores consistency on non-orthogonal meshes:

    G       = mean(∇φ)·n
    G_corr  = G - proj·(mean(∇φ)·e - (φ_j - φ_i)),   proj = (e·n)/|e|²

For an orthogonal edge whose gradients agree with the endpoint difference
both variants coincide.

Jacobians use the thin-shear-layer approximation ∂G/∂φ_j ≈ proj.

SA:
    ν_e = ½(ν_i + ν_j + ν̃_i + ν̃_j),   ν = μ_lam/ρ
    Res = ν_e G / σ
    J_i = (½G - ν_e proj)/σ,   J_j = (½G + ν_e proj)/σ

SST (per variable, σ blended with F1 at each endpoint):
    Γ   = ½[(μ_i + σ_i μ_t,i) + (μ_j + σ_j μ_t,j)]
    Res = Γ G
    J_i = diag(-Γ proj/ρ_i),   J_j = diag(+Γ proj/ρ_j)
"""

import numpy as np
from numba import njit, prange

from .geometry import edge_projection
from ..physics.spalart_allmaras import SIGMA


@njit(cache=True)
def projected_mean_gradient(grad_i, grad_j, phi_i, phi_j, coord_i, coord_j,
                            normal, proj, corrected):
    """
    Mean gradient of one variable projected on the normal, optionally corrected.
    """
    g_normal = 0.0
    g_edge = 0.0
    for d in range(normal.shape[0]):
        mean = 0.5 * (grad_i[d] + grad_j[d])
        g_normal += mean * normal[d]
        g_edge += mean * (coord_j[d] - coord_i[d])
    if corrected:
        return g_normal - (g_edge - (phi_j - phi_i)) * proj
    return g_normal


@njit(cache=True, error_model='numpy')
def avg_grad_sa_edge(prim_i, prim_j, turb_i, turb_j, grad_i, grad_j,
                     coord_i, coord_j, normal, corrected, implicit,
                     i_density, i_lam_visc, residual, jac_i, jac_j):
    nu_i = prim_i[i_lam_visc] / prim_i[i_density]
    nu_j = prim_j[i_lam_visc] / prim_j[i_density]
    nu_e = 0.5 * (nu_i + nu_j + turb_i[0] + turb_j[0])

    proj = edge_projection(coord_i, coord_j, normal)
    g = projected_mean_gradient(grad_i[0], grad_j[0], turb_i[0], turb_j[0],
                                coord_i, coord_j, normal, proj, corrected)

    residual[0] = nu_e * g / SIGMA
    if implicit:
        jac_i[0, 0] = (0.5 * g - nu_e * proj) / SIGMA
        jac_j[0, 0] = (0.5 * g + nu_e * proj) / SIGMA


@njit(cache=True, error_model='numpy')
def avg_grad_sst_edge(prim_i, prim_j, turb_i, turb_j, grad_i, grad_j, f1_i, f1_j,
                      coord_i, coord_j, normal, corrected, implicit,
                      i_density, i_lam_visc, i_eddy_visc, constants,
                      residual, jac_i, jac_j):
    mu_i = prim_i[i_lam_visc]
    mu_j = prim_j[i_lam_visc]
    mut_i = prim_i[i_eddy_visc]
    mut_j = prim_j[i_eddy_visc]
    rho_i = prim_i[i_density]
    rho_j = prim_j[i_density]

    proj = edge_projection(coord_i, coord_j, normal)

    # constants[0:2] = sigma_k1, sigma_k2; constants[2:4] = sigma_om1, sigma_om2
    for k in range(2):
        s1 = constants[2 * k]
        s2 = constants[2 * k + 1]
        sigma_i = f1_i * s1 + (1.0 - f1_i) * s2
        sigma_j = f1_j * s1 + (1.0 - f1_j) * s2
        diff = 0.5 * ((mu_i + sigma_i * mut_i) + (mu_j + sigma_j * mut_j))

        g = projected_mean_gradient(grad_i[k], grad_j[k], turb_i[k], turb_j[k],
                                    coord_i, coord_j, normal, proj, corrected)
        residual[k] = diff * g

        if implicit:
            jac_i[k, k] = -diff * proj / rho_i
            jac_j[k, k] = diff * proj / rho_j
            jac_i[k, 1 - k] = 0.0
            jac_j[k, 1 - k] = 0.0


# =============================================================================
# Edge-loop drivers
# =============================================================================

@njit(cache=True, parallel=True)
def avg_grad_sa_kernel(edges, primitive, turb_var, turb_grad, coord_i, coord_j, normal,
                       corrected, implicit, i_density, i_lam_visc,
                       residual, jac_i, jac_j):
    for e in prange(edges.shape[0]):
        i = edges[e, 0]
        j = edges[e, 1]
        je = np.int64(e) if implicit else np.int64(0)
        avg_grad_sa_edge(
            primitive[i], primitive[j], turb_var[i], turb_var[j],
            turb_grad[i], turb_grad[j], coord_i[e], coord_j[e], normal[e],
            corrected, implicit, i_density, i_lam_visc,
            residual[e], jac_i[je], jac_j[je],
        )


@njit(cache=True, parallel=True)
def avg_grad_sst_kernel(edges, primitive, turb_var, turb_grad, f1, coord_i, coord_j, normal,
                        corrected, implicit, i_density, i_lam_visc, i_eddy_visc, constants,
                        residual, jac_i, jac_j):
    for e in prange(edges.shape[0]):
        i = edges[e, 0]
        j = edges[e, 1]
        je = np.int64(e) if implicit else np.int64(0)
        avg_grad_sst_edge(
            primitive[i], primitive[j], turb_var[i], turb_var[j],
            turb_grad[i], turb_grad[j], f1[i], f1[j],
            coord_i[e], coord_j[e], normal[e],
            corrected, implicit, i_density, i_lam_visc, i_eddy_visc, constants,
            residual[e], jac_i[je], jac_j[je],
        )
