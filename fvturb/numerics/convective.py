"""
First-order upwind convection of the turbulence unknowns.

For an edge (i, j) with normal n pointing from i to j:

    q  = ½(u_i + u_j)·n        (u relative to the grid when it moves)
    a0 = ½(q + |q|),  a1 = ½(q - |q|)

SA:   Res = a0 ν̃_i + a1 ν̃_j,               J_i = a0,        J_j = a1
SST:  Res = a0 ρ_i φ_i + a1 ρ_j φ_j (φ=k,ω), J_i = diag(a0),  J_j = diag(a1)

Kernels write one edge row of the caller's arrays; the batch drivers loop
edges in parallel. With ``implicit`` False the Jacobian arrays are not
touched and may be a dummy buffer.
"""

import numpy as np
from numba import njit, prange


@njit(cache=True)
def upwind_coefficients(prim_i, prim_j, normal, grid_vel_i, grid_vel_j, moving):
    """Return (a0, a1) for one edge."""
    q = 0.0
    for d in range(normal.shape[0]):
        u_i = prim_i[d + 1]
        u_j = prim_j[d + 1]
        if moving:
            u_i -= grid_vel_i[d]
            u_j -= grid_vel_j[d]
        q += 0.5 * (u_i + u_j) * normal[d]
    aq = abs(q)
    return 0.5 * (q + aq), 0.5 * (q - aq)


@njit(cache=True)
def upwind_sa_edge(prim_i, prim_j, turb_i, turb_j, normal, grid_vel_i, grid_vel_j,
                   moving, implicit, residual, jac_i, jac_j):
    a0, a1 = upwind_coefficients(prim_i, prim_j, normal, grid_vel_i, grid_vel_j, moving)
    residual[0] = a0 * turb_i[0] + a1 * turb_j[0]
    if implicit:
        jac_i[0, 0] = a0
        jac_j[0, 0] = a1


@njit(cache=True)
def upwind_sst_edge(prim_i, prim_j, turb_i, turb_j, normal, grid_vel_i, grid_vel_j,
                    moving, implicit, i_density, residual, jac_i, jac_j):
    a0, a1 = upwind_coefficients(prim_i, prim_j, normal, grid_vel_i, grid_vel_j, moving)
    rho_i = prim_i[i_density]
    rho_j = prim_j[i_density]
    for k in range(2):
        residual[k] = a0 * rho_i * turb_i[k] + a1 * rho_j * turb_j[k]
    if implicit:
        jac_i[0, 0] = a0
        jac_i[0, 1] = 0.0
        jac_i[1, 0] = 0.0
        jac_i[1, 1] = a0
        jac_j[0, 0] = a1
        jac_j[0, 1] = 0.0
        jac_j[1, 0] = 0.0
        jac_j[1, 1] = a1


# =============================================================================
# Edge-loop drivers
# =============================================================================

@njit(cache=True, parallel=True)
def upwind_sa_kernel(edges, primitive, turb_var, normal, grid_vel_i, grid_vel_j,
                     moving, implicit, residual, jac_i, jac_j):
    for e in prange(edges.shape[0]):
        i = edges[e, 0]
        j = edges[e, 1]
        je = np.int64(e) if implicit else np.int64(0)
        ge = np.int64(e) if moving else np.int64(0)
        upwind_sa_edge(
            primitive[i], primitive[j], turb_var[i], turb_var[j], normal[e],
            grid_vel_i[ge], grid_vel_j[ge], moving, implicit,
            residual[e], jac_i[je], jac_j[je],
        )


@njit(cache=True, parallel=True)
def upwind_sst_kernel(edges, primitive, turb_var, normal, grid_vel_i, grid_vel_j,
                      moving, implicit, i_density, residual, jac_i, jac_j):
    for e in prange(edges.shape[0]):
        i = edges[e, 0]
        j = edges[e, 1]
        je = np.int64(e) if implicit else np.int64(0)
        ge = np.int64(e) if moving else np.int64(0)
        upwind_sst_edge(
            primitive[i], primitive[j], turb_var[i], turb_var[j], normal[e],
            grid_vel_i[ge], grid_vel_j[ge], moving, implicit, i_density,
            residual[e], jac_i[je], jac_j[je],
        )
