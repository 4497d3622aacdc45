"""
Velocity-gradient derived quantities.

The primitive gradients are filled by an external Green-Gauss or
least-squares pass; this module only turns the velocity block of those
gradients into the scalars the turbulence sources need.

Indexing:
    grad[p, k, d] = d(Primitive[k]) / dx_d at point p.
    Velocity component u_i sits at primitive index i + 1 in every regime.
"""

import math

import numpy as np
from numba import njit


# =============================================================================
# Per-point kernels (called from the source operators)
# =============================================================================

@njit(cache=True)
def vorticity_magnitude_point(grad, n_dim):
    """
    |ω| from one point's primitive gradient block.

    2D: |v_x - u_y|. 3D adds (w_y - v_z)² and (u_z - w_x)².
    """
    wz = grad[2, 0] - grad[1, 1]
    vort2 = wz * wz
    if n_dim == 3:
        wx = grad[3, 1] - grad[2, 2]
        wy = grad[1, 2] - grad[3, 0]
        vort2 += wx * wx + wy * wy
    return math.sqrt(vort2)


@njit(cache=True)
def velocity_divergence_point(grad, n_dim):
    div = 0.0
    for i in range(n_dim):
        div += grad[i + 1, i]
    return div


# =============================================================================
# Field versions (all points)
# =============================================================================

def compute_vorticity(grad: np.ndarray) -> np.ndarray:
    """
    Vorticity vector at every point.

    Parameters
    ----------
    grad : ndarray, shape (n_points, n_prim_grad, n_dim)
        Primitive gradients.

    Returns
    -------
    vorticity : ndarray, shape (n_points, 3)
        (w_y - v_z, -(w_x - u_z), v_x - u_y); only the z-component is
        non-zero in 2D.
    """
    n_dim = grad.shape[-1]
    u_y = grad[:, 1, 1]
    v_x = grad[:, 2, 0]
    vorticity = np.zeros((grad.shape[0], 3))
    if n_dim == 3:
        u_z = grad[:, 1, 2]
        v_z = grad[:, 2, 2]
        w_x = grad[:, 3, 0]
        w_y = grad[:, 3, 1]
        vorticity[:, 0] = w_y - v_z
        vorticity[:, 1] = -(w_x - u_z)
    vorticity[:, 2] = v_x - u_y
    return vorticity


def compute_strain_magnitude(grad: np.ndarray) -> np.ndarray:
    """
    Strain-rate magnitude at every point.

    The diagonal is made trace-free with div/3 in both 2D and 3D. In 2D the
    shear term enters as 2 (u_y + v_x)², without the ½ of the symmetric
    part; 3D uses the full symmetric tensor.

    Parameters
    ----------
    grad : ndarray, shape (n_points, n_prim_grad, n_dim)

    Returns
    -------
    strain_mag : ndarray, shape (n_points,)
    """
    n_dim = grad.shape[-1]
    vel_grad = grad[:, 1:n_dim + 1, :]                     # (n, n_dim, n_dim)
    if n_dim == 2:
        div13 = (vel_grad[:, 0, 0] + vel_grad[:, 1, 1]) / 3.0
        shear = vel_grad[:, 0, 1] + vel_grad[:, 1, 0]
        mag2 = ((vel_grad[:, 0, 0] - div13) ** 2 + (vel_grad[:, 1, 1] - div13) ** 2
                + 2.0 * shear ** 2)
        return np.sqrt(2.0 * mag2)

    strain = 0.5 * (vel_grad + np.swapaxes(vel_grad, 1, 2))
    div = np.trace(vel_grad, axis1=1, axis2=2)
    strain = strain - (div / 3.0)[:, None, None] * np.eye(n_dim)
    return np.sqrt(2.0 * np.sum(strain ** 2, axis=(1, 2)))
