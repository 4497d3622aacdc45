"""
Shared pytest fixtures for the test suite.

Builders for conservative states and primitive rows, and small meshes that
the operator tests assemble on.
"""

import pytest
import numpy as np

from fvturb.config import (
    sa_compressible_preset,
    sst_compressible_preset,
    incompressible_preset,
)


# =============================================================================
# State builders
# =============================================================================

def compressible_solution(density, velocity, pressure, gamma=1.4, turb_ke=0.0):
    """
    Conservative rows [ρ, ρv, ρE] whose reconstruction gives ``pressure``.

    ``density``/``pressure`` are per point, ``velocity`` is (n_points, n_dim).
    """
    density = np.atleast_1d(np.asarray(density, dtype=np.float64))
    pressure = np.atleast_1d(np.asarray(pressure, dtype=np.float64))
    velocity = np.atleast_2d(np.asarray(velocity, dtype=np.float64))
    turb_ke = np.broadcast_to(np.asarray(turb_ke, dtype=np.float64), density.shape)

    kinetic = 0.5 * density * np.sum(velocity ** 2, axis=1)
    rho_E = (pressure + 2.0 / 3.0 * density * turb_ke) / (gamma - 1.0) + kinetic
    return np.column_stack([density, density[:, None] * velocity, rho_E])


def compressible_primitive_row(density=1.0, velocity=(1.0, 0.0), laminar_viscosity=1e-3,
                               eddy_viscosity=0.0, pressure=1.0, gamma=1.4):
    """One 2D/3D compressible primitive row (T, v, P, ρ, h, c, μ, μ_t), R = 1."""
    velocity = np.asarray(velocity, dtype=np.float64)
    n_dim = velocity.shape[0]
    row = np.zeros(n_dim + 7)
    row[0] = pressure / density
    row[1:n_dim + 1] = velocity
    row[n_dim + 1] = pressure
    row[n_dim + 2] = density
    row[n_dim + 3] = gamma / (gamma - 1.0) * pressure / density + 0.5 * velocity @ velocity
    row[n_dim + 4] = np.sqrt(gamma * pressure / density)
    row[n_dim + 5] = laminar_viscosity
    row[n_dim + 6] = eddy_viscosity
    return row


@pytest.fixture
def make_solution():
    return compressible_solution


@pytest.fixture
def make_primitive_row():
    return compressible_primitive_row


# =============================================================================
# Configurations
# =============================================================================

@pytest.fixture
def sa_config():
    config = sa_compressible_preset()
    config.gas.viscosity_ref = 1.0e-3
    return config


@pytest.fixture
def sst_config():
    config = sst_compressible_preset()
    config.gas.viscosity_ref = 1.0e-3
    return config


@pytest.fixture
def incompressible_config():
    return incompressible_preset()


# =============================================================================
# Meshes
# =============================================================================

@pytest.fixture
def cartesian_mesh():
    """
    Uniform 2D grid of 5 x 4 points on [0, 1] x [0, 0.6] with dual-face normals.

    Point (i, j) has index i * ny + j.
    """
    nx, ny = 5, 4
    lx, ly = 1.0, 0.6
    dx, dy = lx / (nx - 1), ly / (ny - 1)
    x, y = np.meshgrid(np.linspace(0, lx, nx), np.linspace(0, ly, ny), indexing='ij')
    coords = np.column_stack([x.ravel(), y.ravel()])

    idx = np.arange(nx * ny).reshape(nx, ny)
    edges_x = np.column_stack([idx[:-1, :].ravel(), idx[1:, :].ravel()])
    edges_y = np.column_stack([idx[:, :-1].ravel(), idx[:, 1:].ravel()])
    edges = np.vstack([edges_x, edges_y])
    normals = np.vstack([
        np.tile([dy, 0.0], (len(edges_x), 1)),
        np.tile([0.0, dx], (len(edges_y), 1)),
    ])
    return {
        'coords': coords,
        'edges': edges,
        'normals': normals,
        'volume': np.full(nx * ny, dx * dy),
        'wall_dist': coords[:, 1] + 0.05,
        'n_points': nx * ny,
    }
