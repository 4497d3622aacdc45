"""
Tests for the SA and SST point sources.

The Numba SA kernel is checked against the backend-agnostic closure module
and against finite differences of its own residual.
"""

import pytest
import numpy as np
from numpy.testing import assert_allclose

from fvturb.config import SSTConstants
from fvturb.physics.spalart_allmaras import spalart_allmaras_source, cross_production
from fvturb.physics.sst import sst_constants_array
from fvturb.numerics.sources import sa_source_point, sst_source_point


I_DENSITY, I_LAM_VISC, I_EDDY_VISC = 4, 7, 8


def _shear_gradient(du_dy, dv_dx=0.0, du_dx=0.0, dv_dy=0.0):
    grad = np.zeros((6, 2))
    grad[1] = [du_dx, du_dy]
    grad[2] = [dv_dx, dv_dy]
    return grad


def _sa(prim, grad, nu_hat, turb_grad, dist, volume, transition=False, intermittency=1.0,
        implicit=True):
    residual = np.full(1, 5.0)
    jac = np.full((1, 1), 5.0)
    sa_source_point(prim, grad, np.array([nu_hat]), turb_grad, dist, volume, 2,
                    I_DENSITY, I_LAM_VISC, transition, intermittency, implicit, residual, jac)
    return residual[0], jac[0, 0]


class TestSASource:

    @pytest.fixture
    def prim(self, make_primitive_row):
        return make_primitive_row(density=1.2, laminar_viscosity=1.2e-3)

    @pytest.mark.parametrize("nu_hat,dist,du_dy", [
        (3e-3, 0.05, 10.0),
        (1e-2, 0.5, 1.0),
        (5e-5, 0.01, 100.0),
        (2e-2, 1.0, 0.0),
    ])
    def test_matches_closure_module(self, prim, nu_hat, dist, du_dy):
        volume = 0.3
        turb_grad = np.array([[0.2, 0.3]])
        res, jac = _sa(prim, _shear_gradient(du_dy), nu_hat, turb_grad, dist, volume)

        nu = 1e-3
        (p, dp), (d, dd) = spalart_allmaras_source(np.array([abs(du_dy)]), np.array([nu_hat]), nu,
                                                   np.array([dist]))
        expected = (p[0] - d[0]) * volume + cross_production(turb_grad)[0] * volume
        assert res == pytest.approx(expected, rel=1e-9)
        assert jac == pytest.approx((dp[0] - dd[0]) * volume, rel=1e-9)

    def test_transition_matches_closure_module(self, prim):
        res, jac = _sa(prim, _shear_gradient(10.0), 3e-3, np.zeros((1, 2)), 0.05, 1.0,
                       transition=True, intermittency=0.05)
        (p, dp), (d, dd) = spalart_allmaras_source(np.array([10.0]), np.array([3e-3]), 1e-3,
                                                   np.array([0.05]), np.array([0.05]))
        assert res == pytest.approx(p[0] - d[0], rel=1e-9)
        assert jac == pytest.approx(dp[0] - dd[0], rel=1e-9)

    @pytest.mark.parametrize("nu_hat", [1e-4, 3e-3, 4e-2])
    def test_jacobian_finite_difference(self, prim, nu_hat):
        grad = _shear_gradient(8.0, dv_dx=1.0)
        turb_grad = np.zeros((1, 2))
        h = 1e-7 * nu_hat
        _, jac = _sa(prim, grad, nu_hat, turb_grad, 0.02, 1.0)
        r_plus, _ = _sa(prim, grad, nu_hat + h, turb_grad, 0.02, 1.0)
        r_minus, _ = _sa(prim, grad, nu_hat - h, turb_grad, 0.02, 1.0)
        assert jac == pytest.approx((r_plus - r_minus) / (2 * h), rel=1e-5)

    @pytest.mark.parametrize("dist", [0.0, 1e-10, 5e-11])
    def test_wall_singularity(self, prim, dist):
        res, jac = _sa(prim, _shear_gradient(100.0), 3e-3, np.array([[1.0, 1.0]]), dist, 1.0)
        assert res == 0.0
        assert jac == 0.0

    def test_explicit_leaves_jacobian(self, prim):
        residual = np.zeros(1)
        jac = np.full((1, 1), 5.0)
        sa_source_point(prim, _shear_gradient(10.0), np.array([3e-3]), np.zeros((1, 2)), 0.05, 1.0, 2,
                        I_DENSITY, I_LAM_VISC, False, 1.0, False, residual, jac)
        assert residual[0] != 0.0
        assert jac[0, 0] == 5.0

    def test_cross_production_only_in_uniform_flow(self, prim):
        """Zero vorticity and nuHat → only the cb2 term survives."""
        res, _ = _sa(prim, _shear_gradient(0.0), 0.0, np.array([[0.2, 0.3]]), 0.1, 2.0)
        assert res == pytest.approx(cross_production(np.array([0.2, 0.3])) * 2.0)


class TestSSTSource:

    @pytest.fixture
    def constants(self):
        return SSTConstants()

    def _sst(self, prim, grad, turb, strain, f1, f2, cd_kw, dist, volume, constants):
        residual = np.full(2, 5.0)
        jac = np.full((2, 2), 5.0)
        sst_source_point(prim, grad, np.asarray(turb, dtype=np.float64), strain, f1, f2, cd_kw,
                         dist, volume, 2, I_DENSITY, I_EDDY_VISC, sst_constants_array(constants),
                         True, residual, jac)
        return residual, jac

    def test_values(self, make_primitive_row, constants):
        rho, mu_t = 1.2, 1e-3
        k, om = 1e-3, 50.0
        S, f1, f2, cd_kw, V = 2.0, 0.3, 0.6, 1e-4, 0.5
        prim = make_primitive_row(density=rho, eddy_viscosity=mu_t)
        grad = _shear_gradient(2.0, du_dx=0.1, dv_dy=0.05)
        div = 0.15

        residual, jac = self._sst(prim, grad, [k, om], S, f1, f2, cd_kw, 1.0, V, constants)

        alfa = f1 * constants.alfa_1 + (1 - f1) * constants.alfa_2
        beta = f1 * constants.beta_1 + (1 - f1) * constants.beta_2
        pk = mu_t * S ** 2 - 2.0 / 3.0 * rho * k * div
        pk = max(min(pk, 20.0 * 0.09 * rho * om * k), 0.0)
        zeta = max(om, S * f2 / 0.31)
        pw = max(S ** 2 - 2.0 / 3.0 * zeta * div, 0.0)

        assert residual[0] == pytest.approx(pk * V - 0.09 * rho * om * k * V)
        assert residual[1] == pytest.approx(alfa * rho * pw * V - beta * rho * om ** 2 * V
                                            + (1 - f1) * cd_kw * V)
        assert_allclose(jac, [[-0.09 * om * V, 0.0], [0.0, -2.0 * beta * om * V]])

    def test_production_limiter(self, make_primitive_row, constants):
        rho, k, om = 1.0, 1e-3, 1.0
        prim = make_primitive_row(density=rho, eddy_viscosity=10.0)
        residual, _ = self._sst(prim, _shear_gradient(5.0), [k, om], 5.0, 1.0, 1.0, 0.0, 1.0, 1.0,
                                constants)
        limited = 20.0 * 0.09 * rho * om * k
        assert residual[0] == pytest.approx(limited - 0.09 * rho * om * k)

    def test_wall_singularity(self, make_primitive_row, constants):
        prim = make_primitive_row(eddy_viscosity=1e-3)
        residual, jac = self._sst(prim, _shear_gradient(5.0), [1e-3, 10.0], 5.0, 0.5, 0.5, 1.0,
                                  1e-10, 1.0, constants)
        assert np.all(residual == 0.0)
        assert np.all(jac == 0.0)
