"""
Tests for TurbulenceState.
"""

import pytest
import numpy as np
from numpy.testing import assert_allclose

from fvturb.constants import TurbulenceModel
from fvturb.physics.spalart_allmaras import sa_eddy_viscosity
from fvturb.state import FlowState, TurbulenceState


class TestConstruction:

    def test_sa_accepts_flat_array(self):
        turb = TurbulenceState(np.array([1e-3, 2e-3]), np.array([0.1, 0.2]), model="sa")
        assert turb.model is TurbulenceModel.SA
        assert turb.turb_var.shape == (2, 1)
        assert turb.turb_var_grad.shape == (2, 1, 2)
        assert turb.turb_ke is None

    def test_sst_shapes(self):
        turb = TurbulenceState.from_freestream(4, np.ones(4), (1e-4, 10.0), model="sst", n_dim=3)
        assert turb.turb_var.shape == (4, 2)
        assert turb.turb_var_grad.shape == (4, 2, 3)
        assert_allclose(turb.turb_ke, 1e-4)
        assert_allclose(turb.f1, 1.0)

    def test_wrong_variable_count(self):
        with pytest.raises(ValueError, match="SST"):
            TurbulenceState(np.ones((3, 1)), np.ones(3), model="sst")

    def test_wrong_wall_distance(self):
        with pytest.raises(ValueError, match="wall_dist"):
            TurbulenceState(np.ones((3, 1)), np.ones(2), model="sa")

    def test_unknown_model(self):
        with pytest.raises(ValueError):
            TurbulenceState(np.ones((3, 1)), np.ones(3), model="ke")


class TestClosure:

    @pytest.fixture
    def flow(self, sa_config, make_solution):
        flow = FlowState(make_solution([1.0, 1.2], [[0.5, 0.0], [0.3, 0.0]], [1.0, 1.0]), sa_config)
        flow.set_primitive_variables()
        return flow

    def test_sa_eddy_viscosity(self, flow):
        turb = TurbulenceState(np.array([3e-3, -1e-3]), np.ones(2), model="sa")
        mu_t = turb.eddy_viscosity(flow)
        nu = flow.laminar_viscosity / flow.density
        assert_allclose(mu_t, sa_eddy_viscosity(flow.density, np.array([3e-3, 0.0]), nu))
        assert mu_t[1] == 0.0

    def test_sst_eddy_viscosity(self, sst_config, flow):
        turb = TurbulenceState.from_freestream(2, np.ones(2), (1e-4, 10.0), model="sst")
        mu_t = turb.eddy_viscosity(flow, sst_config.turbulence.sst)
        assert_allclose(mu_t, flow.density * 1e-4 / 10.0)

    def test_sst_eddy_viscosity_needs_constants(self, flow):
        turb = TurbulenceState.from_freestream(2, np.ones(2), (1e-4, 10.0), model="sst")
        with pytest.raises(ValueError, match="constants"):
            turb.eddy_viscosity(flow)

    def test_blending_functions(self, sst_config, flow):
        turb = TurbulenceState.from_freestream(2, np.array([1e-4, 100.0]), (1e-4, 10.0), model="sst")
        turb.set_blending_functions(flow, sst_config.turbulence.sst)
        assert turb.f1[0] == pytest.approx(1.0)
        assert turb.f1[1] < 1e-6
        assert np.all(turb.cd_kw >= 1e-20)

    def test_blending_noop_for_sa(self, sst_config, flow):
        turb = TurbulenceState(np.array([3e-3, 3e-3]), np.ones(2), model="sa")
        turb.set_blending_functions(flow, sst_config.turbulence.sst)
        assert_allclose(turb.f1, 1.0)
