"""
Tests for the ideal-gas equation of state and transport laws.
"""

import math

import pytest

from fvturb.physics.gas import (
    density_checked,
    pressure_checked,
    sound_speed_checked,
    temperature_checked,
    enthalpy,
    sutherland_viscosity,
    smoothed_heaviside,
    SUTHERLAND_MU_REF,
    SUTHERLAND_T_REF,
)


class TestEquationOfState:

    def test_pressure_from_energy(self):
        # rho = 1, |v|² = 1, rho_E = 3 → P = 0.4 * (3 - 0.5)
        p, invalid = pressure_checked(1.4, 1.0, 3.0, 1.0, 0.0)
        assert p == pytest.approx(1.0)
        assert not invalid

    def test_turbulent_kinetic_energy_subtracted(self):
        p, _ = pressure_checked(1.4, 1.2, 3.0, 1.0, 0.3)
        assert p == pytest.approx(0.4 * (3.0 - 0.6) - 2.0 / 3.0 * 1.2 * 0.3)

    def test_negative_pressure_flagged(self):
        _, invalid = pressure_checked(1.4, 1.0, 0.1, 1.0, 0.0)
        assert invalid

    def test_density_flags(self):
        assert not density_checked(0.5)[1]
        assert density_checked(0.0)[1]
        assert density_checked(-1.0)[1]

    def test_sound_speed(self):
        c, invalid = sound_speed_checked(1.4, 1.0, 1.4)
        assert c == pytest.approx(1.0)
        assert not invalid

        c, invalid = sound_speed_checked(1.4, -1.0, 1.0)
        assert invalid
        assert c == 0.0

    def test_temperature(self):
        t, invalid = temperature_checked(287.0, 101325.0, 1.225)
        assert t == pytest.approx(101325.0 / (287.0 * 1.225))
        assert not invalid
        assert temperature_checked(1.0, -1.0, 1.0)[1]

    def test_enthalpy(self):
        assert enthalpy(3.0, 1.0, 2.0) == pytest.approx(2.0)


class TestTransportLaws:

    def test_sutherland_reference_point(self):
        mu = sutherland_viscosity(1.0, SUTHERLAND_T_REF, 1.0)
        assert mu == pytest.approx(SUTHERLAND_MU_REF)

    def test_sutherland_nondimensional(self):
        mu_dim = sutherland_viscosity(1.0, 288.15, 1.0)
        assert sutherland_viscosity(1.0, 288.15, 1.8e-5) == pytest.approx(mu_dim / 1.8e-5)

    def test_sutherland_increases_with_temperature(self):
        assert sutherland_viscosity(1.5, 288.15, 1.0) > sutherland_viscosity(1.0, 288.15, 1.0)

    def test_heaviside_limits(self):
        assert smoothed_heaviside(-1.0, 0.1) == 1.0
        assert smoothed_heaviside(1.0, 0.1) == 0.0
        assert smoothed_heaviside(0.0, 0.1) == pytest.approx(0.5)

    def test_heaviside_continuous_at_band_edges(self):
        eps = 0.1
        assert smoothed_heaviside(-eps, eps) == pytest.approx(1.0)
        assert smoothed_heaviside(eps, eps) == pytest.approx(0.0, abs=1e-15)
        assert math.isclose(smoothed_heaviside(0.05, eps) + smoothed_heaviside(-0.05, eps), 1.0)
