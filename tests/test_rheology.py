"""
Unit tests for the regularized Bingham viscosity and its per-cell solver.
"""

import numpy as np
import pytest

from bingham_lbm import ConfigurationError, D2Q9, RheologyParameters
from bingham_lbm.collision import MRTBinghamCollision
from bingham_lbm.rheology import apparent_viscosity, shear_rate, solve_viscosity

FIXTURE = RheologyParameters(mu_p=0.2, tau_y=0.00016, m=1.0e8, max_iters=150, tol=1e-6)


def shear_moments(pxy_values):
    """Non-equilibrium moment sets describing simple shear of varying strength."""
    m_neq = np.zeros([len(pxy_values), 9])
    m_neq[:, D2Q9.PXY] = pxy_values
    return m_neq


class TestApparentViscosity:

    @pytest.mark.parametrize("m", [1.0, 1.0e3, 1.0e8, 1.0e12])
    def test_finite_at_zero_strain_rate(self, m):
        params = RheologyParameters(mu_p=0.2, tau_y=0.00016, m=m)
        mu = float(apparent_viscosity(np.array(0.0), params))
        assert np.isfinite(mu)
        assert np.isclose(mu, 0.2 + 0.00016 * m)

    def test_continuous_across_floor(self):
        params = RheologyParameters(mu_p=0.2, tau_y=0.00016, m=1.0e8, gamma_floor=1e-11)
        below = float(apparent_viscosity(np.array(0.99e-11), params))
        above = float(apparent_viscosity(np.array(1.01e-11), params))
        assert np.isclose(below, above, rtol=1e-3)

    def test_approaches_bingham_law(self):
        gamma = 1e-3
        ideal = 0.2 + 0.00016 / gamma
        errors = []
        for m in [1.0e2, 1.0e3, 1.0e4, 1.0e8]:
            params = RheologyParameters(mu_p=0.2, tau_y=0.00016, m=m)
            errors.append(abs(float(apparent_viscosity(np.array(gamma), params)) - ideal))

        assert all(later <= earlier for earlier, later in zip(errors, errors[1:]))
        assert errors[-1] < 1e-12

    def test_newtonian_without_yield_stress(self):
        params = RheologyParameters(mu_p=0.2, tau_y=0.0, m=1.0e8)
        gamma = np.array([0.0, 1e-12, 1e-5, 0.1])
        assert np.allclose(apparent_viscosity(gamma, params), 0.2)


class TestShearRate:

    def test_simple_shear(self):
        rho = np.array([1.0])
        rates = MRTBinghamCollision.relaxation_rates(np.array([1.0 / 6.0]))  # omega = 1
        gamma = shear_rate(shear_moments([-0.001]), rho, rates)
        # S_xy = -3 omega pxy / (2 rho) and gamma = 2 |S_xy|
        assert np.isclose(float(gamma[0]), 0.003)

    def test_zero_for_equilibrium(self):
        rates = MRTBinghamCollision.relaxation_rates(np.array([0.2]))
        assert float(shear_rate(np.zeros([1, 9]), np.array([1.0]), rates)[0]) == 0.0


class TestSolveViscosity:

    def setup_method(self):
        self.m_neq = shear_moments([-0.001, -0.0005, 0.002, 0.0])
        self.rho = np.array([1.0, 1.02, 0.98, 1.0])
        self.nu0 = np.full(4, 0.2)

    def solve(self, params, nu0=None):
        nu0 = self.nu0 if nu0 is None else nu0
        return solve_viscosity(self.m_neq, self.rho, nu0, params, MRTBinghamCollision.relaxation_rates)

    def test_converges_for_case_parameters(self):
        result = self.solve(FIXTURE)
        assert int(result.unconverged) == 0
        assert int(result.iterations) <= FIXTURE.max_iters
        assert np.all(np.isfinite(result.nu))

    def test_fixed_point(self):
        nu = np.asarray(self.solve(FIXTURE).nu)[:3]
        rates = MRTBinghamCollision.relaxation_rates(nu)
        gamma = shear_rate(self.m_neq[:3], self.rho[:3], rates)
        nu_next = np.asarray(apparent_viscosity(gamma, FIXTURE)) / self.rho[:3]
        assert np.allclose(nu_next, nu, rtol=1e-5)

    def test_yield_stress_raises_viscosity(self):
        nu = np.asarray(self.solve(FIXTURE).nu)
        assert np.all(nu[:3] > 0.2 / self.rho[:3])

    def test_resting_cell_uses_limit(self):
        nu = np.asarray(self.solve(FIXTURE).nu)
        assert np.isclose(nu[3], (0.2 + 0.00016 * 1.0e8) / 1.0)

    def test_deterministic(self):
        first = self.solve(FIXTURE)
        second = self.solve(FIXTURE)
        assert np.array_equal(np.asarray(first.nu), np.asarray(second.nu))
        assert int(first.iterations) == int(second.iterations)

    def test_warm_start_from_solution(self):
        nu = np.asarray(self.solve(FIXTURE).nu)
        again = self.solve(FIXTURE, nu0=nu)
        assert int(again.unconverged) == 0
        assert np.allclose(np.asarray(again.nu), nu, rtol=1e-5)

    def test_non_convergence_is_reported(self):
        params = RheologyParameters(mu_p=0.2, tau_y=0.00016, m=1.0e8, max_iters=1, tol=1e-6)
        result = self.solve(params)
        # the three sheared cells need more than one iteration, the resting one exits early
        assert int(result.unconverged) == 3
        assert np.all(np.isfinite(result.nu))

    def test_newtonian_limit(self):
        params = RheologyParameters(mu_p=0.2, tau_y=0.0, m=1.0e8)
        result = self.solve(params)
        assert int(result.unconverged) == 0
        assert np.allclose(result.nu[:3], 0.2 / self.rho[:3])


class TestRheologyParameters:

    @pytest.mark.parametrize("kwargs", [
        dict(mu_p=0.0, tau_y=0.1, m=1.0),
        dict(mu_p=0.2, tau_y=-0.1, m=1.0),
        dict(mu_p=0.2, tau_y=0.1, m=0.0),
        dict(mu_p=0.2, tau_y=0.1, m=1.0, max_iters=0),
        dict(mu_p=0.2, tau_y=0.1, m=1.0, tol=0.0),
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ConfigurationError):
            RheologyParameters(**kwargs).validate()

    def test_valid(self):
        FIXTURE.validate()
