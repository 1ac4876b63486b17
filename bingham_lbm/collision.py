"""
Collision operators.

Every operator exposes ``apply(f, nu) -> (f_post, nu, n_unconverged)``
where ``nu`` is the per-cell effective kinematic viscosity carried from
step to step. Only the Bingham operator changes it.
"""
from dataclasses import dataclass

import jax.numpy as jnp

from bingham_lbm.errors import ConfigurationError
from bingham_lbm.lattice import D2Q9
from bingham_lbm.rheology import RheologyParameters, solve_viscosity


def omega_from_viscosity(nu):
    return 1.0 / (nu / D2Q9.cs2 + 0.5)


def vikhansky_relaxation_rates(omega):
    """
    Diagonal of the MRT relaxation matrix for shear relaxation rate ``omega``.

    Energy, energy-square and stress moments relax with ``omega``; the heat
    flux moments use ``8 (2 - omega) / (8 - omega)`` so that half-way
    bounce-back walls sit exactly mid-link in channel flow. Conserved
    moments get a zero rate.
    """
    omega = jnp.asarray(omega, dtype=float)
    s_q = 8 * (2 - omega) / (8 - omega)
    zero = jnp.zeros_like(omega)
    return jnp.stack([zero, omega, omega, zero, s_q, zero, s_q, omega, omega], axis=-1)


def _non_equilibrium_moments(f):
    rho, u = D2Q9.get_observables(f)
    m = D2Q9.to_moments(f)
    m_eq = D2Q9.to_moments(D2Q9.equilibrium(rho, u))
    return rho, m, m - m_eq


@dataclass(frozen=True)
class BGKCollision:
    tau: float

    def validate(self):
        if self.tau <= 0.5:
            raise ConfigurationError(f"BGK relaxation time must exceed 0.5, got {self.tau}")

    def initial_viscosity(self, rho):
        return D2Q9.cs2 * (self.tau - 0.5)

    def apply(self, f, nu):
        rho, u = D2Q9.get_observables(f)
        f_eq = D2Q9.equilibrium(rho, u)
        f_post = f + (f_eq - f) / self.tau
        return f_post, nu, jnp.int32(0)


@dataclass(frozen=True)
class MRTCollision:
    nu: float

    def validate(self):
        if self.nu <= 0:
            raise ConfigurationError(f"viscosity must be positive, got {self.nu}")

    def initial_viscosity(self, rho):
        return self.nu

    def apply(self, f, nu):
        _, m, m_neq = _non_equilibrium_moments(f)
        rates = vikhansky_relaxation_rates(omega_from_viscosity(self.nu))
        return D2Q9.from_moments(m - rates * m_neq), nu, jnp.int32(0)


@dataclass(frozen=True)
class MRTBinghamCollision:
    rheology: RheologyParameters

    def validate(self):
        self.rheology.validate()

    def initial_viscosity(self, rho):
        return self.rheology.mu_p / rho

    @staticmethod
    def relaxation_rates(nu):
        return vikhansky_relaxation_rates(omega_from_viscosity(nu))

    def apply(self, f, nu):
        rho, m, m_neq = _non_equilibrium_moments(f)
        result = solve_viscosity(m_neq, rho, nu, self.rheology, self.relaxation_rates)
        rates = self.relaxation_rates(result.nu)
        return D2Q9.from_moments(m - rates * m_neq), result.nu, result.unconverged
