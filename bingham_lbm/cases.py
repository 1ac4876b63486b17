"""Plane Poiseuille verification case and its analytic solutions."""
import numpy as np

from bingham_lbm.boundaries import BounceBack, BoundaryBinding, PressureBoundary
from bingham_lbm.callbacks import print_step_callback
from bingham_lbm.collision import MRTBinghamCollision
from bingham_lbm.config import CaseConfig
from bingham_lbm.lattice import D2Q9
from bingham_lbm.rheology import RheologyParameters


def channel_boundaries(rho_in, rho_out):
    return (
        BoundaryBinding("north", BounceBack()),
        BoundaryBinding("south", BounceBack()),
        BoundaryBinding("west", PressureBoundary(rho_in)),
        BoundaryBinding("east", PressureBoundary(rho_out)),
    )


def poiseuille_bingham_case(tau_y=0.00016, mu_p=0.2, m=1.0e8, max_iters=150, tol=1e-6, gamma_floor=1.0e-11,
                            rho_in=1.1, pgrad=-5.2e-6, length=100, ni=50, nj=21, nsteps=10000, nu=0.2,
                            callbacks=None, check_interval=500):
    """
    Pressure driven Bingham-plastic channel flow.

    The outlet density is fixed once as ``rho_in + pgrad * length``.
    """
    rho_out = rho_in + pgrad * length
    rheology = RheologyParameters(mu_p=mu_p, tau_y=tau_y, m=m, max_iters=max_iters, tol=tol,
                                  gamma_floor=gamma_floor)
    if callbacks is None:
        callbacks = (print_step_callback(25),)
    return CaseConfig(
        ni=ni, nj=nj, dx=1.0, dt=1.0, rhoo=1.0, nu=nu, nsteps=nsteps,
        collision=MRTBinghamCollision(rheology),
        boundaries=channel_boundaries(rho_in, rho_out),
        callbacks=tuple(callbacks),
        check_interval=check_interval,
    )


def driving_pressure_gradient(config):
    """Magnitude of dp/dx between the west and east pressure boundaries."""
    rho = {binding.edge: binding.rule.rho for binding in config.boundaries if hasattr(binding.rule, "rho")}
    return D2Q9.cs2 * (rho["west"] - rho["east"]) / (config.ni - 1)


def poiseuille_profile(nj, pressure_gradient, mu):
    # walls half a cell outside the first and last rows
    y = np.arange(nj) + 0.5
    return pressure_gradient / (2 * mu) * y * (nj - y)


def bingham_poiseuille_profile(nj, pressure_gradient, mu_p, tau_y):
    """Ideal Bingham channel profile with a rigid plug around the centreline."""
    h = nj / 2.0
    s = np.abs(np.arange(nj) + 0.5 - h)
    s0 = tau_y / pressure_gradient if pressure_gradient > 0 else np.inf
    if s0 >= h:
        return np.zeros(nj)
    s = np.maximum(s, s0)
    return pressure_gradient / (2 * mu_p) * (h ** 2 - s ** 2) - tau_y / mu_p * (h - s)
