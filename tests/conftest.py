import pytest

from bingham_lbm import BounceBack, BoundaryBinding, CaseConfig
from bingham_lbm.cases import channel_boundaries


@pytest.fixture
def closed_box():
    def build(collision, ni=10, nj=7, nsteps=100, **kwargs):
        walls = tuple(BoundaryBinding(edge, BounceBack()) for edge in ("north", "south", "west", "east"))
        return CaseConfig(ni=ni, nj=nj, nsteps=nsteps, collision=collision, boundaries=walls, **kwargs)
    return build


@pytest.fixture
def channel():
    def build(collision, ni=30, nj=11, nsteps=4000, rho_in=1.01, rho_out=0.99, **kwargs):
        return CaseConfig(ni=ni, nj=nj, nsteps=nsteps, collision=collision,
                          boundaries=channel_boundaries(rho_in, rho_out), **kwargs)
    return build
