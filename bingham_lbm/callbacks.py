"""Step callbacks and post-simulation profile output."""
import logging
import os
from dataclasses import dataclass
from typing import Callable

import numpy as np

from bingham_lbm.errors import ConfigurationError, OutOfBounds

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Callback:
    """``action(step, lattice)`` invoked after every ``interval``-th step."""
    interval: int
    action: Callable

    def validate(self):
        if self.interval < 1:
            raise ConfigurationError(f"callback interval must be at least 1, got {self.interval}")

    def is_due(self, step):
        return step % self.interval == 0

    def __call__(self, step, lattice):
        self.action(step, lattice)


def print_step_callback(interval):
    def action(step, lattice):
        print(f"step {step}")
    return Callback(interval, action)


def extract_velocity_profile(lattice, i, dx=1.0, dt=1.0):
    """Rows of ``(y, ux, uy)`` along column ``i``, in physical units."""
    if not 0 <= i < lattice.ni:
        raise OutOfBounds((i, 0), lattice.ni, lattice.nj)
    _, u = lattice.observables()
    # nodes sit half a cell from the half-way walls
    y = (np.arange(lattice.nj) + 0.5) * dx
    return np.column_stack([y, u[:, i, 0] * dx / dt, u[:, i, 1] * dx / dt])


def write_profile(datadir, profile, fname="ubar_profile.dsv", delimiter=","):
    os.makedirs(datadir, exist_ok=True)
    path = os.path.join(datadir, fname)
    np.savetxt(path, profile, delimiter=delimiter)
    logger.info("Wrote %d profile rows to %s", len(profile), path)
    return path
