"""
Bingham-plastic lattice-Boltzmann solver.

Importing the package switches JAX to double precision for the whole
process (``jax_enable_x64``); the rheology tolerances sit below single
precision resolution.
"""
import jax

jax.config.update("jax_enable_x64", True)

from bingham_lbm.boundaries import BounceBack, BoundaryBinding, ObstacleMask, PressureBoundary  # noqa: E402
from bingham_lbm.callbacks import Callback, extract_velocity_profile, print_step_callback, write_profile  # noqa: E402
from bingham_lbm.cases import poiseuille_bingham_case  # noqa: E402
from bingham_lbm.collision import BGKCollision, MRTBinghamCollision, MRTCollision  # noqa: E402
from bingham_lbm.config import CaseConfig  # noqa: E402
from bingham_lbm.errors import (  # noqa: E402
    ConfigurationError, LBMError, NumericalInstability, OutOfBounds, RheologyNonConvergence)
from bingham_lbm.lattice import D2Q9, Lattice, MomentSet  # noqa: E402
from bingham_lbm.rheology import RheologyParameters  # noqa: E402
from bingham_lbm.simulation import RunState, Simulation  # noqa: E402
