import enum
import logging
import warnings

import numpy as np
import jax
import jax.numpy as jnp

from bingham_lbm.boundaries import PressureBoundary
from bingham_lbm.errors import LBMError, NumericalInstability, RheologyNonConvergence
from bingham_lbm.lattice import D2Q9, Lattice

logger = logging.getLogger(__name__)


class RunState(enum.Enum):
    INITIALIZED = "initialized"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"


class Simulation:
    """
    Time-step driver for a ``CaseConfig``.

    Each step collides every cell into a separate post-collision buffer,
    streams that buffer and then applies the boundary rules in binding
    order. Steps run on device in chunks; callbacks, the abort flag and the
    rheology warning counter are handled between chunks.
    """

    def __init__(self, config):
        config.validate()
        self.config = config
        self.collision = config.collision_rule
        self.lattice = Lattice(config.ni, config.nj)
        self.abort_requested = False
        self.initialize()

    def initialize(self, ux0=0.0, uy0=0.0):
        rho = self._initial_density()
        self.lattice.initialize(rho, ux0, uy0, nu=self.collision.initial_viscosity(rho))
        self.step = 0
        self.unconverged_count = 0
        self.abort_requested = False
        self.step_func = self._build_step_function()
        self._single_step = jax.jit(self.step_func)
        self._run_steps = self._build_run_function()
        self.state = RunState.INITIALIZED
        self._update_observables()
        logger.info("Initialized %dx%d lattice with %s", self.config.ni, self.config.nj,
                    type(self.collision).__name__)

    def _initial_density(self):
        # linear density ramp between pressure-bound west and east edges
        rho = {binding.edge: binding.rule.rho for binding in self.config.boundaries
               if isinstance(binding.rule, PressureBoundary)}
        if "west" in rho and "east" in rho:
            ramp = np.linspace(rho["west"], rho["east"], self.config.ni)
            return np.broadcast_to(ramp, self.lattice.shape)
        return self.config.rhoo

    def _build_step_function(self):
        collision = self.collision
        boundaries = tuple(self.config.boundaries)
        obstacle = self.config.obstacle

        def step_func(f, nu):
            f_post, nu, n_unconverged = collision.apply(f, nu)
            if obstacle is not None:
                f_post = obstacle.apply(f, f_post)
            f = D2Q9.flow(f_post)
            for binding in boundaries:
                f = binding.apply(f, f_post)
            return f, f_post, nu, n_unconverged
        return step_func

    def _build_run_function(self):
        step_func = self.step_func

        @jax.jit
        def run_steps(n_steps, f, f_post, nu):
            def cond(carry):
                i, _, _, _, _, failed = carry
                return (i < n_steps) & ~failed

            def body(carry):
                i, f, f_post, nu, unconverged, _ = carry
                f_new, f_post_new, nu_new, n_unconverged = step_func(f, nu)
                ok = jnp.all(jnp.isfinite(f_new)) & jnp.all(jnp.isfinite(nu_new))
                # a failing step leaves the last valid state in place
                return (jnp.where(ok, i + 1, i),
                        jnp.where(ok, f_new, f),
                        jnp.where(ok, f_post_new, f_post),
                        jnp.where(ok, nu_new, nu),
                        unconverged + jnp.where(ok, n_unconverged, 0),
                        ~ok)

            init = (jnp.int32(0), f, f_post, nu, jnp.int32(0), jnp.bool_(False))
            return jax.lax.while_loop(cond, body, init)
        return run_steps

    def request_abort(self):
        self.abort_requested = True

    def _next_stop(self, target):
        stops = [target, self.step + self.config.check_interval]
        for callback in self.config.callbacks:
            stops.append((self.step // callback.interval + 1) * callback.interval)
        return min(stops)

    def run(self, n_steps=None):
        """Runs ``n_steps`` more steps, or up to ``config.nsteps`` when omitted."""
        if self.state is RunState.ABORTED:
            raise LBMError("cannot continue an aborted run, call initialize() first")
        if self.state is RunState.COMPLETED:
            return self.lattice
        target = self.config.nsteps if n_steps is None else self.step + n_steps

        while self.step < target:
            if self.abort_requested:
                self.state = RunState.ABORTED
                logger.warning("Run aborted on request after %d steps", self.step)
                break
            self.state = RunState.RUNNING
            stop = self._next_stop(target)
            lat = self.lattice
            done, f, f_post, nu, unconverged, failed = self._run_steps(
                jnp.int32(stop - self.step), lat.f, lat.f_post, lat.nu)
            lat.update(f, f_post, nu)
            self.step += int(done)
            if int(unconverged) > 0:
                self.unconverged_count += int(unconverged)
                logger.debug("%d unconverged rheology cell updates up to step %d", int(unconverged), self.step)
            if bool(failed):
                self._fail(self.step + 1)

            for callback in self.config.callbacks:
                if callback.is_due(self.step):
                    callback(self.step, self.lattice)

        if self.state in (RunState.INITIALIZED, RunState.RUNNING) and self.step >= self.config.nsteps:
            self.state = RunState.COMPLETED
            logger.info("Completed %d steps", self.step)
            if self.unconverged_count:
                warnings.warn(f"rheology iteration did not converge in {self.unconverged_count} cell updates",
                              RheologyNonConvergence)
        self._update_observables()
        return self.lattice

    def _fail(self, step):
        lat = self.lattice
        f, _, nu, _ = self._single_step(lat.f, lat.nu)
        bad = ~np.all(np.isfinite(np.asarray(f)), axis=-1) | ~np.isfinite(np.asarray(nu))
        j, i = np.argwhere(bad)[0]
        self.state = RunState.ABORTED
        self._update_observables()
        logger.error("Numerical instability at step %d in cell (%d, %d)", step, i, j)
        raise NumericalInstability(step, (int(i), int(j)))

    def _update_observables(self):
        rho, u = self.lattice.observables()
        self.vorticity = np.asarray(D2Q9.calculate_vorticity(u))
        self.rho = rho
        self.u = u
        self.nu = self.lattice.nu.copy()

        if self.config.obstacle is not None:
            mask = self.config.obstacle.mask
            self.rho = np.where(mask, np.nan, self.rho)
            self.vorticity = np.where(mask, np.nan, self.vorticity)
            self.u = np.where(mask[..., None], np.nan, self.u)
            self.nu = np.where(mask, np.nan, self.nu)
