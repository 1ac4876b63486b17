"""
Case configuration.

A case is a typed ``CaseConfig``: grid, reference state, one collision
rule and exactly one boundary rule per lattice edge. Solver parameters are
in lattice units; ``dx`` and ``dt`` only scale extracted output.
"""
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from bingham_lbm.boundaries import EDGES, BoundaryBinding, ObstacleMask
from bingham_lbm.callbacks import Callback
from bingham_lbm.collision import MRTCollision
from bingham_lbm.errors import ConfigurationError


@dataclass(frozen=True)
class CaseConfig:
    ni: int
    nj: int
    boundaries: Sequence[BoundaryBinding]
    collision: Any = None
    nsteps: int = 0
    dx: float = 1.0
    dt: float = 1.0
    rhoo: float = 1.0
    nu: float = 1.0 / 6.0
    callbacks: Sequence[Callback] = field(default_factory=tuple)
    obstacle: Optional[ObstacleMask] = None
    check_interval: int = 500

    @property
    def collision_rule(self):
        # without an explicit rule the fluid is Newtonian with viscosity nu
        return self.collision if self.collision is not None else MRTCollision(self.nu)

    def validate(self):
        if self.ni < 3 or self.nj < 3:
            raise ConfigurationError(f"grid must be at least 3x3, got {self.ni}x{self.nj}")
        if self.dx <= 0 or self.dt <= 0:
            raise ConfigurationError("dx and dt must be positive")
        if self.rhoo <= 0:
            raise ConfigurationError(f"reference density must be positive, got {self.rhoo}")
        if self.nsteps < 0:
            raise ConfigurationError(f"nsteps must be non-negative, got {self.nsteps}")
        if self.check_interval < 1:
            raise ConfigurationError(f"check_interval must be at least 1, got {self.check_interval}")

        self.collision_rule.validate()

        bound = [binding.edge for binding in self.boundaries]
        for edge in EDGES:
            if bound.count(edge) == 0:
                raise ConfigurationError(f"no boundary rule bound to the {edge} edge")
            if bound.count(edge) > 1:
                raise ConfigurationError(f"more than one boundary rule bound to the {edge} edge")
        for binding in self.boundaries:
            binding.validate()

        for callback in self.callbacks:
            callback.validate()

        if self.obstacle is not None and self.obstacle.mask.shape != (self.nj, self.ni):
            raise ConfigurationError(
                f"obstacle mask shape {self.obstacle.mask.shape} does not match grid {(self.nj, self.ni)}")
