"""Exceptions and warnings raised by the solver."""


class LBMError(Exception):
    pass


class OutOfBounds(LBMError, IndexError):
    def __init__(self, cell, ni, nj):
        self.cell = cell
        super().__init__(f"cell {cell} outside of lattice [0, {ni}) x [0, {nj})")


class ConfigurationError(LBMError, ValueError):
    pass


class NumericalInstability(LBMError, FloatingPointError):
    """Non-finite distributions or viscosities appeared during a step.

    ``step`` is the 1-based index of the failing step and ``cell`` the
    ``(i, j)`` address of the first offending cell.
    """

    def __init__(self, step, cell):
        self.step = step
        self.cell = cell
        super().__init__(f"non-finite values at step {step} in cell {cell}")


class RheologyNonConvergence(RuntimeWarning):
    pass
