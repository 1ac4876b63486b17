from typing import NamedTuple

import numpy as np
import jax.numpy as jnp

from bingham_lbm.errors import OutOfBounds


def _moment_matrix(c_vecs):
    # Lallemand & Luo basis: rho, e, eps, jx, qx, jy, qy, pxx, pxy
    cx = c_vecs[:, 0].astype(float)
    cy = c_vecs[:, 1].astype(float)
    c2 = cx ** 2 + cy ** 2
    return np.array([
        np.ones_like(c2),
        3 * c2 - 4,
        4 - 10.5 * c2 + 4.5 * c2 ** 2,
        cx,
        (3 * c2 - 5) * cx,
        cy,
        (3 * c2 - 5) * cy,
        cx ** 2 - cy ** 2,
        cx * cy,
    ])


class D2Q9:
    n_directions = 9
    c_vecs = np.array([[0, 0], [0, 1], [0, -1], [1, 0], [-1, 0], [1, 1], [1, -1], [-1, 1], [-1, -1]], dtype=int)
    weights = np.array([16, 4, 4, 4, 4, 1, 1, 1, 1], dtype=float) / 36
    opposite = np.array([0, 2, 1, 4, 3, 8, 7, 6, 5], dtype=int)
    cs2 = 1.0 / 3.0

    M = _moment_matrix(c_vecs)
    M_inv = np.linalg.inv(M)

    # indices into the moment vector
    RHO, E, EPS, JX, QX, JY, QY, PXX, PXY = range(9)

    @classmethod
    def flip_flow_direction(cls, f):
        return f[..., cls.opposite]

    @classmethod
    def flow(cls, f):
        f_new = []
        for i, (cx, cy) in enumerate(cls.c_vecs):
            f_new.append(jnp.roll(jnp.roll(f[..., i], cy, axis=0), cx, axis=1))
        return jnp.stack(f_new, axis=-1)

    @classmethod
    def get_observables(cls, f):
        rho = jnp.sum(f, axis=-1)
        u = (f @ cls.c_vecs.astype(float)) / rho[..., None]
        return rho, u

    @classmethod
    def equilibrium(cls, rho, u):
        c_u = u @ cls.c_vecs.T.astype(float)
        u_u = jnp.sum(u ** 2, axis=-1, keepdims=True)
        return rho[..., None] * cls.weights * (1 + 3 * c_u + 4.5 * c_u ** 2 - 1.5 * u_u)

    @classmethod
    def to_moments(cls, f):
        return f @ cls.M.T

    @classmethod
    def from_moments(cls, m):
        return m @ cls.M_inv.T

    @staticmethod
    def calculate_vorticity(u):
        return jnp.gradient(u[..., 1], axis=1) - jnp.gradient(u[..., 0], axis=0)


class MomentSet(NamedTuple):
    rho: float
    ux: float
    uy: float
    moments: np.ndarray


class Lattice:
    """
    Distribution store of an ``ni x nj`` D2Q9 lattice.

    Arrays are laid out ``[nj, ni, 9]`` so that ``f[j, i]`` holds the
    populations of cell ``(i, j)``. ``f`` is the current (post-boundary)
    state, ``f_post`` the post-collision buffer of the last step and
    ``nu`` the per-cell effective kinematic viscosity.
    """

    def __init__(self, ni, nj):
        self.ni = ni
        self.nj = nj
        self.f = np.zeros([nj, ni, D2Q9.n_directions])
        self.f_post = np.zeros_like(self.f)
        self.nu = np.zeros([nj, ni])

    @property
    def shape(self):
        return self.nj, self.ni

    def initialize(self, rho, ux=0.0, uy=0.0, nu=0.0):
        rho_field = np.array(np.broadcast_to(rho, self.shape), dtype=float)
        u = np.broadcast_to(np.array([ux, uy], dtype=float), self.shape + (2,))
        f_eq = np.array(D2Q9.equilibrium(rho_field, u))
        self.update(f_eq, f_eq, np.array(np.broadcast_to(nu, self.shape), dtype=float))

    def update(self, f, f_post, nu):
        # copies also turn read-only device buffers into writable host arrays
        self.f = np.array(f, dtype=float)
        self.f_post = np.array(f_post, dtype=float)
        self.nu = np.array(nu, dtype=float)

    def _check_cell(self, cell):
        i, j = cell
        if not (0 <= i < self.ni and 0 <= j < self.nj):
            raise OutOfBounds(cell, self.ni, self.nj)
        return int(i), int(j)

    def get_distributions(self, cell):
        i, j = self._check_cell(cell)
        return self.f[j, i].copy()

    def set_distributions(self, cell, values):
        i, j = self._check_cell(cell)
        values = np.asarray(values, dtype=float)
        if values.shape != (D2Q9.n_directions,):
            raise ValueError(f"expected {D2Q9.n_directions} distribution values, got shape {values.shape}")
        self.f[j, i] = values

    def compute_moments(self, cell):
        i, j = self._check_cell(cell)
        f = self.f[j, i]
        rho = float(np.sum(f))
        ux, uy = (f @ D2Q9.c_vecs) / rho
        return MomentSet(rho, float(ux), float(uy), D2Q9.M @ f)

    def observables(self):
        rho, u = D2Q9.get_observables(self.f)
        return np.asarray(rho), np.asarray(u)

    def total_mass(self, interior=False):
        rho = np.sum(self.f, axis=-1)
        if interior:
            rho = rho[1:-1, 1:-1]
        return float(np.sum(rho))
