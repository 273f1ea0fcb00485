"""
2-D stable fluids (Jos Stam, "Real-Time Fluid Dynamics for Games", 2003).

Velocity (u, v) and dye density d live on (N+2) x (N+2) grids; the outer
ring of cells holds boundary values so interior updates can always read one
neighbour in every direction. The kernels below work on (N+2, N+2) ndarray
views indexed [i, j]; `Fluid` binds them to the grids of a `FieldSet`.
"""
import logging
from functools import lru_cache

import numpy as np

from .fields import FieldSet
from .grid import array_grid
from .params import (
    DIVERGENCE_SCALE,
    LEVEL_THRESHOLD,
    MIN_SEED,
    RELAX_ITERS,
    Params,
)

logger = logging.getLogger(__name__)


# ---------------------------
# Kernels
# ---------------------------

@lru_cache(maxsize=None)
def _checkerboard(size):
    """Red and black interior masks for red-black Gauss-Seidel."""
    i, j = np.meshgrid(np.arange(1, size + 1), np.arange(1, size + 1), indexing="ij")
    red = (i + j) % 2 == 0
    black = ~red
    red.flags.writeable = False
    black.flags.writeable = False
    return red, black


@lru_cache(maxsize=None)
def _cell_centres(size):
    i, j = np.meshgrid(np.arange(1, size + 1), np.arange(1, size + 1), indexing="ij")
    i = i.astype(np.float64)
    j = j.astype(np.float64)
    i.flags.writeable = False
    j.flags.writeable = False
    return i, j


def set_bnd(b, x, size):
    """
    Fill the boundary ring of x from its interior neighbours.

    b == 1 negates the i = 0 and i = N+1 edges (u at the side walls),
    b == 2 negates the j = 0 and j = N+1 edges (v at the top/bottom walls),
    anything else copies. Corners average their two ring neighbours.
    """
    n = size
    edge = slice(1, n + 1)

    sign = -1.0 if b == 1 else 1.0
    x[0, edge] = sign * x[1, edge]
    x[n + 1, edge] = sign * x[n, edge]

    sign = -1.0 if b == 2 else 1.0
    x[edge, 0] = sign * x[edge, 1]
    x[edge, n + 1] = sign * x[edge, n]

    x[0, 0] = 0.5 * (x[1, 0] + x[0, 1])
    x[0, n + 1] = 0.5 * (x[1, n + 1] + x[0, n])
    x[n + 1, 0] = 0.5 * (x[n, 0] + x[n + 1, 1])
    x[n + 1, n + 1] = 0.5 * (x[n, n + 1] + x[n + 1, n])


def add_source(x, s, dt, size):
    n = size
    x[1:n + 1, 1:n + 1] += dt * s[1:n + 1, 1:n + 1]


def lin_solve(b, x, x0, a, c, iters, size):
    """
    Relax x = (x0 + a * (sum of 4 neighbours of x)) / c in place.

    Each sweep updates the red cells, then the black cells from the fresh
    red values, then re-applies the boundary.
    """
    n = size
    inner = x[1:n + 1, 1:n + 1]
    src = x0[1:n + 1, 1:n + 1]
    for _ in range(iters):
        for mask in _checkerboard(n):
            total = src + a * (
                x[0:n, 1:n + 1] + x[2:n + 2, 1:n + 1] +
                x[1:n + 1, 0:n] + x[1:n + 1, 2:n + 2]
            )
            np.copyto(inner, total / c, where=mask)
        set_bnd(b, x, n)


def diffuse(b, x, x0, rate, dt, size, iters=RELAX_ITERS):
    a = dt * rate * size * size
    lin_solve(b, x, x0, a, 1 + 4 * a, iters, size)


def advect(b, d, d0, u, v, dt, size):
    """Semi-Lagrangian transport of d0 through (u, v) into d."""
    n = size
    dt0 = dt * n
    I, J = _cell_centres(n)

    # Backtrace, clamped so the stencil stays inside the ring
    x = np.clip(I - dt0 * u[1:n + 1, 1:n + 1], 0.5, n + 0.5)
    y = np.clip(J - dt0 * v[1:n + 1, 1:n + 1], 0.5, n + 0.5)

    i0 = x.astype(np.intp)
    j0 = y.astype(np.intp)
    i1 = i0 + 1
    j1 = j0 + 1

    s1 = x - i0
    s0 = 1.0 - s1
    t1 = y - j0
    t0 = 1.0 - t1

    d[1:n + 1, 1:n + 1] = (
        s0 * (t0 * d0[i0, j0] + t1 * d0[i0, j1]) +
        s1 * (t0 * d0[i1, j0] + t1 * d0[i1, j1])
    )
    set_bnd(b, d, n)


def project(u, v, p, div, size, iters=RELAX_ITERS, scale=DIVERGENCE_SCALE):
    """Subtract the pressure gradient so (u, v) becomes divergence free."""
    n = size
    h = 1.0 / n
    c = slice(1, n + 1)

    div[c, c] = scale * h * (
        u[2:n + 2, c] - u[0:n, c] +
        v[c, 2:n + 2] - v[c, 0:n]
    )
    p[c, c] = 0.0
    set_bnd(0, div, n)
    set_bnd(0, p, n)

    lin_solve(0, p, div, 1.0, 4.0, iters, n)

    u[c, c] -= 0.5 * (p[2:n + 2, c] - p[0:n, c]) / h
    v[c, c] -= 0.5 * (p[c, 2:n + 2] - p[c, 0:n]) / h
    set_bnd(1, u, n)
    set_bnd(2, v, n)


def divergence(u, v, size):
    """Central-difference divergence over the interior, shape (N, N)."""
    n = size
    c = slice(1, n + 1)
    return 0.5 * n * (
        u[2:n + 2, c] - u[0:n, c] +
        v[c, 2:n + 2] - v[c, 0:n]
    )


# ---------------------------
# Fluid
# ---------------------------

class Fluid:
    """
    Dye in an incompressible fluid, advanced one `dt` per `step()`.

    Args:
        size:    interior width and height in cells; the grids are size+2
                 wide to hold the boundary ring
        visc:    viscosity of the fluid
        diff:    diffusivity of the dye
        dt:      time per step
        factory: callable(dim) -> Grid used for all six fields
        iters:   Gauss-Seidel sweeps per diffuse / project
    """

    def __init__(self, size, visc, diff, dt, factory=array_grid, iters=RELAX_ITERS):
        self.params = Params(visc=visc, diff=diff, dt=dt, iters=iters).validate()
        self.fields = FieldSet(size, factory)
        self.size = size
        self.steps = 0
        logger.info("fluid created: size=%d visc=%g diff=%g dt=%g iters=%d",
                    size, visc, diff, dt, iters)

    @classmethod
    def from_params(cls, size, params: Params, factory=array_grid):
        return cls(size, params.visc, params.diff, params.dt, factory=factory, iters=params.iters)

    @property
    def visc(self):
        return self.params.visc

    @property
    def diff(self):
        return self.params.diff

    @property
    def dt(self):
        return self.params.dt

    # ---- Queries ----
    def density(self, i, j):
        return self.fields.d.get(i, j)

    def velocity(self, i, j):
        return self.fields.u.get(i, j), self.fields.v.get(i, j)

    def min(self):
        """Smallest interior density."""
        return float(min(MIN_SEED, self.fields.interior(self.fields.d).min()))

    def max(self):
        """Largest interior density, never below 0."""
        return float(max(0.0, self.fields.interior(self.fields.d).max()))

    def density_field(self):
        return self.fields.interior(self.fields.d).copy()

    def velocity_field(self):
        f = self.fields
        return f.interior(f.u).copy(), f.interior(f.v).copy()

    # ---- Injection ----
    def add_density(self, i, j, radius, amount):
        """Replace the density source with `amount` over a square of cells."""
        d0 = self.fields.d0
        self._zero(d0)
        for l in range(-radius, radius + 1):
            for m in range(-radius, radius + 1):
                d0.set(i + l, j + m, amount)

    def add_velocity(self, i, j, radius, u, v):
        """Replace the velocity sources with (u, v) over a square of cells."""
        u0 = self.fields.u0
        v0 = self.fields.v0
        self._zero(u0)
        self._zero(v0)
        for l in range(-radius, radius + 1):
            for m in range(-radius, radius + 1):
                u0.set(i + l, j + m, u)
                v0.set(i + l, j + m, v)

    # ---- Contrast ----
    def level(self, minimum):
        """
        Subtract 4 * minimum from the interior density for on-screen contrast.

        No-op below LEVEL_THRESHOLD; results under the threshold become 0.
        """
        if minimum < LEVEL_THRESHOLD:
            return
        inner = self.fields.interior(self.fields.d)
        result = inner - 4 * minimum
        result[result < LEVEL_THRESHOLD] = 0.0
        inner[...] = result
        self.set_bnd(0, self.fields.d)

    def clear(self):
        self.fields.clear()

    # ---- Grid-level operations ----
    def set_bnd(self, b, grid):
        set_bnd(b, grid.cells, self.size)

    def add_source(self, dst, src):
        add_source(dst.cells, src.cells, self.dt, self.size)

    def diffuse(self, b, rate, dst, src):
        diffuse(b, dst.cells, src.cells, rate, self.dt, self.size, self.params.iters)

    def advect(self, b, dst, src, u, v):
        advect(b, dst.cells, src.cells, u.cells, v.cells, self.dt, self.size)

    def project(self, u, v, p, div):
        project(u.cells, v.cells, p.cells, div.cells, self.size, self.params.iters)

    def _zero(self, grid):
        self.fields.interior(grid)[...] = 0.0
        self.set_bnd(0, grid)

    # ---- Step ----
    def step(self):
        """
        Advance velocity then density by dt.

        On entry u0, v0, d0 hold the most recent injections; they are used as
        scratch during the step and left zeroed for the next injection. Zeroing
        them keeps leftover scratch from being re-added as a source on the
        following step.
        """
        f = self.fields
        visc = self.params.visc
        diff = self.params.diff

        # velocity: sources, diffuse, project, advect, project
        self.add_source(f.u, f.u0)
        self.add_source(f.v, f.v0)
        f.u.swap(f.u0)
        f.v.swap(f.v0)

        self.diffuse(1, visc, f.u, f.u0)
        self.diffuse(2, visc, f.v, f.v0)

        self.project(f.u, f.v, f.u0, f.v0)
        f.u.swap(f.u0)
        f.v.swap(f.v0)

        self.advect(1, f.u, f.u0, f.u0, f.v0)
        self.advect(2, f.v, f.v0, f.u0, f.v0)
        self.project(f.u, f.v, f.u0, f.v0)

        # density: source, diffuse, advect
        self.add_source(f.d, f.d0)
        f.d.swap(f.d0)

        self.diffuse(0, diff, f.d, f.d0)
        f.d.swap(f.d0)

        self.advect(0, f.d, f.d0, f.u, f.v)

        for grid in f.scratch():
            grid.fill(0.0)

        self.steps += 1
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("step %d: density min=%.4g max=%.4g", self.steps, self.min(), self.max())
