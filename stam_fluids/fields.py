import numbers

from .grid import array_grid


class FieldSet:
    """
    The six grids of a simulation.

    d, u, v are the live fields. d0, u0, v0 collect injected sources between
    steps and are reused as scratch buffers inside a step, so callers must
    not read them.
    """

    def __init__(self, size: int, factory=array_grid):
        if isinstance(size, bool) or not isinstance(size, numbers.Integral) or size < 1:
            raise ValueError(f"resolution must be an int >= 1, got {size!r}")

        self.size = size
        dim = size + 2

        self.d = factory(dim)
        self.d0 = factory(dim)
        self.u = factory(dim)
        self.u0 = factory(dim)
        self.v = factory(dim)
        self.v0 = factory(dim)

        for grid in self.grids():
            if grid.dim != dim:
                raise ValueError(f"factory returned a grid of dim {grid.dim}, expected {dim}")

    def grids(self):
        return (self.d, self.d0, self.u, self.u0, self.v, self.v0)

    def live(self):
        return self.d, self.u, self.v

    def scratch(self):
        return self.d0, self.u0, self.v0

    def interior(self, grid):
        n = self.size
        return grid.cells[1:n + 1, 1:n + 1]

    def clear(self):
        for grid in self.grids():
            grid.fill(0.0)
