import numpy as np
import pytest

from stam_fluids.grid import Grid
from stam_fluids.solver import Fluid


class NestedGrid(Grid):
    """Test double: a plain (dim, dim) array addressed directly by [i, j]."""

    def __init__(self, dim):
        super().__init__(dim)
        self._rows = np.zeros((dim, dim))

    def get(self, i, j):
        if not self.in_bounds(i, j):
            return 0.0
        return float(self._rows[i, j])

    def set(self, i, j, value):
        if self.in_bounds(i, j):
            self._rows[i, j] = value

    def swap(self, other):
        if not isinstance(other, NestedGrid):
            raise TypeError("NestedGrid can only swap with NestedGrid")
        if other.dim != self.dim:
            raise ValueError("dimension mismatch")
        self._rows, other._rows = other._rows, self._rows

    @property
    def cells(self):
        return self._rows


@pytest.fixture
def nested_factory():
    return NestedGrid


@pytest.fixture
def fluid():
    # the end-to-end scene: 10x10, visc 0.01, diff 0.0001, dt 0.001
    return Fluid(10, 0.01, 0.0001, 0.001)
