import abc

import numpy as np


# ---------------------------
# Storage interface
# ---------------------------

class Grid(abc.ABC):
    """
    Square scalar field of dim x dim cells.

    Reads outside [0, dim) on either axis return 0.0 and writes there are
    dropped, so brushes may hang off the edge of the grid.
    """

    def __init__(self, dim: int):
        self.dim = dim

    def in_bounds(self, i, j):
        return 0 <= i < self.dim and 0 <= j < self.dim

    @abc.abstractmethod
    def get(self, i, j) -> float:
        ...

    @abc.abstractmethod
    def set(self, i, j, value: float) -> None:
        ...

    @abc.abstractmethod
    def swap(self, other: "Grid") -> None:
        """Exchange backing storage with `other` without copying cells."""

    @property
    @abc.abstractmethod
    def cells(self) -> np.ndarray:
        """Writable (dim, dim) view indexed [i, j]."""

    def fill(self, value=0.0):
        self.cells.fill(value)

    def __repr__(self):
        return f"{type(self).__name__}(dim={self.dim})"


# ---------------------------
# Flat contiguous buffer
# ---------------------------

class ArrayGrid(Grid):
    """
    One flat float64 buffer, cell (i, j) at i + dim*j.

    `cells` reshapes the same buffer in Fortran order, so the solver can use
    slice arithmetic while get/set keep the linear addressing.
    """

    def __init__(self, dim: int):
        super().__init__(dim)
        self._data = np.zeros(dim * dim, dtype=np.float64)

    def get(self, i, j):
        if not self.in_bounds(i, j):
            return 0.0
        return float(self._data[i + self.dim * j])

    def set(self, i, j, value):
        if not self.in_bounds(i, j):
            return
        self._data[i + self.dim * j] = value

    def swap(self, other):
        if not isinstance(other, ArrayGrid):
            raise TypeError(f"cannot swap ArrayGrid with {type(other).__name__}")
        if other.dim != self.dim:
            raise ValueError(f"cannot swap grids of differing dimensions ({self.dim} vs {other.dim})")
        self._data, other._data = other._data, self._data

    @property
    def cells(self):
        return self._data.reshape((self.dim, self.dim), order="F")

    @property
    def buffer(self):
        return self._data


def array_grid(dim):
    """Default grid factory."""
    return ArrayGrid(dim)
