import logging

from .fields import FieldSet
from .grid import ArrayGrid, Grid, array_grid
from .params import Params, RELAX_ITERS
from .solver import Fluid

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = ["ArrayGrid", "FieldSet", "Fluid", "Grid", "Params", "RELAX_ITERS", "array_grid"]
