import math
import numbers
from dataclasses import dataclass


# ---------------------------
# Solver constants
# ---------------------------

RELAX_ITERS = 20          # Gauss-Seidel sweeps per diffuse / project
LEVEL_THRESHOLD = 1e-4    # densities below this are floored to 0 by level()
DIVERGENCE_SCALE = -0.05  # kept as observed; textbook value is -0.5
MIN_SEED = math.inf

# ---------------------------
# Demo defaults
# ---------------------------

DEMO_SIZE = 80
DEMO_SCALE = 8
DEMO_VISC = 0.01
DEMO_DIFF = 0.0001
DEMO_DT = 0.001

DENSITY_ADD = 9.0
DENSITY_RADIUS = 5
VELOCITY_MULTIPLY = 1000.0
VELOCITY_RADIUS = 1


@dataclass(frozen=True)
class Params:
    visc: float = DEMO_VISC   # viscosity of the fluid
    diff: float = DEMO_DIFF   # diffusivity of dye in the fluid
    dt: float = DEMO_DT       # time per step
    iters: int = RELAX_ITERS

    def validate(self):
        for name in ("visc", "diff", "dt"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise ValueError(f"{name} must be a real number, got {value!r}")
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"{name} must be a finite value >= 0, got {value!r}")
        iters = self.iters
        if isinstance(iters, bool) or not isinstance(iters, numbers.Integral) or iters < 1:
            raise ValueError(f"iters must be an int >= 1, got {iters!r}")
        return self
