"""
Headless run of the demo scene, saved as a PNG.

Dye and velocity are injected at the grid centre for the first
`inject_steps` steps, then the fluid is left to evolve for the rest.
"""
import argparse
import logging
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

from .params import (
    DEMO_DIFF,
    DEMO_DT,
    DEMO_SIZE,
    DEMO_VISC,
    DENSITY_ADD,
    DENSITY_RADIUS,
    VELOCITY_MULTIPLY,
    VELOCITY_RADIUS,
)
from .solver import Fluid

logger = logging.getLogger(__name__)


def run_scene(fluid, steps, inject_steps, push=(20.0, 0.0), level=True):
    """
    Step `fluid` `steps` times, injecting for the first `inject_steps`.

    `push` is the cursor offset from the centre in cells, scaled the same way
    the interactive demo scales it.
    """
    mid = fluid.size // 2
    u = push[0] * VELOCITY_MULTIPLY
    v = push[1] * VELOCITY_MULTIPLY
    for k in range(steps):
        if k < inject_steps:
            fluid.add_density(mid, mid, DENSITY_RADIUS, DENSITY_ADD)
            fluid.add_velocity(mid, mid, VELOCITY_RADIUS, u, v)
        fluid.step()
        if level:
            fluid.level(fluid.min())
    return fluid


def save_snapshot(fluid, filename="fluid.png", dpi=150, quiver=False, every=None):
    """
    Save the interior density (and optionally the velocity field) to `filename`.

    Args:
        fluid:    Fluid to draw
        filename: output image path
        dpi:      image resolution
        quiver:   overlay velocity arrows
        every:    arrow spacing in cells; defaults to about 24 arrows a side
    """
    n = fluid.size
    density = fluid.density_field()

    fig, ax = plt.subplots(figsize=(6, 6), dpi=dpi)
    # fields are indexed [x, y] with y growing downwards, as on screen
    im = ax.imshow(density.T, origin="upper", cmap="gray", extent=[0.5, n + 0.5, n + 0.5, 0.5],
                   vmin=0.0, vmax=max(fluid.max(), 1e-12), interpolation="bilinear")
    fig.colorbar(im, ax=ax, fraction=0.046, pad=0.04, label="density")

    if quiver:
        step = every or max(1, n // 24)
        u, v = fluid.velocity_field()
        idx = np.arange(0, n, step)
        X, Y = np.meshgrid(idx + 1, idx + 1, indexing="ij")
        ax.quiver(X, Y, u[np.ix_(idx, idx)], v[np.ix_(idx, idx)],
                  color="tab:green", angles="xy", pivot="mid")

    ax.set_title(f"Stable fluids, {fluid.steps} steps (N={n})")
    ax.set_aspect("equal")
    ax.set_xticks([])
    ax.set_yticks([])

    path = Path(filename)
    fig.savefig(path, bbox_inches="tight")
    plt.close(fig)
    return path


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Run the stable fluids scene headless and save a PNG")
    parser.add_argument("--size", type=int, default=DEMO_SIZE, help="grid width and height in cells")
    parser.add_argument("--visc", type=float, default=DEMO_VISC, help="viscosity")
    parser.add_argument("--diff", type=float, default=DEMO_DIFF, help="dye diffusivity")
    parser.add_argument("--dt", type=float, default=DEMO_DT, help="time per step")
    parser.add_argument("--steps", type=int, default=300, help="total steps")
    parser.add_argument("--inject-steps", type=int, default=100, help="steps with dye and velocity injection")
    parser.add_argument("--push", type=float, nargs=2, default=(20.0, 0.0), metavar=("DX", "DY"),
                        help="cursor offset from the centre, in cells")
    parser.add_argument("--quiver", action="store_true", help="overlay velocity arrows")
    parser.add_argument("--dpi", type=int, default=150)
    parser.add_argument("-o", "--out", default="fluid.png", help="output PNG")
    parser.add_argument("-v", "--verbose", action="store_true", help="log every step")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="[%(levelname)s] %(name)s: %(message)s")
    try:
        fluid = Fluid(args.size, args.visc, args.diff, args.dt)
    except ValueError as exc:
        raise SystemExit(f"[ERROR] {exc}")

    print(f"[*] Running {args.steps} steps on a {args.size}x{args.size} grid")
    run_scene(fluid, args.steps, args.inject_steps, push=tuple(args.push))
    path = save_snapshot(fluid, args.out, dpi=args.dpi, quiver=args.quiver)
    print(f"[OK] Snapshot written: {path}")


if __name__ == "__main__":
    main()
