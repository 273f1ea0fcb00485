# Fluid Fumble (Python + Pygame)
# Controls:
# - Hold left mouse: add dye at the centre, pushed towards the cursor
# - C = clear, Esc = quit

import argparse
import logging

import pygame

from .params import (
    DEMO_DIFF,
    DEMO_DT,
    DEMO_SCALE,
    DEMO_SIZE,
    DEMO_VISC,
    DENSITY_ADD,
    DENSITY_RADIUS,
    VELOCITY_MULTIPLY,
    VELOCITY_RADIUS,
)
from .render import gray_scale, grayscale_rgb
from .solver import Fluid

logger = logging.getLogger(__name__)

FPS = 60
HELP_TEXT = ("click to add dye and velocity", "c to clear, esc to exit")
HELP_COLOR = (196, 196, 196)
FONT_SIZE = 24


def grid_from_screen(pos, scale):
    """Pixel position to 1-based grid coordinates."""
    x, y = pos
    return x // scale + 1, y // scale + 1


def velocity_towards(pos, scale, mid):
    """Velocity pointing from the grid centre to the cursor."""
    gx, gy = grid_from_screen(pos, scale)
    return (gx - mid) * VELOCITY_MULTIPLY, (gy - mid) * VELOCITY_MULTIPLY


class App:
    def __init__(self, size=DEMO_SIZE, scale=DEMO_SCALE, visc=DEMO_VISC, diff=DEMO_DIFF, dt=DEMO_DT):
        # validated before any window is opened
        self.fluid = Fluid(size, visc, diff, dt)

        pygame.init()
        pygame.display.set_caption("Fluid Fumble")
        window = size * scale
        self.screen = pygame.display.set_mode((window, window))
        self.clock = pygame.time.Clock()
        self.font = pygame.font.Font(None, FONT_SIZE)

        self.size = size
        self.mid = size // 2
        self.scale = scale

        # UI state
        self.running = True
        self.help = True
        self.button = False
        self.gs = 0.0

    def handle_input(self):
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self.running = False
                elif event.key == pygame.K_c:
                    self.fluid.clear()
            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                self.button = True
                self.help = False
            elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
                self.button = False

    def update(self):
        if self.button:
            self.fluid.add_density(self.mid, self.mid, DENSITY_RADIUS, DENSITY_ADD)
            u, v = velocity_towards(pygame.mouse.get_pos(), self.scale, self.mid)
            self.fluid.add_velocity(self.mid, self.mid, VELOCITY_RADIUS, u, v)

        self.fluid.step()

        # remove the floor and rescale, for contrast on screen
        self.fluid.level(self.fluid.min())
        self.gs = gray_scale(self.fluid)

    # ---- Rendering ----
    def render(self):
        self.screen.fill((0, 0, 0))
        if self.help:
            y = 100
            for line in HELP_TEXT:
                surf = self.font.render(line, True, HELP_COLOR)
                self.screen.blit(surf, (80, y))
                y += FONT_SIZE
        else:
            surf = pygame.surfarray.make_surface(grayscale_rgb(self.fluid, self.gs))
            surf = pygame.transform.scale(surf, self.screen.get_size())
            self.screen.blit(surf, (0, 0))
        pygame.display.flip()

    def run(self):
        while self.running:
            self.clock.tick(FPS)
            self.handle_input()
            self.update()
            self.render()
        logger.info("demo closed after %d steps", self.fluid.steps)
        pygame.quit()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Interactive stable fluids demo")
    parser.add_argument("--size", type=int, default=DEMO_SIZE, help="grid width and height in cells")
    parser.add_argument("--scale", type=int, default=DEMO_SCALE, help="pixels per cell")
    parser.add_argument("--visc", type=float, default=DEMO_VISC, help="viscosity")
    parser.add_argument("--diff", type=float, default=DEMO_DIFF, help="dye diffusivity")
    parser.add_argument("--dt", type=float, default=DEMO_DT, help="time per step")
    parser.add_argument("-v", "--verbose", action="store_true", help="log every step")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="[%(levelname)s] %(name)s: %(message)s")
    try:
        app = App(args.size, args.scale, args.visc, args.diff, args.dt)
    except ValueError as exc:
        raise SystemExit(f"[ERROR] {exc}")
    except pygame.error as exc:
        raise SystemExit(f"[ERROR] could not open a window: {exc}")
    app.run()


if __name__ == "__main__":
    main()
