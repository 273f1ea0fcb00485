import numpy as np


def gray_scale(fluid):
    """Multiplier mapping the densest cell to 255 (0 for an empty field)."""
    mx = fluid.max()
    if mx <= 0.0:
        return 0.0
    return 255.0 / mx


def grayscale(fluid, scale=None):
    """
    Interior density as a (N, N) uint8 image indexed [x, y].

    `scale` defaults to gray_scale(fluid), so the densest cell is white.
    """
    if scale is None:
        scale = gray_scale(fluid)
    img = np.clip(fluid.density_field() * scale, 0, 255)
    return img.astype(np.uint8)


def grayscale_rgb(fluid, scale=None):
    img = grayscale(fluid, scale)
    return np.stack([img, img, img], axis=2)
