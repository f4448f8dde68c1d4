"""Framebuffer to RGB conversion for hosts that display the screen."""

from typing import Tuple

import numpy as np

from chipax.constants import SCREEN_WIDTH, SCREEN_HEIGHT

Color = Tuple[int, int, int]

# name -> (on_color, off_color)
COLOR_SCHEMES = {
    "classic": ((255, 255, 255), (0, 0, 0)),
    "green": ((0, 255, 0), (0, 0, 0)),
    "amber": ((255, 176, 0), (0, 0, 0)),
    "blue": ((0, 255, 255), (0, 0, 64)),
    "retro": ((255, 255, 0), (64, 0, 64)),
}


def frame_to_pixels(frame) -> np.ndarray:
    """Reshape a display into a (height, width) boolean pixel grid.

    Accepts either the emulator display of shape (64, 32) or a flat
    row-major frame of 2048 pixels as returned by the draw query.
    """
    pixels = np.asarray(frame, dtype=np.bool_)
    if pixels.shape == (SCREEN_WIDTH, SCREEN_HEIGHT):
        # Emulator (64 width, 32 height) -> image (32 height, 64 width)
        return pixels.T
    if pixels.shape == (SCREEN_WIDTH * SCREEN_HEIGHT,):
        return pixels.reshape(SCREEN_HEIGHT, SCREEN_WIDTH)
    raise ValueError(f"Unexpected display shape {pixels.shape}")


def chip8_display_to_rgb(
    frame,
    scale: int = 8,
    on_color: Color = (255, 255, 255),
    off_color: Color = (0, 0, 0),
) -> np.ndarray:
    """Convert a CHIP-8 frame to an upscaled RGB image.

    Args:
        frame: Display of shape (64, 32) or flat row-major frame of 2048 pixels
        scale: Integer upscaling factor, each pixel becomes a scale x scale block
        on_color: RGB for lit pixels
        off_color: RGB for dark pixels

    Returns:
        uint8 array of shape (32 * scale, 64 * scale, 3)
    """
    pixels = frame_to_pixels(frame)
    palette = np.array([off_color, on_color], dtype=np.uint8)
    rgb = palette[pixels.astype(np.intp)]
    if scale > 1:
        rgb = rgb.repeat(scale, axis=0).repeat(scale, axis=1)
    return rgb


def create_color_scheme(scheme: str = "classic") -> Tuple[Color, Color]:
    """Look up the (on_color, off_color) pair for a named scheme."""
    try:
        return COLOR_SCHEMES[scheme]
    except KeyError:
        raise ValueError(
            f"Unknown color scheme '{scheme}'. Available: {sorted(COLOR_SCHEMES)}"
        ) from None
