"""
Gradient lookup tables and pixel compositing.

This module builds the fixed-size color lookup table from the gradient
control colors and turns an iteration count into a final RGBA pixel.
"""

import numpy as np
from numba import njit
from typing import List, Optional, Sequence, Tuple, Union
from dataclasses import dataclass
import logging

from ..core.parameters import RGB, MAX_GRADIENT_STOPS

logger = logging.getLogger(__name__)

LUT_SIZE = 1024

# Iteration counts are spread over the table this many slots apart, which
# gives the characteristic repeating bands.
LUT_BAND_MULTIPLIER = 10


@dataclass(frozen=True)
class ColorRGB:
    """8-bit RGB color representation."""
    r: int
    g: int
    b: int

    def __post_init__(self):
        """Validate RGB values."""
        for component in (self.r, self.g, self.b):
            if not 0 <= component <= 255:
                raise ValueError("RGB components must be between 0 and 255")

    def to_tuple(self) -> RGB:
        """Convert to RGB tuple."""
        return (self.r, self.g, self.b)

    def to_hex(self) -> str:
        return '#%02X%02X%02X' % self.to_tuple()

    @classmethod
    def from_hex(cls, value: str) -> 'ColorRGB':
        return cls(*parse_hex_color(value))


def parse_hex_color(value: str, strict: bool = True) -> RGB:
    """
    Parse a ``#RRGGBB`` (or ``RRGGBB``) color string.

    Args:
        value: Color string
        strict: Raise ValueError on malformed input; otherwise return black

    Returns:
        (r, g, b) tuple of ints
    """
    text = str(value).strip().lstrip('#')
    try:
        if len(text) != 6:
            raise ValueError
        packed = int(text, 16)
    except ValueError:
        if strict:
            raise ValueError(f"Invalid hex color: {value!r}") from None
        return (0, 0, 0)
    return ((packed >> 16) & 0xFF, (packed >> 8) & 0xFF, packed & 0xFF)


def colors_from_flat(colors_flat: Union[bytes, bytearray, Sequence[int]]) -> List[RGB]:
    """
    Unpack up to five RGB triples from a flat byte sequence.

    An incomplete trailing triple is dropped, so short input simply yields
    fewer gradient stops.
    """
    values = [int(v) & 0xFF for v in list(colors_flat)[:MAX_GRADIENT_STOPS * 3]]
    return [tuple(values[i:i + 3]) for i in range(0, len(values) - 2, 3)]


def flatten_colors(colors: Sequence[RGB]) -> bytes:
    """Pack RGB triples into the flat byte layout accepted by ``render``."""
    return bytes(channel & 0xFF for color in colors[:MAX_GRADIENT_STOPS] for channel in color)


def build_gradient_lut(colors: Sequence[RGB], steps: int = LUT_SIZE) -> np.ndarray:
    """
    Build the gradient lookup table.

    The table is split into one equal-width segment per consecutive color
    pair; the last segment absorbs the rounding remainder. Channels are
    interpolated linearly and truncated to bytes.

    Args:
        colors: Control colors, in order
        steps: Table length

    Returns:
        uint8 array of shape (steps, 3); all black when fewer than 2 colors
    """
    lut = np.zeros((steps, 3), dtype=np.uint8)
    if len(colors) < 2:
        return lut

    stops = np.asarray(colors, dtype=np.float64)
    n_segments = len(colors) - 1
    segment_size = steps // n_segments

    for i in range(n_segments):
        start = i * segment_size
        end = (i + 1) * segment_size if i < n_segments - 1 else steps
        length = end - start
        if length <= 0:
            continue

        if length > 1:
            t = np.arange(length, dtype=np.float64) / (length - 1)
        else:
            t = np.zeros(1, dtype=np.float64)
        t = t[:, np.newaxis]

        lut[start:end] = (stops[i] + t * (stops[i + 1] - stops[i])).astype(np.uint8)

    return lut


class Palette:
    """Gradient control colors and their lookup table."""

    def __init__(self, colors: Sequence[Union[ColorRGB, Sequence[int]]], name: str = "Custom"):
        """
        Initialize color palette.

        Args:
            colors: Up to five control colors; extra colors are ignored
            name: Human-readable name for the palette
        """
        self.name = name
        self.colors: List[RGB] = []

        for color in list(colors)[:MAX_GRADIENT_STOPS]:
            if isinstance(color, ColorRGB):
                self.colors.append(color.to_tuple())
            elif isinstance(color, str):
                self.colors.append(parse_hex_color(color))
            elif isinstance(color, (tuple, list)) and len(color) == 3:
                self.colors.append(ColorRGB(*(int(c) for c in color)).to_tuple())
            else:
                raise ValueError(f"Invalid color format: {color}")

        if len(self.colors) < 2:
            logger.debug(f"Palette '{name}' has {len(self.colors)} stop(s); lookup table will be black")

    def build_lut(self, steps: int = LUT_SIZE) -> np.ndarray:
        return build_gradient_lut(self.colors, steps)

    def to_flat(self) -> bytes:
        return flatten_colors(self.colors)

    def to_hex(self) -> List[str]:
        return [ColorRGB(*color).to_hex() for color in self.colors]

    @classmethod
    def from_flat(cls, colors_flat: Union[bytes, Sequence[int]], name: str = "Custom") -> 'Palette':
        return cls(colors_from_flat(colors_flat), name)

    @classmethod
    def from_matplotlib(cls, cmap_name: str, n_stops: int = MAX_GRADIENT_STOPS) -> 'Palette':
        """Sample a matplotlib colormap into gradient stops."""
        import matplotlib

        cmap = matplotlib.colormaps[cmap_name]
        t_values = np.linspace(0, 1, min(n_stops, MAX_GRADIENT_STOPS))
        colors = []
        for t in t_values:
            rgba = cmap(t)
            colors.append(tuple(int(round(channel * 255)) for channel in rgba[:3]))
        return cls(colors, name=f"From_{cmap_name}")


def random_palette(rng: Optional[np.random.Generator] = None,
                   n_stops: int = MAX_GRADIENT_STOPS) -> Palette:
    """
    Generate a random palette.

    The first stop is black 70% of the time, which keeps the outer bands dark.
    """
    if rng is None:
        rng = np.random.default_rng()

    colors = []
    for i in range(min(n_stops, MAX_GRADIENT_STOPS)):
        if i == 0 and rng.random() > 0.3:
            colors.append((0, 0, 0))
        else:
            colors.append(tuple(int(v) for v in rng.integers(0, 256, size=3)))
    return Palette(colors, name="Random")


@njit(cache=True)
def composite_pixel(iteration, max_iter, lut, fade_black, alpha_gamma,
                    bg_r, bg_g, bg_b, transparent):
    """
    Convert an iteration count into an RGBA pixel.

    Alpha follows the brightest channel of the looked-up color, faded below
    ``fade_black`` and shaped by ``alpha_gamma``. Points that never escaped
    get alpha 0. In opaque mode the color is blended over the background and
    the pixel alpha is 255.

    Returns:
        Tuple (r, g, b, a) of ints in [0, 255]
    """
    idx = (iteration * LUT_BAND_MULTIPLIER) % LUT_SIZE
    r = int(lut[idx, 0])
    g = int(lut[idx, 1])
    b = int(lut[idx, 2])

    brightness = float(max(r, max(g, b)))
    if fade_black >= 255.0:
        shaped = 0.0
    else:
        normalized = (brightness - fade_black) / (255.0 - fade_black)
        normalized = min(max(normalized, 0.0), 1.0)
        if normalized > 0.0:
            shaped = normalized ** alpha_gamma
        elif alpha_gamma <= 0.0:
            # 0 ** 0 is 1 and 0 ** -g is infinite, which clamps to 1.
            shaped = 1.0
        else:
            shaped = 0.0
    if not shaped >= 0.0:
        shaped = 0.0
    elif shaped > 1.0:
        shaped = 1.0

    alpha = int(np.floor(shaped * 255.0 + 0.5))
    if iteration >= max_iter:
        alpha = 0

    if transparent:
        return r, g, b, alpha

    a = alpha / 255.0
    return (int(r * a + bg_r * (1.0 - a)),
            int(g * a + bg_g * (1.0 - a)),
            int(b * a + bg_b * (1.0 - a)),
            255)


def composite(iteration: int, max_iter: int, lut: np.ndarray, fade_black: float = 0.0,
              alpha_gamma: float = 1.0, background: RGB = (0, 0, 0),
              transparent: bool = False) -> Tuple[int, int, int, int]:
    """Python-facing wrapper around ``composite_pixel``."""
    bg_r, bg_g, bg_b = background
    r, g, b, a = composite_pixel(int(iteration), int(max_iter), lut, float(fade_black),
                                 float(alpha_gamma), int(bg_r), int(bg_g), int(bg_b),
                                 bool(transparent))
    return int(r), int(g), int(b), int(a)
