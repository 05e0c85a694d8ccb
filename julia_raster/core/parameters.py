"""
Render parameter containers.

RenderParameters is the complete, immutable input of one render call. The
render path never rejects it: ``sanitized`` maps every out-of-range or
non-finite field onto a usable value instead.
"""

import math
from typing import Dict, Any, NamedTuple, Tuple
from dataclasses import dataclass, field, replace
import logging

from .fractal_types import FractalVariant

logger = logging.getLogger(__name__)

RGB = Tuple[int, int, int]

MAX_GRADIENT_STOPS = 5

DEFAULT_C = (-0.7, 0.27015)
DEFAULT_COLORS: Tuple[RGB, ...] = (
    (0x00, 0x00, 0x00),
    (0x00, 0x00, 0x88),
    (0x00, 0x00, 0xFF),
    (0x00, 0x88, 0xFF),
    (0xFF, 0xFF, 0xFF),
)
DEFAULT_BACKGROUND: RGB = (0, 0, 0)


class ComplexPoint(NamedTuple):
    """A point in the complex plane as a pair of 64-bit floats."""

    re: float
    im: float

    def to_complex(self) -> complex:
        return complex(self.re, self.im)


def _finite_or(value: float, default: float) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        return default
    return value if math.isfinite(value) else default


def _byte(value: Any) -> int:
    try:
        return int(value) & 0xFF
    except (TypeError, ValueError, OverflowError):
        return 0


def _rgb(color: Any) -> RGB:
    r, g, b = color
    return (_byte(r), _byte(g), _byte(b))


@dataclass(frozen=True)
class RenderParameters:
    """Complete parameter set for rendering one frame."""

    width: int = 800
    height: int = 600
    c: ComplexPoint = field(default_factory=lambda: ComplexPoint(*DEFAULT_C))
    zoom: float = 1.0
    x_offset: float = 0.0
    y_offset: float = 0.0
    rotation: float = 0.0  # degrees
    max_iter: int = 120
    variant: FractalVariant = FractalVariant.STANDARD
    colors: Tuple[RGB, ...] = DEFAULT_COLORS
    background: RGB = DEFAULT_BACKGROUND
    fade_black: float = 0.0
    alpha_gamma: float = 1.0
    transparent: bool = False

    def __post_init__(self):
        # Accept plain tuples/complex for c and any iterable for colors.
        c = self.c
        if isinstance(c, complex):
            c = ComplexPoint(c.real, c.imag)
        elif not isinstance(c, ComplexPoint):
            c = ComplexPoint(*c)
        object.__setattr__(self, 'c', c)
        object.__setattr__(self, 'colors', tuple(tuple(color) for color in self.colors))
        object.__setattr__(self, 'background', tuple(self.background))

    @property
    def aspect(self) -> float:
        """Image aspect ratio (width / height)."""
        return self.width / self.height

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    def sanitized(self) -> 'RenderParameters':
        """
        Return a copy with every field clamped or defaulted into range.

        Dimensions below zero become zero, a zero or non-finite zoom
        becomes 1.0, unknown variants become STANDARD, color channels are
        masked to bytes and at most five gradient stops are kept.
        """
        zoom = _finite_or(self.zoom, 1.0)
        if zoom == 0.0:
            zoom = 1.0

        fade_black = min(max(_finite_or(self.fade_black, 0.0), 0.0), 255.0)

        colors = []
        for color in self.colors[:MAX_GRADIENT_STOPS]:
            try:
                colors.append(_rgb(color))
            except (TypeError, ValueError):
                break

        try:
            background = _rgb(self.background)
        except (TypeError, ValueError):
            background = DEFAULT_BACKGROUND

        return replace(
            self,
            width=max(0, int(self.width)),
            height=max(0, int(self.height)),
            c=ComplexPoint(_finite_or(self.c.re, 0.0), _finite_or(self.c.im, 0.0)),
            zoom=zoom,
            x_offset=_finite_or(self.x_offset, 0.0),
            y_offset=_finite_or(self.y_offset, 0.0),
            rotation=_finite_or(self.rotation, 0.0),
            max_iter=max(0, int(self.max_iter)),
            variant=FractalVariant.coerce(self.variant),
            colors=tuple(colors),
            background=background,
            fade_black=fade_black,
            alpha_gamma=_finite_or(self.alpha_gamma, 1.0),
            transparent=bool(self.transparent),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert parameters to a plain, serializable dictionary."""
        return {
            'width': self.width,
            'height': self.height,
            'c': [self.c.re, self.c.im],
            'zoom': self.zoom,
            'x_offset': self.x_offset,
            'y_offset': self.y_offset,
            'rotation': self.rotation,
            'max_iter': self.max_iter,
            'variant': FractalVariant.coerce(self.variant).name.lower(),
            'colors': ['#%02X%02X%02X' % tuple(color) for color in self.colors],
            'background': '#%02X%02X%02X' % tuple(self.background),
            'fade_black': self.fade_black,
            'alpha_gamma': self.alpha_gamma,
            'transparent': self.transparent,
        }
