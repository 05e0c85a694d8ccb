"""
Fractal variant definitions.

This module defines the escape-time variants supported by the renderer as a
tagged enumeration, together with descriptive metadata and a set of named
Julia constants.
"""

from enum import IntEnum
from typing import Dict, Union
from dataclasses import dataclass
import logging

logger = logging.getLogger(__name__)


class FractalVariant(IntEnum):
    """Escape-time update rules, keyed by their wire code."""

    STANDARD = 0
    BURNING_SHIP = 1
    TRICORN = 2
    CELTIC = 3
    COSINE = 4

    @classmethod
    def coerce(cls, value: Union['FractalVariant', int, float, str]) -> 'FractalVariant':
        """
        Resolve a wire selector to a variant.

        Anything that is not a known code selects STANDARD; this is the
        behaviour the per-frame render path relies on.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(int(value))
        except (TypeError, ValueError, OverflowError):
            logger.warning(f"Unknown fractal variant {value!r}, using standard")
            return cls.STANDARD

    @classmethod
    def from_name(cls, name: Union[str, int]) -> 'FractalVariant':
        """
        Strictly resolve a variant from a name or numeric code.

        Used for configuration input, where a typo should be reported
        instead of silently rendering the standard set.
        """
        if isinstance(name, cls):
            return name
        if isinstance(name, int) and not isinstance(name, bool):
            try:
                return cls(name)
            except ValueError:
                raise ValueError(f"Unknown fractal variant code {name}") from None

        key = str(name).strip().lower().replace('-', '_').replace(' ', '_')
        if key.isdigit():
            return cls.from_name(int(key))

        variant = _VARIANT_ALIASES.get(key)
        if variant is None:
            available = ', '.join(v.name.lower() for v in cls)
            raise ValueError(f"Unknown fractal variant '{name}'. Available: {available}")
        return variant

    @property
    def info(self) -> 'VariantInfo':
        return VARIANT_INFO[self]


_VARIANT_ALIASES: Dict[str, FractalVariant] = {
    'standard': FractalVariant.STANDARD,
    'julia': FractalVariant.STANDARD,
    'burning_ship': FractalVariant.BURNING_SHIP,
    'ship': FractalVariant.BURNING_SHIP,
    'tricorn': FractalVariant.TRICORN,
    'celtic': FractalVariant.CELTIC,
    'cosine': FractalVariant.COSINE,
}


@dataclass(frozen=True)
class VariantInfo:
    """Human-readable description of a variant."""

    label: str
    formula: str
    escape_radius_sq: float


VARIANT_INFO: Dict[FractalVariant, VariantInfo] = {
    FractalVariant.STANDARD: VariantInfo(
        "Standard", "z_{n+1} = z_n^2 + c", 4.0),
    FractalVariant.BURNING_SHIP: VariantInfo(
        "Burning Ship", "z_{n+1} = (|Re(z_n)| + i|Im(z_n)|)^2 + c", 4.0),
    FractalVariant.TRICORN: VariantInfo(
        "Tricorn", "z_{n+1} = conj(z_n)^2 + c", 4.0),
    FractalVariant.CELTIC: VariantInfo(
        "Celtic", "z_{n+1} = |Re(z_n^2)| + i Im(z_n^2) + c", 4.0),
    FractalVariant.COSINE: VariantInfo(
        "Cosine", "z_{n+1} = cos(z_n) + c", 100.0),
}


def list_variants() -> Dict[str, str]:
    """Get a dictionary of variant names and their formulas."""
    return {variant.name.lower(): VARIANT_INFO[variant].formula for variant in FractalVariant}


# Predefined interesting Julia set constants
JULIA_PRESETS: Dict[str, tuple] = {
    'default': (-0.7, 0.27015),
    'dragon': (-0.75, 0.1),
    'spiral': (-0.4, 0.6),
    'dendrite': (-0.235125, 0.827215),
    'lightning': (-0.8, 0.156),
    'rabbit': (-0.123, 0.745),
    'airplane': (-1.25, 0.0),
    'san_marco': (-0.75, 0.0),
    'siegel_disk': (-0.391, -0.587),
}
