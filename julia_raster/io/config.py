"""
Configuration file and environment handling.

Render settings can come from JSON or YAML files, named Julia presets and
``JULIA_RASTER_*`` environment variables. This module turns those sources
into ``RenderParameters`` and ``RenderConfig`` objects.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union
import logging

import yaml

from ..api import RenderConfig, EXPORT_MAX_ITER, PREVIEW_MAX_ITER
from ..core.fractal_types import FractalVariant, JULIA_PRESETS
from ..core.parameters import ComplexPoint, RenderParameters
from ..rendering.coloring import parse_hex_color

logger = logging.getLogger(__name__)

QUALITY_PRESETS = {
    'preview': PREVIEW_MAX_ITER,
    'export': EXPORT_MAX_ITER,
}

_PARAMETER_KEYS = {
    'width', 'height', 'c', 'c_re', 'c_im', 'zoom', 'x_offset', 'y_offset',
    'rotation', 'max_iter', 'variant', 'colors', 'background', 'fade_black',
    'alpha_gamma', 'transparent', 'preset', 'quality',
}
_RENDERER_KEYS = {'backend', 'num_processes', 'tile_rows'}
_SECTIONS = {'parameters', 'renderer'}


def _parse_color(value: Any) -> Tuple[int, int, int]:
    if isinstance(value, str):
        return parse_hex_color(value)
    try:
        r, g, b = (int(v) for v in value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid color: {value!r}") from None
    for channel in (r, g, b):
        if not 0 <= channel <= 255:
            raise ValueError(f"Color channel out of range in {value!r}")
    return (r, g, b)


def parse_constant(value: Union[str, Any]) -> ComplexPoint:
    """
    Parse a Julia constant given as a preset name, ``"re,im"`` or a pair.
    """
    if isinstance(value, str):
        key = value.strip().lower()
        if key in JULIA_PRESETS:
            return ComplexPoint(*JULIA_PRESETS[key])
        parts = value.split(',')
    else:
        parts = list(value)
    if len(parts) != 2:
        raise ValueError(f"Invalid Julia constant {value!r}. Use 'real,imag' or a preset name")
    try:
        return ComplexPoint(float(parts[0]), float(parts[1]))
    except (TypeError, ValueError):
        raise ValueError(f"Invalid Julia constant {value!r}. Use 'real,imag' or a preset name") from None


def parameters_from_dict(data: Mapping[str, Any],
                         base: Optional[RenderParameters] = None) -> RenderParameters:
    """
    Build render parameters from a mapping of friendly keys.

    Args:
        data: Keys such as ``c`` ("re,im", [re, im] or preset name),
            ``variant`` (name or code), ``colors`` (hex strings or RGB lists),
            ``background``, ``quality`` ('preview' or 'export')
        base: Parameters to start from (defaults if None)

    Returns:
        RenderParameters with the given fields replaced
    """
    unknown = set(data) - _PARAMETER_KEYS
    if unknown:
        raise ValueError(f"Unknown parameter(s): {', '.join(sorted(unknown))}")

    fields: Dict[str, Any] = (base or RenderParameters()).__dict__.copy()

    if 'quality' in data:
        quality = str(data['quality']).lower()
        if quality not in QUALITY_PRESETS:
            raise ValueError(f"Unknown quality '{data['quality']}'. Available: "
                             f"{', '.join(QUALITY_PRESETS)}")
        fields['max_iter'] = QUALITY_PRESETS[quality]

    if 'preset' in data:
        fields['c'] = parse_constant(str(data['preset']))
    if 'c' in data:
        fields['c'] = parse_constant(data['c'])
    if 'c_re' in data or 'c_im' in data:
        c = fields['c']
        fields['c'] = ComplexPoint(float(data.get('c_re', c.re)), float(data.get('c_im', c.im)))

    for key in ('width', 'height', 'max_iter'):
        if key in data:
            fields[key] = int(data[key])
    for key in ('zoom', 'x_offset', 'y_offset', 'rotation', 'fade_black', 'alpha_gamma'):
        if key in data:
            fields[key] = float(data[key])

    if 'transparent' in data:
        fields['transparent'] = bool(data['transparent'])
    if 'variant' in data:
        fields['variant'] = FractalVariant.from_name(data['variant'])
    if 'colors' in data:
        fields['colors'] = tuple(_parse_color(color) for color in data['colors'])
    if 'background' in data:
        fields['background'] = _parse_color(data['background'])

    return RenderParameters(**fields)


def renderer_config_from_dict(data: Mapping[str, Any],
                              base: Optional[RenderConfig] = None) -> RenderConfig:
    """Build a RenderConfig from a mapping."""
    unknown = set(data) - _RENDERER_KEYS
    if unknown:
        raise ValueError(f"Unknown renderer setting(s): {', '.join(sorted(unknown))}")

    config = RenderConfig(**(base or RenderConfig()).to_dict())
    if 'backend' in data:
        config.backend = str(data['backend'])
    if data.get('num_processes') is not None:
        config.num_processes = int(data['num_processes'])
    if 'tile_rows' in data:
        config.tile_rows = int(data['tile_rows'])
    config.validate()
    return config


class ConfigManager:
    """Load and save configuration files in JSON or YAML format."""

    def load_config(self, filepath: Union[str, Path]) -> Dict[str, Any]:
        """
        Load a configuration file.

        Returns:
            Parsed mapping (empty for an empty file)
        """
        path = Path(filepath)
        try:
            text = path.read_text(encoding='utf-8')
        except OSError as e:
            raise ValueError(f"Cannot read config file {path}: {e}") from e

        try:
            if path.suffix.lower() in ('.yaml', '.yml'):
                data = yaml.safe_load(text) or {}
            else:
                data = json.loads(text) if text.strip() else {}
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ValueError(f"Invalid config file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")

        logger.info(f"Loaded configuration from {path}")
        return data

    def save_config(self, data: Mapping[str, Any], filepath: Union[str, Path]) -> None:
        """Save a configuration mapping; the format follows the file suffix."""
        path = Path(filepath)
        if path.suffix.lower() in ('.yaml', '.yml'):
            text = yaml.safe_dump(dict(data), sort_keys=False)
        else:
            text = json.dumps(dict(data), indent=2)
        path.write_text(text, encoding='utf-8')
        logger.info(f"Saved configuration to {path}")

    def save_parameters(self, params: RenderParameters, filepath: Union[str, Path],
                        config: Optional[RenderConfig] = None) -> None:
        data: Dict[str, Any] = {'parameters': params.to_dict()}
        if config is not None:
            data['renderer'] = config.to_dict()
        self.save_config(data, filepath)


class EnvironmentConfig:
    """Overrides read from ``JULIA_RASTER_*`` environment variables."""

    PREFIX = 'JULIA_RASTER_'

    PARAMETER_VARIABLES = {
        'WIDTH': 'width',
        'HEIGHT': 'height',
        'MAX_ITER': 'max_iter',
        'VARIANT': 'variant',
    }
    RENDERER_VARIABLES = {
        'BACKEND': 'backend',
        'PROCESSES': 'num_processes',
    }

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self.environ = os.environ if environ is None else environ

    def _collect(self, variables: Mapping[str, str]) -> Dict[str, str]:
        found = {}
        for suffix, key in variables.items():
            value = self.environ.get(self.PREFIX + suffix)
            if value is not None and value != '':
                logger.debug(f"Environment override {self.PREFIX + suffix}={value}")
                found[key] = value
        return found

    def parameter_overrides(self) -> Dict[str, str]:
        return self._collect(self.PARAMETER_VARIABLES)

    def renderer_overrides(self) -> Dict[str, str]:
        return self._collect(self.RENDERER_VARIABLES)

    def apply(self, data: Mapping[str, Any]) -> Dict[str, Dict[str, Any]]:
        """
        Overlay environment overrides on a config mapping.

        Returns:
            New mapping with ``parameters`` and ``renderer`` sections
        """
        merged = {section: dict(data.get(section) or {}) for section in sorted(_SECTIONS)}
        merged['parameters'].update(self.parameter_overrides())
        merged['renderer'].update(self.renderer_overrides())
        return merged


def load_config_from_args(config_file: Optional[Union[str, Path]] = None,
                          preset: Optional[str] = None,
                          environ: Optional[Mapping[str, str]] = None
                          ) -> Tuple[RenderParameters, RenderConfig]:
    """
    Combine a config file, a Julia preset and environment overrides.

    Later sources win: file, then environment, then the preset constant.
    """
    data: Dict[str, Any] = {}
    if config_file:
        data = ConfigManager().load_config(config_file)
        unknown = set(data) - _SECTIONS
        if unknown:
            raise ValueError(f"Unknown config section(s): {', '.join(sorted(unknown))}")

    data = EnvironmentConfig(environ).apply(data)

    parameter_data = data['parameters']
    if preset:
        if preset.lower() not in JULIA_PRESETS:
            raise ValueError(f"Unknown preset '{preset}'. Available: {', '.join(JULIA_PRESETS)}")
        parameter_data.pop('c', None)
        parameter_data.pop('c_re', None)
        parameter_data.pop('c_im', None)
        parameter_data['preset'] = preset

    return parameters_from_dict(parameter_data), renderer_config_from_dict(data['renderer'])
