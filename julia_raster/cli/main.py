"""
Command-line interface for fractal rendering.

This module provides a CLI that renders frames to raw RGBA8 files and
lists the available variants and Julia presets.
"""

import click
import sys
from pathlib import Path
from typing import Dict, Any
import logging
import time

from .. import __version__
from ..api import FractalRenderer, fit_preview_size
from ..core.fractal_types import FractalVariant, JULIA_PRESETS, VARIANT_INFO
from ..io.config import load_config_from_args, parameters_from_dict, renderer_config_from_dict
from ..rendering.pipeline import BACKENDS

logger = logging.getLogger(__name__)

VARIANT_CHOICES = [variant.name.lower() for variant in FractalVariant]


def _fail(ctx, error: Exception):
    click.echo(f"Error: {error}", err=True)
    if ctx.obj.get('verbose'):
        import traceback
        traceback.print_exc()
    sys.exit(1)


def _split_pair(value: str, name: str):
    parts = [x.strip() for x in value.split(',')]
    if len(parts) != 2:
        raise ValueError(f"Invalid {name} '{value}'. Use 'x,y'")
    return float(parts[0]), float(parts[1])


@click.group(invoke_without_command=True)
@click.option('--version', is_flag=True, help='Show version information')
@click.option('--config', type=click.Path(exists=True), help='Configuration file path (JSON or YAML)')
@click.option('--preset', help='Julia constant preset to use')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress most output')
@click.pass_context
def main(ctx, version, config, preset, verbose, quiet):
    """
    Julia Raster - escape-time fractal rendering to RGBA buffers.
    """
    # Setup logging
    if quiet:
        logging.basicConfig(level=logging.ERROR)
    elif verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    else:
        logging.basicConfig(level=logging.INFO,
                            format='%(levelname)s: %(message)s')

    if version:
        click.echo(f"Julia Raster v{__version__}")
        click.echo(f"Python: {sys.version}")
        if ctx.invoked_subcommand is None:
            sys.exit(0)

    # Store global options in context
    ctx.ensure_object(dict)
    ctx.obj['config_file'] = config
    ctx.obj['preset'] = preset
    ctx.obj['verbose'] = verbose

    if ctx.invoked_subcommand is None and not version:
        click.echo(ctx.get_help())


@main.command()
@click.argument('output', type=click.Path())
@click.option('--width', '-w', type=int, help='Image width')
@click.option('--height', '-h', type=int, help='Image height')
@click.option('--c', 'constant', type=str, help='Julia constant "real,imag" or preset name')
@click.option('--zoom', type=float, help='Zoom level')
@click.option('--offset', type=str, help='View center "x,y"')
@click.option('--rotation', type=float, help='Rotation in degrees')
@click.option('--max-iter', type=int, help='Maximum iterations')
@click.option('--variant', type=click.Choice(VARIANT_CHOICES), help='Fractal variant')
@click.option('--colors', type=str, help='Gradient stops: "#RRGGBB,#RRGGBB,..." (up to 5)')
@click.option('--background', type=str, help='Background color "#RRGGBB"')
@click.option('--fade', 'fade_black', type=float, help='Brightness below which pixels fade out (0-255)')
@click.option('--gamma', 'alpha_gamma', type=float, help='Alpha gamma exponent')
@click.option('--transparent/--opaque', default=None, help='Emit alpha instead of blending over the background')
@click.option('--quality', type=click.Choice(['preview', 'export']), help='Iteration preset')
@click.option('--backend', type=click.Choice(BACKENDS), help='Rendering backend')
@click.option('--processes', type=int, help='Number of processes for the multiprocessing backend')
@click.pass_context
def render(ctx, output, **kwargs):
    """
    Render a frame and write the raw RGBA8 buffer.

    OUTPUT: Output file path (row-major RGBA, 4 bytes per pixel)
    """
    try:
        params, render_config = load_config_from_args(
            ctx.obj.get('config_file'),
            ctx.obj.get('preset'),
        )

        overrides: Dict[str, Any] = {}
        for key in ('width', 'height', 'zoom', 'rotation', 'max_iter', 'variant',
                    'fade_black', 'alpha_gamma', 'transparent', 'quality'):
            if kwargs.get(key) is not None:
                overrides[key] = kwargs[key]
        if kwargs.get('constant'):
            overrides['c'] = kwargs['constant']
        if kwargs.get('offset'):
            overrides['x_offset'], overrides['y_offset'] = _split_pair(kwargs['offset'], 'offset')
        if kwargs.get('colors'):
            overrides['colors'] = [x.strip() for x in kwargs['colors'].split(',') if x.strip()]
        if kwargs.get('background'):
            overrides['background'] = kwargs['background']
        params = parameters_from_dict(overrides, base=params)

        renderer_overrides: Dict[str, Any] = {}
        if kwargs.get('backend'):
            renderer_overrides['backend'] = kwargs['backend']
        if kwargs.get('processes') is not None:
            renderer_overrides['num_processes'] = kwargs['processes']
        render_config = renderer_config_from_dict(renderer_overrides, base=render_config)

        renderer = FractalRenderer(render_config)
        renderer.warm_up()

        click.echo(f"Rendering {params.variant.name.lower()} fractal "
                   f"({params.width}x{params.height}, max_iter={params.max_iter})...")
        start_time = time.time()

        rgba = renderer.render(params)
        Path(output).write_bytes(rgba)

        click.echo(f"Render complete: {time.time() - start_time:.2f}s")
        click.echo(f"Saved: {output} ({len(rgba)} bytes)")

    except (ValueError, OSError) as e:
        _fail(ctx, e)


@main.command()
def variants():
    """List available fractal variants."""
    click.echo("Available fractal variants:")
    for variant in FractalVariant:
        info = VARIANT_INFO[variant]
        click.echo(f"  {int(variant)} {variant.name.lower():<13} {info.formula}  "
                   f"(escape |z|^2 > {info.escape_radius_sq:g})")


@main.command()
def presets():
    """List named Julia constants."""
    click.echo("Julia presets:")
    for name, (c_re, c_im) in JULIA_PRESETS.items():
        click.echo(f"  {name:<12} c = {c_re} {'+' if c_im >= 0 else '-'} {abs(c_im)}i")


@main.command('preview-size')
@click.argument('export_width', type=int)
@click.argument('export_height', type=int)
@click.option('--max-edge', type=int, default=1000, show_default=True,
              help='Longest preview edge in pixels')
@click.pass_context
def preview_size(ctx, export_width, export_height, max_edge):
    """Print the preview canvas size for an export resolution."""
    try:
        width, height = fit_preview_size(export_width, export_height, max_edge=max_edge)
    except ValueError as e:
        _fail(ctx, e)
    click.echo(f"{width}x{height}")


if __name__ == '__main__':
    main()
