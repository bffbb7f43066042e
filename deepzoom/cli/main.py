"""
Command-line interface for deep-zoom rendering.

This module exposes the renderer as a `deepzoom` command with a `render`
subcommand that writes an image and a `plan` subcommand that only reports
the precision and viewport a render would use.
"""

import click
import sys
from pathlib import Path
import logging
import time

from .. import __version__
from ..api import FractalRenderer, RenderConfig
from ..core.precision import format_number, parse_pair, parse_resolution

logger = logging.getLogger(__name__)


def _coordinate_options(func):
    """Options shared by commands that describe a view."""
    options = [
        click.option('--resolution', '-x', default='2560x1440', show_default=True,
                     help='Final resolution in pixels, WIDTHxHEIGHT'),
        click.option('--domain', '-d', help='Real axis bounds, ie. -0.5575,-0.55'),
        click.option('--range', '-r', 'range_bounds', help='Imaginary axis bounds, ie. -0.555,-0.5525'),
        click.option('--centered-around', '-c', 'center',
                     help='Center the image about this position, real,imaginary'),
        click.option('--zoom', '-z', type=click.IntRange(min=0),
                     help='Zoom level about the center; the view spans 1/(2^zoom)'),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_config(resolution, domain, range_bounds, center, zoom, **kwargs) -> RenderConfig:
    width, height = parse_resolution(resolution)
    return RenderConfig(
        width=width,
        height=height,
        domain=parse_pair(domain, 'domain') if domain else None,
        range_bounds=parse_pair(range_bounds, 'range') if range_bounds else None,
        center=parse_pair(center, 'center') if center else None,
        zoom=zoom,
        **kwargs,
    )


def _fail(ctx, e: Exception) -> None:
    click.echo(f"Error: {e}", err=True)
    if ctx.obj.get('verbose'):
        import traceback
        traceback.print_exc()
    sys.exit(1)


@click.group(invoke_without_command=True)
@click.option('--version', is_flag=True, help='Show version information')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress most output')
@click.pass_context
def main(ctx, version, verbose, quiet):
    """
    deepzoom - arbitrary-precision Mandelbrot renderer.

    Plans the numeric precision a view needs, evaluates every pixel in
    parallel at that precision and writes a gradient-colored image.
    """
    if quiet:
        logging.basicConfig(level=logging.ERROR)
    elif verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    else:
        logging.basicConfig(level=logging.INFO,
                            format='%(levelname)s: %(message)s')

    if version:
        click.echo(f"deepzoom v{__version__}")
        click.echo(f"Python: {sys.version}")
        if ctx.invoked_subcommand is None:
            sys.exit(0)

    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose
    ctx.obj['quiet'] = quiet


@main.command()
@_coordinate_options
@click.option('--take', '-t', type=int, default=500, show_default=True,
              help='Samples to iterate before determining that a point has converged')
@click.option('--output', '-o', required=True, type=click.Path(dir_okay=False),
              help='Output file (format chosen by extension)')
@click.option('--gradient-interval', '-g', type=int, default=300, show_default=True,
              help='Interval the gradient loops on. Large values make close counts '
                   'less apparent, small values make small changes more visible')
@click.option('--exponential-gradient', '-e', is_flag=True,
              help='Spread the gradient exponentially over the iteration range')
@click.option('--inside', type=click.Choice(['black', 'none']), default='black', show_default=True,
              help='Color points inside the set black, or leave them unpainted')
@click.option('--transparent-inside', is_flag=True,
              help='Write unpainted pixels as transparent (PNG/TIFF, needs --inside none)')
@click.option('--processes', type=int, help='Number of worker processes (default: CPU count)')
@click.option('--no-metadata', is_flag=True, help='Do not embed render metadata')
@click.pass_context
def render(ctx, resolution, domain, range_bounds, center, zoom, take, output,
           gradient_interval, exponential_gradient, inside, transparent_inside,
           processes, no_metadata):
    """
    Render an image of the Mandelbrot set.

    Give either --domain and --range, or --centered-around and --zoom.
    """
    try:
        config = _build_config(
            resolution, domain, range_bounds, center, zoom,
            take=take,
            gradient_interval=gradient_interval,
            exponential_gradient=exponential_gradient,
            inside_mode='omit' if inside == 'none' else 'sentinel',
            transparent_inside=transparent_inside,
            num_processes=processes,
            save_metadata=not no_metadata,
        )
        renderer = FractalRenderer(config)

        planned = renderer.plan()
        if not ctx.obj.get('quiet'):
            click.echo(f"Bits of precision: {planned[0]}")

        start_time = time.time()
        result = renderer.render(Path(output), plan=planned)

        if not ctx.obj.get('quiet'):
            click.echo(f"Render complete: {time.time() - start_time:.2f}s")
            click.echo(f"Output saved to: {result.output_path}")

    except Exception as e:
        _fail(ctx, e)


@main.command()
@_coordinate_options
@click.pass_context
def plan(ctx, resolution, domain, range_bounds, center, zoom):
    """Show the precision and viewport a render would use."""
    try:
        config = _build_config(resolution, domain, range_bounds, center, zoom,
                               num_processes=1)
        precision, viewport = FractalRenderer(config).plan()

        click.echo(f"Resolution: {viewport.width}x{viewport.height}")
        click.echo(f"Coordinates: {config.view_spec().describe()}")
        click.echo(f"Bits of precision: {precision}")
        click.echo(f"Origin: ({format_number(viewport.origin_real, 20)}, "
                   f"{format_number(viewport.origin_imag, 20)})")
        click.echo(f"Step: ({format_number(viewport.step_real)}, "
                   f"{format_number(viewport.step_imag)})")

    except Exception as e:
        _fail(ctx, e)


if __name__ == '__main__':
    main()
