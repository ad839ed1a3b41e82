"""
Command-line interface for rendering the Mandelbrot set.

Render a frame around an explicit centre or a named point from the
configuration file, and inspect the palettes and points available.
"""

import click
import sys
from pathlib import Path
from typing import Optional
import logging
import time

from .. import __version__
from ..api import BACKENDS, FractalRenderer, RenderConfig
from ..core.math_functions import Complex
from ..core.plotting import PlottingAlgorithm, Resolution
from ..io.config import Configuration, NamedPoint
from ..rendering.image_output import ImageExporter, RenderMetadata
from ..rendering.palette import BUILTIN_PALETTES

logger = logging.getLogger(__name__)


def _fail(ctx, error: Exception):
    """Report an error the way every command does and exit."""
    click.echo(f"Error: {error}", err=True)
    if ctx.obj.get('verbose'):
        import traceback
        traceback.print_exc()
    sys.exit(1)


def render_options(func):
    """Options shared by the commands that render an image."""
    options = [
        click.option('--out-file', '-o', type=click.Path(dir_okay=False), default='mandelbrot.png',
                     show_default=True, help='File path to save the output image to'),
        click.option('--max-iters', '-m', type=click.IntRange(min=1), default=2000, show_default=True,
                     help='Iterations before a point is considered inside the set'),
        click.option('--bailout', '-b', type=float, default=1e6, show_default=True,
                     help='Bailout radius for iterations'),
        click.option('--resolution', '-r', type=click.Choice([r.value for r in Resolution]),
                     default=Resolution.HIGH.value, show_default=True, help='Output resolution'),
        click.option('--algorithm', '-a', type=click.Choice([a.value for a in PlottingAlgorithm]),
                     default=PlottingAlgorithm.HISTOGRAM.value, show_default=True,
                     help='Plotting algorithm'),
        click.option('--palette', '-p', default='midnight', show_default=True,
                     help='Palette name from the config file, a built-in, or mpl:<colormap>'),
        click.option('--palette-repeats', type=click.IntRange(min=1), default=1, show_default=True,
                     help='Number of times to cycle the palette'),
        click.option('--backend', type=click.Choice(BACKENDS), default='numba', show_default=True,
                     help='Grid evaluation backend'),
        click.option('--processes', type=int, help='Worker processes for the multiprocessing backend'),
        click.option('--save-raw', is_flag=True, help='Also save the hue array as .npy'),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.version_option(__version__, prog_name='mandelbrust')
@click.option('--config', 'config_file', type=click.Path(dir_okay=False),
              help='Configuration file path (default: $MANDELBRUST_CONFIG or ./config.yaml)')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress most output')
@click.pass_context
def main(ctx, config_file, verbose, quiet):
    """
    mandelbrust - escape-time renderer for the Mandelbrot set.
    """
    if quiet:
        logging.basicConfig(level=logging.ERROR)
    elif verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    else:
        logging.basicConfig(level=logging.INFO,
                            format='%(levelname)s: %(message)s')

    ctx.ensure_object(dict)
    ctx.obj['config_file'] = config_file
    ctx.obj['verbose'] = verbose


def _render_to_file(config: Configuration, centre: Complex, zoom: float, out_file: str,
                    max_iters: int, bailout: float, resolution: str, algorithm: str, palette: str,
                    palette_repeats: int, backend: str, processes: Optional[int],
                    save_raw: bool) -> None:
    color_palette = config.get_palette(palette).repeat(palette_repeats)
    logger.debug(f"Palette {palette}: {len(color_palette)} stops after {palette_repeats} repeats")

    width, height = Resolution(resolution).to_dimensions()
    render_config = RenderConfig.from_algorithm(
        algorithm,
        centre=centre,
        zoom=zoom,
        width=width,
        height=height,
        max_iterations=max_iters,
        bailout=bailout,
        backend=backend,
        num_processes=processes,
    )
    renderer = FractalRenderer(render_config)

    click.echo(f"Rendering {width}x{height} around {centre} at zoom {zoom}...")
    start_time = time.time()
    hue = renderer.render()
    render_time = time.time() - start_time

    metadata = RenderMetadata(
        centre=(centre.re, centre.im),
        zoom=zoom,
        resolution=(width, height),
        max_iterations=max_iters,
        bailout=bailout,
        algorithm=algorithm,
        color_palette=palette,
        palette_repeats=palette_repeats,
        backend=backend,
        render_time_seconds=render_time,
    )

    exporter = ImageExporter()
    exporter.save_hue_array(hue, color_palette, out_file, metadata)
    if save_raw:
        exporter.save_raw_data(hue, Path(out_file).with_suffix('.npy'), metadata)

    click.echo(f"Render complete: {render_time:.2f}s")
    click.echo(f"Saved: {out_file}")


@main.command(context_settings={'ignore_unknown_options': True})
@click.argument('x', type=float)
@click.argument('y', type=float)
@click.option('--zoom', '-z', type=float, default=8.0, show_default=True, help='Zoom factor')
@render_options
@click.pass_context
def centre(ctx, x, y, zoom, **kwargs):
    """
    Render around an explicit centre.

    X: Real part of the centre
    Y: Imaginary part of the centre
    """
    try:
        config = Configuration.load(ctx.obj.get('config_file'))
        _render_to_file(config, Complex(x, y), zoom, **kwargs)
    except Exception as e:
        _fail(ctx, e)


@main.command()
@click.argument('name')
@render_options
@click.pass_context
def landmark(ctx, name, **kwargs):
    """
    Render around a named point from the configuration file.

    NAME: Name of the point in the configuration file
    """
    try:
        config = Configuration.load(ctx.obj.get('config_file'))
        point = config.get_named_point(name)
        _render_to_file(config, point.point, float(point.zoom), **kwargs)
    except Exception as e:
        _fail(ctx, e)


@main.command()
@click.pass_context
def list_palettes(ctx):
    """List available colour palettes."""
    try:
        config = Configuration.load(ctx.obj.get('config_file'))

        click.echo("Available colour palettes:")
        for name in config.list_palettes():
            click.echo(f"  {name} ({len(config.get_palette(name))} stops)")
        click.echo("  mpl:<colormap> (any matplotlib colormap)")

        click.echo("\nPlotting algorithms:")
        for algorithm in PlottingAlgorithm:
            click.echo(f"  {algorithm.value}: {algorithm.mode.value} values, "
                       f"{algorithm.normalization.value} normalisation")
    except Exception as e:
        _fail(ctx, e)


@main.command()
@click.pass_context
def list_points(ctx):
    """List named points from the configuration file."""
    try:
        config = Configuration.load(ctx.obj.get('config_file'))
        names = config.list_named_points()

        if not names:
            click.echo("No named points available.")
            return

        click.echo("Named points:")
        for name in names:
            point = config.get_named_point(name)
            click.echo(f"  {name}: {point.point} (zoom {point.zoom})")
    except Exception as e:
        _fail(ctx, e)


@main.command()
@click.option('--output', '-o', type=click.Path(dir_okay=False), default='config.yaml',
              show_default=True, help='Output file path')
@click.option('--force', is_flag=True, help='Overwrite an existing file')
@click.pass_context
def init_config(ctx, output, force):
    """Create a configuration file holding the built-in palettes and an example point."""
    try:
        output_path = Path(output)
        if output_path.exists() and not force:
            raise click.UsageError(f"{output_path} already exists (use --force to overwrite)")

        config = Configuration(
            color_palettes=list(BUILTIN_PALETTES.values()),
            named_points=[NamedPoint('seahorse', Complex(-0.745, 0.113), 400000)],
        )
        config.save(output_path)
        click.echo(f"Configuration template created: {output_path}")
    except Exception as e:
        _fail(ctx, e)


@main.command()
@click.option('--resolution', '-r', type=click.Choice([r.value for r in Resolution]),
              default=Resolution.LOW.value, show_default=True, help='Benchmark resolution')
@click.option('--max-iters', '-m', type=click.IntRange(min=1), default=500, show_default=True,
              help='Iteration budget')
@click.option('--backend', 'backends', type=click.Choice(BACKENDS), multiple=True,
              help='Backends to compare (default: all but python)')
@click.pass_context
def benchmark(ctx, resolution, max_iters, backends):
    """Compare the grid evaluation backends on the default view."""
    try:
        width, height = Resolution(resolution).to_dimensions()
        backends = backends or tuple(b for b in BACKENDS if b != 'python')
        renderer = FractalRenderer(RenderConfig(width=width, height=height,
                                                max_iterations=max_iters, bailout=4.0))

        click.echo(f"Benchmarking {width}x{height}, {max_iters} iterations...")
        results = renderer.benchmark_backends(backends)

        for backend, stats in results['backends'].items():
            click.echo(f"  {backend:16s} {stats['time']:8.3f}s "
                       f"{stats['pixels_per_second']:14.0f} px/s "
                       f"{'identical' if stats['identical'] else 'MISMATCH'}")
    except Exception as e:
        _fail(ctx, e)


if __name__ == '__main__':
    main()
