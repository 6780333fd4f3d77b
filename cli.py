#!/usr/bin/env python3
"""
ShadowLift Command Line Interface

Main CLI entry point for ShadowLift shadow recovery.
Provides commands to process single images, run batches into a ZIP archive,
and inspect the adaptive shadow tuning of an image.
"""

import sys
import json
import logging
from pathlib import Path
from typing import Optional

import click

from shadowlift.config import load_config, get_config_value, get_preset
from shadowlift.exceptions import BatchProcessingError, ShadowLiftError
from shadowlift.io import create_preview, find_images, load_image, save_image
from shadowlift.io.filesystem import ACCEPTED_EXTENSIONS, is_accepted
from shadowlift.processing.batch import DEFAULT_ARCHIVE_NAME, BatchProcessor
from shadowlift.processing.tone import EngineSettings, ShadowRecoveryEngine, ToneAlgorithm
from shadowlift.processing.tone.algorithms import TONE_ALGORITHM_LABELS
from shadowlift.processing.tone.models import EXPOSURE_LIMITS, SLIDER_LIMITS
from shadowlift.utils.logging import DEFAULT_FORMAT, setup_console_logging


logger = logging.getLogger(__name__)

ALGORITHM_CHOICES = [a.value for a in ToneAlgorithm]
ALGORITHM_HELP = 'Tone algorithm variant: ' + ', '.join(
    f"{a.value} ({TONE_ALGORITHM_LABELS[a]})" for a in ToneAlgorithm
) + ' (default from config)'
TONE_CONTROLS = ('contrast', 'highlights', 'shadows', 'whites', 'blacks')


def tone_options(func):
    """Shared preset / tone control / algorithm options"""
    func = click.option('--algorithm', '-a', type=click.Choice(ALGORITHM_CHOICES),
                        help=ALGORITHM_HELP)(func)
    for control in reversed(TONE_CONTROLS):
        func = click.option(f'--{control}', type=click.FloatRange(SLIDER_LIMITS['min'],
                                                                  SLIDER_LIMITS['max']),
                            help=f'{control.title()} (-100..100), overrides the preset')(func)
    func = click.option('--exposure', type=click.FloatRange(EXPOSURE_LIMITS['min'],
                                                            EXPOSURE_LIMITS['max']),
                        help='Exposure in stops (-5..5), overrides the preset')(func)
    func = click.option('--preset', '-p', default='default', show_default=True,
                        help='Starting preset (see `shadowlift presets`)')(func)
    return func


def _resolve_settings(config, preset: str, overrides):
    try:
        settings = get_preset(config, preset)
    except KeyError as e:
        raise click.BadParameter(str(e.args[0]), param_hint='--preset')
    changes = {k: v for k, v in overrides.items() if v is not None}
    return settings.with_changes(**changes) if changes else settings


def _resolve_algorithm(config, algorithm: Optional[str]) -> str:
    return algorithm or get_config_value(config, 'engine.algorithm', 'classic')


def _validate_output(ctx, param, value):
    if value is not None and not is_accepted(value):
        raise click.BadParameter(
            f"unsupported extension '{Path(value).suffix}', use one of "
            f"{', '.join(ACCEPTED_EXTENSIONS)}"
        )
    return value


@click.group()
@click.option('--config', '-c', type=click.Path(exists=True, dir_okay=False),
              help='Configuration file path')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress non-error output')
@click.option('--workers', '-w', type=click.IntRange(min=1),
              help='Threads for the per-pixel pass')
@click.pass_context
def main(ctx, config: Optional[str] = None, verbose: bool = False, quiet: bool = False,
         workers: Optional[int] = None):
    """
    ShadowLift - shadow recovery for photographs

    Relights underexposed regions while keeping edges, color and texture,
    with exposure, contrast, highlights, whites and blacks on top.
    """
    ctx.ensure_object(dict)

    cfg = load_config(config)
    level = 'DEBUG' if verbose else 'ERROR' if quiet else get_config_value(cfg, 'logging.level', 'INFO')
    setup_console_logging(level, fmt=get_config_value(cfg, 'logging.format', DEFAULT_FORMAT))

    if workers:
        cfg['engine']['workers'] = workers

    ctx.obj['config'] = cfg
    ctx.obj['engine'] = ShadowRecoveryEngine(EngineSettings.from_config(cfg))
    ctx.obj['verbose'] = verbose
    ctx.obj['quiet'] = quiet


@main.command()
@click.argument('input_path', type=click.Path(exists=True, dir_okay=False))
@click.argument('output_path', type=click.Path(dir_okay=False), callback=_validate_output)
@tone_options
@click.option('--quality', type=click.IntRange(1, 100), help='JPEG/WEBP quality')
@click.option('--preview', is_flag=True, help='Downscale to the preview width first')
@click.pass_context
def process(ctx, input_path: str, output_path: str, preset: str, algorithm: Optional[str],
            quality: Optional[int], preview: bool, **overrides):
    """
    Process a single image.

    INPUT_PATH: Image to process (JPEG, PNG, WEBP, TIFF)
    OUTPUT_PATH: Destination; the format follows the extension
    """
    config = ctx.obj['config']
    quiet = ctx.obj['quiet']
    settings = _resolve_settings(config, preset, overrides)
    algorithm = _resolve_algorithm(config, algorithm)
    quality = quality or get_config_value(config, 'output.quality', 95)
    logger.debug(f"Processing {input_path} with {settings.to_dict()} ({algorithm})")

    try:
        pixels = load_image(input_path)
        if preview:
            pixels = create_preview(pixels, get_config_value(config, 'preview.max_width', 1500))
        result = ctx.obj['engine'].process(pixels, settings, algorithm)
        saved = save_image(result, output_path, quality)
    except (ShadowLiftError, OSError) as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)

    if not quiet:
        click.echo(f"✅ {Path(input_path).name} -> {saved} ({algorithm})")


@main.command()
@click.argument('inputs', nargs=-1, required=True, type=click.Path(exists=True))
@click.option('--output', '-o', type=click.Path(), default='.', show_default=True,
              help='ZIP file or directory for the dated archive')
@tone_options
@click.option('--recursive/--no-recursive', default=True, help='Search subdirectories')
@click.pass_context
def batch(ctx, inputs, output: str, preset: str, algorithm: Optional[str],
          recursive: bool, **overrides):
    """
    Process many images into a ZIP archive.

    INPUTS: Image files and/or directories
    """
    config = ctx.obj['config']
    quiet = ctx.obj['quiet']

    paths = []
    for item in inputs:
        paths.extend(find_images(item, recursive=recursive))
    if not paths:
        click.echo("❌ No supported images found", err=True)
        sys.exit(1)
    logger.info(f"Batch of {len(paths)} images")

    processor = BatchProcessor(
        engine=ctx.obj['engine'],
        settings=_resolve_settings(config, preset, overrides),
        algorithm=_resolve_algorithm(config, algorithm),
        quality=get_config_value(config, 'output.quality', 95),
        prefix=get_config_value(config, 'output.prefix', 'edited_'),
    )

    try:
        result = processor.process_files(paths, show_progress=not quiet)
    except BatchProcessingError as e:
        click.echo(f"❌ {e}", err=True)
        for failure in e.failures:
            click.echo(f"  - {failure.name}: {failure.reason}", err=True)
        sys.exit(1)

    archive = processor.write_archive(
        result, output,
        get_config_value(config, 'output.archive_name', DEFAULT_ARCHIVE_NAME),
    )

    if not quiet:
        click.echo(result.stats.format_summary())
        click.echo(f"📦 {result.success_count} images written to {archive}")


@main.command()
@click.argument('input_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--output-format', type=click.Choice(['table', 'json']), default='table',
              help='Output format for results')
@click.pass_context
def analyze(ctx, input_path: str, output_format: str):
    """
    Show the base layer radius and adaptive shadow tuning for an image.

    INPUT_PATH: Image to analyze
    """
    try:
        analysis = ctx.obj['engine'].analyze(load_image(input_path))
    except ShadowLiftError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)

    report = {
        'file': str(input_path),
        'width': analysis.width,
        'height': analysis.height,
        'radius': analysis.radius,
        'tuning': analysis.tuning.to_dict(),
    }

    if output_format == 'json':
        click.echo(json.dumps(report, indent=2))
        return

    click.echo(f"📸 {Path(input_path).name}: {analysis.width}x{analysis.height}, "
               f"filter radius {analysis.radius}")
    for key, value in report['tuning'].items():
        click.echo(f"  {key:<16} {value:.4f}" if value is not None else f"  {key:<16} -")


@main.command()
@click.pass_context
def presets(ctx):
    """List the configured presets."""
    for name, values in sorted(get_config_value(ctx.obj['config'], 'presets', {}).items()):
        controls = ', '.join(f"{k}={v:g}" for k, v in values.items())
        click.echo(f"{name}: {controls}")


if __name__ == '__main__':
    main()
