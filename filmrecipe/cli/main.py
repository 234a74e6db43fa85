"""
filmrecipe command group

Loads configuration and sets up console logging before any subcommand runs.
"""

import click
import logging
from typing import Optional

from ..config import load_config, get_config_value, get_default_config
from ..utils.logging import setup_console_logging
from .export_commands import export_cmd, import_cmd, lut_cmd
from .mask_commands import masks

logger = logging.getLogger(__name__)


@click.group()
@click.option('--config', '-c', type=click.Path(exists=True, dir_okay=False),
              help='Configuration file path')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress non-error output')
@click.option('--color/--no-color', default=True, help='Colored log output (needs colorlog)')
@click.version_option(package_name='filmrecipe')
@click.pass_context
def main(ctx, config: Optional[str] = None, verbose: bool = False, quiet: bool = False,
         color: bool = True):
    """
    filmrecipe - color-adjustment preset codec

    Converts JSON adjustment recipes into Lightroom presets and looks,
    Capture One styles and 3D LUTs, and reads Lightroom presets back.
    """
    if ctx.obj is None:
        ctx.obj = {}

    try:
        ctx.obj['config'] = load_config(config) if config else load_config()
    except Exception as e:
        if not quiet:
            click.echo(f"Warning: Could not load config: {e}", err=True)
        ctx.obj['config'] = get_default_config()

    cfg = ctx.obj['config']
    if verbose:
        level = 'DEBUG'
    elif quiet:
        level = 'ERROR'
    else:
        level = get_config_value(cfg, 'logging.level', 'WARNING')
    fmt = get_config_value(cfg, 'logging.format') or '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    setup_console_logging(level, color=color, fmt=fmt)

    ctx.obj['verbose'] = verbose
    ctx.obj['quiet'] = quiet


main.add_command(export_cmd)
main.add_command(import_cmd)
main.add_command(lut_cmd)
main.add_command(masks)


if __name__ == '__main__':
    main()
