"""
Export, import and LUT commands for filmrecipe

Recipes are JSON files holding an adjustment record.
"""

import click
import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from tqdm import tqdm

from ..config import get_config_value
from ..exporters import ExportType, export
from ..lut import FORMATTERS
from ..models import AdjustmentRecord
from ..utils.logging import ExportStats
from ..xmp import parse_preset

logger = logging.getLogger(__name__)


def load_recipe(path: Path) -> AdjustmentRecord:
    """
    Read a recipe file.

    Raises:
        click.ClickException: If the file is not a JSON object
    """
    try:
        data = json.loads(Path(path).read_text(encoding='utf-8'))
    except (OSError, json.JSONDecodeError) as e:
        raise click.ClickException(f"Could not read recipe {path}: {e}")
    if not isinstance(data, dict):
        raise click.ClickException(f"Recipe {path} must contain a JSON object")
    return AdjustmentRecord.from_dict(data)


def load_mask_overrides(path: Path) -> List[Dict[str, Any]]:
    """Read a JSON list of mask override operations."""
    try:
        data = json.loads(Path(path).read_text(encoding='utf-8'))
    except (OSError, json.JSONDecodeError) as e:
        raise click.ClickException(f"Could not read mask overrides {path}: {e}")
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list) or not all(isinstance(op, dict) for op in data):
        raise click.ClickException(f"Mask overrides {path} must be a list of objects")
    return data


@click.command('export')
@click.argument('recipes', nargs=-1, required=True,
                type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--type', '-t', 'export_type', required=True,
              type=click.Choice([t.value for t in ExportType]), help='Artifact type to produce')
@click.option('--output-dir', '-o', required=True,
              type=click.Path(file_okay=False, path_type=Path), help='Directory for artifacts')
@click.option('--strength', '-s', type=click.FloatRange(0.0, 2.0),
              help='Strength multiplier (default depends on the type)')
@click.option('--name', '-n', help='Display name (single recipe only)')
@click.option('--mask-overrides', '-m', type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help='JSON list of mask add/update/remove operations')
@click.pass_context
def export_cmd(ctx, recipes: Tuple[Path, ...], export_type: str, output_dir: Path,
               strength: Optional[float] = None, name: Optional[str] = None,
               mask_overrides: Optional[Path] = None):
    """
    Export one or more recipes.

    RECIPES: JSON recipe files
    """
    config = ctx.obj.get('config', {})
    quiet = ctx.obj.get('quiet', False)

    if name and len(recipes) > 1:
        raise click.UsageError("--name can only be used with a single recipe")

    operations = load_mask_overrides(mask_overrides) if mask_overrides else None

    output_dir.mkdir(parents=True, exist_ok=True)
    stats = ExportStats()
    stats.set_total(len(recipes))

    for recipe_path in tqdm(recipes, desc="Exporting", unit="recipe", disable=quiet):
        started = time.time()
        try:
            record = load_recipe(recipe_path)
            for warning in record.validate():
                logger.warning(f"{recipe_path.name}: {warning}")
            artifact = export(record, export_type, strength=strength,
                              name=name or record.preset_name or recipe_path.stem, config=config,
                              mask_overrides=operations)
            (output_dir / artifact.filename).write_text(artifact.content, encoding='utf-8')
            stats.add_result(export_type, True, time.time() - started)
            logger.info(f"Wrote {output_dir / artifact.filename}")
        except (click.ClickException, ValueError, OSError) as e:
            message = e.format_message() if isinstance(e, click.ClickException) else str(e)
            logger.error(f"Failed to export {recipe_path}: {message}")
            stats.add_result(export_type, False, time.time() - started)
            stats.add_error(str(recipe_path), message)

    if not quiet:
        stats.print_summary()
    if stats.failed:
        ctx.exit(1)


@click.command('import')
@click.argument('preset', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--output', '-o', type=click.Path(dir_okay=False, path_type=Path),
              help='Write the recipe JSON here instead of stdout')
@click.pass_context
def import_cmd(ctx, preset: Path, output: Optional[Path] = None):
    """
    Decode a Lightroom preset or look into a recipe.

    PRESET: .xmp preset or profile
    """
    quiet = ctx.obj.get('quiet', False)
    try:
        text = preset.read_text(encoding='utf-8-sig')
    except (OSError, UnicodeDecodeError) as e:
        click.echo(f"Could not read {preset}: {e}", err=True)
        ctx.exit(1)

    result = parse_preset(text)
    if not result.success:
        click.echo(f"Could not import {preset.name}: {result.error}", err=True)
        ctx.exit(1)

    payload = result.record.to_json()
    if output:
        output.write_text(payload + '\n', encoding='utf-8')
        if not quiet:
            click.echo(f"Imported {result.name or preset.stem} -> {output}")
    else:
        click.echo(payload)

    if not quiet:
        flags = [key for key, value in result.metadata.items()
                 if key.startswith(('has_', 'is_')) and value]
        click.echo(f"Type: {result.metadata.get('preset_type')}"
                   + (f" ({', '.join(flags)})" if flags else ''), err=True)


@click.command('lut')
@click.argument('recipe', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--size', type=click.IntRange(2, 256), help='Lattice points per axis')
@click.option('--dialect', '-d', type=click.Choice(sorted(FORMATTERS)), help='LUT file format')
@click.option('--strength', '-s', type=click.FloatRange(0.0, 2.0), help='Strength multiplier')
@click.option('--output', '-o', type=click.Path(dir_okay=False, path_type=Path),
              help='Output file (defaults to the generated name in the current directory)')
@click.pass_context
def lut_cmd(ctx, recipe: Path, size: Optional[int] = None, dialect: Optional[str] = None,
            strength: Optional[float] = None, output: Optional[Path] = None):
    """
    Generate a 3D LUT from a recipe.

    RECIPE: JSON recipe file
    """
    config = ctx.obj.get('config', {})
    quiet = ctx.obj.get('quiet', False)

    record = load_recipe(recipe)
    try:
        artifact = export(record, ExportType.LUT, strength=strength,
                          name=record.preset_name or recipe.stem, config=config,
                          lut_size=size, lut_dialect=dialect,
                          workers=get_config_value(config, 'lut.workers'))
    except ValueError as e:
        click.echo(f"LUT generation failed: {e}", err=True)
        ctx.exit(1)

    target = output or Path(artifact.filename)
    target.write_text(artifact.content, encoding='utf-8')
    if not quiet:
        click.echo(f"Wrote {target}")
