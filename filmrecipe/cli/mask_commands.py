"""
Mask vocabulary listing
"""

import click
from typing import Optional

from ..masks import REGISTRY, MaskCategory


@click.command()
@click.option('--category', type=click.Choice([c.value for c in MaskCategory]),
              help='Only list one category')
def masks(category: Optional[str] = None):
    """List the supported mask types and their codes"""
    categories = [MaskCategory(category)] if category else list(MaskCategory)
    for cat in categories:
        configs = REGISTRY.by_category(cat)
        if not configs:
            continue
        click.echo(f"\n{cat.value.title()}:")
        for config in configs:
            codes = config.codes.type_code
            if config.codes.subtype_code:
                codes += f"/{config.codes.subtype_code}"
            click.echo(f"  {config.type:<18} {config.archetype.value:<16} {codes:<24} "
                       f"{config.description}")
