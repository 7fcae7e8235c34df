"""
Configuration commands for the CLI interface.

This module implements configuration-related commands:
- show: Display the effective extraction settings
- init: Write a JSON settings file with the defaults
"""

import json
import logging
from pathlib import Path

import click

from cli.context import pass_context
from cli.formatters import print_success, format_table, format_json
from cli.exceptions import CLIError
from extraction.config import ExtractionConfig


logger = logging.getLogger(__name__)


# Create config command group
@click.group(name='config')
def config_group():
    """Configuration commands."""
    pass


@config_group.command()
@click.option('--format', '-f', 'output_format', type=click.Choice(['table', 'json']),
              default='table', help='Output format')
@pass_context
def show(ctx, output_format):
    """
    Display the effective configuration.

    Settings come from defaults, the --config-file JSON file, then the
    GEMINI_API_KEY and FIELD_EXTRACTOR_* environment variables.
    """
    settings = ctx.get_config().to_dict(mask_secrets=True)

    if output_format == 'json':
        click.echo(format_json(settings))
        return

    rows = [{'Setting': key, 'Value': ', '.join(value) if isinstance(value, list) else value}
            for key, value in settings.items()]
    click.echo(format_table(rows, headers=['Setting', 'Value']))


@config_group.command()
@click.argument('path', type=click.Path(dir_okay=False))
@click.option('--force', is_flag=True, help='Overwrite an existing file')
def init(path, force):
    """
    Write a settings file with every default value.

    Examples:
        field-extractor config init extractor.json
        field-extractor --config-file extractor.json extract delivery.pdf
    """
    target = Path(path)
    if target.exists() and not force:
        raise CLIError(f"{target} already exists (use --force to overwrite)")

    settings = ExtractionConfig().to_dict(mask_secrets=False)
    settings.pop('api_key')
    with open(target, 'w', encoding='utf-8') as f:
        json.dump(settings, f, indent=2, ensure_ascii=False)
    print_success(f"Configuration written to: {target}")
