"""
Main CLI entry point for the document field extractor.

This module provides the main command-line interface with command groups
and global options.
"""

import sys
import logging

import click

from cli.context import CLIContext
from cli.version import get_version, get_version_info
from cli.commands import extract_commands, config_commands
from cli.exceptions import CLIError
from cli.formatters import setup_logging, display_summary


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress non-essential output')
@click.option('--config-file', type=click.Path(exists=True, dir_okay=False),
              help='JSON file with extraction settings')
@click.version_option(version=get_version(), prog_name="field-extractor")
@click.pass_context
def cli(ctx, verbose, quiet, config_file):
    """
    Document Field Extractor - CLI Tool

    Extracts order numbers, load IDs, article names, quantities and custom
    fields from PDF, Excel, Word and text documents. Uses Gemini when
    GEMINI_API_KEY is set and regex extraction otherwise.

    Examples:
        # Extract the standard fields into delivery_extracted.xlsx
        field-extractor extract delivery.pdf

        # Inspect how the document was split into lines
        field-extractor lines delivery.pdf --relevant-only
    """
    cli_ctx = ctx.ensure_object(CLIContext)
    cli_ctx.verbose = verbose
    cli_ctx.quiet = quiet
    if config_file:
        cli_ctx.config_file = config_file

    setup_logging(verbose, quiet)


@cli.command()
def version():
    """Show version information."""
    display_summary("Field Extractor Version", get_version_info())


cli.add_command(extract_commands.extract)
cli.add_command(extract_commands.extract_text)
cli.add_command(extract_commands.lines)
cli.add_command(config_commands.config_group)


def main():
    """Main entry point for the CLI application."""
    try:
        cli(standalone_mode=False)
    except CLIError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(e.exit_code)
    except click.exceptions.Abort:
        click.echo("\nOperation cancelled by user.", err=True)
        sys.exit(130)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except KeyboardInterrupt:
        click.echo("\nOperation cancelled by user.", err=True)
        sys.exit(130)
    except Exception as e:
        logger = logging.getLogger(__name__)
        logger.exception("Unexpected error occurred")
        click.echo(f"Unexpected error: {e}", err=True)
        sys.exit(1)


if __name__ == '__main__':
    main()
