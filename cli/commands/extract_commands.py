"""
Document extraction commands for the CLI interface.

This module implements the document-related commands:
- extract: Extract fields from a document into a report
- extract-text: Dump the flattened text of a document
- lines: Show the reconstructed logical lines of a document
"""

import logging
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.table import Table

from cli.context import pass_context
from cli.validators import (
    FIELD_LABEL, OUTPUT_FORMAT, validate_field_labels, infer_output_format
)
from cli.formatters import print_success, print_warning, print_info, format_table, display_summary
from cli.exceptions import ProcessingError, ValidationError
from extraction.config import DEFAULT_FIELDS, ExtractionConfig
from extraction.document_reader import DocumentReader
from extraction.exceptions import ExtractionError, UnsupportedFormatError
from extraction.line_reconstructor import LineReconstructor
from extraction.models import DocumentText
from extraction.pipeline import FieldExtractionPipeline
from extraction.relevance import is_relevant
from extraction.report_generator import ReportGenerator


logger = logging.getLogger(__name__)


def _read_document(config: ExtractionConfig, input_path: str,
                   labels: Optional[List[str]] = None) -> DocumentText:
    """Read a document, translating extraction errors into CLI errors."""
    try:
        document = DocumentReader(config).read(input_path, labels)
    except UnsupportedFormatError as e:
        raise ValidationError(str(e)) from e
    except ExtractionError as e:
        raise ProcessingError(str(e)) from e

    if document.failed_pages:
        print_warning(f"Could not read pages {', '.join(map(str, document.failed_pages))}")
    return document


def _default_output_path(input_path: str, report_format: str) -> Path:
    source = Path(input_path)
    return source.with_name(f"{source.stem}_extracted.{report_format}")


@click.command(name='extract')
@click.argument('input_path', type=click.Path(exists=True, dir_okay=False), required=True)
@click.option('--field', '-f', 'fields', type=FIELD_LABEL, multiple=True,
              help='Field label to extract (repeatable). Defaults to load ID, order, article and quantity')
@click.option('--output', '-o', type=click.Path(dir_okay=False), default=None,
              help='Output report file (default: <input>_extracted.<format>)')
@click.option('--format', 'output_format', type=OUTPUT_FORMAT, default=None,
              help='Report format: xlsx, csv, json or table')
@click.option('--no-ai', is_flag=True, help='Use regex extraction only')
@pass_context
def extract(ctx, input_path, fields, output, output_format, no_ai):
    """
    Extract fields from a PDF, Excel, Word or text document.

    Examples:
        # Extract the standard delivery fields into an Excel report
        field-extractor extract delivery.pdf

        # Extract custom fields and print them as a table
        field-extractor extract delivery.pdf -f "Número de orden" -f Cantidad --format table
    """
    config = ctx.get_config()
    if no_ai:
        config = config.updated({'use_ai': False})

    labels = validate_field_labels(fields) if fields else list(DEFAULT_FIELDS)
    report_format = output_format or (infer_output_format(output) if output else 'xlsx')
    if report_format == 'table' and output:
        raise ValidationError("--output cannot be used with --format table")

    document = _read_document(config, input_path, labels)

    try:
        pipeline = FieldExtractionPipeline(config)
        result = pipeline.extract_text(document.text, labels, source_path=str(input_path))
    except ExtractionError as e:
        raise ProcessingError(str(e)) from e

    if result.nothing_extracted:
        raise ProcessingError(f"No fields could be extracted from {input_path}")

    generator = ReportGenerator()
    if report_format == 'table':
        click.echo(format_table(generator.build_records(result),
                                headers=list(result.group_by_name().keys())))
    else:
        output_path = Path(output) if output else _default_output_path(input_path, report_format)
        generator.write(result, output_path, report_format)
        print_success(f"Report saved to: {output_path}")

    if not ctx.quiet:
        stats = {'fields_extracted': len(result.fields),
                 'method': result.method or 'mixed',
                 'lines': result.line_count,
                 'relevant_lines': result.relevant_line_count}
        for name, values in result.group_by_name().items():
            stats[name] = len(values)
        display_summary("Extraction Summary", stats)


@click.command(name='extract-text')
@click.argument('input_path', type=click.Path(exists=True, dir_okay=False), required=True)
@click.option('--output', '-o', type=click.Path(dir_okay=False), default=None,
              help='Output file for extracted text (default: print)')
@pass_context
def extract_text(ctx, input_path, output):
    """
    Extract the flattened text of a document.
    """
    document = _read_document(ctx.get_config(), input_path)
    if output is None:
        click.echo(document.text)
        return

    with open(output, 'w', encoding='utf-8') as f:
        f.write(document.text)
    print_success(f"Extracted text saved to: {output}")


@click.command(name='lines')
@click.argument('input_path', type=click.Path(exists=True, dir_okay=False), required=True)
@click.option('--relevant-only', is_flag=True, help='Show only lines kept by the relevance filter')
@pass_context
def lines(ctx, input_path, relevant_only):
    """
    Show the logical lines reconstructed from a document.
    """
    config = ctx.get_config()
    document = _read_document(config, input_path)
    logical_lines = LineReconstructor(config).reconstruct_lines(document.text)

    table = Table(title=f"Lines of {Path(input_path).name}")
    table.add_column("#", justify="right")
    table.add_column("Relevant", justify="center")
    table.add_column("Text", overflow="fold")

    shown = 0
    for line in logical_lines:
        relevant = is_relevant(line, config.relevance_keywords)
        if relevant_only and not relevant:
            continue
        table.add_row(str(line.index), "✓" if relevant else "", line.text)
        shown += 1

    Console().print(table)
    if not ctx.quiet:
        print_info(f"{shown} of {len(logical_lines)} lines shown")
