"""
Input validation utilities for the CLI interface.

This module provides validation functions and click parameter types for
field labels and report formats.
"""

from typing import List, Sequence

import click

from cli.exceptions import ValidationError
from extraction.report_generator import REPORT_FORMATS


OUTPUT_FORMATS = list(REPORT_FORMATS) + ['table']


def validate_output_format(format_str: str) -> str:
    """
    Validate output format string.

    Args:
        format_str: Format string to validate

    Returns:
        Validated format string (lowercase)

    Raises:
        ValidationError: If format is not supported
    """
    if not format_str:
        raise ValidationError("Output format cannot be empty")

    format_str = format_str.lower().strip()
    if format_str not in OUTPUT_FORMATS:
        raise ValidationError(
            f"Invalid output format '{format_str}'. "
            f"Supported formats: {', '.join(OUTPUT_FORMATS)}"
        )

    return format_str


def validate_field_label(label: str) -> str:
    """
    Validate a requested field label.

    Raises:
        ValidationError: If the label is empty or too long
    """
    if not label or not label.strip():
        raise ValidationError("Field label cannot be empty")

    label = label.strip()
    if len(label) > 100:
        raise ValidationError("Field label cannot exceed 100 characters")
    return label


def validate_field_labels(labels: Sequence[str]) -> List[str]:
    """Validate labels, dropping repeats but keeping their order."""
    validated = []
    for label in labels:
        label = validate_field_label(label)
        if label not in validated:
            validated.append(label)
    return validated


def infer_output_format(output_path: str) -> str:
    """Infer a report format from an output file extension (xlsx by default)."""
    suffix = output_path.rsplit('.', 1)[-1].lower() if '.' in output_path else ''
    return suffix if suffix in REPORT_FORMATS else 'xlsx'


class FieldLabelType(click.ParamType):
    """Click parameter type for field labels."""
    name = "label"

    def convert(self, value, param, ctx):
        try:
            return validate_field_label(value)
        except ValidationError as e:
            self.fail(str(e), param, ctx)


class OutputFormatType(click.ParamType):
    """Click parameter type for output formats."""
    name = "format"

    def convert(self, value, param, ctx):
        try:
            return validate_output_format(value)
        except ValidationError as e:
            self.fail(str(e), param, ctx)


# Create instances for use in Click commands
FIELD_LABEL = FieldLabelType()
OUTPUT_FORMAT = OutputFormatType()
