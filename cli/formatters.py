"""
Output formatting utilities for the CLI interface.

This module provides functions for formatting output, setting up logging,
and displaying data as tables or JSON.
"""

import json
import logging
from typing import List, Dict, Any, Optional

import click
from tabulate import tabulate


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """
    Setup logging configuration for the CLI application.

    Args:
        verbose: Enable verbose (DEBUG) logging
        quiet: Suppress non-essential output (WARNING+ only)
    """
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    # Configure root logger
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Suppress verbose output from third-party libraries unless in debug mode
    if not verbose:
        logging.getLogger('pdfminer').setLevel(logging.WARNING)
        logging.getLogger('urllib3').setLevel(logging.WARNING)
        logging.getLogger('google').setLevel(logging.WARNING)


def truncate_text(text: Optional[str], max_length: int = 50) -> str:
    """
    Truncate text to a maximum length with ellipsis.

    Args:
        text: Text to truncate
        max_length: Maximum length including ellipsis

    Returns:
        Truncated text
    """
    if not text:
        return ""
    if len(text) <= max_length:
        return text
    return text[:max_length - 3] + "..."


def format_table(data: List[Dict[str, Any]], headers: Optional[List[str]] = None,
                 tablefmt: str = "grid", max_width: int = 60) -> str:
    """
    Format data as a table using tabulate.

    Args:
        data: List of dictionaries containing row data
        headers: Optional list of column headers
        tablefmt: Table format style
        max_width: Longer cell values are truncated

    Returns:
        Formatted table string
    """
    if not data:
        return "No data to display."

    if headers is None:
        headers = list(data[0].keys())

    rows = [[truncate_text("" if row.get(header) is None else str(row.get(header)), max_width)
             for header in headers]
            for row in data]
    return tabulate(rows, headers=headers, tablefmt=tablefmt)


def format_json(data: Any, indent: int = 2) -> str:
    """Format data as JSON, keeping non-ASCII characters readable."""
    return json.dumps(data, indent=indent, ensure_ascii=False, default=str)


def print_success(message: str) -> None:
    """Print a success message with green checkmark."""
    click.echo(click.style(f"✓ {message}", fg='green'))


def print_warning(message: str) -> None:
    """Print a warning message with yellow warning symbol."""
    click.echo(click.style(f"⚠ Warning: {message}", fg='yellow'))


def print_info(message: str) -> None:
    """Print an info message with blue info symbol."""
    click.echo(click.style(f"ℹ {message}", fg='blue'))


def display_summary(title: str, stats: Dict[str, Any]) -> None:
    """
    Display a formatted summary with title and statistics.

    Args:
        title: Summary title
        stats: Dictionary of statistics to display
    """
    click.echo(f"\n{title}")
    click.echo("=" * len(title))

    for key, value in stats.items():
        formatted_key = key.replace('_', ' ').title()
        if isinstance(value, bool):
            formatted_value = "Yes" if value else "No"
        elif value is None:
            formatted_value = "N/A"
        else:
            formatted_value = str(value)
        click.echo(f"  {formatted_key}: {formatted_value}")
