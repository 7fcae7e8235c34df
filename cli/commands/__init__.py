"""
CLI command modules for the document field extractor.

This package contains the command implementations organized by functional area:
- extract_commands: Field extraction, text dump and line inspection
- config_commands: Configuration display and initialization
"""

from . import extract_commands, config_commands

__all__ = [
    'extract_commands',
    'config_commands'
]
