"""
CLI Context module for the document field extractor.

This module provides the shared context and decorators used across CLI commands,
preventing circular imports between cli.main and command modules.
"""

import os
from typing import Optional

import click

from extraction.config import ExtractionConfig
from extraction.exceptions import ConfigurationError as ExtractionConfigurationError
from cli.exceptions import ConfigurationError


class CLIContext:
    """Context object to share state between CLI commands."""

    def __init__(self):
        self.verbose = False
        self.quiet = False
        # Check for environment variable first
        self.config_file = os.environ.get('FIELD_EXTRACTOR_CONFIG')
        self._config: Optional[ExtractionConfig] = None

    def get_config(self) -> ExtractionConfig:
        """Load the effective extraction configuration once per invocation."""
        if self._config is None:
            try:
                self._config = ExtractionConfig.load(self.config_file)
            except ExtractionConfigurationError as e:
                raise ConfigurationError(str(e)) from e
        return self._config


# Pass context between commands
pass_context = click.make_pass_decorator(CLIContext, ensure=True)
