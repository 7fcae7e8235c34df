"""
Custom exception classes for the CLI interface.

This module defines CLI-specific exceptions that provide clear error messages
and appropriate exit codes for different error conditions.
"""


class CLIError(Exception):
    """Base exception for CLI-related errors."""

    def __init__(self, message: str, exit_code: int = 1):
        super().__init__(message)
        self.exit_code = exit_code


class ValidationError(CLIError):
    """Raised when user input validation fails."""

    def __init__(self, message: str):
        super().__init__(f"Validation Error: {message}", exit_code=2)


class ConfigurationError(CLIError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str):
        super().__init__(f"Configuration Error: {message}", exit_code=5)


class ProcessingError(CLIError):
    """Raised when a document cannot be processed or yields no fields."""

    def __init__(self, message: str):
        super().__init__(f"Processing Error: {message}", exit_code=6)
