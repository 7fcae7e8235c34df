"""
Custom exceptions for document field extraction.

This module defines specific exception classes for the errors that can occur
while reading documents, talking to the AI service, and extracting fields.
Only a few of them ever reach the caller: AI failures are absorbed by the
manual fallback inside the extraction strategies.
"""

from typing import Optional, Dict, Any


class ExtractionError(Exception):
    """Base exception for all field extraction errors."""

    def __init__(self, message: str, source_path: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.source_path = source_path
        self.details = details or {}

    def __str__(self) -> str:
        base_msg = super().__str__()
        if self.source_path:
            base_msg = f"{base_msg} (Document: {self.source_path})"
        return base_msg


class TextExtractionError(ExtractionError):
    """Raised when text cannot be pulled out of a document."""

    def __init__(self, message: str, source_path: Optional[str] = None,
                 page_number: Optional[int] = None,
                 extraction_method: Optional[str] = None,
                 original_error: Optional[Exception] = None):
        super().__init__(message, source_path)
        self.page_number = page_number
        self.extraction_method = extraction_method
        self.original_error = original_error
        if page_number is not None:
            self.details['page_number'] = page_number
        if extraction_method:
            self.details['extraction_method'] = extraction_method
        if original_error:
            self.details['original_error'] = str(original_error)
            self.details['error_type'] = type(original_error).__name__


class UnsupportedFormatError(ExtractionError):
    """Raised when a document type has no reader."""

    def __init__(self, message: str, source_path: Optional[str] = None,
                 found_format: Optional[str] = None):
        super().__init__(message, source_path)
        self.found_format = found_format
        if found_format:
            self.details['found_format'] = found_format


class AIServiceError(ExtractionError):
    """Raised when the text generation service cannot produce a response."""

    def __init__(self, message: str, model_name: Optional[str] = None,
                 original_error: Optional[Exception] = None):
        super().__init__(message)
        self.model_name = model_name
        self.original_error = original_error
        if model_name:
            self.details['model_name'] = model_name
        if original_error:
            self.details['original_error'] = str(original_error)
            self.details['error_type'] = type(original_error).__name__


class AIResponseFormatError(ExtractionError):
    """Raised when an AI response is not the expected JSON document."""

    def __init__(self, message: str, response_text: Optional[str] = None):
        super().__init__(message)
        if response_text:
            # Store first 500 chars for debugging
            self.details['response_sample'] = response_text[:500]


class NoFieldsExtractedError(ExtractionError):
    """Raised when a usable document produced no field at all."""

    def __init__(self, message: str = "No fields could be extracted",
                 source_path: Optional[str] = None,
                 requested_fields: Optional[list] = None):
        super().__init__(message, source_path)
        self.requested_fields = requested_fields or []
        if requested_fields:
            self.details['requested_fields'] = list(requested_fields)


class ConfigurationError(ExtractionError):
    """Raised when extraction settings are invalid."""

    def __init__(self, message: str, setting: Optional[str] = None,
                 value: Any = None):
        super().__init__(message)
        self.setting = setting
        if setting:
            self.details['setting'] = setting
            self.details['value'] = value
