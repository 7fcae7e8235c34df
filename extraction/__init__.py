"""
Document field extraction package.

This package reads delivery documents and extracts structured fields
(order numbers, load IDs, article names, quantities and arbitrary labels):
- document_reader: PDF, Excel, Word and text to plain text
- line_reconstructor: recover one logical line per record
- relevance: keep only lines worth extracting from
- strategies: AI extraction with manual regex fallback
- quantity / validator: quantity disambiguation and validation
- pipeline: the end-to-end FieldExtractionPipeline
- report_generator: xlsx, csv and json output
"""

from .config import ExtractionConfig, DEFAULT_FIELDS
from .models import (
    ExtractedField, LogicalLine, TextFragment, ExtractionRequest,
    ExtractionResult, ExtractionStatus, DocumentText
)
from .exceptions import (
    ExtractionError, TextExtractionError, UnsupportedFormatError, AIServiceError,
    AIResponseFormatError, NoFieldsExtractedError, ConfigurationError
)
from .line_reconstructor import LineReconstructor
from .relevance import filter_relevant
from .validator import QuantityValidator, FieldValidator, deduplicate_fields
from .quantity import QuantityDisambiguator
from .strategies import ExtractionStrategy, ManualExtractionStrategy, AIExtractionStrategy
from .pipeline import FieldExtractionPipeline, extract_fields

__all__ = [
    'ExtractionConfig',
    'DEFAULT_FIELDS',
    'ExtractedField',
    'LogicalLine',
    'TextFragment',
    'ExtractionRequest',
    'ExtractionResult',
    'ExtractionStatus',
    'DocumentText',
    'ExtractionError',
    'TextExtractionError',
    'UnsupportedFormatError',
    'AIServiceError',
    'AIResponseFormatError',
    'NoFieldsExtractedError',
    'ConfigurationError',
    'LineReconstructor',
    'filter_relevant',
    'QuantityValidator',
    'FieldValidator',
    'deduplicate_fields',
    'QuantityDisambiguator',
    'ExtractionStrategy',
    'ManualExtractionStrategy',
    'AIExtractionStrategy',
    'FieldExtractionPipeline',
    'extract_fields',
]
