"""
End-to-end field extraction pipeline.

FieldExtractionPipeline wires the stages together in one place:

    text -> reconstruct lines -> relevance filter -> strategy -> dedupe

Every caller (CLI, reports, tests) goes through this single pipeline.
"""

import logging
from typing import List, Optional, Sequence

from extraction.ai_client import TextGenerator, create_text_generator
from extraction.config import ExtractionConfig
from extraction.line_reconstructor import LineReconstructor, LINE_BREAK_PATTERN
from extraction.models import ExtractionRequest, ExtractionResult, ExtractionStatus
from extraction.relevance import filter_relevant
from extraction.strategies import (
    ExtractionStrategy, AIExtractionStrategy, ManualExtractionStrategy
)
from extraction.validator import QuantityValidator, deduplicate_fields


class FieldExtractionPipeline:
    """
    Extracts requested fields from flattened document text.

    The pipeline holds no per-request state, so one instance can serve any
    number of requests.
    """

    def __init__(self, config: Optional[ExtractionConfig] = None,
                 text_generator: Optional[TextGenerator] = None,
                 quantity_validator: Optional[QuantityValidator] = None,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize the pipeline.

        Args:
            config: Extraction settings (defaults apply when omitted)
            text_generator: AI text generator; created from config when omitted.
                Without one, manual extraction is the primary strategy.
            quantity_validator: Replacement quantity validator
            logger: Optional logger instance
        """
        self.config = config or ExtractionConfig()
        self.logger = logger or self._create_default_logger()
        self.reconstructor = LineReconstructor(self.config)

        if text_generator is None and self.config.use_ai:
            text_generator = create_text_generator(self.config)

        manual = ManualExtractionStrategy(self.config, quantity_validator)
        if text_generator is not None and self.config.use_ai:
            self.strategy: ExtractionStrategy = AIExtractionStrategy(
                text_generator, self.config, quantity_validator, fallback=manual)
        else:
            self.strategy = manual

    def extract(self, request: ExtractionRequest) -> ExtractionResult:
        """
        Run one extraction request.

        Args:
            request: Text and requested labels

        Returns:
            ExtractionResult; EMPTY_INPUT for blank text or no labels,
            NOTHING_EXTRACTED when no field survived validation
        """
        if request.is_empty:
            self.logger.info("Empty input; nothing to extract")
            return ExtractionResult(
                requested_fields=list(request.requested_fields),
                status=ExtractionStatus.EMPTY_INPUT,
                source_path=request.source_path,
            )

        text = LINE_BREAK_PATTERN.sub('\n', request.text)
        lines = self.reconstructor.reconstruct_lines(text)
        relevant = filter_relevant(lines, self.config.relevance_keywords)
        if not relevant:
            self.logger.warning("No line matched the relevance keywords; scanning all lines")
            relevant = lines

        self.logger.info(f"Extracting {len(request.requested_fields)} fields from "
                         f"{len(relevant)} of {len(lines)} lines")

        extracted = self.strategy.extract(text, relevant, request.requested_fields, lines)
        unique = deduplicate_fields(extracted)

        methods = {f.method for f in unique}
        status = ExtractionStatus.SUCCESS if unique else ExtractionStatus.NOTHING_EXTRACTED
        if not unique:
            self.logger.warning("No fields could be extracted")

        return ExtractionResult(
            fields=unique,
            requested_fields=list(request.requested_fields),
            status=status,
            method=methods.pop() if len(methods) == 1 else None,
            line_count=len(lines),
            relevant_line_count=len(relevant),
            source_path=request.source_path,
        )

    def extract_text(self, text: str, requested_fields: Sequence[str],
                     source_path: Optional[str] = None) -> ExtractionResult:
        """Convenience wrapper building the ExtractionRequest."""
        return self.extract(ExtractionRequest(text, list(requested_fields), source_path))

    def _create_default_logger(self) -> logging.Logger:
        return logging.getLogger(__name__)


def extract_fields(text: str, requested_fields: List[str],
                   config: Optional[ExtractionConfig] = None) -> ExtractionResult:
    """
    Extract fields from text with a one-off pipeline.

    Args:
        text: Flattened document text
        requested_fields: Labels to extract
        config: Optional extraction settings

    Returns:
        ExtractionResult
    """
    return FieldExtractionPipeline(config).extract_text(text, requested_fields)
