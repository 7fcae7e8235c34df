"""
Field extraction strategies.

This module implements the Strategy pattern for turning logical lines into
fields. ManualExtractionStrategy is a deterministic regex scan driven by the
category tables; AIExtractionStrategy asks a text generator and silently falls
back to the manual scan whenever the AI path fails.
"""

import re
import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from extraction.categories import (
    FieldCategory, RECORD_CATEGORIES, resolve_category, normalize_label, rules_for
)
from extraction.config import ExtractionConfig
from extraction.ai_client import TextGenerator
from extraction.line_reconstructor import LineReconstructor
from extraction.models import ExtractedField, LogicalLine, METHOD_AI, METHOD_MANUAL
from extraction.prompts import build_extraction_prompt, parse_extraction_response
from extraction.quantity import QuantityDisambiguator
from extraction.validator import FieldValidator, QuantityValidator


NUMBER_PATTERN = re.compile(r'\d+')


class ExtractionStrategy(ABC):
    """
    Abstract base class for field extraction strategies.
    """

    def __init__(self, config: Optional[ExtractionConfig] = None,
                 quantity_validator: Optional[QuantityValidator] = None):
        """
        Initialize the extraction strategy.

        Args:
            config: Extraction settings
            quantity_validator: Validator shared by every quantity decision
        """
        self.config = config or ExtractionConfig()
        self.quantity_validator = quantity_validator or QuantityValidator(self.config)
        self.field_validator = FieldValidator(self.config, self.quantity_validator)
        self.disambiguator = QuantityDisambiguator(self.config, self.quantity_validator)
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @abstractmethod
    def extract(self, text: str, relevant_lines: Sequence[LogicalLine],
                requested_fields: Sequence[str],
                all_lines: Optional[Sequence[LogicalLine]] = None) -> List[ExtractedField]:
        """
        Extract the requested fields.

        Args:
            text: Full document text
            relevant_lines: Lines kept by the relevance filter
            requested_fields: Labels to extract
            all_lines: Every reconstructed line (rebuilt from text when omitted)

        Returns:
            Validated fields attributed to their source lines
        """
        pass


class ManualExtractionStrategy(ExtractionStrategy):
    """
    Deterministic regex extraction.

    Record fields (order, load, article, quantity) are searched in the
    relevant lines; labelled and generic fields in every line. For each line
    the first match of each rule is collected and values are deduplicated per
    label.
    """

    def extract(self, text: str, relevant_lines: Sequence[LogicalLine],
                requested_fields: Sequence[str],
                all_lines: Optional[Sequence[LogicalLine]] = None) -> List[ExtractedField]:
        if all_lines is None:
            all_lines = LineReconstructor(self.config).reconstruct_lines(text)

        extracted: List[ExtractedField] = []
        for label in requested_fields:
            category = resolve_category(label)
            lines = relevant_lines if category in RECORD_CATEGORIES else all_lines

            if category == FieldCategory.QUANTITY:
                found = self._extract_quantities(label, lines, all_lines)
            elif category == FieldCategory.GENERIC:
                found = self._extract_generic(label, lines)
            else:
                found = self._extract_with_rules(label, category, lines)

            self.logger.debug(f"'{label}' ({category.value}): {len(found)} values")
            extracted.extend(found)

        order = {label: position for position, label in enumerate(requested_fields)}
        extracted.sort(key=lambda f: (f.source_line, order.get(f.name, 0)))
        return extracted

    def _extract_with_rules(self, label: str, category: FieldCategory,
                            lines: Sequence[LogicalLine]) -> List[ExtractedField]:
        found = []
        seen = set()
        for line in lines:
            for rule in rules_for(category):
                value = rule.first_match(line.text)
                if value is None or value in seen:
                    continue
                candidate = self.field_validator.validate_field(
                    ExtractedField(label, value, line.index, METHOD_MANUAL), category, line.text)
                if candidate is None:
                    continue
                seen.add(value)
                found.append(candidate)
        return found

    def _extract_quantities(self, label: str, relevant_lines: Sequence[LogicalLine],
                            all_lines: Sequence[LogicalLine]) -> List[ExtractedField]:
        quantities = self.disambiguator.extract(relevant_lines, label)
        if quantities:
            return quantities

        # No unit-suffixed quantity; look for "Cantidad: N" anywhere
        return self._extract_with_rules(label, FieldCategory.QUANTITY, all_lines)

    def _extract_generic(self, label: str, lines: Sequence[LogicalLine]) -> List[ExtractedField]:
        needle = label.lower()
        found = []
        seen = set()
        for line in lines:
            if needle not in line.text.lower():
                continue
            numbers = NUMBER_PATTERN.findall(line.text)
            value = f"{line.text} (numbers: {', '.join(numbers)})" if numbers else line.text
            if value in seen:
                continue
            seen.add(value)
            found.append(ExtractedField(label, value, line.index, METHOD_MANUAL))
        return found


class AIExtractionStrategy(ExtractionStrategy):
    """
    Extraction through a text generator with manual fallback.

    Any failure of the AI path (service error, malformed or empty response)
    returns the manual strategy's result instead. Results are never merged.
    """

    def __init__(self, text_generator: TextGenerator,
                 config: Optional[ExtractionConfig] = None,
                 quantity_validator: Optional[QuantityValidator] = None,
                 fallback: Optional[ExtractionStrategy] = None):
        super().__init__(config, quantity_validator)
        self.text_generator = text_generator
        self.fallback = fallback or ManualExtractionStrategy(self.config, self.quantity_validator)

    def extract(self, text: str, relevant_lines: Sequence[LogicalLine],
                requested_fields: Sequence[str],
                all_lines: Optional[Sequence[LogicalLine]] = None) -> List[ExtractedField]:
        try:
            extracted = self._extract_with_ai(relevant_lines, requested_fields)
        except Exception as e:
            self.logger.warning(f"AI extraction failed, using manual extraction: {e}")
            return self.fallback.extract(text, relevant_lines, requested_fields, all_lines)

        if not extracted:
            self.logger.warning("AI extraction returned no valid fields, using manual extraction")
            return self.fallback.extract(text, relevant_lines, requested_fields, all_lines)

        self.logger.info(f"AI extraction returned {len(extracted)} fields")
        return extracted

    def _extract_with_ai(self, relevant_lines: Sequence[LogicalLine],
                         requested_fields: Sequence[str]) -> List[ExtractedField]:
        prompt = build_extraction_prompt(relevant_lines, requested_fields,
                                         self.config.max_text_length)
        response_text = self.text_generator.generate(prompt)
        raw_fields = parse_extraction_response(response_text)

        labels = {normalize_label(label): label for label in requested_fields}
        line_text = {line.index: line.text for line in relevant_lines}

        extracted = []
        for raw in raw_fields:
            label = labels.get(normalize_label(str(raw.get('name') or '')))
            if label is None:
                self.logger.debug(f"Ignoring unrequested field from AI: {raw.get('name')!r}")
                continue

            candidate = ExtractedField(label, raw.get('value'), raw.get('line'), METHOD_AI)
            context = line_text.get(candidate.source_line)
            if context is None:
                candidate.source_line = 0

            validated = self._validate(candidate, resolve_category(label), context)
            if validated is not None:
                extracted.append(validated)
        return extracted

    def _validate(self, candidate: ExtractedField, category: FieldCategory,
                  context: Optional[str]) -> Optional[ExtractedField]:
        validated = self.field_validator.validate_field(candidate, category, context)
        if validated is None or category != FieldCategory.QUANTITY or context is None:
            return validated

        # Attributed quantities must appear on their own line and must not be
        # a fragment of that line's order identifier
        number = int(validated.value)
        if not re.search(rf'(?<!\d){number}(?!\d)', context):
            self.logger.debug(f"AI quantity {number} not found on line {validated.source_line}")
            return None
        if self.disambiguator.is_order_fragment(number, context, _number_position(number, context)):
            return None
        return validated


def _number_position(number: int, text: str) -> Optional[int]:
    """Offset of the last standalone occurrence of number in text."""
    positions = [m.start() for m in re.finditer(rf'(?<!\d){number}(?!\d)', text)]
    return positions[-1] if positions else None
