"""
Field validation and deduplication.

Both extraction strategies push their raw values through the same validator,
so a quantity accepted by the AI path obeys exactly the rules the regex path
applies.
"""

import re
import logging
from typing import List, Optional, Iterable

from extraction.config import ExtractionConfig
from extraction.models import ExtractedField
from extraction.categories import FieldCategory


DIGIT_RUN_PATTERN = re.compile(r'\d+')


class QuantityValidator:
    """
    Validates raw quantity strings.

    The first run of digits is the candidate. Values outside 1..max_quantity are
    rejected. When the surrounding context carries a quantity indicator (a
    unit such as "UND" or the word "cantidad") any in-range value is accepted;
    without one only 1..plausible_quantity_max is.
    """

    def __init__(self, config: Optional[ExtractionConfig] = None,
                 logger: Optional[logging.Logger] = None):
        self.config = config or ExtractionConfig()
        self.logger = logger or logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def validate(self, raw_value: Optional[str], context: Optional[str] = None) -> Optional[str]:
        """
        Validate a raw quantity.

        Args:
            raw_value: Raw value, e.g. "40" or "40 UND"
            context: Text surrounding the value, usually its whole line

        Returns:
            Normalized integer string, or None if the value is rejected
        """
        if raw_value is None:
            return None

        match = DIGIT_RUN_PATTERN.search(str(raw_value))
        if not match:
            return None

        number = int(match.group())
        if number <= 0 or number > self.config.max_quantity:
            self.logger.debug(f"Quantity {number} out of range")
            return None

        if self.has_quantity_context(context):
            return str(number)

        if number <= self.config.plausible_quantity_max:
            return str(number)

        self.logger.debug(f"Quantity {number} rejected: implausible without unit context")
        return None

    def has_quantity_context(self, context: Optional[str]) -> bool:
        if not context:
            return False
        lowered = context.lower()
        return any(word in lowered for word in self.config.quantity_context_words)


class FieldValidator:
    """
    Applies per-category checks to extracted fields.

    Quantity fields go through QuantityValidator; every other field only needs
    a non-empty value (and article names a minimum length).
    """

    def __init__(self, config: Optional[ExtractionConfig] = None,
                 quantity_validator: Optional[QuantityValidator] = None):
        self.config = config or ExtractionConfig()
        self.quantity_validator = quantity_validator or QuantityValidator(self.config)

    def validate_field(self, extracted: ExtractedField, category: FieldCategory,
                       context: Optional[str] = None) -> Optional[ExtractedField]:
        """
        Validate one field, returning a normalized copy or None.

        Args:
            extracted: Field as produced by a strategy
            category: FieldCategory of its label
            context: Source line text when known
        """
        if not extracted.is_valid():
            return None

        if category == FieldCategory.QUANTITY:
            value = self.quantity_validator.validate(extracted.value, context or extracted.value)
            if value is None:
                return None
            return ExtractedField(extracted.name, value, extracted.source_line, extracted.method)

        if category == FieldCategory.ARTICLE_NAME and len(extracted.value) < self.config.min_article_length:
            return None

        return extracted


def deduplicate_fields(extracted_fields: Iterable[ExtractedField]) -> List[ExtractedField]:
    """
    Drop invalid fields and repeated (name, value) pairs, keeping first occurrence.
    """
    seen = set()
    unique = []
    for extracted in extracted_fields:
        if not extracted.is_valid() or extracted.key in seen:
            continue
        seen.add(extracted.key)
        unique.append(extracted)
    return unique
