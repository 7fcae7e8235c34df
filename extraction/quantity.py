"""
Quantity disambiguation for delivery lines.

Delivery lines carry both an order identifier (CPOV-000009911) and a quantity
("40 UND"). When the PDF layer glues digits together, the tail of the order
identifier can look like a quantity. QuantityDisambiguator decides which unit
suffixed number on a line is the real quantity.
"""

import re
import logging
from typing import List, Optional, Iterable, Set

from extraction.config import ExtractionConfig
from extraction.categories import ORDER_ID_PATTERN
from extraction.models import ExtractedField, LogicalLine, METHOD_MANUAL
from extraction.validator import QuantityValidator


class QuantityDisambiguator:
    """
    Picks at most one quantity per line.

    For every "<digits> <unit>" candidate on a line, in order:

    1. the line must mention an article marker, otherwise nothing on it counts;
    2. values above order_collision_threshold are rejected when they look like
       a fragment of an order identifier on the line;
    3. the value must pass the QuantityValidator with the line as context.

    The first candidate passing all checks is the line's quantity. A value
    already accepted on an earlier line is dropped.
    """

    def __init__(self, config: Optional[ExtractionConfig] = None,
                 validator: Optional[QuantityValidator] = None,
                 logger: Optional[logging.Logger] = None):
        self.config = config or ExtractionConfig()
        self.validator = validator or QuantityValidator(self.config)
        self.logger = logger or logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        units = '|'.join(re.escape(unit) for unit in self.config.unit_markers)
        self.candidate_pattern = re.compile(rf'\b(\d{{1,5}})\s*(?:{units})\b', re.IGNORECASE)

    def has_article_marker(self, line_text: str) -> bool:
        return any(marker in line_text for marker in self.config.article_markers)

    def is_order_fragment(self, value: int, line_text: str, position: Optional[int] = None) -> bool:
        """
        Check whether a number is really a piece of an order identifier.

        Args:
            value: Candidate quantity
            line_text: Whole line
            position: Offset of the candidate on the line, if known

        Returns:
            True if the candidate must be rejected
        """
        if value <= self.config.order_collision_threshold:
            return False

        token = str(value)
        for match in ORDER_ID_PATTERN.finditer(line_text):
            if token in match.group(1):
                self.logger.debug(f"Quantity {value} rejected: contained in order {match.group(0)}")
                return True

        if position is not None:
            for match in ORDER_ID_PATTERN.finditer(line_text[:position]):
                if match.group(1).endswith(token):
                    self.logger.debug(f"Quantity {value} rejected: tail of order {match.group(0)}")
                    return True

        return False

    def quantity_for_line(self, line_text: str) -> Optional[str]:
        """
        Return the first acceptable quantity on a line, or None.
        """
        if not self.has_article_marker(line_text):
            return None

        for match in self.candidate_pattern.finditer(line_text):
            raw = match.group(1)
            if self.is_order_fragment(int(raw), line_text, match.start()):
                continue
            value = self.validator.validate(raw, line_text)
            if value is not None:
                return value
        return None

    def extract(self, lines: Iterable[LogicalLine], field_name: str,
                seen: Optional[Set[str]] = None) -> List[ExtractedField]:
        """
        Extract one quantity per line across a document.

        Args:
            lines: Lines to scan, in document order
            field_name: Label to give the extracted fields
            seen: Values already accepted elsewhere in the document

        Returns:
            Quantity fields attributed to their source lines
        """
        seen = set() if seen is None else seen
        quantities = []
        for line in lines:
            value = self.quantity_for_line(line.text)
            if value is None:
                continue
            if value in seen:
                self.logger.debug(f"Line {line.index}: duplicate quantity {value} dropped")
                continue
            seen.add(value)
            quantities.append(ExtractedField(field_name, value, line.index, METHOD_MANUAL))

        self.logger.debug(f"Found {len(quantities)} quantities")
        return quantities
