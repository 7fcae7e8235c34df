"""
Line reconstruction for flattened document text.

Text pulled out of PDFs often loses its line breaks, so several delivery
records end up concatenated on one physical line. LineReconstructor recovers
one logical line per record, using record-start markers first and a product
anchor phrase second. It also groups positioned PDF fragments into lines.
"""

import re
import logging
from typing import List, Optional, Iterable

from extraction.config import ExtractionConfig
from extraction.models import LogicalLine, TextFragment


LINE_BREAK_PATTERN = re.compile(r'\r\n|\r|\n')


class LineReconstructor:
    """
    Recovers logical record lines from flattened text.

    Reconstruction never raises: when no heuristic applies the naive split is
    returned as-is (possibly a single line).
    """

    def __init__(self, config: Optional[ExtractionConfig] = None,
                 logger: Optional[logging.Logger] = None):
        self.config = config or ExtractionConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.record_start = re.compile(self.config.record_start_pattern)

    def reconstruct_lines(self, text: Optional[str]) -> List[LogicalLine]:
        """
        Split text into numbered logical lines.

        Args:
            text: Flattened document text

        Returns:
            Logical lines numbered from 1 in document order
        """
        if not text or not text.strip():
            return []

        lines = self.split_lines(text)
        if len(lines) >= self.config.min_line_count:
            return self._number(lines)

        self.logger.debug(f"Only {len(lines)} physical lines; attempting record reconstruction")

        recovered = self._split_at_markers(text)
        if recovered:
            self.logger.info(f"Reconstructed {len(recovered)} lines from record markers")
            return self._number(recovered)

        recovered = self._split_at_anchor(text)
        if recovered:
            self.logger.info(f"Reconstructed {len(recovered)} lines from anchor phrase "
                             f"'{self.config.anchor_phrase}'")
            return self._number(recovered)

        return self._number(lines)

    def split_lines(self, text: str) -> List[str]:
        """Split on any line break, returning trimmed non-blank lines."""
        return [line.strip() for line in LINE_BREAK_PATTERN.split(text) if line.strip()]

    def _split_at_markers(self, text: str) -> List[str]:
        starts = [match.start() for match in self.record_start.finditer(text)]
        # Text before the first marker belongs to no record
        return self._split_at(text, starts)

    def _split_at_anchor(self, text: str) -> List[str]:
        anchor = self.config.anchor_phrase
        if not anchor:
            return []
        starts = [match.start() for match in re.finditer(re.escape(anchor), text)]
        if not starts:
            return []
        return self._split_at(text, sorted({0, *starts}))

    def _split_at(self, text: str, starts: List[int]) -> List[str]:
        if not starts:
            return []
        boundaries = starts + [len(text)]
        kept = []
        for begin, end in zip(boundaries, boundaries[1:]):
            # Segments may still span physical line breaks
            segment = LINE_BREAK_PATTERN.sub(' ', text[begin:end]).strip()
            if len(segment) >= self.config.min_reconstructed_line_length:
                kept.append(segment)
        return kept

    @staticmethod
    def _number(lines: List[str]) -> List[LogicalLine]:
        return [LogicalLine(index, text) for index, text in enumerate(lines, 1)]

    def group_fragments(self, fragments: Iterable[TextFragment]) -> List[str]:
        """
        Group positioned fragments into text lines.

        Fragments are ordered by page, vertical then horizontal position. A new
        line starts when the page changes or the vertical distance to the
        current line exceeds line_y_tolerance.

        Args:
            fragments: Positioned text runs (e.g. pdfplumber words)

        Returns:
            Text lines in reading order
        """
        ordered = sorted(
            (f for f in fragments if f.text and f.text.strip()),
            key=lambda f: (f.page_number, f.top, f.x0),
        )

        lines: List[List[TextFragment]] = []
        line_top = None
        line_page = None
        for fragment in ordered:
            if (not lines or fragment.page_number != line_page
                    or abs(fragment.top - line_top) > self.config.line_y_tolerance):
                lines.append([])
                line_top = fragment.top
                line_page = fragment.page_number
            lines[-1].append(fragment)

        return [' '.join(f.text.strip() for f in sorted(line, key=lambda f: f.x0))
                for line in lines]
